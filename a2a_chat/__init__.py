"""
A2A Chat

Client-side support for chatting with remote agents over the
Agent2Agent (A2A) protocol:
- Protocol client (message/send, message/stream, agent card probe)
- Relay for clients that cannot reach agents directly
- Per-agent conversation context
"""
