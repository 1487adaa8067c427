"""
Prometheus metrics for the A2A client and relay.
"""

from prometheus_client import Counter, Histogram

# Client metrics
A2A_REQUESTS = Counter(
    'a2a_chat_requests_total',
    'Total JSON-RPC requests sent to agents',
    ['method', 'outcome']
)

A2A_REQUEST_DURATION = Histogram(
    'a2a_chat_request_duration_seconds',
    'Time until a JSON-RPC call resolved',
    ['method'],
    buckets=[0.1, 0.5, 1, 2.5, 5, 10, 30, 60, 120, 300]
)

A2A_STREAM_ATTEMPTS = Counter(
    'a2a_chat_stream_attempts_total',
    'Streaming attempts by outcome',
    ['outcome']
)

A2A_STREAM_EVENTS = Counter(
    'a2a_chat_stream_events_total',
    'Stream result events received by kind',
    ['kind']
)

A2A_MALFORMED_FRAMES = Counter(
    'a2a_chat_malformed_frames_total',
    'SSE data lines that could not be parsed as JSON'
)

# Relay metrics
RELAY_REQUESTS = Counter(
    'a2a_chat_relay_requests_total',
    'Requests forwarded by the relay',
    ['mode', 'outcome']
)
