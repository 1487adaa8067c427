"""
A2A Relay implementation.

Forwards JSON-RPC calls from clients that cannot reach an agent directly
(for example browsers blocked by CORS). The relay is byte-transparent:
non-streaming calls return the upstream JSON as-is, streaming calls
re-emit the upstream SSE bytes chunk for chunk.
"""

import json
import logging
from typing import Any, Optional, Tuple

import aiohttp
from aiohttp import web
from aiohttp.web_request import Request
from aiohttp.web_response import Response, StreamResponse
import aiohttp_cors

from .config import RelayConfig, DEFAULT_RELAY_HOST, DEFAULT_RELAY_PORT, DEFAULT_RELAY_TIMEOUT
from .metrics import RELAY_REQUESTS

logger = logging.getLogger(__name__)

CONTENT_TYPE_SSE = "text/event-stream"

PROXY_PATH = "/api/proxy"
PROXY_STREAM_PATH = "/api/proxy/stream"
HEALTH_PATH = "/health"


class RelayError(Exception):
    """Raised when the upstream agent cannot be relayed."""
    pass


def sse_record(data: Any) -> bytes:
    """Encode one SSE data record."""
    return f"data: {json.dumps(data)}\n\n".encode('utf-8')


class RelayServer:
    """
    HTTP relay between A2A clients and remote agents.

    Routes:
        POST /api/proxy         {destinationUrl, body} -> upstream JSON
        POST /api/proxy/stream  {destinationUrl, body} -> text/event-stream
        GET  /health
    """

    def __init__(
        self,
        host: str = DEFAULT_RELAY_HOST,
        port: int = DEFAULT_RELAY_PORT,
        timeout: float = DEFAULT_RELAY_TIMEOUT,
        enable_cors: bool = True
    ):
        """Initialize relay server."""
        self.host = host
        self.port = port
        self.timeout = timeout
        self.enable_cors = enable_cors
        self.session: Optional[aiohttp.ClientSession] = None
        self.runner: Optional[web.AppRunner] = None

        # Web application
        self.app = web.Application()
        self.app.on_startup.append(self._start_session)
        self.app.on_cleanup.append(self._close_session)
        self.setup_routes()

        if enable_cors:
            self.setup_cors()

        logger.info(f"Relay initialized for {host}:{port}")

    @classmethod
    def from_config(cls, config: Optional[RelayConfig] = None) -> 'RelayServer':
        """Create a relay from a RelayConfig (environment when omitted)."""
        config = config or RelayConfig.from_env()
        return cls(
            host=config.host,
            port=config.port,
            timeout=config.timeout,
            enable_cors=config.enable_cors
        )

    def setup_routes(self) -> None:
        """Setup HTTP routes."""
        self.app.router.add_post(PROXY_PATH, self.proxy)
        self.app.router.add_post(PROXY_STREAM_PATH, self.proxy_stream)
        self.app.router.add_get(HEALTH_PATH, self.health_check)

    def setup_cors(self) -> None:
        """Setup CORS configuration."""
        cors = aiohttp_cors.setup(self.app, defaults={
            "*": aiohttp_cors.ResourceOptions(
                allow_credentials=True,
                expose_headers="*",
                allow_headers="*",
                allow_methods="*"
            )
        })

        # Add CORS to all routes
        for route in list(self.app.router.routes()):
            cors.add(route)

    async def _start_session(self, app: web.Application) -> None:
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )

    async def _close_session(self, app: web.Application) -> None:
        if self.session:
            await self.session.close()
            self.session = None

    async def _read_relay_request(self, request: Request) -> Tuple[Optional[str], Any]:
        """Extract destination URL and body; the legacy ``url`` key is accepted."""
        try:
            data = await request.json()
        except json.JSONDecodeError:
            raise web.HTTPBadRequest(
                text=json.dumps({"error": "Invalid JSON body"}),
                content_type="application/json"
            )

        if not isinstance(data, dict):
            raise web.HTTPBadRequest(
                text=json.dumps({"error": "Request body must be an object"}),
                content_type="application/json"
            )

        return data.get("destinationUrl") or data.get("url"), data.get("body")

    async def proxy(self, request: Request) -> Response:
        """Relay a single JSON-RPC call and return the upstream body verbatim."""
        url, body = await self._read_relay_request(request)

        if not url:
            logger.error("URL is required")
            return web.json_response({"error": "URL is required"}, status=400)

        logger.info(f"Proxy Request to: {url}")

        try:
            async with self.session.post(url, json=body) as upstream:
                text = await upstream.text()
                # Only JSON bodies are relayed
                json.loads(text)

                logger.info(f"Proxy Response Status: {upstream.status}")
                RELAY_REQUESTS.labels(mode="json", outcome="success").inc()
                return web.Response(
                    text=text,
                    status=upstream.status,
                    content_type="application/json"
                )

        except Exception as e:
            logger.error(f"Proxy error: {str(e)}")
            RELAY_REQUESTS.labels(mode="json", outcome="failure").inc()
            return web.json_response(
                {"error": "Failed to proxy request", "message": str(e)},
                status=500
            )

    async def proxy_stream(self, request: Request) -> StreamResponse:
        """
        Relay a streaming call as Server-Sent Events.

        Failures after validation are reported in-band as one
        ``data: {"error": {...}}`` record; the stream always ends cleanly.
        """
        url, body = await self._read_relay_request(request)

        if not url:
            logger.error("URL is required")
            return web.json_response({"error": "URL is required"}, status=400)

        logger.info(f"Streaming Proxy Request to: {url}")

        response = web.StreamResponse(
            status=200,
            headers={
                "Content-Type": CONTENT_TYPE_SSE,
                "Cache-Control": "no-cache"
            }
        )

        forwarded = False

        try:
            async with self.session.post(
                url,
                json=body,
                headers={"Accept": CONTENT_TYPE_SSE},
                timeout=aiohttp.ClientTimeout(total=None, sock_read=self.timeout)
            ) as upstream:
                logger.info(f"Streaming Response Status: {upstream.status}")

                if not 200 <= upstream.status < 300:
                    raise RelayError(f"HTTP error! status: {upstream.status}")

                await response.prepare(request)

                if CONTENT_TYPE_SSE in upstream.headers.get("Content-Type", ""):
                    async for chunk in upstream.content.iter_any():
                        logger.debug(f"Stream chunk received: {chunk[:100]!r}")
                        await response.write(chunk)
                        forwarded = True
                    logger.info("Stream completed")
                else:
                    data = await upstream.json(content_type=None)
                    logger.info("Non-streaming response, sending as SSE")
                    await response.write(sse_record(data))

            RELAY_REQUESTS.labels(mode="stream", outcome="success").inc()

        except ConnectionResetError:
            logger.warning(f"Client disconnected while relaying {url}")
            RELAY_REQUESTS.labels(mode="stream", outcome="disconnected").inc()
            return response

        except Exception as e:
            logger.error(f"Streaming proxy error: {str(e)}")
            RELAY_REQUESTS.labels(mode="stream", outcome="failure").inc()
            if not response.prepared:
                await response.prepare(request)
            if forwarded:
                # Terminate a partially relayed record
                await response.write(b"\n\n")
            await response.write(sse_record({"error": {"message": str(e)}}))

        await response.write_eof()
        return response

    async def health_check(self, request: Request) -> Response:
        """Health check endpoint."""
        return web.json_response({"status": "ok"})

    async def start(self) -> None:
        """Start the relay server."""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()

            site = web.TCPSite(self.runner, self.host, self.port)
            await site.start()

            logger.info(f"Relay running on http://{self.host}:{self.port}")

        except Exception as e:
            logger.error(f"Failed to start relay: {str(e)}")
            raise

    async def stop(self) -> None:
        """Stop the relay server."""
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
            logger.info("Relay stopped")


def main() -> None:
    """Run the relay until interrupted, configured from the environment."""
    logging.basicConfig(level=logging.INFO)
    relay = RelayServer.from_config()
    web.run_app(relay.app, host=relay.host, port=relay.port)


if __name__ == "__main__":
    main()
