"""HTTP interface for DRIP faucet.

Endpoints:
- POST /faucet/{token}/{address}: Dispense a token (plain text response)
- GET /: Liveness text
- GET /health: Liveness probe (JSON)
- GET /ready: Readiness probe (JSON, 503 when a chain is unreachable)
- GET /metrics: Prometheus metrics
"""

import logging
import re
import time
from collections.abc import Awaitable, Callable

from aiohttp import web
from prometheus_client import REGISTRY, generate_latest

from drip.faucet import FaucetService
from drip.observability.health import HealthCheck, HealthStatus, run_checks
from drip.observability.logging import clear_request_id, new_request_id, set_request_id

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

FAUCET_KEY = web.AppKey("faucet", FaucetService)
CHECKS_KEY = web.AppKey("checks", list)
RUNNING_MESSAGE_KEY = web.AppKey("running_message", str)
DEBUG_KEY = web.AppKey("debug", bool)

# Caller-supplied request IDs are echoed only when short and header-safe
REQUEST_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,64}")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Allow cross-origin requests and answer preflight requests."""
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=CORS_HEADERS)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers.update(CORS_HEADERS)
        raise
    response.headers.update(CORS_HEADERS)
    return response


@web.middleware
async def request_logging_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Log one line per request, tagged with a fresh request ID."""
    request_id = request.headers.get("X-Request-ID", "")
    if not REQUEST_ID_PATTERN.fullmatch(request_id):
        request_id = new_request_id()
    set_request_id(request_id)
    start = time.perf_counter()
    status = 500
    try:
        response = await handler(request)
        status = response.status
        response.headers["X-Request-ID"] = request_id
        return response
    except web.HTTPException as exc:
        status = exc.status
        raise
    finally:
        extra = {
            "method": request.method,
            "path": request.path,
            "status": status,
            "duration_ms": round((time.perf_counter() - start) * 1000, 2),
        }
        if request.app[DEBUG_KEY]:
            extra["match_info"] = dict(request.match_info)
            extra["remote"] = request.remote
        logger.info("HTTP request", extra=extra)
        clear_request_id()


async def handle_faucet(request: web.Request) -> web.Response:
    """Handle POST /faucet/{token}/{address}."""
    faucet = request.app[FAUCET_KEY]
    result = await faucet.handle_request(
        request.match_info["token"],
        request.match_info["address"],
    )
    return web.Response(text=result.message)


async def handle_root(request: web.Request) -> web.Response:
    """Handle GET / (liveness text)."""
    return web.Response(text=request.app[RUNNING_MESSAGE_KEY])


async def handle_health(_request: web.Request) -> web.Response:
    """Handle GET /health (liveness probe)."""
    return web.json_response({"status": "ok"})


async def handle_ready(request: web.Request) -> web.Response:
    """Handle GET /ready (readiness probe)."""
    result = await run_checks(request.app[CHECKS_KEY])
    status_code = 200 if result.status == HealthStatus.OK else 503
    return web.json_response(result.to_dict(), status=status_code)


async def handle_metrics(_request: web.Request) -> web.Response:
    """Handle GET /metrics (Prometheus)."""
    return web.Response(
        body=generate_latest(REGISTRY),
        content_type="text/plain",
        charset="utf-8",
    )


def create_app(
    faucet: FaucetService,
    checks: list[HealthCheck] | None = None,
    running_message: str = "Server running",
    debug: bool = False,
) -> web.Application:
    """Build the faucet web application.

    Parameters
    ----------
    faucet : FaucetService
        Service handling dispense requests.
    checks : list[HealthCheck] | None
        Readiness checks for /ready.
    running_message : str
        Text returned by GET /.
    debug : bool
        Log route parameters and remote address with each request.

    Returns
    -------
    web.Application
        The configured application.
    """
    app = web.Application(middlewares=[request_logging_middleware, cors_middleware])
    app[FAUCET_KEY] = faucet
    app[CHECKS_KEY] = list(checks or [])
    app[RUNNING_MESSAGE_KEY] = running_message
    app[DEBUG_KEY] = debug

    app.router.add_post("/faucet/{token}/{address}", handle_faucet)
    app.router.add_get("/", handle_root)
    app.router.add_get("/health", handle_health)
    app.router.add_get("/ready", handle_ready)
    app.router.add_get("/metrics", handle_metrics)
    return app


class FaucetServer:
    """HTTP server wrapping the faucet application.

    Parameters
    ----------
    faucet : FaucetService
        Service handling dispense requests.
    checks : list[HealthCheck] | None
        Readiness checks for /ready.
    host : str
        Host to bind to.
    port : int
        Port to bind to.
    debug : bool
        Verbose request logging.
    """

    # 0.0.0.0 by default so container probes can reach the server
    def __init__(
        self,
        faucet: FaucetService,
        checks: list[HealthCheck] | None = None,
        host: str = "0.0.0.0",  # noqa: S104
        port: int = 7500,
        debug: bool = False,
    ):
        self._faucet = faucet
        self._checks = checks
        self._host = host
        self._port = port
        self._debug = debug
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    @property
    def running_message(self) -> str:
        """Text served at GET /."""
        return f"Server running at http://{self._host}:{self._port}"

    async def start(self) -> None:
        """Start serving requests."""
        app = create_app(
            self._faucet,
            checks=self._checks,
            running_message=self.running_message,
            debug=self._debug,
        )
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()

        logger.info(self.running_message, extra={"host": self._host, "port": self._port})

    async def stop(self) -> None:
        """Stop serving requests."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("Faucet server stopped")
