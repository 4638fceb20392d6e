"""Internal RPC and health check HTTP server."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from aiohttp import web

if TYPE_CHECKING:
    from continuum.infrastructure.events.loop import EventLoop
    from continuum.infrastructure.events.scheduler import EventScheduler
    from continuum.infrastructure.persistence.database import DatabaseManager

logger = logging.getLogger(__name__)

RouteRegistrar = Callable[[web.Application], None]


class RPCServer:
    """HTTP server for the internal JSON RPC surface.

    Provides /live and /ready probes and mounts the routes added by
    the registrar passed in. Binds to localhost by default.
    """

    def __init__(
        self,
        event_loop: EventLoop,
        event_scheduler: EventScheduler,
        db_manager: DatabaseManager,
        register_routes: RouteRegistrar | None = None,
        middlewares: list[Any] | None = None,
        host: str = "127.0.0.1",
        port: int = 8080,
    ) -> None:
        """Initialize the server.

        Args:
            event_loop: EventLoop instance.
            event_scheduler: EventScheduler instance.
            db_manager: DatabaseManager instance.
            register_routes: Callback adding RPC routes to the application.
            middlewares: aiohttp middlewares (error mapping etc.).
            host: Interface to bind.
            port: Port to listen on. Use 0 for any available port.
        """
        self._event_loop = event_loop
        self._event_scheduler = event_scheduler
        self._db_manager = db_manager
        self._register_routes = register_routes
        self._middlewares = list(middlewares or [])
        self._host = host
        self._port = port
        self._actual_port = port
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if the server is running."""
        return self._running

    @property
    def port(self) -> int:
        """Get the port the server is listening on."""
        return self._actual_port

    async def check_liveness(self) -> dict[str, Any]:
        """Check if the application is alive.

        Returns:
            Liveness status with timestamp.
        """
        is_alive = self._event_loop.is_running
        return {
            "status": "alive" if is_alive else "dead",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def check_readiness(self) -> dict[str, Any]:
        """Check if the application is ready to serve traffic.

        Returns:
            Readiness status with component health details.
        """
        event_loop_ok = self._event_loop.is_running
        event_scheduler_ok = self._event_scheduler.is_running
        db_ok = await self._db_manager.is_healthy()

        return {
            "ready": event_loop_ok and event_scheduler_ok and db_ok,
            "event_loop": event_loop_ok,
            "event_scheduler": event_scheduler_ok,
            "database": db_ok,
        }

    async def _handle_live(self, request: web.Request) -> web.Response:
        result = await self.check_liveness()
        return web.json_response(result)

    async def _handle_ready(self, request: web.Request) -> web.Response:
        result = await self.check_readiness()
        status = 200 if result["ready"] else 503
        return web.json_response(result, status=status)

    def create_app(self) -> web.Application:
        """Build the aiohttp application with health and RPC routes."""
        app = web.Application(middlewares=self._middlewares)
        app.router.add_get("/live", self._handle_live)
        app.router.add_get("/ready", self._handle_ready)
        if self._register_routes is not None:
            self._register_routes(app)
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()

        # Get actual port (useful when port=0 for dynamic allocation)
        for address in self._runner.addresses:
            if isinstance(address, tuple) and len(address) >= 2:
                self._actual_port = address[1]
                break

        self._running = True
        logger.info("RPC server started on %s:%d", self._host, self.port)

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            self._site = None

        self._running = False
        logger.info("RPC server stopped")
