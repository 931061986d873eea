"""
HTTP Ingress

Local REST endpoint for operator commands.

    POST /command?password=<secret>   {"command": "shutdown" | "switch"}
    GET  /health

The password is compared in constant time and never logged. A successful
request only writes the command tag to the rendezvous store; execution is
left to the dispatcher.
"""

import hmac

from aiohttp import web

from janus.common.commands import Command
from janus.common.config import HTTPConfig
from janus.common.exceptions import RendezvousError, ServiceError, UnknownCommandError
from janus.common.host import HostFacts
from janus.common.logging_setup import get_service_logger, log_command

from ..rendezvous.store import RendezvousStore

logger = get_service_logger("api")


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"status": "error", "message": message}, status=status)


class HTTPIngress:
    """aiohttp server exposing /command and /health"""

    def __init__(
        self,
        config: HTTPConfig,
        store: RendezvousStore,
        command_key: str,
        host_facts: HostFacts,
    ):
        self.config = config
        self.store = store
        self.command_key = command_key
        self.host_facts = host_facts

        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/command", self._command_handler)
        app.router.add_get("/health", self._health_handler)
        return app

    async def start(self) -> None:
        """Start listening on http.host:http.port"""
        self._app = self.build_app()
        self._runner = web.AppRunner(self._app, access_log=None)
        await self._runner.setup()

        site = web.TCPSite(self._runner, self.config.host, self.config.port)
        try:
            await site.start()
        except OSError as e:
            await self._runner.cleanup()
            self._runner = None
            raise ServiceError(
                f"cannot listen on {self.config.host}:{self.config.port}: {e}", "http",
            ) from e

        logger.info(f"HTTP ingress listening on {self.config.host}:{self.config.port}")

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            logger.info("HTTP ingress stopped")

    def _check_password(self, supplied: str | None) -> bool:
        expected = self.config.password
        if not expected or supplied is None:
            return False
        return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))

    async def _command_handler(self, request: web.Request) -> web.Response:
        if request.method != "POST":
            return _error(405, "Method not allowed")

        if not self._check_password(request.query.get("password")):
            logger.warning(
                "Rejected /command with bad password",
                extra={"remote": request.remote},
            )
            return _error(401, "Unauthorized")

        try:
            body = await request.json()
        except ValueError:
            return _error(400, "Invalid request body")

        tag = body.get("command") if isinstance(body, dict) else None
        if not isinstance(tag, str):
            return _error(400, "Invalid request body")

        try:
            command = Command.parse(tag)
        except UnknownCommandError:
            log_command(logger, "http", tag, accepted=False)
            return _error(400, "Invalid command")

        try:
            await self.store.put(self.command_key, command.value)
        except RendezvousError as e:
            logger.error(f"Failed to enqueue '{command.value}': {e.message}")
            return _error(500, f"Failed to send command: {e.message}")

        log_command(logger, "http", command.value)
        return web.json_response({
            "status": "success",
            "message": f"Command '{command.value}' sent successfully",
            "os": self.host_facts.os.value,
        })

    async def _health_handler(self, request: web.Request) -> web.Response:
        return web.json_response({
            "status": "ok",
            "os": self.host_facts.os.value,
        })
