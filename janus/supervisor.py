"""
Janus Agent Supervisor

Process-level orchestrator. Starts components in dependency order and
keeps them alive until SIGINT/SIGTERM:

1. Config (loaded by the caller, or here when only a path is given)
2. Host facts
3. Rendezvous store, pinged - fatal on failure
4. Chat client + notifier - non-fatal, chat is disabled on failure
5. Chat ingress (if chat.enabled)
6. HTTP ingress (if http.enabled)
7. "Online" notification
8. Dispatcher, ticking every system.check_interval

Every component receives its dependencies explicitly; nothing is global.
"""

import asyncio
import signal

from janus.common.config import AgentConfig, load_config, validate_config
from janus.common.exceptions import ChatError, ServiceError
from janus.common.host import HostFacts, capture_host_facts
from janus.common.logging_setup import get_service_logger

from janus.services.api.server import HTTPIngress
from janus.services.chat.client import ChatClient
from janus.services.chat.ingress import ChatIngress
from janus.services.chat.notifier import Notifier
from janus.services.control.dispatcher import Dispatcher
from janus.services.control.executor import Executor
from janus.services.control.recipes import RecipeTable
from janus.services.rendezvous.store import RendezvousStore

logger = get_service_logger("supervisor")


class Supervisor:
    """
    Owns the lifetime of every agent component.

    Components are created in start() and released in stop(); stop() is
    safe to call after a partial start.
    """

    def __init__(
        self,
        config: AgentConfig | None = None,
        config_path: str | None = None,
        host_facts: HostFacts | None = None,
    ):
        self.config = config
        self.config_path = config_path
        self.host_facts = host_facts

        self.store: RendezvousStore | None = None
        self.chat_client: ChatClient | None = None
        self.notifier = Notifier()
        self.chat_ingress: ChatIngress | None = None
        self.http_ingress: HTTPIngress | None = None
        self.dispatcher: Dispatcher | None = None

        self._shutdown_event = asyncio.Event()

    # Factories, replaced in tests

    def _create_store(self) -> RendezvousStore:
        return RendezvousStore(self.config.rendezvous)

    def _create_chat_client(self) -> ChatClient:
        return ChatClient(self.config.chat.token)

    async def start(self) -> None:
        """Start every component and block until a shutdown signal"""
        await self.setup()

        self._setup_signal_handlers()

        dispatcher_task = asyncio.create_task(self.dispatcher.run())
        shutdown_task = asyncio.create_task(self._shutdown_event.wait())
        try:
            done, _ = await asyncio.wait(
                {dispatcher_task, shutdown_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (dispatcher_task, shutdown_task):
                task.cancel()
            await asyncio.gather(dispatcher_task, shutdown_task, return_exceptions=True)

        if dispatcher_task in done and not dispatcher_task.cancelled():
            exc = dispatcher_task.exception()
            if exc is not None:
                raise exc

    async def setup(self) -> None:
        """Steps 1-7 of the startup sequence"""
        logger.info("Starting Janus agent")

        # 1-2. Config and host facts; failures here are fatal
        if self.config is None:
            self.config = load_config(self.config_path)
        if self.host_facts is None:
            self.host_facts = capture_host_facts()

        for warning in validate_config(self.config):
            logger.warning(warning)

        # 3. Rendezvous store; fail fast if it cannot be reached
        self.store = self._create_store()
        try:
            await self.store.ping()
        except Exception:
            await self.store.close()
            self.store = None
            raise

        # 4. Chat; failures only disable chat
        await self._init_chat()

        system = self.config.system

        # 5. Chat ingress
        if self.chat_client is not None:
            self.chat_ingress = ChatIngress(
                client=self.chat_client,
                store=self.store,
                command_key=system.command_key,
                host_facts=self.host_facts,
                authorized_id=self.config.chat.authorized_id,
            )
            await self.chat_ingress.start()

        # 6. HTTP ingress
        if self.config.http.enabled:
            self.http_ingress = HTTPIngress(
                config=self.config.http,
                store=self.store,
                command_key=system.command_key,
                host_facts=self.host_facts,
            )
            try:
                await self.http_ingress.start()
            except ServiceError as e:
                logger.error(f"HTTP ingress failed to start: {e.message}")
                self.http_ingress = None

        # 7. Announce
        await self.notifier.online(self.host_facts)

        # 8. Dispatcher (run by start())
        self.dispatcher = Dispatcher(
            store=self.store,
            executor=Executor(RecipeTable.from_config(system)),
            notifier=self.notifier,
            command_key=system.command_key,
            host_facts=self.host_facts,
            interval_seconds=system.check_interval,
        )

        logger.info(
            f"Janus agent running on {self.host_facts.os.value}",
            extra={
                "chat": self.notifier.enabled,
                "http": self.http_ingress is not None,
                "check_interval": system.check_interval,
            },
        )

    async def _init_chat(self) -> None:
        chat = self.config.chat
        if not chat.enabled:
            logger.info("Chat notifications disabled")
            return

        if not chat.token or chat.authorized_id is None:
            logger.warning("Chat configuration incomplete, continuing without chat")
            return

        client = None
        try:
            client = self._create_chat_client()
            await client.get_me()
        except ChatError as e:
            logger.warning(f"Chat initialisation failed, continuing without chat: {e.message}")
            if client is not None:
                await client.close()
            return

        self.chat_client = client
        self.notifier = Notifier(client, chat.authorized_id)

    async def stop(self) -> None:
        """Tear everything down in reverse order"""
        logger.info("Stopping Janus agent")

        if self.dispatcher:
            self.dispatcher.stop()

        if self.http_ingress:
            await self.http_ingress.stop()
            self.http_ingress = None

        if self.chat_ingress:
            await self.chat_ingress.stop()
            self.chat_ingress = None

        if self.chat_client:
            await self.chat_client.close()
            self.chat_client = None
            self.notifier = Notifier()

        if self.store:
            await self.store.close()
            self.store = None

        logger.info("Janus agent stopped")

    def request_shutdown(self) -> None:
        """Handle shutdown signal"""
        logger.info("Received shutdown signal")
        self._shutdown_event.set()

    def _setup_signal_handlers(self) -> None:
        """Setup graceful shutdown signal handlers"""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except NotImplementedError:
                # Windows doesn't support add_signal_handler
                signal.signal(sig, lambda s, f: loop.call_soon_threadsafe(self.request_shutdown))


async def run(config: AgentConfig) -> None:
    """Run a supervisor until shutdown, always releasing resources"""
    supervisor = Supervisor(config=config)
    try:
        await supervisor.start()
    finally:
        await supervisor.stop()
