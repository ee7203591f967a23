"""Application bootstrap and lifecycle management."""

from typing import Protocol

from .actors import ActorHost
from .agents import EchoAgent, WebhookAgent
from .client import IRetryClient, RetryClient
from .config import Settings
from .logging_config import get_logger
from .queue import IMessageQueue, MessageQueue
from .rate_limit import IRateLimiter, RateLimiter
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(self, settings: Settings | None = None, db_path: str | None = None):
        self._settings = settings or Settings.from_env(db_path)

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._tracker: ITracker | None = None
        self._queue: IMessageQueue | None = None
        self._rate_limiter: IRateLimiter | None = None
        self._retry_client: IRetryClient | None = None
        self._host: ActorHost | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._settings.db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Tracker (depends on Storage)
        self._tracker = Tracker(self._storage)

        # 3. MessageQueue (depends on Storage + Tracker)
        self._queue = MessageQueue(self._storage, self._tracker)

        # 4. RateLimiter (depends on Storage)
        self._rate_limiter = RateLimiter(
            self._storage,
            limit=self._settings.rate_limit_per_minute,
            window=self._settings.rate_limit_window_seconds,
            ttl=self._settings.rate_limit_ttl_seconds,
        )

        # 5. RetryClient (no internal dependencies)
        self._retry_client = RetryClient(
            timeout=self._settings.http_timeout_seconds,
            max_retries=self._settings.max_retries,
        )

        # 6. ActorHost (depends on Storage, Queue, Tracker)
        self._host = ActorHost(self._storage, self._queue, self._tracker)
        self._host.register("echo", EchoAgent())
        if self._settings.webhook_url:
            self._host.register(
                "webhook", WebhookAgent(self._retry_client, self._settings.webhook_url)
            )
        await self._host.start()
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._host:
            await self._host.stop()
        if self._retry_client:
            await self._retry_client.aclose()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Clear stored data and drop live actors."""
        if self._host:
            self._host.evict()
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")
        logger.info("Reset complete")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def tracker(self) -> ITracker:
        """Get tracker instance."""
        if not self._tracker:
            raise RuntimeError("Application not started")
        return self._tracker

    @property
    def queue(self) -> IMessageQueue:
        """Get message queue instance."""
        if not self._queue:
            raise RuntimeError("Application not started")
        return self._queue

    @property
    def rate_limiter(self) -> IRateLimiter:
        """Get rate limiter instance."""
        if not self._rate_limiter:
            raise RuntimeError("Application not started")
        return self._rate_limiter

    @property
    def host(self) -> ActorHost:
        """Get actor host instance."""
        if not self._host:
            raise RuntimeError("Application not started")
        return self._host
