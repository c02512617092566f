"""Application context for in-process service management.

Wires settings, the on-device cache, the remote store, the broadcast
channel and the services around one StateSyncCoordinator. Each context
(tab, window, process) owns one AppContext; contexts on the same device
share the cache database and, in-process, a broadcast channel.
"""

from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from portfolio_sync.config.settings import Settings, get_settings, set_settings
from portfolio_sync.repositories.http import HttpRemoteStore
from portfolio_sync.repositories.protocols import RemoteStore
from portfolio_sync.repositories.sqlalchemy.database import (
    create_session_factory,
    get_session_factory,
    init_db,
    init_db_with_path,
    reset_database,
)
from portfolio_sync.repositories.sqlalchemy import SqlAlchemyLocalStore, SqlAlchemyRemoteStore
from portfolio_sync.providers.stub_provider import StubGrowthRateProvider
from portfolio_sync.services import (
    BroadcastChannel,
    InProcessBroadcastChannel,
    MarketDataService,
    ScenarioService,
    StateSyncCoordinator,
)


class AppContext:
    """
    Application context providing in-process access to all services.

    Call initialize() once, then `await start()` to load the canonical
    state; `await aclose()` on teardown.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        user_id: Optional[str] = None,
        channel: Optional[BroadcastChannel] = None,
        remote_store: Optional[RemoteStore] = None,
    ):
        """
        Initialize application context.

        Args:
            data_dir: Optional data directory. If not provided, uses default.
            user_id: Identity to start with; None for an anonymous session.
            channel: Broadcast channel shared with sibling contexts.
            remote_store: Remote tier override (defaults from settings).
        """
        self._data_dir = data_dir
        self._initial_user_id = user_id
        self._channel = channel
        self._remote_store = remote_store
        self._local_factory: Optional[sessionmaker] = None
        self._local_session: Optional[Session] = None
        self._initialized = False

        # Service instances (lazy initialized)
        self._coordinator: Optional[StateSyncCoordinator] = None
        self._scenario_service: Optional[ScenarioService] = None
        self._market_data_service: Optional[MarketDataService] = None

    def initialize(self, data_dir: Optional[Path] = None) -> None:
        """
        Initialize or reinitialize the application with a data directory.

        Args:
            data_dir: Data directory path. Uses default if not provided.
        """
        if data_dir:
            self._data_dir = data_dir

        if self._data_dir is not None:
            set_settings(Settings(data_dir=self._data_dir))
        settings = get_settings()

        # The in-process remote store keeps its own database file
        if self._remote_store is None and not settings.remote_base_url:
            reset_database()
            if settings.database_url:
                init_db()
            else:
                init_db_with_path(settings.get_data_dir() / "remote.db")

        self._local_factory = create_session_factory(settings.get_local_database_url())
        self._local_session = None
        self._coordinator = None
        self._scenario_service = None
        self._market_data_service = None

        self._initialized = True

    @property
    def is_initialized(self) -> bool:
        """Check if context is initialized."""
        return self._initialized

    @property
    def data_dir(self) -> Path:
        """Get the current data directory."""
        return get_settings().get_data_dir()

    def _get_local_session(self) -> Session:
        if self._local_factory is None:
            self.initialize()
        if self._local_session is None:
            self._local_session = self._local_factory()
        return self._local_session

    # Tier accessors
    @property
    def remote_store(self) -> RemoteStore:
        """HTTP client when remote_base_url is set, else the SQL store."""
        if self._remote_store is None:
            settings = get_settings()
            if settings.remote_base_url:
                self._remote_store = HttpRemoteStore(
                    base_url=settings.remote_base_url,
                    timeout=settings.remote_timeout_seconds,
                )
            else:
                self._remote_store = SqlAlchemyRemoteStore(get_session_factory())
        return self._remote_store

    @property
    def channel(self) -> BroadcastChannel:
        if self._channel is None:
            self._channel = InProcessBroadcastChannel()
        return self._channel

    # Service accessors
    @property
    def coordinator(self) -> StateSyncCoordinator:
        """Get the StateSyncCoordinator instance."""
        if self._coordinator is None:
            settings = get_settings()
            self._coordinator = StateSyncCoordinator(
                local_store=SqlAlchemyLocalStore(self._get_local_session()),
                remote_store=self.remote_store,
                channel=self.channel,
                user_id=self._initial_user_id,
                debounce_seconds=settings.sync_debounce_seconds,
                namespace=settings.local_namespace,
                reconcile_interval_seconds=settings.reconcile_interval_seconds,
                entry_target_baseline=settings.entry_target_baseline,
            )
        return self._coordinator

    @property
    def scenarios(self) -> ScenarioService:
        """Get the ScenarioService instance."""
        if self._scenario_service is None:
            coordinator = self.coordinator
            self._scenario_service = ScenarioService(
                remote_store=self.remote_store,
                identity=lambda: coordinator.user_id,
            )
        return self._scenario_service

    @property
    def market_data(self) -> MarketDataService:
        """Get the MarketDataService instance."""
        if self._market_data_service is None:
            settings = get_settings()
            self._market_data_service = MarketDataService(
                provider=StubGrowthRateProvider(),
                cache_ttl_seconds=settings.market_data_cache_ttl_seconds,
            )
        return self._market_data_service

    async def start(self):
        """Load the canonical state and start periodic reconciliation if configured."""
        state = await self.coordinator.load()
        self.coordinator.start_reconciliation()
        return state

    async def aclose(self) -> None:
        """Clean up resources."""
        if self._coordinator is not None:
            await self._coordinator.aclose()
            self._coordinator = None
        if self._local_session:
            self._local_session.close()
            self._local_session = None


# Global application context (singleton for a single-window process)
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: AppContext) -> None:
    """Set the global application context."""
    global _app_context
    _app_context = context
