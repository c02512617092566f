"""State synchronization across the local cache, other contexts and the remote store."""

import asyncio
import json
import logging
import uuid
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Callable, Mapping, Optional

from portfolio_sync.core.exceptions import (
    NotInitializedError,
    RemoteWriteError,
    SignInRequiredError,
    ValidationError,
)
from portfolio_sync.core.timezone import isoformat_utc, now_utc
from portfolio_sync.domain.models import (
    PortfolioEntry,
    PortfolioState,
    SyncStatus,
    validate_amount,
)
from portfolio_sync.repositories.local_store import SafeLocalStore
from portfolio_sync.repositories.protocols import LocalStore, RemoteStore
from portfolio_sync.services.broadcast import (
    BroadcastChannel,
    InProcessBroadcastChannel,
    StateBroadcast,
)
from portfolio_sync.services.change_detector import fingerprint
from portfolio_sync.services.projection_engine import target_value_at, with_derived

logger = logging.getLogger(__name__)

StateListener = Callable[[PortfolioState], None]

DEFAULT_DEBOUNCE_SECONDS = 2.0


def sample_entries(now: datetime) -> list[PortfolioEntry]:
    """Illustrative entries shown to anonymous users, newest first."""
    return [
        PortfolioEntry(
            entry_id="sample-2",
            amount=12800.0,
            target=12000.0,
            variance=800.0,
            variance_percentage=6.67,
            created_at=now - timedelta(days=2),
        ),
        PortfolioEntry(
            entry_id="sample-1",
            amount=6500.0,
            target=6000.0,
            variance=500.0,
            variance_percentage=8.33,
            created_at=now - timedelta(days=7),
        ),
    ]


class StateSyncCoordinator:
    """
    Owns the canonical PortfolioState for one context (tab, window, process).

    Load order on start is remote (when signed in), then local, then
    defaults. Every update recomputes derived fields, writes the local tier,
    broadcasts to other contexts and, when an input field changed for a
    signed-in user, schedules one debounced remote write. The last-synced
    fingerprint only advances when a remote write succeeds, so failures are
    retried by the next edit.

    All methods must be called from the event loop thread.
    """

    def __init__(
        self,
        local_store: LocalStore,
        remote_store: Optional[RemoteStore] = None,
        channel: Optional[BroadcastChannel] = None,
        user_id: Optional[str] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        namespace: str = "portfolio_sync",
        reconcile_interval_seconds: Optional[float] = None,
        entry_target_baseline: date = date(2024, 1, 1),
        context_id: Optional[str] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._local = SafeLocalStore(local_store)
        self._remote = remote_store
        self._channel = channel or InProcessBroadcastChannel()
        self._user_id = user_id
        self._debounce_seconds = debounce_seconds
        self._state_key = f"{namespace}.calculator_state"
        self._entries_key = f"{namespace}.portfolio_entries"
        self._reconcile_interval = reconcile_interval_seconds
        self._entry_target_baseline = entry_target_baseline
        self._context_id = context_id or uuid.uuid4().hex
        self._clock = clock

        self._state: Optional[PortfolioState] = None
        self._last_synced: Optional[str] = None
        self._listeners: list[StateListener] = []

        self._timer: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()
        self._reconcile_task: Optional[asyncio.Task] = None
        self._write_lock = asyncio.Lock()
        self._write_seq = 0
        self._identity_epoch = 0
        self._last_write_failed = False
        self._closed = False

        self._unsubscribe_channel = self._channel.subscribe(self._on_broadcast)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> PortfolioState:
        """The canonical state; raises NotInitializedError before load()."""
        return self._require_state()

    @property
    def is_loaded(self) -> bool:
        return self._state is not None

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def is_signed_in(self) -> bool:
        return self._user_id is not None

    @property
    def context_id(self) -> str:
        return self._context_id

    @property
    def last_synced_fingerprint(self) -> Optional[str]:
        return self._last_synced

    @property
    def status(self) -> SyncStatus:
        if self._write_lock.locked():
            return SyncStatus.WRITING
        if self._timer is not None:
            return SyncStatus.PENDING
        if self._last_write_failed:
            return SyncStatus.FAILED
        return SyncStatus.IDLE

    @property
    def syncing(self) -> bool:
        """True while a remote write is scheduled or in flight."""
        return self.status in (SyncStatus.PENDING, SyncStatus.WRITING)

    @property
    def local_storage_available(self) -> bool:
        return self._local.is_available()

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    async def load(self) -> PortfolioState:
        """
        Load the canonical state: remote (signed in), then local, then defaults.

        Never raises for tier failures; they are logged and the next tier is
        tried. A remote hit also refreshes the local tier.
        """
        epoch = self._identity_epoch
        user_id = self._user_id
        state: Optional[PortfolioState] = None
        source = "default"

        if user_id and self._remote is not None:
            state = await self._read_remote_state(user_id)
            if epoch != self._identity_epoch:
                # Identity changed while we were waiting; that switch reloads
                logger.debug("Discarding stale load for %s", user_id)
                if self._state is None:
                    return await self.load()
                return self._state
            if state is not None:
                source = "remote"

        if state is None:
            state = self._read_local_state()
            if state is not None:
                source = "local"

        if state is None:
            logger.info("Using default portfolio state (no saved data or storage unavailable)")
            state = PortfolioState()

        state = self._finalize(state)
        if source == "remote":
            self._write_local(state)

        self._state = state
        self._last_synced = fingerprint(state)
        self._last_write_failed = False
        logger.debug("Loaded portfolio state from %s", source)
        self._notify(state)
        return state

    async def _read_remote_state(self, user_id: str) -> Optional[PortfolioState]:
        try:
            inputs = await self._remote.get_preferences(user_id)
        except Exception as exc:
            logger.warning("Error loading portfolio state from remote store: %s", exc)
            return None
        if inputs is None:
            return None
        try:
            return PortfolioState.from_dict(inputs)
        except ValidationError as exc:
            logger.warning("Ignoring invalid remote portfolio state: %s", exc.message)
            return None

    def _read_local_state(self) -> Optional[PortfolioState]:
        raw = self._local.get_item(self._state_key)
        if not raw:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("saved state is not an object")
            return PortfolioState.from_dict(data)
        except (ValueError, ValidationError) as exc:
            logger.warning("Error parsing saved portfolio state: %s", exc)
            return None

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_state(self, patch: Mapping[str, Any]) -> PortfolioState:
        """
        Merge `patch` into the canonical state and propagate it.

        Derived fields in the patch are ignored and recomputed. Raises
        ValidationError (leaving the state untouched) for invalid input.
        Order per call: recompute, local write, broadcast, listeners, then
        remote scheduling.
        """
        current = self._require_state()
        merged = current.apply_patch(patch)
        updated = replace(
            self._finalize(merged),
            last_updated=isoformat_utc(self._clock()),
        )
        new_fingerprint = fingerprint(updated)

        self._state = updated
        self._write_local(updated)
        self._publish(updated)
        self._notify(updated)

        # Any edit supersedes a pending write, even one that turns out a no-op
        self._cancel_timer()
        if new_fingerprint != self._last_synced and self._can_write_remote():
            self._arm_timer(updated, new_fingerprint)

        return updated

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener for full-state changes; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    async def set_identity(self, user_id: Optional[str]) -> PortfolioState:
        """
        Switch the signed-in identity.

        Cancels any pending write and detaches in-flight writes from the
        last-synced fingerprint. Signing in reloads from the tiers; signing
        out keeps the current state and local data.
        """
        if user_id == self._user_id and self._state is not None:
            return self._state

        self._cancel_timer()
        self._identity_epoch += 1
        self._user_id = user_id
        self._last_write_failed = False

        if user_id is None and self._state is not None:
            logger.info("Signed out; remote sync disabled for this session")
            return self._state
        return await self.load()

    async def sign_out(self) -> PortfolioState:
        """Drop the signed-in identity; local data stays for the next session."""
        return await self.set_identity(None)

    # ------------------------------------------------------------------
    # Remote sync
    # ------------------------------------------------------------------

    async def sync_now(self) -> None:
        """
        Write the current inputs to the remote store immediately.

        Raises SignInRequiredError when anonymous and RemoteWriteError when
        the write fails.
        """
        state = self._require_state()
        if not self._user_id:
            raise SignInRequiredError("sync your portfolio")
        if self._remote is None:
            raise RemoteWriteError("No remote store configured")

        self._cancel_timer()
        await self._write_remote(
            state,
            fingerprint(state),
            self._user_id,
            self._identity_epoch,
            raise_errors=True,
        )

    async def flush(self) -> None:
        """Wait until scheduled and in-flight remote writes have finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _can_write_remote(self) -> bool:
        return self._user_id is not None and self._remote is not None and not self._closed

    def _arm_timer(self, state: PortfolioState, state_fingerprint: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; remote sync deferred to the next edit")
            return
        task = loop.create_task(
            self._debounced_write(state, state_fingerprint, self._user_id, self._identity_epoch)
        )
        self._timer = task
        self._track(task)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _debounced_write(
        self,
        state: PortfolioState,
        state_fingerprint: str,
        user_id: str,
        epoch: int,
    ) -> None:
        await asyncio.sleep(self._debounce_seconds)

        # Fired: later edits arm a new timer instead of cancelling this write
        if self._timer is asyncio.current_task():
            self._timer = None
        if epoch != self._identity_epoch or self._closed:
            return
        await self._write_remote(state, state_fingerprint, user_id, epoch)

    async def _write_remote(
        self,
        state: PortfolioState,
        state_fingerprint: str,
        user_id: str,
        epoch: int,
        raise_errors: bool = False,
    ) -> bool:
        self._write_seq += 1
        seq = self._write_seq

        async with self._write_lock:
            if epoch != self._identity_epoch:
                logger.debug("Dropping remote write for previous identity %s", user_id)
                return False
            try:
                await self._remote.upsert_preferences(user_id, state.input_dict())
            except Exception as exc:
                logger.warning("Error saving portfolio state to remote store: %s", exc)
                if seq == self._write_seq:
                    self._last_write_failed = True
                if raise_errors:
                    raise RemoteWriteError(f"Could not save portfolio to the cloud: {exc}") from exc
                return False

            # A newer write (queued behind this one) owns the fingerprint
            if epoch == self._identity_epoch and seq == self._write_seq:
                self._last_synced = state_fingerprint
                self._last_write_failed = False
                logger.debug("Portfolio state synced for %s", user_id)

        if epoch == self._identity_epoch and seq == self._write_seq:
            self._resync_if_stale()
        return True

    def _resync_if_stale(self) -> None:
        """Schedule another write when the state moved on during a write."""
        if self._state is None or self._timer is not None or not self._can_write_remote():
            return
        current = fingerprint(self._state)
        if current != self._last_synced:
            self._arm_timer(self._state, current)

    # ------------------------------------------------------------------
    # Cross-context updates
    # ------------------------------------------------------------------

    def _publish(self, state: PortfolioState) -> None:
        try:
            self._channel.publish(StateBroadcast(origin=self._context_id, state=state.to_dict()))
        except Exception as exc:
            logger.debug("State broadcast failed: %s", exc)

    def _on_broadcast(self, message: StateBroadcast) -> None:
        """Adopt another context's state wholesale; its owner syncs it remotely."""
        if message.origin == self._context_id or self._closed or self._state is None:
            return
        try:
            incoming = PortfolioState.from_dict(message.state)
        except ValidationError as exc:
            logger.warning("Ignoring invalid state broadcast: %s", exc.message)
            return
        self._adopt(incoming)

    def reconcile(self) -> bool:
        """
        Re-read the local tier and adopt it if another context changed it.

        Returns True when the canonical state was replaced.
        """
        if self._state is None or self._closed:
            return False
        stored = self._read_local_state()
        if stored is None or fingerprint(stored) == fingerprint(self._state):
            return False
        self._adopt(self._finalize(stored))
        return True

    def start_reconciliation(self) -> Optional[asyncio.Task]:
        """Run reconcile() every reconcile_interval_seconds; None when disabled."""
        if self._reconcile_interval is None or self._reconcile_task is not None:
            return self._reconcile_task
        self._reconcile_task = asyncio.get_running_loop().create_task(self._reconcile_loop())
        return self._reconcile_task

    async def _reconcile_loop(self) -> None:
        while not self._closed:
            await asyncio.sleep(self._reconcile_interval)
            if self.reconcile():
                logger.debug("Adopted portfolio state changed by another context")

    def _adopt(self, state: PortfolioState) -> None:
        self._cancel_timer()
        self._state = state
        self._last_synced = fingerprint(state)
        self._notify(state)

    # ------------------------------------------------------------------
    # Portfolio entries
    # ------------------------------------------------------------------

    async def list_entries(self) -> list[PortfolioEntry]:
        """Signed-in users get their stored entries; anonymous users get samples."""
        if not self._user_id or self._remote is None:
            return self._load_sample_entries()
        return await self._remote.list_entries(self._user_id)

    async def save_entry(self, amount: Any, target: Any = None) -> PortfolioEntry:
        """
        Record an observed portfolio amount.

        When target is omitted it is the projection for the time elapsed
        since the configured baseline. Variance is fixed at this point.
        """
        user_id = self._require_user("save portfolio entries")
        amount_value = validate_amount(amount)
        now = self._clock()
        if target is None:
            target = target_value_at(self._require_state(), now, self._entry_target_baseline)

        entry = PortfolioEntry.create(
            entry_id=str(uuid.uuid4()),
            amount=amount_value,
            target=target,
            created_at=now,
            owner_id=user_id,
        )
        return await self._remote.insert_entry(user_id, entry)

    async def update_entry(
        self,
        entry_id: str,
        amount: Any,
        target: Any,
        created_at: Optional[datetime] = None,
    ) -> PortfolioEntry:
        """Edit an entry; variance is recomputed from the new amount and target."""
        user_id = self._require_user("update portfolio entries")
        self._reject_sample(entry_id)
        entry = PortfolioEntry.create(
            entry_id=entry_id,
            amount=amount,
            target=target,
            created_at=created_at,
            owner_id=user_id,
        )
        return await self._remote.update_entry(user_id, entry)

    async def delete_entry(self, entry_id: str) -> None:
        user_id = self._require_user("delete portfolio entries")
        self._reject_sample(entry_id)
        await self._remote.delete_entry(user_id, entry_id)

    def _load_sample_entries(self) -> list[PortfolioEntry]:
        raw = self._local.get_item(self._entries_key)
        if raw:
            try:
                return [PortfolioEntry.from_dict(item) for item in json.loads(raw)]
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Error parsing saved sample entries: %s", exc)

        entries = sample_entries(self._clock())
        self._local.set_item(self._entries_key, json.dumps([e.to_dict() for e in entries]))
        return entries

    def _require_user(self, action: str) -> str:
        if not self._user_id or self._remote is None:
            raise SignInRequiredError(action)
        return self._user_id

    @staticmethod
    def _reject_sample(entry_id: str) -> None:
        if entry_id.startswith("sample-"):
            raise ValidationError("Sample entries cannot be changed")

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """
        Stop the coordinator: cancel the pending write and reconciliation,
        detach from the channel, and wait for writes already in flight.
        """
        if self._closed:
            return
        self._closed = True
        self._cancel_timer()
        if self._reconcile_task is not None:
            self._reconcile_task.cancel()
            self._reconcile_task = None
        self._unsubscribe_channel()
        await self.flush()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_state(self) -> PortfolioState:
        if self._state is None:
            raise NotInitializedError()
        return self._state

    def _finalize(self, state: PortfolioState) -> PortfolioState:
        state = with_derived(state, self._clock().year)
        if state.last_updated is None:
            state = replace(state, last_updated=isoformat_utc(self._clock()))
        return state

    def _write_local(self, state: PortfolioState) -> None:
        if not self._local.set_item(self._state_key, json.dumps(state.to_dict())):
            logger.debug("Local storage unavailable; state kept in memory for this context only")

    def _notify(self, state: PortfolioState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Portfolio state listener failed")
