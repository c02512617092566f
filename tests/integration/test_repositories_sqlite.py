"""
Integration tests for SQLAlchemy repositories with SQLite.

Tests cover:
- Device cache key/value store
- Remote preferences upsert and normalization
- Portfolio entry CRUD, ordering and ownership
- Saved scenario CRUD and ownership
- Async remote store wrapper
"""

import pytest

from portfolio_sync.core.exceptions import (
    IdentityMismatchError,
    NotFoundError,
    ValidationError,
)
from portfolio_sync.domain.models import PortfolioEntry, PortfolioState, Scenario
from portfolio_sync.repositories import SafeLocalStore
from portfolio_sync.repositories.sqlalchemy import (
    SqlAlchemyLocalStore,
    SqlAlchemyRemoteRepository,
    SqlAlchemyRemoteStore,
)

from tests.conftest import utc_datetime


def make_entry(entry_id: str, amount: float, target: float, day: int) -> PortfolioEntry:
    return PortfolioEntry.create(
        entry_id=entry_id,
        amount=amount,
        target=target,
        created_at=utc_datetime(2024, 3, day),
    )


def make_scenario(scenario_id: str, name: str, day: int = 1) -> Scenario:
    return Scenario(
        scenario_id=scenario_id,
        owner_id="",
        name=name,
        inputs=PortfolioState(years=10).input_dict(),
        results={"future_value": 1000},
        created_at=utc_datetime(2024, 4, day),
        updated_at=utc_datetime(2024, 4, day),
    )


# =============================================================================
# LOCAL STORE TESTS
# =============================================================================


class TestSqlAlchemyLocalStore:
    """Tests for the SQLite device cache."""

    def test_set_get_replace_remove(self, sql_local_store: SqlAlchemyLocalStore):
        """
        GIVEN an empty cache
        WHEN I set, replace and remove a key
        THEN reads follow each write
        """
        assert sql_local_store.get_item("k") is None

        sql_local_store.set_item("k", "one")
        assert sql_local_store.get_item("k") == "one"

        sql_local_store.set_item("k", "two")
        assert sql_local_store.get_item("k") == "two"
        assert sql_local_store.keys() == ["k"]

        sql_local_store.remove_item("k")
        assert sql_local_store.get_item("k") is None

    def test_remove_missing_key_is_noop(self, sql_local_store: SqlAlchemyLocalStore):
        sql_local_store.remove_item("missing")

        assert sql_local_store.keys() == []

    def test_safe_wrapper_reports_availability(self, sql_local_store: SqlAlchemyLocalStore):
        safe = SafeLocalStore(sql_local_store)

        assert safe.is_available() is True
        assert safe.set_item("k", "v") is True
        assert safe.get_item("k") == "v"
        assert sql_local_store.keys() == ["k"]

    def test_safe_wrapper_swallows_unavailable_store(self, unavailable_local_store):
        safe = SafeLocalStore(unavailable_local_store)

        assert safe.is_available() is False
        assert safe.set_item("k", "v") is False
        assert safe.get_item("k") is None
        safe.remove_item("k")


# =============================================================================
# PREFERENCES TESTS
# =============================================================================


class TestRemotePreferences:
    """Tests for per-user preferences rows."""

    def test_missing_preferences_return_none(self, remote_repo: SqlAlchemyRemoteRepository):
        assert remote_repo.get_preferences("user-1") is None

    def test_upsert_round_trip(self, remote_repo: SqlAlchemyRemoteRepository):
        """
        GIVEN a state with a boost schedule and an age
        WHEN I upsert its inputs and read them back
        THEN the stored inputs equal the originals
        """
        state = PortfolioState(
            starting_amount=2500.0,
            current_age=35,
            selected_asset="SPX",
            custom_cagr=10.0,
            use_declining_rates=True,
        ).apply_patch({"boost_after_year": 5, "boost_amount": 1500})

        remote_repo.upsert_preferences("user-1", state.input_dict())

        assert remote_repo.get_preferences("user-1") == state.input_dict()

    def test_upsert_replaces_existing_row(self, remote_repo: SqlAlchemyRemoteRepository):
        remote_repo.upsert_preferences("user-1", PortfolioState().apply_patch({"pause_after_year": 4}).input_dict())
        remote_repo.upsert_preferences("user-1", PortfolioState(years=12).input_dict())

        stored = remote_repo.get_preferences("user-1")
        assert stored["years"] == 12
        assert stored["contribution_change"] is None

    def test_derived_fields_are_dropped(self, remote_repo: SqlAlchemyRemoteRepository):
        payload = PortfolioState().to_dict()
        payload["future_value"] = 123

        stored = remote_repo.upsert_preferences("user-1", payload)

        assert "future_value" not in stored
        assert "last_updated" not in stored

    def test_invalid_inputs_rejected(self, remote_repo: SqlAlchemyRemoteRepository):
        with pytest.raises(ValidationError):
            remote_repo.upsert_preferences("user-1", {"years": "many"})

        assert remote_repo.get_preferences("user-1") is None

    def test_rows_are_per_user(self, remote_repo: SqlAlchemyRemoteRepository):
        remote_repo.upsert_preferences("user-a", PortfolioState(years=5).input_dict())
        remote_repo.upsert_preferences("user-b", PortfolioState(years=9).input_dict())

        assert remote_repo.get_preferences("user-a")["years"] == 5
        assert remote_repo.get_preferences("user-b")["years"] == 9


# =============================================================================
# PORTFOLIO ENTRY TESTS
# =============================================================================


class TestRemoteEntries:
    """Tests for portfolio entry rows."""

    def test_insert_and_list_newest_first(self, remote_repo: SqlAlchemyRemoteRepository):
        remote_repo.insert_entry("user-1", make_entry("e-1", 6500, 6000, day=1))
        remote_repo.insert_entry("user-1", make_entry("e-2", 12800, 12000, day=5))
        remote_repo.insert_entry("user-2", make_entry("e-3", 100, 100, day=9))

        entries = remote_repo.list_entries("user-1")

        assert [e.entry_id for e in entries] == ["e-2", "e-1"]
        assert entries[0].variance == 800.0
        assert entries[0].created_at == utc_datetime(2024, 3, 5)
        assert entries[0].owner_id == "user-1"

    def test_duplicate_id_rejected(self, remote_repo: SqlAlchemyRemoteRepository):
        remote_repo.insert_entry("user-1", make_entry("e-1", 6500, 6000, day=1))

        with pytest.raises(ValidationError):
            remote_repo.insert_entry("user-1", make_entry("e-1", 1, 1, day=2))
        with pytest.raises(IdentityMismatchError):
            remote_repo.insert_entry("user-2", make_entry("e-1", 1, 1, day=2))

    def test_update_replaces_snapshot(self, remote_repo: SqlAlchemyRemoteRepository):
        """
        GIVEN a stored entry
        WHEN I update it without a created_at
        THEN values and variance change and the timestamp is kept
        """
        remote_repo.insert_entry("user-1", make_entry("e-1", 6500, 6000, day=1))

        updated = remote_repo.update_entry(
            "user-1", PortfolioEntry.create(entry_id="e-1", amount=5000, target=6000)
        )

        assert updated.variance == -1000.0
        assert updated.created_at == utc_datetime(2024, 3, 1)

    def test_foreign_entry_cannot_be_changed(self, remote_repo: SqlAlchemyRemoteRepository):
        remote_repo.insert_entry("user-1", make_entry("e-1", 6500, 6000, day=1))

        with pytest.raises(IdentityMismatchError):
            remote_repo.update_entry("user-2", make_entry("e-1", 1, 1, day=1))
        with pytest.raises(IdentityMismatchError):
            remote_repo.delete_entry("user-2", "e-1")

        assert len(remote_repo.list_entries("user-1")) == 1

    def test_delete_and_missing(self, remote_repo: SqlAlchemyRemoteRepository):
        remote_repo.insert_entry("user-1", make_entry("e-1", 6500, 6000, day=1))

        remote_repo.delete_entry("user-1", "e-1")

        assert remote_repo.list_entries("user-1") == []
        with pytest.raises(NotFoundError):
            remote_repo.delete_entry("user-1", "e-1")


# =============================================================================
# SCENARIO TESTS
# =============================================================================


class TestRemoteScenarios:
    """Tests for saved scenario rows."""

    def test_insert_get_list(self, remote_repo: SqlAlchemyRemoteRepository):
        remote_repo.insert_scenario("user-1", make_scenario("s-1", "Plan A", day=1))
        remote_repo.insert_scenario("user-1", make_scenario("s-2", "Plan B", day=3))

        scenarios = remote_repo.list_scenarios("user-1")
        fetched = remote_repo.get_scenario("user-1", "s-1")

        assert [s.name for s in scenarios] == ["Plan B", "Plan A"]
        assert fetched.inputs["years"] == 10
        assert fetched.results == {"future_value": 1000}
        assert fetched.owner_id == "user-1"

    def test_update_sets_updated_at(self, remote_repo: SqlAlchemyRemoteRepository):
        remote_repo.insert_scenario("user-1", make_scenario("s-1", "Plan A"))
        scenario = remote_repo.get_scenario("user-1", "s-1")
        scenario.name = "Renamed"

        updated = remote_repo.update_scenario("user-1", scenario)

        assert updated.name == "Renamed"
        assert updated.updated_at > utc_datetime(2024, 4, 1)

    def test_ownership_enforced(self, remote_repo: SqlAlchemyRemoteRepository):
        remote_repo.insert_scenario("user-1", make_scenario("s-1", "Plan A"))

        with pytest.raises(IdentityMismatchError):
            remote_repo.get_scenario("user-2", "s-1")
        with pytest.raises(IdentityMismatchError):
            remote_repo.delete_scenario("user-2", "s-1")
        with pytest.raises(NotFoundError):
            remote_repo.get_scenario("user-1", "missing")


# =============================================================================
# ASYNC REMOTE STORE TESTS
# =============================================================================


class TestSqlAlchemyRemoteStore:
    """Tests for the async wrapper used by coordinators."""

    @pytest.mark.asyncio
    async def test_preferences_round_trip(self, sql_remote_store: SqlAlchemyRemoteStore):
        inputs = PortfolioState(monthly_amount=800.0).input_dict()

        await sql_remote_store.upsert_preferences("user-1", inputs)

        assert await sql_remote_store.get_preferences("user-1") == inputs
        assert await sql_remote_store.get_preferences("user-2") is None

    @pytest.mark.asyncio
    async def test_entries_and_errors_propagate(self, sql_remote_store: SqlAlchemyRemoteStore):
        saved = await sql_remote_store.insert_entry("user-1", make_entry("e-1", 6500, 6000, day=1))

        assert saved.owner_id == "user-1"
        assert [e.entry_id for e in await sql_remote_store.list_entries("user-1")] == ["e-1"]
        with pytest.raises(IdentityMismatchError):
            await sql_remote_store.delete_entry("user-2", "e-1")

    @pytest.mark.asyncio
    async def test_coordinator_syncs_through_sql_store(
        self, coordinator_factory, sql_remote_store: SqlAlchemyRemoteStore
    ):
        """
        GIVEN a coordinator backed by the SQL remote store
        WHEN the user edits and the debounce fires
        THEN the row holds the new inputs
        """
        coordinator = coordinator_factory(user_id="user-1", remote=sql_remote_store)
        await coordinator.load()

        coordinator.update_state({"monthly_amount": 725, "pause_after_year": 8})
        await coordinator.flush()

        stored = await sql_remote_store.get_preferences("user-1")
        assert stored["monthly_amount"] == 725.0
        assert stored["contribution_change"] == {"kind": "pause", "year": 8}
