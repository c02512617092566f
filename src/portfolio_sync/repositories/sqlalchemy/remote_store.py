"""SQLAlchemy implementation of the remote store."""

import asyncio
import json
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from portfolio_sync.core.exceptions import (
    IdentityMismatchError,
    NotFoundError,
    RemoteStoreError,
    ValidationError,
)
from portfolio_sync.core.timezone import now_utc, to_utc
from portfolio_sync.domain.models import (
    BoostAfter,
    PauseAfter,
    PortfolioEntry,
    PortfolioState,
    Scenario,
)
from portfolio_sync.domain.models.enums import ContributionChangeKind
from portfolio_sync.repositories.sqlalchemy.orm_models import (
    PortfolioEntryORM,
    ScenarioORM,
    UserPreferencesORM,
)

T = TypeVar("T")


def _naive_utc(dt):
    """SQLite DateTime columns hold naive UTC."""
    return to_utc(dt).replace(tzinfo=None) if dt else None


class SqlAlchemyRemoteRepository:
    """
    Synchronous, session-bound access to per-user remote data.

    Used directly by the API routers and, through SqlAlchemyRemoteStore,
    by in-process coordinators.
    """

    def __init__(self, db: Session):
        self._db = db

    # Preferences

    def get_preferences(self, user_id: str) -> Optional[dict[str, Any]]:
        """Return the stored input fields for user_id, or None."""
        orm = self._db.get(UserPreferencesORM, user_id)
        return self._preferences_to_inputs(orm) if orm else None

    def upsert_preferences(self, user_id: str, inputs: dict[str, Any]) -> dict[str, Any]:
        """
        Insert or replace the input fields for user_id.

        Inputs are normalized through PortfolioState, so derived fields in
        the payload are dropped and invalid values raise ValidationError.
        """
        state = PortfolioState.from_dict(inputs)
        orm = self._db.get(UserPreferencesORM, user_id)
        if orm is None:
            orm = UserPreferencesORM(user_id=user_id)
            self._db.add(orm)

        for name in (
            "starting_amount",
            "monthly_amount",
            "years",
            "current_age",
            "hurdle_rate",
            "selected_asset",
            "custom_cagr",
            "use_conservative_rate",
            "use_declining_rates",
            "phase1_rate",
            "phase2_rate",
            "phase3_rate",
            "use_inflation_adjustment",
            "inflation_rate",
        ):
            setattr(orm, name, getattr(state, name))

        change = state.contribution_change
        orm.contribution_change_kind = change.kind if change else None
        orm.contribution_change_year = change.year if change else None
        orm.boost_amount = change.monthly_amount if isinstance(change, BoostAfter) else None
        orm.updated_at = _naive_utc(now_utc())

        self._db.commit()
        self._db.refresh(orm)
        return self._preferences_to_inputs(orm)

    # Portfolio entries

    def list_entries(self, user_id: str) -> list[PortfolioEntry]:
        """List entries owned by user_id, newest first."""
        rows = (
            self._db.query(PortfolioEntryORM)
            .filter(PortfolioEntryORM.owner_id == user_id)
            .order_by(PortfolioEntryORM.created_at.desc())
            .all()
        )
        return [self._entry_to_domain(r) for r in rows]

    def insert_entry(self, user_id: str, entry: PortfolioEntry) -> PortfolioEntry:
        """Persist a new entry owned by user_id."""
        existing = self._db.get(PortfolioEntryORM, entry.entry_id)
        if existing:
            if existing.owner_id != user_id:
                raise IdentityMismatchError("Portfolio entry", entry.entry_id)
            raise ValidationError(f"Portfolio entry already exists: {entry.entry_id}")

        orm = PortfolioEntryORM(
            entry_id=entry.entry_id,
            owner_id=user_id,
            amount=entry.amount,
            target=entry.target,
            variance=entry.variance,
            variance_percentage=entry.variance_percentage,
            created_at=_naive_utc(entry.created_at or now_utc()),
        )
        self._db.add(orm)
        self._db.commit()
        self._db.refresh(orm)
        return self._entry_to_domain(orm)

    def update_entry(self, user_id: str, entry: PortfolioEntry) -> PortfolioEntry:
        """Replace amount, target and variance of an entry owned by user_id."""
        orm = self._owned_entry(user_id, entry.entry_id)
        orm.amount = entry.amount
        orm.target = entry.target
        orm.variance = entry.variance
        orm.variance_percentage = entry.variance_percentage
        if entry.created_at:
            orm.created_at = _naive_utc(entry.created_at)
        self._db.commit()
        self._db.refresh(orm)
        return self._entry_to_domain(orm)

    def delete_entry(self, user_id: str, entry_id: str) -> None:
        """Delete an entry owned by user_id."""
        orm = self._owned_entry(user_id, entry_id)
        self._db.delete(orm)
        self._db.commit()

    # Saved scenarios

    def list_scenarios(self, user_id: str) -> list[Scenario]:
        """List scenarios owned by user_id, newest first."""
        rows = (
            self._db.query(ScenarioORM)
            .filter(ScenarioORM.owner_id == user_id)
            .order_by(ScenarioORM.created_at.desc())
            .all()
        )
        return [self._scenario_to_domain(r) for r in rows]

    def get_scenario(self, user_id: str, scenario_id: str) -> Scenario:
        """Return a scenario owned by user_id."""
        return self._scenario_to_domain(self._owned_scenario(user_id, scenario_id))

    def insert_scenario(self, user_id: str, scenario: Scenario) -> Scenario:
        """Persist a new scenario owned by user_id."""
        if self._db.get(ScenarioORM, scenario.scenario_id):
            raise ValidationError(f"Scenario already exists: {scenario.scenario_id}")

        orm = ScenarioORM(
            scenario_id=scenario.scenario_id,
            owner_id=user_id,
            name=scenario.name,
            inputs_json=json.dumps(scenario.inputs, sort_keys=True),
            results_json=json.dumps(scenario.results, sort_keys=True),
            created_at=_naive_utc(scenario.created_at or now_utc()),
            updated_at=_naive_utc(scenario.updated_at),
        )
        self._db.add(orm)
        self._db.commit()
        self._db.refresh(orm)
        return self._scenario_to_domain(orm)

    def update_scenario(self, user_id: str, scenario: Scenario) -> Scenario:
        """Replace name, inputs and results of a scenario owned by user_id."""
        orm = self._owned_scenario(user_id, scenario.scenario_id)
        orm.name = scenario.name
        orm.inputs_json = json.dumps(scenario.inputs, sort_keys=True)
        orm.results_json = json.dumps(scenario.results, sort_keys=True)
        orm.updated_at = _naive_utc(now_utc())
        self._db.commit()
        self._db.refresh(orm)
        return self._scenario_to_domain(orm)

    def delete_scenario(self, user_id: str, scenario_id: str) -> None:
        """Delete a scenario owned by user_id."""
        orm = self._owned_scenario(user_id, scenario_id)
        self._db.delete(orm)
        self._db.commit()

    # Helpers

    def _owned_entry(self, user_id: str, entry_id: str) -> PortfolioEntryORM:
        orm = self._db.get(PortfolioEntryORM, entry_id)
        if orm is None:
            raise NotFoundError("Portfolio entry", entry_id)
        if orm.owner_id != user_id:
            raise IdentityMismatchError("Portfolio entry", entry_id)
        return orm

    def _owned_scenario(self, user_id: str, scenario_id: str) -> ScenarioORM:
        orm = self._db.get(ScenarioORM, scenario_id)
        if orm is None:
            raise NotFoundError("Scenario", scenario_id)
        if orm.owner_id != user_id:
            raise IdentityMismatchError("Scenario", scenario_id)
        return orm

    @staticmethod
    def _preferences_to_inputs(orm: UserPreferencesORM) -> dict[str, Any]:
        """Convert ORM preferences to PortfolioState input fields."""
        change = None
        if orm.contribution_change_kind == ContributionChangeKind.PAUSE:
            change = PauseAfter(year=orm.contribution_change_year)
        elif orm.contribution_change_kind == ContributionChangeKind.BOOST:
            change = BoostAfter(
                year=orm.contribution_change_year,
                monthly_amount=orm.boost_amount or 0.0,
            )

        state = PortfolioState(
            starting_amount=orm.starting_amount,
            monthly_amount=orm.monthly_amount,
            years=orm.years,
            current_age=orm.current_age,
            hurdle_rate=orm.hurdle_rate,
            selected_asset=orm.selected_asset,
            custom_cagr=orm.custom_cagr,
            contribution_change=change,
            use_conservative_rate=orm.use_conservative_rate,
            use_declining_rates=orm.use_declining_rates,
            phase1_rate=orm.phase1_rate,
            phase2_rate=orm.phase2_rate,
            phase3_rate=orm.phase3_rate,
            use_inflation_adjustment=orm.use_inflation_adjustment,
            inflation_rate=orm.inflation_rate,
        )
        return state.input_dict()

    @staticmethod
    def _entry_to_domain(orm: PortfolioEntryORM) -> PortfolioEntry:
        """Convert ORM entry to domain model."""
        return PortfolioEntry(
            entry_id=orm.entry_id,
            amount=orm.amount,
            target=orm.target,
            variance=orm.variance,
            variance_percentage=orm.variance_percentage,
            created_at=to_utc(orm.created_at) if orm.created_at else None,
            owner_id=orm.owner_id,
        )

    @staticmethod
    def _scenario_to_domain(orm: ScenarioORM) -> Scenario:
        """Convert ORM scenario to domain model."""
        return Scenario(
            scenario_id=orm.scenario_id,
            owner_id=orm.owner_id,
            name=orm.name,
            inputs=json.loads(orm.inputs_json),
            results=json.loads(orm.results_json),
            created_at=to_utc(orm.created_at) if orm.created_at else None,
            updated_at=to_utc(orm.updated_at) if orm.updated_at else None,
        )


class SqlAlchemyRemoteStore:
    """
    Async RemoteStore over SqlAlchemyRemoteRepository.

    Each call opens its own session and runs in a worker thread; database
    errors surface as RemoteStoreError.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    async def get_preferences(self, user_id: str) -> Optional[dict[str, Any]]:
        return await self._run(lambda repo: repo.get_preferences(user_id))

    async def upsert_preferences(self, user_id: str, inputs: dict[str, Any]) -> None:
        await self._run(lambda repo: repo.upsert_preferences(user_id, inputs))

    async def list_entries(self, user_id: str) -> list[PortfolioEntry]:
        return await self._run(lambda repo: repo.list_entries(user_id))

    async def insert_entry(self, user_id: str, entry: PortfolioEntry) -> PortfolioEntry:
        return await self._run(lambda repo: repo.insert_entry(user_id, entry))

    async def update_entry(self, user_id: str, entry: PortfolioEntry) -> PortfolioEntry:
        return await self._run(lambda repo: repo.update_entry(user_id, entry))

    async def delete_entry(self, user_id: str, entry_id: str) -> None:
        await self._run(lambda repo: repo.delete_entry(user_id, entry_id))

    async def list_scenarios(self, user_id: str) -> list[Scenario]:
        return await self._run(lambda repo: repo.list_scenarios(user_id))

    async def insert_scenario(self, user_id: str, scenario: Scenario) -> Scenario:
        return await self._run(lambda repo: repo.insert_scenario(user_id, scenario))

    async def update_scenario(self, user_id: str, scenario: Scenario) -> Scenario:
        return await self._run(lambda repo: repo.update_scenario(user_id, scenario))

    async def delete_scenario(self, user_id: str, scenario_id: str) -> None:
        await self._run(lambda repo: repo.delete_scenario(user_id, scenario_id))

    async def _run(self, operation: Callable[[SqlAlchemyRemoteRepository], T]) -> T:
        return await asyncio.to_thread(self._call, operation)

    def _call(self, operation: Callable[[SqlAlchemyRemoteRepository], T]) -> T:
        db = self._session_factory()
        try:
            return operation(SqlAlchemyRemoteRepository(db))
        except SQLAlchemyError as exc:
            db.rollback()
            raise RemoteStoreError(f"Remote store request failed: {exc}") from exc
        finally:
            db.close()
