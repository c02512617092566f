"""Remote (authoritative, per-user) store protocol."""

from typing import Any, Protocol, Optional

from portfolio_sync.domain.models import PortfolioEntry, Scenario


class RemoteStore(Protocol):
    """
    Interface for the asynchronous network store.

    Every call is scoped by the caller's user id. Mutating a row owned by
    someone else raises IdentityMismatchError; a missing row raises
    NotFoundError; transport or backend failures raise RemoteStoreError.
    """

    # Preferences (one record per user holding PortfolioState input fields)
    async def get_preferences(self, user_id: str) -> Optional[dict[str, Any]]:
        """Return the stored input fields for user_id, or None."""
        ...

    async def upsert_preferences(self, user_id: str, inputs: dict[str, Any]) -> None:
        """Insert or replace the input fields for user_id."""
        ...

    # Portfolio entries
    async def list_entries(self, user_id: str) -> list[PortfolioEntry]:
        """List entries owned by user_id, newest first."""
        ...

    async def insert_entry(self, user_id: str, entry: PortfolioEntry) -> PortfolioEntry:
        """Persist a new entry owned by user_id."""
        ...

    async def update_entry(self, user_id: str, entry: PortfolioEntry) -> PortfolioEntry:
        """Replace an existing entry owned by user_id."""
        ...

    async def delete_entry(self, user_id: str, entry_id: str) -> None:
        """Delete an entry owned by user_id."""
        ...

    # Saved scenarios
    async def list_scenarios(self, user_id: str) -> list[Scenario]:
        """List scenarios owned by user_id, newest first."""
        ...

    async def insert_scenario(self, user_id: str, scenario: Scenario) -> Scenario:
        """Persist a new scenario owned by user_id."""
        ...

    async def update_scenario(self, user_id: str, scenario: Scenario) -> Scenario:
        """Replace an existing scenario owned by user_id."""
        ...

    async def delete_scenario(self, user_id: str, scenario_id: str) -> None:
        """Delete a scenario owned by user_id."""
        ...
