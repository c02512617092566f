"""HTTP client implementation of RemoteStore (talks to the portfolio-sync API)."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx

from portfolio_sync.config.settings import get_settings
from portfolio_sync.core.exceptions import (
    IdentityMismatchError,
    NotFoundError,
    RemoteStoreError,
    ValidationError,
)
from portfolio_sync.core.timezone import parse_datetime_utc, to_utc
from portfolio_sync.domain.models import PortfolioEntry, PortfolioState, Scenario

USER_HEADER = "X-User-Id"


class HttpRemoteStore:
    """
    Remote store client over the REST API.

    A shared AsyncClient may be injected (tests, connection reuse); otherwise
    a short-lived client is opened per request.

    Raises:
        RemoteStoreError: On timeout, transport failure, 5xx or bad payload
        IdentityMismatchError: When the server reports a foreign row (403)
        NotFoundError: When the row does not exist (404)
        ValidationError: When the server rejects the payload (400/422)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.remote_base_url or "").rstrip("/")
        self.timeout = timeout or settings.remote_timeout_seconds
        self._client = client

    # Preferences

    async def get_preferences(self, user_id: str) -> Optional[dict[str, Any]]:
        try:
            data = await self._request("GET", "/preferences", user_id)
        except NotFoundError:
            return None
        try:
            return PortfolioState.from_dict(data["inputs"]).input_dict()
        except (KeyError, TypeError, ValidationError) as e:
            raise RemoteStoreError(f"Invalid preferences from remote store: {e}") from e

    async def upsert_preferences(self, user_id: str, inputs: dict[str, Any]) -> None:
        await self._request("PUT", "/preferences", user_id, json={"inputs": inputs})

    # Portfolio entries

    async def list_entries(self, user_id: str) -> list[PortfolioEntry]:
        data = await self._request("GET", "/entries", user_id)
        return [self._entry_from_json(item, user_id) for item in data["entries"]]

    async def insert_entry(self, user_id: str, entry: PortfolioEntry) -> PortfolioEntry:
        data = await self._request("POST", "/entries", user_id, json=self._entry_payload(entry, with_id=True))
        return self._entry_from_json(data, user_id)

    async def update_entry(self, user_id: str, entry: PortfolioEntry) -> PortfolioEntry:
        data = await self._request(
            "PUT",
            f"/entries/{entry.entry_id}",
            user_id,
            json=self._entry_payload(entry, with_id=False),
        )
        return self._entry_from_json(data, user_id)

    async def delete_entry(self, user_id: str, entry_id: str) -> None:
        await self._request("DELETE", f"/entries/{entry_id}", user_id)

    # Saved scenarios

    async def list_scenarios(self, user_id: str) -> list[Scenario]:
        data = await self._request("GET", "/scenarios", user_id)
        return [self._scenario_from_json(item, user_id) for item in data["scenarios"]]

    async def insert_scenario(self, user_id: str, scenario: Scenario) -> Scenario:
        data = await self._request(
            "POST",
            "/scenarios",
            user_id,
            json={"id": scenario.scenario_id, "name": scenario.name, "inputs": scenario.inputs},
        )
        return self._scenario_from_json(data, user_id)

    async def update_scenario(self, user_id: str, scenario: Scenario) -> Scenario:
        data = await self._request(
            "PUT",
            f"/scenarios/{scenario.scenario_id}",
            user_id,
            json={"name": scenario.name, "inputs": scenario.inputs},
        )
        return self._scenario_from_json(data, user_id)

    async def delete_scenario(self, user_id: str, scenario_id: str) -> None:
        await self._request("DELETE", f"/scenarios/{scenario_id}", user_id)

    # Transport

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                yield client

    async def _request(
        self,
        method: str,
        path: str,
        user_id: str,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        async with self._session() as client:
            try:
                response = await client.request(
                    method,
                    path,
                    json=json,
                    headers={USER_HEADER: user_id},
                )
            except httpx.TimeoutException as e:
                raise RemoteStoreError(f"Remote store timeout after {self.timeout}s") from e
            except httpx.RequestError as e:
                raise RemoteStoreError(f"Remote store unreachable: {e}") from e

        if response.status_code == 204:
            return None
        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                raise RemoteStoreError("Invalid response from remote store") from e

        message = self._error_message(response)
        if response.status_code == 403:
            raise IdentityMismatchError("Resource", path.rsplit("/", 1)[-1])
        if response.status_code == 404:
            raise NotFoundError("Resource", path)
        if response.status_code in (400, 422):
            raise ValidationError(message)
        raise RemoteStoreError(f"Remote store error {response.status_code}: {message}")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict):
            return str(body.get("message") or body.get("detail") or body)
        return str(body)

    @staticmethod
    def _entry_payload(entry: PortfolioEntry, with_id: bool) -> dict[str, Any]:
        payload: dict[str, Any] = {"amount": entry.amount, "target": entry.target}
        if with_id:
            payload["id"] = entry.entry_id
        if entry.created_at:
            payload["created_at"] = to_utc(entry.created_at).isoformat()
        return payload

    @staticmethod
    def _entry_from_json(data: dict[str, Any], user_id: str) -> PortfolioEntry:
        try:
            entry = PortfolioEntry.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteStoreError(f"Invalid portfolio entry from remote store: {e}") from e
        entry.owner_id = user_id
        return entry

    @staticmethod
    def _scenario_from_json(data: dict[str, Any], user_id: str) -> Scenario:
        try:
            return Scenario(
                scenario_id=data["id"],
                owner_id=user_id,
                name=data["name"],
                inputs=data["inputs"],
                results=data["results"],
                created_at=parse_datetime_utc(data["created_at"]) if data.get("created_at") else None,
                updated_at=parse_datetime_utc(data["updated_at"]) if data.get("updated_at") else None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteStoreError(f"Invalid scenario from remote store: {e}") from e
