"""
Async GraphQL client for the upstream account directory (Sonar).
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import httpx

from shared.errors import ConfigurationError, ExternalServiceError
from shared.logging import get_logger

from ..domain.mapping import map_account_entities, map_equipment_summary
from ..domain.models import AccountRecord, AccountStatus, EquipmentSummary
from .queries import (
    ACCOUNT_BY_ID_QUERY,
    DOWN_ACCOUNTS_QUERY,
    EQUIPMENT_SUMMARY_QUERY,
    WARNING_ACCOUNTS_QUERY,
)

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


SERVICE_NAME = "sonar"


class UpstreamError(ExternalServiceError):
    """Transport or protocol failure talking to the directory."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(SERVICE_NAME, message, details)


class UpstreamQueryError(UpstreamError):
    """The directory answered but reported GraphQL errors."""

    def __init__(self, errors: List[Any], details: Optional[Dict[str, Any]] = None):
        self.errors = errors
        super().__init__(f"GraphQL errors: {errors}", {**(details or {}), "errors": errors})


class SonarClient:
    """Issues the directory's four query shapes over HTTP POST.

    Credentials are checked on every call so a missing endpoint or token
    fails the operation before anything goes over the wire. There is no
    retry and no timeout beyond the httpx client's own.
    """

    def __init__(
        self,
        endpoint: Optional[str],
        token: Optional[str],
        *,
        company_id: Optional[int] = None,
        account_status_id: Optional[int] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.endpoint = endpoint
        self.token = token
        self.company_id = company_id
        self.account_status_id = account_status_id
        self.metrics = metrics
        self.logger = get_logger("status.sonar_client")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.token)

    def require_config(self) -> None:
        """Raise ConfigurationError unless endpoint and token are set."""
        missing = [name for name, value in (("SONAR_ENDPOINT", self.endpoint), ("SONAR_TOKEN", self.token)) if not value]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                details={"missing": missing},
            )

    @property
    def filter_variables(self) -> Dict[str, Optional[int]]:
        return {"companyId": self.company_id, "accountStatusID": self.account_status_id}

    async def execute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        *,
        operation: str = "query",
    ) -> Dict[str, Any]:
        """POST a GraphQL document and return its ``data`` object."""
        self.require_config()

        start = time.perf_counter()
        outcome = "error"
        try:
            data = await self._post(query, variables or {}, operation)
            outcome = "ok"
            return data
        finally:
            self._record_call(operation, outcome, time.perf_counter() - start)

    async def _post(self, query: str, variables: Dict[str, Any], operation: str) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token}",
        }
        try:
            response = await self._client.post(
                self.endpoint,
                json={"query": query, "variables": variables},
                headers=headers,
            )
        except httpx.HTTPError as exc:
            self.logger.error("Directory request failed", operation=operation, error=str(exc))
            raise UpstreamError(str(exc), details={"operation": operation}) from exc

        if response.status_code < 200 or response.status_code >= 300:
            self.logger.error(
                "Directory request returned error status",
                operation=operation,
                status_code=response.status_code,
                response=response.text,
            )
            raise UpstreamError(
                f"HTTP {response.status_code}",
                details={"operation": operation, "status_code": response.status_code, "body": response.text},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(
                "Malformed JSON response",
                details={"operation": operation, "body": response.text},
            ) from exc

        if not isinstance(payload, dict):
            raise UpstreamError("Unexpected response shape", details={"operation": operation})

        errors = payload.get("errors")
        if errors:
            self.logger.error("Directory reported query errors", operation=operation, errors=errors)
            raise UpstreamQueryError(errors if isinstance(errors, list) else [errors], details={"operation": operation})

        data = payload.get("data")
        if not isinstance(data, dict):
            raise UpstreamError("Response is missing data", details={"operation": operation})

        self.logger.debug("Directory query succeeded", operation=operation)
        return data

    def _record_call(self, operation: str, outcome: str, duration: float) -> None:
        if not self.metrics:
            return
        self.metrics.increment_counter("upstream_requests_total", operation=operation, outcome=outcome)
        self.metrics.observe_histogram("upstream_request_duration_seconds", duration, operation=operation)

    async def fetch_equipment_summary(self) -> EquipmentSummary:
        data = await self.execute(EQUIPMENT_SUMMARY_QUERY, self.filter_variables, operation="equipment_summary")
        return map_equipment_summary(data)

    async def fetch_down_accounts(self) -> List[AccountRecord]:
        data = await self.execute(DOWN_ACCOUNTS_QUERY, self.filter_variables, operation="down_accounts")
        return map_account_entities(data, AccountStatus.DOWN)

    async def fetch_warning_accounts(self) -> List[AccountRecord]:
        data = await self.execute(WARNING_ACCOUNTS_QUERY, self.filter_variables, operation="warning_accounts")
        return map_account_entities(data, AccountStatus.WARNING)

    async def fetch_account(self, account_id: str, status: AccountStatus = AccountStatus.SUPPRESSED) -> List[AccountRecord]:
        """Look up one account by id; usually zero or one record."""
        try:
            numeric_id = int(account_id)
        except (TypeError, ValueError):
            raise ValueError(f"Account id {account_id!r} is not numeric") from None
        data = await self.execute(ACCOUNT_BY_ID_QUERY, {"id": numeric_id}, operation="account_by_id")
        return map_account_entities(data, status)

