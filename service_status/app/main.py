"""
Equipment status gateway service.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config

from service_status.app.adapters.sonar_client import SonarClient
from service_status.app.domain.models import AccountList, ServiceResult, StatusSummary
from service_status.app.domain.status_service import StatusService
from service_status.app.domain.suppression import SuppressionStore


SERVICE_NAME = "status"


def _result_body(result: ServiceResult, field: str, payload: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"ok": result.ok, "source": result.source.value, field: payload}
    if result.meta:
        body["meta"] = result.meta
    if not result.ok:
        body["error"] = result.error
        body["code"] = result.error_code
    return body


def _records_body(result: ServiceResult) -> Dict[str, Any]:
    data = result.data
    if isinstance(data, AccountList):
        data = data.records
    return _result_body(result, "customers", [record.to_dict() for record in data or ()])


class StatusGatewayService(BaseService):
    """Status gateway service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        client: Optional[SonarClient] = None,
        suppressions: Optional[SuppressionStore] = None,
    ):
        super().__init__(SERVICE_NAME, config=config or get_config(SERVICE_NAME))

        self.sonar_client = client if client is not None else SonarClient(
            self.config.sonar_endpoint,
            self.config.sonar_token,
            company_id=self.config.sonar_company_id,
            account_status_id=self.config.sonar_account_status_id,
            timeout=self.config.upstream_timeout_seconds,
            metrics=self.metrics,
        )
        self.suppressions = (
            suppressions if suppressions is not None else SuppressionStore(self.config.suppressions_file)
        )
        self.status_service = StatusService(
            self.sonar_client,
            self.suppressions,
            cache_ttl_ms=self.config.cache_ttl_ms,
            concurrency=self.config.fetch_concurrency,
            single_flight=self.config.single_flight,
            metrics=self.metrics,
        )

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.sonar_client.close()

        self._setup_status_routes()
        self._setup_suppression_routes()
        self._setup_cache_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.status_gateway = self

        self.logger.info(
            "Status gateway configured",
            upstream_configured=self.sonar_client.is_configured,
            cache_ttl_ms=self.config.cache_ttl_ms,
            fetch_concurrency=self.config.fetch_concurrency,
            single_flight=self.config.single_flight,
            suppressed_accounts=len(self.suppressions),
        )

    def _setup_status_routes(self):
        """Set up summary and account list routes."""

        @self.app.get("/healthz")
        async def healthz():
            """Lightweight liveness endpoint with dependency status."""
            dependencies = await self._check_dependencies()
            status = "ok" if all(value == "ok" for value in dependencies.values()) else "degraded"
            return {
                "service": SERVICE_NAME,
                "status": status,
                "dependencies": dependencies,
                "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            }

        @self.app.get("/api/status-summary")
        async def status_summary():
            """Suppression-adjusted equipment summary."""
            result = await self.status_service.get_summary()
            summary: StatusSummary = result.data
            return _result_body(result, "summary", summary.to_dict())

        @self.app.get("/api/down-customers")
        async def down_customers():
            """Visible down accounts."""
            return _records_body(await self.status_service.get_down_list())

        @self.app.get("/api/warning-customers")
        async def warning_customers():
            """Visible warning accounts."""
            return _records_body(await self.status_service.get_warning_list())

        @self.app.get("/api/suppressed-customers")
        async def suppressed_customers():
            """Suppressed accounts resolved against the directory."""
            return _records_body(await self.status_service.get_suppressed_list())

    def _setup_suppression_routes(self):
        """Set up suppression list management routes."""

        @self.app.get("/api/suppressions")
        async def list_suppressions():
            result = self.status_service.list_suppressions()
            return {"ok": True, "accounts": result.data}

        @self.app.post("/api/suppressions/accounts/{account_id}")
        async def suppress_account(account_id: str):
            return self._mutation_response(self.status_service.suppress(account_id))

        @self.app.delete("/api/suppressions/accounts/{account_id}")
        async def unsuppress_account(account_id: str):
            return self._mutation_response(self.status_service.unsuppress(account_id))

    def _setup_cache_routes(self):
        """Set up cache diagnostics routes."""

        @self.app.get("/api/cache/stats")
        async def cache_stats():
            return self.status_service.cache_stats()

        @self.app.post("/api/cache/invalidate")
        async def invalidate_cache():
            self.status_service.invalidate_all()
            return {"ok": True}

    def _mutation_response(self, result: ServiceResult):
        body = {"ok": result.ok, **(result.data or {})}
        if result.ok:
            return body
        body["error"] = result.error
        body["code"] = result.error_code
        return JSONResponse(status_code=400, content=body)

    async def _check_dependencies(self) -> Dict[str, str]:
        """Report configuration of the upstream directory without calling it."""
        return {"sonar": "ok" if self.sonar_client.is_configured else "unconfigured"}


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = StatusGatewayService(config, **kwargs)
    return service.app


if __name__ == "__main__":
    service = StatusGatewayService()
    service.run()
