"""Hosting provider client (Vercel REST API).

Deploys a static site made of ``index.html`` and ``styles.css`` and manages
custom domains for the resulting project.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx

from ..config import Settings, get_settings
from ..exceptions import ConfigurationError, DeploymentError
from ..utils.slug import derive_project_name

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".html", ".css")
WARN_RATIO = 0.9


@dataclass
class DeploymentResult:
    url: str
    deployment_id: Optional[str]
    project_name: str
    inspector_url: Optional[str] = None


@dataclass
class DomainAvailability:
    domain: str
    available: bool
    price: float = 0.0
    renewal_price: float = 0.0


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return response.text or f"HTTP {response.status_code}"


def resolve_deployment_url(payload: Mapping[str, Any]) -> str:
    """Production alias first, then the unique deployment host, then the inspector."""
    aliases = payload.get("alias") or []
    if aliases:
        return f"https://{aliases[0]}"
    if payload.get("url"):
        return f"https://{payload['url']}"
    return payload.get("inspectorUrl") or "Unknown"


class DeploymentClient:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.base_url = self.settings.vercel_api_base.rstrip("/")
        self._transport = transport
        self._timeout = httpx.Timeout(self.settings.deploy_timeout_seconds, connect=30.0)

    @property
    def payload_limit_bytes(self) -> int:
        return int(self.settings.deploy_payload_limit_mb * 1024 * 1024)

    def _headers(self) -> dict[str, str]:
        token = self.settings.vercel_token
        if not token:
            raise ConfigurationError("missing VERCEL_TOKEN")
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

    def _params(self) -> dict[str, str]:
        if self.settings.vercel_team_id:
            return {"teamId": self.settings.vercel_team_id}
        return {}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self._timeout, transport=self._transport)

    def _build_files(self, files: Mapping[str, str]) -> list[dict[str, str]]:
        if not files:
            raise DeploymentError("No files to deploy")
        entries = []
        total = 0
        for name, content in files.items():
            if not name.lower().endswith(ALLOWED_EXTENSIONS):
                raise DeploymentError(f"Unsupported deploy file: {name} (only HTML and CSS are deployed)")
            total += len(content.encode("utf-8"))
            entries.append({"file": name, "data": content, "encoding": "utf-8"})
        if total >= self.payload_limit_bytes * WARN_RATIO:
            logger.warning(
                "Deploy payload is close to the provider limit",
                extra={"data": {"bytes": total, "limit_bytes": self.payload_limit_bytes}},
            )
        return entries

    async def deploy(self, project_name_seed: str, files: Mapping[str, str]) -> DeploymentResult:
        headers = self._headers()
        entries = self._build_files(files)
        project_name = derive_project_name(project_name_seed)
        body = {
            "name": project_name,
            "files": entries,
            "target": "production",
            "projectSettings": {"framework": None},
        }
        logger.info(
            "Deploying project",
            extra={"data": {"project": project_name, "files": [entry["file"] for entry in entries]}},
        )
        try:
            async with self._client() as client:
                response = await client.post("/v13/deployments", json=body, headers=headers, params=self._params())
                if response.status_code >= 400:
                    raise DeploymentError(
                        f"Deployment failed: {_error_message(response)}",
                        status_code=response.status_code,
                    )
                try:
                    payload = response.json()
                except ValueError as exc:
                    raise DeploymentError(
                        f"Deployment failed: {response.text or f'HTTP {response.status_code}'}",
                        status_code=response.status_code,
                    ) from exc
                await self._disable_protection(client, project_name, headers)
        except httpx.HTTPError as exc:
            raise DeploymentError(f"Deployment request failed: {exc}") from exc

        result = DeploymentResult(
            url=resolve_deployment_url(payload),
            deployment_id=payload.get("id"),
            project_name=project_name,
            inspector_url=payload.get("inspectorUrl"),
        )
        logger.info("Deployment succeeded", extra={"data": {"project": project_name, "url": result.url}})
        return result

    async def _disable_protection(self, client: httpx.AsyncClient, project_name: str, headers: dict) -> None:
        try:
            response = await client.patch(
                f"/v9/projects/{project_name}",
                json={"passwordProtection": None, "vercelAuthentication": None},
                headers=headers,
                params=self._params(),
            )
        except httpx.HTTPError as exc:
            logger.warning("Could not disable deployment protection for %s: %s", project_name, exc)
            return
        if response.status_code >= 400:
            logger.warning(
                "Could not disable deployment protection for %s: %s",
                project_name,
                _error_message(response),
            )

    async def check_domain(self, domain: str) -> DomainAvailability:
        headers = self._headers()
        try:
            async with self._client() as client:
                response = await client.get(f"/v5/domains/{domain}/check", headers=headers, params=self._params())
                if response.status_code >= 400:
                    raise DeploymentError(
                        f"Failed to check domain availability: {_error_message(response)}",
                        status_code=response.status_code,
                    )
                if not response.json().get("available"):
                    return DomainAvailability(domain=domain, available=False)
                price_response = await client.get(
                    f"/v1/registrar/domains/{domain}/price", headers=headers, params=self._params()
                )
        except httpx.HTTPError as exc:
            raise DeploymentError(f"Domain check failed: {exc}") from exc

        price = renewal = 0.0
        if price_response.status_code < 400:
            price_data = price_response.json()
            price = float(price_data.get("price") or 0)
            renewal = float(price_data.get("renewalPrice") or price)
        return DomainAvailability(domain=domain, available=True, price=price, renewal_price=renewal)

    async def buy_domain(self, domain: str) -> str:
        headers = self._headers()
        try:
            async with self._client() as client:
                response = await client.post(
                    f"/v1/registrar/domains/{domain}/buy",
                    json={"autoRenew": True, "years": 1},
                    headers=headers,
                    params=self._params(),
                )
        except httpx.HTTPError as exc:
            raise DeploymentError(f"Domain purchase failed: {exc}") from exc
        if response.status_code >= 400:
            raise DeploymentError(
                f"Domain purchase failed: {_error_message(response)}",
                status_code=response.status_code,
            )
        payload = response.json()
        return str(payload.get("orderId") or payload.get("id") or "")

    async def attach_domain(self, project_name: str, domain: str) -> bool:
        """Link ``domain`` to the project. Failure is logged, never raised."""
        try:
            headers = self._headers()
            async with self._client() as client:
                response = await client.post(
                    f"/v10/projects/{project_name}/domains",
                    json={"name": domain},
                    headers=headers,
                    params=self._params(),
                )
        except (httpx.HTTPError, ConfigurationError) as exc:
            logger.warning("Could not attach %s to %s: %s", domain, project_name, exc)
            return False
        if response.status_code >= 400:
            logger.warning(
                "Could not attach %s to %s: %s",
                domain,
                project_name,
                _error_message(response),
            )
            return False
        return True


__all__ = [
    "DeploymentClient",
    "DeploymentResult",
    "DomainAvailability",
    "resolve_deployment_url",
]
