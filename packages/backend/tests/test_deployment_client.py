import asyncio
import json
import logging

import httpx
import pytest

from primesite.config import refresh_settings
from primesite.exceptions import ConfigurationError, DeploymentError
from primesite.services.deployment import DeploymentClient, resolve_deployment_url

DEPLOY_RESPONSE = {
    "id": "dpl_123",
    "url": "tonys-barber-shop-abc123.vercel.app",
    "alias": ["tonys-barber-shop.vercel.app"],
    "inspectorUrl": "https://vercel.com/team/tonys-barber-shop/dpl_123",
}


def _client(monkeypatch, handler) -> DeploymentClient:
    monkeypatch.setenv("VERCEL_TOKEN", "vercel-token")
    return DeploymentClient(settings=refresh_settings(), transport=httpx.MockTransport(handler))


def test_deploy_posts_files_and_prefers_alias(monkeypatch) -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "POST":
            return httpx.Response(200, json=DEPLOY_RESPONSE)
        return httpx.Response(200, json={})

    client = _client(monkeypatch, handler)
    result = asyncio.run(client.deploy("Tony's Barber Shop", {"index.html": "<html></html>", "styles.css": "body{}"}))

    assert result.url == "https://tonys-barber-shop.vercel.app"
    assert result.deployment_id == "dpl_123"
    assert result.project_name == "tonys-barber-shop"
    deploy_request, patch_request = requests
    assert deploy_request.url.path == "/v13/deployments"
    assert deploy_request.headers["Authorization"] == "Bearer vercel-token"
    body = json.loads(deploy_request.content)
    assert body["name"] == "tonys-barber-shop"
    assert body["target"] == "production"
    assert [entry["file"] for entry in body["files"]] == ["index.html", "styles.css"]
    assert patch_request.method == "PATCH"
    assert patch_request.url.path == "/v9/projects/tonys-barber-shop"
    assert json.loads(patch_request.content) == {"passwordProtection": None, "vercelAuthentication": None}


def test_protection_toggle_failure_is_not_fatal(monkeypatch, caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "PATCH":
            return httpx.Response(403, json={"error": {"message": "forbidden"}})
        return httpx.Response(200, json=DEPLOY_RESPONSE)

    client = _client(monkeypatch, handler)
    with caplog.at_level(logging.WARNING, logger="primesite.services.deployment"):
        result = asyncio.run(client.deploy("Tony", {"index.html": "<html></html>"}))

    assert result.url == "https://tonys-barber-shop.vercel.app"
    assert "Could not disable deployment protection" in caplog.text


def test_url_preference_order() -> None:
    assert resolve_deployment_url({"alias": ["a.vercel.app"], "url": "u.vercel.app"}) == "https://a.vercel.app"
    assert resolve_deployment_url({"alias": [], "url": "u.vercel.app"}) == "https://u.vercel.app"
    assert resolve_deployment_url({"inspectorUrl": "https://inspect"}) == "https://inspect"


def test_only_html_and_css_are_deployed(monkeypatch) -> None:
    requests = []
    client = _client(monkeypatch, lambda request: requests.append(request) or httpx.Response(200, json={}))

    with pytest.raises(DeploymentError):
        asyncio.run(client.deploy("Tony", {"index.html": "<html></html>", "hero.jpg": "binary"}))
    assert requests == []


def test_missing_token_is_a_configuration_error() -> None:
    client = DeploymentClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))

    with pytest.raises(ConfigurationError):
        asyncio.run(client.deploy("Tony", {"index.html": "<html></html>"}))


def test_large_payload_logs_warning(monkeypatch, caplog) -> None:
    monkeypatch.setenv("DEPLOY_PAYLOAD_LIMIT_MB", "0.001")
    client = _client(monkeypatch, lambda request: httpx.Response(200, json=DEPLOY_RESPONSE))

    with caplog.at_level(logging.WARNING, logger="primesite.services.deployment"):
        asyncio.run(client.deploy("Tony", {"index.html": "x" * 1000}))

    assert "close to the provider limit" in caplog.text


def test_provider_error_surfaces_message(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"message": "Project name is invalid"}})

    client = _client(monkeypatch, handler)
    with pytest.raises(DeploymentError) as excinfo:
        asyncio.run(client.deploy("Tony", {"index.html": "<html></html>"}))

    assert excinfo.value.status_code == 400
    assert "Project name is invalid" in str(excinfo.value)


def test_non_json_success_body_is_a_deployment_error(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>Bad Gateway</html>")

    client = _client(monkeypatch, handler)
    with pytest.raises(DeploymentError) as excinfo:
        asyncio.run(client.deploy("Tony", {"index.html": "<html></html>"}))

    assert excinfo.value.message == "Deployment failed: <html>Bad Gateway</html>"
    assert excinfo.value.status_code == 200


def test_check_domain_reports_price(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/check"):
            return httpx.Response(200, json={"available": True})
        return httpx.Response(200, json={"price": 12.99, "renewalPrice": 14.99})

    availability = asyncio.run(_client(monkeypatch, handler).check_domain("tonys.com"))

    assert availability.available is True
    assert availability.price == 12.99
    assert availability.renewal_price == 14.99


def test_check_domain_unavailable(monkeypatch) -> None:
    client = _client(monkeypatch, lambda request: httpx.Response(200, json={"available": False}))

    assert asyncio.run(client.check_domain("taken.com")).available is False


def test_buy_and_attach_domain(monkeypatch) -> None:
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.url.path.endswith("/buy"):
            return httpx.Response(200, json={"orderId": "ord_1"})
        return httpx.Response(409, json={"error": {"message": "already attached"}})

    client = _client(monkeypatch, handler)

    assert asyncio.run(client.buy_domain("tonys.com")) == "ord_1"
    assert asyncio.run(client.attach_domain("tonys-barber-shop", "tonys.com")) is False
    assert paths == [
        "/v1/registrar/domains/tonys.com/buy",
        "/v10/projects/tonys-barber-shop/domains",
    ]
