"""Integration tests for the HTTP surface."""

import httpx
import pytest
from fastapi.testclient import TestClient

from btc_intel.models.config import ProviderConfig
from btc_intel_api.app.main import create_app
from btc_intel_api.app.registry import EntrypointRegistry, extract_input
from btc_intel_api.app.runtime import build_runtime
from btc_intel_api.config.settings import APISettings
from btc_intel_api.schemas.inputs import EmptyInput

from tests.conftest import ADDRESS, MEMPOOL, TXID


def invoke(client, key, payload=None):
    body = {"input": payload if payload is not None else {}}
    return client.post(f"/entrypoints/{key}/invoke", json=body)


class TestInvoke:
    """Tests for the status envelope and status codes."""

    def test_success_envelope(self, client):
        response = invoke(client, "address", {"address": ADDRESS})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "succeeded"
        assert "error" not in body
        assert body["output"]["balance"]["confirmed"] == "3.00000000"
        assert body["output"]["fetchedAt"] == "2024-01-15T12:30:00.000Z"

    def test_nulls_in_output_are_serialized(self, client, router, tx_payload):
        tx_payload["status"] = {"confirmed": False}
        router.add(f"{MEMPOOL}/tx/{TXID}", tx_payload)

        output = invoke(client, "transaction", {"txid": TXID}).json()["output"]

        assert output["blockHeight"] is None
        assert output["blockTime"] is None

    def test_bare_input_object(self, client):
        response = client.post("/entrypoints/address/invoke", json={"address": ADDRESS})
        assert response.json()["output"]["address"] == ADDRESS

    def test_empty_body(self, client):
        response = client.post("/entrypoints/overview/invoke", content=b"")

        assert response.status_code == 200
        assert response.json()["output"]["network"]["blockHeight"] == 830002

    def test_validation_error(self, client, router):
        response = invoke(client, "address", {"address": ""})

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "failed"
        assert body["error"].startswith("Invalid input - address:")
        assert "output" not in body
        assert router.requests == []

    def test_missing_required_input(self, client):
        response = invoke(client, "transaction", {})

        assert response.status_code == 400
        assert "txid" in response.json()["error"]

    def test_upstream_error_is_surfaced_verbatim(self, client, router):
        router.add(f"{MEMPOOL}/tx/{TXID}", httpx.Response(502))

        response = invoke(client, "transaction", {"txid": TXID})

        assert response.status_code == 502
        assert response.json() == {"status": "failed", "error": "API error: 502"}

    def test_normalization_error(self, client, router):
        router.add(f"{MEMPOOL}/v1/fees/recommended", {"fastestFee": 10})

        response = invoke(client, "fees", {})

        assert response.status_code == 502
        assert response.json()["error"] == "Missing required field: fees.halfHourFee"

    def test_unexpected_error_is_hidden(self, client, runtime):
        async def crash(params):
            raise RuntimeError("secret internals")

        runtime.registry.add_entrypoint("crash", "Always fails", EmptyInput, 0, crash)

        response = invoke(client, "crash")

        assert response.status_code == 500
        assert response.json() == {"status": "failed", "error": "Internal error"}

    def test_unknown_entrypoint(self, client):
        response = invoke(client, "nope")

        assert response.status_code == 404
        assert response.json()["status"] == "failed"

    def test_failure_does_not_affect_next_query(self, client, router):
        router.add(f"{MEMPOOL}/v1/blocks", httpx.ConnectError("down"))
        assert invoke(client, "blocks", {"limit": 2}).status_code == 502

        router.add(f"{MEMPOOL}/v1/blocks", [])
        assert invoke(client, "blocks", {"limit": 2}).status_code == 200

    def test_process_time_header(self, client):
        assert "x-process-time" in client.get("/health").headers


class TestPayments:
    """Tests for payment recording on successful paid invocations."""

    def test_paid_success_is_recorded(self, client, payment_tracker):
        invoke(client, "address", {"address": ADDRESS})

        events = payment_tracker.list_events()
        assert [(e.direction, e.amount, e.entrypoint) for e in events] == [("incoming", 1000, "address")]

    def test_free_and_failed_are_not_recorded(self, client, router, payment_tracker):
        invoke(client, "overview")
        router.add(f"{MEMPOOL}/tx/{TXID}", httpx.Response(500))
        invoke(client, "transaction", {"txid": TXID})

        assert payment_tracker.list_events() == []

    def test_analytics_reflects_payments(self, client):
        invoke(client, "address", {"address": ADDRESS})
        invoke(client, "address-report", {"address": ADDRESS})

        summary = invoke(client, "analytics", {"windowMs": 3600000}).json()["output"]
        assert summary["incomingTotal"] == "6000"
        assert summary["transactionCount"] == 2

        transactions = invoke(client, "analytics-transactions", {"limit": 1}).json()["output"]
        assert [t["entrypoint"] for t in transactions["transactions"]] == ["address-report"]

        csv_text = invoke(client, "analytics-csv").json()["output"]["csv"]
        assert csv_text.count("\n") == 3

    def test_analytics_disabled(self, fetcher, clock):
        settings = APISettings(enable_analytics=False, enable_metrics=False, log_level="WARNING")
        runtime = build_runtime(settings=settings, provider_config=ProviderConfig(),
                                fetcher=fetcher, clock=clock)

        with TestClient(create_app(runtime)) as client:
            response = invoke(client, "analytics")

        assert response.status_code == 200
        assert response.json()["output"] == {"error": "Analytics not available", "payments": []}


class TestServiceRoutes:
    """Tests for manifest, info, health and registration routes."""

    def test_manifest(self, client):
        entrypoints = client.get("/entrypoints").json()["entrypoints"]
        by_key = {e["key"]: e for e in entrypoints}

        assert list(by_key) == [
            "overview", "address", "transaction", "fees", "blocks", "address-report",
            "analytics", "analytics-transactions", "analytics-csv",
        ]
        assert {key: by_key[key]["price"] for key in list(by_key)[:6]} == {
            "overview": "0",
            "address": "1000",
            "transaction": "2000",
            "fees": "2000",
            "blocks": "3000",
            "address-report": "5000",
        }
        assert by_key["address"]["input"]["required"] == ["address"]
        assert "windowMs" in by_key["analytics"]["input"]["properties"]
        assert by_key["blocks"]["path"] == "/entrypoints/blocks/invoke"

    def test_root(self, client):
        body = client.get("/").json()

        assert body["service"] == "bitcoin-intel"
        assert body["endpoints"]["overview"] == "/entrypoints/overview/invoke"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_metrics(self, client):
        invoke(client, "address", {"address": ADDRESS})
        text = client.get("/metrics").text

        assert "bitcoin_intel_queries_total" in text
        assert "bitcoin_intel_upstream_requests_total" in text

    def test_registration_document(self, client):
        document = client.get("/.well-known/erc8004.json").json()

        assert document["type"] == "https://eips.ethereum.org/EIPS/eip-8004#registration-v1"
        assert document["name"] == "bitcoin-intel"
        assert "1 free + 5 paid" in document["description"]
        assert document["image"] == "https://bitcoin-intel-production.up.railway.app/icon.png"
        assert document["services"][1] == {
            "name": "A2A",
            "endpoint": "https://bitcoin-intel-production.up.railway.app/.well-known/agent.json",
            "version": "0.3.0",
        }
        assert document["x402Support"] is True
        assert document["active"] is True
        assert document["registrations"] == []
        assert document["supportedTrust"] == ["reputation"]

    def test_registration_uses_public_domain(self, fetcher, clock):
        settings = APISettings(public_domain="intel.example.com", log_level="WARNING")
        runtime = build_runtime(settings=settings, provider_config=ProviderConfig(),
                                fetcher=fetcher, clock=clock)

        with TestClient(create_app(runtime)) as client:
            document = client.get("/.well-known/erc8004.json").json()

        assert document["services"][0] == {"name": "web", "endpoint": "https://intel.example.com"}

    def test_icon_missing(self, fetcher, clock, tmp_path):
        settings = APISettings(icon_path=str(tmp_path / "missing.png"), log_level="WARNING")
        runtime = build_runtime(settings=settings, provider_config=ProviderConfig(),
                                fetcher=fetcher, clock=clock)

        with TestClient(create_app(runtime)) as client:
            response = client.get("/icon.png")

        assert response.status_code == 404
        assert response.text == "Icon not found"

    def test_icon(self, fetcher, clock, tmp_path):
        icon = tmp_path / "icon.png"
        icon.write_bytes(b"\x89PNG\r\n\x1a\nfake")
        settings = APISettings(icon_path=str(icon), log_level="WARNING")
        runtime = build_runtime(settings=settings, provider_config=ProviderConfig(),
                                fetcher=fetcher, clock=clock)

        with TestClient(create_app(runtime)) as client:
            response = client.get("/icon.png")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content == b"\x89PNG\r\n\x1a\nfake"


class TestRegistry:
    """Tests for registry bookkeeping."""

    def test_duplicate_key(self):
        registry = EntrypointRegistry()

        async def handler(params):
            return {}

        registry.add_entrypoint("one", "first", EmptyInput, 0, handler)
        with pytest.raises(ValueError):
            registry.add_entrypoint("one", "again", EmptyInput, 0, handler)

    def test_negative_price(self):
        async def handler(params):
            return {}

        with pytest.raises(ValueError):
            EntrypointRegistry().add_entrypoint("one", "first", EmptyInput, -1, handler)

    @pytest.mark.parametrize("body,expected", [
        ({"input": {"address": "x"}}, {"address": "x"}),
        ({"address": "x"}, {"address": "x"}),
        ([1, 2], {}),
        (None, {}),
        ({"input": "text"}, {"input": "text"}),
    ])
    def test_extract_input(self, body, expected):
        assert extract_input(body) == expected
