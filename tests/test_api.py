"""Tests for the FastAPI surface (scan_token patched)."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

import api

TOKEN = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
FAKE_RESULT = {"riskScore": 12, "summary": [], "badges": [], "details": {}}


@pytest.fixture
def client() -> TestClient:
    return TestClient(api.app)


class TestScanEndpoint:
    def test_health(self, client) -> None:
        assert client.get("/api/health").json() == {"ok": True}

    def test_scan_ok(self, client) -> None:
        with patch("api.scan_token", return_value=FAKE_RESULT) as scan:
            resp = client.post("/api/scan", json={"chain": "eth", "address": TOKEN})
        assert resp.status_code == 200
        assert resp.json() == FAKE_RESULT
        assert scan.call_args.args == ("eth", TOKEN)

    def test_scan_forwards_cfg_overrides(self, client) -> None:
        body = {"address": TOKEN, "cfg": {"rpcUrl": "http://node:8545", "feeTiers": [500]}}
        with patch("api.scan_token", return_value=FAKE_RESULT) as scan:
            client.post("/api/scan", json=body)
        assert scan.call_args.kwargs["overrides"] == {"rpc_url": "http://node:8545", "weth": None, "fee_tiers": [500]}

    def test_missing_address_is_400(self, client) -> None:
        resp = client.post("/api/scan", json={"chain": "eth"})
        assert resp.status_code == 400
        assert resp.json()["error"] is True
        assert "address" in resp.json()["message"]

    def test_empty_address_is_400(self, client) -> None:
        resp = client.post("/api/scan", json={"chain": "eth", "address": ""})
        assert resp.status_code == 400
        assert resp.json()["error"] is True

    def test_unsupported_chain_is_400(self, client) -> None:
        resp = client.post("/api/scan", json={"chain": "bsc", "address": TOKEN})
        assert resp.status_code == 400
        assert resp.json()["error"] is True

    def test_invalid_address_is_400(self, client) -> None:
        with patch("api.scan_token", side_effect=ValueError("Invalid address: not a valid hex string.")):
            resp = client.post("/api/scan", json={"address": "0xnothex"})
        assert resp.status_code == 400
        assert resp.json() == {"error": True, "message": "Invalid address: not a valid hex string."}

    def test_internal_fault_is_500(self, client) -> None:
        with patch("api.scan_token", side_effect=RuntimeError("boom")):
            resp = client.post("/api/scan", json={"address": TOKEN})
        assert resp.status_code == 500
        assert resp.json() == {"error": True, "message": "boom"}

    def test_bad_cfg_fee_tier_is_400(self, client) -> None:
        body = {"address": TOKEN, "cfg": {"feeTiers": [3000, -1]}}
        resp = client.post("/api/scan", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"error": True, "message": "Fee tier must be positive: -1"}

    def test_get_variant(self, client) -> None:
        with patch("api.scan_token", return_value=FAKE_RESULT):
            resp = client.get(f"/api/scan/{TOKEN}")
        assert resp.status_code == 200
        assert resp.json()["riskScore"] == 12


class TestBatchEndpoint:
    def test_batch_mixes_results_and_errors(self, client) -> None:
        def fake_scan(chain, addr, settings=None):
            if addr == "bad":
                raise ValueError("Invalid address")
            return FAKE_RESULT

        with patch("api.scan_token", side_effect=fake_scan):
            resp = client.post("/api/batch", json={"addresses": [TOKEN, "bad"], "concurrency": 2})
        body = resp.json()
        assert body["count"] == 2
        by_addr = {r["address"]: r for r in body["results"]}
        assert by_addr["bad"]["error"] == "Invalid address"
        assert by_addr[TOKEN]["riskScore"] == 12

    def test_empty_batch_is_400(self, client) -> None:
        resp = client.post("/api/batch", json={"addresses": []})
        assert resp.status_code == 400
        assert resp.json()["error"] is True
