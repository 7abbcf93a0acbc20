"""Tests for Uniswap v3 pool discovery (subgraph + factory fallback)."""

from unittest.mock import MagicMock, patch

import requests

from riskscan.utils.addr import ZERO
from riskscan.utils.evidence import EvidenceLog
from riskscan.utils.liquidity import find_v3_pools

TOKEN = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
POOL_500 = "0x60594a405d53811d3BC4766596EFD80fd545A270"
POOL_3000 = "0xC2e9F25Be6257c210d7Adf0D4Cd6E3E881ba25f8"
TIERS = (500, 3000, 10000)


def _row(fee: int, pool: str, tvl="123.5"):
    return {
        "id": pool.lower(),
        "feeTier": str(fee),
        "totalValueLockedUSD": tvl,
        "token0": {"id": TOKEN.lower(), "symbol": "DAI", "decimals": "18"},
        "token1": {"id": WETH.lower(), "symbol": "WETH", "decimals": "18"},
    }


def _factory_w3(*results) -> MagicMock:
    w3 = MagicMock()
    w3.eth.contract.return_value.functions.getPool.return_value.call.side_effect = list(results)
    return w3


class TestSubgraph:
    def test_subgraph_rows_win(self) -> None:
        ev = EvidenceLog()
        data = {"data": {"by0": [_row(500, POOL_500, "1000.25")], "by1": [_row(3000, POOL_3000, None)]}}
        w3 = _factory_w3()
        with patch("riskscan.utils.liquidity.http_post_json", return_value=data) as post:
            pools = find_v3_pools(w3, TOKEN, WETH, TIERS, ev)
        assert [p.fee for p in pools] == [500, 3000]
        assert pools[0].tvl_usd == 1000.25
        assert pools[1].tvl_usd is None
        assert pools[0].token0.symbol == "DAI"
        w3.eth.contract.assert_not_called()
        variables = post.call_args.args[1]["variables"]
        assert variables == {"token": TOKEN.lower(), "weth": WETH.lower(), "fees": [500, 3000, 10000]}

    def test_duplicate_fee_tiers_collapsed(self) -> None:
        data = {"data": {"by0": [_row(500, POOL_500)], "by1": [_row(500, POOL_3000)]}}
        with patch("riskscan.utils.liquidity.http_post_json", return_value=data):
            pools = find_v3_pools(_factory_w3(), TOKEN, WETH, TIERS, EvidenceLog())
        assert len(pools) == 1
        assert pools[0].pool == POOL_500.lower()


class TestFactoryFallback:
    def test_fallback_on_http_error(self) -> None:
        ev = EvidenceLog()
        resp = MagicMock()
        resp.status_code = 503
        err = requests.HTTPError("503", response=resp)
        w3 = _factory_w3(POOL_500, ZERO, POOL_3000)
        with patch("riskscan.utils.liquidity.http_post_json", side_effect=err):
            pools = find_v3_pools(w3, TOKEN, WETH, TIERS, ev)
        assert [p.fee for p in pools] == [500, 10000]
        assert all(p.tvl_usd is None for p in pools)
        assert "uniswap-v3-subgraph 503" in ev
        assert "uniswap v3 pools via on-chain factory fallback" in ev

    def test_fallback_on_empty_subgraph(self) -> None:
        ev = EvidenceLog()
        w3 = _factory_w3(ZERO, POOL_3000, ZERO)
        with patch("riskscan.utils.liquidity.http_post_json", return_value={"data": {"by0": [], "by1": []}}):
            pools = find_v3_pools(w3, TOKEN, WETH, TIERS, ev)
        assert [p.pool for p in pools] == [POOL_3000]
        assert "uniswap-v3-subgraph returned 0 pools" in ev

    def test_fallback_on_graphql_errors(self) -> None:
        ev = EvidenceLog()
        w3 = _factory_w3(ZERO, ZERO, ZERO)
        with patch("riskscan.utils.liquidity.http_post_json", return_value={"errors": [{"message": "boom"}]}):
            pools = find_v3_pools(w3, TOKEN, WETH, TIERS, ev)
        assert pools == []
        assert "uniswap-v3-subgraph error" in ev
        assert "uniswap v3 pools via on-chain factory fallback" not in ev

    def test_pair_is_sorted_for_get_pool(self) -> None:
        w3 = _factory_w3(ZERO)
        with patch("riskscan.utils.liquidity.http_post_json", return_value={"data": {}}):
            find_v3_pools(w3, WETH, TOKEN, (500,), EvidenceLog())
        args = w3.eth.contract.return_value.functions.getPool.call_args.args
        assert args == (TOKEN, WETH, 500)

    def test_per_tier_failure_does_not_abort(self) -> None:
        ev = EvidenceLog()
        w3 = _factory_w3(RuntimeError("rpc down"), POOL_3000, RuntimeError("rpc down"))
        with patch("riskscan.utils.liquidity.http_post_json", side_effect=requests.ConnectionError()):
            pools = find_v3_pools(w3, TOKEN, WETH, TIERS, ev)
        assert [p.fee for p in pools] == [3000]
        assert "factory getPool fail @ fee 500" in ev
        assert "factory getPool fail @ fee 10000" in ev
        assert "uniswap-v3-subgraph error" in ev

    def test_no_tiers(self) -> None:
        assert find_v3_pools(MagicMock(), TOKEN, WETH, (), EvidenceLog()) == []

    def test_repeated_tier_queried_once(self) -> None:
        w3 = _factory_w3(POOL_3000)
        with patch("riskscan.utils.liquidity.http_post_json", return_value={"data": {}}):
            pools = find_v3_pools(w3, TOKEN, WETH, (3000, 3000), EvidenceLog())
        assert [p.fee for p in pools] == [3000]
        assert w3.eth.contract.return_value.functions.getPool.call_count == 1
