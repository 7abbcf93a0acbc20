# riskscan/utils/liquidity.py
# Uniswap v3 pool discovery: subgraph first, on-chain factory as fallback.
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import requests
from web3 import Web3

from riskscan.chains import CHAINS, DEFAULT_SUBGRAPH_URL
from riskscan.core.types import PoolSnapshot, TokenRef
from riskscan.utils.addr import is_zero, sort_pair
from riskscan.utils.evidence import EvidenceLog
from riskscan.utils.fetch import DEFAULT_TIMEOUT, describe_http_error, first_success, http_post_json

V3_FACTORY_ABI = [{
    "name": "getPool",
    "outputs": [{"type": "address", "name": ""}],
    "inputs": [{"type": "address", "name": "tokenA"}, {"type": "address", "name": "tokenB"}, {"type": "uint24", "name": "fee"}],
    "stateMutability": "view", "type": "function",
}]

POOLS_QUERY = """
query($token: String!, $weth: String!, $fees: [Int!]) {
  by0: pools(where: { token0: $token, token1: $weth, feeTier_in: $fees }) {
    id feeTier totalValueLockedUSD token0 { id symbol decimals } token1 { id symbol decimals }
  }
  by1: pools(where: { token1: $token, token0: $weth, feeTier_in: $fees }) {
    id feeTier totalValueLockedUSD token0 { id symbol decimals } token1 { id symbol decimals }
  }
}"""


def _dbg(msg: str):
    print(f"[liquidity] {msg}")


def _opt_float(v: Any) -> Optional[float]:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if f == f and f not in (float("inf"), float("-inf")) else None


def _token_ref(raw: Optional[dict]) -> TokenRef:
    raw = raw or {}
    dec = raw.get("decimals")
    try:
        dec = int(dec) if dec is not None else 18
    except (TypeError, ValueError):
        dec = 18
    return TokenRef(address=str(raw.get("id") or ""), symbol=raw.get("symbol"), decimals=dec)


def dedupe_by_fee(pools: Sequence[PoolSnapshot]) -> List[PoolSnapshot]:
    seen: Dict[int, PoolSnapshot] = {}
    for p in pools:
        seen.setdefault(p.fee, p)
    return list(seen.values())


def fetch_pools_from_subgraph(
    token: str,
    weth: str,
    fee_tiers: Sequence[int],
    evidence: EvidenceLog,
    *,
    subgraph_url: str = DEFAULT_SUBGRAPH_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[PoolSnapshot]:
    """Indexed lookup in both token orderings. [] on any failure (noted)."""
    payload = {
        "query": POOLS_QUERY,
        "variables": {"token": token.lower(), "weth": weth.lower(), "fees": list(fee_tiers)},
    }
    try:
        data = http_post_json(subgraph_url, payload, timeout=timeout)
    except requests.RequestException as e:
        _dbg(f"subgraph request failed: {e}")
        evidence.add(describe_http_error("uniswap-v3-subgraph", e))
        return []

    if not isinstance(data, dict) or data.get("errors"):
        _dbg(f"subgraph errors: {data.get('errors') if isinstance(data, dict) else data!r}")
        evidence.add("uniswap-v3-subgraph error")
        return []

    body = data.get("data") or {}
    rows = list(body.get("by0") or []) + list(body.get("by1") or [])
    if not rows:
        evidence.add("uniswap-v3-subgraph returned 0 pools")
        return []

    out: List[PoolSnapshot] = []
    for p in rows:
        try:
            fee = int(p.get("feeTier"))
        except (TypeError, ValueError):
            _dbg(f"skip row with bad feeTier: {p!r}")
            continue
        out.append(PoolSnapshot(
            fee=fee,
            pool=str(p.get("id") or ""),
            token0=_token_ref(p.get("token0")),
            token1=_token_ref(p.get("token1")),
            tvl_usd=_opt_float(p.get("totalValueLockedUSD")),
        ))
    _dbg(f"subgraph -> {len(out)} pools")
    return dedupe_by_fee(out)


def fetch_pools_from_factory(
    w3: Web3,
    token: str,
    weth: str,
    fee_tiers: Sequence[int],
    evidence: EvidenceLog,
    factory_addr: str = CHAINS["eth"]["univ3_factory"],
) -> List[PoolSnapshot]:
    """getPool per fee tier. No TVL on this path; per-tier failures are skipped."""
    t0, t1 = sort_pair(Web3.to_checksum_address(token), Web3.to_checksum_address(weth))
    factory = w3.eth.contract(address=factory_addr, abi=V3_FACTORY_ABI)

    out: List[PoolSnapshot] = []
    for fee in dict.fromkeys(int(f) for f in fee_tiers):
        try:
            pool = factory.functions.getPool(t0, t1, int(fee)).call()
        except Exception as e:
            _dbg(f"getPool failed @ fee {fee}: {e}")
            evidence.add(f"factory getPool fail @ fee {fee}")
            continue
        if is_zero(pool):
            _dbg(f"no pool @ fee {fee}")
            continue
        _dbg(f"pool found @ fee {fee}: {pool}")
        out.append(PoolSnapshot(fee=int(fee), pool=pool, token0=TokenRef(t0), token1=TokenRef(t1), tvl_usd=None))

    if out:
        evidence.add("uniswap v3 pools via on-chain factory fallback")
    return out


def find_v3_pools(
    w3: Web3,
    token: str,
    weth: str,
    fee_tiers: Sequence[int],
    evidence: EvidenceLog,
    *,
    subgraph_url: str = DEFAULT_SUBGRAPH_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[PoolSnapshot]:
    if not fee_tiers:
        return []
    return first_success(
        [
            ("uniswap-v3-subgraph", lambda: fetch_pools_from_subgraph(
                token, weth, fee_tiers, evidence, subgraph_url=subgraph_url, timeout=timeout)),
            ("uniswap-v3-factory", lambda: fetch_pools_from_factory(w3, token, weth, fee_tiers, evidence)),
        ],
        evidence,
        default=[],
    )
