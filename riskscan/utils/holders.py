# riskscan/utils/holders.py
# Purpose: Top-holder shares from Ethplorer + raw/circulating concentration.
# Order:
#   1) getTopTokenHolders at limit 50, then 20, then 10 (random 250-650ms backoff)
#   2) per-holder `share` (already a percent) when present
#   3) balance / totalSupply when the response carries a total supply
#   4) give up (empty list + evidence note)
from __future__ import annotations

import json
from typing import Any, Iterable, List, Optional

import requests

from riskscan.chains import ETHPLORER_BASE
from riskscan.core.types import Concentration, HolderRow, HolderSignal
from riskscan.utils.addr import is_non_circulating
from riskscan.utils.evidence import EvidenceLog
from riskscan.utils.fetch import DEFAULT_TIMEOUT, RetryPolicy, UpstreamError, describe_http_error, http_get_json

HOLDER_LIMITS = (50, 20, 10)
HOLDER_RETRY = RetryPolicy(max_attempts=len(HOLDER_LIMITS), backoff_min=0.25, backoff_max=0.65)


def _dbg(msg: str) -> None:
    print(f"[holders] {msg}")


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def _to_float(v: Any) -> Optional[float]:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if f == f else None  # NaN


def parse_holders(data: dict, evidence: EvidenceLog) -> Optional[HolderSignal]:
    """
    Turn one Ethplorer payload into a HolderSignal.
    Returns None when the payload has no usable percentage basis.
    """
    if not isinstance(data, dict):
        raise UpstreamError("ethplorer: unexpected payload")
    if data.get("error"):
        evidence.add(f"ethplorer error: {json.dumps(data['error'], sort_keys=True)}")
        return None

    holders = data.get("holders") or []
    if not holders:
        evidence.add("ethplorer holders[] empty")
        return None

    if not isinstance(holders, list) or not all(isinstance(h, dict) for h in holders):
        raise UpstreamError("ethplorer: malformed holders[]")

    share = holders[0].get("share")
    if isinstance(share, (int, float)) and not isinstance(share, bool):
        evidence.add("ethplorer: using provided share%")
        rows = [
            HolderRow(address=str(h.get("address", "")), percent=clamp(_to_float(h.get("share")) or 0.0, 0, 100))
            for h in holders
        ]
        return HolderSignal(rows=rows, basis="share")

    total = _to_float(data.get("totalSupply"))
    if total is not None and total > 0:
        evidence.add("ethplorer: computed holder% from balances/totalSupply")
        rows = []
        for h in holders:
            bal = _to_float(h.get("balance"))
            if bal is None:
                bal = _to_float(h.get("rawBalance")) or 0.0
            rows.append(HolderRow(address=str(h.get("address", "")), percent=clamp(bal / total * 100.0, 0, 100)))
        return HolderSignal(rows=rows, basis="balance")

    evidence.add("ethplorer: no share% / totalSupply; retrying smaller limit")
    return None


def fetch_top_holders(
    token: str,
    api_key: Optional[str],
    evidence: EvidenceLog,
    *,
    retry: RetryPolicy = HOLDER_RETRY,
    timeout: float = DEFAULT_TIMEOUT,
) -> HolderSignal:
    key = (api_key or "").strip()
    if not key:
        evidence.add("ETHPLORER_API_KEY missing; holders unavailable")
        return HolderSignal()

    url = f"{ETHPLORER_BASE}/getTopTokenHolders/{token}"

    def attempt(limit: int) -> Optional[HolderSignal]:
        _dbg(f"getTopTokenHolders token={token} limit={limit}")
        data = http_get_json(url, params={"apiKey": key, "limit": limit}, timeout=timeout)
        return parse_holders(data, evidence)

    def on_error(limit: int, exc: BaseException) -> None:
        if isinstance(exc, requests.RequestException):
            evidence.add(describe_http_error("ethplorer", exc))
        else:
            evidence.add("ethplorer fetch error")

    signal = retry.run(attempt, args=HOLDER_LIMITS, on_error=on_error)
    if not signal:
        evidence.add("holders unavailable after Ethplorer retries")
        return HolderSignal()
    _dbg(f"got {len(signal.rows)} holders (basis={signal.basis})")
    return signal


def sum_percent(rows: Iterable[HolderRow]) -> Optional[float]:
    rows = list(rows)
    if not rows:
        return None
    return clamp(sum(r.percent or 0.0 for r in rows), 0, 100)


def split_concentration(rows: List[HolderRow]) -> Concentration:
    """Top-1/top-10 sums, raw and with burn + infra addresses excluded."""
    circ = [r for r in rows if not is_non_circulating(r.address)]
    return Concentration(
        raw_top1=sum_percent(rows[:1]),
        raw_top10=sum_percent(rows[:10]),
        circ_top1=sum_percent(circ[:1]),
        circ_top10=sum_percent(circ[:10]),
    )
