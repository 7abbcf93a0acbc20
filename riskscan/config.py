# riskscan/config.py
# Purpose: Process-wide scan settings, resolved from the environment once at
# startup and threaded through the pipeline. Callers may override the
# RPC endpoint, numeraire and fee tiers per request.
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Optional, Tuple

from riskscan.chains import CHAINS, DEFAULT_RPC_URL, DEFAULT_SUBGRAPH_URL

IMPACT_MODES = ("quote", "heuristic")


@dataclass(frozen=True)
class ScoringConfig:
    deep_liq_gate: float = 0.75          # % impact for BUY $10k
    impact_unknown_penalty: float = 40.0
    conc_low: float = 10.0               # <= low -> 0 penalty
    conc_high: float = 70.0              # >= high -> 100 penalty


@dataclass(frozen=True)
class ScanSettings:
    rpc_url: str = DEFAULT_RPC_URL
    weth: str = CHAINS["eth"]["weth"]
    fee_tiers: Tuple[int, ...] = CHAINS["eth"]["fee_tiers"]
    ethplorer_api_key: Optional[str] = None
    subgraph_url: str = DEFAULT_SUBGRAPH_URL
    numeraire_usd_price: float = 3000.0
    impact_mode: str = "quote"
    http_timeout: float = 15.0
    scoring: ScoringConfig = ScoringConfig()

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ScanSettings":
        env = os.environ if env is None else env

        def get(name: str) -> Optional[str]:
            v = (env.get(name) or "").strip()
            return v or None

        def num(name: str, default: float, positive: bool = False) -> float:
            raw = get(name)
            if raw is None:
                return default
            try:
                value = float(raw)
            except ValueError:
                raise ValueError(f"{name} must be a number, got {raw!r}")
            if positive and not value > 0:
                raise ValueError(f"{name} must be positive, got {raw!r}")
            return value

        impact_mode = (get("IMPACT_MODE") or "quote").lower()
        if impact_mode not in IMPACT_MODES:
            raise ValueError(f"IMPACT_MODE must be one of {IMPACT_MODES}, got {impact_mode!r}")

        fee_raw = get("UNISWAP_V3_FEE_TIERS")
        return cls(
            rpc_url=get("ETH_RPC_URL") or get("WEB3_PROVIDER_ETH") or get("WEB3_PROVIDER") or DEFAULT_RPC_URL,
            weth=get("WETH_ADDRESS") or CHAINS["eth"]["weth"],
            fee_tiers=parse_fee_tiers(fee_raw) if fee_raw else CHAINS["eth"]["fee_tiers"],
            ethplorer_api_key=get("ETHPLORER_API_KEY"),
            subgraph_url=get("UNISWAP_V3_SUBGRAPH_URL") or DEFAULT_SUBGRAPH_URL,
            numeraire_usd_price=num("NUMERAIRE_USD_PRICE", 3000.0, positive=True),
            impact_mode=impact_mode,
            http_timeout=num("HTTP_TIMEOUT", 15.0, positive=True),
            scoring=ScoringConfig(
                deep_liq_gate=num("DEEP_LIQ_GATE", 0.75),
                impact_unknown_penalty=num("IMPACT_UNKNOWN_PENALTY", 40.0),
                conc_low=num("CONC_LOW", 10.0),
                conc_high=num("CONC_HIGH", 70.0),
            ),
        )

    def with_overrides(
        self,
        rpc_url: Optional[str] = None,
        weth: Optional[str] = None,
        fee_tiers: Optional[Iterable[int]] = None,
    ) -> "ScanSettings":
        changes = {}
        if rpc_url:
            changes["rpc_url"] = rpc_url
        if weth:
            changes["weth"] = weth
        if fee_tiers:
            changes["fee_tiers"] = check_fee_tiers(fee_tiers)
        return replace(self, **changes) if changes else self


def parse_fee_tiers(raw: str) -> Tuple[int, ...]:
    """'500, 3000,10000' -> (500, 3000, 10000)"""
    return check_fee_tiers(part.strip() for part in raw.split(",") if part.strip())


def check_fee_tiers(fee_tiers: Iterable) -> Tuple[int, ...]:
    """Positive ints, duplicates collapsed in first-seen order."""
    tiers = []
    for f in fee_tiers:
        try:
            fee = int(f)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid fee tier: {f!r}")
        if fee <= 0:
            raise ValueError(f"Fee tier must be positive: {fee}")
        tiers.append(fee)
    if not tiers:
        raise ValueError("At least one fee tier is required")
    return tuple(dict.fromkeys(tiers))
