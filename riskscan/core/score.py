# riskscan/core/score.py
from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence

from riskscan.config import ScoringConfig
from riskscan.core.types import Concentration, HolderSignal, ImpactSummary, PoolSnapshot

CONCENTRATION_WEIGHT = 0.6
IMPACT_WEIGHT = 0.4
IMPACT_LOW = 0.3   # % -> 0 penalty
IMPACT_HIGH = 5.0  # % -> 100 penalty
WHALE_RISK_TOP10 = 45.0
COMMUNITY_SAFE_TOP10 = 25.0
COMMUNITY_SAFE_IMPACT = 1.0

BADGE_V3 = "DeFiV3"
BADGE_DEEP_LIQUIDITY = "DeepLiquidity"
BADGE_WHALE_RISK = "WhaleRisk"
BADGE_COMMUNITY_SAFE = "CommunitySafe"


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def scale_to_100(x: float, lo: float, hi: float) -> float:
    if x <= lo:
        return 0.0
    if x >= hi:
        return 100.0
    return (x - lo) / (hi - lo) * 100.0


def concentration_penalty(top10_pct: Optional[float], cfg: ScoringConfig) -> float:
    return scale_to_100(top10_pct or 0.0, cfg.conc_low, cfg.conc_high)


def impact_penalty(buy_10k: Optional[float], sell_10k: Optional[float], cfg: ScoringConfig) -> float:
    if buy_10k is None:
        return float(cfg.impact_unknown_penalty)
    worst = max(buy_10k, sell_10k or 0.0)
    return clamp((worst - IMPACT_LOW) / (IMPACT_HIGH - IMPACT_LOW) * 100.0, 0, 100)


def risk_score(
    top10_pct: Optional[float],
    buy_10k: Optional[float],
    sell_10k: Optional[float],
    cfg: ScoringConfig,
) -> int:
    """0..100, higher = riskier. Defined even with no data at all."""
    blended = (CONCENTRATION_WEIGHT * concentration_penalty(top10_pct, cfg)
               + IMPACT_WEIGHT * impact_penalty(buy_10k, sell_10k, cfg))
    # halves round up
    return int(math.floor(clamp(blended, 0, 100) + 0.5))


def derive_badges(
    conc: Concentration,
    impacts: ImpactSummary,
    pools: Sequence[PoolSnapshot],
    cfg: ScoringConfig,
) -> List[str]:
    badges: List[str] = []
    buy_10k = impacts.buy_10k
    top10 = conc.top10

    if pools:
        badges.append(BADGE_V3)
    if buy_10k is not None and buy_10k <= cfg.deep_liq_gate:
        badges.append(BADGE_DEEP_LIQUIDITY)
    if (top10 if top10 is not None else 0.0) >= WHALE_RISK_TOP10:
        badges.append(BADGE_WHALE_RISK)
    if ((top10 if top10 is not None else 100.0) <= COMMUNITY_SAFE_TOP10
            and buy_10k is not None and buy_10k <= COMMUNITY_SAFE_IMPACT):
        badges.append(BADGE_COMMUNITY_SAFE)
    return badges


def derive_confidence(
    holders: HolderSignal,
    pools: Sequence[PoolSnapshot],
    impacts: ImpactSummary,
) -> Dict[str, str]:
    if not holders.rows:
        h = "low"
    else:
        h = "high" if holders.basis == "share" else "medium"

    if not pools:
        liq = "low"
    else:
        liq = "high" if any(p.tvl_usd is not None for p in pools) else "medium"

    if impacts.buy_10k is None:
        q = "low"
    else:
        q = "high" if impacts.sell_10k is not None else "medium"

    return {"holders": h, "liquidity": liq, "quoter": q}
