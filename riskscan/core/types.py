# riskscan/core/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class ScanRequest:
    chain: str
    address: str
    rpc_url: Optional[str] = None
    weth: Optional[str] = None
    fee_tiers: Optional[Tuple[int, ...]] = None


@dataclass(frozen=True)
class TokenMeta:
    symbol: str = "TOKEN"
    decimals: int = 18
    total_supply: int = 0

    def to_dict(self) -> dict:
        return {"symbol": self.symbol, "decimals": self.decimals, "totalSupply": str(self.total_supply)}


@dataclass(frozen=True)
class HolderRow:
    address: str
    percent: float  # 0..100


@dataclass(frozen=True)
class HolderSignal:
    rows: List[HolderRow] = field(default_factory=list)
    basis: Optional[str] = None  # "share" | "balance" | None


@dataclass(frozen=True)
class Concentration:
    raw_top1: Optional[float] = None
    raw_top10: Optional[float] = None
    circ_top1: Optional[float] = None
    circ_top10: Optional[float] = None

    @property
    def top10(self) -> Optional[float]:
        """Circulating when known, else raw."""
        return self.circ_top10 if self.circ_top10 is not None else self.raw_top10


@dataclass(frozen=True)
class TokenRef:
    address: str
    symbol: Optional[str] = None
    decimals: Optional[int] = None


@dataclass(frozen=True)
class PoolSnapshot:
    fee: int
    pool: str
    token0: TokenRef
    token1: TokenRef
    tvl_usd: Optional[float] = None


@dataclass
class ImpactResult:
    fee: int
    buy_1k: Optional[float] = None
    buy_10k: Optional[float] = None
    sell_1k: Optional[float] = None
    sell_10k: Optional[float] = None

    @property
    def selection_score(self) -> Optional[float]:
        if self.buy_10k is None:
            return None
        if self.sell_10k is not None:
            return (self.buy_10k + self.sell_10k) / 2
        return self.buy_10k


@dataclass(frozen=True)
class ImpactSummary:
    best: Optional[ImpactResult] = None
    results: Tuple[ImpactResult, ...] = ()

    @property
    def buy_10k(self) -> Optional[float]:
        return self.best.buy_10k if self.best else None

    @property
    def sell_10k(self) -> Optional[float]:
        return self.best.sell_10k if self.best else None

    @property
    def best_fee(self) -> Optional[int]:
        return self.best.fee if self.best else None
