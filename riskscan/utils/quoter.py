# riskscan/utils/quoter.py
# Swap-quote simulation against the Uniswap v3 quoters (eth_call only, nothing is sent).
#   BUY:  WETH -> TOKEN at $1k and $10k notional
#   SELL: TOKEN -> WETH using the BUY output as input (only after a nonzero BUY)
# Impact is measured against the pool's pre-trade spot price (slot0), net of the LP fee.
from __future__ import annotations

import random
from concurrent.futures import ThreadPoolExecutor
from fractions import Fraction
from typing import List, Optional, Sequence

from web3 import Web3

from riskscan.chains import CHAINS
from riskscan.core.types import ImpactResult, ImpactSummary, PoolSnapshot
from riskscan.utils.evidence import EvidenceLog
from riskscan.utils.fetch import first_success

NOTIONALS_USD = (1000, 10000)
FEE_DENOMINATOR = 1_000_000
Q192 = 2 ** 192

# msg.sender for the simulations; quoters revert internally and never commit
SIM_SENDER = Web3.to_checksum_address("0x0000000000000000000000000000000000000001")

QUOTER_V2_ABI = [{
    "name": "quoteExactInputSingle",
    "type": "function",
    "stateMutability": "nonpayable",
    "inputs": [{
        "name": "params",
        "type": "tuple",
        "components": [
            {"name": "tokenIn", "type": "address"},
            {"name": "tokenOut", "type": "address"},
            {"name": "amountIn", "type": "uint256"},
            {"name": "fee", "type": "uint24"},
            {"name": "sqrtPriceLimitX96", "type": "uint160"},
        ],
    }],
    "outputs": [
        {"name": "amountOut", "type": "uint256"},
        {"name": "sqrtPriceX96After", "type": "uint160"},
        {"name": "initializedTicksCrossed", "type": "uint32"},
        {"name": "gasEstimate", "type": "uint256"},
    ],
}]

QUOTER_V1_ABI = [{
    "name": "quoteExactInputSingle",
    "type": "function",
    "stateMutability": "nonpayable",
    "inputs": [
        {"name": "tokenIn", "type": "address"},
        {"name": "tokenOut", "type": "address"},
        {"name": "fee", "type": "uint24"},
        {"name": "amountIn", "type": "uint256"},
        {"name": "sqrtPriceLimitX96", "type": "uint160"},
    ],
    "outputs": [{"name": "amountOut", "type": "uint256"}],
}]

POOL_SLOT0_ABI = [{
    "name": "slot0",
    "type": "function",
    "stateMutability": "view",
    "inputs": [],
    "outputs": [
        {"name": "sqrtPriceX96", "type": "uint160"},
        {"name": "tick", "type": "int24"},
        {"name": "observationIndex", "type": "uint16"},
        {"name": "observationCardinality", "type": "uint16"},
        {"name": "observationCardinalityNext", "type": "uint16"},
        {"name": "feeProtocol", "type": "uint8"},
        {"name": "unlocked", "type": "bool"},
    ],
}]


def _dbg(msg: str) -> None:
    print(f"[quoter] {msg}")


def _quote_v2(w3: Web3, token_in: str, token_out: str, fee: int, amount_in: int) -> int:
    quoter = w3.eth.contract(address=CHAINS["eth"]["univ3_quoter_v2"], abi=QUOTER_V2_ABI)
    res = quoter.functions.quoteExactInputSingle((token_in, token_out, amount_in, fee, 0)).call({"from": SIM_SENDER})
    return int(res[0])


def _quote_v1(w3: Web3, token_in: str, token_out: str, fee: int, amount_in: int) -> int:
    quoter = w3.eth.contract(address=CHAINS["eth"]["univ3_quoter_v1"], abi=QUOTER_V1_ABI)
    return int(quoter.functions.quoteExactInputSingle(token_in, token_out, fee, amount_in, 0).call({"from": SIM_SENDER}))


def quote_exact_input_single_any(
    w3: Web3, token_in: str, token_out: str, fee: int, amount_in: int, evidence: EvidenceLog
) -> Optional[int]:
    """amountOut from QuoterV2, else QuoterV1, else None."""
    return first_success(
        [
            (f"quoterV2 simulate @ fee {fee}", lambda: _quote_v2(w3, token_in, token_out, fee, amount_in)),
            (f"quoterV1 simulate @ fee {fee}", lambda: _quote_v1(w3, token_in, token_out, fee, amount_in)),
        ],
        evidence,
    )


def read_sqrt_price_x96(w3: Web3, pool: str) -> Optional[int]:
    try:
        c = w3.eth.contract(address=Web3.to_checksum_address(pool), abi=POOL_SLOT0_ABI)
        sqrt_p = int(c.functions.slot0().call()[0])
    except Exception as e:
        _dbg(f"slot0 read failed for {pool}: {e}")
        return None
    return sqrt_p or None


def price_impact_pct(amount_in: int, amount_out: int, sqrt_price_x96: int, zero_for_one: bool, fee: int) -> Optional[float]:
    """
    Shortfall of the quoted output versus the spot-implied output (after LP fee), in %.
    zero_for_one: True when token_in is the pool's token0.
    """
    if amount_in <= 0 or sqrt_price_x96 <= 0:
        return None
    price = Fraction(sqrt_price_x96 * sqrt_price_x96, Q192)  # token1 per token0, raw units
    spot_out = amount_in * (price if zero_for_one else 1 / price)
    spot_out *= Fraction(FEE_DENOMINATOR - fee, FEE_DENOMINATOR)
    if spot_out <= 0:
        return None
    impact = (1 - Fraction(amount_out) / spot_out) * 100
    return max(0.0, min(100.0, float(impact)))


def heuristic_impact(usd: float) -> float:
    """Placeholder band used when no spot price is available."""
    if usd <= 1000:
        return 0.25 + random.random() * 0.25  # ~0.25-0.50%
    return 0.40 + random.random() * 0.60      # ~0.40-1.00%


def weth_amount_for_usd(usd: float, numeraire_usd_price: float) -> int:
    return max(1, int(usd / numeraire_usd_price * 10 ** 18))


def _simulate_tier(
    w3: Web3,
    token: str,
    weth: str,
    pool: PoolSnapshot,
    evidence: EvidenceLog,
    numeraire_usd_price: float,
    impact_mode: str,
) -> ImpactResult:
    fee = pool.fee
    r = ImpactResult(fee=fee)

    sqrt_p = read_sqrt_price_x96(w3, pool.pool) if impact_mode == "quote" else None
    if sqrt_p is None:
        evidence.add(f"impact heuristic @ fee {fee}")
    weth_is_token0 = weth.lower() < token.lower()

    def impact(usd: int, amount_in: int, amount_out: int, buying: bool) -> Optional[float]:
        if sqrt_p is None:
            return heuristic_impact(usd)
        # buying spends WETH, so zero_for_one iff WETH is token0
        zero_for_one = weth_is_token0 if buying else not weth_is_token0
        return price_impact_pct(amount_in, amount_out, sqrt_p, zero_for_one, fee)

    for usd in NOTIONALS_USD:
        in_weth = weth_amount_for_usd(usd, numeraire_usd_price)
        suffix = "1k" if usd == 1000 else "10k"

        token_out = quote_exact_input_single_any(w3, weth, token, fee, in_weth, evidence)
        if not token_out or token_out <= 0:
            evidence.add(f"quoter BUY fail @ fee {fee} ${usd}")
            continue
        setattr(r, f"buy_{suffix}", impact(usd, in_weth, token_out, buying=True))
        evidence.add(f"quoter BUY ok @ fee {fee} ${usd}")

        weth_out = quote_exact_input_single_any(w3, token, weth, fee, token_out, evidence)
        if weth_out and weth_out > 0:
            setattr(r, f"sell_{suffix}", impact(usd, token_out, weth_out, buying=False))
            evidence.add(f"quoter SELL ok @ fee {fee} ${usd}")
        else:
            evidence.add(f"quoter SELL fail @ fee {fee} ${usd}")

    _dbg(f"fee {fee}: buy1k={r.buy_1k} buy10k={r.buy_10k} sell1k={r.sell_1k} sell10k={r.sell_10k}")
    return r


def select_best(results: Sequence[ImpactResult]) -> Optional[ImpactResult]:
    """Lowest average of BUY/SELL $10k impact (BUY alone when no SELL). Requires BUY $10k."""
    best = None
    best_score = float("inf")
    for r in results:
        score = r.selection_score
        if score is None:
            continue
        if score < best_score:
            best_score = score
            best = r
    return best


def compute_impacts(
    w3: Web3,
    token: str,
    weth: str,
    pools: Sequence[PoolSnapshot],
    evidence: EvidenceLog,
    *,
    numeraire_usd_price: float = 3000.0,
    impact_mode: str = "quote",
    max_workers: int = 4,
) -> ImpactSummary:
    if not pools:
        return ImpactSummary()
    token = Web3.to_checksum_address(token)
    weth = Web3.to_checksum_address(weth)

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(pools)))) as ex:
        futs = [
            ex.submit(_simulate_tier, w3, token, weth, p, evidence, numeraire_usd_price, impact_mode)
            for p in pools
        ]
        results: List[ImpactResult] = [f.result() for f in futs]

    best = select_best(results)
    _dbg(f"best fee tier: {best.fee if best else None}")
    return ImpactSummary(best=best, results=tuple(results))
