# riskscan/core/analyze.py
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

from web3 import Web3

print("[ANALYZE] Module import start")

from riskscan.chains import get_chain_config, get_w3
from riskscan.config import ScanSettings, check_fee_tiers
from riskscan.core.score import derive_badges, derive_confidence, risk_score
from riskscan.core.types import (
    Concentration, HolderSignal, ImpactResult, ImpactSummary, PoolSnapshot, ScanRequest, TokenMeta,
)
from riskscan.utils.addr import normalize_evm_address
from riskscan.utils.evidence import EvidenceLog, push_note_once
from riskscan.utils.holders import fetch_top_holders, split_concentration
from riskscan.utils.liquidity import find_v3_pools
from riskscan.utils.quoter import compute_impacts
from riskscan.utils.token_meta import read_token_meta

print("[ANALYZE] Imports OK")


def fmt_pct(n: Optional[float], d: int = 2) -> Optional[str]:
    return None if n is None else f"{n:.{d}f}%"


def build_tiers(token: str, pools: Sequence[PoolSnapshot]) -> List[Dict[str, Any]]:
    """Per-fee-tier rows; 'base' is the scanned token, 'quote' the numeraire."""
    out = []
    for p in pools:
        base_is_t0 = p.token0.address.lower() == token.lower()
        base, quote = (p.token0, p.token1) if base_is_t0 else (p.token1, p.token0)
        out.append({
            "feeBps": p.fee,
            "tvlUsd": p.tvl_usd,
            "baseSymbol": base.symbol,
            "quoteSymbol": quote.symbol,
            "pool": p.pool,
        })
    return out


def pick_primary(tiers: List[Dict[str, Any]], best_fee: Optional[int]) -> Optional[Dict[str, Any]]:
    """Best-quoting tier, else highest TVL, else lowest fee tier."""
    if best_fee is not None:
        for t in tiers:
            if t["feeBps"] == best_fee:
                return t
    with_tvl = [t for t in tiers if t["tvlUsd"] is not None]
    if with_tvl:
        return max(with_tvl, key=lambda t: t["tvlUsd"])
    if tiers:
        return min(tiers, key=lambda t: t["feeBps"])
    return None


def price_impact_block(best: Optional[ImpactResult]) -> Dict[str, Optional[str]]:
    b = best or ImpactResult(fee=0)
    return {
        "buyUsd1000": fmt_pct(b.buy_1k),
        "buyUsd10000": fmt_pct(b.buy_10k),
        "sellUsd1000": fmt_pct(b.sell_1k),
        "sellUsd10000": fmt_pct(b.sell_10k),
    }


def build_summary(conc: Concentration, impacts: ImpactSummary, holder_notes: List[str]) -> List[str]:
    summary: List[str] = []
    if conc.circ_top10 is not None:
        summary.append(f"Circulating top10 holders ~{fmt_pct(conc.circ_top10)} (burn/infra excluded).")
    elif conc.raw_top10 is not None:
        summary.append(f"Top10 holders (raw) ~{fmt_pct(conc.raw_top10)}.")
        push_note_once(holder_notes, "Circulating metrics unavailable; using raw")
    else:
        summary.append("Holder concentration: N/A.")

    if impacts.buy_10k is not None:
        summary.append(
            f"Est. slippage for $10k swap: buy {fmt_pct(impacts.buy_10k)}, "
            f"sell {fmt_pct(impacts.sell_10k) or 'N/A'}."
        )
    else:
        summary.append("Liquidity depth: unknown (no quoter data).")

    summary.append("Transfer tax: not evaluated.")
    return summary


def resolve_request(req: ScanRequest, settings: ScanSettings) -> ScanSettings:
    get_chain_config(req.chain)
    return settings.with_overrides(rpc_url=req.rpc_url, weth=req.weth, fee_tiers=req.fee_tiers)


def scan_token(
    chain_key: str,
    token_address: str,
    settings: Optional[ScanSettings] = None,
    overrides: Optional[Dict[str, Any]] = None,
    w3: Optional[Web3] = None,
) -> Dict[str, Any]:
    """
    Run one scan. Raises ValueError for bad caller input (chain/address);
    upstream failures never raise, they land in details.evidence.notes.
    """
    print(f"[ANALYZE] scan_token start chain={chain_key} addr={token_address}")

    # 1) Validate + resolve config
    token = normalize_evm_address(token_address)
    overrides = overrides or {}
    fee_tiers = overrides.get("fee_tiers")
    req = ScanRequest(
        chain=chain_key,
        address=token,
        rpc_url=overrides.get("rpc_url"),
        weth=normalize_evm_address(overrides["weth"]) if overrides.get("weth") else None,
        fee_tiers=check_fee_tiers(fee_tiers) if fee_tiers else None,
    )
    cfg = resolve_request(req, settings or ScanSettings.from_env())
    weth = Web3.to_checksum_address(cfg.weth)
    print(f"[ANALYZE] Config -> rpc={cfg.rpc_url} weth={weth} tiers={cfg.fee_tiers} "
          f"holders_key={'yes' if cfg.ethplorer_api_key else 'no'} impact_mode={cfg.impact_mode}")

    w3 = w3 or get_w3(cfg.rpc_url, timeout=cfg.http_timeout)
    evidence = EvidenceLog()
    holder_notes: List[str] = []
    liq_notes: List[str] = []

    # 2) Metadata, holders and pools are independent
    with ThreadPoolExecutor(max_workers=3) as ex:
        f_meta = ex.submit(read_token_meta, w3, token, evidence)
        f_holders = ex.submit(fetch_top_holders, token, cfg.ethplorer_api_key, evidence, timeout=cfg.http_timeout)
        f_pools = ex.submit(find_v3_pools, w3, token, weth, cfg.fee_tiers, evidence,
                            subgraph_url=cfg.subgraph_url, timeout=cfg.http_timeout)

        try:
            meta = f_meta.result()
        except Exception as e:
            print(f"[ANALYZE] Token meta FAIL: {e}")
            evidence.add("token meta failed")
            meta = TokenMeta()

        try:
            holders = f_holders.result()
            print(f"[ANALYZE] Holders OK: rows={len(holders.rows)} basis={holders.basis}")
        except Exception as e:
            print(f"[ANALYZE] Holders FAIL: {e}")
            evidence.add("holders unavailable")
            holders = HolderSignal()

        try:
            pools = f_pools.result()
            print(f"[ANALYZE] Pools OK: fees={[p.fee for p in pools]}")
        except Exception as e:
            print(f"[ANALYZE] Pools FAIL: {e}")
            evidence.add("pool discovery failed")
            pools = []

    # 3) Concentration
    conc = split_concentration(holders.rows)
    if conc.raw_top1 is not None:
        push_note_once(holder_notes, "Raw top holders include burn/infra")
    if conc.circ_top1 is not None:
        push_note_once(holder_notes, "Circulating excludes burn + infra")

    # 4) Slippage (needs the pools)
    try:
        impacts = compute_impacts(w3, token, weth, pools, evidence,
                                  numeraire_usd_price=cfg.numeraire_usd_price, impact_mode=cfg.impact_mode)
    except Exception as e:
        print(f"[ANALYZE] Quoter FAIL: {e}")
        evidence.add("quoter simulation failed")
        impacts = ImpactSummary()

    liq_type = "v3" if pools else "unknown"
    if impacts.buy_10k is not None and impacts.sell_10k is not None:
        push_note_once(liq_notes, "Uniswap v3 Quoter succeeded (BUY+SELL)")
    elif impacts.buy_10k is not None:
        push_note_once(liq_notes, "Uniswap v3 Quoter succeeded (BUY)")
    elif pools:
        push_note_once(liq_notes, "No quoter data; using pool existence/TVL only")

    tiers = build_tiers(token, pools)
    primary = pick_primary(tiers, impacts.best_fee)

    # 5) Score
    score = risk_score(conc.top10, impacts.buy_10k, impacts.sell_10k, cfg.scoring)
    badges = derive_badges(conc, impacts, pools, cfg.scoring)
    confidence = derive_confidence(holders, pools, impacts)
    summary = build_summary(conc, impacts, holder_notes)
    print(f"[ANALYZE] Score OK: score={score} badges={badges} confidence={confidence}")

    liquidity: Dict[str, Any] = {"type": liq_type}
    if primary is not None:
        liquidity["primaryPool"] = primary["pool"]
    liquidity.update({
        "tiers": tiers,
        "priceImpact": price_impact_block(impacts.best),
        "notes": liq_notes,
    })

    result = {
        "riskScore": score,
        "summary": summary,
        "badges": badges,
        "details": {
            "tokenMeta": meta.to_dict(),
            "holders": {
                "top1Pct": conc.raw_top1,
                "top10Pct": conc.raw_top10,
                "circTop1Pct": conc.circ_top1,
                "circTop10Pct": conc.circ_top10,
                "notes": holder_notes,
            },
            "liquidity": liquidity,
            "tokenomics": {"tax": {"buy": None, "sell": None}},
            "evidence": {"notes": evidence.notes},
            "confidence": confidence,
        },
    }
    print(f"[ANALYZE] scan_token done chain={chain_key} addr={token} score={score}")
    return result
