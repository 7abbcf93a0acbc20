# cli.py
import argparse
import json
import os
import sys

print("[CLI] Booting...")

from dotenv import load_dotenv
_loaded = load_dotenv()
print(f"[CLI] .env loaded: {_loaded}")
print(f"[CLI] ENV presence -> ETH RPC: {'yes' if os.getenv('ETH_RPC_URL') else 'no'}, "
      f"ETHPLORER_API_KEY: {'yes' if os.getenv('ETHPLORER_API_KEY') else 'no'}")

from riskscan.config import ScanSettings, parse_fee_tiers
from riskscan.core.analyze import scan_token


def print_report(result: dict) -> None:
    details = result.get("details") or {}
    meta = details.get("tokenMeta") or {}
    print(f"🪙 Token: {meta.get('symbol', '?')} (decimals={meta.get('decimals', '?')}, supply={meta.get('totalSupply', '?')})")

    print("[CLI] Holders block...")
    h = details.get("holders") or {}
    for label, key in (("Top1 (raw)", "top1Pct"), ("Top10 (raw)", "top10Pct"),
                       ("Top1 (circulating)", "circTop1Pct"), ("Top10 (circulating)", "circTop10Pct")):
        v = h.get(key)
        print(f"👥 {label}: {f'{v:.2f}%' if isinstance(v, (int, float)) else 'n/a'}")

    print("[CLI] Liquidity block...")
    lp = details.get("liquidity") or {}
    if lp.get("type") == "v3":
        for t in lp.get("tiers") or []:
            tvl = t.get("tvlUsd")
            tvl_s = f"${tvl:,.0f}" if isinstance(tvl, (int, float)) else "n/a"
            print(f"🔹 fee {t.get('feeBps')}: pool={t.get('pool')} TVL≈{tvl_s}")
        print(f"🔹 Primary pool: {lp.get('primaryPool') or 'n/a'}")
        pi = lp.get("priceImpact") or {}
        print(f"🔹 Impact $1k  buy={pi.get('buyUsd1000') or 'N/A'} sell={pi.get('sellUsd1000') or 'N/A'}")
        print(f"🔹 Impact $10k buy={pi.get('buyUsd10000') or 'N/A'} sell={pi.get('sellUsd10000') or 'N/A'}")
    else:
        print("ℹ️ No Uniswap v3 pool found at the probed fee tiers.")

    for line in result.get("summary") or []:
        print(f"📝 {line}")
    badges = result.get("badges") or []
    print(f"🏷️  Badges: {', '.join(badges) if badges else 'none'}")
    conf = details.get("confidence") or {}
    print(f"🎯 Confidence: holders={conf.get('holders')} liquidity={conf.get('liquidity')} quoter={conf.get('quoter')}")

    notes = (details.get("evidence") or {}).get("notes") or []
    if notes:
        print("🔎 Evidence:")
        for n in notes:
            print(f"   - {n}")

    score = result.get("riskScore", "?")
    print(f"🧮 Final Risk Score: {score}/100")
    if isinstance(score, int):
        print("❗ HIGH RISK" if score >= 60 else "⚠️  MEDIUM RISK" if score >= 30 else "✅ LOW RISK")


def main(argv=None):
    print("[CLI] Parsing arguments...")
    p = argparse.ArgumentParser(description="Token Risk Scan CLI")
    p.add_argument("--chain", default="eth", choices=["eth"], help="Chain to use")
    p.add_argument("--address", required=True, help="ERC-20 contract address")
    p.add_argument("--json", action="store_true", help="Print JSON only")
    p.add_argument("--rpc-url", default=None, help="Override ETH_RPC_URL")
    p.add_argument("--weth", default=None, help="Override the numeraire (WETH) address")
    p.add_argument("--fee-tiers", default=None, help="Comma-separated fee tiers, e.g. 500,3000,10000")
    args = p.parse_args(argv)
    print(f"[CLI] Args -> chain={args.chain} address={args.address} json={args.json}")

    try:
        settings = ScanSettings.from_env()
        overrides = {
            "rpc_url": args.rpc_url,
            "weth": args.weth,
            "fee_tiers": parse_fee_tiers(args.fee_tiers) if args.fee_tiers else None,
        }
        result = scan_token(args.chain, args.address, settings=settings, overrides=overrides)
        print("[CLI] scan_token: OK")
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"[CLI] scan_token: FAIL -> {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result, indent=2, sort_keys=False, default=str))
    else:
        print_report(result)
    print("[CLI] Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
