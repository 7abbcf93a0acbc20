# batch_cli.py
import argparse, json, csv, sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

print("[BATCH] Booting...")

from dotenv import load_dotenv
_loaded = load_dotenv()
print(f"[BATCH] .env loaded: {_loaded}")

from riskscan.config import ScanSettings
from riskscan.core.analyze import scan_token

FIELDNAMES = ["chain", "address", "symbol", "riskScore", "badges", "top10Pct", "circTop10Pct",
              "liquidityType", "primaryPool", "buyUsd10000", "sellUsd10000", "error"]


def load_addresses(path: str) -> list[str]:
    print(f"[BATCH] Loading addresses from: {path}")
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    addrs = []
    with p.open() as f:
        for line in f:
            s = line.strip()
            if not s or s.startswith("#"):
                continue
            addrs.append(s)
    print(f"[BATCH] Loaded {len(addrs)} addresses")
    return addrs


def _pct(v) -> str:
    return f"{v:.2f}" if isinstance(v, (int, float)) else ""


def flatten_result(chain: str, address: str, res: dict) -> dict:
    details = res.get("details") or {}
    holders = details.get("holders") or {}
    lp = details.get("liquidity") or {}
    pi = lp.get("priceImpact") or {}
    return {
        "chain": chain,
        "address": address,
        "symbol": (details.get("tokenMeta") or {}).get("symbol", ""),
        "riskScore": res.get("riskScore"),
        "badges": ";".join(res.get("badges") or []),
        "top10Pct": _pct(holders.get("top10Pct")),
        "circTop10Pct": _pct(holders.get("circTop10Pct")),
        "liquidityType": lp.get("type", ""),
        "primaryPool": lp.get("primaryPool") or "",
        "buyUsd10000": pi.get("buyUsd10000") or "",
        "sellUsd10000": pi.get("sellUsd10000") or "",
        "error": "",
    }


def error_row(chain: str, address: str, err: Exception) -> dict:
    row = {k: "" for k in FIELDNAMES}
    row.update({"chain": chain, "address": address, "error": str(err)})
    return row


def run_batch(chain: str, addresses: list[str], settings: ScanSettings, concurrency: int = 2):
    """Returns (csv rows, json results) in completion order."""
    rows, json_out = [], []

    def work(addr: str):
        print(f"[BATCH][WORK] Start {addr}")
        try:
            res = scan_token(chain, addr, settings=settings)
            return flatten_result(chain, addr, res), {"chain": chain, "address": addr, **res}
        except Exception as e:
            print(f"[BATCH][WORK] scan FAIL {addr} -> {e}")
            return error_row(chain, addr, e), {"chain": chain, "address": addr, "error": str(e)}

    with ThreadPoolExecutor(max_workers=max(1, concurrency)) as ex:
        futs = {ex.submit(work, a): a for a in addresses}
        for fut in as_completed(futs):
            row, res = fut.result()
            rows.append(row)
            json_out.append(res)
            print(f"[BATCH] Result {row['address']} -> score={row['riskScore']} "
                  f"{'(err:' + row['error'] + ')' if row['error'] else ''}")
    return rows, json_out


def main(argv=None):
    ap = argparse.ArgumentParser(description="Token Risk Scan - Batch Scanner")
    ap.add_argument("--chain", default="eth", choices=["eth"], help="Chain to scan")
    ap.add_argument("--infile", required=True, help="Path to text file with one address per line")
    ap.add_argument("--out-csv", default="batch_scan.csv", help="CSV output path")
    ap.add_argument("--out-json", default="batch_scan.json", help="JSON output path")
    ap.add_argument("--concurrency", type=int, default=2, help="Parallel scans")
    args = ap.parse_args(argv)
    print(f"[BATCH] Args -> chain={args.chain} infile={args.infile} conc={args.concurrency}")

    try:
        addresses = load_addresses(args.infile)
    except FileNotFoundError as e:
        print(f"[BATCH] ❌ {e}", file=sys.stderr)
        return 1

    rows, json_out = run_batch(args.chain, addresses, ScanSettings.from_env(), args.concurrency)

    with open(args.out_csv, "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=FIELDNAMES)
        w.writeheader()
        w.writerows(rows)
    print(f"[BATCH] Wrote CSV -> {args.out_csv}")

    with open(args.out_json, "w") as f:
        json.dump(json_out, f, indent=2)
    print(f"[BATCH] Wrote JSON -> {args.out_json}")

    print("✅ Done. CSV →", args.out_csv, " JSON →", args.out_json)
    return 0


if __name__ == "__main__":
    sys.exit(main())
