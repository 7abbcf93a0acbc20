# api.py
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Literal, Optional

print("[API] Booting FastAPI...")

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
from pydantic import BaseModel, Field

_loaded = load_dotenv()
print(f"[API] .env loaded: {_loaded}")
print(f"[API] ENV presence -> ETH RPC: {'yes' if os.getenv('ETH_RPC_URL') else 'no'}, "
      f"ETHPLORER_API_KEY: {'yes' if os.getenv('ETHPLORER_API_KEY') else 'no'}")

from riskscan.config import ScanSettings
from riskscan.core.analyze import scan_token

SETTINGS = ScanSettings.from_env()
print(f"[API] Settings resolved: tiers={SETTINGS.fee_tiers} impact_mode={SETTINGS.impact_mode}")

app = FastAPI(title="Token Risk Scan API", version="0.4.0")
print("[API] FastAPI instance created.")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api = APIRouter(prefix="/api")


def error_response(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": True, "message": message})


@app.exception_handler(RequestValidationError)
async def validation_error(_request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()) if x != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    print(f"[API] validation error -> {parts}")
    return error_response(400, "; ".join(parts) or "Invalid request")


class ScanCfg(BaseModel):
    rpcUrl: Optional[str] = None
    weth: Optional[str] = None
    feeTiers: Optional[List[int]] = Field(default=None, min_length=1)


class ScanBody(BaseModel):
    chain: Literal["eth"] = "eth"
    address: str = Field(min_length=1)
    cfg: Optional[ScanCfg] = None


class BatchJob(BaseModel):
    chain: Literal["eth"] = "eth"
    addresses: List[str]
    concurrency: int = 2


def _run_scan(chain: str, address: str, cfg: Optional[ScanCfg] = None):
    overrides = {}
    if cfg is not None:
        overrides = {"rpc_url": cfg.rpcUrl, "weth": cfg.weth, "fee_tiers": cfg.feeTiers}
    try:
        out = scan_token(chain, address, settings=SETTINGS, overrides=overrides)
        print(f"[API] scan OK address={address} chain={chain} score={out.get('riskScore')}")
        return out
    except ValueError as ve:
        print(f"[API] scan ValueError address={address} chain={chain} -> {ve}")
        return error_response(400, str(ve))
    except Exception as e:
        print(f"[API] scan ERROR address={address} chain={chain} -> {e}")
        return error_response(500, str(e) or "Unknown error")


@api.get("/health")
def health():
    print("[API] GET /api/health")
    return {"ok": True}


@api.post("/scan")
def scan(body: ScanBody):
    print(f"[API] POST /api/scan address={body.address} chain={body.chain}")
    return _run_scan(body.chain, body.address, body.cfg)


@api.get("/scan/{address}")
def scan_get(address: str, chain: str = Query(default="eth", pattern="^eth$")):
    print(f"[API] GET /api/scan/{address}?chain={chain}")
    return _run_scan(chain, address)


@api.post("/batch")
def batch(job: BatchJob):
    print(f"[API] POST /api/batch -> chain={job.chain} count={len(job.addresses)} conc={job.concurrency}")
    if not job.addresses:
        print("[API] /batch error: empty addresses")
        return error_response(400, "addresses list is empty")

    def work(addr: str):
        try:
            res = scan_token(job.chain, addr, settings=SETTINGS)
            return {"chain": job.chain, "address": addr, **res}
        except Exception as e:
            print(f"[API][WORK] FAIL {addr} -> {e}")
            return {"chain": job.chain, "address": addr, "error": str(e)}

    out = []
    with ThreadPoolExecutor(max_workers=max(1, min(8, job.concurrency))) as ex:
        futs = {ex.submit(work, a): a for a in job.addresses}
        for fut in as_completed(futs):
            out.append(fut.result())
    print(f"[API] /batch completed -> {len(out)} results")
    return {"count": len(out), "results": out}


app.include_router(api)
print("[API] Router included.")
