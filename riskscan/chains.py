# riskscan/chains.py
# Purpose: Chain config + web3 factory (Web3 v7). Ethereum mainnet only.

from web3 import Web3

print("[CHAINS] module loaded (web3 v7)")

DEFAULT_RPC_URL = "https://eth.llamarpc.com"
DEFAULT_SUBGRAPH_URL = "https://api.thegraph.com/subgraphs/name/uniswap/uniswap-v3"
ETHPLORER_BASE = "https://api.ethplorer.io"

CHAINS = {
    "eth": {
        "name": "eth",
        "chainid": 1,
        "weth": Web3.to_checksum_address("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"),
        "fee_tiers": (500, 3000, 10000),
        "univ3_factory": Web3.to_checksum_address("0x1F98431c8aD98523631AE4a59f267346ea31F984"),
        "univ3_quoter_v2": Web3.to_checksum_address("0x61fFE014bA17989E743c5F6cB21bF9697530B21e"),
        "univ3_quoter_v1": Web3.to_checksum_address("0xb27308f9F90D607463bb33eA1BeBb41C27CE5AB6"),
    },
}


def get_chain_config(chain_key: str) -> dict:
    if chain_key not in CHAINS:
        raise ValueError(f"Unsupported chain: {chain_key!r} (only 'eth' is supported)")
    return CHAINS[chain_key]


def get_w3(rpc_url: str, timeout: float = 15) -> Web3:
    """Build an HTTP web3 client. Does not touch the network."""
    rpc = (rpc_url or "").strip().rstrip("\r")
    if not rpc or rpc in {"https://", "http://"}:
        print(f"[CHAINS] Missing/invalid RPC URL, using default {DEFAULT_RPC_URL}")
        rpc = DEFAULT_RPC_URL
    print(f"[CHAINS] HTTPProvider -> {rpc}")
    return Web3(Web3.HTTPProvider(rpc, request_kwargs={"timeout": timeout}))


__all__ = ["CHAINS", "DEFAULT_RPC_URL", "DEFAULT_SUBGRAPH_URL", "ETHPLORER_BASE", "get_chain_config", "get_w3"]
