# riskscan/utils/token_meta.py
from web3 import Web3

from riskscan.core.types import TokenMeta
from riskscan.utils.evidence import EvidenceLog

ERC20_ABI = [
    {"name": "symbol", "outputs": [{"type": "string", "name": ""}], "inputs": [], "stateMutability": "view", "type": "function"},
    {"name": "decimals", "outputs": [{"type": "uint8", "name": ""}], "inputs": [], "stateMutability": "view", "type": "function"},
    {"name": "totalSupply", "outputs": [{"type": "uint256", "name": ""}], "inputs": [], "stateMutability": "view", "type": "function"},
]


def read_token_meta(w3: Web3, token: str, evidence: EvidenceLog) -> TokenMeta:
    """symbol/decimals/totalSupply, or the TOKEN/18/0 fallback. Never raises."""
    try:
        c = w3.eth.contract(address=Web3.to_checksum_address(token), abi=ERC20_ABI)
        symbol = c.functions.symbol().call()
        decimals = c.functions.decimals().call()
        total_supply = c.functions.totalSupply().call()
        meta = TokenMeta(symbol=str(symbol), decimals=int(decimals), total_supply=int(total_supply))
        print(f"[token_meta] {token} -> {meta.symbol} dec={meta.decimals} supply={meta.total_supply}")
        return meta
    except Exception as e:
        print(f"[token_meta] read FAIL for {token}: {e}")
        evidence.add("token meta failed")
        return TokenMeta()
