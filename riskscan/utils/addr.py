# riskscan/utils/addr.py
from web3 import Web3

ZERO = "0x0000000000000000000000000000000000000000"

# Burn sinks: tokens sent here never circulate again
BURN_ADDRESSES = frozenset(a.lower() for a in [
    ZERO,
    "0x000000000000000000000000000000000000dEaD",
    "0xdEAD000000000000000042069420694206942069",
    "0xdead000000000000000000000000000000000000",
    "0xdead00000000000000000000000000000000dead",
])

# Routers and exchange custody: balances that aren't a single market participant
INFRA_ADDRESSES = frozenset(a.lower() for a in [
    "0xE592427A0AEce92De3Edee1F18E0157C05861564",  # Uniswap V3 SwapRouter
    "0x68b3465833fb72A70ecDF485E0e4C7bD8665Fc45",  # Uniswap SwapRouter02
    "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D",  # Uniswap V2 Router
    "0x3f5CE5FBFe3E9af3971dD833D26BA9b5C936f0bE",  # Binance
    "0xF977814e90dA44bFA03b6295A0616a897441aceC",  # Binance 8
    "0x59A5208B32e627891C389ebafC644145224006E8",  # Bittrex
])


def normalize_evm_address(raw: str) -> str:
    """Strictly validate & checksum an EVM address."""
    s = (raw or "").strip()
    if "..." in s:
        raise ValueError("Ellipses ('...') are not allowed. Provide the full 42-char 0x address.")
    if not s.startswith("0x") or len(s) != 42:
        raise ValueError("Invalid address: must be 0x-prefixed and 42 characters long (0x + 40 hex).")
    try:
        return Web3.to_checksum_address(s)
    except Exception:
        raise ValueError("Invalid address: not a valid hex string.")


def is_zero(address: str) -> bool:
    return not address or address.lower() == ZERO


def is_non_circulating(address: str) -> bool:
    a = (address or "").lower()
    return a in BURN_ADDRESSES or a in INFRA_ADDRESSES


def sort_pair(a: str, b: str) -> tuple[str, str]:
    """Uniswap token0/token1 ordering (lowercase hex compare)."""
    return (a, b) if a.lower() < b.lower() else (b, a)
