"""
Constants for the Polymarket trading tools

Single source of truth for fixed protocol values: chain, contract addresses,
ABIs, CLOB authentication schema and order construction defaults.
Operator-tunable values (URLs, gas, timeouts, credentials) live in
config.settings and can be overridden from the environment.

Key Principles:
- All constants are Final (immutable)
- Values that the exchange or chain dictates are never read from env
"""

from typing import Final, FrozenSet, List, Dict, Any

# ============================================================================
# 1. CHAIN & CONTRACTS
# ============================================================================
# Polymarket settles on Polygon PoS mainnet.
#
# USDC (bridged, 6 decimals)    → collateral for every market
# CTF (ConditionalTokens)       → ERC1155 outcome tokens, splits USDC into YES/NO
# CTF EXCHANGE                  → matches signed CLOB orders on-chain
#
# Trading requires:
#   USDC.allowance(wallet, CTF)               > 0
#   USDC.allowance(wallet, CTF_EXCHANGE)      > 0
#   CTF.isApprovedForAll(wallet, CTF_EXCHANGE) == True
# ============================================================================

POLYGON_CHAIN_ID: Final[int] = 137

USDC_ADDRESS: Final[str] = "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174"
CTF_CONTRACT_ADDRESS: Final[str] = "0x4D97DCd97eC945f40cF65F87097ACe5EA0476045"
CTF_EXCHANGE_ADDRESS: Final[str] = "0x4bFb41d5B3570DeFd03C39a9A4D8dE6Bd8B8982E"

# Infinite approval amount (2^256 - 1)
MAX_UINT256: Final[int] = 2**256 - 1

USDC_DECIMALS: Final[int] = 6

ERC20_ABI: Final[List[Dict[str, Any]]] = [
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function",
    },
]

# ERC1155 operator approval subset of the ConditionalTokens contract
CTF_ABI: Final[List[Dict[str, Any]]] = [
    {
        "constant": True,
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "operator", "type": "address"},
        ],
        "name": "isApprovedForAll",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "operator", "type": "address"},
            {"name": "approved", "type": "bool"},
        ],
        "name": "setApprovalForAll",
        "outputs": [],
        "type": "function",
    },
]

# ============================================================================
# 2. CLOB AUTHENTICATION (L1)
# ============================================================================
# L1 auth is an EIP-712 signature over a ClobAuth struct. The exchange
# returns the same L2 credential triple for a given (wallet, nonce), so the
# nonce is pinned to zero.
# ============================================================================

CLOB_AUTH_DOMAIN_NAME: Final[str] = "ClobAuthDomain"
CLOB_AUTH_DOMAIN_VERSION: Final[str] = "1"
CLOB_AUTH_MESSAGE: Final[str] = "This message attests that I control the given wallet"
CLOB_AUTH_NONCE: Final[int] = 0

CLOB_AUTH_TYPES: Final[Dict[str, List[Dict[str, str]]]] = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
    ],
    "ClobAuth": [
        {"name": "address", "type": "address"},
        {"name": "timestamp", "type": "string"},
        {"name": "nonce", "type": "uint256"},
        {"name": "message", "type": "string"},
    ],
}

# ============================================================================
# 3. ORDER CONSTRUCTION
# ============================================================================

# Fallback when an order is placed by raw token id without a tick size.
# Markets quoting in 0.001 reject prices that are not multiples of it.
DEFAULT_TICK_SIZE: Final[str] = "0.01"

VALID_TICK_SIZES: Final[FrozenSet[str]] = frozenset({"0.1", "0.01", "0.001", "0.0001"})

# Added to every GTD expiration to cover signing + submission latency
EXPIRATION_BUFFER_MS: Final[int] = 10_000

DEFAULT_EXPIRATION_MINUTES: Final[int] = 60

OUTCOME_TOKEN_INDEX: Final[Dict[str, int]] = {
    "YES": 0,
    "NO": 1,
}

# ============================================================================
# 4. ENDPOINT DEFAULTS
# ============================================================================

CLOB_API_URL: Final[str] = "https://clob.polymarket.com"
POLYMARKET_GAMMA_API_URL: Final[str] = "https://gamma-api.polymarket.com"
POLYMARKET_DATA_API_URL: Final[str] = "https://data-api.polymarket.com"
POLYGON_RPC_URL: Final[str] = "https://polygon-rpc.com"

API_TIMEOUT_SEC: Final[int] = 30
TX_RECEIPT_TIMEOUT_SEC: Final[int] = 120

# Approval transactions use a fixed gas price/limit
APPROVAL_GAS_PRICE_GWEI: Final[int] = 100
APPROVAL_GAS_LIMIT: Final[int] = 200_000

DEFAULT_MARKET_LIST_LIMIT: Final[int] = 20
POSITIONS_PAGE_LIMIT: Final[int] = 50

# ============================================================================
# 5. LOGGING
# ============================================================================

LOG_LEVEL: Final[str] = "INFO"
MAX_LOG_FILE_SIZE: Final[int] = 20 * 1024 * 1024
LOG_BACKUP_COUNT: Final[int] = 5
STRUCTURED_LOGGING: Final[bool] = True

# Never logged or echoed back in tool responses
SECRET_KEYS: Final[FrozenSet[str]] = frozenset({
    "POLYMARKET_PRIVATE_KEY",
    "WALLET_PRIVATE_KEY",
    "CLOB_SECRET",
    "CLOB_PASS_PHRASE",
    "POLY_API_SECRET",
    "POLY_API_PASS",
})
