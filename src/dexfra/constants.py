"""Dexfra endpoints, networks, marketplace categories and protocol constants."""

MARKETPLACE_URL = "https://dexfra.fun"
API_BASE_URL = "https://api.dexfra.fun"
FACILITATOR_URL = "https://facilitator.payai.network"
DEFAULT_NETWORK = "base-sepolia"

# x402 wire contract
X402_VERSION = 1
PAYMENT_HEADER = "x-payment"
SETTLEMENT_HEADER = "x-payment-response"
PAYMENT_REQUIRED_STATUS = 402
SUPPORTED_SCHEMES = ("exact", "upto")

USDC_DECIMALS = 6
DEFAULT_MAX_AMOUNT_USDC = 1.0


class SupportedNetwork:
    SOLANA_DEVNET = "solana-devnet"
    SOLANA_MAINNET = "solana-mainnet"
    BASE_MAINNET = "base-mainnet"
    BASE_SEPOLIA = "base-sepolia"
    ETHEREUM_MAINNET = "ethereum-mainnet"
    ETHEREUM_SEPOLIA = "ethereum-sepolia"


SUPPORTED_NETWORKS = (
    SupportedNetwork.SOLANA_DEVNET,
    SupportedNetwork.SOLANA_MAINNET,
    SupportedNetwork.BASE_MAINNET,
    SupportedNetwork.BASE_SEPOLIA,
    SupportedNetwork.ETHEREUM_MAINNET,
    SupportedNetwork.ETHEREUM_SEPOLIA,
)

# JSON-RPC endpoints for the EVM networks the balance reader can query
DEFAULT_RPC_URLS = {
    SupportedNetwork.BASE_MAINNET: "https://mainnet.base.org",
    SupportedNetwork.BASE_SEPOLIA: "https://sepolia.base.org",
    SupportedNetwork.ETHEREUM_MAINNET: "https://ethereum-rpc.publicnode.com",
    SupportedNetwork.ETHEREUM_SEPOLIA: "https://ethereum-sepolia-rpc.publicnode.com",
}

NATIVE_SYMBOLS = {
    SupportedNetwork.BASE_MAINNET: "ETH",
    SupportedNetwork.BASE_SEPOLIA: "ETH",
    SupportedNetwork.ETHEREUM_MAINNET: "ETH",
    SupportedNetwork.ETHEREUM_SEPOLIA: "ETH",
}

MARKETPLACE_CATEGORIES = {
    "TOKEN_DATA": {
        "id": "6911956bea5afb9fc66607e4",
        "name": "Token Data",
        "url": f"{MARKETPLACE_URL}/categories/6911956bea5afb9fc66607e4",
        "description": "APIs for token price, metadata, and market data",
    },
    "WALLET_DATA": {
        "id": "6910ceb89931921d7a492a44",
        "name": "Wallet Data",
        "url": f"{MARKETPLACE_URL}/categories/6910ceb89931921d7a492a44",
        "description": "APIs for wallet analysis, portfolio tracking, and transaction history",
    },
    "MEME_FACTORY": {
        "id": "6910cec39931921d7a492a46",
        "name": "Meme Factory",
        "url": f"{MARKETPLACE_URL}/categories/6910cec39931921d7a492a46",
        "description": "APIs for meme coin creation, discovery, and analytics",
    },
    "SMART_MONEY": {
        "id": "691345b3bb6dc6ef219142d0",
        "name": "Smart Money",
        "url": f"{MARKETPLACE_URL}/categories/691345b3bb6dc6ef219142d0",
        "description": "APIs for smart money tracking, whale movements, and trading signals",
    },
}

CATEGORY_IDS = {key: value["id"] for key, value in MARKETPLACE_CATEGORIES.items()}
