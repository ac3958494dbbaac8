"""Static table for the fixed basket of supported coins."""

COIN_PROFILES = {
    "BTC": {
        "id": "bitcoin",
        "name": "Bitcoin",
        "fallback": {"price": 43250.0, "change24h": 2.5, "marketCap": 850_000_000_000.0, "volume": 25_000_000_000.0},
        "address_pattern": r"^[13][a-km-zA-HJ-NP-Z1-9]{25,34}$|^bc1[a-z0-9]{39,59}$",
        "network_fee": 0.0001,
        "confirmation_time": "10-60 minutes",
        "explorer": "https://blockstream.info/tx/{tx_hash}",
    },
    "ETH": {
        "id": "ethereum",
        "name": "Ethereum",
        "fallback": {"price": 2580.0, "change24h": -1.2, "marketCap": 310_000_000_000.0, "volume": 15_000_000_000.0},
        "address_pattern": r"^0x[a-fA-F0-9]{40}$",
        "network_fee": 0.002,
        "confirmation_time": "1-5 minutes",
        "explorer": "https://etherscan.io/tx/{tx_hash}",
    },
    "ADA": {
        "id": "cardano",
        "name": "Cardano",
        "fallback": {"price": 0.52, "change24h": 4.1, "marketCap": 18_000_000_000.0, "volume": 800_000_000.0},
        "address_pattern": r"^addr1[a-z0-9]{98}$",
        "network_fee": 0.17,
        "confirmation_time": "2-5 minutes",
        "explorer": "https://cardanoscan.io/transaction/{tx_hash}",
    },
    "SOL": {
        "id": "solana",
        "name": "Solana",
        "fallback": {"price": 98.5, "change24h": 6.8, "marketCap": 42_000_000_000.0, "volume": 2_500_000_000.0},
        "address_pattern": r"^[1-9A-HJ-NP-Za-km-z]{32,44}$",
        "network_fee": 0.00025,
        "confirmation_time": "30 seconds",
        "explorer": "https://solscan.io/tx/{tx_hash}",
    },
    "MATIC": {
        "id": "polygon",
        "name": "Polygon",
        "fallback": {"price": 0.89, "change24h": -2.1, "marketCap": 8_500_000_000.0, "volume": 450_000_000.0},
        "address_pattern": r"^0x[a-fA-F0-9]{40}$",
        "network_fee": 0.001,
        "confirmation_time": "1-3 minutes",
        "explorer": "https://polygonscan.com/tx/{tx_hash}",
    },
    "BNB": {
        "id": "binancecoin",
        "name": "BNB",
        "fallback": {"price": 310.0, "change24h": 1.8, "marketCap": 47_000_000_000.0, "volume": 1_800_000_000.0},
        "address_pattern": r"^0x[a-fA-F0-9]{40}$",
        "network_fee": 0.0005,
        "confirmation_time": "3 seconds",
        "explorer": "https://bscscan.com/tx/{tx_hash}",
    },
    "XRP": {
        "id": "ripple",
        "name": "XRP",
        "fallback": {"price": 0.63, "change24h": -0.5, "marketCap": 34_000_000_000.0, "volume": 1_200_000_000.0},
        "address_pattern": r"^r[1-9A-HJ-NP-Za-km-z]{25,34}$",
        "network_fee": 0.00001,
        "confirmation_time": "3-5 seconds",
        "explorer": "https://xrpscan.com/tx/{tx_hash}",
    },
    "DOGE": {
        "id": "dogecoin",
        "name": "Dogecoin",
        "fallback": {"price": 0.082, "change24h": 3.2, "marketCap": 12_000_000_000.0, "volume": 650_000_000.0},
        "address_pattern": r"^D{1}[5-9A-HJ-NP-U]{1}[1-9A-HJ-NP-Za-km-z]{32}$",
        "network_fee": 1.0,
        "confirmation_time": "1 minute",
        "explorer": "https://dogechain.info/tx/{tx_hash}",
    },
    "LINK": {
        "id": "chainlink",
        "name": "Chainlink",
        "fallback": {"price": 14.5, "change24h": 2.1, "marketCap": 8_500_000_000.0, "volume": 420_000_000.0},
        "address_pattern": r"^0x[a-fA-F0-9]{40}$",
        "network_fee": 0.001,
        "confirmation_time": "1-5 minutes",
        "explorer": "https://etherscan.io/tx/{tx_hash}",
    },
    "DOT": {
        "id": "polkadot",
        "name": "Polkadot",
        "fallback": {"price": 7.2, "change24h": -1.8, "marketCap": 9_200_000_000.0, "volume": 380_000_000.0},
        "address_pattern": r"^1[a-zA-Z0-9]{47}$",
        "network_fee": 0.01,
        "confirmation_time": "6 seconds",
        "explorer": "https://polkadot.subscan.io/extrinsic/{tx_hash}",
    },
}

# ticker -> CoinGecko id
COIN_IDS = {symbol: profile["id"] for symbol, profile in COIN_PROFILES.items()}

DEFAULT_NETWORK_FEE = 0.001
DEFAULT_CONFIRMATION_TIME = "1-5 minutes"
DEFAULT_EXPLORER = "https://blockchain.info/tx/{tx_hash}"


def coingecko_id(symbol: str) -> str:
    """Map a ticker to its CoinGecko id; unknown tickers fall back to the lowercase ticker."""
    profile = COIN_PROFILES.get(symbol)
    if profile is None:
        return symbol.lower()
    return profile["id"]
