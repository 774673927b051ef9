"""
Known tokens and the per-provider identifiers needed to query them.

A provider can serve a token only when the token carries that provider's
identifier: Codex and DeFiLlama prices need the mint address, CoinGecko
needs a coin id, and DeFiLlama TVL needs a protocol slug.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from .providers.base import ProviderId

SOLANA_NETWORK_ID = 1399811149

# Categories drive the synthetic distribution profile (see synthetic.py)
CATEGORY_METADAO = "metadao"
CATEGORY_METADAO_ICO = "metadao-ico"
CATEGORY_FUTARCHY_DAO = "futarchy-dao"
CATEGORY_VC_BACKED = "vc-backed"
CATEGORY_COMMUNITY = "community"


@dataclass(frozen=True)
class Token:
    id: str
    name: str
    symbol: str
    address: str
    category: str
    coingecko_id: Optional[str] = None
    defillama_slug: Optional[str] = None
    network_id: int = SOLANA_NETWORK_ID
    decimals: int = 9


TOKEN_REGISTRY: List[Token] = [
    Token(
        id="meta",
        name="MetaDAO",
        symbol="META",
        address="METADDFL6wWMWEoKTFJwcThTbUmtarRJZjRpzUvkxhr",
        category=CATEGORY_METADAO,
        coingecko_id="meta-dao",
    ),
    Token(
        id="jup",
        name="Jupiter",
        symbol="JUP",
        address="JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN",
        category=CATEGORY_VC_BACKED,
        coingecko_id="jupiter-exchange-solana",
        defillama_slug="jupiter",
        decimals=6,
    ),
    Token(
        id="jto",
        name="Jito",
        symbol="JTO",
        address="jtojtomepa8beP8AuQc6eXt5FriJwfFMwQx2v2f9mCL",
        category=CATEGORY_VC_BACKED,
        coingecko_id="jito-governance-token",
        defillama_slug="jito",
    ),
    Token(
        id="ray",
        name="Raydium",
        symbol="RAY",
        address="4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R",
        category=CATEGORY_VC_BACKED,
        coingecko_id="raydium",
        defillama_slug="raydium",
        decimals=6,
    ),
    Token(
        id="bonk",
        name="Bonk",
        symbol="BONK",
        address="DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
        category=CATEGORY_COMMUNITY,
        coingecko_id="bonk",
        decimals=5,
    ),
    Token(
        id="wif",
        name="dogwifhat",
        symbol="WIF",
        address="EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm",
        category=CATEGORY_COMMUNITY,
        coingecko_id="dogwifcoin",
        decimals=6,
    ),
    Token(
        id="sol",
        name="Solana",
        symbol="SOL",
        address="So11111111111111111111111111111111111111112",
        category=CATEGORY_COMMUNITY,
        coingecko_id="solana",
    ),
]

TOKEN_MAP: Dict[str, Token] = {t.id: t for t in TOKEN_REGISTRY}


def get_token(token_id: str) -> Optional[Token]:
    """Look up by registry id, falling back to a case-insensitive mint address match."""
    token = TOKEN_MAP.get(token_id.lower())
    if token is not None:
        return token
    needle = token_id.lower()
    for t in TOKEN_REGISTRY:
        if t.address.lower() == needle:
            return t
    return None


def provider_key(token: Optional[Token], provider: ProviderId, kind: str) -> Optional[str]:
    """
    Identifier `provider` needs to serve `kind` for `token`, or None if it cannot.

    kind is one of price, price_history, batch_prices, holders, metrics, tvl.
    """
    if token is None or provider == ProviderId.MOCK:
        return None
    if provider == ProviderId.COINGECKO:
        return token.coingecko_id if kind in ("price", "price_history", "batch_prices") else None
    if provider == ProviderId.DEFILLAMA:
        if kind == "tvl":
            return token.defillama_slug
        return token.address if kind in ("price", "price_history", "batch_prices") else None
    if provider == ProviderId.CODEX:
        return token.address if kind in ("price", "price_history", "holders", "metrics") else None
    return None
