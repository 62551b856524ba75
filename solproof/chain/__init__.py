"""
Chain data access: models, JSON-RPC adapter and price oracle.
"""

from solproof.chain.models import (  # noqa: F401
    LAMPORTS_PER_SOL,
    AccountInfo,
    Instruction,
    ParsedInstruction,
    TokenMetadata,
    Transaction,
)
from solproof.chain.rpc_source import RpcChainDataSource  # noqa: F401
from solproof.chain.source import (  # noqa: F401
    ChainDataSource,
    CoinGeckoPriceOracle,
    PriceOracle,
    StaticPriceOracle,
)

__all__ = [
    "LAMPORTS_PER_SOL",
    "AccountInfo",
    "ChainDataSource",
    "CoinGeckoPriceOracle",
    "Instruction",
    "ParsedInstruction",
    "PriceOracle",
    "RpcChainDataSource",
    "StaticPriceOracle",
    "TokenMetadata",
    "Transaction",
]
