"""Entity services built on the shared RequestExecutor

AssetRatesEntity - Asset exchange rates
TransactionsEntity - Transactions from DSL scripts
"""

from .asset_rates import AssetRatesEntity
from .base import BaseEntity
from .protocols import AssetRatesService, TransactionsService
from .transactions import TransactionsEntity, validate_dsl_content

__all__ = [
    "AssetRatesEntity",
    "AssetRatesService",
    "BaseEntity",
    "TransactionsEntity",
    "TransactionsService",
    "validate_dsl_content",
]
