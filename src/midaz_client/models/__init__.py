"""API request and response models"""

from .asset_rate import AssetRate, AssetRatesResponse, CreateAssetRateInput
from .base import MidazModel
from .transaction import Transaction, TransactionStatus

__all__ = [
    "AssetRate",
    "AssetRatesResponse",
    "CreateAssetRateInput",
    "MidazModel",
    "Transaction",
    "TransactionStatus",
]
