"""Entity service protocols

These protocols let callers depend on the service interface and swap in
fakes for testing.
"""

from typing import Any, Protocol, runtime_checkable

from midaz_client.infrastructure.http import RequestContext
from midaz_client.models import AssetRate, CreateAssetRateInput, Transaction


@runtime_checkable
class AssetRatesService(Protocol):
    """Protocol for asset rate operations."""

    async def get_asset_rate(
        self,
        organization_id: str,
        ledger_id: str,
        source_asset_code: str,
        destination_asset_code: str,
        ctx: RequestContext | None = None,
    ) -> AssetRate:
        """Get the rate converting one asset into another."""
        ...

    async def create_or_update_asset_rate(
        self,
        organization_id: str,
        ledger_id: str,
        rate_input: CreateAssetRateInput | dict[str, Any] | None,
        ctx: RequestContext | None = None,
    ) -> AssetRate:
        """Create or update the rate for an asset pair."""
        ...


@runtime_checkable
class TransactionsService(Protocol):
    """Protocol for transaction operations."""

    async def create_transaction_with_dsl_file(
        self,
        organization_id: str,
        ledger_id: str,
        dsl_content: bytes,
        ctx: RequestContext | None = None,
    ) -> Transaction:
        """Create a transaction from a DSL script."""
        ...
