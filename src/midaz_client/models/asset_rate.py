"""Pydantic models for asset rates

An asset rate is the conversion ratio between two assets of the same ledger.
"""

from datetime import datetime
from typing import Any

from pydantic import Field

from .base import MidazModel


class AssetRate(MidazModel):
    """Conversion rate between two assets"""

    id: str = ""
    organization_id: str = ""
    ledger_id: str = ""
    external_id: str | None = None
    from_asset: str = Field(..., alias="from", description="Source asset code")
    to_asset: str = Field(..., alias="to", description="Target asset code")
    rate: float = Field(..., description="Conversion rate")
    scale: float | None = None
    source: str | None = None
    ttl: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    effective_at: datetime | None = None
    expiration_at: datetime | None = None
    metadata: dict[str, Any] | None = None


class CreateAssetRateInput(MidazModel):
    """Payload to create or update an asset rate"""

    from_asset: str = Field(..., alias="from", min_length=1)
    to_asset: str = Field(..., alias="to", min_length=1)
    rate: int = Field(..., gt=0, description="Conversion rate value")
    scale: int | None = Field(None, ge=0, description="Decimal places")
    source: str | None = None
    ttl: int | None = Field(None, ge=0, description="Time-to-live in seconds")
    external_id: str | None = None
    metadata: dict[str, Any] | None = None


class AssetRatesResponse(MidazModel):
    """Paginated list of asset rates"""

    items: list[AssetRate] = Field(default_factory=list)
    limit: int | None = None
    next_cursor: str | None = Field(None, alias="next_cursor")
    prev_cursor: str | None = Field(None, alias="prev_cursor")
