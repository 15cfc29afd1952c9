"""Pydantic models for transactions"""

from datetime import datetime
from typing import Any

from pydantic import Field

from .base import MidazModel


class TransactionStatus(MidazModel):
    code: str = ""
    description: str | None = None


class Transaction(MidazModel):
    """Transaction as returned by the transaction service"""

    id: str
    organization_id: str = ""
    ledger_id: str = ""
    template: str | None = None
    amount: str | None = None
    asset_code: str | None = None
    route: str | None = None
    status: TransactionStatus | None = None
    chart_of_accounts_group_name: str | None = None
    description: str | None = None
    source: list[str] = Field(default_factory=list)
    destination: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    metadata: dict[str, Any] | None = None
