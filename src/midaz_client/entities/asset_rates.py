"""AssetRatesEntity - exchange rates between assets of a ledger"""

from datetime import datetime, timezone
from typing import Any

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from midaz_client.infrastructure.http import RequestContext
from midaz_client.models import AssetRate, AssetRatesResponse, CreateAssetRateInput
from midaz_client.shared.exceptions import (
    MissingParameterError,
    NotFoundError,
    ValidationError,
)

from .base import BaseEntity

RESOURCE = "asset rate"


def _ten_years_after(moment: datetime) -> datetime:
    try:
        return moment.replace(year=moment.year + 10)
    except ValueError:
        # 29 February with no leap day ten years later
        return moment.replace(year=moment.year + 10, day=28)


class AssetRatesEntity(BaseEntity):
    """Asset rate operations against the transaction service"""

    service = "transaction"

    def _rates_url(self, organization_id: str, ledger_id: str, *suffix: str) -> str:
        return self._build_url(
            "organizations",
            organization_id,
            "ledgers",
            ledger_id,
            "asset-rates",
            *suffix,
        )

    async def get_asset_rate(
        self,
        organization_id: str,
        ledger_id: str,
        source_asset_code: str,
        destination_asset_code: str,
        ctx: RequestContext | None = None,
    ) -> AssetRate:
        """Get the rate converting one asset into another

        Converting an asset into itself always has rate 1.0 and is answered
        locally without calling the server.

        Args:
            organization_id: Organization owning the ledger
            ledger_id: Ledger holding both assets
            source_asset_code: Asset converted from (e.g. "USD")
            destination_asset_code: Asset converted to (e.g. "BRL")
            ctx: Optional per-call context

        Returns:
            Matching AssetRate

        Raises:
            MissingParameterError: If any identifier is empty
            NotFoundError: If no rate exists for the pair
            MidazError: If the request fails
        """
        operation = "GetAssetRate"
        self._require(
            operation,
            organizationID=organization_id,
            ledgerID=ledger_id,
            sourceAssetCode=source_asset_code,
            destinationAssetCode=destination_asset_code,
        )

        if source_asset_code == destination_asset_code:
            now = datetime.now(timezone.utc)
            return AssetRate(
                id=f"generated-{source_asset_code}-{destination_asset_code}",
                organization_id=organization_id,
                ledger_id=ledger_id,
                from_asset=source_asset_code,
                to_asset=destination_asset_code,
                rate=1.0,
                created_at=now,
                updated_at=now,
                effective_at=now,
                expiration_at=_ten_years_after(now),
            )

        url = self._rates_url(organization_id, ledger_id, "from", source_asset_code)
        response: AssetRatesResponse = await self._executor.send_request(
            "GET",
            url,
            operation=operation,
            target=AssetRatesResponse,
            ctx=ctx,
            resource=RESOURCE,
        )

        for rate in response.items if response else []:
            if rate.to_asset == destination_asset_code:
                return rate

        logger.debug(
            f"{operation}: no rate from {source_asset_code} "
            f"to {destination_asset_code}"
        )
        raise NotFoundError(
            operation,
            "asset rate not found",
            status_code=404,
            resource=RESOURCE,
            resource_id=f"{source_asset_code} to {destination_asset_code}",
        )

    async def create_or_update_asset_rate(
        self,
        organization_id: str,
        ledger_id: str,
        rate_input: CreateAssetRateInput | dict[str, Any] | None,
        ctx: RequestContext | None = None,
    ) -> AssetRate:
        """Create an asset rate, or update the existing one for the pair

        Args:
            organization_id: Organization owning the ledger
            ledger_id: Ledger to write the rate to
            rate_input: Rate details as a model or a camelCase mapping
            ctx: Optional per-call context

        Returns:
            The stored AssetRate

        Raises:
            MissingParameterError: If an identifier or the input is missing
            ValidationError: If the input breaks the model rules
            MidazError: If the request fails
        """
        operation = "CreateOrUpdateAssetRate"
        self._require(operation, organizationID=organization_id, ledgerID=ledger_id)
        if rate_input is None:
            raise MissingParameterError(operation, "input")

        try:
            payload = CreateAssetRateInput.model_validate(
                rate_input.model_dump(by_alias=True)
                if isinstance(rate_input, CreateAssetRateInput)
                else rate_input
            )
        except PydanticValidationError as e:
            raise ValidationError(
                operation,
                f"asset rate validation failed: {e}",
                status_code=400,
                resource=RESOURCE,
            ) from e

        return await self._executor.send_request(
            "POST",
            self._rates_url(organization_id, ledger_id),
            operation=operation,
            body=payload,
            target=AssetRate,
            ctx=ctx,
            resource=RESOURCE,
        )
