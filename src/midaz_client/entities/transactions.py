"""TransactionsEntity - transaction creation through the DSL endpoint"""

from midaz_client.infrastructure.http import RequestContext
from midaz_client.models import Transaction
from midaz_client.shared.exceptions import ValidationError

from .base import BaseEntity

RESOURCE = "transaction"

# Sections every transaction script must declare
DSL_REQUIRED_SECTIONS = ("send", "distribute")


def validate_dsl_content(operation: str, content: bytes) -> None:
    """Check a DSL script before upload

    Raises:
        ValidationError: If the script is blank, not UTF-8 or lacks a section
    """
    if not content or not content.strip():
        raise ValidationError(operation, "DSL content is required")

    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError(operation, "DSL content must be valid UTF-8") from e

    lowered = text.lower()
    if not all(section in lowered for section in DSL_REQUIRED_SECTIONS):
        raise ValidationError(operation, "DSL content missing required sections")


class TransactionsEntity(BaseEntity):
    """Transaction operations against the transaction service"""

    service = "transaction"

    async def create_transaction_with_dsl_file(
        self,
        organization_id: str,
        ledger_id: str,
        dsl_content: bytes,
        ctx: RequestContext | None = None,
    ) -> Transaction:
        """Create a transaction from a DSL script

        The script is uploaded unchanged as text/plain.

        Args:
            organization_id: Organization owning the ledger
            ledger_id: Ledger the transaction is posted to
            dsl_content: Raw script bytes
            ctx: Optional per-call context (idempotency key, deadline)

        Returns:
            Created Transaction

        Raises:
            MissingParameterError: If an identifier is empty
            ValidationError: If the script is unusable
            MidazError: If the request fails
        """
        operation = "CreateTransactionWithDSLFile"
        self._require(operation, organizationID=organization_id, ledgerID=ledger_id)
        validate_dsl_content(operation, dsl_content)

        url = self._build_url(
            "organizations",
            organization_id,
            "ledgers",
            ledger_id,
            "transactions",
            "dsl",
        )
        return await self._executor.send_raw_request(
            "POST",
            url,
            operation=operation,
            headers={"Content-Type": "text/plain"},
            body=dsl_content,
            target=Transaction,
            ctx=ctx,
            resource=RESOURCE,
        )
