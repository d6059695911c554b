"""
Shared plumbing for the order lifecycle orchestrators

Side effects that run after a committed status write (documents,
notifications) are best-effort: failures become warnings on the result
instead of exceptions.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from order_service.errors import GenerationError, StorageError, Unauthorized
from order_service.models.billing import Receipt
from order_service.repositories.billing_repository import InvoiceRepository
from order_service.services.auth_client import CurrentUser
from order_service.services.document_generator import RECEIPT, DocumentGenerator
from order_service.services.notifications import NotificationEvent, NotificationFanout

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """Primary entity of an operation plus admin-visible warnings"""
    entity: Any
    warnings: List[str] = field(default_factory=list)
    invoice: Any = None
    receipt: Any = None
    replayed: bool = False


def require_admin(user: CurrentUser) -> None:
    if not user.is_admin:
        raise Unauthorized("Admin privileges required")


class LifecycleOrchestrator:
    """Base class holding the collaborators every orchestrator uses"""

    def __init__(
        self,
        invoice_repository: InvoiceRepository,
        documents: DocumentGenerator,
        fanout: NotificationFanout,
    ):
        self.invoice_repository = invoice_repository
        self.documents = documents
        self.fanout = fanout

    async def _issue_receipt(
        self,
        warnings: List[str],
        user_id: str,
        amount,
        reference: str,
        fields: Dict[str, Any],
        invoice_id: Optional[int] = None,
        order_id: Optional[int] = None,
        raise_on_failure: bool = False,
    ) -> Optional[Receipt]:
        """
        Generate and store a receipt

        Failures are logged and returned as warnings, unless the receipt is
        the primary result of the call (raise_on_failure).
        """
        try:
            pdf_url = await self.documents.generate_document(RECEIPT, fields)
        except GenerationError as e:
            if raise_on_failure:
                raise
            logger.error("Receipt generation failed for payment %s: %s", reference, e)
            warnings.append(f"Payment applied but receipt generation failed ({e.message}); regenerate it manually")
            return None

        try:
            return self.invoice_repository.create_receipt(
                user_id=user_id,
                amount=amount,
                payment_reference=reference,
                pdf_url=pdf_url,
                invoice_id=invoice_id,
                order_id=order_id,
            )
        except StorageError as e:
            if raise_on_failure:
                raise
            logger.error(
                "Receipt for payment %s was generated at %s but could not be saved: %s",
                reference, pdf_url, e
            )
            warnings.append(f"Payment applied but the receipt could not be saved ({e.message})")
            return None

    async def _notify(self, warnings: List[str], event: NotificationEvent) -> None:
        report = await self.fanout.notify(event)
        warnings.extend(report.warnings())
