"""Document transaction orchestrator for orders and invoices.

Every operation runs as one unit of work on the request's tenant-bound
session:

1. references are validated through the bound session, so a row owned by
   another tenant is invisible and reported as a cross-tenant reference;
2. totals are computed from the lines in ``Decimal``;
3. new documents get their number from the sequence generator;
4. header and lines are written in the same transaction.

Nothing is written before validation passes, and a failed operation leaves
no partial rows behind. Retryable failures (number conflicts, storage
hiccups) re-run the whole unit of work.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from documents.application.observability import DefaultDocumentProbe, DocumentProbe
from documents.application.registry import DocumentDefinition, get_definition
from documents.application.value_objects import (
    DocumentChanges,
    DocumentInput,
    DocumentView,
    LineInput,
)
from documents.domain.totals import ZERO, compute_line, compute_totals
from documents.domain.transitions import (
    APPROVED_STATUS,
    CANCELLED,
    INITIAL_STATUS,
    ensure_transition,
    is_editable,
)
from documents.domain.value_objects import DocumentId, DocumentType
from documents.infrastructure.models import CustomerAddressModel, ItemModel
from documents.infrastructure.sequence_generator import (
    SequenceGenerator,
    get_default_generator,
)
from documents.ports.exceptions import DocumentNotEditableError, DocumentNotFoundError
from infrastructure.database.models import utc_now
from infrastructure.database.tenant_session import TenantSession
from infrastructure.database.transactions import run_in_tenant_transaction
from infrastructure.settings import DocumentSettings
from shared_kernel.exceptions import (
    CoreError,
    CrossTenantReferenceError,
    DocumentValidationError,
    NotFoundError,
)
from shared_kernel.retry import run_with_retry

__all__ = [
    "DocumentTransactionOrchestrator",
    "append_note",
    "require_visible",
    "run_in_tenant_transaction",
]

T = TypeVar("T")

MAX_RATE = 1


def append_note(notes: str | None, line: str) -> str:
    """Append a line to free-text notes."""
    if notes:
        return f"{notes}\n{line}"
    return line


async def require_visible(
    session: AsyncSession,
    model: Any,
    entity: str,
    entity_id: str,
    for_update: bool = False,
) -> Any:
    """Load a referenced row through the tenant-bound session.

    With ``for_update`` the row is locked until the transaction ends on
    dialects that support it.

    Raises:
        CrossTenantReferenceError: If no row with that id is visible to the
            bound tenant (it does not exist or belongs to another tenant).
    """
    stmt = select(model).where(model.id == entity_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = (await session.execute(stmt)).scalar_one_or_none()
    if row is None:
        raise CrossTenantReferenceError(entity, entity_id)
    return row


def _validate_lines(definition: DocumentDefinition, lines: tuple[LineInput, ...]) -> None:
    if not lines:
        raise DocumentValidationError("At least one line item is required")
    for index, line in enumerate(lines, start=1):
        if line.quantity <= 0:
            raise DocumentValidationError(f"Line {index}: quantity must be greater than 0")
        if line.unit_price < 0:
            raise DocumentValidationError(f"Line {index}: unit price must be non-negative")
        if not ZERO <= line.discount_percentage <= MAX_RATE:
            raise DocumentValidationError(
                f"Line {index}: discount percentage must be between 0 and 1"
            )
        if not ZERO <= line.tax_rate <= MAX_RATE:
            raise DocumentValidationError(f"Line {index}: tax rate must be between 0 and 1")
        if definition.item_required and not line.item_id:
            raise DocumentValidationError(f"Line {index}: item is required")


class DocumentTransactionOrchestrator:
    """Creates, edits and moves orders and invoices through their lifecycle.

    One instance serves one request: it holds the request's
    ``TenantSession``, so it can only ever touch that tenant's rows.

    Numbers are issued in the period of the moment of creation, read from
    ``clock``; the document date the caller supplies never picks the series.
    """

    def __init__(
        self,
        tenant_session: TenantSession,
        sequences: SequenceGenerator | None = None,
        settings: DocumentSettings | None = None,
        probe: DocumentProbe | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._tenant_session = tenant_session
        self._sequences = sequences or get_default_generator()
        self._settings = settings or DocumentSettings()
        self._probe = probe or DefaultDocumentProbe()
        self._clock = clock or utc_now

    @property
    def tenant_id(self) -> str:
        return self._tenant_session.tenant_id

    async def create(
        self,
        doc_type: DocumentType,
        data: DocumentInput,
        created_by: str | None = None,
    ) -> DocumentView:
        """Create a document with its lines and a freshly allocated number.

        Raises:
            DocumentValidationError: Invalid lines or missing required fields.
            CrossTenantReferenceError: A reference is not visible to the tenant.
            NotFoundError: A reference is inactive, deleted or belongs to
                another party.
            SequenceConflictError: Numbering kept conflicting after retries.
        """
        definition = get_definition(doc_type)
        _validate_lines(definition, data.lines)
        if definition.is_invoice and data.due_date is None:
            raise DocumentValidationError("Due date is required")
        key = self._sequences.series(self.tenant_id, doc_type, self._clock().date())

        async def unit_of_work(session: AsyncSession) -> DocumentView:
            await self._check_references(
                session,
                definition,
                party_id=data.party_id,
                source_order_id=data.source_order_id,
                shipping_address_id=data.shipping_address_id,
                billing_address_id=data.billing_address_id,
                lines=data.lines,
            )
            header_id = DocumentId.generate().value
            lines, totals = self._build_lines(definition, header_id, data.lines)
            header = definition.header_model(
                id=header_id,
                tenant_id=self.tenant_id,
                number=await self._sequences.next_number(session, key),
                document_date=data.document_date,
                status=INITIAL_STATUS[doc_type],
                currency=data.currency.upper(),
                shipping_charges=ZERO,
                created_by_id=created_by,
                **{definition.party_field: data.party_id},
                **self._header_values(definition, data.__dict__),
            )
            if definition.source_field and data.source_order_id:
                setattr(header, definition.source_field, data.source_order_id)
            self._apply_totals(definition, header, totals)
            session.add(header)
            # Header first so line foreign keys resolve on flush.
            await session.flush()
            session.add_all(lines)
            await session.flush()
            return DocumentView(header=header, lines=lines)

        async def attempt() -> DocumentView:
            async with self._sequences.reserve(key):
                return await self._transaction(unit_of_work)

        view = await self._run(doc_type, "create", attempt)
        self._probe.document_created(
            tenant_id=self.tenant_id,
            document_type=doc_type.value,
            document_id=view.header.id,
            number=view.header.number,
        )
        return view

    async def get(self, doc_type: DocumentType, document_id: str) -> DocumentView:
        """Load a document and its lines.

        Raises:
            DocumentNotFoundError: If the tenant has no such document.
        """
        definition = get_definition(doc_type)

        async def unit_of_work(session: AsyncSession) -> DocumentView:
            header = await self._load(session, definition, document_id)
            return DocumentView(header=header, lines=await self._lines(session, definition, header.id))

        return await self._transaction(unit_of_work)

    async def update(
        self,
        doc_type: DocumentType,
        document_id: str,
        changes: DocumentChanges,
    ) -> DocumentView:
        """Change an editable (DRAFT) document.

        When ``changes.lines`` is given, the existing lines are deleted and
        the new set inserted in the same transaction, and totals recomputed.

        Raises:
            DocumentNotFoundError: If the tenant has no such document.
            DocumentNotEditableError: If the document left its initial status.
            CrossTenantReferenceError / NotFoundError: As for ``create``.
        """
        definition = get_definition(doc_type)
        if changes.lines is not None:
            _validate_lines(definition, changes.lines)

        async def unit_of_work(session: AsyncSession) -> DocumentView:
            header = await self._load(session, definition, document_id)
            if not is_editable(doc_type, header.status):
                raise DocumentNotEditableError(doc_type.value, header.status)

            source_order_id = changes.source_order_id
            if source_order_id is None and definition.source_field:
                source_order_id = getattr(header, definition.source_field)
            await self._check_references(
                session,
                definition,
                party_id=getattr(header, definition.party_field),
                source_order_id=source_order_id,
                shipping_address_id=changes.shipping_address_id,
                billing_address_id=changes.billing_address_id,
                lines=changes.lines or (),
            )

            for name, value in self._header_values(definition, changes.header_fields()).items():
                setattr(header, name, value)
            if changes.document_date is not None:
                header.document_date = changes.document_date
            if changes.currency is not None:
                header.currency = changes.currency.upper()
            if definition.source_field and changes.source_order_id is not None:
                setattr(header, definition.source_field, changes.source_order_id)

            if changes.lines is not None:
                await session.execute(
                    delete(definition.line_model)
                    .where(definition.line_model.document_id == header.id)
                    .execution_options(synchronize_session=False)
                )
                lines, totals = self._build_lines(definition, header.id, changes.lines)
                session.add_all(lines)
                self._apply_totals(definition, header, totals)

            await session.flush()
            return DocumentView(header=header, lines=await self._lines(session, definition, header.id))

        view = await self._run(
            doc_type, "update", lambda: self._transaction(unit_of_work)
        )
        self._probe.document_updated(
            tenant_id=self.tenant_id,
            document_type=doc_type.value,
            document_id=document_id,
            lines_replaced=changes.lines is not None,
        )
        return view

    async def cancel(
        self,
        doc_type: DocumentType,
        document_id: str,
        reason: str | None = None,
    ) -> DocumentView:
        """Cancel a document, recording the reason in its notes.

        Raises:
            DocumentNotFoundError: If the tenant has no such document.
            InvalidTransitionError: If the current status cannot be cancelled;
                the document is left untouched.
        """
        note = f"Cancelled: {reason}" if reason else "Cancelled"
        return await self._change_status(
            doc_type,
            document_id,
            CANCELLED,
            "cancel",
            lambda header: setattr(header, "notes", append_note(header.notes, note)),
        )

    async def approve(
        self,
        doc_type: DocumentType,
        document_id: str,
        approved_by: str | None = None,
    ) -> DocumentView:
        """Move a document to its approved status (confirmed, sent or approved).

        Raises:
            DocumentNotFoundError: If the tenant has no such document.
            InvalidTransitionError: If the current status cannot be approved.
        """

        def stamp(header: Any) -> None:
            header.approved_by_id = approved_by
            header.approved_at = utc_now()

        return await self._change_status(
            doc_type, document_id, APPROVED_STATUS[doc_type], "approve", stamp
        )

    async def _change_status(
        self,
        doc_type: DocumentType,
        document_id: str,
        target: str,
        operation: str,
        mutate: Callable[[Any], None],
    ) -> DocumentView:
        definition = get_definition(doc_type)
        previous: dict[str, str] = {}

        async def unit_of_work(session: AsyncSession) -> DocumentView:
            header = await self._load(session, definition, document_id)
            ensure_transition(doc_type, header.status, target)
            previous["status"] = header.status
            header.status = target
            mutate(header)
            await session.flush()
            return DocumentView(header=header, lines=await self._lines(session, definition, header.id))

        view = await self._run(doc_type, operation, lambda: self._transaction(unit_of_work))
        self._probe.status_changed(
            tenant_id=self.tenant_id,
            document_type=doc_type.value,
            document_id=document_id,
            from_status=previous["status"],
            to_status=target,
        )
        return view

    async def _transaction(self, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        return await run_in_tenant_transaction(
            self._tenant_session,
            fn,
            timeout_seconds=self._settings.transaction_timeout_seconds,
        )

    async def _run(
        self,
        doc_type: DocumentType,
        operation: str,
        attempt: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            return await run_with_retry(
                attempt,
                attempts=self._settings.max_attempts,
                backoff_base=self._settings.retry_backoff_seconds,
                operation=f"{doc_type.value.lower()}_{operation}",
            )
        except CoreError as e:
            self._probe.operation_rejected(
                tenant_id=self.tenant_id,
                document_type=doc_type.value,
                operation=operation,
                error_code=e.code,
            )
            raise

    async def _load(
        self, session: AsyncSession, definition: DocumentDefinition, document_id: str
    ) -> Any:
        model = definition.header_model
        header = (
            await session.execute(
                select(model).where(model.id == document_id, model.deleted_at.is_(None))
            )
        ).scalar_one_or_none()
        if header is None:
            raise DocumentNotFoundError(definition.label, document_id)
        return header

    async def _lines(
        self, session: AsyncSession, definition: DocumentDefinition, header_id: str
    ) -> list[Any]:
        model = definition.line_model
        result = await session.execute(
            select(model).where(model.document_id == header_id).order_by(model.line_number)
        )
        return list(result.scalars().all())

    async def _check_references(
        self,
        session: AsyncSession,
        definition: DocumentDefinition,
        party_id: str,
        source_order_id: str | None,
        shipping_address_id: str | None,
        billing_address_id: str | None,
        lines: tuple[LineInput, ...],
    ) -> None:
        party = await require_visible(
            session, definition.party_model, definition.party_label, party_id
        )
        if not party.is_usable:
            raise NotFoundError(f"{definition.party_label} {party_id} is inactive or deleted")

        if definition.source_field and source_order_id:
            source_definition = get_definition(definition.source_type)
            source = await require_visible(
                session, source_definition.header_model, source_definition.label, source_order_id
            )
            if (
                source.deleted_at is not None
                or getattr(source, source_definition.party_field) != party_id
            ):
                raise NotFoundError(
                    f"{source_definition.label} {source_order_id} does not belong to this "
                    f"{definition.party.value.lower()}"
                )

        if definition.has_addresses:
            for label, address_id in (
                ("Shipping address", shipping_address_id),
                ("Billing address", billing_address_id),
            ):
                if not address_id:
                    continue
                address = await require_visible(
                    session, CustomerAddressModel, label, address_id
                )
                if address.customer_id != party_id:
                    raise NotFoundError(f"{label} {address_id} does not belong to this customer")

        item_ids = sorted({line.item_id for line in lines if line.item_id})
        if item_ids:
            result = await session.execute(select(ItemModel).where(ItemModel.id.in_(item_ids)))
            items = {item.id: item for item in result.scalars().all()}
            for item_id in item_ids:
                item = items.get(item_id)
                if item is None:
                    raise CrossTenantReferenceError("Item", item_id)
                if not item.is_usable:
                    raise NotFoundError(f"Item {item_id} is inactive or deleted")

    def _header_values(
        self, definition: DocumentDefinition, values: dict[str, Any]
    ) -> dict[str, Any]:
        return {
            name: value
            for name, value in values.items()
            if name in definition.header_fields and name != "currency" and value is not None
        }

    def _build_lines(
        self,
        definition: DocumentDefinition,
        header_id: str,
        lines: tuple[LineInput, ...],
    ) -> tuple[list[Any], Any]:
        rows = []
        amounts = []
        for number, line in enumerate(lines, start=1):
            line_amounts = compute_line(
                line.quantity, line.unit_price, line.discount_percentage, line.tax_rate
            )
            amounts.append(line_amounts)
            rows.append(
                definition.line_model(
                    id=DocumentId.generate().value,
                    tenant_id=self.tenant_id,
                    document_id=header_id,
                    line_number=number,
                    item_id=line.item_id,
                    description=line.description,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    discount_percentage=line.discount_percentage,
                    discount_amount=line_amounts.discount,
                    tax_rate=line.tax_rate,
                    tax_amount=line_amounts.tax,
                    line_total=line_amounts.total,
                )
            )
        return rows, compute_totals(amounts)

    def _apply_totals(self, definition: DocumentDefinition, header: Any, totals: Any) -> None:
        header.subtotal = totals.subtotal
        header.discount_amount = totals.discount
        header.tax_amount = totals.tax
        header.grand_total = totals.grand_total
        if definition.is_invoice:
            amount_paid = header.amount_paid or ZERO
            header.amount_paid = amount_paid
            header.balance_due = header.grand_total - amount_paid
