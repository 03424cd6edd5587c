"""Payments and their allocation to invoices.

A payment is numbered ``PAY-YYYYMMDD-NNNNN`` from its payment date. Creating
one applies every allocation to its invoice in the same transaction:
``amount_paid`` grows, ``balance_due`` shrinks and the invoice moves to
PARTIALLY_PAID or PAID. Cancelling a pending payment reverses exactly what
it applied, and an invoice left with nothing paid gets back the status it
had before it was first paid.

Every invoice a payment touches is locked for the whole transaction, in
process through ``InvoiceLockRegistry`` and in the database with
``SELECT ... FOR UPDATE``, so two payments can never both spend the same
balance.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from documents.application.observability import DefaultDocumentProbe, DocumentProbe
from documents.application.orchestrator import append_note, require_visible
from documents.application.registry import PARTY_MODELS, get_definition
from documents.application.value_objects import (
    PaymentChanges,
    PaymentInput,
    PaymentView,
)
from documents.domain.totals import ZERO, to_money
from documents.domain.transitions import (
    APPROVED_STATUS,
    CANCELLED,
    INITIAL_STATUS,
    ensure_transition,
)
from documents.domain.value_objects import (
    DocumentId,
    DocumentType,
    InvoiceType,
    PartyKind,
    PaymentType,
)
from documents.infrastructure.invoice_locks import (
    InvoiceLockRegistry,
    get_default_invoice_locks,
)
from documents.infrastructure.models import PaymentAllocationModel, PaymentModel
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
    AllocationExceedsBalanceError,
    CoreError,
    DocumentValidationError,
    NotFoundError,
)
from shared_kernel.retry import run_with_retry

T = TypeVar("T")

PAYMENT = DocumentType.PAYMENT

PARTIALLY_PAID = "PARTIALLY_PAID"

# Fallback for allocations that did not record the invoice's earlier status.
_UNPAID_STATUS = {
    InvoiceType.SALES_INVOICE: "SENT",
    InvoiceType.PURCHASE_INVOICE: "APPROVED",
}


def _party_of(payment_type: PaymentType) -> PartyKind:
    if payment_type is PaymentType.CUSTOMER_PAYMENT:
        return PartyKind.CUSTOMER
    return PartyKind.SUPPLIER


class PaymentService:
    """Records payments and keeps invoice balances in step with them."""

    def __init__(
        self,
        tenant_session: TenantSession,
        sequences: SequenceGenerator | None = None,
        settings: DocumentSettings | None = None,
        probe: DocumentProbe | None = None,
        invoice_locks: InvoiceLockRegistry | None = None,
    ):
        self._tenant_session = tenant_session
        self._sequences = sequences or get_default_generator()
        self._settings = settings or DocumentSettings()
        self._probe = probe or DefaultDocumentProbe()
        self._invoice_locks = invoice_locks or get_default_invoice_locks()

    @property
    def tenant_id(self) -> str:
        return self._tenant_session.tenant_id

    async def create(
        self, data: PaymentInput, created_by: str | None = None
    ) -> PaymentView:
        """Record a payment and apply its allocations.

        The payment completes immediately when its allocations add up to the
        full amount; otherwise it stays PENDING.

        Raises:
            DocumentValidationError: Party does not match the payment type,
                allocations exceed the amount or target the wrong invoice type.
            AllocationExceedsBalanceError: An allocation exceeds the invoice's
                balance due.
            CrossTenantReferenceError: The party or an invoice is not visible
                to the tenant.
            InvalidTransitionError: An invoice cannot take a payment in its
                current status.
        """
        party_kind = _party_of(data.payment_type)
        party_id = self._validate_input(data, party_kind)
        amount = to_money(data.amount)
        allocated = sum((to_money(a.amount) for a in data.allocations), ZERO)
        key = self._sequences.series(self.tenant_id, PAYMENT, data.payment_date)
        invoice_ids = [a.invoice_id for a in data.allocations]

        async def unit_of_work(session: AsyncSession) -> PaymentView:
            party = await require_visible(
                session, PARTY_MODELS[party_kind], party_kind.value.capitalize(), party_id
            )
            if not party.is_usable:
                raise NotFoundError(
                    f"{party_kind.value.capitalize()} {party_id} is inactive or deleted"
                )
            # Row locks are taken in id order, whatever order the allocations come in.
            invoices: dict[str, Any] = {}
            for allocation in sorted(data.allocations, key=lambda a: a.invoice_id):
                invoices[allocation.invoice_id] = await self._load_invoice(
                    session, allocation.invoice_type, allocation.invoice_id, party_kind, party_id
                )

            payment = PaymentModel(
                id=DocumentId.generate().value,
                tenant_id=self.tenant_id,
                number=await self._sequences.next_number(session, key),
                payment_date=data.payment_date,
                payment_type=data.payment_type.value,
                payment_method=data.payment_method.value,
                customer_id=data.customer_id if party_kind is PartyKind.CUSTOMER else None,
                supplier_id=data.supplier_id if party_kind is PartyKind.SUPPLIER else None,
                amount=amount,
                currency=data.currency.upper(),
                reference_number=data.reference_number,
                bank_account=data.bank_account,
                notes=data.notes,
                status=INITIAL_STATUS[PAYMENT],
                created_by_id=created_by,
            )
            session.add(payment)
            await session.flush()

            rows = []
            for allocation in data.allocations:
                invoice = invoices[allocation.invoice_id]
                value = to_money(allocation.amount)
                if value > invoice.balance_due:
                    raise AllocationExceedsBalanceError(
                        f"Allocation of {value} exceeds balance due {invoice.balance_due} "
                        f"on invoice {invoice.number}"
                    )
                status_before = invoice.status
                self._apply(allocation.invoice_type, invoice, value)
                rows.append(
                    PaymentAllocationModel(
                        id=DocumentId.generate().value,
                        tenant_id=self.tenant_id,
                        payment_id=payment.id,
                        invoice_type=allocation.invoice_type.value,
                        invoice_id=invoice.id,
                        amount_allocated=value,
                        invoice_status_before=status_before,
                    )
                )
            session.add_all(rows)

            if data.allocations and allocated == amount:
                payment.status = APPROVED_STATUS[PAYMENT]
            await session.flush()
            return PaymentView(payment=payment, allocations=rows)

        async def attempt() -> PaymentView:
            async with self._sequences.reserve(key), self._invoice_locks.hold(
                self.tenant_id, invoice_ids
            ):
                return await self._transaction(unit_of_work)

        view = await self._run("create", attempt)
        self._probe.document_created(
            tenant_id=self.tenant_id,
            document_type=PAYMENT.value,
            document_id=view.payment.id,
            number=view.payment.number,
        )
        for row in view.allocations:
            self._probe.payment_allocated(
                tenant_id=self.tenant_id,
                payment_id=view.payment.id,
                invoice_id=row.invoice_id,
                amount=str(row.amount_allocated),
            )
        return view

    async def get(self, payment_id: str) -> PaymentView:
        async def unit_of_work(session: AsyncSession) -> PaymentView:
            payment = await self._load(session, payment_id)
            return PaymentView(
                payment=payment, allocations=await self._allocations(session, payment.id)
            )

        return await self._transaction(unit_of_work)

    async def update(self, payment_id: str, changes: PaymentChanges) -> PaymentView:
        """Change header fields of a PENDING payment.

        Raises:
            DocumentNotFoundError: If the tenant has no such payment.
            DocumentNotEditableError: If the payment is no longer pending.
            DocumentValidationError: If the new amount is below what is
                already allocated.
        """

        async def unit_of_work(session: AsyncSession) -> PaymentView:
            payment = await self._load(session, payment_id)
            if payment.status != INITIAL_STATUS[PAYMENT]:
                raise DocumentNotEditableError("Payment", payment.status)
            allocations = await self._allocations(session, payment.id)

            if changes.amount is not None:
                amount = to_money(changes.amount)
                allocated = sum((a.amount_allocated for a in allocations), ZERO)
                if amount <= ZERO:
                    raise DocumentValidationError("Amount must be greater than 0")
                if allocated > amount:
                    raise DocumentValidationError(
                        "Amount cannot be less than the total already allocated"
                    )
                payment.amount = amount
            if changes.payment_date is not None:
                payment.payment_date = changes.payment_date
            if changes.payment_method is not None:
                payment.payment_method = changes.payment_method.value
            if changes.currency is not None:
                payment.currency = changes.currency.upper()
            for name in ("reference_number", "bank_account", "notes"):
                value = getattr(changes, name)
                if value is not None:
                    setattr(payment, name, value)

            await session.flush()
            return PaymentView(payment=payment, allocations=allocations)

        view = await self._run("update", lambda: self._transaction(unit_of_work))
        self._probe.document_updated(
            tenant_id=self.tenant_id,
            document_type=PAYMENT.value,
            document_id=payment_id,
            lines_replaced=False,
        )
        return view

    async def approve(self, payment_id: str, approved_by: str | None = None) -> PaymentView:
        """Complete a PENDING payment."""

        async def stamp(session: AsyncSession, payment: Any, allocations: list[Any]) -> None:
            payment.approved_by_id = approved_by
            payment.approved_at = utc_now()

        return await self._change_status(
            payment_id, APPROVED_STATUS[PAYMENT], "approve", stamp
        )

    async def cancel(self, payment_id: str, reason: str | None = None) -> PaymentView:
        """Cancel a PENDING payment and reverse its allocations.

        Each allocated invoice gets the amount back on its balance and falls
        back to PARTIALLY_PAID, or to the status it had before it was paid
        once nothing is paid on it any more.

        Raises:
            DocumentNotFoundError: If the tenant has no such payment.
            InvalidTransitionError: If the payment is not pending, or an
                invoice cannot move back (for example a PAID invoice).
        """
        note = f"Cancelled: {reason}" if reason else "Cancelled"

        async def revert(session: AsyncSession, payment: Any, allocations: list[Any]) -> None:
            for row in sorted(allocations, key=lambda a: a.invoice_id):
                invoice_type = InvoiceType(row.invoice_type)
                model = get_definition(invoice_type.document_type).header_model
                invoice = (
                    await session.execute(
                        select(model).where(model.id == row.invoice_id).with_for_update()
                    )
                ).scalar_one_or_none()
                if invoice is None:
                    continue
                await self._revert(session, invoice_type, invoice, row.amount_allocated)
            payment.notes = append_note(payment.notes, note)

        # Allocations never change once recorded, so their invoices can be
        # locked before the cancelling transaction starts.
        async def invoice_ids_of(session: AsyncSession) -> list[str]:
            payment = await self._load(session, payment_id)
            return [row.invoice_id for row in await self._allocations(session, payment.id)]

        invoice_ids = await self._run("cancel", lambda: self._transaction(invoice_ids_of))
        async with self._invoice_locks.hold(self.tenant_id, invoice_ids):
            return await self._change_status(payment_id, CANCELLED, "cancel", revert)

    def _validate_input(self, data: PaymentInput, party_kind: PartyKind) -> str:
        if party_kind is PartyKind.CUSTOMER:
            party_id, other = data.customer_id, data.supplier_id
        else:
            party_id, other = data.supplier_id, data.customer_id
        if not party_id or other:
            raise DocumentValidationError(
                f"{data.payment_type.value} requires exactly one "
                f"{party_kind.value.lower()} and no other party"
            )
        if to_money(data.amount) <= ZERO:
            raise DocumentValidationError("Amount must be greater than 0")

        expected = data.payment_type.invoice_type
        seen: set[str] = set()
        for allocation in data.allocations:
            if allocation.invoice_type is not expected:
                raise DocumentValidationError(
                    f"{data.payment_type.value} can only be allocated to {expected.value}"
                )
            if to_money(allocation.amount) <= ZERO:
                raise DocumentValidationError("Allocated amount must be greater than 0")
            if allocation.invoice_id in seen:
                raise DocumentValidationError(
                    f"Invoice {allocation.invoice_id} is allocated more than once"
                )
            seen.add(allocation.invoice_id)

        allocated = sum((to_money(a.amount) for a in data.allocations), ZERO)
        if allocated > to_money(data.amount):
            raise DocumentValidationError("Total allocated amount exceeds payment amount")
        return party_id

    async def _load_invoice(
        self,
        session: AsyncSession,
        invoice_type: InvoiceType,
        invoice_id: str,
        party_kind: PartyKind,
        party_id: str,
    ) -> Any:
        definition = get_definition(invoice_type.document_type)
        invoice = await require_visible(
            session, definition.header_model, definition.label, invoice_id, for_update=True
        )
        if invoice.deleted_at is not None:
            raise NotFoundError(f"{definition.label} {invoice_id} not found")
        if getattr(invoice, definition.party_field) != party_id:
            raise NotFoundError(
                f"{definition.label} {invoice_id} does not belong to this "
                f"{party_kind.value.lower()}"
            )
        return invoice

    def _apply(self, invoice_type: InvoiceType, invoice: Any, value: Decimal) -> None:
        invoice.amount_paid = invoice.amount_paid + value
        invoice.balance_due = invoice.balance_due - value
        target = "PAID" if invoice.balance_due <= ZERO else PARTIALLY_PAID
        if target != invoice.status:
            ensure_transition(invoice_type.document_type, invoice.status, target)
            invoice.status = target

    async def _revert(
        self, session: AsyncSession, invoice_type: InvoiceType, invoice: Any, value: Decimal
    ) -> None:
        amount_paid = invoice.amount_paid - value
        if amount_paid > ZERO:
            target = PARTIALLY_PAID
        else:
            target = await self._status_before_payment(session, invoice_type, invoice.id)
        if target != invoice.status:
            # Undoing a payment is not a forward transition; PAID stays terminal.
            if invoice.status != PARTIALLY_PAID:
                ensure_transition(invoice_type.document_type, invoice.status, target)
            invoice.status = target
        invoice.amount_paid = amount_paid
        invoice.balance_due = invoice.balance_due + value

    async def _status_before_payment(
        self, session: AsyncSession, invoice_type: InvoiceType, invoice_id: str
    ) -> str:
        """Status the invoice had when it last went from unpaid to paid."""
        status = (
            await session.execute(
                select(PaymentAllocationModel.invoice_status_before)
                .where(
                    PaymentAllocationModel.invoice_id == invoice_id,
                    PaymentAllocationModel.invoice_status_before.is_not(None),
                    PaymentAllocationModel.invoice_status_before != PARTIALLY_PAID,
                )
                .order_by(
                    PaymentAllocationModel.created_at.desc(),
                    PaymentAllocationModel.id.desc(),
                )
                .limit(1)
            )
        ).scalar_one_or_none()
        return status or _UNPAID_STATUS[invoice_type]

    async def _change_status(
        self,
        payment_id: str,
        target: str,
        operation: str,
        mutate: Callable[[AsyncSession, Any, list[Any]], Awaitable[None]],
    ) -> PaymentView:
        previous: dict[str, str] = {}

        async def unit_of_work(session: AsyncSession) -> PaymentView:
            payment = await self._load(session, payment_id)
            ensure_transition(PAYMENT, payment.status, target)
            allocations = await self._allocations(session, payment.id)
            previous["status"] = payment.status
            await mutate(session, payment, allocations)
            payment.status = target
            await session.flush()
            return PaymentView(payment=payment, allocations=allocations)

        view = await self._run(operation, lambda: self._transaction(unit_of_work))
        self._probe.status_changed(
            tenant_id=self.tenant_id,
            document_type=PAYMENT.value,
            document_id=payment_id,
            from_status=previous["status"],
            to_status=target,
        )
        return view

    async def _load(self, session: AsyncSession, payment_id: str) -> PaymentModel:
        payment = (
            await session.execute(
                select(PaymentModel).where(
                    PaymentModel.id == payment_id, PaymentModel.deleted_at.is_(None)
                )
            )
        ).scalar_one_or_none()
        if payment is None:
            raise DocumentNotFoundError("Payment", payment_id)
        return payment

    async def _allocations(
        self, session: AsyncSession, payment_id: str
    ) -> list[PaymentAllocationModel]:
        result = await session.execute(
            select(PaymentAllocationModel)
            .where(PaymentAllocationModel.payment_id == payment_id)
            .order_by(PaymentAllocationModel.id)
        )
        return list(result.scalars().all())

    async def _transaction(self, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        return await run_in_tenant_transaction(
            self._tenant_session,
            fn,
            timeout_seconds=self._settings.transaction_timeout_seconds,
        )

    async def _run(self, operation: str, attempt: Callable[[], Awaitable[T]]) -> T:
        try:
            return await run_with_retry(
                attempt,
                attempts=self._settings.max_attempts,
                backoff_base=self._settings.retry_backoff_seconds,
                operation=f"payment_{operation}",
            )
        except CoreError as e:
            self._probe.operation_rejected(
                tenant_id=self.tenant_id,
                document_type=PAYMENT.value,
                operation=operation,
                error_code=e.code,
            )
            raise
