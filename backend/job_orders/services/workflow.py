from __future__ import annotations

import logging
from typing import List, Optional

from django.db import IntegrityError, transaction
from django.db.models.functions import Length
from django.utils import timezone

from accounts.permissions import user_role
from core.utils import d

from ..models import CostItem, Disbursement, JobOrder
from . import bkk as rules
from .bkk import BKKStatus

logger = logging.getLogger(__name__)


class DisbursementError(Exception):
    """Base exception for BKK workflow failures"""
    pass


class DisbursementNotFound(DisbursementError):
    pass


class DisbursementValidationError(DisbursementError):
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class InvalidTransitionError(DisbursementError):
    pass


class DisbursementPermissionError(DisbursementError):
    pass


class CostItemClosedError(DisbursementError):
    pass


def next_bkk_number(year: Optional[int] = None) -> str:
    """Next free BKK number for the year, based on the highest one issued."""
    year = year or timezone.now().year
    last = (Disbursement.objects
            .filter(bkk_number__startswith=f"BKK-{year}-")
            .order_by(Length('bkk_number').desc(), '-bkk_number')
            .values_list('bkk_number', flat=True)
            .first())
    parsed = rules.parse_bkk_number(last) if last else None
    sequence = parsed[1] + 1 if parsed else 1
    return rules.generate_bkk_number(year, sequence)


NUMBERING_ATTEMPTS = 5


def _create_numbered(**fields) -> Disbursement:
    """Insert a BKK under the next free number, retrying when a concurrent insert took it."""
    for attempt in range(1, NUMBERING_ATTEMPTS + 1):
        number = next_bkk_number()
        try:
            with transaction.atomic():
                return Disbursement.objects.create(bkk_number=number, **fields)
        except IntegrityError as exc:
            if attempt == NUMBERING_ATTEMPTS:
                raise DisbursementError("Could not allocate a BKK number, please retry") from exc
            logger.warning("BKK number %s already taken, retrying (attempt %d)", number, attempt)


def _lock(bkk_id) -> Disbursement:
    try:
        return Disbursement.objects.select_for_update().get(pk=bkk_id)
    except Disbursement.DoesNotExist:
        raise DisbursementNotFound("BKK not found") from None


def _check(result: rules.ValidationResult) -> None:
    if not result.is_valid:
        raise DisbursementValidationError(result.errors)


def _gate(bkk: Disbursement, target: str, verb: str) -> None:
    if not rules.is_valid_status_transition(bkk.status, target):
        raise InvalidTransitionError(f"Cannot {verb} a BKK with status {bkk.status}")


def create_disbursement(job_order: JobOrder, user, *, purpose, amount_requested,
                        cost_item: Optional[CostItem] = None, budget_category=None,
                        budget_amount=None, notes=None) -> Disbursement:
    _check(rules.validate_create_input(purpose, amount_requested))

    with transaction.atomic():
        if cost_item is not None:
            cost_item = CostItem.objects.select_for_update().get(pk=cost_item.pk)
            if cost_item.job_order_id != job_order.pk:
                raise DisbursementValidationError(["Cost item does not belong to this job order"])
            if cost_item.is_closed:
                raise CostItemClosedError("Cannot create BKK for a closed cost item")
            # the cost item budget is the ceiling a linked BKK settles against
            budget_amount = cost_item.budget_amount

        bkk = _create_numbered(
            job_order=job_order,
            cost_item=cost_item,
            purpose=str(purpose).strip(),
            amount_requested=d(amount_requested),
            budget_category=budget_category or None,
            budget_amount=budget_amount,
            notes=notes or None,
            status=BKKStatus.PENDING,
            requested_by=user,
        )

    logger.info("BKK %s requested for %s (%s)", bkk.bkk_number, job_order.jo_number, bkk.amount_requested)
    return bkk


def approve(bkk_id, user) -> Disbursement:
    if user_role(user) not in rules.APPROVER_ROLES:
        raise DisbursementPermissionError("You don't have permission to approve BKK requests")

    with transaction.atomic():
        bkk = _lock(bkk_id)
        _gate(bkk, BKKStatus.APPROVED, "approve")
        bkk.status = BKKStatus.APPROVED
        bkk.approved_by = user
        bkk.approved_at = timezone.now()
        bkk.save(update_fields=['status', 'approved_by', 'approved_at', 'updated_at'])

    logger.info("BKK %s approved by %s", bkk.bkk_number, user)
    return bkk


def reject(bkk_id, user, reason) -> Disbursement:
    _check(rules.validate_reject_input(reason))
    if user_role(user) not in rules.APPROVER_ROLES:
        raise DisbursementPermissionError("You don't have permission to reject BKK requests")

    with transaction.atomic():
        bkk = _lock(bkk_id)
        _gate(bkk, BKKStatus.REJECTED, "reject")
        bkk.status = BKKStatus.REJECTED
        bkk.rejection_reason = str(reason).strip()
        bkk.approved_by = user
        bkk.approved_at = timezone.now()
        bkk.save(update_fields=['status', 'rejection_reason', 'approved_by', 'approved_at', 'updated_at'])

    logger.info("BKK %s rejected by %s", bkk.bkk_number, user)
    return bkk


def cancel(bkk_id, user) -> Disbursement:
    with transaction.atomic():
        bkk = _lock(bkk_id)
        is_requester = bkk.requested_by_id is not None and bkk.requested_by_id == user.pk
        if not rules.can_cancel(user_role(user), is_requester):
            raise DisbursementPermissionError("Only the requester or an approver can cancel this BKK")
        _gate(bkk, BKKStatus.CANCELLED, "cancel")
        bkk.status = BKKStatus.CANCELLED
        bkk.save(update_fields=['status', 'updated_at'])

    logger.info("BKK %s cancelled by %s", bkk.bkk_number, user)
    return bkk


def release(bkk_id, user, release_method, release_reference=None) -> Disbursement:
    _check(rules.validate_release_input(release_method))
    if user_role(user) not in rules.RELEASER_ROLES:
        raise DisbursementPermissionError("You don't have permission to release cash")

    with transaction.atomic():
        bkk = _lock(bkk_id)
        _gate(bkk, BKKStatus.RELEASED, "release")
        bkk.status = BKKStatus.RELEASED
        bkk.released_by = user
        bkk.released_at = timezone.now()
        bkk.release_method = release_method
        bkk.release_reference = release_reference or None
        bkk.save(update_fields=['status', 'released_by', 'released_at', 'release_method',
                                'release_reference', 'updated_at'])

    logger.info("BKK %s released by %s via %s", bkk.bkk_number, user, release_method)
    return bkk


def settle(bkk_id, user, amount_spent, receipt_urls=None, notes=None) -> Disbursement:
    """
    Settle a released BKK and reconcile its cost item.

    The returned cash and the cost item decision come from
    ``rules.calculate_settlement``; both rows are written in one transaction.
    """
    _check(rules.validate_settle_input(amount_spent))

    with transaction.atomic():
        bkk = _lock(bkk_id)
        is_requester = bkk.requested_by_id is not None and bkk.requested_by_id == user.pk
        if not (is_requester or user_role(user) in rules.SETTLER_ROLES):
            raise DisbursementPermissionError("You don't have permission to settle this BKK")
        _gate(bkk, BKKStatus.SETTLED, "settle")

        cost_item = None
        if bkk.cost_item_id:
            cost_item = CostItem.objects.select_for_update().get(pk=bkk.cost_item_id)
        budget = cost_item.budget_amount if cost_item is not None else bkk.budget_amount

        result = rules.calculate_settlement(bkk.amount_requested, amount_spent, budget)
        now = timezone.now()

        bkk.status = BKKStatus.SETTLED
        bkk.settled_by = user
        bkk.settled_at = now
        bkk.amount_spent = result.amount_spent
        bkk.amount_returned = result.amount_returned
        bkk.receipt_urls = list(receipt_urls or [])
        if notes:
            bkk.notes = notes
        bkk.save(update_fields=['status', 'settled_by', 'settled_at', 'amount_spent', 'amount_returned',
                                'receipt_urls', 'notes', 'updated_at'])

        if cost_item is not None:
            cost_item.actual_amount = result.amount_spent
            cost_item.status = result.cost_item_status
            cost_item.confirmed_by = user
            cost_item.confirmed_at = now
            cost_item.save(update_fields=['actual_amount', 'status', 'confirmed_by', 'confirmed_at', 'updated_at'])
            if result.cost_item_status == rules.CostItemStatus.EXCEEDED:
                logger.warning("Cost item %s exceeded budget: spent %s against %s",
                               cost_item.pk, result.amount_spent, result.budget_amount)

    logger.info("BKK %s settled by %s: spent %s, returned %s",
                bkk.bkk_number, user, bkk.amount_spent, bkk.amount_returned)
    return bkk


def pending_queue():
    return (Disbursement.objects
            .filter(status=BKKStatus.PENDING)
            .select_related('job_order', 'requested_by', 'cost_item')
            .order_by('requested_at'))


def summary_for_job_order(job_order: JobOrder) -> rules.BKKSummary:
    return rules.calculate_summary(job_order.disbursements.all())


def available_budget_for(cost_item: CostItem) -> rules.AvailableBudget:
    return rules.calculate_available_budget(cost_item.budget_amount, cost_item.disbursements.all())
