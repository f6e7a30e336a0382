"""
BKK (Bukti Kas Keluar) rules

Pure functions for cash disbursement vouchers: the status transition table,
settlement reconciliation against a cost item budget, available budget and
summary totals for a job order, role-based actions and input validation.
Nothing here touches the database; the workflow service loads rows, calls
these functions and persists the outcome.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from core.utils import ZERO, d, format_idr, to_decimal_or_none


class BKKStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    RELEASED = "released"
    SETTLED = "settled"
    CANCELLED = "cancelled"

    CHOICES = [
        (PENDING, "Pending"),
        (APPROVED, "Approved"),
        (REJECTED, "Rejected"),
        (RELEASED, "Released"),
        (SETTLED, "Settled"),
        (CANCELLED, "Cancelled"),
    ]
    ALL = [value for value, _ in CHOICES]


class CostItemStatus:
    OPEN = "open"
    CONFIRMED = "confirmed"
    EXCEEDED = "exceeded"

    CHOICES = [
        (OPEN, "Open"),
        (CONFIRMED, "Confirmed"),
        (EXCEEDED, "Exceeded"),
    ]
    CLOSED = {CONFIRMED, EXCEEDED}


RELEASE_METHODS = ("cash", "transfer")

VALID_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    BKKStatus.PENDING: (BKKStatus.APPROVED, BKKStatus.REJECTED, BKKStatus.CANCELLED),
    BKKStatus.APPROVED: (BKKStatus.RELEASED,),
    BKKStatus.REJECTED: (),
    BKKStatus.RELEASED: (BKKStatus.SETTLED,),
    BKKStatus.SETTLED: (),
    BKKStatus.CANCELLED: (),
}

APPROVER_ROLES = {"admin", "finance", "manager", "super_admin"}
RELEASER_ROLES = {"admin", "finance", "super_admin"}
SETTLER_ROLES = {"ops", "admin", "super_admin"}

BKK_NUMBER_RE = re.compile(r"^BKK-(\d{4})-(\d{4,})$")

# Statuses whose requested amount no longer counts against a budget
_INACTIVE = {BKKStatus.REJECTED, BKKStatus.CANCELLED}
_DISBURSED = {BKKStatus.RELEASED, BKKStatus.SETTLED}
_AWAITING = {BKKStatus.PENDING, BKKStatus.APPROVED}


@dataclass
class SettlementResult:
    amount_requested: Decimal
    amount_spent: Decimal
    amount_returned: Decimal
    cost_item_status: str
    budget_amount: Decimal


@dataclass
class SettlementDifference:
    released_amount: Decimal
    spent_amount: Decimal
    difference: Decimal
    type: str  # 'return' | 'additional' | 'exact'


@dataclass
class AvailableBudget:
    budget_amount: Decimal
    already_disbursed: Decimal
    pending_requests: Decimal
    available: Decimal


@dataclass
class BKKSummary:
    total_requested: Decimal = ZERO
    total_released: Decimal = ZERO
    total_settled: Decimal = ZERO
    pending_return: Decimal = ZERO
    count: Dict[str, int] = field(default_factory=lambda: {s: 0 for s in BKKStatus.ALL})


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def generate_bkk_number(year: int, sequence: int) -> str:
    """
    Build a BKK number in the format "BKK-YYYY-NNNN".

    Args:
        year: Four digit year
        sequence: Sequence within the year, starting at 1

    Returns:
        str: e.g. "BKK-2025-0007"
    """
    return f"BKK-{year}-{sequence:04d}"


def parse_bkk_number(bkk_number: str) -> Optional[Tuple[int, int]]:
    """Return (year, sequence) for a well-formed BKK number, otherwise None."""
    match = BKK_NUMBER_RE.match(bkk_number or "")
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def is_valid_bkk_number(bkk_number: str) -> bool:
    return parse_bkk_number(bkk_number) is not None


def is_valid_status_transition(current_status: str, new_status: str) -> bool:
    """
    Check whether a BKK may move from one status to another.

    Args:
        current_status: Status the voucher is in now
        new_status: Requested status

    Returns:
        bool: True only for edges of the transition table; unknown statuses
        are never valid
    """
    return new_status in VALID_TRANSITIONS.get(current_status, ())


def calculate_settlement(amount_requested, amount_spent, budget_amount=None) -> SettlementResult:
    """
    Reconcile a released BKK against what was actually spent.

    Args:
        amount_requested: Amount released to the requester (>= 0)
        amount_spent: Amount the requester reports as spent (>= 0)
        budget_amount: Budget ceiling of the linked cost item; None counts as 0

    Returns:
        SettlementResult: the cash to return (never negative) and the status
        the linked cost item should move to
    """
    requested = d(amount_requested)
    spent = d(amount_spent)
    budget = d(budget_amount) if budget_amount is not None else ZERO

    returned = requested - spent if requested > spent else ZERO
    cost_item_status = CostItemStatus.EXCEEDED if spent > budget else CostItemStatus.CONFIRMED

    return SettlementResult(
        amount_requested=requested,
        amount_spent=spent,
        amount_returned=returned,
        cost_item_status=cost_item_status,
        budget_amount=budget,
    )


def calculate_settlement_difference(released_amount, spent_amount) -> SettlementDifference:
    released = d(released_amount)
    spent = d(spent_amount)
    if spent < released:
        kind = "return"
    elif spent > released:
        kind = "additional"
    else:
        kind = "exact"
    return SettlementDifference(
        released_amount=released,
        spent_amount=spent,
        difference=abs(released - spent),
        type=kind,
    )


def calculate_available_budget(budget_amount, disbursements: Iterable) -> AvailableBudget:
    """
    Work out how much of a cost item budget is still free.

    Rejected and cancelled vouchers are ignored. Released and settled
    vouchers count as disbursed; pending and approved ones are reserved.

    Args:
        budget_amount: Budget ceiling of the cost item
        disbursements: Objects exposing ``status`` and ``amount_requested``

    Returns:
        AvailableBudget: may be negative when requests already overrun
    """
    budget = d(budget_amount)
    disbursed = ZERO
    pending = ZERO
    for bkk in disbursements:
        if bkk.status in _INACTIVE:
            continue
        if bkk.status in _DISBURSED:
            disbursed += d(bkk.amount_requested)
        elif bkk.status in _AWAITING:
            pending += d(bkk.amount_requested)

    return AvailableBudget(
        budget_amount=budget,
        already_disbursed=disbursed,
        pending_requests=pending,
        available=budget - disbursed - pending,
    )


def calculate_summary(disbursements: Iterable) -> BKKSummary:
    """Totals and per-status counts for the vouchers of one job order."""
    summary = BKKSummary()
    for bkk in disbursements:
        status = bkk.status
        summary.count[status] = summary.count.get(status, 0) + 1

        if status not in _INACTIVE:
            summary.total_requested += d(bkk.amount_requested)
        if status in _DISBURSED:
            summary.total_released += d(bkk.amount_requested)
        if status == BKKStatus.SETTLED and bkk.amount_spent is not None:
            summary.total_settled += d(bkk.amount_spent)

    summary.pending_return = summary.total_released - summary.total_settled
    return summary


def get_available_actions(status: str, user_role: str, is_requester: bool = False) -> List[str]:
    """
    Actions a user may take on a BKK in the given status.

    Args:
        status: Current BKK status
        user_role: Role of the acting user
        is_requester: Whether the acting user raised the request

    Returns:
        List[str]: always starts with "view"
    """
    actions = ["view"]

    if status == BKKStatus.PENDING:
        if is_requester:
            actions.append("cancel")
        if user_role in APPROVER_ROLES:
            actions.extend(["approve", "reject"])
    elif status == BKKStatus.APPROVED:
        if user_role in RELEASER_ROLES:
            actions.append("release")
    elif status == BKKStatus.RELEASED:
        if is_requester or user_role in SETTLER_ROLES:
            actions.append("settle")

    return actions


def can_cancel(user_role: str, is_requester: bool) -> bool:
    return is_requester or user_role in APPROVER_ROLES


def validate_create_input(purpose: Optional[str], amount_requested) -> ValidationResult:
    result = ValidationResult()
    if not purpose or not str(purpose).strip():
        result.errors.append("Purpose is required")

    amount = to_decimal_or_none(amount_requested)
    if amount_requested is None or amount_requested == "":
        result.errors.append("Amount is required")
    elif amount is None:
        result.errors.append("Amount must be a number")
    elif amount <= ZERO:
        result.errors.append("Amount must be greater than zero")
    return result


def validate_reject_input(reason: Optional[str]) -> ValidationResult:
    result = ValidationResult()
    if not reason or not str(reason).strip():
        result.errors.append("Rejection reason is required")
    return result


def validate_release_input(release_method: Optional[str]) -> ValidationResult:
    result = ValidationResult()
    if release_method not in RELEASE_METHODS:
        result.errors.append("Release method must be cash or transfer")
    return result


def validate_settle_input(amount_spent) -> ValidationResult:
    result = ValidationResult()
    amount = to_decimal_or_none(amount_spent)
    if amount_spent is None or amount_spent == "":
        result.errors.append("Amount spent is required")
    elif amount is None:
        result.errors.append("Amount spent must be a number")
    elif amount < ZERO:
        result.errors.append("Amount spent cannot be negative")
    return result


def format_bkk_amount(amount) -> str:
    if amount is None:
        return "-"
    return format_idr(amount)
