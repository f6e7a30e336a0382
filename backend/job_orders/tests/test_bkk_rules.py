"""
Unit tests for the BKK rules: transition table, settlement reconciliation,
budget and summary totals, role-based actions and input validation.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from ..services.bkk import (
    BKKStatus,
    CostItemStatus,
    VALID_TRANSITIONS,
    calculate_available_budget,
    calculate_settlement,
    calculate_settlement_difference,
    calculate_summary,
    can_cancel,
    format_bkk_amount,
    generate_bkk_number,
    get_available_actions,
    is_valid_bkk_number,
    is_valid_status_transition,
    parse_bkk_number,
    validate_create_input,
    validate_reject_input,
    validate_release_input,
    validate_settle_input,
)


def _bkk(status, requested, spent=None):
    return SimpleNamespace(status=status, amount_requested=Decimal(str(requested)),
                           amount_spent=None if spent is None else Decimal(str(spent)))


class TestStatusTransitions:
    """Test the transition table"""

    ALLOWED = {
        ("pending", "approved"),
        ("pending", "rejected"),
        ("pending", "cancelled"),
        ("approved", "released"),
        ("released", "settled"),
    }

    @pytest.mark.parametrize("current", BKKStatus.ALL)
    @pytest.mark.parametrize("target", BKKStatus.ALL)
    def test_only_listed_edges_are_valid(self, current, target):
        expected = (current, target) in self.ALLOWED
        assert is_valid_status_transition(current, target) is expected

    def test_terminal_statuses_have_no_exits(self):
        for status in ("rejected", "settled", "cancelled"):
            assert VALID_TRANSITIONS[status] == ()

    def test_unknown_statuses_are_rejected(self):
        assert is_valid_status_transition("draft", "approved") is False
        assert is_valid_status_transition("pending", "paid") is False
        assert is_valid_status_transition("", "") is False

    def test_approved_cannot_be_cancelled(self):
        assert is_valid_status_transition("approved", "cancelled") is False

    def test_no_status_skipping(self):
        assert is_valid_status_transition("pending", "released") is False
        assert is_valid_status_transition("approved", "settled") is False


class TestSettlement:
    """Test settlement reconciliation"""

    def test_underspend_returns_cash_and_confirms(self):
        result = calculate_settlement(5_000_000, 4_500_000, 5_000_000)
        assert result.amount_returned == Decimal("500000")
        assert result.cost_item_status == CostItemStatus.CONFIRMED

    def test_exact_spend(self):
        result = calculate_settlement(1_000_000, 1_000_000, 1_000_000)
        assert result.amount_returned == Decimal("0")
        assert result.cost_item_status == "confirmed"

    def test_overspend_never_returns_negative(self):
        result = calculate_settlement(1_000_000, 1_500_000, 2_000_000)
        assert result.amount_returned == Decimal("0")
        assert result.cost_item_status == "confirmed"

    def test_spend_over_budget_is_exceeded(self):
        result = calculate_settlement(5_000_000, 5_500_000, 5_000_000)
        assert result.amount_returned == Decimal("0")
        assert result.cost_item_status == CostItemStatus.EXCEEDED

    def test_spend_equal_to_budget_is_confirmed(self):
        result = calculate_settlement(3_000_000, 2_000_000, 2_000_000)
        assert result.amount_returned == Decimal("1000000")
        assert result.cost_item_status == "confirmed"

    def test_missing_budget_counts_as_zero(self):
        assert calculate_settlement(100, 1, None).cost_item_status == "exceeded"
        assert calculate_settlement(100, 0, None).cost_item_status == "confirmed"
        assert calculate_settlement(100, 0, None).budget_amount == Decimal("0")

    def test_accepts_strings_and_decimals(self):
        result = calculate_settlement("1000.50", Decimal("1000.25"), "2000")
        assert result.amount_returned == Decimal("0.25")

    def test_no_rounding_applied(self):
        result = calculate_settlement(Decimal("10.005"), Decimal("0.001"), 100)
        assert result.amount_returned == Decimal("10.004")


class TestSettlementDifference:
    """Test the released vs spent difference helper"""

    def test_return(self):
        diff = calculate_settlement_difference(1000, 800)
        assert diff.difference == Decimal("200")
        assert diff.type == "return"

    def test_additional(self):
        diff = calculate_settlement_difference(1000, 1250)
        assert diff.difference == Decimal("250")
        assert diff.type == "additional"

    def test_exact(self):
        diff = calculate_settlement_difference(1000, 1000)
        assert diff.difference == Decimal("0")
        assert diff.type == "exact"


class TestAvailableBudget:
    """Test available budget for a cost item"""

    def test_counts_disbursed_and_pending_separately(self):
        rows = [
            _bkk("released", 1_000_000),
            _bkk("settled", 500_000, 450_000),
            _bkk("pending", 300_000),
            _bkk("approved", 200_000),
            _bkk("rejected", 9_000_000),
            _bkk("cancelled", 9_000_000),
        ]
        result = calculate_available_budget(5_000_000, rows)
        assert result.already_disbursed == Decimal("1500000")
        assert result.pending_requests == Decimal("500000")
        assert result.available == Decimal("3000000")

    def test_empty(self):
        result = calculate_available_budget("750000", [])
        assert result.available == Decimal("750000")
        assert result.already_disbursed == 0
        assert result.pending_requests == 0

    def test_can_go_negative(self):
        result = calculate_available_budget(100, [_bkk("pending", 150)])
        assert result.available == Decimal("-50")


class TestSummary:
    """Test job order summary totals"""

    def test_totals_and_counts(self):
        rows = [
            _bkk("pending", 100),
            _bkk("approved", 200),
            _bkk("released", 300),
            _bkk("settled", 400, 350),
            _bkk("rejected", 1000),
            _bkk("cancelled", 1000),
        ]
        summary = calculate_summary(rows)
        assert summary.total_requested == Decimal("1000")
        assert summary.total_released == Decimal("700")
        assert summary.total_settled == Decimal("350")
        assert summary.pending_return == Decimal("350")
        assert summary.count == {
            "pending": 1, "approved": 1, "rejected": 1,
            "released": 1, "settled": 1, "cancelled": 1,
        }

    def test_empty_summary_lists_every_status(self):
        summary = calculate_summary([])
        assert summary.total_requested == 0
        assert set(summary.count) == set(BKKStatus.ALL)
        assert all(v == 0 for v in summary.count.values())


class TestAvailableActions:
    """Test role-based actions"""

    def test_view_always_first(self):
        for status in BKKStatus.ALL:
            assert get_available_actions(status, "marketing")[0] == "view"

    def test_pending_requester_can_cancel(self):
        assert get_available_actions("pending", "ops", is_requester=True) == ["view", "cancel"]

    @pytest.mark.parametrize("role", ["admin", "finance", "manager", "super_admin"])
    def test_pending_approvers(self, role):
        assert get_available_actions("pending", role) == ["view", "approve", "reject"]

    def test_pending_ops_non_requester_only_views(self):
        assert get_available_actions("pending", "ops") == ["view"]

    @pytest.mark.parametrize("role,expected", [
        ("finance", ["view", "release"]),
        ("admin", ["view", "release"]),
        ("super_admin", ["view", "release"]),
        ("manager", ["view"]),
        ("ops", ["view"]),
    ])
    def test_approved_release(self, role, expected):
        assert get_available_actions("approved", role) == expected

    def test_released_settle(self):
        assert get_available_actions("released", "ops") == ["view", "settle"]
        assert get_available_actions("released", "finance") == ["view"]
        assert get_available_actions("released", "finance", is_requester=True) == ["view", "settle"]

    @pytest.mark.parametrize("status", ["rejected", "settled", "cancelled"])
    def test_terminal_only_view(self, status):
        assert get_available_actions(status, "super_admin", is_requester=True) == ["view"]

    def test_can_cancel(self):
        assert can_cancel("ops", True) is True
        assert can_cancel("manager", False) is True
        assert can_cancel("ops", False) is False


class TestInputValidation:
    """Test request validators"""

    def test_create_valid(self):
        assert validate_create_input("Port charges", 1_000_000).is_valid

    def test_create_missing_everything(self):
        result = validate_create_input("  ", None)
        assert not result.is_valid
        assert "Purpose is required" in result.errors
        assert "Amount is required" in result.errors

    @pytest.mark.parametrize("amount", [0, -1, "0.00"])
    def test_create_amount_must_be_positive(self, amount):
        assert validate_create_input("Fuel", amount).errors == ["Amount must be greater than zero"]

    def test_create_amount_must_be_number(self):
        assert validate_create_input("Fuel", "abc").errors == ["Amount must be a number"]

    def test_reject_requires_reason(self):
        assert validate_reject_input("").errors == ["Rejection reason is required"]
        assert validate_reject_input(None).errors == ["Rejection reason is required"]
        assert validate_reject_input("Duplicate request").is_valid

    @pytest.mark.parametrize("method,valid", [
        ("cash", True), ("transfer", True), ("cheque", False), (None, False), ("", False),
    ])
    def test_release_method(self, method, valid):
        assert validate_release_input(method).is_valid is valid

    def test_settle_allows_zero(self):
        assert validate_settle_input(0).is_valid

    def test_settle_rejects_negative_and_missing(self):
        assert validate_settle_input(-1).errors == ["Amount spent cannot be negative"]
        assert validate_settle_input(None).errors == ["Amount spent is required"]
        assert validate_settle_input("x").errors == ["Amount spent must be a number"]


class TestNumbering:
    """Test BKK number format"""

    def test_generate(self):
        assert generate_bkk_number(2025, 7) == "BKK-2025-0007"
        assert generate_bkk_number(2025, 1234) == "BKK-2025-1234"
        assert generate_bkk_number(2025, 10000) == "BKK-2025-10000"

    def test_parse(self):
        assert parse_bkk_number("BKK-2025-0042") == (2025, 42)
        assert parse_bkk_number("BKK-2025-10000") == (2025, 10000)
        assert parse_bkk_number("BKK-25-0042") is None
        assert parse_bkk_number("bkk-2025-0042") is None
        assert parse_bkk_number("") is None

    def test_is_valid(self):
        assert is_valid_bkk_number("BKK-2024-0001")
        assert not is_valid_bkk_number("BKK-2024-001")


class TestFormatting:
    def test_format_amount(self):
        assert format_bkk_amount(Decimal("5000000")) == "Rp 5.000.000"
        assert format_bkk_amount(None) == "-"
