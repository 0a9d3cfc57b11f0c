"""Tests for the payment split and receipt input validation."""
import pytest
from quarry_ledger.core.exceptions import ValidationError
from quarry_ledger.models.receipt import PaymentMethod, PaymentStatus
from quarry_ledger.utils.receipt_validation import (
    calculate_split,
    coerce_number,
    compute_payment_status,
    format_receipt_no,
    infer_payment_method,
    receipt_sequence,
    validate_receipt_input,
)


class TestCalculateSplit:
    def test_fully_paid_in_cash(self):
        split = calculate_split(2, 1200, 150, cash_paid=2550)

        assert split.material_cost == 2400
        assert split.total_amount == 2550
        assert split.credit_amount == 0
        assert split.payment_status == PaymentStatus.PAID

    def test_partial_cash(self):
        split = calculate_split(1, 1000, 150, cash_paid=500)

        assert split.total_amount == 1150
        assert split.credit_amount == 650
        assert split.payment_status == PaymentStatus.PARTIAL

    def test_nothing_paid(self):
        split = calculate_split(1.5, 1200, 0)

        assert split.total_amount == 1800
        assert split.credit_amount == 1800
        assert split.payment_status == PaymentStatus.UNPAID

    def test_deposit_counts_towards_settlement(self):
        split = calculate_split(1, 850, 150, cash_paid=0, deposit_deducted=300)

        assert split.credit_amount == 700
        assert split.payment_status == PaymentStatus.PARTIAL

    def test_overpayment_leaves_negative_credit(self):
        split = calculate_split(1, 1000, 0, cash_paid=1200)

        assert split.credit_amount == -200
        assert split.payment_status == PaymentStatus.PAID

    @pytest.mark.parametrize("qty, rate, loading, cash, deposit", [
        (0.33, 1199.99, 150, 100, 0),
        (2.75, 1234.56, 0, 1000.01, 500.5),
        (1, 999.99, 149.99, 0, 0),
        (7.1, 1100, 75.25, 9000, 25.75),
    ])
    def test_parts_always_add_up_to_total(self, qty, rate, loading, cash, deposit):
        split = calculate_split(qty, rate, loading, cash, deposit)

        assert split.cash_paid + split.deposit_deducted + split.credit_amount == pytest.approx(split.total_amount, abs=0.01)

    def test_blank_form_values_count_as_zero(self):
        split = calculate_split("2", "1200", "", cash_paid=None)

        assert split.total_amount == 2400
        assert split.cash_paid == 0


class TestHelpers:
    @pytest.mark.parametrize("value, expected", [
        (None, 0.0), ("", 0.0), ("abc", 0.0), (True, 0.0), (float("nan"), 0.0),
        ("12.5", 12.5), (3, 3.0),
    ])
    def test_coerce_number(self, value, expected):
        assert coerce_number(value) == expected

    def test_status_within_tolerance_is_paid(self):
        assert compute_payment_status(1000, 999.996) == PaymentStatus.PAID

    def test_infer_payment_method(self):
        assert infer_payment_method(10) == PaymentMethod.CASH
        assert infer_payment_method(0) == PaymentMethod.CREDIT

    def test_receipt_sequence(self):
        assert receipt_sequence("GM9001") == 9001
        assert receipt_sequence("A-17/") == 17
        assert receipt_sequence("MANUAL") is None

    def test_format_receipt_no(self):
        assert format_receipt_no("GM", 9002) == "GM9002"
        assert format_receipt_no("R", 7) == "R0007"


class TestValidateReceiptInput:
    def test_valid_input_passes(self):
        validate_receipt_input("Ramesh", "MH12AB1234", 2, 1200, loading_charge=150, cash_paid=0)

    @pytest.mark.parametrize("owner, vehicle", [("", "MH12"), ("Ramesh", "  "), (None, "MH12")])
    def test_owner_and_vehicle_required(self, owner, vehicle):
        with pytest.raises(ValidationError, match="required"):
            validate_receipt_input(owner, vehicle, 1, 1200)

    @pytest.mark.parametrize("qty, rate", [(0, 1200), (-1, 1200), (1, 0), ("", 1200), (1, "abc")])
    def test_quantity_and_rate_must_be_positive(self, qty, rate):
        with pytest.raises(ValidationError):
            validate_receipt_input("Ramesh", "MH12", qty, rate)

    def test_negative_cash_rejected(self):
        with pytest.raises(ValidationError, match="Cash paid"):
            validate_receipt_input("Ramesh", "MH12", 1, 1200, cash_paid=-5)

    def test_negative_loading_rejected(self):
        with pytest.raises(ValidationError, match="Loading charge"):
            validate_receipt_input("Ramesh", "MH12", 1, 1200, loading_charge=-1)

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(ValidationError, match="payment method"):
            validate_receipt_input("Ramesh", "MH12", 1, 1200, payment_method="cheque")

    def test_deposit_payment_needs_amount(self):
        with pytest.raises(ValidationError, match="Deposit amount"):
            validate_receipt_input("Ramesh", "MH12", 1, 1200, payment_method="deposit")

    def test_unknown_owner_type_rejected(self):
        with pytest.raises(ValidationError, match="owner type"):
            validate_receipt_input("Ramesh", "MH12", 1, 1200, owner_type="vip")
