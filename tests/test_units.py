"""Unit tests for amount parsing and formatting."""

from __future__ import annotations

import pytest

from protectedpay.contract.models import GroupPayment, GroupPaymentStatus
from protectedpay.errors import ValidationError
from protectedpay.units import (
    UINT256_MAX,
    WEI_PER_UNIT,
    format_amount,
    parse_amount,
    parse_positive_amount,
    ratio,
)

from fakes import OTHER_ADDRESS, TEST_ADDRESS, wire_id


class TestParseAmount:
    @pytest.mark.parametrize(
        "text, wei",
        [
            ("1", WEI_PER_UNIT),
            ("1.0", WEI_PER_UNIT),
            ("0.25", WEI_PER_UNIT // 4),
            ("0", 0),
            ("0.000000000000000001", 1),
            (" 2.5 ", 25 * 10**17),
            ("1e-18", 1),
        ],
    )
    def test_valid(self, text: str, wei: int) -> None:
        assert parse_amount(text) == wei

    def test_large_value_is_exact(self) -> None:
        # far beyond the default Decimal context precision
        text = "123456789012345678901234567890.123456789012345678"
        assert parse_amount(text) == 123456789012345678901234567890123456789012345678

    @pytest.mark.parametrize("text", ["", "  ", "abc", "1.2.3", "NaN", "Infinity"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ValidationError):
            parse_amount(text)

    def test_negative(self) -> None:
        with pytest.raises(ValidationError, match="negative"):
            parse_amount("-1")

    def test_too_many_decimals(self) -> None:
        with pytest.raises(ValidationError, match="decimal places"):
            parse_amount("0.0000000000000000001")

    def test_overflow(self) -> None:
        with pytest.raises(ValidationError, match="too large"):
            parse_amount(str(UINT256_MAX))

    @pytest.mark.parametrize("text", ["1e400000000", "9" * 79, "1E+96"])
    def test_huge_exponent_rejected(self, text: str) -> None:
        with pytest.raises(ValidationError, match="too large"):
            parse_amount(text)

    @pytest.mark.parametrize("text", ["1e-400000000", "5E-19"])
    def test_tiny_exponent_rejected(self, text: str) -> None:
        with pytest.raises(ValidationError, match="decimal places"):
            parse_amount(text)

    @pytest.mark.parametrize("text, wei", [("0e400000000", 0), ("0e-400000000", 0), ("100e-20", 1)])
    def test_exponent_forms(self, text: str, wei: int) -> None:
        assert parse_amount(text) == wei


class TestFormatAmount:
    @pytest.mark.parametrize(
        "wei, text",
        [
            (0, "0.0"),
            (WEI_PER_UNIT, "1.0"),
            (1, "0.000000000000000001"),
            (15 * 10**17, "1.5"),
            (120_000_000 * WEI_PER_UNIT, "120000000.0"),
        ],
    )
    def test_canonical(self, wei: int, text: str) -> None:
        assert format_amount(wei) == text

    @pytest.mark.parametrize(
        "text", ["0.0", "1.0", "0.000000000000000001", "120000000.123456789012345678"]
    )
    def test_round_trip(self, text: str) -> None:
        assert format_amount(parse_amount(text)) == text


class TestPositiveAmount:
    def test_zero_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Target amount must be greater than zero"):
            parse_positive_amount("0", "Target amount")

    def test_positive(self) -> None:
        assert parse_positive_amount("0.1") == 10**17


class TestRatio:
    def test_partial(self) -> None:
        assert ratio("0.25", "1") == pytest.approx(0.25)

    def test_zero_denominator(self) -> None:
        assert ratio("1", "0") == 0.0

    def test_clamped(self) -> None:
        assert ratio("3", "2") == 1.0

    def test_zero_numerator(self) -> None:
        assert ratio("0", "4.5") == 0.0

    def test_exact_equality(self) -> None:
        assert ratio("10.0", "10.0") == 1.0


def _group_payment(collected: str, total: str = "10.0") -> GroupPayment:
    return GroupPayment(
        id=wire_id(1),
        creator=TEST_ADDRESS,
        recipient=OTHER_ADDRESS,
        total_amount=total,
        amount_per_person="2.0",
        num_participants=5,
        amount_collected=collected,
        timestamp=1_700_000_000,
        status=GroupPaymentStatus.PENDING,
        remarks="dinner",
    )


class TestGroupPaymentProgress:
    @pytest.mark.parametrize(
        "collected, total, expected",
        [
            ("0", "10.0", 0.0),
            ("4.0", "10.0", 0.4),
            ("10.0", "10.0", 1.0),
            ("12.0", "10.0", 1.0),
            ("0", "0", 0.0),
        ],
    )
    def test_progress(self, collected: str, total: str, expected: float) -> None:
        assert _group_payment(collected, total).progress == pytest.approx(expected)
