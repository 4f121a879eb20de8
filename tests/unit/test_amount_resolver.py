"""Unit tests for AmountResolver."""

from decimal import Decimal

import pytest

from invoice_tracker.resolvers import AmountResolver


@pytest.fixture
def resolver() -> AmountResolver:
    return AmountResolver()


@pytest.mark.parametrize("written, expected", [
    ("1,234.56", Decimal("1234.56")),
    ("0.99", Decimal("0.99")),
    ("15000", Decimal("15000")),
])
def test_total_label_reproduces_amount(resolver: AmountResolver, written: str, expected: Decimal) -> None:
    """Test "Total: $X" resolves to X."""
    assert resolver.resolve(f"Total: ${written}") == expected


def test_invoice_total_wins_over_total(resolver: AmountResolver) -> None:
    """Test the more specific label takes priority wherever it appears."""
    text = "Total: $500.00\nInvoice Total: $450.00"

    assert resolver.resolve(text) == Decimal("450.00")


def test_parenthesized_amount_is_negative(resolver: AmountResolver) -> None:
    """Test accounting-style parentheses mark a credit."""
    assert resolver.resolve("Amount Due: ($200.00)") == Decimal("-200.00")


def test_minus_sign_is_negative(resolver: AmountResolver) -> None:
    """Test a minus sign before the currency symbol marks a credit."""
    assert resolver.resolve("Credit Amount: -$75.50") == Decimal("-75.50")


def test_total_due_label(resolver: AmountResolver) -> None:
    """Test "Total Due" is treated as a total label."""
    assert resolver.resolve("Total Due: 300.00") == Decimal("300.00")


def test_unlabelled_signed_amount(resolver: AmountResolver) -> None:
    """Test a bare parenthesized number is used when no label matches."""
    assert resolver.resolve("Adjustment (150.00) applied") == Decimal("-150.00")


def test_unlabelled_dollar_amount(resolver: AmountResolver) -> None:
    """Test any dollar amount is the last resort."""
    assert resolver.resolve("Please pay $99.90 today") == Decimal("99.90")


def test_dates_are_not_negative_amounts(resolver: AmountResolver) -> None:
    """Test hyphens inside date tokens are not minus signs."""
    assert resolver.resolve("Invoice Date: 23-Aug-2024\nTotal: $80.00") == Decimal("80.00")


@pytest.mark.parametrize("text", ["no amounts here", "", None])
def test_no_amount_resolves_to_zero(resolver: AmountResolver, text) -> None:
    """Test missing amounts resolve to zero without raising."""
    assert resolver.resolve(text) == Decimal("0")
