"""Unit tests for DateResolver.

Tests cover:
- Named-month tokens and two-digit years
- Day/month disambiguation by value and by invoice-number prefix
- Invalid tokens
- Token discovery and display formatting
"""

from datetime import date

import pytest

from invoice_tracker.resolvers import DateResolver, INTERNATIONAL_FORMAT, US_FORMAT
from invoice_tracker.utils.exceptions import ConfigurationError


@pytest.fixture
def resolver() -> DateResolver:
    return DateResolver()


@pytest.mark.parametrize("token, expected", [
    ("23-Aug-2024", date(2024, 8, 23)),
    ("23-Aug-24", date(2024, 8, 23)),
    ("5 Sept 2024", date(2024, 9, 5)),
    ("01/december/2023", date(2023, 12, 1)),
])
def test_named_month_tokens(resolver: DateResolver, token: str, expected: date) -> None:
    """Test named-month tokens resolve regardless of invoice number."""
    assert resolver.resolve(token) == expected


def test_first_part_over_twelve_is_day(resolver: DateResolver) -> None:
    """Test 13-05-2024 is read as 13 May."""
    assert resolver.resolve("13-05-2024") == date(2024, 5, 13)


def test_second_part_over_twelve_is_day(resolver: DateResolver) -> None:
    """Test 05/13/2024 is read as 13 May even for an international series."""
    assert resolver.resolve("05/13/2024", invoice_number="4012345") == date(2024, 5, 13)


def test_us_prefix_reads_month_first(resolver: DateResolver) -> None:
    """Test an ambiguous date on a US-series invoice is MM-DD-YYYY."""
    assert resolver.resolve("04-05-2024", invoice_number="4712345") == date(2024, 4, 5)


def test_international_prefix_reads_day_first(resolver: DateResolver) -> None:
    """Test an ambiguous date on an international-series invoice is DD-MM-YYYY."""
    assert resolver.resolve("04-05-2024", invoice_number="4012345") == date(2024, 5, 4)


def test_unknown_prefix_reads_day_first(resolver: DateResolver) -> None:
    """Test unknown series and missing invoice numbers default to DD-MM-YYYY."""
    assert resolver.resolve("04-05-2024", invoice_number="9912345") == date(2024, 5, 4)
    assert resolver.resolve("04-05-2024") == date(2024, 5, 4)


def test_prefix_tables_are_injectable() -> None:
    """Test constructor prefix tables override the configured ones."""
    resolver = DateResolver(us_prefixes=["99"], international_prefixes=["47"])

    assert resolver.date_format_for("9912345") == US_FORMAT
    assert resolver.date_format_for("4712345") == INTERNATIONAL_FORMAT
    assert resolver.resolve("04-05-2024", invoice_number="9912345") == date(2024, 4, 5)


@pytest.mark.parametrize("token", [
    "31-02-2024",
    "23-Foo-2024",
    "00-05-2024",
    "04-05",
    "",
    None,
])
def test_invalid_tokens_resolve_to_none(resolver: DateResolver, token) -> None:
    """Test impossible dates, unknown months and malformed tokens."""
    assert resolver.resolve(token) is None


def test_find_tokens_in_order(resolver: DateResolver) -> None:
    """Test date tokens are returned in order of appearance."""
    text = "Invoice Date: 23-Aug-2024\nDue Date: 22/09/2024\nRef CC-2024-01"

    assert resolver.find_tokens(text) == ["23-Aug-2024", "22/09/2024"]
    assert resolver.find_tokens("") == []


def test_format_for_display() -> None:
    """Test dates format as DD-Mon-YY."""
    assert DateResolver.format_for_display(date(2024, 8, 3)) == "03-Aug-24"
    assert DateResolver.format_for_display(None) == ""


def test_overlapping_prefix_tables_are_rejected() -> None:
    """Test a prefix listed in both tables is a configuration error."""
    with pytest.raises(ConfigurationError):
        DateResolver(us_prefixes=["46"], international_prefixes=["46", "40"])


def test_prefix_table_must_be_a_list() -> None:
    """Test a bare string is not accepted as a prefix table."""
    with pytest.raises(ConfigurationError):
        DateResolver(us_prefixes="46")
