"""Unit tests for storage path derivation."""

import re

import pytest

from services.paths import (
    is_valid_owner_id,
    sanitize_path,
    sanitize_segment,
    unique_filename,
)

ALLOWED_PATH = re.compile(r"^[a-z0-9_\-]+/[a-z0-9_\-]+$")


def test_sanitize_path_client_and_section():
    """Test: Spaces become underscores and everything is lowercased."""
    assert sanitize_path("Acme Corp", "Invoices") == "acme_corp/invoices"
    assert sanitize_path("Acme Corp", "Receipts") == "acme_corp/receipts"


def test_sanitize_segment_deletes_disallowed_characters():
    assert sanitize_segment("Smith & Sons, Ltd.") == "smith_sons_ltd"
    assert sanitize_segment("Year-End 2024") == "year-end_2024"
    assert sanitize_segment("  Acme    Corp  ") == "acme_corp"
    assert sanitize_segment("!! Acme") == "acme"


def test_sanitize_path_removes_traversal_sequences():
    """Test: Dots and separators are deleted, so no traversal survives."""
    path = sanitize_path("../../etc", "passwd")
    assert path == "etc/passwd"
    assert ".." not in sanitize_path("..", "a/../b")
    assert sanitize_path("a\\b", "c/d").count("/") == 1


@pytest.mark.parametrize(
    "client_name,section",
    [
        ("Acme Corp", "Invoices"),
        ("Müller GmbH", "Bank Statements"),
        ("O'Brien & Co.", "VAT/Returns 2024"),
        ("  tabs\tand\nnewlines ", "payroll <script>"),
        ("日本 Client 1", "Q1-Q2 receipts"),
    ],
)
def test_sanitize_path_is_deterministic_and_restricted(client_name, section):
    first = sanitize_path(client_name, section)
    second = sanitize_path(client_name, section)

    assert first == second
    assert ALLOWED_PATH.match(first), first


def test_sanitize_segment_is_lossy():
    """Test: Deleting characters means distinct inputs can collide (known limitation)."""
    assert sanitize_segment("A/B") == sanitize_segment("AB")


def test_sanitize_segment_can_be_empty():
    assert sanitize_segment("!!!") == ""


def test_unique_filename_format():
    name = unique_filename("Q1 Report.PDF")
    assert re.fullmatch(r"q1_report_\d{13}_[0-9a-f]{8}\.pdf", name), name


def test_unique_filename_drops_directories():
    name = unique_filename("..\\..\\windows\\evil.txt")
    assert "/" not in name
    assert "\\" not in name
    assert name.startswith("evil_")
    assert name.endswith(".txt")

    assert unique_filename("../../etc/passwd.csv").startswith("passwd_")


def test_unique_filename_fallback_base_name():
    assert unique_filename("%%%.pdf").startswith("file_")
    assert re.fullmatch(r"notes_\d{13}_[0-9a-f]{8}", unique_filename("notes"))


def test_unique_filename_differs_between_calls():
    assert unique_filename("invoice.pdf") != unique_filename("invoice.pdf")


@pytest.mark.parametrize(
    "owner_id,expected",
    [
        ("user_2abcOwnerA", True),
        ("abc-123", True),
        ("a" * 100, True),
        ("a" * 101, False),
        ("", False),
        ("../other", False),
        ("user a", False),
        ("user/a", False),
        (None, False),
        (42, False),
    ],
)
def test_is_valid_owner_id(owner_id, expected):
    assert is_valid_owner_id(owner_id) is expected


def test_unique_filename_embeds_given_timestamp():
    name = unique_filename("invoice.pdf", timestamp_ms=1741078800000)
    assert re.fullmatch(r"invoice_1741078800000_[0-9a-f]{8}\.pdf", name), name
