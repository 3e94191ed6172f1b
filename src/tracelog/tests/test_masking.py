"""Tests for PII masking helpers."""

from __future__ import annotations

import pytest

from tracelog.core import attrs
from tracelog.core.attrs import Kind
from tracelog.masking import (
    is_date_like,
    mask_attr,
    mask_email,
    mask_phone,
    mask_pii,
    mask_ssn,
    mask_string,
)


# ═════════════════════════════════════════════════════════════════════════════
# Phone Numbers
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("+467338878654", "+46XXXXXXX654"),
        ("07338878654", "073XXXXX654"),
        ("1234", "1234"),
        ("+468123456789", "+46XXXXXXX789"),
        ("Contact +467338878654 or 07338878654", "Contact +46XXXXXXX654 or 073XXXXX654"),
        ("+46 733 887 8654", "+46 XXX XXX 8654"),
        ("+46-733-887-8654", "+46-XXX-XXX-8654"),
    ],
)
def test_mask_phone(text: str, expected: str) -> None:
    """Keeps the first and last three digits and the original separators."""
    assert mask_phone(text) == expected


@pytest.mark.parametrize("text", ["2020-01-01", "20200101", "2019-09-08T10:32:21Z"])
def test_mask_phone_leaves_dates(text: str) -> None:
    assert mask_phone(text) == text


# ═════════════════════════════════════════════════════════════════════════════
# Email Addresses
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("john.doe@example.com", "jXXXXXXe@example.com"),
        ("jd@example.com", "XX@example.com"),
        ("avery.long.email@example.com", "aXXXXXXXXXXXXXXl@example.com"),
        (
            "Contact john.doe@example.com and jane.smith@domain.org",
            "Contact jXXXXXXe@example.com and jXXXXXXXXh@domain.org",
        ),
        ("username@domain.com", "uXXXXXXe@domain.com"),
        ("user1234@domain.net", "uXXXXXX4@domain.net"),
    ],
)
def test_mask_email(text: str, expected: str) -> None:
    """Masks the local part, leaves the domain."""
    assert mask_email(text) == expected


# ═════════════════════════════════════════════════════════════════════════════
# National ID, Literals, Dates
# ═════════════════════════════════════════════════════════════════════════════


def test_mask_ssn() -> None:
    assert mask_ssn("id 199001011234 on file") == "id XXXXXXXX1234 on file"
    assert mask_ssn("short 12345") == "short 12345"


def test_mask_string() -> None:
    assert mask_string("token=abc123; again abc123", "abc123") == "token=XXXXXX; again XXXXXX"
    assert mask_string("unchanged", "") == "unchanged"


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("2020-01-01", True),
        ("20200101", True),
        ("2019-09-08T10:32:21Z", True),
        ("0701234567", False),
        ("2020-01-01 extra", False),
    ],
)
def test_is_date_like(token: str, expected: bool) -> None:
    assert is_date_like(token) is expected


# ═════════════════════════════════════════════════════════════════════════════
# Combined
# ═════════════════════════════════════════════════════════════════════════════


def test_mask_pii_applies_every_pattern() -> None:
    text = "call +467338878654, mail john.doe@example.com, id 199001011234"
    assert mask_pii(text) == "call +46XXXXXXX654, mail jXXXXXXe@example.com, id XXXXXXXX1234"


@pytest.mark.parametrize(
    "text",
    [
        "+46 733 887 8654",
        "Contact john.doe@example.com and jd@example.com",
        "199001011234",
        "nothing sensitive here",
    ],
)
def test_masking_is_idempotent(text: str) -> None:
    once = mask_pii(text)
    assert mask_pii(once) == once


def test_non_pii_is_returned_unchanged() -> None:
    text = "order 42 shipped on 2024-05-01"
    assert mask_pii(text) == text


def test_mask_attr_masks_strings_and_groups() -> None:
    """String and error values are masked, recursively through groups."""
    attr = attrs.group(
        "user",
        attrs.string("email", "john.doe@example.com"),
        attrs.error(ValueError("bad phone 07338878654")),
        attrs.int_("age", 42),
    )
    masked = mask_attr(attr)

    email, err, age = masked.attrs
    assert email.value == "jXXXXXXe@example.com"
    assert err.kind is Kind.ERROR and err.value == "bad phone 073XXXXX654"
    assert age == attrs.int_("age", 42)
    # original untouched
    assert attr.attrs[0].value == "john.doe@example.com"


def test_mask_attr_with_custom_masker() -> None:
    attr = attrs.string("note", "secret-token in text")
    assert mask_attr(attr, lambda s: mask_string(s, "secret-token")).value == "XXXXXXXXXXXX in text"
