"""PII masking for log payloads.

Masks phone numbers, email addresses and national ID numbers (Swedish
personnummer, YYYYMMDDXXXX) inside arbitrary strings, keeping enough of each
value to stay useful when debugging. Nothing here is wired into the logging
pipeline: callers mask values before they log them.

Example:
    >>> mask_phone("call +467338878654")
    'call +46XXXXXXX654'
    >>> mask_email("john.doe@example.com")
    'jXXXXXXe@example.com'
    >>> log.info("signup", attrs.string("email", mask_email(email)))

Each pattern is applied in its own pass. Masked output never matches a
pattern again, so masking twice is a no-op.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from tracelog.core.attrs import Attr, Kind

MASK_CHAR = "X"

_PHONE_RE = re.compile(r"(\+46|0)[\d\s-]{9,12}", re.ASCII)
_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.ASCII)
_SSN_RE = re.compile(r"\b\d{8}\d{4}\b", re.ASCII)
_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}(?:T\d{2}:\d{2}:\d{2}Z)?|\d{8}", re.ASCII)

_SEPARATORS = " -"


@dataclass(frozen=True, slots=True)
class MaskPattern:
    """Compiled pattern plus the function that masks each match."""

    name: str
    regex: re.Pattern[str]
    mask: Callable[[str], str]

    def apply(self, text: str) -> str:
        return self.regex.sub(lambda m: self.mask(m.group(0)), text)


def is_date_like(token: str) -> bool:
    """Whole-token match for YYYY-MM-DD, YYYY-MM-DDThh:mm:ssZ or YYYYMMDD."""
    return _DATE_RE.fullmatch(token) is not None


# ─────────────────────────────────────────────────────────────────────────────
# Per-match Maskers
# ─────────────────────────────────────────────────────────────────────────────


def _mask_phone_match(phone: str) -> str:
    plain = phone.replace(" ", "").replace("-", "")
    # probably a date rather than a phone number
    if is_date_like(plain):
        return phone
    if len(plain) <= 8:
        return phone
    masked = iter(plain[:3] + MASK_CHAR * (len(plain) - 6) + plain[-3:])
    # keep spaces and dashes where they were in the original
    return "".join(c if c in _SEPARATORS else next(masked) for c in phone)


def _mask_email_match(email: str) -> str:
    local, _, domain = email.partition("@")
    if len(local) > 2:
        return f"{local[0]}{MASK_CHAR * (len(local) - 2)}{local[-1]}@{domain}"
    return f"{MASK_CHAR * len(local)}@{domain}"


def _mask_ssn_match(ssn: str) -> str:
    return MASK_CHAR * 8 + ssn[8:]


PHONE = MaskPattern("phone", _PHONE_RE, _mask_phone_match)
EMAIL = MaskPattern("email", _EMAIL_RE, _mask_email_match)
SSN = MaskPattern("ssn", _SSN_RE, _mask_ssn_match)


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────


def mask_phone(text: str) -> str:
    """Mask phone numbers, keeping the first 3 and last 3 digits visible."""
    return PHONE.apply(text)


def mask_email(text: str) -> str:
    """Mask the local part of email addresses, keeping its first and last char."""
    return EMAIL.apply(text)


def mask_ssn(text: str) -> str:
    """Mask national ID numbers (YYYYMMDDXXXX), keeping the last 4 digits."""
    return SSN.apply(text)


def mask_string(text: str, literal: str) -> str:
    """Replace every occurrence of a known-sensitive literal with a same-length mask."""
    return text.replace(literal, MASK_CHAR * len(literal)) if literal else text


def mask_pii(text: str) -> str:
    """Apply the phone, email and national ID passes in turn."""
    for pattern in (PHONE, EMAIL, SSN):
        text = pattern.apply(text)
    return text


def mask_attr(attr: Attr, *maskers: Callable[[str], str]) -> Attr:
    """Return a copy of attr with maskers applied to its string values.

    String and error values are masked; groups are masked recursively; other
    kinds are returned unchanged. Defaults to `mask_pii`.
    """
    fns = maskers or (mask_pii,)
    match attr.kind:
        case Kind.STRING | Kind.ERROR:
            value = attr.value
            for fn in fns:
                value = fn(value)  # type: ignore[arg-type]
            return Attr(attr.key, attr.kind, value)
        case Kind.GROUP:
            return Attr(attr.key, Kind.GROUP, tuple(mask_attr(child, *fns) for child in attr.attrs))
        case _:
            return attr
