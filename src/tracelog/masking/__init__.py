"""PII masking helpers for values about to be logged."""

from .pii import (
    EMAIL,
    MASK_CHAR,
    PHONE,
    SSN,
    MaskPattern,
    is_date_like,
    mask_attr,
    mask_email,
    mask_phone,
    mask_pii,
    mask_ssn,
    mask_string,
)

__all__ = [
    "MASK_CHAR", "MaskPattern", "PHONE", "EMAIL", "SSN",
    "mask_phone", "mask_email", "mask_ssn", "mask_string", "mask_pii", "mask_attr",
    "is_date_like",
]
