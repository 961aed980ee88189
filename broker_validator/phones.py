"""
Phone number cleanup and standardization for Brazilian numbers.

Strategy:
  1. Strip every character that is not a digit, parenthesis, hyphen or space
  2. Reject numbers that are obviously bogus (wrong length, all zeros,
     one repeated digit, a blatant 12345678-style sequence)
  3. Work out area code + subscriber number from the digit count,
     dropping a leading "55" country code when present
  4. Render the canonical "(AA) NNNNN-NNNN" / "(AA) NNNN-NNNN" form

A number that passes step 2 but cannot be standardized is a WARNING, not
a CRITICAL failure: it may be fine, we just cannot normalize it.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any, Optional

from .fields import ensure_batch, percent, record_id_of
from .models import (
    PhoneBatchResult,
    PhoneValidationResult,
    Record,
    Severity,
)

# ─── Constants ───────────────────────────────────────────────────────

COUNTRY_CODE = "55"
MIN_DIGITS = 10  # area code + 8-digit landline
MAX_DIGITS = 13  # country code + area code + 9-digit mobile
MIN_AREA_CODE = 11
MAX_AREA_CODE = 99

# Exact-match only: legitimate numbers often contain an ascending run.
OBVIOUS_SEQUENCES: frozenset[str] = frozenset({
    "01234567", "12345678", "98765432", "87654321",
})

_DISALLOWED_CHARS = re.compile(r"[^0-9()\-\s]")
_NON_DIGITS = re.compile(r"[^0-9]")
_ALL_ZEROS = re.compile(r"0+")
_REPEATED_DIGIT = re.compile(r"([0-9])\1{7,}")

MSG_MISSING = "Phone number is missing or not a string"
MSG_OBVIOUSLY_INVALID = "Phone number is obviously invalid (too short/long, all zeros, etc.)"
MSG_STANDARDIZED = "Phone number was cleaned and standardized"
MSG_NOT_STANDARDIZABLE = "Phone number format could not be standardized"


# ─── Helpers ─────────────────────────────────────────────────────────


def clean_phone(phone: str) -> str:
    """Remove everything except digits, parentheses, hyphens and whitespace."""
    return _DISALLOWED_CHARS.sub("", phone)


def digits_only(phone: str) -> str:
    return _NON_DIGITS.sub("", phone)


def _has_country_code(digits: str) -> bool:
    return len(digits) in (12, 13) and digits.startswith(COUNTRY_CODE)


def subscriber_number(digits: str) -> str:
    """Digits after the (optional) country code and the 2-digit area code."""
    return digits[4:] if _has_country_code(digits) else digits[2:]


def is_obviously_invalid(digits: str) -> bool:
    """True for digit strings no real subscriber could have."""
    if len(digits) < MIN_DIGITS or len(digits) > MAX_DIGITS:
        return True

    number = subscriber_number(digits)
    if _ALL_ZEROS.fullmatch(number):
        return True
    if _REPEATED_DIGIT.fullmatch(number):
        return True
    return number in OBVIOUS_SEQUENCES


def standardize_phone(phone: Any) -> Optional[str]:
    """Render ``phone`` as "(AA) NNNNN-NNNN" or "(AA) NNNN-NNNN".

    Returns:
        The standardized string, or None when the digit count or area code
        does not fit a Brazilian number. Idempotent on its own output.
    """
    if not isinstance(phone, str):
        return None

    digits = digits_only(phone)
    if len(digits) in (10, 11):
        area_code, number = digits[:2], digits[2:]
    elif _has_country_code(digits):
        area_code, number = digits[2:4], digits[4:]
    else:
        return None

    if not MIN_AREA_CODE <= int(area_code) <= MAX_AREA_CODE:
        return None

    if len(number) == 9:
        formatted = f"{number[:5]}-{number[5:]}"
    elif len(number) == 8:
        formatted = f"{number[:4]}-{number[4:]}"
    else:
        return None

    return f"({area_code}) {formatted}"


# ─── Public API ──────────────────────────────────────────────────────


def validate_phone(phone: Any, record_id: str = "unknown") -> PhoneValidationResult:
    """Clean, sanity-check and standardize one phone number.

    Never raises: a missing or garbage phone is a CRITICAL result.
    """
    result = PhoneValidationResult(record_id=record_id, original_phone=phone)

    if not phone or not isinstance(phone, str):
        result.issues.append(MSG_MISSING)
        result.severity = Severity.CRITICAL
        return result

    cleaned = clean_phone(phone)
    result.cleaned_phone = cleaned

    if is_obviously_invalid(digits_only(cleaned)):
        result.issues.append(MSG_OBVIOUSLY_INVALID)
        result.severity = Severity.CRITICAL
        return result

    standardized = standardize_phone(cleaned)
    if standardized is None:
        result.issues.append(MSG_NOT_STANDARDIZABLE)
        result.severity = Severity.WARNING
        return result

    result.is_valid = True
    result.standardized_phone = standardized
    if phone != standardized:
        result.issues.append(MSG_STANDARDIZED)

    return result


def validate_phone_batch(records: Sequence[Record]) -> PhoneBatchResult:
    """Validate the ``phone`` field of every record."""
    batch = ensure_batch(records)
    result = PhoneBatchResult(total_records=len(batch))

    for record in batch:
        validation = validate_phone(record.get("phone"), record_id_of(record))
        result.results.append(validation)
        result.severity_counts.add(validation.severity)

        if validation.is_valid:
            result.valid_count += 1
            if validation.was_standardized:
                result.cleaned_count += 1
        else:
            result.invalid_count += 1

    return result


def standardized_records(records: Sequence[Record]) -> list[dict[str, Any]]:
    """New records with the standardized phone applied where one exists.

    Each returned record also carries a ``phone_validation`` summary.
    Inputs are not modified.
    """
    output: list[dict[str, Any]] = []
    for record in ensure_batch(records):
        validation = validate_phone(record.get("phone"), record_id_of(record))
        updated = dict(record)
        updated["phone"] = validation.standardized_phone or record.get("phone")
        updated["phone_validation"] = {
            "is_valid": validation.is_valid,
            "was_standardized": validation.was_standardized,
            "issues": list(validation.issues),
        }
        output.append(updated)
    return output


# ─── Text Report ─────────────────────────────────────────────────────


def render_phone_report(batch: PhoneBatchResult) -> str:
    """Human-readable summary of a phone batch."""
    counts = batch.severity_counts
    lines = [
        "Phone Number Validation Report",
        "=====================================",
        f"Total Records: {batch.total_records}",
        f"Valid Phones: {batch.valid_count} "
        f"({percent(batch.valid_count, batch.total_records)}%)",
        f"Invalid Phones: {batch.invalid_count}",
        f"Cleaned/Standardized: {batch.cleaned_count}",
        "",
        "Issue Summary:",
        f"- Critical Issues: {counts.critical} (missing/obviously invalid)",
        f"- Warnings: {counts.warning} (format issues)",
        f"- Info: {counts.info} (cleaned successfully)",
        f"- Standardized: {batch.cleaned_count}",
        "",
    ]

    if batch.invalid_count > 0:
        lines.append("Records Needing Attention:")
        for result in batch.results:
            if result.is_valid:
                continue
            lines.append(f"- Record {result.record_id}: {', '.join(result.issues)}")
            lines.append(f'  Original: "{result.original_phone}"')
            if result.cleaned_phone:
                lines.append(f'  Cleaned: "{result.cleaned_phone}"')

    return "\n".join(lines) + "\n"
