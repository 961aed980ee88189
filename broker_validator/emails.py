"""
Email normalization and format validation.

Two kinds of "needs a human":
  - CRITICAL: structurally broken (consecutive dots, no TLD, fails the
    pattern). The address cannot be used.
  - WARNING: structurally fine but probably fake (test@test.com) or
    oddly short. The address is usable, someone should still look at it.

Normalization (trim + lowercase) is always safe and never affects validity.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any, Optional

from .fields import ensure_batch, percent, record_id_of
from .models import (
    EmailBatchResult,
    EmailValidationResult,
    Record,
    Severity,
)

# ─── Constants ───────────────────────────────────────────────────────

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

SUSPICIOUS_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"test@test\.com", re.IGNORECASE),
    re.compile(r"example@example\.com", re.IGNORECASE),
    re.compile(r"noemail@", re.IGNORECASE),
    re.compile(r"fake@", re.IGNORECASE),
    re.compile(r"@test\.", re.IGNORECASE),
    re.compile(r"@example\.", re.IGNORECASE),
)

MIN_LOCAL_LENGTH = 2
MIN_DOMAIN_LENGTH = 4
MAX_EMAIL_LENGTH = 320  # RFC 5321

MSG_MISSING = "Email address is missing or not a string"
MSG_EMPTY = "Email address is empty after trimming whitespace"
MSG_BAD_FORMAT = "Email format is invalid"
MSG_SUSPICIOUS = "Email appears to be a placeholder or test email"
MSG_NORMALIZED = "Email was normalized (trimmed and lowercased)"


# ─── Helpers ─────────────────────────────────────────────────────────


def normalize_email(email: Any) -> Optional[str]:
    """Trim and lowercase. None for non-strings. Idempotent."""
    if not isinstance(email, str):
        return None
    return email.strip().lower()


def _split(email: str) -> tuple[str, Optional[str]]:
    parts = email.split("@")
    return parts[0], (parts[1] if len(parts) > 1 else None)


def is_suspicious_email(email: str) -> bool:
    """True if the address matches a known placeholder pattern."""
    return any(pattern.search(email) for pattern in SUSPICIOUS_PATTERNS)


def critical_format_issues(email: str) -> list[str]:
    """Structural problems that make the address unusable."""
    issues: list[str] = []

    if ".." in email:
        issues.append("Email contains consecutive dots")

    local, domain = _split(email)
    if local and (local.startswith(".") or local.endswith(".")):
        issues.append("Email local part starts or ends with a dot")

    if domain and "." not in domain:
        issues.append("Email domain appears to be missing TLD")

    return issues


def format_warnings(email: str) -> list[str]:
    """Non-blocking oddities worth a second look."""
    warnings: list[str] = []

    local, domain = _split(email)
    if local and len(local) < MIN_LOCAL_LENGTH:
        warnings.append("Email local part is too short")

    if domain and len(domain) < MIN_DOMAIN_LENGTH:
        warnings.append("Email domain is too short")

    if len(email) > MAX_EMAIL_LENGTH:
        warnings.append("Email address is unusually long")

    return warnings


# ─── Public API ──────────────────────────────────────────────────────


def validate_email(email: Any, record_id: str = "unknown") -> EmailValidationResult:
    """Normalize and validate one email address. Never raises."""
    result = EmailValidationResult(record_id=record_id, original_email=email)

    if not email or not isinstance(email, str):
        result.issues.append(MSG_MISSING)
        result.severity = Severity.CRITICAL
        return result

    normalized = email.strip().lower()
    result.normalized_email = normalized

    if not normalized:
        result.issues.append(MSG_EMPTY)
        result.severity = Severity.CRITICAL
        return result

    critical = critical_format_issues(normalized)
    if critical:
        result.issues.extend(critical)
        result.severity = Severity.CRITICAL
        result.needs_manual_review = True
        return result

    if not EMAIL_PATTERN.fullmatch(normalized):
        result.issues.append(MSG_BAD_FORMAT)
        result.severity = Severity.CRITICAL
        result.needs_manual_review = True
        return result

    if is_suspicious_email(normalized):
        result.issues.append(MSG_SUSPICIOUS)
        result.severity = Severity.WARNING
        result.needs_manual_review = True
        result.is_suspicious = True

    warnings = format_warnings(normalized)
    if warnings:
        result.issues.extend(warnings)
        result.severity = Severity.WARNING
        result.needs_manual_review = True

    if email != normalized:
        result.issues.append(MSG_NORMALIZED)

    result.is_valid = True
    return result


def validate_email_batch(records: Sequence[Record]) -> EmailBatchResult:
    """Validate the ``email`` field of every record."""
    batch = ensure_batch(records)
    result = EmailBatchResult(total_records=len(batch))

    for record in batch:
        validation = validate_email(record.get("email"), record_id_of(record))
        result.results.append(validation)
        result.severity_counts.add(validation.severity)

        if validation.is_valid:
            result.valid_count += 1
            if validation.was_normalized:
                result.normalized_count += 1
        else:
            result.invalid_count += 1

        if validation.needs_manual_review:
            result.needs_manual_review += 1
        if validation.is_suspicious:
            result.suspicious_count += 1

    return result


def normalized_records(records: Sequence[Record]) -> list[dict[str, Any]]:
    """New records with the normalized email applied where one exists."""
    output: list[dict[str, Any]] = []
    for record in ensure_batch(records):
        validation = validate_email(record.get("email"), record_id_of(record))
        updated = dict(record)
        updated["email"] = validation.normalized_email or record.get("email")
        updated["email_validation"] = {
            "is_valid": validation.is_valid,
            "was_normalized": validation.was_normalized,
            "needs_manual_review": validation.needs_manual_review,
            "issues": list(validation.issues),
        }
        output.append(updated)
    return output


def records_needing_review(records: Sequence[Record]) -> list[dict[str, Any]]:
    """Records whose email is invalid or flagged for manual review."""
    flagged: list[dict[str, Any]] = []
    for record in ensure_batch(records):
        validation = validate_email(record.get("email"), record_id_of(record))
        if validation.needs_manual_review or not validation.is_valid:
            flagged.append({
                "record_id": validation.record_id,
                "record": dict(record),
                "validation": validation,
            })
    return flagged


# ─── Text Report ─────────────────────────────────────────────────────


def render_email_report(batch: EmailBatchResult) -> str:
    """Human-readable summary of an email batch."""
    counts = batch.severity_counts
    lines = [
        "Email Validation Report",
        "=====================================",
        f"Total Records: {batch.total_records}",
        f"Valid Emails: {batch.valid_count} "
        f"({percent(batch.valid_count, batch.total_records)}%)",
        f"Invalid Emails: {batch.invalid_count}",
        f"Normalized Emails: {batch.normalized_count}",
        f"Need Manual Review: {batch.needs_manual_review}",
        "",
        "Issue Summary:",
        f"- Critical Issues: {counts.critical} (missing/malformed)",
        f"- Warnings: {counts.warning} (suspicious/format issues)",
        f"- Info: {counts.info} (normalized successfully)",
        f"- Normalized: {batch.normalized_count}",
        f"- Suspicious: {batch.suspicious_count}",
        "",
    ]

    if batch.invalid_count > 0 or batch.needs_manual_review > 0:
        lines.append("Records Needing Attention:")
        for result in batch.results:
            if result.is_valid and not result.needs_manual_review:
                continue
            status = "REVIEW" if result.is_valid else "INVALID"
            lines.append(f"- Record {result.record_id} [{status}]: {', '.join(result.issues)}")
            lines.append(f'  Original: "{result.original_email}"')
            if result.normalized_email and result.normalized_email != result.original_email:
                lines.append(f'  Normalized: "{result.normalized_email}"')

    return "\n".join(lines) + "\n"
