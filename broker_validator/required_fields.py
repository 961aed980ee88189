"""
Required-field validation: every broker record needs a name, a phone and an email.

This check is about presence only. Whether the phone or email is
well-formed is the job of the phone and email validators, which run
independently; a record can pass here and still fail there.
"""

from __future__ import annotations

from collections.abc import Sequence

from .fields import ensure_batch, is_field_filled, percent, record_id_of
from .models import (
    Record,
    RequiredFieldBatchResult,
    RequiredFieldResult,
    Severity,
)

# ─── Constants ───────────────────────────────────────────────────────

REQUIRED_FIELDS: tuple[str, ...] = ("name", "phone", "email")


# ─── Public API ──────────────────────────────────────────────────────


def validate_record(record: Record) -> RequiredFieldResult:
    """Check a single record for the mandatory fields.

    Returns:
        RequiredFieldResult, invalid (critical) if any required field is
        missing, with ``missing_fields`` in the order of REQUIRED_FIELDS.
    """
    missing = [name for name in REQUIRED_FIELDS if not is_field_filled(record.get(name))]

    if not missing:
        return RequiredFieldResult(record_id=record_id_of(record))

    return RequiredFieldResult(
        record_id=record_id_of(record),
        is_valid=False,
        severity=Severity.CRITICAL,
        missing_fields=missing,
        issues=[f"Missing required field: {name}" for name in missing],
    )


def validate_batch(records: Sequence[Record]) -> RequiredFieldBatchResult:
    """Validate every record and count how often each field is missing.

    A record missing two fields increments both counters.
    """
    batch = ensure_batch(records)
    result = RequiredFieldBatchResult(
        total_records=len(batch),
        missing_by_field={name: 0 for name in REQUIRED_FIELDS},
    )

    for record in batch:
        validation = validate_record(record)
        result.results.append(validation)
        result.severity_counts.add(validation.severity)

        if validation.is_valid:
            result.valid_count += 1
            continue

        result.invalid_count += 1
        for name in validation.missing_fields:
            result.missing_by_field[name] += 1

    return result


def required_fields() -> list[str]:
    """A copy of the required field names."""
    return list(REQUIRED_FIELDS)


# ─── Text Report ─────────────────────────────────────────────────────


def render_required_report(batch: RequiredFieldBatchResult) -> str:
    """Human-readable summary of a required-field batch."""
    lines = [
        "Required Field Validation Report",
        "=====================================",
        f"Total Records: {batch.total_records}",
        f"Valid Records: {batch.valid_count} "
        f"({percent(batch.valid_count, batch.total_records)}%)",
        f"Invalid Records: {batch.invalid_count}",
        "",
    ]

    if batch.invalid_count > 0:
        lines.append("Missing Field Summary:")
        for name, count in batch.missing_by_field.items():
            lines.append(f"- Missing {name.capitalize()}: {count} records")
        lines.append("")
        lines.append("Records Needing Attention:")
        for result in batch.results:
            if not result.is_valid:
                lines.append(
                    f"- Record {result.record_id}: Missing {', '.join(result.missing_fields)}"
                )

    return "\n".join(lines) + "\n"
