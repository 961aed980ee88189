"""
Completeness scoring: what fraction of the descriptive fields is filled?

Every scoreable field weighs the same. Identifiers and timestamps are not
scored. Per-record scores tell you which brokers to enrich; per-field fill
rates across the batch tell you which fields the scrapers never collect.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from .fields import (
    ensure_batch,
    is_field_filled,
    percent,
    record_id_of,
    round_half_up,
    whole_percent,
)
from .models import (
    CompletenessBatchResult,
    CompletenessResult,
    FieldFillRate,
    Record,
)

# ─── Constants ───────────────────────────────────────────────────────

SCOREABLE_FIELDS: tuple[str, ...] = (
    "name",
    "email",
    "phone",
    "website",
    "address",
    "neighborhood",
    "city",
    "state",
    "postal_code",
    "specialties",
    "rating",
    "review_count",
    "description",
    "social_media",
    "business_hours",
    "license_number",
    "years_experience",
    "company_size",
    "source_url",
)

HIGH_THRESHOLD = 80.0
MEDIUM_THRESHOLD = 50.0
REPORT_LOWEST_LIMIT = 10


# ─── Public API ──────────────────────────────────────────────────────


def calculate_completeness(record: Record) -> CompletenessResult:
    """Score one record against SCOREABLE_FIELDS.

    ``percentage`` is filled/total rounded half-up to one decimal, so it is
    100.0 exactly when ``missing_fields`` is empty.
    """
    result = CompletenessResult(
        record_id=record_id_of(record),
        total_fields=len(SCOREABLE_FIELDS),
    )

    for field in SCOREABLE_FIELDS:
        filled = is_field_filled(record.get(field))
        result.field_status[field] = filled
        if filled:
            result.filled_fields += 1
        else:
            result.empty_fields += 1
            result.missing_fields.append(field)

    result.percentage = percent(result.filled_fields, result.total_fields)
    return result


def calculate_batch_completeness(records: Sequence[Record]) -> CompletenessBatchResult:
    """Score every record, bucket them, and compute per-field fill rates."""
    batch = ensure_batch(records)
    total = len(batch)
    result = CompletenessBatchResult(
        total_records=total,
        field_fill_rates={field: FieldFillRate(total=total) for field in SCOREABLE_FIELDS},
    )

    running_total = 0.0
    for record in batch:
        scored = calculate_completeness(record)
        result.results.append(scored)
        running_total += scored.percentage

        if scored.percentage >= HIGH_THRESHOLD:
            result.distribution.high += 1
        elif scored.percentage >= MEDIUM_THRESHOLD:
            result.distribution.medium += 1
        else:
            result.distribution.low += 1

        for field, filled in scored.field_status.items():
            if filled:
                result.field_fill_rates[field].filled += 1

    if total:
        result.average_completeness = round_half_up(running_total / total)

    for rate in result.field_fill_rates.values():
        rate.percentage = percent(rate.filled, rate.total)

    return result


def completeness_category(percentage: float) -> str:
    if percentage >= HIGH_THRESHOLD:
        return "High"
    if percentage >= MEDIUM_THRESHOLD:
        return "Medium"
    return "Low"


def scoreable_fields() -> list[str]:
    """A copy of the scored field names, in scoring order."""
    return list(SCOREABLE_FIELDS)


def export_completeness(batch: CompletenessBatchResult) -> dict[str, Any]:
    """JSON-ready export with metadata and a category per record."""
    return {
        "metadata": {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "total_records": batch.total_records,
            "average_completeness": batch.average_completeness,
            "scoreable_fields": scoreable_fields(),
        },
        "summary": {
            "distribution": batch.distribution.model_dump(),
            "field_fill_rates": {
                field: rate.model_dump() for field, rate in batch.field_fill_rates.items()
            },
        },
        "records": [
            {
                "record_id": scored.record_id,
                "percentage": scored.percentage,
                "filled_fields": scored.filled_fields,
                "total_fields": scored.total_fields,
                "category": completeness_category(scored.percentage),
                "missing_fields": list(scored.missing_fields),
            }
            for scored in batch.results
        ],
    }


# ─── Text Report ─────────────────────────────────────────────────────


def render_completeness_report(batch: CompletenessBatchResult) -> str:
    """Human-readable summary, lowest fill rates first."""
    dist = batch.distribution
    total = batch.total_records
    lines = [
        "Completeness Scoring Report",
        "===========================",
        f"Total Records: {total}",
        f"Average Completeness: {batch.average_completeness}%",
        "",
        "Completeness Distribution:",
        f"- High (>=80%): {dist.high} records ({whole_percent(dist.high, total)}%)",
        f"- Medium (50-79%): {dist.medium} records ({whole_percent(dist.medium, total)}%)",
        f"- Low (<50%): {dist.low} records ({whole_percent(dist.low, total)}%)",
        "",
        "Field Fill Rates:",
    ]

    for field, rate in sorted(batch.field_fill_rates.items(), key=lambda item: item[1].percentage):
        lines.append(f"- {field}: {rate.filled}/{rate.total} ({rate.percentage}%)")

    lowest = sorted(
        (scored for scored in batch.results if scored.percentage < MEDIUM_THRESHOLD),
        key=lambda scored: scored.percentage,
    )[:REPORT_LOWEST_LIMIT]

    if lowest:
        lines.append("")
        lines.append("Records Needing Most Attention (lowest completeness):")
        for scored in lowest:
            lines.append(
                f"- Record {scored.record_id}: {scored.percentage}% "
                f"({scored.filled_fields}/{scored.total_fields} fields)"
            )

    return "\n".join(lines) + "\n"
