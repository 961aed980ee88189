"""
Exact-match duplicate detection across a batch of broker records.

Three keys, resolved in strict precedence:
  1. phone  — strong evidence, group is auto-mergeable
  2. email  — strong evidence, auto-mergeable; only records not already
              grouped by phone
  3. name   — weak evidence (two people can share a name), always sent to
              manual review; only records not grouped by phone or email

All three key maps are built in one full pass before any group is emitted,
so a record lands in at most one group per call. There is no fuzzy matching.
"""

from __future__ import annotations

import re
from collections import defaultdict
from collections.abc import Sequence
from typing import Callable, Optional

from .fields import ensure_batch, record_id_of, text_value
from .models import (
    DuplicateDetectionResult,
    DuplicateGroup,
    DuplicateRecordRef,
    MatchType,
    MergeSuggestion,
    Record,
    ReviewType,
)

# ─── Constants ───────────────────────────────────────────────────────

MERGE_SCORE_FIELDS: tuple[str, ...] = (
    "name", "phone", "email", "company", "website", "address", "neighborhood",
)

_NON_DIGITS = re.compile(r"[^0-9]")
_WHITESPACE = re.compile(r"\s+")


# ─── Key Normalization ───────────────────────────────────────────────


def normalize_phone_key(phone: object) -> Optional[str]:
    """Digits-only phone without the "55" country code; None unless 10 or 11 digits."""
    if not isinstance(phone, str) or not phone.strip():
        return None

    digits = _NON_DIGITS.sub("", phone)
    if len(digits) < 10:
        return None

    if len(digits) >= 12 and digits.startswith("55"):
        digits = digits[2:]

    return digits if len(digits) in (10, 11) else None


def normalize_email_key(email: object) -> Optional[str]:
    """Trimmed, lowercased email; None unless it has an "@" and a "."."""
    if not isinstance(email, str) or not email.strip():
        return None

    normalized = email.strip().lower()
    return normalized if "@" in normalized and "." in normalized else None


def normalize_name_key(name: object) -> Optional[str]:
    """Trimmed, lowercased name with internal whitespace collapsed."""
    if not isinstance(name, str):
        return None

    normalized = _WHITESPACE.sub(" ", name.strip().lower())
    return normalized or None


# ─── Detection ───────────────────────────────────────────────────────


def _ref(record: Record, index: int) -> DuplicateRecordRef:
    return DuplicateRecordRef(
        id=record_id_of(record),
        name=text_value(record, "name"),
        phone=text_value(record, "phone"),
        email=text_value(record, "email"),
        original_index=index,
    )


def _build_index(
    batch: list[Record], field: str, normalize: Callable[[object], Optional[str]]
) -> dict[str, list[int]]:
    index: dict[str, list[int]] = defaultdict(list)
    for position, record in enumerate(batch):
        key = normalize(record.get(field))
        if key is not None:
            index[key].append(position)
    return index


def _group(
    batch: list[Record],
    positions: list[int],
    match_type: MatchType,
    reason: str,
    review_type: ReviewType,
) -> DuplicateGroup:
    return DuplicateGroup(
        match_type=match_type,
        review_type=review_type,
        reason=reason,
        record_count=len(positions),
        records=[_ref(batch[position], position) for position in positions],
        suggested_action="merge" if review_type is ReviewType.AUTO else "manual_review",
    )


def find_duplicates(records: Sequence[Record]) -> DuplicateDetectionResult:
    """Group records that share a normalized phone, email or name.

    Returns:
        DuplicateDetectionResult with groups in precedence order
        (phone groups, then email, then name) and summary counts.
    """
    batch = ensure_batch(records)
    result = DuplicateDetectionResult(total_records=len(batch))

    passes = (
        ("phone", normalize_phone_key, MatchType.PHONE_EXACT, ReviewType.AUTO,
         "Identical phone number"),
        ("email", normalize_email_key, MatchType.EMAIL_EXACT, ReviewType.AUTO,
         "Identical email address"),
        ("name", normalize_name_key, MatchType.NAME_EXACT, ReviewType.MANUAL,
         "Identical name"),
    )
    indexes = [_build_index(batch, field, normalize) for field, normalize, *_ in passes]

    claimed: set[int] = set()
    for (_, _, match_type, review_type, label), index in zip(passes, indexes):
        for key, positions in index.items():
            unclaimed = [position for position in positions if position not in claimed]
            if len(unclaimed) < 2:
                continue

            result.duplicate_groups.append(
                _group(batch, unclaimed, match_type, f"{label}: {key}", review_type)
            )
            claimed.update(unclaimed)

            if match_type is MatchType.PHONE_EXACT:
                result.summary.phone_matches += 1
            elif match_type is MatchType.EMAIL_EXACT:
                result.summary.email_matches += 1
            else:
                result.summary.name_matches += 1
                result.needs_manual_review += 1

    result.duplicates_found = len(result.duplicate_groups)
    result.summary.total_duplicate_records = len(claimed)
    return result


def auto_mergeable_groups(result: DuplicateDetectionResult) -> list[DuplicateGroup]:
    return [g for g in result.duplicate_groups if g.review_type is ReviewType.AUTO]


def manual_review_groups(result: DuplicateDetectionResult) -> list[DuplicateGroup]:
    return [g for g in result.duplicate_groups if g.review_type is ReviewType.MANUAL]


# ─── Merge Suggestion ────────────────────────────────────────────────


def merge_score(record: Record) -> float:
    """Percentage of MERGE_SCORE_FIELDS holding a non-blank string."""
    filled = sum(
        1 for field in MERGE_SCORE_FIELDS
        if isinstance(record.get(field), str) and record[field].strip()
    )
    return filled / len(MERGE_SCORE_FIELDS) * 100


def suggest_merge(
    group: DuplicateGroup, records: Sequence[Record] | None = None
) -> Optional[MergeSuggestion]:
    """Pick the most complete record of a group as the one to keep.

    Args:
        group: A group returned by find_duplicates.
        records: The batch the group was found in. When given, records are
            scored on their full contents; otherwise on the group's key fields.

    Returns:
        MergeSuggestion, or None for a group with fewer than two records.
        Ties keep the earliest record.
    """
    if len(group.records) < 2:
        return None

    def score(ref: DuplicateRecordRef) -> float:
        if records is not None and 0 <= ref.original_index < len(records):
            return merge_score(records[ref.original_index])
        return merge_score(ref.model_dump())

    primary = group.records[0]
    best = score(primary)
    for ref in group.records[1:]:
        candidate = score(ref)
        if candidate > best:
            primary, best = ref, candidate

    return MergeSuggestion(
        primary_record=primary,
        duplicate_records=[
            ref for ref in group.records if ref.original_index != primary.original_index
        ],
        completeness_score=best,
        reason=f"Selected record with highest completeness score ({best:.1f}%)",
    )


# ─── Text Report ─────────────────────────────────────────────────────


def render_duplicate_report(result: DuplicateDetectionResult) -> str:
    """Human-readable summary of a duplicate scan."""
    summary = result.summary
    share = (
        f"{summary.total_duplicate_records / result.total_records * 100:.1f}"
        if result.total_records else "0.0"
    )
    lines = [
        "Duplicate Detection Report",
        "=====================================",
        f"Total Records: {result.total_records}",
        f"Duplicate Groups Found: {result.duplicates_found}",
        f"Records Involved in Duplicates: {summary.total_duplicate_records} ({share}%)",
        f"Groups Needing Manual Review: {result.needs_manual_review}",
        "",
        "Match Summary:",
        f"- Phone Number Matches: {summary.phone_matches} groups",
        f"- Email Address Matches: {summary.email_matches} groups",
        f"- Name Matches: {summary.name_matches} groups (need manual review)",
    ]

    for number, group in enumerate(result.duplicate_groups, start=1):
        lines.append("")
        lines.append(f"Group {number} [{group.review_type.value.upper()}]:")
        lines.append(f"  Reason: {group.reason}")
        lines.append(f"  Records ({group.record_count}):")
        for ref in group.records:
            lines.append(
                f'    - ID: {ref.id}, Name: "{ref.name}", '
                f'Phone: "{ref.phone}", Email: "{ref.email}"'
            )
        lines.append(f"  Suggested Action: {group.suggested_action}")

    for title, groups in (
        ("Auto-Mergeable Groups", auto_mergeable_groups(result)),
        ("Groups Needing Manual Review", manual_review_groups(result)),
    ):
        if groups:
            lines.append("")
            lines.append(f"{title} ({len(groups)}):")
            for number, group in enumerate(groups, start=1):
                lines.append(f"- Group {number}: {group.reason} ({group.record_count} records)")

    return "\n".join(lines) + "\n"
