"""
Cleanup planning: split problems into "fix automatically" and "ask a human".

Automatic fixes are the ones that cannot change meaning: a valid phone
rewritten in canonical form, a valid email trimmed and lowercased.
Everything else (missing fields, broken or suspicious contacts, name-only
duplicate groups) goes on the manual review list with an action to take.

The plan is pure data. Writing cleaned records back to storage is the
caller's job.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from .duplicates import find_duplicates, manual_review_groups
from .emails import validate_email
from .fields import ensure_batch, record_id_of
from .models import (
    CleanupPlan,
    ManualReviewItem,
    Record,
    Severity,
)
from .phones import validate_phone
from .required_fields import validate_record

logger = logging.getLogger(__name__)


def plan_cleanup(records: Sequence[Record]) -> CleanupPlan:
    """Build the cleanup plan for a batch. Inputs are never mutated.

    Returns:
        CleanupPlan whose ``cleaned_records`` holds one new record per
        input record (unchanged copies included) in batch order.
    """
    batch = ensure_batch(records)
    plan = CleanupPlan(total_records=len(batch))
    logger.info("Planning cleanup for %d records", len(batch))

    for record in batch:
        record_id = record_id_of(record)
        cleaned: dict[str, Any] = dict(record)
        updated = False

        # ── Auto-fix: phone ─────────────────────────────────────────
        phone = validate_phone(record.get("phone"), record_id)
        if phone.was_standardized and phone.standardized_phone:
            cleaned["phone"] = phone.standardized_phone
            plan.fixes_applied.phone_standardized += 1
            updated = True

        # ── Auto-fix: email ─────────────────────────────────────────
        email = validate_email(record.get("email"), record_id)
        if email.was_normalized and email.normalized_email:
            cleaned["email"] = email.normalized_email
            plan.fixes_applied.email_normalized += 1
            updated = True

        plan.cleaned_records.append(cleaned)
        if updated:
            plan.updated_record_ids.append(record_id)

        # ── Manual review ───────────────────────────────────────────
        required = validate_record(record)
        if not required.is_valid:
            plan.manual_review.append(ManualReviewItem(
                record_id=record_id,
                issue_type="missing_required_fields",
                severity=Severity.CRITICAL,
                issues=[f"Missing fields: {', '.join(required.missing_fields)}"],
                action="Fill in missing required fields",
            ))
            plan.review_summary.critical_issues += 1
            plan.review_summary.missing_required_fields += 1

        if not phone.is_valid and phone.severity is Severity.CRITICAL:
            plan.manual_review.append(ManualReviewItem(
                record_id=record_id,
                issue_type="invalid_phone",
                severity=Severity.CRITICAL,
                issues=list(phone.issues),
                original_value=phone.original_phone,
                action="Fix or replace phone number",
            ))
            plan.review_summary.critical_issues += 1

        if not email.is_valid or email.needs_manual_review:
            plan.manual_review.append(ManualReviewItem(
                record_id=record_id,
                issue_type="email_issue",
                severity=Severity.WARNING if email.is_valid else Severity.CRITICAL,
                issues=list(email.issues),
                original_value=email.original_email,
                normalized_value=email.normalized_email,
                action="Review suspicious email" if email.is_valid else "Fix or replace email address",
            ))
            if not email.is_valid:
                plan.review_summary.critical_issues += 1

    plan.fixes_applied.total_records_updated = len(plan.updated_record_ids)

    for group in manual_review_groups(find_duplicates(batch)):
        plan.manual_review.append(ManualReviewItem(
            record_id="multiple",
            issue_type="duplicate_records",
            severity=Severity.WARNING,
            issues=[group.reason],
            duplicate_records=list(group.records),
            action="Review and merge duplicate records manually",
        ))
        plan.review_summary.duplicate_groups += 1

    plan.review_summary.total_records_needing_review = len(plan.manual_review)

    logger.info(
        "Cleanup plan: %d phones standardized, %d emails normalized, %d items for review",
        plan.fixes_applied.phone_standardized,
        plan.fixes_applied.email_normalized,
        len(plan.manual_review),
    )
    return plan


def render_cleanup_summary(plan: CleanupPlan) -> str:
    """Human-readable summary of a cleanup plan."""
    fixes = plan.fixes_applied
    review = plan.review_summary
    lines = [
        "CLEANUP PLAN SUMMARY",
        "===============================================",
        f"Total Records Processed: {plan.total_records}",
        "",
        "AUTOMATIC FIXES",
        "===============",
        f"Phone Numbers Standardized: {fixes.phone_standardized}",
        f"Email Addresses Normalized: {fixes.email_normalized}",
        f"Total Records Updated: {fixes.total_records_updated}",
        "",
        "MANUAL REVIEW",
        "=============",
        f"Items Needing Review: {review.total_records_needing_review}",
        f"Critical Issues: {review.critical_issues}",
        f"Missing Required Fields: {review.missing_required_fields}",
        f"Duplicate Groups: {review.duplicate_groups}",
    ]

    for item in plan.manual_review:
        lines.append(
            f"- [{item.severity.value}] {item.record_id} ({item.issue_type}): {item.action}"
        )

    return "\n".join(lines) + "\n"
