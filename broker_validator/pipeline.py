"""
Main validation pipeline — orchestrates the full workflow.

Flow:
  ┌──────────────┐
  │ Raw records  │
  └──────┬───────┘
         │
  ┌──────▼───────┐   ┌──────────┐   ┌──────────┐   ┌──────────────┐   ┌────────────┐
  │   Required   │   │  Email   │   │  Phone   │   │ Completeness │   │ Duplicates │
  │    fields    │   │          │   │          │   │              │   │            │
  └──────┬───────┘   └────┬─────┘   └────┬─────┘   └──────┬───────┘   └─────┬──────┘
         └────────────────┴──────┬───────┴────────────────┴─────────────────┘
                                 │
                          ┌──────▼──────┐
                          │   Ranking   │   ← Worst issue per record
                          └──────┬──────┘
                                 │
                          ┌──────▼──────┐
                          │   Report    │   ← Counts, quality score, flagged records
                          └─────────────┘

Design principles:
  - Validators are independent: none reads another's output.
  - Nothing is fatal: a batch where every record is broken still yields
    a complete report.
  - No I/O. Persisting the report is the caller's job.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .completeness import calculate_batch_completeness
from .config import ValidationSettings
from .duplicates import find_duplicates
from .emails import validate_email_batch
from .fields import ensure_batch, record_id_of, text_value
from .models import (
    FlaggedRecord,
    IssueLevel,
    IssuesByType,
    Record,
    RecordIssue,
    ReportMetadata,
    ReportSummary,
    ValidationReport,
    ValidatorResults,
)
from .phones import validate_phone_batch
from .report import assess_quality
from .required_fields import validate_batch as validate_required_batch

logger = logging.getLogger(__name__)


class BrokerValidationPipeline:
    """Runs every validator over a batch and ranks the records needing attention.

    Usage:
        pipeline = BrokerValidationPipeline()
        report = pipeline.run(records)
        for flagged in report.records_needing_attention:
            print(flagged.record_id, flagged.severity)
    """

    def __init__(self, settings: ValidationSettings | None = None):
        self.settings = settings or ValidationSettings()

    def run(self, records: Sequence[Record]) -> ValidationReport:
        """Validate a fully materialized batch of records.

        Raises:
            BatchInputError / RecordShapeError: only if ``records`` is not a
                list of mappings. Bad field values never raise.
        """
        batch = ensure_batch(records)
        logger.info("Generating validation report for %d records", len(batch))

        # ── Step 1: Independent validators ──────────────────────────
        logger.info("Checking required fields...")
        required = validate_required_batch(batch)

        logger.info("Validating emails...")
        emails = validate_email_batch(batch)

        logger.info("Validating phones...")
        phones = validate_phone_batch(batch)

        logger.info("Calculating completeness...")
        completeness = calculate_batch_completeness(batch)

        logger.info("Detecting duplicates...")
        duplicates = find_duplicates(batch)

        results = ValidatorResults(
            required_fields=required,
            emails=emails,
            phones=phones,
            completeness=completeness,
            duplicates=duplicates,
        )

        # ── Step 2: Rank records needing attention ──────────────────
        flagged = self._flag_records(batch, results)

        # ── Step 3: Aggregate counts ────────────────────────────────
        threshold = self.settings.low_completeness_threshold
        issues_by_type = IssuesByType(
            missing_required_fields=required.invalid_count,
            invalid_emails=emails.invalid_count,
            invalid_phones=phones.invalid_count,
            low_completeness=sum(1 for c in completeness.results if c.percentage < threshold),
            potential_duplicates=duplicates.summary.total_duplicate_records,
        )
        summary = ReportSummary(
            total_issues=sum(issues_by_type.model_dump().values()),
            records_needing_attention=len(flagged),
            records_with_no_issues=len(batch) - len(flagged),
        )

        logger.info(
            "Validation report generated: %d of %d records need attention",
            summary.records_needing_attention,
            len(batch),
        )

        return ValidationReport(
            metadata=ReportMetadata(total_records=len(batch)),
            summary=summary,
            issues_by_type=issues_by_type,
            quality=assess_quality(results, threshold),
            validation_results=results,
            records_needing_attention=flagged,
        )

    # ─── Ranking ─────────────────────────────────────────────────────

    def _flag_records(
        self, batch: list[Record], results: ValidatorResults
    ) -> list[FlaggedRecord]:
        """Merge per-validator outcomes into one ranked issue list per record.

        Missing required field → CRITICAL; invalid email/phone → HIGH;
        low completeness or duplicate membership → MEDIUM. Records are
        sorted worst first; ties keep batch order.
        """
        group_of: dict[int, int] = {}
        for group_number, group in enumerate(results.duplicates.duplicate_groups):
            for ref in group.records:
                group_of[ref.original_index] = group_number

        threshold = self.settings.low_completeness_threshold
        flagged: list[FlaggedRecord] = []

        for index, record in enumerate(batch):
            issues: list[RecordIssue] = []

            required = results.required_fields.results[index]
            if not required.is_valid:
                issues.append(RecordIssue(
                    type="missing_required_fields",
                    description=f"Missing: {', '.join(required.missing_fields)}",
                    severity=IssueLevel.CRITICAL,
                ))

            email = results.emails.results[index]
            if not email.is_valid:
                issues.append(RecordIssue(
                    type="invalid_email",
                    description=", ".join(email.issues) or "Invalid email format",
                    severity=IssueLevel.HIGH,
                ))

            phone = results.phones.results[index]
            if not phone.is_valid:
                issues.append(RecordIssue(
                    type="invalid_phone",
                    description=", ".join(phone.issues) or "Invalid phone format",
                    severity=IssueLevel.HIGH,
                ))

            scored = results.completeness.results[index]
            if scored.percentage < threshold:
                issues.append(RecordIssue(
                    type="low_completeness",
                    description=(
                        f"Only {scored.percentage}% complete "
                        f"({scored.filled_fields}/{scored.total_fields} fields)"
                    ),
                    severity=IssueLevel.MEDIUM,
                ))

            if index in group_of:
                group = results.duplicates.duplicate_groups[group_of[index]]
                others = [ref.name or "Unknown" for ref in group.records if ref.original_index != index]
                issues.append(RecordIssue(
                    type="potential_duplicate",
                    description=f"Potential duplicate of: {', '.join(others)}",
                    severity=IssueLevel.MEDIUM,
                ))

            if not issues:
                continue

            flagged.append(FlaggedRecord(
                record_id=record_id_of(record, default=f"record_{index}"),
                name=text_value(record, "name") or "Unknown",
                phone=text_value(record, "phone") or "Unknown",
                email=text_value(record, "email") or "Unknown",
                severity=min((issue.severity for issue in issues), key=lambda level: level.rank),
                issues=issues,
            ))

        # sorted() is stable, so equal severities keep batch order
        return sorted(flagged, key=lambda item: item.severity.rank)


def generate_validation_report(
    records: Sequence[Record], settings: ValidationSettings | None = None
) -> ValidationReport:
    """Single entry point: run all validators over ``records`` and build the report."""
    return BrokerValidationPipeline(settings).run(records)
