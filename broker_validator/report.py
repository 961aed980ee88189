"""Batch quality scoring, recommendations and plain-text rendering of a ValidationReport."""

from __future__ import annotations

from .completeness import HIGH_THRESHOLD, MEDIUM_THRESHOLD
from .fields import round_half_up
from .models import (
    IssueLevel,
    QualityAssessment,
    Recommendation,
    ValidationReport,
    ValidatorResults,
)

DEFAULT_RECORD_LIMIT = 10

# Share of the overall score carried by each validator.
REQUIRED_WEIGHT = 0.4
EMAIL_WEIGHT = 0.2
PHONE_WEIGHT = 0.2
COMPLETENESS_WEIGHT = 0.2

LOW_FILL_RATE = 30.0
LOW_FILL_FIELDS_SHOWN = 3


# ─── Quality Assessment ──────────────────────────────────────────────


def _recommendations(
    results: ValidatorResults, low_completeness_threshold: float
) -> list[Recommendation]:
    required = results.required_fields
    emails = results.emails
    phones = results.phones
    completeness = results.completeness
    duplicates = results.duplicates.summary.total_duplicate_records

    recommendations: list[Recommendation] = []

    if required.invalid_count:
        recommendations.append(Recommendation(
            priority=IssueLevel.CRITICAL,
            category="Required Fields",
            issue=f"{required.invalid_count} records missing required fields",
            action="Immediately collect missing name, email, or phone data",
            affected_records=required.invalid_count,
        ))

    if emails.invalid_count:
        recommendations.append(Recommendation(
            priority=IssueLevel.HIGH,
            category="Email Quality",
            issue=f"{emails.invalid_count} records have invalid emails",
            action="Verify and correct email addresses",
            affected_records=emails.invalid_count,
        ))

    if phones.invalid_count:
        recommendations.append(Recommendation(
            priority=IssueLevel.HIGH,
            category="Phone Quality",
            issue=f"{phones.invalid_count} records have invalid phones",
            action="Standardize phone number formats",
            affected_records=phones.invalid_count,
        ))

    low = sum(1 for scored in completeness.results if scored.percentage < low_completeness_threshold)
    if low:
        recommendations.append(Recommendation(
            priority=IssueLevel.MEDIUM,
            category="Data Completeness",
            issue=f"{low} records have <{low_completeness_threshold:g}% completeness",
            action="Focus data collection on incomplete records",
            affected_records=low,
        ))

    if duplicates:
        recommendations.append(Recommendation(
            priority=IssueLevel.MEDIUM,
            category="Data Duplicates",
            issue=f"{duplicates} potential duplicate records found",
            action="Review and merge duplicate entries",
            affected_records=duplicates,
        ))

    if completeness.total_records:
        # sorted() is stable, so equal fill rates keep scoring order
        sparse = sorted(
            (field for field, rate in completeness.field_fill_rates.items()
             if rate.percentage < LOW_FILL_RATE),
            key=lambda field: completeness.field_fill_rates[field].percentage,
        )
        if sparse:
            recommendations.append(Recommendation(
                priority=IssueLevel.LOW,
                category="Field Collection",
                issue=f"{len(sparse)} fields have <{LOW_FILL_RATE:g}% fill rate",
                action=f"Focus on collecting: {', '.join(sparse[:LOW_FILL_FIELDS_SHOWN])}",
                affected_records=completeness.total_records,
            ))

    return recommendations


def assess_quality(
    results: ValidatorResults, low_completeness_threshold: float = MEDIUM_THRESHOLD
) -> QualityAssessment:
    """Score a batch from its validator results and list what to fix first.

    Each record lands in exactly one bucket: passed everything (valid
    required fields, email and phone, completeness >= 80%), critical
    (missing a required field) or needs attention. An empty batch scores 0.

    Args:
        results: The five batch results of one pipeline run.
        low_completeness_threshold: Records below this percentage count
            towards the completeness recommendation.
    """
    total = results.completeness.total_records
    assessment = QualityAssessment(
        recommendations=_recommendations(results, low_completeness_threshold),
    )
    if not total:
        return assessment

    weighted = (
        results.required_fields.valid_count / total * 100 * REQUIRED_WEIGHT
        + results.emails.valid_count / total * 100 * EMAIL_WEIGHT
        + results.phones.valid_count / total * 100 * PHONE_WEIGHT
        + results.completeness.average_completeness * COMPLETENESS_WEIGHT
    )
    assessment.overall_score = round_half_up(weighted)

    for required, email, phone, scored in zip(
        results.required_fields.results,
        results.emails.results,
        results.phones.results,
        results.completeness.results,
    ):
        if required.is_valid and email.is_valid and phone.is_valid and scored.percentage >= HIGH_THRESHOLD:
            assessment.passed_all_validations += 1
        elif not required.is_valid:
            assessment.critical_issues += 1
        else:
            assessment.needs_attention += 1

    return assessment


# ─── Text Summary ────────────────────────────────────────────────────


def render_summary_text(report: ValidationReport, limit: int = DEFAULT_RECORD_LIMIT) -> str:
    """Human-readable summary: quality score, issue histogram, worst records.

    Args:
        report: Output of the validation pipeline.
        limit: How many flagged records to list before collapsing the rest.
    """
    meta = report.metadata
    summary = report.summary
    issues = report.issues_by_type
    quality = report.quality

    lines = [
        "Validation Report Summary",
        "=====================================",
        f"Generated: {meta.generated_at:%Y-%m-%d %H:%M:%S %Z}".rstrip(),
        f"Total Records: {meta.total_records}",
        f"Overall Quality Score: {quality.overall_score}%",
        "",
        "Quality Distribution:",
        f"- Passed all validations: {quality.passed_all_validations} records",
        f"- Critical issues: {quality.critical_issues} records",
        f"- Needs attention: {quality.needs_attention} records",
        "",
        "Overall Status:",
        f"- Records with no issues: {summary.records_with_no_issues}",
        f"- Records needing attention: {summary.records_needing_attention}",
        f"- Total issues found: {summary.total_issues}",
        "",
        "Issues by Type:",
        f"- Missing required fields: {issues.missing_required_fields} records",
        f"- Invalid emails: {issues.invalid_emails} records",
        f"- Invalid phones: {issues.invalid_phones} records",
        f"- Low completeness: {issues.low_completeness} records",
        f"- Potential duplicates: {issues.potential_duplicates} records",
    ]

    if quality.recommendations:
        lines.append("")
        lines.append("Recommendations:")
        for rec in quality.recommendations:
            lines.append(f"- [{rec.priority.value}] {rec.category}: {rec.issue}")
            lines.append(f"  Action: {rec.action}")

    flagged = report.records_needing_attention
    if flagged:
        lines.append("")
        lines.append("Top Records Needing Attention:")
        for number, record in enumerate(flagged[:limit], start=1):
            lines.append(f"{number}. {record.name} ({record.severity.value})")
            for issue in record.issues:
                lines.append(f"   - {issue.description}")

        if len(flagged) > limit:
            lines.append(f"... and {len(flagged) - limit} more records")

    return "\n".join(lines) + "\n"
