"""
Pydantic models for validation results — every verdict is a typed value.

Records come in loosely typed (a mapping of field name to anything). What
comes out is strict: each validator returns its own result model, each batch
entry point an aggregate, and the orchestrator a single ValidationReport.
All of them serialize cleanly with ``model_dump(mode="json")``.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, Field

Record = Mapping[str, Any]


def json_safe(value: Any) -> Any:
    """JSON scalars pass through unchanged; anything else becomes its ``repr``."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return repr(value)


# Raw field value echoed back in a result, whatever the record held.
RawValue = Annotated[Any, BeforeValidator(json_safe)]


# ─── Severity Levels ────────────────────────────────────────────────


class Severity(str, Enum):
    """Per-validator severity of a single result."""

    CRITICAL = "critical"  # Absent or structurally unusable
    WARNING = "warning"  # Present but suspicious or un-normalizable
    INFO = "info"  # Valid, possibly after automatic cleanup


class IssueLevel(str, Enum):
    """Cross-validator ranking used only to sort records needing attention."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """0 for CRITICAL up to 3 for LOW (lower sorts first)."""
        return list(IssueLevel).index(self)


class MatchType(str, Enum):
    PHONE_EXACT = "phone_exact"
    EMAIL_EXACT = "email_exact"
    NAME_EXACT = "name_exact"


class ReviewType(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


class SeverityCounts(BaseModel):
    """Histogram of per-record severities within one batch."""

    critical: int = 0
    warning: int = 0
    info: int = 0

    def add(self, severity: Severity) -> None:
        setattr(self, severity.value, getattr(self, severity.value) + 1)


# ─── Required Fields ────────────────────────────────────────────────


class RequiredFieldResult(BaseModel):
    record_id: str = "unknown"
    is_valid: bool = True
    severity: Severity = Severity.INFO
    missing_fields: list[str] = Field(default_factory=list)
    issues: list[str] = Field(default_factory=list)


class RequiredFieldBatchResult(BaseModel):
    total_records: int = 0
    valid_count: int = 0
    invalid_count: int = 0
    missing_by_field: dict[str, int] = Field(default_factory=dict)
    severity_counts: SeverityCounts = Field(default_factory=SeverityCounts)
    results: list[RequiredFieldResult] = Field(default_factory=list)


# ─── Phone ──────────────────────────────────────────────────────────


class PhoneValidationResult(BaseModel):
    """Outcome of cleaning and standardizing one phone number."""

    record_id: str = "unknown"
    is_valid: bool = False
    original_phone: RawValue = None
    cleaned_phone: Optional[str] = None
    standardized_phone: Optional[str] = None  # "(AA) NNNNN-NNNN" / "(AA) NNNN-NNNN"
    issues: list[str] = Field(default_factory=list)
    severity: Severity = Severity.INFO

    @property
    def was_standardized(self) -> bool:
        return self.is_valid and self.original_phone != self.standardized_phone


class PhoneBatchResult(BaseModel):
    total_records: int = 0
    valid_count: int = 0
    invalid_count: int = 0
    cleaned_count: int = 0
    severity_counts: SeverityCounts = Field(default_factory=SeverityCounts)
    results: list[PhoneValidationResult] = Field(default_factory=list)


# ─── Email ──────────────────────────────────────────────────────────


class EmailValidationResult(BaseModel):
    """Outcome of normalizing and checking one email address."""

    record_id: str = "unknown"
    is_valid: bool = False
    original_email: RawValue = None
    normalized_email: Optional[str] = None
    issues: list[str] = Field(default_factory=list)
    severity: Severity = Severity.INFO
    needs_manual_review: bool = False
    is_suspicious: bool = False  # Matches a known placeholder pattern

    @property
    def was_normalized(self) -> bool:
        return self.is_valid and self.original_email != self.normalized_email


class EmailBatchResult(BaseModel):
    total_records: int = 0
    valid_count: int = 0
    invalid_count: int = 0
    normalized_count: int = 0
    needs_manual_review: int = 0
    suspicious_count: int = 0
    severity_counts: SeverityCounts = Field(default_factory=SeverityCounts)
    results: list[EmailValidationResult] = Field(default_factory=list)


# ─── Completeness ───────────────────────────────────────────────────


class CompletenessResult(BaseModel):
    record_id: str = "unknown"
    total_fields: int
    filled_fields: int = 0
    empty_fields: int = 0
    percentage: float = 0.0
    field_status: dict[str, bool] = Field(default_factory=dict)
    missing_fields: list[str] = Field(default_factory=list)


class FieldFillRate(BaseModel):
    filled: int = 0
    total: int = 0
    percentage: float = 0.0


class CompletenessDistribution(BaseModel):
    high: int = 0  # >= 80%
    medium: int = 0  # 50-79%
    low: int = 0  # < 50%


class CompletenessBatchResult(BaseModel):
    total_records: int = 0
    average_completeness: float = 0.0
    distribution: CompletenessDistribution = Field(
        default_factory=CompletenessDistribution
    )
    field_fill_rates: dict[str, FieldFillRate] = Field(default_factory=dict)
    results: list[CompletenessResult] = Field(default_factory=list)


# ─── Duplicates ─────────────────────────────────────────────────────


class DuplicateRecordRef(BaseModel):
    """Identifier plus key fields of one record inside a duplicate group."""

    id: str = "unknown"
    name: str = ""
    phone: str = ""
    email: str = ""
    original_index: int  # Position in the batch that was scanned


class DuplicateGroup(BaseModel):
    match_type: MatchType
    review_type: ReviewType
    reason: str
    record_count: int
    records: list[DuplicateRecordRef] = Field(min_length=2)
    suggested_action: str  # "merge" or "manual_review"


class DuplicateSummary(BaseModel):
    phone_matches: int = 0
    email_matches: int = 0
    name_matches: int = 0
    total_duplicate_records: int = 0


class DuplicateDetectionResult(BaseModel):
    total_records: int = 0
    duplicates_found: int = 0
    needs_manual_review: int = 0
    summary: DuplicateSummary = Field(default_factory=DuplicateSummary)
    duplicate_groups: list[DuplicateGroup] = Field(default_factory=list)


class MergeSuggestion(BaseModel):
    primary_record: DuplicateRecordRef
    duplicate_records: list[DuplicateRecordRef]
    merge_strategy: str = "keep_most_complete"
    completeness_score: float
    reason: str


# ─── Validation Report ──────────────────────────────────────────────


class RecordIssue(BaseModel):
    type: str  # e.g. "missing_required_fields", "invalid_phone"
    description: str
    severity: IssueLevel


class FlaggedRecord(BaseModel):
    """A record with at least one issue, ranked by its worst one."""

    record_id: str
    name: str
    phone: str
    email: str
    severity: IssueLevel = IssueLevel.LOW
    issues: list[RecordIssue] = Field(default_factory=list)


class IssuesByType(BaseModel):
    missing_required_fields: int = 0
    invalid_emails: int = 0
    invalid_phones: int = 0
    low_completeness: int = 0
    potential_duplicates: int = 0


class ReportSummary(BaseModel):
    total_issues: int = 0
    records_needing_attention: int = 0
    records_with_no_issues: int = 0


class ReportMetadata(BaseModel):
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    total_records: int = 0
    report_version: str = "1.0"


class ValidatorResults(BaseModel):
    required_fields: RequiredFieldBatchResult
    emails: EmailBatchResult
    phones: PhoneBatchResult
    completeness: CompletenessBatchResult
    duplicates: DuplicateDetectionResult


class Recommendation(BaseModel):
    """One batch-level action item, most urgent first in a list."""

    priority: IssueLevel
    category: str  # e.g. "Required Fields", "Field Collection"
    issue: str
    action: str
    affected_records: int = 0


class QualityAssessment(BaseModel):
    """Weighted batch score plus a three-way split of the records.

    ``overall_score`` weighs required fields 40% and email, phone and
    average completeness 20% each.
    """

    overall_score: float = 0.0
    passed_all_validations: int = 0  # valid everywhere and >= 80% complete
    critical_issues: int = 0  # missing a required field
    needs_attention: int = 0
    recommendations: list[Recommendation] = Field(default_factory=list)


class ValidationReport(BaseModel):
    """The final output of the validation pipeline."""

    metadata: ReportMetadata
    summary: ReportSummary
    issues_by_type: IssuesByType
    quality: QualityAssessment = Field(default_factory=QualityAssessment)
    validation_results: ValidatorResults
    records_needing_attention: list[FlaggedRecord] = Field(default_factory=list)


# ─── Cleanup Plan ───────────────────────────────────────────────────


class FixesApplied(BaseModel):
    phone_standardized: int = 0
    email_normalized: int = 0
    total_records_updated: int = 0


class ManualReviewItem(BaseModel):
    record_id: str  # "multiple" for duplicate groups
    issue_type: str
    severity: Severity
    issues: list[str] = Field(default_factory=list)
    action: str
    original_value: RawValue = None
    normalized_value: Optional[str] = None
    duplicate_records: list[DuplicateRecordRef] = Field(default_factory=list)


class ManualReviewSummary(BaseModel):
    total_records_needing_review: int = 0
    critical_issues: int = 0
    duplicate_groups: int = 0
    missing_required_fields: int = 0


class CleanupPlan(BaseModel):
    """Proposed automatic fixes plus the items only a human can resolve."""

    total_records: int = 0
    cleaned_records: list[dict[str, Any]] = Field(default_factory=list)
    updated_record_ids: list[str] = Field(default_factory=list)
    fixes_applied: FixesApplied = Field(default_factory=FixesApplied)
    manual_review: list[ManualReviewItem] = Field(default_factory=list)
    review_summary: ManualReviewSummary = Field(default_factory=ManualReviewSummary)
