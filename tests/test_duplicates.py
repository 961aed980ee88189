"""Tests for exact-match duplicate detection and merge suggestions."""

from __future__ import annotations

import pytest

from broker_validator.duplicates import (
    auto_mergeable_groups,
    find_duplicates,
    manual_review_groups,
    merge_score,
    normalize_email_key,
    normalize_name_key,
    normalize_phone_key,
    render_duplicate_report,
    suggest_merge,
)
from broker_validator.exceptions import BatchInputError
from broker_validator.models import MatchType, ReviewType


# ═══════════════════════════════════════════════════════════════════════
# KEY NORMALIZATION
# ═══════════════════════════════════════════════════════════════════════


class TestKeys:
    @pytest.mark.parametrize(
        ("phone", "key"),
        [
            ("(85) 97100-5622", "85971005622"),
            ("+55 85 97100-5622", "85971005622"),
            ("55 85 3261-1234", "8532611234"),
            ("8532611234", "8532611234"),
            ("123", None),
            ("12345678901234", None),
            ("   ", None),
            (None, None),
            (8597100562, None),
        ],
    )
    def test_phone_key(self, phone, key):
        assert normalize_phone_key(phone) == key

    def test_email_key(self):
        assert normalize_email_key("  Maria@Hotmail.COM ") == "maria@hotmail.com"
        assert normalize_email_key("no-at-sign.com") is None
        assert normalize_email_key("maria@localhost") is None
        assert normalize_email_key(None) is None

    def test_name_key(self):
        assert normalize_name_key("  Maria   SILVA ") == "maria silva"
        assert normalize_name_key("   ") is None
        assert normalize_name_key(["Maria"]) is None


# ═══════════════════════════════════════════════════════════════════════
# DETECTION
# ═══════════════════════════════════════════════════════════════════════


class TestFindDuplicates:
    def test_same_phone_and_email_is_one_phone_group(self):
        records = [
            {"id": "1", "name": "Maria Silva", "phone": "85 97100-5622", "email": "maria@hotmail.com"},
            {"id": "2", "name": "Maria S.", "phone": "(85) 97100-5622", "email": "MARIA@hotmail.com"},
        ]
        result = find_duplicates(records)
        assert result.duplicates_found == 1
        group = result.duplicate_groups[0]
        assert group.match_type == MatchType.PHONE_EXACT
        assert group.review_type == ReviewType.AUTO
        assert group.suggested_action == "merge"
        assert group.reason == "Identical phone number: 85971005622"
        assert [ref.id for ref in group.records] == ["1", "2"]
        assert result.summary.email_matches == 0

    def test_email_group(self):
        records = [
            {"id": "1", "name": "Ana", "phone": "(85) 97100-5622", "email": "ana@corretora.com.br"},
            {"id": "2", "name": "Ana Paula", "email": " ANA@corretora.com.br"},
        ]
        result = find_duplicates(records)
        assert [g.match_type for g in result.duplicate_groups] == [MatchType.EMAIL_EXACT]
        assert result.summary.email_matches == 1
        assert result.needs_manual_review == 0

    def test_name_group_needs_manual_review(self):
        records = [
            {"id": "1", "name": "Maria  Silva"},
            {"id": "2", "name": " maria silva"},
        ]
        result = find_duplicates(records)
        group = result.duplicate_groups[0]
        assert group.match_type == MatchType.NAME_EXACT
        assert group.review_type == ReviewType.MANUAL
        assert group.suggested_action == "manual_review"
        assert result.needs_manual_review == 1

    def test_each_record_lands_in_at_most_one_group(self):
        records = [
            {"id": "a", "name": "Ana", "phone": "(85) 97100-5622", "email": "ana@x.com"},
            {"id": "b", "name": "Bia", "phone": "85971005622", "email": "shared@x.com"},
            {"id": "c", "name": "Caio", "phone": "(85) 3261-1234", "email": "SHARED@x.com "},
            {"id": "d", "name": "Davi Rocha", "phone": "(85) 99111-2222", "email": "d@x.com"},
            {"id": "e", "name": " davi  rocha"},
        ]
        result = find_duplicates(records)

        assert [g.match_type for g in result.duplicate_groups] == [
            MatchType.PHONE_EXACT, MatchType.NAME_EXACT,
        ]
        assert result.summary.model_dump() == {
            "phone_matches": 1,
            "email_matches": 0,
            "name_matches": 1,
            "total_duplicate_records": 4,
        }
        positions = [ref.original_index for g in result.duplicate_groups for ref in g.records]
        assert sorted(positions) == [0, 1, 3, 4]
        assert len(positions) == len(set(positions))

    def test_record_count_matches_records(self):
        records = [{"name": "Ana"}, {"name": "ana"}, {"name": "ANA"}]
        group = find_duplicates(records).duplicate_groups[0]
        assert group.record_count == len(group.records) == 3
        assert [ref.id for ref in group.records] == ["unknown"] * 3

    def test_missing_keys_never_match(self):
        records = [{"id": "1"}, {"id": "2", "phone": "", "email": None, "name": "  "}]
        result = find_duplicates(records)
        assert result.duplicate_groups == []
        assert result.summary.total_duplicate_records == 0

    def test_empty_batch(self):
        assert find_duplicates([]).duplicates_found == 0

    def test_rejects_non_list(self):
        with pytest.raises(BatchInputError):
            find_duplicates({"id": "1"})

    def test_group_filters(self):
        records = [
            {"id": "1", "name": "Ana", "phone": "(85) 97100-5622"},
            {"id": "2", "name": "Bia", "phone": "(85) 97100-5622"},
            {"id": "3", "name": "Caio"},
            {"id": "4", "name": "caio"},
        ]
        result = find_duplicates(records)
        assert [g.match_type for g in auto_mergeable_groups(result)] == [MatchType.PHONE_EXACT]
        assert [g.match_type for g in manual_review_groups(result)] == [MatchType.NAME_EXACT]

    def test_report(self):
        records = [{"id": "1", "name": "Caio"}, {"id": "2", "name": "caio"}]
        text = render_duplicate_report(find_duplicates(records))
        assert "Duplicate Groups Found: 1" in text
        assert "Records Involved in Duplicates: 2 (100.0%)" in text
        assert "Group 1 [MANUAL]:" in text
        assert "Groups Needing Manual Review (1):" in text


# ═══════════════════════════════════════════════════════════════════════
# MERGE SUGGESTION
# ═══════════════════════════════════════════════════════════════════════


class TestSuggestMerge:
    RECORDS = [
        {"id": "1", "name": "Ana", "phone": "(85) 97100-5622"},
        {
            "id": "2",
            "name": "Ana Souza",
            "phone": "85 97100-5622",
            "email": "ana@x.com",
            "website": "https://ana.com.br",
            "address": "Rua 1",
        },
    ]

    def test_full_records_pick_most_complete(self):
        group = find_duplicates(self.RECORDS).duplicate_groups[0]
        suggestion = suggest_merge(group, self.RECORDS)
        assert suggestion.primary_record.id == "2"
        assert [ref.id for ref in suggestion.duplicate_records] == ["1"]
        assert suggestion.completeness_score == pytest.approx(500 / 7)
        assert suggestion.merge_strategy == "keep_most_complete"
        assert suggestion.reason.endswith("(71.4%)")

    def test_key_fields_only(self):
        group = find_duplicates(self.RECORDS).duplicate_groups[0]
        assert suggest_merge(group).primary_record.id == "2"

    def test_tie_keeps_earliest(self):
        records = [{"id": "x", "name": "Caio"}, {"id": "y", "name": "caio"}]
        group = find_duplicates(records).duplicate_groups[0]
        assert suggest_merge(group, records).primary_record.id == "x"

    def test_single_record_group(self):
        group = find_duplicates(self.RECORDS).duplicate_groups[0]
        lonely = group.model_copy(update={"records": group.records[:1]})
        assert suggest_merge(lonely) is None

    def test_merge_score(self):
        assert merge_score({}) == 0.0
        assert merge_score({"name": "Ana", "company": " ", "rating": 5}) == pytest.approx(100 / 7)
