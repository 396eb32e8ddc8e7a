"""
Tests for candidate and filter models.

Tests:
- Candidate accepts the document store's native field names
- QueryFilters normalization (period, keywords, blanks)
- QueryFilters.parse raises InvalidFilterCombinationError on malformed input
"""

import math

import pytest
from pydantic import ValidationError

from audit_context.errors import InvalidFilterCombinationError
from audit_context.models import Candidate, ContextBudget, QueryFilters


class TestCandidate:
    """Test suite for the Candidate model."""

    def test_store_aliases(self):
        """Test native store field names populate the model."""
        candidate = Candidate.model_validate(
            {
                "auditResultId": "AR-9",
                "year": 2023,
                "department": "Finance",
                "projectName": "Harbor Tower",
                "riskArea": "Cash",
                "descriptions": "Petty cash not reconciled",
                "code": "F-2",
                "sh": "SH2",
                "nilai": 12,
                "unrelated": "ignored",
            }
        )
        assert candidate.id == "AR-9"
        assert candidate.period == "2023"
        assert candidate.unit == "Finance"
        assert candidate.description == "Petty cash not reconciled"
        assert candidate.subholding == "SH2"
        assert candidate.severity == 12.0

    def test_frozen(self):
        """Test candidates are immutable."""
        candidate = Candidate(id="AR-1")
        with pytest.raises(ValidationError):
            candidate.unit = "Other"

    def test_id_required(self):
        with pytest.raises(ValidationError):
            Candidate(id="")


class TestQueryFilters:
    """Test suite for QueryFilters validation."""

    def test_defaults(self):
        filters = QueryFilters()
        assert filters.keywords == ()
        assert filters.min_severity is None
        assert not filters.exclude_non_findings
        assert not filters.has_specific_constraint

    def test_period_from_int(self):
        assert QueryFilters.parse({"period": 2024}).period == "2024"
        assert QueryFilters.parse({"year": 2024}).period == "2024"

    def test_blank_strings_are_unset(self):
        filters = QueryFilters.parse({"period": "  ", "unit": "", "project_id": " "})
        assert filters.period is None
        assert filters.unit is None
        assert filters.project_id is None
        assert not filters.has_specific_constraint

    def test_keywords_stripped_and_deduplicated(self):
        filters = QueryFilters.parse({"keywords": [" Safety", "safety", "hospital", ""]})
        assert filters.keywords == ("Safety", "hospital")
        assert filters.has_specific_constraint

    def test_parse_passthrough(self):
        filters = QueryFilters(unit="Finance")
        assert QueryFilters.parse(filters) is filters
        assert QueryFilters.parse(None) == QueryFilters()

    @pytest.mark.parametrize(
        ("data", "field"),
        [
            ({"min_severity": "high"}, "min_severity"),
            ({"min_severity": -1}, "min_severity"),
            ({"min_severity": True}, "min_severity"),
            ({"min_severity": math.nan}, "min_severity"),
            ({"keywords": "safety"}, "keywords"),
            ({"keywords": ["safety", 3]}, "keywords"),
            ({"exclude_non_findings": "yes"}, "exclude_non_findings"),
            ({"colour": "red"}, "colour"),
        ],
    )
    def test_parse_rejects_malformed(self, data, field):
        """Test malformed filters raise the contract violation error."""
        with pytest.raises(InvalidFilterCombinationError) as exc_info:
            QueryFilters.parse(data)
        assert exc_info.value.field == field
        assert isinstance(exc_info.value, ValueError)

    def test_parse_rejects_non_mapping(self):
        with pytest.raises(InvalidFilterCombinationError):
            QueryFilters.parse(["period", "2024"])


class TestContextBudget:
    def test_defaults(self):
        budget = ContextBudget()
        assert budget.max_candidates == 20
        assert budget.max_tokens == 10000
        assert budget.chars_per_token == 4

    def test_rejects_zero(self):
        with pytest.raises(ValidationError):
            ContextBudget(max_tokens=0)
