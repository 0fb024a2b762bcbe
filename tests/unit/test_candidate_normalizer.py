"""Unit tests for contract, obligation and adjustment normalization."""

from datetime import date
from decimal import Decimal

import pytest

from revrec_engine.data.normalizer import CandidateNormalizer, NormalizationResult, snake_case
from revrec_engine.models.contract import ConsiderationType, SatisfactionMethod


class TestSnakeCase:
    """Test key folding."""

    @pytest.mark.parametrize("name,expected", [
        ("standaloneSellingPrice", "standalone_selling_price"),
        ("start_date", "start_date"),
        ("Point-In-Time", "point_in_time"),
        ("over time", "over_time"),
    ])
    def test_snake_case(self, name, expected):
        assert snake_case(name) == expected


class TestNormalizationResult:
    """Test result helpers."""

    def test_success_with(self):
        result = NormalizationResult.success_with("value")

        assert result.success is True
        assert result.value == "value"
        assert result.error_msg is None

    def test_error(self):
        result = NormalizationResult.error("bad input")

        assert result.success is False
        assert result.value is None
        assert result.error_msg == "bad input"


class TestCandidateNormalization:
    """Test obligation candidate normalization."""

    def setup_method(self):
        """Setup normalizer."""
        self.normalizer = CandidateNormalizer()

    def test_snake_case_payload(self):
        result = self.normalizer.normalize_candidate({
            "description": "Software license",
            "standalone_selling_price": "6000.00",
            "satisfaction_method": "point_in_time",
        })

        assert result.success
        candidate = result.value
        assert candidate.standalone_selling_price == Decimal("6000.00")
        assert candidate.satisfaction_method == SatisfactionMethod.POINT_IN_TIME
        assert candidate.start_date is None

    def test_camel_case_payload(self):
        result = self.normalizer.normalize_candidate({
            "name": "Support",
            "standaloneSellingPrice": 4000,
            "recognitionMethod": "overTime",
            "startDate": "2024-01-15",
            "endDate": "2025-01-15T00:00:00Z",
        })

        assert result.success
        candidate = result.value
        assert candidate.description == "Support"
        assert candidate.standalone_selling_price == Decimal("4000")
        assert candidate.satisfaction_method == SatisfactionMethod.OVER_TIME
        assert candidate.start_date == date(2024, 1, 15)
        assert candidate.end_date == date(2025, 1, 15)

    @pytest.mark.parametrize("legacy", ["output_method", "inputMethod"])
    def test_legacy_progress_methods(self, legacy):
        assert self.normalizer.satisfaction_method(legacy) == SatisfactionMethod.OVER_TIME

    def test_float_amount_keeps_its_digits(self):
        result = self.normalizer.normalize_candidate({
            "description": "Training",
            "standalone_selling_price": 0.1,
            "satisfaction_method": "point_in_time",
        })

        assert result.value.standalone_selling_price == Decimal("0.1")

    @pytest.mark.parametrize("raw,message", [
        ({"standalone_selling_price": "1", "satisfaction_method": "over_time"}, "description"),
        ({"description": "x", "satisfaction_method": "over_time"}, "standalone_selling_price"),
        ({"description": "x", "standalone_selling_price": "1"}, "satisfaction_method"),
        ({"description": "x", "standalone_selling_price": "1", "satisfaction_method": "later"}, "later"),
        ({"description": "x", "standalone_selling_price": "abc", "satisfaction_method": "over_time"}, "abc"),
        ({"description": "x", "standalone_selling_price": "1", "satisfaction_method": "over_time",
          "start_date": "15/01/2024"}, "15/01/2024"),
    ])
    def test_invalid_candidates(self, raw, message):
        result = self.normalizer.normalize_candidate(raw)

        assert not result.success
        assert message in result.error_msg

    def test_normalize_candidates_reports_index(self):
        candidates, errors = self.normalizer.normalize_candidates([
            {"description": "a", "standalone_selling_price": "1", "satisfaction_method": "over_time"},
            {"description": "b", "standalone_selling_price": "x", "satisfaction_method": "over_time"},
        ])

        assert [c.description for c in candidates] == ["a"]
        assert len(errors) == 1
        assert errors[0].startswith("[1] ")


class TestAdjustmentNormalization:
    """Test variable consideration normalization."""

    def setup_method(self):
        """Setup normalizer."""
        self.normalizer = CandidateNormalizer()

    def test_adjustment(self):
        result = self.normalizer.normalize_adjustment({
            "type": "bonus",
            "amount": "2000.00",
            "constraint_factor": "0.5",
            "rationale": "Go-live bonus",
        })

        assert result.success
        assert result.value.type == ConsiderationType.BONUS
        assert result.value.constraint_factor == Decimal("0.5")
        assert result.value.rationale == "Go-live bonus"

    @pytest.mark.parametrize("legacy,expected", [
        ("variable_consideration", ConsiderationType.BONUS),
        ("significantFinancing", ConsiderationType.FINANCING),
        ("payable_to_customer", ConsiderationType.REBATE),
        ("noncash", ConsiderationType.NON_CASH),
        ("usage", ConsiderationType.USAGE_BASED),
    ])
    def test_legacy_types(self, legacy, expected):
        result = self.normalizer.normalize_adjustment({"adjustmentType": legacy, "amount": 10})

        assert result.value.type == expected

    def test_probability_alias(self):
        result = self.normalizer.normalize_adjustment({"type": "penalty", "amount": 500, "probability": 0.25})

        assert result.value.constraint_factor == Decimal("0.25")

    def test_missing_factor_means_unconstrained(self):
        result = self.normalizer.normalize_adjustment({"type": "rebate", "amount": "100"})

        assert result.value.constraint_factor is None
        assert result.value.rationale == ""

    @pytest.mark.parametrize("raw", [
        {"amount": "1"},
        {"type": "discount", "amount": "1"},
        {"type": "bonus"},
        {"type": "bonus", "amount": "1", "constraint_factor": "1.5"},
        {"type": "bonus", "amount": "1", "constraint_factor": "-0.1"},
    ])
    def test_invalid_adjustments(self, raw):
        assert not self.normalizer.normalize_adjustment(raw).success


class TestContractNormalization:
    """Test contract normalization."""

    def setup_method(self):
        """Setup normalizer."""
        self.normalizer = CandidateNormalizer()

    def test_contract(self):
        result = self.normalizer.normalize_contract({
            "id": "C-1001",
            "totalValue": "10,000.00",
            "startDate": "2024-01-15",
            "endDate": "2025-01-15",
            "name": "Bundle",
        })

        assert result.success
        contract = result.value
        assert contract.value == Decimal("10000.00")
        assert contract.start_date == date(2024, 1, 15)
        assert contract.transaction_price is None

    def test_contract_with_resolved_price(self):
        result = self.normalizer.normalize_contract({
            "id": 42,
            "value": 100,
            "start_date": date(2024, 1, 1),
            "total_transaction_price": "110",
        })

        assert result.value.id == "42"
        assert result.value.end_date is None
        assert result.value.effective_value == Decimal("110")

    @pytest.mark.parametrize("raw", [
        {"value": 1, "start_date": "2024-01-01"},
        {"id": "C-1", "start_date": "2024-01-01"},
        {"id": "C-1", "value": 1},
        {"id": "C-1", "value": 1, "start_date": "soon"},
    ])
    def test_invalid_contracts(self, raw):
        assert not self.normalizer.normalize_contract(raw).success
