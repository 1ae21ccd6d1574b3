"""Tests for test result models."""

from sauce_reconcile.models.test_results import CaseStatus, failed_cases, passed_cases
from tests.helpers.fakes import make_case, make_suite


class TestCaseFlattening:

    def test_passed_includes_fixed(self):
        suites = [
            make_suite(make_case("a", CaseStatus.PASSED), make_case("b", CaseStatus.SKIPPED)),
            make_suite(make_case("c", CaseStatus.FIXED), make_case("d", CaseStatus.FAILED)),
        ]
        assert [c.full_name for c in passed_cases(suites)] == ["a", "c"]

    def test_failed_includes_regression(self):
        suites = [make_suite(
            make_case("a", CaseStatus.FAILED),
            make_case("b", CaseStatus.REGRESSION),
            make_case("c", CaseStatus.PASSED),
        )]
        assert [c.full_name for c in failed_cases(suites)] == ["a", "b"]

    def test_skipped_is_neither(self):
        case = make_case("a", CaseStatus.SKIPPED)
        assert not case.is_passed
        assert not case.is_failed
