"""Tests for reading JUnit XML reports."""

import pytest

from sauce_reconcile.models.test_results import CaseStatus
from sauce_reconcile.services.junit_results import JUnitResultSource, parse_junit_xml

REPORT = """<?xml version="1.0" encoding="UTF-8"?>
<testsuite name="com.example.LoginTest" tests="3">
  <testcase classname="com.example.LoginTest" name="testValidLogin"/>
  <testcase classname="com.example.LoginTest" name="testBadPassword">
    <failure message="expected error banner">java.lang.AssertionError: expected error banner
    at com.example.LoginTest.testBadPassword(LoginTest.java:42)</failure>
    <system-out>SauceOnDemandSessionID=abc123 job-name=testBadPassword</system-out>
  </testcase>
  <testcase classname="com.example.LoginTest" name="testSso">
    <skipped/>
  </testcase>
  <system-out>SauceOnDemandSessionID=def456 job-name=LoginTest</system-out>
  <system-err></system-err>
</testsuite>
"""


@pytest.fixture
def report(tmp_path):
    path = tmp_path / "TEST-com.example.LoginTest.xml"
    path.write_text(REPORT)
    return path


class TestParseJUnitXml:

    def test_suite_fields(self, report):
        (suite,) = parse_junit_xml(report)
        assert suite.name == "com.example.LoginTest"
        assert suite.stdout == "SauceOnDemandSessionID=def456 job-name=LoginTest"
        assert suite.stderr == ""
        assert len(suite.cases) == 3

    def test_case_names_and_statuses(self, report):
        cases = parse_junit_xml(report)[0].cases
        assert [(c.full_name, c.display_name, c.status) for c in cases] == [
            ("com.example.LoginTest.testValidLogin", "testValidLogin", CaseStatus.PASSED),
            ("com.example.LoginTest.testBadPassword", "testBadPassword", CaseStatus.FAILED),
            ("com.example.LoginTest.testSso", "testSso", CaseStatus.SKIPPED),
        ]

    def test_failure_details_and_case_output(self, report):
        failed = parse_junit_xml(report)[0].cases[1]
        assert failed.error_stack_trace.startswith("java.lang.AssertionError: expected error banner")
        assert failed.stdout == "SauceOnDemandSessionID=abc123 job-name=testBadPassword"
        assert failed.stderr is None

    def test_error_element_counts_as_failure(self, tmp_path):
        path = tmp_path / "report.xml"
        path.write_text(
            '<testsuite name="s"><testcase name="t"><error message="NPE"/></testcase></testsuite>'
        )
        case = parse_junit_xml(path)[0].cases[0]
        assert case.status is CaseStatus.FAILED
        assert case.full_name == "t"
        assert case.error_stack_trace == "NPE"

    def test_testsuites_wrapper(self, tmp_path):
        path = tmp_path / "report.xml"
        path.write_text(
            "<testsuites>"
            '<testsuite name="a"><testcase classname="A" name="one"/></testsuite>'
            '<testsuite name="b"><testcase classname="B" name="two"/></testsuite>'
            "</testsuites>"
        )
        assert [s.name for s in parse_junit_xml(path)] == ["a", "b"]


class TestJUnitResultSource:

    def test_no_reports_means_no_results(self, tmp_path):
        assert JUnitResultSource([tmp_path / "missing.xml"]).get_suites() is None

    def test_reads_all_reports(self, report, tmp_path):
        other = tmp_path / "other.xml"
        other.write_text('<testsuite name="other"><testcase name="x"/></testsuite>')
        suites = JUnitResultSource([report, other]).get_suites()
        assert [s.name for s in suites] == ["com.example.LoginTest", "other"]

    def test_malformed_report_is_skipped(self, report, tmp_path, caplog):
        broken = tmp_path / "broken.xml"
        broken.write_text("<testsuite><testcase")
        suites = JUnitResultSource([broken, report]).get_suites()
        assert [s.name for s in suites] == ["com.example.LoginTest"]
        assert "Skipping unreadable JUnit report" in caplog.text
