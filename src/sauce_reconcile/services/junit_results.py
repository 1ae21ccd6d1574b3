"""Read JUnit XML reports into test suite results."""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Protocol

from ..models.test_results import CaseStatus, TestCaseOutcome, TestSuite

logger = logging.getLogger(__name__)


class TestSuiteSource(Protocol):
    """Supplies structured test results for a run.

    ``get_suites`` returns None when the run produced no results at all
    (for example when the build was aborted).
    """

    __test__ = False

    def get_suites(self) -> list[TestSuite] | None:
        ...


def _text(element: ET.Element | None) -> str | None:
    if element is None:
        return None
    return element.text or ""


def _parse_case(element: ET.Element) -> TestCaseOutcome:
    name = element.get("name", "")
    classname = element.get("classname", "")
    full_name = f"{classname}.{name}" if classname else name

    status = CaseStatus.PASSED
    stack_trace = None
    failure = element.find("failure")
    if failure is None:
        failure = element.find("error")
    if failure is not None:
        status = CaseStatus.FAILED
        stack_trace = failure.text or failure.get("message", "")
    elif element.find("skipped") is not None:
        status = CaseStatus.SKIPPED

    return TestCaseOutcome(
        full_name=full_name,
        display_name=name,
        status=status,
        stdout=_text(element.find("system-out")),
        stderr=_text(element.find("system-err")),
        error_stack_trace=stack_trace,
    )


def parse_junit_xml(path: str | Path) -> list[TestSuite]:
    """
    Parse one JUnit XML report.

    Both a bare ``<testsuite>`` root and a ``<testsuites>`` wrapper are
    accepted.

    Raises:
        ET.ParseError: If the file is not well-formed XML
        OSError: If the file cannot be read
    """
    root = ET.parse(path).getroot()
    elements = [root] if root.tag == "testsuite" else root.iter("testsuite")

    suites = []
    for element in elements:
        suites.append(
            TestSuite(
                name=element.get("name", ""),
                stdout=_text(element.find("system-out")),
                stderr=_text(element.find("system-err")),
                cases=[_parse_case(case) for case in element.findall("testcase")],
            )
        )
    return suites


class JUnitResultSource:
    """Test suite source over a set of JUnit XML report files."""

    def __init__(self, paths: list[str | Path]) -> None:
        self._paths = [Path(p) for p in paths]

    def get_suites(self) -> list[TestSuite] | None:
        existing = [path for path in self._paths if path.is_file()]
        if not existing:
            return None

        suites = []
        for path in existing:
            try:
                suites.extend(parse_junit_xml(path))
            except (ET.ParseError, OSError) as e:
                logger.warning(f"Skipping unreadable JUnit report {path}: {e}")
        return suites
