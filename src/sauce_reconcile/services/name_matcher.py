"""Infer a Sauce job's pass/fail status from test results by name matching."""

import logging
import re

from ..models.job_record import JobRecord
from ..models.test_results import TestCaseOutcome, TestSuite, passed_cases

logger = logging.getLogger(__name__)


def whole_word_pattern(job_name: str) -> re.Pattern:
    """Compile the job name as a literal that must not touch word characters."""
    return re.compile(r"(?<!\w)" + re.escape(job_name) + r"(?!\w)")


def _matches(job_name: str, case: TestCaseOutcome) -> bool:
    """A case matches a job if any of these hold, checked in order:

    - the job name equals the case's full name
    - the job name contains the case's display name
    - the case's full name contains the job name as a whole word
    """
    if job_name == case.full_name:
        return True
    if case.display_name is not None and case.display_name in job_name:
        return True
    return whole_word_pattern(job_name).search(case.full_name) is not None


def _first_match(job_name: str, cases) -> bool | None:
    for case in cases:
        try:
            if _matches(job_name, case):
                return case.is_passed
        except Exception as e:
            logger.warning(
                f"Error matching job {job_name!r} against {case.full_name!r}, "
                f"attempting to continue: {e}"
            )
    return None


def infer_status(job: JobRecord, suites: list[TestSuite] | None) -> bool | None:
    """
    Determine whether the test behind a Sauce job passed.

    The first pass scans every case of every suite; if nothing matches, a
    second pass scans the cases already known to have passed.

    Args:
        job: Record with a known name and no status yet
        suites: Test results for the run, or None if there are none

    Returns:
        True if the matching case passed (or was fixed), False if it did not,
        None when nothing matched or the job is not eligible for inference.
    """
    if suites is None or not job.has_name or job.status is not None:
        return None

    all_cases = (case for suite in suites for case in suite.cases)
    result = _first_match(job.name, all_cases)
    if result is not None:
        return result

    logger.debug("No matches with suites, attempt to use passed tests")
    return _first_match(job.name, passed_cases(suites))
