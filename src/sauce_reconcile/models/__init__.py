"""Data models package.

Models:
    - SessionReference: Session id and job label parsed from a log line
    - JobRecord: Reconciled local view of one Sauce job, with its changeset
    - RemoteJob: Job details as returned by the Sauce REST API
    - TestSuite, TestCaseOutcome: Test results read from the CI run

Enums:
    - JobStatus: Passed, Failed
    - CaseStatus: passed, fixed, skipped, failed, regression
"""

from .job_record import JobRecord, JobStatus, RemoteJob
from .session_reference import SessionReference
from .test_results import (
    CaseStatus,
    TestCaseOutcome,
    TestSuite,
    failed_cases,
    passed_cases,
)

__all__ = [
    "CaseStatus",
    "JobRecord",
    "JobStatus",
    "RemoteJob",
    "SessionReference",
    "TestCaseOutcome",
    "TestSuite",
    "failed_cases",
    "passed_cases",
]
