"""Reconcile Sauce jobs found in a CI run's output with its test results.

One pass over a run:
- Extract session ids from the console log and from captured test output
- Resolve each id to a JobRecord (restored from a previous pass, or fetched)
- Fill in status, name and build where Sauce does not know them yet
- Push the minimal changeset for each job and persist the job list
"""

import logging
from dataclasses import dataclass
from typing import NamedTuple

from ..models.job_record import JobRecord, JobStatus
from ..models.session_reference import SessionReference
from ..models.test_results import TestSuite, failed_cases
from .log_source import RunLogSource
from .name_matcher import infer_status
from .run_context import RunContext
from .sauce_rest_client import RemoteJobGateway
from .session_id_extractor import extract_session_ids

logger = logging.getLogger(__name__)

VISIBILITY_CHOICES = ("", "public", "public restricted", "private", "team")

FAILURE_MESSAGE_KEY = "FAILURE_MESSAGE"

START_MESSAGE = "Starting Sauce Labs test publisher"
FINISH_MESSAGE = "Finished Sauce Labs test publisher"
NO_SESSIONS_MESSAGE = (
    "The Sauce OnDemand plugin is configured, but no session IDs were found in the test output."
)


@dataclass(frozen=True)
class ReconcilerOptions:
    """Per-run reconciler settings."""

    visibility: str = ""
    disable_usage_stats: bool = False

    def __post_init__(self):
        if self.visibility not in VISIBILITY_CHOICES:
            raise ValueError(
                f"Invalid job visibility {self.visibility!r}; "
                f"expected one of {', '.join(repr(v) for v in VISIBILITY_CHOICES)}"
            )


class ReconciliationResult(NamedTuple):
    """Outcome of one reconciliation pass."""

    jobs: dict[str, JobRecord]
    updates_applied: bool

    @property
    def has_results(self) -> bool:
        return bool(self.jobs)


def collect_session_references(
    log_lines: list[str], suites: list[TestSuite] | None
) -> list[SessionReference]:
    """
    Find all session references for a run, one per session id.

    Each id keeps the position of its first occurrence and the first
    ``job-name`` label seen for it anywhere in the run.

    Console output is scanned first, then each suite's captured streams,
    then each case's streams where they differ from the owning suite's.
    """
    references = extract_session_ids(True, *log_lines)

    if suites is not None:
        for suite in suites:
            references.extend(extract_session_ids(False, suite.stdout, suite.stderr))
            for case in suite.cases:
                if case.stdout != suite.stdout:
                    references.extend(extract_session_ids(False, case.stdout))
                if case.stderr != suite.stderr:
                    references.extend(extract_session_ids(False, case.stderr))

    # One reference per id, at its first position; a later labelled
    # reference replaces an unlabelled one so the job name is not lost
    positions: dict[str, int] = {}
    unique = []
    for reference in references:
        index = positions.get(reference.session_id)
        if index is None:
            positions[reference.session_id] = len(unique)
            unique.append(reference)
        elif not unique[index].job_name and reference.job_name:
            unique[index] = reference
    return unique


def build_failed_tests_map(suites: list[TestSuite]) -> dict[str, str]:
    """Map each failed test's full name to its stack trace."""
    return {
        case.full_name: (case.error_stack_trace or "").strip()
        for case in failed_cases(suites)
    }


class ReconciliationEngine:
    """
    Correlates Sauce sessions with a CI run and publishes the results.

    No failure inside a pass is fatal: lookup, update and persistence
    errors are logged as warnings and the pass carries on.
    """

    def __init__(self, gateway: RemoteJobGateway) -> None:
        self._gateway = gateway

    def reconcile(
        self,
        run: RunContext,
        prior_jobs: dict[str, JobRecord],
        log_source: RunLogSource | None,
        suites: list[TestSuite] | None,
        options: ReconcilerOptions | None = None,
    ) -> ReconciliationResult:
        """
        Run one reconciliation pass over a CI run.

        Args:
            run: The run being reconciled
            prior_jobs: Jobs saved by a previous pass, keyed by job id
            log_source: The run's console output, if any
            suites: Test results, or None if the run produced none
            options: Visibility and usage-stats settings

        Returns:
            ReconciliationResult with every known job (prior and new) and
            whether any update reached Sauce.
        """
        options = options or ReconcilerOptions()
        run.listener(START_MESSAGE)
        try:
            result = self._process_run(run, prior_jobs, log_source, suites, options)
            if not result.has_results:
                run.listener(NO_SESSIONS_MESSAGE)
            return result
        finally:
            run.listener(FINISH_MESSAGE)

    def _process_run(self, run, prior_jobs, log_source, suites, options) -> ReconciliationResult:
        jobs = dict(prior_jobs)
        log_lines = self._read_log(log_source)

        if suites is not None:
            logger.debug("Parsing Sauce session ids in test results")
        references = collect_session_references(log_lines, suites)
        logger.info(f"Found {len(references)} Sauce session id(s) in run output")

        failed_tests = {}
        if not options.disable_usage_stats and suites is not None:
            failed_tests = build_failed_tests_map(suites)

        build_identifier = run.get_sanitized_build_identifier()
        updates_applied = False
        for reference in references:
            record = jobs.get(reference.session_id)
            if record is None:
                record = self._create_record(reference.session_id)
                jobs[record.job_id] = record

            changes = self.compute_changes(
                record, reference, suites, build_identifier, options, failed_tests
            )
            if changes and self._push(record.job_id, changes):
                updates_applied = True

        if jobs:
            run.set_jobs(list(jobs.values()))
            try:
                run.persist()
            except OSError as e:
                logger.warning(f"Unable to save run state: {e}")

        return ReconciliationResult(jobs=jobs, updates_applied=updates_applied)

    def compute_changes(
        self,
        record: JobRecord,
        reference: SessionReference,
        suites: list[TestSuite] | None,
        build_identifier: str,
        options: ReconcilerOptions,
        failed_tests: dict[str, str],
    ) -> dict:
        """Apply one session reference to a record and return its changeset.

        The name is filled before status inference so that a job known only
        by its log label can still be matched to a test case in this pass.
        """
        record.reset_changes()

        record.set_if_unset("name", reference.job_name)
        record.set_if_unset("build", build_identifier)

        if record.status is None:
            passed = infer_status(record, suites)
            if passed is not None:
                record.set_if_unset("status", JobStatus.from_passed(passed))

        if options.visibility:
            record.visibility = options.visibility
            record.changes["public"] = options.visibility

        if (
            not options.disable_usage_stats
            and suites is not None
            and record.status is JobStatus.FAILED
        ):
            custom_data = dict(record.custom_data)
            custom_data.update(self._fetch_custom_data(record.job_id))
            failure_message = failed_tests.get(record.name)
            if failure_message is not None:
                custom_data[FAILURE_MESSAGE_KEY] = failure_message
            record.custom_data = dict(custom_data)
            record.changes["custom-data"] = custom_data

        return dict(record.changes)

    def _read_log(self, log_source: RunLogSource | None) -> list[str]:
        lines: list[str] = []
        if log_source is None:
            return lines
        logger.debug("Parsing Sauce session ids in stdout")
        try:
            for line in log_source.read_lines():
                lines.append(line)
        except OSError as e:
            logger.error(f"Error reading run log, continuing with {len(lines)} line(s): {e}")
        return lines

    def _create_record(self, job_id: str) -> JobRecord:
        record = JobRecord(job_id=job_id)
        try:
            record.populate(self._gateway.get_job_details(job_id))
        except OSError as e:
            logger.warning(f"Unable to get job details for {job_id}: {e}")
        return record

    def _fetch_custom_data(self, job_id: str) -> dict[str, str]:
        try:
            return dict(self._gateway.get_job_details(job_id).custom_data)
        except OSError as e:
            logger.warning(f"Unable to get job details for {job_id}: {e}")
            return {}

    def _push(self, job_id: str, changes: dict) -> bool:
        logger.debug(f"Performing Sauce REST update for {job_id}: {sorted(changes)}")
        try:
            self._gateway.update_job(job_id, changes)
        except OSError as e:
            logger.warning(f"Unable to update job information for {job_id}: {e}")
            return False
        return True
