"""Run-scoped state: build identifier, progress listener and persisted jobs."""

import json
import logging
import os
import re
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from ..models.job_record import JobRecord

logger = logging.getLogger(__name__)

_UNSAFE_BUILD_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def sanitize_build_identifier(job_name: str, build_number: str | int) -> str:
    """Build the Sauce "build" value for a CI run, e.g. ``my_job-42``."""
    raw = f"{job_name}-{build_number}"
    return _UNSAFE_BUILD_CHARS.sub("_", raw)


class RunContext(Protocol):
    """The CI run being reconciled."""

    def get_sanitized_build_identifier(self) -> str:
        ...

    def set_jobs(self, jobs: list[JobRecord]) -> None:
        ...

    def persist(self) -> None:
        """Save run state. Raises OSError on failure."""
        ...

    def listener(self, message: str) -> None:
        """Write a progress message to the run's console."""
        ...


class FileRunContext:
    """
    Run context whose job list lives in a JSON state file.

    The file is shared by successive reconciliation passes over the same
    run: ``load_jobs`` restores what the previous pass saved.
    """

    def __init__(
        self,
        state_path: str | Path,
        job_name: str,
        build_number: str | int,
        listener: Callable[[str], None] | None = None,
    ) -> None:
        self._state_path = Path(state_path)
        self._job_name = job_name
        self._build_number = build_number
        self._listener = listener
        self._jobs: list[JobRecord] = []

    @property
    def state_path(self) -> Path:
        return self._state_path

    @property
    def jobs(self) -> list[JobRecord]:
        return list(self._jobs)

    def get_sanitized_build_identifier(self) -> str:
        return sanitize_build_identifier(self._job_name, self._build_number)

    def listener(self, message: str) -> None:
        if self._listener is not None:
            self._listener(message)
        else:
            logger.info(message)

    def set_jobs(self, jobs: list[JobRecord]) -> None:
        self._jobs = list(jobs)

    def load_jobs(self) -> dict[str, JobRecord]:
        """Restore jobs saved by a previous pass, keyed by job id."""
        if not self._state_path.exists():
            return {}
        try:
            with open(self._state_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read run state {self._state_path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(
                f"Could not read run state {self._state_path}: "
                f"expected an object, got {type(data).__name__}"
            )
            return {}

        jobs = {}
        for entry in data.get("jobs", []):
            if not isinstance(entry, dict):
                logger.warning(f"Skipping malformed job entry in {self._state_path}: {entry!r}")
                continue
            try:
                record = JobRecord.from_dict(entry)
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed job entry in {self._state_path}: {e}")
                continue
            jobs[record.job_id] = record
        self._jobs = list(jobs.values())
        return jobs

    def persist(self) -> None:
        self._state_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "build": self.get_sanitized_build_identifier(),
            "jobs": [job.to_dict() for job in self._jobs],
        }
        tmp_path = self._state_path.with_suffix(self._state_path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp_path, self._state_path)
