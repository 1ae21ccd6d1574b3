"""JobRecord model, JobStatus enum and the RemoteJob view of a Sauce job."""

import enum
from dataclasses import dataclass, field
from typing import Any


class JobStatus(enum.Enum):
    """Reconciled pass/fail state of a Sauce job."""

    PASSED = "Passed"
    FAILED = "Failed"

    @classmethod
    def from_passed(cls, passed: bool) -> "JobStatus":
        return cls.PASSED if passed else cls.FAILED


@dataclass
class RemoteJob:
    """Job details as reported by the Sauce REST API."""

    id: str
    name: str | None = None
    build: str | None = None
    passed: bool | None = None
    visibility: str | None = None
    custom_data: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: dict) -> "RemoteJob":
        visibility = data.get("public")
        # The API reports legacy boolean visibility for older jobs
        if isinstance(visibility, bool):
            visibility = "public" if visibility else "private"
        custom_data = data.get("custom-data")
        if not isinstance(custom_data, dict):
            custom_data = {}
        return cls(
            id=data.get("id", ""),
            name=data.get("name"),
            build=data.get("build"),
            passed=data.get("passed"),
            visibility=visibility,
            custom_data={str(k): str(v) for k, v in custom_data.items()},
        )


# Write-once fields and the changeset key each one is published under
_WRITE_ONCE_FIELDS = {
    "name": "name",
    "build": "build",
    "status": "passed",
}


@dataclass
class JobRecord:
    """
    Reconciled local view of one remote Sauce job.

    ``name``, ``build`` and ``status`` are write-once: they transition from
    unset to set through ``set_if_unset`` and are never overwritten after
    that. Every transition is recorded in ``changes``, the changeset that
    will be pushed to Sauce. The changeset is transient and is not
    persisted with the record.
    """

    job_id: str
    name: str | None = None
    build: str | None = None
    status: JobStatus | None = None
    visibility: str | None = None
    custom_data: dict[str, str] = field(default_factory=dict)
    changes: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def is_set(self, field_name: str) -> bool:
        value = getattr(self, field_name)
        return value is not None and value != ""

    @property
    def has_name(self) -> bool:
        return self.is_set("name")

    @property
    def has_build(self) -> bool:
        return self.is_set("build")

    def set_if_unset(self, field_name: str, value: Any) -> bool:
        """Set a write-once field if it has no value yet.

        Args:
            field_name: One of "name", "build" or "status"
            value: New value; None is never written

        Returns:
            True if the field changed and a changeset entry was recorded
        """
        if field_name not in _WRITE_ONCE_FIELDS:
            raise ValueError(f"{field_name!r} is not a write-once field")
        if value is None or self.is_set(field_name):
            return False

        setattr(self, field_name, value)
        change_key = _WRITE_ONCE_FIELDS[field_name]
        if field_name == "status":
            self.changes[change_key] = value is JobStatus.PASSED
        else:
            self.changes[change_key] = value
        return True

    def reset_changes(self) -> None:
        self.changes = {}

    def populate(self, remote: RemoteJob) -> None:
        """Copy values already known to Sauce into unset fields.

        Values confirmed by the server are not changes, so nothing is
        added to the changeset.
        """
        if remote.passed is not None and self.status is None:
            self.status = JobStatus.from_passed(remote.passed)
        if remote.name and not self.has_name:
            self.name = remote.name
        if remote.build and not self.has_build:
            self.build = remote.build
        if remote.visibility and self.visibility is None:
            self.visibility = remote.visibility
        for key, value in remote.custom_data.items():
            self.custom_data.setdefault(key, value)

    def to_dict(self) -> dict:
        return {
            "job_id": self.job_id,
            "name": self.name,
            "build": self.build,
            "status": self.status.value if self.status else None,
            "visibility": self.visibility,
            "custom_data": dict(self.custom_data),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "JobRecord":
        status = data.get("status")
        return cls(
            job_id=data["job_id"],
            name=data.get("name"),
            build=data.get("build"),
            status=JobStatus(status) if status else None,
            visibility=data.get("visibility"),
            custom_data=dict(data.get("custom_data") or {}),
        )
