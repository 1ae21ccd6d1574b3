"""SessionReference model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionReference:
    """A Sauce session id and job label parsed from one log line.

    The same session may be referenced by several lines; callers
    deduplicate on ``session_id``.
    """

    session_id: str
    job_name: str | None
    from_stdout: bool
