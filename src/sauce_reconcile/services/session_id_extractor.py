"""Extract Sauce session ids from build and test output."""

import logging
import re

from ..models.session_reference import SessionReference

logger = logging.getLogger(__name__)

# Line format printed by the Sauce client libraries, e.g.
#   SauceOnDemandSessionID=0123abcd job-name=LoginTest
SESSION_ID_PATTERN = re.compile(
    r"SauceOnDemandSessionID=(?P<session_id>[0-9a-fA-F]+)(?:.job-name=(?P<job_name>.*))?"
)

_LINE_SPLIT = re.compile(r"\n|\r")


def parse_line(line: str, from_stdout: bool = False) -> SessionReference | None:
    """Parse one line of output. Returns None if the line has no session id."""
    match = SESSION_ID_PATTERN.search(line)
    if not match:
        return None
    return SessionReference(
        session_id=match.group("session_id"),
        job_name=match.group("job_name"),
        from_stdout=from_stdout,
    )


def extract_session_ids(is_stdout: bool, *texts: str | None) -> list[SessionReference]:
    """
    Find every session reference in the given texts.

    Args:
        is_stdout: Whether the texts come from the build's standard output
        *texts: Blocks of output; None entries are skipped

    Returns:
        References in input order. Duplicates are kept.
    """
    references = []
    for text in texts:
        if text is None:
            continue
        for line in _LINE_SPLIT.split(text):
            reference = parse_line(line, from_stdout=is_stdout)
            if reference is not None:
                logger.debug(f"Extracted ID {reference.session_id} from line: {line}")
                references.append(reference)
    return references
