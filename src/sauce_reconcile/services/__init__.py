"""Services package for sauce-reconcile."""

from .junit_results import JUnitResultSource, TestSuiteSource, parse_junit_xml
from .log_source import FileLogSource, RunLogSource, TextLogSource
from .name_matcher import infer_status, whole_word_pattern
from .reconciliation_engine import (
    FAILURE_MESSAGE_KEY,
    VISIBILITY_CHOICES,
    ReconciliationEngine,
    ReconciliationResult,
    ReconcilerOptions,
    build_failed_tests_map,
    collect_session_references,
)
from .run_context import FileRunContext, RunContext, sanitize_build_identifier
from .sauce_rest_client import RemoteJobGateway, SauceRestClient, SauceRestError
from .session_id_extractor import SESSION_ID_PATTERN, extract_session_ids, parse_line

__all__ = [
    # Session id extraction
    "SESSION_ID_PATTERN",
    "extract_session_ids",
    "parse_line",
    # Name matching
    "infer_status",
    "whole_word_pattern",
    # Reconciliation
    "FAILURE_MESSAGE_KEY",
    "VISIBILITY_CHOICES",
    "ReconciliationEngine",
    "ReconciliationResult",
    "ReconcilerOptions",
    "build_failed_tests_map",
    "collect_session_references",
    # Sauce REST
    "RemoteJobGateway",
    "SauceRestClient",
    "SauceRestError",
    # Run sources and state
    "FileLogSource",
    "TextLogSource",
    "RunLogSource",
    "JUnitResultSource",
    "TestSuiteSource",
    "parse_junit_xml",
    "FileRunContext",
    "RunContext",
    "sanitize_build_identifier",
]
