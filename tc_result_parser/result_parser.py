"""
Result parser for TestComplete logs.

Works with decompressed results (root.xml plus one XML log per test) and
builds the JUnit report: every test item found in the root log becomes a
TestResult, timing and failure messages come from the test's own log,
and results are grouped into suites by the first segment of their
classname.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from lxml import etree

from .errors import ResultLogError
from .models import TestResult, TestSuiteResult
from .report_writer import render_report
from .xml_query import get_nodes_by_xpath, get_root_attribute, get_text, load_document

logger = logging.getLogger(__name__)

ROOT_XML = "root.xml"
TEST_RESULT_PROVIDER_XPATH = ".//Provider[contains(@href, '_TestLog.xml')]/../../Provider"
RUN_TIME_XPATH = ".//RunTime"
MESSAGE_XPATH = ".//Message"

DEFAULT_FAILURE_TYPE = "Failure"
SUCCESS_STATUSES = ("0", "1")

# Safety bound for the ancestor walk in get_class_name
MAX_CLASS_DEPTH = 10


def parse_run_time(value: Optional[str]) -> Optional[int]:
    """Parse an 'H:MM:SS' string into seconds, None if it is not one."""
    if value is None:
        return None
    parts = value.strip().split(":")
    if len(parts) != 3:
        return None
    try:
        hours, minutes, seconds = (int(p) for p in parts)
    except ValueError:
        return None
    if min(hours, minutes, seconds) < 0:
        return None
    return hours * 3600 + minutes * 60 + seconds


def get_long_time(value: Optional[str]) -> int:
    """Seconds for an 'H:MM:SS' string, 0 when it cannot be parsed."""
    seconds = parse_run_time(value)
    if seconds is None:
        logger.warning(f"Cannot parse run time {value!r}, using 0")
        return 0
    return seconds


def sanitize_class_name(class_name: str) -> str:
    return class_name.replace(" ", "_").strip()


def get_log_file_name_from_href(href: str) -> str:
    """Last path segment of an href (both separators accepted)."""
    return re.split(r"[/\\]", href)[-1]


def get_class_name(node) -> str:
    """
    Build the dotted classname of a test item from its ancestors.

    Walks at most MAX_CLASS_DEPTH parent links and stops below the
    document element, whose name is the run name and not part of any
    classname. Ancestors with a non-empty name attribute contribute, in
    root-to-leaf order; unnamed ancestors are skipped rather than adding
    empty segments.
    """
    names = []
    parent = node
    for _ in range(MAX_CLASS_DEPTH):
        parent = parent.getparent()
        if parent is None or parent.getparent() is None:
            break
        name = parent.get("name", "")
        if name:
            names.append(name)
    return sanitize_class_name(".".join(reversed(names)))


def _resolve_test_log(base_path: Path, href: str) -> Path:
    """Per-test log path: the href itself when present, else its file name."""
    relative = href.replace("\\", "/").strip()
    if relative and not relative.startswith("/") and "://" not in relative:
        candidate = base_path / relative
        if candidate.is_file():
            return candidate
    return base_path / get_log_file_name_from_href(href)


def _load_test_log(log_path: Path) -> Optional[etree._ElementTree]:
    try:
        return load_document(log_path)
    except (OSError, etree.XMLSyntaxError) as e:
        logger.warning(f"Cannot read test log {log_path}: {e}")
        return None


def get_test_result(node, base_path) -> Optional[TestResult]:
    """
    Convert a Provider node of the root log into a TestResult.

    Args:
        node: Provider element; its href names the per-test log
        base_path: Directory holding root.xml and the per-test logs

    Returns:
        TestResult, or None when the node has no parent element
    """
    parent = node.getparent()
    if parent is None:
        return None

    base_path = Path(base_path)
    test_name = parent.get("name", "")
    test_status = parent.get("status", "")
    is_success = test_status.strip().lower() in SUCCESS_STATUSES
    test_class = get_class_name(parent)

    log_path = _resolve_test_log(base_path, node.get("href", ""))
    test_log = _load_test_log(log_path)

    run_time = get_text(test_log, RUN_TIME_XPATH) if test_log is not None else None
    if run_time is None:
        logger.warning(f"No RunTime for test '{test_name}' in {log_path.name}, using 0")
        test_time = 0
    else:
        test_time = get_long_time(run_time)

    if is_success:
        return TestResult(test_class, test_name, test_time)

    message = get_text(test_log, MESSAGE_XPATH) if test_log is not None else None
    if message is None:
        logger.debug(f"No failure message for test '{test_name}'")
        message = ""
    return TestResult(test_class, test_name, test_time, DEFAULT_FAILURE_TYPE, message)


def load_root_log(base_path, root_xml: str = ROOT_XML) -> etree._ElementTree:
    """
    Parse the root log.

    Raises:
        ResultLogError: If the root log is missing or not well-formed
    """
    path = Path(base_path) / root_xml
    try:
        return load_document(path)
    except (OSError, etree.XMLSyntaxError) as e:
        raise ResultLogError(f"Cannot read root log {path}: {e}") from e


def collect_test_results(root_log, base_path) -> list[TestResult]:
    """All test results referenced from a parsed root log, in document order."""
    results = []
    for node in get_nodes_by_xpath(root_log, TEST_RESULT_PROVIDER_XPATH):
        if not isinstance(node, etree._Element) or not isinstance(node.tag, str):
            continue
        result = get_test_result(node, base_path)
        if result is not None:
            logger.debug(f"Found test {result.classname}/{result.name} (failed={result.failed})")
            results.append(result)
    return results


def get_all_test_results(base_path, root_xml: str = ROOT_XML) -> list[TestResult]:
    """Parse the root log in base_path and return every test result."""
    return collect_test_results(load_root_log(base_path, root_xml), base_path)


def group_into_suites(test_results: list[TestResult]) -> list[TestSuiteResult]:
    """
    Group results into suites by suite name.

    Suites keep first-seen order, suite names match case-insensitively,
    and results keep discovery order inside their suite.
    """
    suites: list[TestSuiteResult] = []
    by_name: dict[str, TestSuiteResult] = {}

    for test_result in test_results:
        key = test_result.suite_name.lower()
        suite = by_name.get(key)
        if suite is None:
            suite = TestSuiteResult(test_result.suite_name)
            by_name[key] = suite
            suites.append(suite)
        suite.add_test_result(test_result)
    return suites


def build_report(base_path, root_xml: str = ROOT_XML) -> tuple[str, list[TestSuiteResult]]:
    """
    Collect the suites of a log directory.

    Returns:
        (name attribute of the root log, suites in report order)

    Raises:
        ResultLogError: If the root log is missing or unreadable
    """
    root_log = load_root_log(base_path, root_xml)
    suites = group_into_suites(collect_test_results(root_log, base_path))
    logger.info(
        f"Collected {sum(s.tests for s in suites)} tests in {len(suites)} suites "
        f"from {Path(base_path) / root_xml}"
    )
    return get_root_attribute(root_log, "name"), suites


def get_result_xml(base_path, escape: bool = True, root_xml: str = ROOT_XML) -> str:
    """
    Generate the JUnit report for a log directory as a string.

    Args:
        base_path: Directory holding root.xml and the per-test logs
        escape: Escape attribute values (False keeps legacy verbatim output)
        root_xml: File name of the root log

    Raises:
        ResultLogError: If the root log is missing or unreadable
    """
    name, suites = build_report(base_path, root_xml)
    return render_report(suites, name=name, escape=escape)


def write_report(out, suites: list[TestSuiteResult], name: str = "", escape: bool = True) -> Path:
    """Serialize suites to out as UTF-8."""
    out = Path(out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(render_report(suites, name=name, escape=escape), encoding="utf-8")
    logger.info(f"Wrote JUnit report to {out}")
    return out


def generate_junit_xml(workspace, result_location, report_name: str,
                       escape: bool = True, root_xml: str = ROOT_XML) -> Path:
    """
    Write the JUnit report for workspace/result_location to workspace/report_name.

    Returns:
        Path of the written report
    """
    workspace = Path(workspace)
    name, suites = build_report(workspace / result_location, root_xml)
    return write_report(workspace / report_name, suites, name=name, escape=escape)
