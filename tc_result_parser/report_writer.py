"""Renders test suites as a JUnit XML document."""

from .models import TestResult, TestSuiteResult

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
)


def escape_attribute(value, escape: bool = True) -> str:
    """Make value safe to embed in a double-quoted attribute."""
    text = str(value)
    if not escape:
        return text
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def _attrs(pairs, escape: bool) -> str:
    return " ".join(f'{key}="{escape_attribute(value, escape)}"' for key, value in pairs)


def render_test_case(result: TestResult, escape: bool = True) -> str:
    attrs = _attrs([("classname", result.classname), ("name", result.name), ("time", result.time)], escape)
    if not result.failed:
        return f"\t\t<testcase {attrs}/>\n"

    failure = _attrs([("type", result.failure_type), ("message", result.failure_message)], escape)
    return (
        f"\t\t<testcase {attrs}>\n"
        f"\t\t\t<failure {failure}/>\n"
        "\t\t</testcase>\n"
    )


def render_test_suite(suite: TestSuiteResult, escape: bool = True) -> str:
    attrs = _attrs([("name", suite.name), ("tests", suite.tests), ("time", suite.total_time)], escape)
    cases = "".join(render_test_case(r, escape) for r in suite.test_results)
    return f"\t<testsuite {attrs}>\n{cases}\t</testsuite>\n"


def render_report(suites: list[TestSuiteResult], name: str = "", escape: bool = True) -> str:
    """
    Serialize suites into a JUnit XML string.

    Args:
        suites: Suites in report order
        name: Optional name of the <testsuites> element, omitted when empty
        escape: Escape &, <, > and " in attribute values. With False the
            values are written verbatim, matching legacy reports.

    Returns:
        The report, starting with the XML declaration
    """
    opening = "<testsuites"
    if name:
        opening += f' name="{escape_attribute(name, escape)}"'
    opening += ">\n"

    body = "".join(render_test_suite(s, escape) for s in suites)
    return f"{XML_DECLARATION}\n{opening}{body}</testsuites>"
