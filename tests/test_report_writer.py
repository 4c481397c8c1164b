from tc_result_parser.models import TestResult, TestSuiteResult
from tc_result_parser.report_writer import (
    escape_attribute,
    render_report,
    render_test_case,
    render_test_suite,
)


def test_escape_attribute():
    assert escape_attribute('a & b < c > "d"') == "a &amp; b &lt; c &gt; &quot;d&quot;"
    assert escape_attribute('a & "b"', escape=False) == 'a & "b"'
    assert escape_attribute(42) == "42"


def test_passing_case_is_self_closing():
    case = TestResult("Suite.Group", "Login", 5)
    assert render_test_case(case) == '\t\t<testcase classname="Suite.Group" name="Login" time="5"/>\n'


def test_failing_case_has_failure_child():
    case = TestResult("Suite", "Logout", 3, "Failure", "Expected true")
    assert render_test_case(case) == (
        '\t\t<testcase classname="Suite" name="Logout" time="3">\n'
        '\t\t\t<failure type="Failure" message="Expected true"/>\n'
        '\t\t</testcase>\n'
    )


def test_suite_time_defaults_to_sum_of_cases():
    suite = TestSuiteResult("Suite")
    suite.add_test_result(TestResult("Suite", "a", 2))
    suite.add_test_result(TestResult("Suite", "b", 3))

    assert render_test_suite(suite).startswith('\t<testsuite name="Suite" tests="2" time="5">\n')

    suite.time = 10
    assert render_test_suite(suite).startswith('\t<testsuite name="Suite" tests="2" time="10">\n')


def test_empty_report():
    assert render_report([]) == '<?xml version="1.0" encoding="UTF-8"?>\n<testsuites>\n</testsuites>'


def test_report_with_name_and_suites():
    first = TestSuiteResult("A", test_results=[TestResult("A", "t1", 1)])
    second = TestSuiteResult("B & C", test_results=[TestResult("B & C.x", "t2", 2, "Failure", "")])

    report = render_report([first, second], name="Run")

    assert report == (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<testsuites name="Run">\n'
        '\t<testsuite name="A" tests="1" time="1">\n'
        '\t\t<testcase classname="A" name="t1" time="1"/>\n'
        '\t</testsuite>\n'
        '\t<testsuite name="B &amp; C" tests="1" time="2">\n'
        '\t\t<testcase classname="B &amp; C.x" name="t2" time="2">\n'
        '\t\t\t<failure type="Failure" message=""/>\n'
        '\t\t</testcase>\n'
        '\t</testsuite>\n'
        '</testsuites>'
    )
