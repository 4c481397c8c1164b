"""
Data models for decoded archive parts and test results.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class DecodedFile:
    """A file written while decompressing an archive."""
    path: Path
    content_type: str = ""
    encoding: str = ""
    charset: str = "utf-8"
    binary: bool = False
    size: int = 0


@dataclass(frozen=True)
class TestResult:
    """Represents a single test case result."""
    __test__ = False

    classname: str
    name: str
    time: int = 0
    failure_type: str = ""
    failure_message: str = ""

    @property
    def suite_name(self) -> str:
        if "." not in self.classname:
            return self.classname
        return self.classname[:self.classname.index(".")]

    @property
    def failed(self) -> bool:
        return bool(self.failure_type or self.failure_message)


@dataclass
class TestSuiteResult:
    """Represents a test suite (results sharing the first classname segment)."""
    __test__ = False

    name: str
    time: Optional[int] = None
    test_results: list[TestResult] = field(default_factory=list)

    def add_test_result(self, test_result: TestResult):
        self.test_results.append(test_result)

    @property
    def tests(self) -> int:
        return len(self.test_results)

    @property
    def failures(self) -> int:
        return sum(1 for t in self.test_results if t.failed)

    @property
    def total_time(self) -> int:
        # Explicit time wins, otherwise sum of the cases
        if self.time is not None:
            return self.time
        return sum(t.time for t in self.test_results)
