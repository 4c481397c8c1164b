"""Publish pipeline for TestComplete results - decodes archives and writes JUnit reports."""

import logging
import os
import shutil
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

from .errors import ReportConverterError
from .mht_parser import MHTParser
from .result_parser import ROOT_XML, build_report, write_report

logger = logging.getLogger(__name__)

MHT_EXTENSION = ".mht"
DEFAULT_MHT_PARSE_DESTINATION = "TestCompleteMhtParsed"
DEFAULT_JUNIT_REPORT = "TestCompleteJUnit.xml"

# Decoded logs reference their resources through the archive's origin
REPLACE_WHAT = "http://localhost"
REPLACE_WITH = "."

CONFIG_KEYS = ['WORKSPACE', 'MHT_PARSE_DESTINATION', 'JUNIT_REPORT', 'ROOT_XML', 'ESCAPE_ATTRIBUTES']


def load_config() -> dict:
    """Load config from environment variables and .env file.

    Environment variables take precedence over .env file values.
    """
    paths = [
        os.environ.get('TC_REPORT_CONFIG'),
        Path.cwd() / '.env',
        Path(__file__).parent.parent / '.env',
    ]
    config = {}
    # First, load from .env file
    for p in paths:
        if p and Path(p).is_file():
            try:
                for line in Path(p).read_text().splitlines():
                    line = line.strip()
                    if line and not line.startswith('#') and '=' in line:
                        key, value = line.split('=', 1)
                        config[key.strip()] = value.strip().strip('"').strip("'")
                break
            except OSError as e:
                logger.warning(f"Failed to read config file {p}: {e}")

    # Then, override with environment variables (higher priority)
    for key in CONFIG_KEYS:
        env_value = os.environ.get(key)
        if env_value is not None:
            config[key] = env_value

    return config


def _as_bool(value, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class PublishSettings:
    """Options of a publish run."""
    result_location: str = ""
    workspace: str = ""
    mht_parse_destination: str = DEFAULT_MHT_PARSE_DESTINATION
    junit_report: str = DEFAULT_JUNIT_REPORT
    root_xml: str = ROOT_XML
    publish_junit: bool = True
    publish_html: bool = False
    change_paths: bool = False
    escape_attributes: bool = True

    @property
    def is_mht_file(self) -> bool:
        return self.result_location.lower().endswith(MHT_EXTENSION)

    @classmethod
    def from_config(cls, config: Optional[dict] = None, **overrides) -> "PublishSettings":
        """Settings from load_config() values, then non-None overrides."""
        config = load_config() if config is None else config
        settings = cls(
            workspace=config.get('WORKSPACE', ''),
            mht_parse_destination=config.get('MHT_PARSE_DESTINATION', DEFAULT_MHT_PARSE_DESTINATION),
            junit_report=config.get('JUNIT_REPORT', DEFAULT_JUNIT_REPORT),
            root_xml=config.get('ROOT_XML', ROOT_XML),
            escape_attributes=_as_bool(config.get('ESCAPE_ATTRIBUTES'), True),
        )
        settings.update(**overrides)
        return settings

    def update(self, **values):
        known = {f.name: f for f in fields(self)}
        for key, value in values.items():
            if value is None:
                continue
            if key not in known:
                logger.warning(f"Ignoring unknown publish setting '{key}'")
                continue
            if known[key].type in (bool, 'bool'):
                value = _as_bool(value)
            setattr(self, key, value)


def load_settings_file(path) -> dict:
    """Read publish settings from a YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ReportConverterError(f"Settings file {path} must contain a mapping")
    return data


@dataclass
class PublishResult:
    """Outcome of a publish run."""
    status: str = "success"
    workspace: str = ""
    decoded_files: list[str] = field(default_factory=list)
    report: Optional[str] = None
    tests: int = 0
    failures: int = 0
    suites: int = 0
    warnings: list[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "status": self.status,
            "workspace": self.workspace,
            "decoded_files": self.decoded_files,
            "report": self.report,
            "tests": self.tests,
            "failures": self.failures,
            "suites": self.suites,
            "warnings": self.warnings,
        }
        if self.error:
            data["error"] = self.error
        return data


class ResultPublisher:
    """Runs the decode and report steps for one result location."""

    def __init__(self, settings: PublishSettings):
        self.settings = settings
        self.workspace = Path(settings.workspace or Path.cwd()).expanduser()

    @property
    def parse_destination(self) -> Path:
        return self.workspace / self.settings.mht_parse_destination

    @property
    def report_path(self) -> Path:
        return self.workspace / self.settings.junit_report

    @property
    def result_directory(self) -> Path:
        """Directory holding root.xml: decoded archive or the result location itself."""
        if self.settings.is_mht_file:
            return self.parse_destination
        return self.workspace / self.settings.result_location

    def publish(self) -> PublishResult:
        """
        Run the pipeline: cleanup, decompress, JUnit report, path rewrite.

        Failures of mandatory steps are reported in the result (status
        'failure' plus error), optional steps add warnings.
        """
        result = PublishResult(workspace=str(self.workspace))

        if not self.settings.result_location:
            return self._fail(result, "Result location is not specified")

        self.cleanup(result)

        if self.settings.is_mht_file:
            archive = self.workspace / self.settings.result_location
            logger.info(f"Decompressing {archive} to {self.parse_destination}")
            try:
                decoded = MHTParser(archive, self.parse_destination).decompress()
            except (OSError, ValueError, ReportConverterError) as e:
                return self._fail(result, f"Failed to parse MHTML file: {e}")
            result.decoded_files = [str(d.path) for d in decoded]

        if self.settings.publish_junit:
            logger.info("Generating JUnit xml")
            try:
                name, suites = build_report(self.result_directory, self.settings.root_xml)
                out = write_report(self.report_path, suites, name=name,
                                   escape=self.settings.escape_attributes)
            except (OSError, ReportConverterError) as e:
                return self._fail(result, f"Failed to generate JUnit xml file: {e}")
            result.report = str(out)
            result.suites = len(suites)
            result.tests = sum(s.tests for s in suites)
            result.failures = sum(s.failures for s in suites)

        if self.settings.is_mht_file and (self.settings.change_paths or self.settings.publish_html):
            logger.info("Changing paths")
            try:
                self.change_paths()
            except OSError as e:
                message = f"Failed to configure paths in {self.settings.root_xml}, HTML may be broken: {e}"
                logger.warning(message)
                result.warnings.append(message)

        return result

    def cleanup(self, result: Optional[PublishResult] = None):
        """Delete the decode directory and report of a previous run."""
        try:
            if self.parse_destination.exists():
                logger.info(f"Deleting previous results in {self.parse_destination}")
                shutil.rmtree(self.parse_destination)
            if self.report_path.exists():
                self.report_path.unlink()
        except OSError as e:
            message = f"Failed to cleanup {self.settings.mht_parse_destination}: {e}"
            logger.warning(message)
            if result is not None:
                result.warnings.append(message)

    def change_paths(self) -> Path:
        """Replace localhost-based paths in the decoded root log with relative ones."""
        path = self.parse_destination / self.settings.root_xml
        content = path.read_text(encoding="utf-8", errors="replace")
        path.write_text(content.replace(REPLACE_WHAT, REPLACE_WITH), encoding="utf-8")
        return path

    def collect_screenshots(self) -> list[Path]:
        """PNG files of the result directory, sorted by name."""
        directory = self.result_directory
        if not directory.is_dir():
            return []
        return sorted(directory.glob("*.png"))

    @staticmethod
    def _fail(result: PublishResult, message: str) -> PublishResult:
        logger.error(message)
        result.status = "failure"
        result.error = message
        return result
