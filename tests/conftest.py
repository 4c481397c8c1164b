import base64
from pathlib import Path

import pytest

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 2
BOUNDARY = "----=_NextPart_000_0000_01D5A3C2"


def build_archive(parts, boundary=BOUNDARY):
    """
    Build MHT archive text.

    parts is a list of (headers, body) where headers is a list of header lines.
    """
    lines = [
        "From: <Saved by TestComplete>",
        "Subject: Test Log",
        "MIME-Version: 1.0",
        "Content-Type: multipart/related;",
        '\ttype="text/html";',
        f'\tboundary="{boundary}"',
        "",
        "This is a multi-part message in MIME format.",
        "",
    ]
    for headers, body in parts:
        lines.append(f"--{boundary}")
        lines.extend(headers)
        lines.append("")
        lines.append(body)
        lines.append("")
    lines.append(f"--{boundary}--")
    lines.append("")
    return "\n".join(lines)


def qp_part(location, body, content_type="text/html", charset="utf-8"):
    headers = [
        f"Content-Type: {content_type};",
        f'\tcharset="{charset}"',
        "Content-Transfer-Encoding: quoted-printable",
        f"Content-Location: {location}",
    ]
    return headers, body


def base64_part(location, data, content_type="image/png"):
    headers = [
        f"Content-Type: {content_type}",
        "Content-Transfer-Encoding: base64",
        f"Content-Location: {location}",
    ]
    return headers, base64.encodebytes(data).decode("ascii").rstrip("\n")


ROOT_XML = """<LogData name="Regression">
  <LogData name="Smoke Tests">
    <LogData name="Login" status="0">
      <Provider name="Summary" href="{11111111-AAAA}/login.xml"/>
      <LogData name="Test Log">
        <Provider name="Log" href="{11111111-AAAA}/_TestLog.xml"/>
      </LogData>
    </LogData>
    <LogData name="Logout" status="2">
      <Provider name="Summary" href="{22222222-BBBB}/logout.xml"/>
      <LogData name="Test Log">
        <Provider name="Log" href="{22222222-BBBB}/_TestLog.xml"/>
      </LogData>
    </LogData>
  </LogData>
</LogData>
"""

LOGIN_LOG = """<Log><Summary><RunTime>0:00:05</RunTime></Summary></Log>"""
LOGOUT_LOG = """<Log><Summary><RunTime>0:01:02</RunTime><Message>Expected true</Message></Summary></Log>"""


def write_result_logs(directory: Path, root_xml: str = ROOT_XML, logs: dict = None) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "root.xml").write_text(root_xml, encoding="utf-8")
    if logs is None:
        logs = {"login.xml": LOGIN_LOG, "logout.xml": LOGOUT_LOG}
    for name, content in logs.items():
        (directory / name).write_text(content, encoding="utf-8")
    return directory


@pytest.fixture
def result_logs(tmp_path):
    """Directory with root.xml, one passing and one failing test log."""
    return write_result_logs(tmp_path / "logs")


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Run with no .env file and no converter environment variables."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TC_REPORT_CONFIG", str(tmp_path / "missing.env"))
    for key in ("WORKSPACE", "MHT_PARSE_DESTINATION", "JUNIT_REPORT", "ROOT_XML", "ESCAPE_ATTRIBUTES"):
        monkeypatch.delenv(key, raising=False)
    return tmp_path
