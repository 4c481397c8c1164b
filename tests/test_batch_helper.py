import pytest

from tc_result_parser.batch_helper import EXIT_CODE_LABELS, get_batch, verify_input
from tc_result_parser.errors import BatchInputError

EXE = r"C:\Program Files\SmartBear\TestExecute\Bin\TestExecute.exe"
PROJECT = r"C:\projects\Suite\Suite.pjs"


def test_verify_input():
    assert verify_input(EXE, PROJECT) == ""
    assert "TestComplete or TestExecute" in verify_input("", PROJECT)
    assert "project suite" in verify_input(EXE, "")


def test_missing_locations_raise():
    with pytest.raises(BatchInputError) as excinfo:
        get_batch("", "")
    assert "TestExecute" in str(excinfo.value)
    assert "project suite" in str(excinfo.value)


def test_minimal_script():
    script = get_batch(EXE, PROJECT)
    lines = script.split("\n")

    assert lines[0] == "@echo off"
    assert "cd %WORKSPACE%" in lines
    assert f'"{EXE}" "{PROJECT}" /run ' in lines
    assert not any(line.startswith("for /d /r") for line in lines)
    assert "/project:" not in script
    assert script.endswith(":End\nexit /b %errorlevel%\n\n")


def test_exit_codes_checked_from_highest():
    lines = get_batch(EXE, PROJECT).split("\n")
    checks = [line for line in lines if line.startswith("IF ERRORLEVEL")]

    assert checks == [
        "IF ERRORLEVEL 1000 GOTO AnotherInstance",
        "IF ERRORLEVEL 4 GOTO Timeout",
        "IF ERRORLEVEL 3 GOTO CannotRun",
        "IF ERRORLEVEL 2 GOTO Errors",
        "IF ERRORLEVEL 1 GOTO Warnings",
        "IF ERRORLEVEL 0 GOTO Success",
        "IF ERRORLEVEL -1 GOTO LicenseFailed",
    ]
    for _, label, message in EXIT_CODE_LABELS:
        assert f":{label}\nECHO {message}\nGOTO End\n" in "\n".join(lines)


def test_project_name_and_parameters():
    script = get_batch(EXE, PROJECT, project_name="Web Tests", additional_parameters="/exit /SilentMode")

    assert f'"{EXE}" "{PROJECT}" /run "/project:Web Tests" /exit /SilentMode\n' in script


def test_delete_logs_and_extender():
    script = get_batch(EXE, PROJECT, delete_logs=True, delete_extender=True)

    assert 'for /d /r . %%d in (Log) do @if exist "%%d" rd /s/q "%%d"' in script
    assert script.index("for /d /r") < script.index("/run")
    assert script.endswith(
        ':End\nSET error_value=%errorlevel%\ndel /s /q "*.tcCfgExtender"\n\nexit /b %error_value%\n\n'
    )
