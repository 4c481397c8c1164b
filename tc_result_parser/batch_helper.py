"""
Generates the Windows command script that runs a TestComplete project.

The script changes to %WORKSPACE%, runs TestComplete/TestExecute with
/run, translates the exit code to a message and exits with it.
"""

from .errors import BatchInputError

# TestExecute exit codes, checked from highest to lowest
EXIT_CODE_LABELS = [
    (1000, "AnotherInstance", "Another instance of TestComplete or TestExecute is already running"),
    (4, "Timeout", "Timeout elapses"),
    (3, "CannotRun", "The script cannot be run"),
    (2, "Errors", "There are errors"),
    (1, "Warnings", "There are warnings"),
    (0, "Success", "No errors"),
    (-1, "LicenseFailed", "License check failed"),
]


def verify_input(test_execute_location: str, project_location: str) -> str:
    """Return messages for missing mandatory parameters, or an empty string."""
    result = ""
    if not test_execute_location:
        result += "Specify the location of TestComplete or TestExecute before generating\n\n"
    if not project_location:
        result += "Specify project or project suite before generating\n"
    return result


def get_batch(test_execute_location: str,
              project_location: str,
              project_name: str = "",
              additional_parameters: str = "",
              delete_logs: bool = False,
              delete_extender: bool = False) -> str:
    """
    Build the command script.

    Args:
        test_execute_location: Path to TestComplete.exe or TestExecute.exe
        project_location: Path to the project or project suite file
        project_name: Project to run inside a project suite (optional)
        additional_parameters: Extra command line switches appended verbatim
        delete_logs: Remove Log folders under the workspace before the run
        delete_extender: Remove *.tcCfgExtender files after the run

    Raises:
        BatchInputError: If a mandatory location is missing
    """
    errors = verify_input(test_execute_location, project_location)
    if errors:
        raise BatchInputError(errors.strip())

    lines = ["@echo off", "", "cd %WORKSPACE%", ""]

    if delete_logs:
        lines += ['for /d /r . %%d in (Log) do @if exist "%%d" rd /s/q "%%d"', ""]

    command = f'"{test_execute_location}" "{project_location}" /run '
    if project_name:
        command += f'"/project:{project_name}" '
    command += additional_parameters

    lines += ["@echo on", command, "", "@echo off", ""]

    lines += [f"IF ERRORLEVEL {code} GOTO {label}" for code, label, _ in EXIT_CODE_LABELS]
    lines.append("")

    for _, label, message in EXIT_CODE_LABELS:
        lines += [f":{label}", f"ECHO {message}", "GOTO End", ""]

    lines.append(":End")
    if delete_extender:
        lines += [
            "SET error_value=%errorlevel%",
            'del /s /q "*.tcCfgExtender"',
            "",
            "exit /b %error_value%",
        ]
    else:
        lines.append("exit /b %errorlevel%")

    return "\n".join(lines) + "\n\n"
