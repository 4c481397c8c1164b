#!/usr/bin/env python3
"""
Core operations shared by the CLI and callers embedding the converter.
Contains the decompress, report, publish and batch operations.
"""

import logging
from pathlib import Path
from typing import Optional

from tc_result_parser.batch_helper import get_batch
from tc_result_parser.mht_parser import MHTParser
from tc_result_parser.models import DecodedFile
from tc_result_parser.publisher import (
    PublishSettings,
    ResultPublisher,
    load_config,
    load_settings_file,
)
from tc_result_parser.result_parser import ROOT_XML, get_result_xml

logger = logging.getLogger(__name__)


def decompress(archive, output_dir) -> list[DecodedFile]:
    """
    Decode an MHT archive into output_dir.

    Args:
        archive: Path to the *.mht file or an open stream
        output_dir: Directory for the decoded parts (created if absent)

    Returns:
        List of decoded files in archive order

    Raises:
        MissingBoundaryError: If the archive declares no boundary
        OSError: If the archive cannot be read or a part cannot be written
    """
    return MHTParser(archive, Path(output_dir)).decompress()


def generate_report(root_log_directory, escape: Optional[bool] = None,
                    root_xml: Optional[str] = None) -> str:
    """
    Build the JUnit XML report for a directory of TestComplete logs.

    Missing timing or failure details never fail the report; a missing
    or unreadable root log raises ResultLogError.

    Args:
        root_log_directory: Directory holding root.xml and per-test logs
        escape: Escape attribute values; defaults to ESCAPE_ATTRIBUTES config
        root_xml: Root log file name; defaults to ROOT_XML config

    Returns:
        The report as a string
    """
    if escape is None or root_xml is None:
        settings = PublishSettings.from_config()
        escape = settings.escape_attributes if escape is None else escape
        root_xml = root_xml or settings.root_xml
    return get_result_xml(Path(root_log_directory), escape=escape, root_xml=root_xml or ROOT_XML)


def publish(
    result_location: str,
    workspace: str = None,
    settings_file: str = None,
    publish_junit: bool = None,
    publish_html: bool = None,
    change_paths: bool = None,
    escape_attributes: bool = None
) -> dict:
    """
    Run the full publish pipeline for a result location.

    Settings are layered: .env/environment config, then the YAML
    settings file, then the explicit arguments.

    Args:
        result_location: *.mht archive or log directory, relative to the workspace
        workspace: Workspace directory (defaults to WORKSPACE config or cwd)
        settings_file: Optional YAML file with publish settings
        publish_junit: Generate the JUnit report
        publish_html: Prepare the decoded HTML for viewing (implies change_paths)
        change_paths: Rewrite localhost paths in the decoded root log
        escape_attributes: Escape report attribute values

    Returns:
        dict with the publish summary, 'status' is 'success' or 'failure'
    """
    settings = PublishSettings.from_config(load_config())
    if settings_file:
        settings.update(**load_settings_file(settings_file))
    settings.update(
        result_location=result_location,
        workspace=workspace,
        publish_junit=publish_junit,
        publish_html=publish_html,
        change_paths=change_paths,
        escape_attributes=escape_attributes,
    )

    publisher = ResultPublisher(settings)
    result = publisher.publish()
    data = result.to_dict()
    if result.status == "success":
        data["screenshots"] = [str(p) for p in publisher.collect_screenshots()]
    logger.info(f"Publish finished with status {result.status}")
    return data


def generate_batch(
    test_execute_location: str,
    project_location: str,
    project_name: str = "",
    additional_parameters: str = "",
    delete_logs: bool = False,
    delete_extender: bool = False,
    output: str = None
) -> str:
    """
    Generate the command script that runs a TestComplete project.

    Args:
        output: If given, the script is also written to this file

    Returns:
        The script text

    Raises:
        BatchInputError: If a mandatory location is missing
    """
    script = get_batch(
        test_execute_location,
        project_location,
        project_name=project_name,
        additional_parameters=additional_parameters,
        delete_logs=delete_logs,
        delete_extender=delete_extender,
    )
    if output:
        out = Path(output)
        out.parent.mkdir(parents=True, exist_ok=True)
        # Command scripts need CRLF line endings
        with open(out, "w", encoding="utf-8", newline="\r\n") as f:
            f.write(script)
        logger.info(f"Wrote command script to {out}")
    return script
