#!/usr/bin/env python3
"""CLI for the TestComplete report converter."""

import argparse
import json
import logging
import sys
from pathlib import Path

import core
from tc_result_parser.errors import ReportConverterError


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(levelname)s: %(message)s'
    )


def cmd_decompress(args):
    """Decode an MHT archive into a directory."""
    output = Path(args.output) if args.output else Path(args.archive).with_suffix("")
    try:
        files = core.decompress(args.archive, output)
    except (OSError, ValueError, ReportConverterError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.format == 'json':
        print(json.dumps([
            {"path": str(f.path), "content_type": f.content_type, "encoding": f.encoding,
             "binary": f.binary, "size": f.size}
            for f in files
        ], indent=2))
    else:
        print(f"Decoded {len(files)} parts into {output}:")
        for f in files:
            print(f"  - {f.path.name} ({f.content_type or 'unknown'}, {f.size} bytes)")
    return 0


def cmd_report(args):
    """Generate the JUnit report for a log directory."""
    try:
        report = core.generate_report(args.log_dir, escape=False if args.no_escape else None)
    except (OSError, ReportConverterError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(report, encoding="utf-8")
        print(f"Wrote {out}")
    else:
        print(report)
    return 0


def cmd_publish(args):
    """Run decompress + report + path rewrite for a result location."""
    try:
        result = core.publish(
            args.result_location,
            workspace=args.workspace,
            settings_file=args.settings,
            publish_junit=False if args.no_junit else None,
            publish_html=True if args.html else None,
            change_paths=True if args.change_paths else None,
            escape_attributes=False if args.no_escape else None,
        )
    except (OSError, ReportConverterError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.format == 'json':
        print(json.dumps(result, indent=2, default=str))
    else:
        _print_summary(result)

    return 0 if result.get("status") == "success" else 1


def _print_summary(data: dict):
    """Print human-readable summary."""
    print(f"\n{'='*60}")
    print(f"Workspace: {data.get('workspace', 'N/A')}")
    print(f"Status: {data.get('status', 'N/A')}")
    if data.get("error"):
        print(f"Error: {data['error']}")

    decoded = data.get("decoded_files", [])
    if decoded:
        print(f"Decoded parts: {len(decoded)}")

    if data.get("report"):
        print(f"\nJUnit report: {data['report']}")
        print(f"  Suites:   {data.get('suites', 0)}")
        print(f"  Tests:    {data.get('tests', 0)}")
        print(f"  Failures: {data.get('failures', 0)}")

    screenshots = data.get("screenshots", [])
    if screenshots:
        print(f"\nScreenshots ({len(screenshots)}):")
        for s in screenshots[:10]:
            print(f"  - {Path(s).name}")
        if len(screenshots) > 10:
            print(f"  ... and {len(screenshots) - 10} more")

    for w in data.get("warnings", []):
        print(f"Warning: {w}")
    print(f"{'='*60}\n")


def cmd_batch(args):
    """Generate the TestComplete command script."""
    try:
        script = core.generate_batch(
            args.test_execute,
            args.project,
            project_name=args.project_name,
            additional_parameters=args.params,
            delete_logs=args.delete_logs,
            delete_extender=args.delete_extender,
            output=args.output,
        )
    except (OSError, ReportConverterError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.output:
        print(script, end="")
    return 0


def main():
    parser = argparse.ArgumentParser(description='TestComplete report converter')
    parser.add_argument('-v', '--verbose', action='store_true')

    sub = parser.add_subparsers(dest='command')

    p = sub.add_parser('decompress', help='Decode an *.mht archive into its parts')
    p.add_argument('archive', help='Path to the *.mht file')
    p.add_argument('--output', '-o', help='Output directory (default: archive path without extension)')
    p.add_argument('--format', '-f', choices=['text', 'json'], default='text')

    p = sub.add_parser('report', help='Generate a JUnit report from a log directory')
    p.add_argument('log_dir', help='Directory holding root.xml and the per-test logs')
    p.add_argument('--output', '-o', help='Write the report to this file instead of stdout')
    p.add_argument('--no-escape', action='store_true',
                   help='Write attribute values verbatim (legacy output)')

    p = sub.add_parser('publish', help='Decode, generate the JUnit report and fix paths')
    p.add_argument('result_location', help='*.mht archive or log directory, relative to the workspace')
    p.add_argument('--workspace', '-w', help='Workspace directory (default: WORKSPACE or cwd)')
    p.add_argument('--settings', '-s', help='YAML file with publish settings')
    p.add_argument('--no-junit', action='store_true', help='Skip JUnit report generation')
    p.add_argument('--html', action='store_true', help='Prepare decoded HTML for viewing')
    p.add_argument('--change-paths', action='store_true',
                   help='Rewrite http://localhost paths in the decoded root log')
    p.add_argument('--no-escape', action='store_true',
                   help='Write attribute values verbatim (legacy output)')
    p.add_argument('--format', '-f', choices=['text', 'json'], default='text')

    p = sub.add_parser('batch', help='Generate the command script that runs TestComplete')
    p.add_argument('--test-execute', '-e', required=True,
                   help='Path to TestComplete.exe or TestExecute.exe')
    p.add_argument('--project', '-p', required=True, help='Project or project suite file')
    p.add_argument('--project-name', '-n', default='', help='Project to run inside the suite')
    p.add_argument('--params', default='', help='Additional command line parameters')
    p.add_argument('--delete-logs', action='store_true', help='Delete Log folders before the run')
    p.add_argument('--delete-extender', action='store_true',
                   help='Delete *.tcCfgExtender files after the run')
    p.add_argument('--output', '-o', help='Write the script to this file instead of stdout')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)

    cmds = {
        'decompress': cmd_decompress,
        'report': cmd_report,
        'publish': cmd_publish,
        'batch': cmd_batch,
    }
    return cmds[args.command](args)


if __name__ == '__main__':
    sys.exit(main())
