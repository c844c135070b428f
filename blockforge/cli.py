"""
blockforge - validate and auto-fix generated block bundles.

Usage:
    blockforge check response.txt
    blockforge check response.txt --strict --output-dir build/blocks
    blockforge check response.txt --json
    blockforge audit cm-blocks/cm-hello-world
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.text import Text

from blockforge.block_files import decode_text, write_bundle
from blockforge.errors import (
    BlockForgeError,
    ComplianceError,
    ErrorType,
    TroubleshootingGuide,
    format_error_with_guidance,
)
from blockforge.pipeline import CompliancePipeline
from blockforge.report import ReportFormatter
from blockforge.settings import load_settings
from blockforge.template import validate_template

logger = logging.getLogger("blockforge")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NON_COMPLIANT = 2


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stderr
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blockforge",
        description="Validate and auto-fix AI-generated WordPress block bundles"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser(
        "check",
        help="Run the compliance pipeline on a delimited model response"
    )
    check.add_argument("response", help="File holding the raw model response")
    check.add_argument("--config", help="YAML settings file")
    check.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Fail when violations remain after auto-fix (default: warn only)"
    )
    check.add_argument("--output-dir", help="Write the fixed bundle under this directory")
    check.add_argument(
        "--json",
        action="store_true",
        help="Print the fixed bundle (or the error) as JSON instead of the report"
    )

    audit = subparsers.add_parser(
        "audit",
        help="Validate a block template directory for SSOT compliance"
    )
    audit.add_argument("directory", help="Block directory (block.json, config.php, ...)")

    return parser


def error_payload(error: Exception) -> dict:
    """Machine-readable error for --json output, with the plain-text guidance."""
    if isinstance(error, BlockForgeError):
        error_type = error.error_type
        guidance = error.format()
    else:
        error_type = ErrorType.UNKNOWN
        guidance = format_error_with_guidance(error, error_type)
    return {
        "error": str(error),
        "error_type": error_type.value,
        "can_retry": TroubleshootingGuide.get_guidance(error_type).can_retry,
        "guidance": guidance,
    }


def report_error(
    args: argparse.Namespace,
    console: Console,
    error: Exception,
    suggestion: Optional[str] = None
) -> None:
    if args.json:
        print(json.dumps(error_payload(error), indent=2))
    else:
        console.print(ReportFormatter.error(error, suggestion=suggestion))


def run_check(args: argparse.Namespace, console: Console) -> int:
    try:
        settings = load_settings(args.config, strict=args.strict)
        response_path = Path(args.response)
        raw_text = decode_text(response_path.read_bytes())
        result = CompliancePipeline(settings).run(raw_text)
    except ComplianceError as e:
        report_error(args, console, e)
        return EXIT_NON_COMPLIANT
    except BlockForgeError as e:
        report_error(args, console, e)
        return EXIT_ERROR
    except OSError as e:
        report_error(args, console, e, suggestion="Check the response file path")
        return EXIT_ERROR

    if args.output_dir:
        try:
            output_dir = write_bundle(result.bundle, args.output_dir)
        except (ValueError, OSError) as e:
            report_error(args, console, e, suggestion="Check --output-dir and the block name")
            return EXIT_ERROR
        logger.info("Bundle written to %s", output_dir)

    if args.json:
        print(json.dumps({
            "block": result.bundle.block_name,
            "files": result.bundle.to_files(),
            "applied_fixes": result.applied_fixes,
            "warnings": result.warnings,
        }, indent=2))
        return EXIT_OK

    console.print(ReportFormatter.pipeline_result(result))
    if args.output_dir:
        console.print(f"Bundle written to {Path(args.output_dir) / result.bundle.output_dir_name}")
    return EXIT_OK


def run_audit(args: argparse.Namespace, console: Console) -> int:
    validation = validate_template(args.directory)

    if validation.audit is not None:
        console.print(ReportFormatter.audit_result(validation.audit, title=f"SSOT Audit {Path(args.directory).name}"))
    if not validation.valid:
        console.print(Text.assemble(("Template invalid: ", "bold red"), validation.error))
        return EXIT_ERROR

    console.print("[bold green]Template valid[/bold green]")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    console = Console()
    if args.command == "check":
        return run_check(args, console)
    return run_audit(args, console)


if __name__ == "__main__":
    sys.exit(main())
