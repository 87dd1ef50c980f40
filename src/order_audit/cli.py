"""
Command-line interface for Order Audit.
"""

import argparse
import json
import os
import sys
from typing import List, Optional, Tuple

from . import __version__
from .utils.config import Config
from .utils.logging import setup_logging
from .validation.audit import OrderAuditService
from .validation.report import AuditReport, render_summary

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PROBLEMS = 2

ENV_ALIASES = {
    "staging": "stg",
    "stg": "stg",
    "production": "prod",
    "prod": "prod",
}

DB_CONFIGS = {
    "stg": {
        "db_name_key": "DB_NAME_STG",
        "connection_url": "DB_CONNECTION_URL_STG",
    },
    "prod": {
        "db_name_key": "DB_NAME_PROD",
        "connection_url": "DB_CONNECTION_URL_PROD",
    },
}


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="order-audit",
        description="Order Audit - order consistency checks and aggregates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  order-audit --version
  order-audit audit --file orders.json
  order-audit audit --file orders.json --top-k 2 --gmv
  order-audit audit --source mongo --env production --format json
  order-audit audit --source mongo --env staging --order-id A-1001
  order-audit audit --file orders.json --order-sets
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Order Audit {__version__}",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-file",
        help="Log file path",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Read settings from this .env file (defaults are used otherwise)",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
    )

    audit_parser = subparsers.add_parser(
        "audit",
        help="Validate orders and print the audit report",
    )
    audit_parser.add_argument(
        "--source",
        choices=["file", "mongo"],
        default="file",
        help="Where to read orders from (default: file)",
    )
    audit_parser.add_argument(
        "--file",
        type=str,
        help="Path to a JSON document with a top-level 'orders' list",
    )
    audit_parser.add_argument(
        "--order-id",
        type=str,
        default=None,
        help="Audit a single order by id (--source mongo only)",
    )
    audit_parser.add_argument(
        "--env",
        type=str,
        choices=sorted(ENV_ALIASES),
        default="staging",
        help="Database environment for --source mongo (default: staging)",
    )
    audit_parser.add_argument(
        "--top-k",
        type=int,
        default=None,
        help="Include the K best-selling SKUs by quantity",
    )
    audit_parser.add_argument(
        "--gmv",
        action="store_true",
        help="Include gross merchandise value per order",
    )
    audit_parser.add_argument(
        "--order-sets",
        action="store_true",
        help="Include order id groupings: uncaptured paid, correctly refunded, missing or invalid email",
    )
    audit_parser.add_argument(
        "--tolerance",
        type=float,
        default=None,
        help="Absolute tolerance for refund reconciliation (default: 0.001)",
    )
    audit_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Validate orders on this many threads",
    )
    audit_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Report output format (default: text)",
    )
    audit_parser.add_argument(
        "--fail-on-problems",
        action="store_true",
        help="Exit with status 2 when any order has findings",
    )

    return parser


def _print_header(header_lines: List[Tuple[str, str]]) -> None:
    label_width = max(len(lbl) for lbl, _ in header_lines)
    inner_width = max(len(f" {lbl.ljust(label_width)} : {val}") for lbl, val in header_lines)
    print("┌" + "─" * inner_width + "┐")
    for lbl, val in header_lines:
        line = f" {lbl.ljust(label_width)} : {val}"
        print(f"│{line.ljust(inner_width)}│")
    print("└" + "─" * inner_width + "┘")


def run_audit(args: argparse.Namespace, config: Config) -> AuditReport:
    """
    Build the audit service from CLI arguments and configuration and run it.

    Args:
        args: Parsed ``audit`` arguments
        config: Loaded configuration; CLI flags take precedence

    Returns:
        The audit report
    """
    tolerance = args.tolerance if args.tolerance is not None else config.get("refund_tolerance")
    workers = args.workers if args.workers is not None else config.get("max_workers")

    if args.source == "mongo":
        db_config = DB_CONFIGS[ENV_ALIASES[args.env]]
        service = OrderAuditService(
            top_k=args.top_k,
            include_gmv=args.gmv,
            tolerance=tolerance,
            max_workers=workers,
            include_order_sets=args.order_sets,
            db_name=os.getenv(db_config["db_name_key"]) or config.get("mongo_db"),
            connection_url_env_key=db_config["connection_url"],
        )
        return service.audit_collection(order_id=args.order_id)

    if args.order_id:
        raise ValueError("--order-id requires --source mongo")
    if not args.file:
        raise ValueError("--file is required when --source is 'file'")
    service = OrderAuditService(
        top_k=args.top_k,
        include_gmv=args.gmv,
        tolerance=tolerance,
        max_workers=workers,
        include_order_sets=args.order_sets,
    )
    return service.audit_file(args.file)


def print_report(report: AuditReport, output_format: str, source_label: str) -> None:
    if output_format == "json":
        print(json.dumps(report.to_dict(), indent=2))
        return

    _print_header([
        ("Source", source_label),
        ("Orders", str(report.total_orders)),
        ("Line items", str(report.total_line_items)),
        ("Invalid orders", str(report.invalid_orders)),
        ("Tolerance", str(report.tolerance)),
    ])
    print(render_summary(report))


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    config = Config(parsed_args.env_file)
    log_level = "DEBUG" if parsed_args.verbose else config.get("log_level")
    logger = setup_logging(level=log_level, log_file=parsed_args.log_file)

    if not parsed_args.command:
        parser.print_help()
        return EXIT_ERROR

    try:
        if parsed_args.command == "audit":
            report = run_audit(parsed_args, config)
            source_label = (
                f"mongo ({parsed_args.env})" if parsed_args.source == "mongo" else parsed_args.file
            )
            print_report(report, parsed_args.format, source_label)
            fail_on_problems = parsed_args.fail_on_problems or config.get("fail_on_problems")
            if fail_on_problems and not report.is_clean:
                return EXIT_PROBLEMS
    except Exception as e:
        logger.error(f"Error: {e}")
        return EXIT_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
