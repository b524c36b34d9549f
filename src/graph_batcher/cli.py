"""
Command-line interface for the Graph Batcher.

Runs the create-then-delete workflow once.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

import structlog

from graph_batcher import __version__
from graph_batcher.auth.token import AuthenticationError
from graph_batcher.config import (
    DEFAULT_SETTINGS_FILE,
    GRAPH_MAX_BATCH_SIZE,
    ConfigurationError,
    GraphBatcherConfig,
    load_config,
)
from graph_batcher.core.batch import Batch
from graph_batcher.core.workflow import RunReport, Workflow
from graph_batcher.engine.cleanup import DeletionResult
from graph_batcher.engine.collector import CreatedResource

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_AUTH_ERROR = 3
EXIT_STOPPED = 130

logger = structlog.get_logger(__name__)


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stdout,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="graph-batcher",
        description="Create calendar events in Microsoft Graph batches, then remove them",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--settings-file",
        help=f"JSON settings file, must exist when given (default: optional {DEFAULT_SETTINGS_FILE})",
    )
    parser.add_argument(
        "--count",
        type=int,
        help="Number of events to create (default: 40)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        help=f"Maximum requests per batch (default: {GRAPH_MAX_BATCH_SIZE})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=None,
        help="Output logs in JSON format",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Do not wait for Enter before cleanup and before exiting",
    )

    return parser


async def wait_for_enter(prompt: str) -> None:
    """Block on a console line without blocking the event loop."""
    await asyncio.to_thread(input, prompt)


def _print_batch(batch: Batch, created: List[CreatedResource]) -> None:
    print(f"Batch {batch.index + 1}: {len(created)}/{batch.size} events created")


def _print_batch_failure(batch: Batch, error: Exception) -> None:
    print(f"Batch {batch.index + 1}: failed ({error})")


def _print_deletion(result: DeletionResult) -> None:
    if result.success:
        print(f"Removed event {result.resource_id}")
    else:
        print(f"Could not remove event {result.resource_id}: {result.error}")


async def run_workflow(config: GraphBatcherConfig, interactive: bool = True) -> RunReport:
    """Run the workflow with console progress output."""

    async def confirm() -> None:
        await wait_for_enter("Events created. Press Enter to remove them from the calendar.")

    workflow = Workflow(config, confirm=confirm if interactive else None)
    workflow.on_batch_submitted(_print_batch)
    workflow.on_batch_failed(_print_batch_failure)
    workflow.on_resource_deleted(_print_deletion)

    loop = asyncio.get_running_loop()

    def signal_handler():
        print("\nStopping...")
        workflow.stop()

    try:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)
    except NotImplementedError:
        pass  # Signals not available on Windows

    print("Getting token...")
    report = await workflow.run()

    if not report.completed:
        print("Stopped before the run completed.")
    print(f"{report.removed} of {report.created} events were removed from the calendar.")
    if interactive and report.completed:
        await wait_for_enter("Press Enter to exit.")
    return report


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(
            args.settings_file or DEFAULT_SETTINGS_FILE,
            settings_required=args.settings_file is not None,
            event_count=args.count,
            batch_size_max=args.batch_size,
            log_level=args.log_level,
            log_json=args.log_json,
        )
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(config.log_level, config.log_json)
    logger.info(
        "starting",
        version=__version__,
        calendar=config.calendar_email,
        events=config.event_count,
        batch_size=config.batch_size_max,
    )

    try:
        report = asyncio.run(run_workflow(config, interactive=not args.yes))
    except AuthenticationError as e:
        print(f"Authentication failed: {e}", file=sys.stderr)
        return EXIT_AUTH_ERROR

    if not report.completed:
        return EXIT_STOPPED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
