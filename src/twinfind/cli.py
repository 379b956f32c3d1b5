#!/usr/bin/env python3
"""
twinfind CLI: command line interface for parallel duplicate file detection.
Read-only: files are only reported, never modified.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import logging
import os
import re
import signal
import sys
import threading
from typing import List, NoReturn, Optional

logging.basicConfig(
    level=logging.ERROR,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

from twinfind import __version__
from twinfind.aliases import EPILOG_TEXT, VERIFY_ALIASES, VERIFY_CHOICES, VERIFY_HELP_TEXT
from twinfind.commands import DeduplicationCommand
from twinfind.core.errors import FatalError
from twinfind.core.models import DeduplicationParams, VerificationMode
from twinfind.core.scheduler import CancellationToken
from twinfind.services.report_service import ReportService
from twinfind.utils.convert_utils import ConvertUtils

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.verbose: bool = False

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="twinfind",
            description="twinfind: parallel duplicate file finder",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        parser.add_argument(
            "roots",
            nargs="+",
            metavar="rootdir",
            help="Root directory or directories to search"
        )

        # Output options
        parser.add_argument(
            "-s", "--single-line",
            action="store_true",
            dest="single_line",
            help="Report each duplicate group on a single line"
        )
        parser.add_argument(
            "-t", "--total",
            action="store_true",
            help="Print a grand total (files scanned, duplicates found, space reclaimable)"
        )

        # Filtering options
        parser.add_argument(
            "-S", "--no-recurse",
            action="store_false",
            dest="recursive",
            help="Do not recurse into subdirectories"
        )
        parser.add_argument(
            "-f", "--pattern",
            default=None,
            metavar="PATTERN",
            help="Only consider files whose name matches glob PATTERN"
        )
        parser.add_argument(
            "-F", "--regex",
            default=None,
            metavar="REGEX",
            help="Only consider files whose name matches regular expression REGEX"
        )
        parser.add_argument(
            "-m", "--min-size",
            default="1",
            type=str,
            metavar="SIZE",
            help="Minimum file size (e.g., 1, 500KB, 1MB). Default: 1; 0 includes empty files"
        )
        parser.add_argument(
            "-M", "--max-size",
            default=None,
            type=str,
            metavar="SIZE",
            help="Maximum file size (e.g., 10MB, 1GB). Default: unlimited"
        )

        # Engine options
        parser.add_argument(
            "-j", "--jobs",
            default=None,
            type=int,
            metavar="N",
            help="Number of worker threads. Default: CPU count + 1"
        )
        parser.add_argument(
            "--verify",
            choices=VERIFY_CHOICES,
            default="hash",
            help=VERIFY_HELP_TEXT
        )

        parser.add_argument(
            "-v", "--verbose",
            action="store_true",
            help="Report progress, skipped/failed files and statistics on stderr"
        )
        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {__version__}"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        for label, value in (("minimum", args.min_size), ("maximum", args.max_size)):
            if value is not None and not ConvertUtils.is_valid_size_format(value):
                self.error_exit(f"Invalid {label} size: '{value}'")

        if args.regex:
            try:
                re.compile(args.regex)
            except re.error as e:
                self.error_exit(f"Invalid regular expression '{args.regex}': {e}")

        if args.jobs is not None and args.jobs < 1:
            self.error_exit("Number of jobs must be at least 1")

    def create_params(self, args: argparse.Namespace) -> DeduplicationParams:
        """Create DeduplicationParams from CLI arguments."""
        try:
            return DeduplicationParams.from_human_readable(
                roots=[os.path.abspath(root) for root in args.roots],
                min_size_str=args.min_size,
                max_size_str=args.max_size,
                recursive=args.recursive,
                pattern=args.pattern,
                regex=args.regex,
                verification=VERIFY_ALIASES.get(args.verify, VerificationMode.HASH),
                workers=args.jobs,
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def configure_logging(self) -> None:
        """Warnings about skipped files and progress only show up with -v."""
        level = logging.INFO if self.verbose else logging.ERROR
        logging.getLogger("twinfind").setLevel(level)

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.verbose:
            return

        if total and total > 0:
            percent = (current / total) * 100
            sys.stderr.write(
                f"\r  [{stage}] {current}/{total} ({percent:.1f}%)"
            )
        else:
            sys.stderr.write(f"\r  [{stage}] {current} files processed...")
        sys.stderr.flush()

    @staticmethod
    def install_interrupt_handler(token: CancellationToken):
        """
        First Ctrl+C cancels the run (partial results are still printed),
        a second one aborts immediately.
        Returns the previous handler, or None when not on the main thread.
        """
        if threading.current_thread() is not threading.main_thread():
            return None

        def handler(signum, frame):
            if token.cancelled:
                raise KeyboardInterrupt
            token.cancel()

        return signal.signal(signal.SIGINT, handler)

    def run_deduplication(self, params: DeduplicationParams, token: CancellationToken):
        """Execute deduplication workflow."""
        command = DeduplicationCommand()
        if self.verbose:
            mode = params.verification.display_name
            print(f"Scanning {', '.join(params.roots)} (verification: {mode})...", file=sys.stderr)

        try:
            groups, stats = command.execute(
                params,
                progress_callback=self.progress_callback if self.verbose else None,
                token=token
            )
        except FatalError as e:
            self.error_exit(str(e))

        if self.verbose:
            sys.stderr.write("\n")
            print(stats.print_summary(), file=sys.stderr)
        return groups, stats

    @staticmethod
    def warning(message: str) -> None:
        """Print a warning message to stderr."""
        print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = EXIT_FATAL) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Main entry point. Returns the process exit code."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.configure_logging()

        self.validate_args(args)
        params = self.create_params(args)

        token = CancellationToken()
        previous_handler = self.install_interrupt_handler(token)
        try:
            groups, stats = self.run_deduplication(params, token)
        finally:
            if previous_handler is not None:
                signal.signal(signal.SIGINT, previous_handler)

        ReportService(single_line=args.single_line, show_totals=args.total).write(groups, stats, sys.stdout)
        sys.stdout.flush()

        if stats.cancelled:
            self.warning("Interrupted: the report above is incomplete")
            return EXIT_INTERRUPTED
        return EXIT_OK


def main() -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        code = app.run()
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(EXIT_FATAL)
    sys.exit(code)


if __name__ == "__main__":
    main()
