"""
Command-line entry point: replay a session input file.

Usage: clearing <input_file> [-o OUTPUT] [--quiet] [--market-orders-first]

Exit status is 0 on success and 1 when the input cannot be opened or is
malformed. argparse exits with 2 on usage errors.
"""

import argparse
import sys
from typing import List, Optional

from clearing.config import get_settings
from clearing.services.session_service import SessionService
from clearing.utils.exceptions import BaseMatchingEngineException
from clearing.utils.logger import get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clearing",
        description="Replay a limit order session and write executions and residuals.",
    )
    parser.add_argument("input_file", help="Session input: seed price, then one order per line")
    parser.add_argument(
        "-o", "--output",
        help="Output file (default: input name with 'input' replaced by 'output', or .out)",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Do not print the book before and after each sweep",
    )
    parser.add_argument(
        "--market-orders-first",
        action="store_true",
        default=None,
        help="Rank market orders ahead of limit orders on their side",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level for engine diagnostics (written to stderr)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    
    overrides = {}
    if args.market_orders_first is not None:
        overrides["market_orders_first"] = True
    if args.log_level:
        overrides["log_level"] = args.log_level
    settings = get_settings().model_copy(update=overrides)
    
    get_logger(
        log_level=settings.log_level,
        log_dir=settings.log_dir,
        use_json=settings.use_json_logs,
    )
    service = SessionService(settings)
    
    try:
        report, output_path = service.replay_file(
            args.input_file,
            output_path=args.output,
            display=False if args.quiet else None,
        )
    except OSError as e:
        print(f"Error: Could not open file {e.filename or args.input_file}: {e.strerror}", file=sys.stderr)
        return 1
    except BaseMatchingEngineException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    
    if args.quiet:
        print(
            f"{len(report.trades)} trades, {len(report.unexecuted)} unexecuted "
            f"-> {output_path}"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
