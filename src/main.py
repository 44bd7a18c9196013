import argparse
import logging
import sys

from config import EngineConfig, StrictMode
from errors import PaymentsError
from payments_engine import PaymentsEngine


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payments-engine",
        description="Apply a CSV of transactions to client accounts and print the final balances as CSV.",
    )
    parser.add_argument("input", nargs="?", default="-", help="input CSV path, or - for stdin (default)")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="abort on the first transaction that cannot be applied instead of skipping it",
    )
    parser.add_argument("--sorted", dest="sort_output", action="store_true", help="sort output rows by client id")
    parser.add_argument("-v", "--verbose", action="store_true", help="log skipped transactions to stderr")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = EngineConfig.from_env()
    except PaymentsError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.strict:
        config.strict_mode = StrictMode.ON
    if args.sort_output:
        config.sort_output = True
    if args.verbose:
        config.log_level = logging.DEBUG
    logging.getLogger().setLevel(config.log_level)

    engine = PaymentsEngine(config)
    try:
        if args.input == "-":
            engine.process_stream(sys.stdin)
        else:
            engine.process_file(args.input)
    except PaymentsError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"error: cannot read {args.input}: {e.strerror}", file=sys.stderr)
        return 1

    engine.write_report(sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
