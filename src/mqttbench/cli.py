import argparse
import sys
from pathlib import Path

from . import __version__
from .config import (
    ACTION_PLACEHOLDER,
    BROKER_PLACEHOLDER,
    DEFAULTS,
    build_options,
    load_profile,
    resolve_values,
)
from .core import run_benchmark
from .errors import ConfigurationError
from .logger import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mqtt-bench",
        description="Concurrent MQTT publish/subscribe throughput benchmark",
    )

    parser.add_argument("-version", "--version", action="version", version=__version__)

    # None means "not given" so profile values can fill the gap
    parser.add_argument(
        "-broker", "--broker",
        help=f"URI of MQTT broker (required), e.g. {BROKER_PLACEHOLDER}",
    )
    parser.add_argument(
        "-action", "--action",
        help=f"Publish or Subscribe (required): {ACTION_PLACEHOLDER}",
    )
    parser.add_argument(
        "-clients", "--clients", type=int,
        help=f"Number of clients (default: {DEFAULTS['clients']})",
    )
    parser.add_argument(
        "-count", "--count", type=int,
        help=f"Number of loops per client (default: {DEFAULTS['count']})",
    )
    parser.add_argument(
        "-size", "--size", type=int,
        help=f"Message size per publish in bytes (default: {DEFAULTS['size']})",
    )
    parser.add_argument(
        "-qos", "--qos", type=int,
        help=f"MQTT QoS 0/1/2 (default: {DEFAULTS['qos']})",
    )
    parser.add_argument(
        "-settle", "--settle", type=float,
        help=f"Seconds to wait after connecting before timing (default: {DEFAULTS['settle']:g})",
    )
    parser.add_argument(
        "-config", "--config", type=Path,
        help="YAML profile with a 'benchmark' section; flags override it",
    )
    parser.add_argument("-verbose", "--verbose", action="store_true", help="Enable debug output")
    parser.add_argument("-quiet", "--quiet", action="store_true", help="Only show errors and the result")
    parser.add_argument(
        "-log-dir", "--log-dir", dest="log_dir", type=Path,
        help="Also write a debug log file to this directory",
    )

    return parser


def main(argv=None) -> None:
    parser = build_parser()

    if argv is None:
        argv = sys.argv[1:]

    if not argv:
        parser.print_help()
        return

    args = parser.parse_args(argv)

    setup_logging(log_dir=args.log_dir, verbose=args.verbose, quiet=args.quiet)

    cli_values = {
        "broker": args.broker,
        "action": args.action,
        "clients": args.clients,
        "count": args.count,
        "size": args.size,
        "qos": args.qos,
        "settle": args.settle,
    }

    try:
        profile = load_profile(args.config) if args.config else None
        action, options = build_options(resolve_values(cli_values, profile))
    except ConfigurationError as e:
        e.display()
        raise SystemExit(1)

    run_benchmark(action, options)


if __name__ == "__main__":
    main()
