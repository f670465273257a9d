"""Console entry points for haproxy-monitor and haproxy-relay."""

import argparse
import asyncio
import sys

from ..config import ConfigError, load_config
from ..main import setup_logging
from ..relay import StatRelay
from .dashboard import run_dashboard


def build_monitor_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="haproxy-monitor",
        description="Live console dashboard for HAProxy stats across several load balancers",
    )
    parser.add_argument("--config", "-c", help="Target list (YAML or 'name address' lines)")
    parser.add_argument("--log-file", help="Log file (default: from config, monitor.log)")
    parser.add_argument("--log-level", help="Log level (default: from config, INFO)")
    return parser


def build_relay_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="haproxy-relay",
        description="Poll one HAProxy stats socket and re-broadcast it to many monitors",
    )
    parser.add_argument("socket_path", help="HAProxy stats unix socket")
    parser.add_argument("--listen", "-l", help="Address to listen on (default: :8081)")
    parser.add_argument("--poll-interval", type=float, help="Seconds between polls (default: 1)")
    parser.add_argument("--config", "-c", help="Optional config file with a 'relay' section")
    return parser


def main(argv=None):
    """Main entry point for haproxy-monitor."""
    args = build_monitor_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(args.log_level or config.log_level, args.log_file or config.log_file)

    sys.exit(run_dashboard(config))


def relay_main(argv=None):
    """Main entry point for haproxy-relay."""
    args = build_relay_parser().parse_args(argv)

    listen = ":8081"
    poll_interval = 1.0
    log_level = "INFO"
    if args.config:
        try:
            config = load_config(args.config, require_targets=False)
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        listen = config.relay.listen
        poll_interval = config.relay.poll_interval
        log_level = config.log_level

    setup_logging(log_level)

    relay = StatRelay(
        args.socket_path,
        listen=args.listen or listen,
        poll_interval=args.poll_interval or poll_interval,
    )
    try:
        asyncio.run(relay.serve_forever())
    except KeyboardInterrupt:
        pass
    sys.exit(0)


if __name__ == "__main__":
    main()
