from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading

from prometheus_client import CollectorRegistry, generate_latest, start_http_server

from smartctl_exporter import __version__
from smartctl_exporter.collector import CollectionCycle
from smartctl_exporter.config import ExporterConfig, load_config
from smartctl_exporter.discovery import DeviceDiscovery
from smartctl_exporter.extractors import AttributeExtractor
from smartctl_exporter.logging_utils import configure_logging, resolve_log_level
from smartctl_exporter.runner import SmartctlRunner
from smartctl_exporter.sink import MetricSink


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Export smartctl SMART attributes as Prometheus metrics"
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show the version and exit",
    )
    parser.add_argument("--address", help="Address to listen on (default 0.0.0.0)")
    parser.add_argument("--port", help="Port to listen on (default 9809)")
    parser.add_argument(
        "--interval",
        type=int,
        help="Refresh interval in seconds (default 60)",
    )
    parser.add_argument("--smartctl-path", help="Path to the smartctl executable")
    parser.add_argument(
        "--command-timeout",
        type=float,
        help="Seconds before a smartctl invocation is abandoned (default: no timeout)",
    )
    parser.add_argument(
        "--config",
        help="Optional CFG file with an [exporter] section",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Enable debug logging (-v) or trace logging (-vv)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Discover devices, collect once, print the metrics and exit",
    )
    return parser


def build_cycle(config: ExporterConfig, registry: CollectorRegistry) -> CollectionCycle:
    runner = SmartctlRunner(config.smartctl_path, timeout_s=config.command_timeout_s)
    return CollectionCycle(
        DeviceDiscovery(runner),
        AttributeExtractor(runner),
        MetricSink(registry),
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"smartctl-exporter {__version__}")
        return 0

    config = load_config(args)
    configure_logging(resolve_log_level(args.verbose, config.log_level))
    logger = logging.getLogger("smartctl_exporter")

    registry = CollectorRegistry()
    cycle = build_cycle(config, registry)
    cycle.refresh_devices()

    if args.once:
        cycle.collect()
        sys.stdout.write(generate_latest(registry).decode("utf-8"))
        return 0

    try:
        start_http_server(int(config.port), addr=config.address, registry=registry)
    except (OSError, ValueError) as exc:
        logger.critical("Cannot listen on %s: %s", config.listen_address, exc)
        return 1
    logger.info("Server listening on http://%s/metrics", config.listen_address)
    if config.command_timeout_s is None:
        logger.info("No smartctl command timeout configured; a hung smartctl stalls collection.")

    stop_event = threading.Event()

    def _stop(signum: int, frame: object) -> None:
        logger.info("Received signal %s; stopping.", signum)
        stop_event.set()

    def _rediscover(signum: int, frame: object) -> None:
        logger.info("Received SIGHUP; rediscovering devices.")
        threading.Thread(target=cycle.refresh_devices, name="rediscover", daemon=True).start()

    signal.signal(signal.SIGTERM, _stop)
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, _rediscover)

    logger.info("smartctl exporter started. Collecting every %s seconds.", config.interval_s)
    try:
        cycle.run_forever(config.interval_s, stop_event)
    except KeyboardInterrupt:
        logger.info("smartctl exporter stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
