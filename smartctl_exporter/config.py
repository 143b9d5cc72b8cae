from __future__ import annotations

import argparse
import configparser
from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Callable, Mapping, TypeVar

T = TypeVar("T")

SECTION = "exporter"

DEFAULT_ADDRESS = "0.0.0.0"
DEFAULT_PORT = "9809"
DEFAULT_INTERVAL_S = 60
DEFAULT_SMARTCTL_PATH = "smartctl"
DEFAULT_LOG_LEVEL = "INFO"

ENV_ADDRESS = "SMARTCTL_EXPORTER_ADDRESS"
ENV_PORT = "SMARTCTL_EXPORTER_PORT"
ENV_INTERVAL = "SMARTCTL_REFRESH_INTERVAL"
ENV_SMARTCTL_PATH = "SMARTCTL_PATH"
ENV_COMMAND_TIMEOUT = "SMARTCTL_COMMAND_TIMEOUT"
ENV_LOG_LEVEL = "SMARTCTL_EXPORTER_LOG_LEVEL"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExporterConfig:
    address: str
    port: str
    interval_s: int
    smartctl_path: str
    # None disables the timeout; a hung smartctl then stalls the whole cycle.
    command_timeout_s: float | None
    log_level: str

    @property
    def listen_address(self) -> str:
        return f"{self.address}:{self.port}"


def _get_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def _read_file(path: str | Path | None) -> Mapping[str, str]:
    if path is None:
        return {}
    parser = configparser.ConfigParser()
    read_files = parser.read(path)
    if not read_files:
        raise FileNotFoundError(f"Config file not found: {path}")
    if not parser.has_section(SECTION):
        return {}
    return dict(parser[SECTION])


def _first(
    name: str,
    convert: Callable[[str], T],
    *candidates: tuple[str, str | None],
) -> T | None:
    """Return the first candidate that is set and converts cleanly.

    Each candidate is ``(source, raw_value)``; unparsable values are logged and
    the next source is tried.
    """
    for source, raw in candidates:
        value = _get_optional(raw)
        if value is None:
            continue
        try:
            return convert(value)
        except ValueError:
            logger.warning("Ignoring invalid %s %r from %s.", name, value, source)
    return None


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise ValueError(value)
    return number


def _flag(args: argparse.Namespace, name: str) -> str | None:
    value = getattr(args, name, None)
    return None if value is None else str(value)


def load_config(
    args: argparse.Namespace,
    environ: Mapping[str, str] | None = None,
) -> ExporterConfig:
    """Resolve settings with precedence flag > environment > config file > default."""
    env = os.environ if environ is None else environ
    file_values = _read_file(getattr(args, "config", None))

    def sources(flag: str, env_name: str, key: str) -> list[tuple[str, str | None]]:
        return [
            (f"--{flag.replace('_', '-')}", _flag(args, flag)),
            (env_name, env.get(env_name)),
            (f"[{SECTION}] {key}", file_values.get(key)),
        ]

    address = _first("address", str, *sources("address", ENV_ADDRESS, "address"))
    port = _first("port", _port, *sources("port", ENV_PORT, "port"))
    interval = _first("interval", int, *sources("interval", ENV_INTERVAL, "interval_s"))
    smartctl_path = _first(
        "smartctl path", str, *sources("smartctl_path", ENV_SMARTCTL_PATH, "smartctl_path")
    )
    timeout = _first(
        "command timeout",
        _positive_float,
        *sources("command_timeout", ENV_COMMAND_TIMEOUT, "command_timeout_s"),
    )
    log_level = _first("log level", str, *sources("log_level", ENV_LOG_LEVEL, "log_level"))

    return ExporterConfig(
        address=address or DEFAULT_ADDRESS,
        port=port or DEFAULT_PORT,
        interval_s=max(1, interval if interval is not None else DEFAULT_INTERVAL_S),
        smartctl_path=smartctl_path or DEFAULT_SMARTCTL_PATH,
        command_timeout_s=timeout,
        log_level=log_level or DEFAULT_LOG_LEVEL,
    )


def _port(value: str) -> str:
    number = int(value)
    if not 0 < number < 65536:
        raise ValueError(value)
    return str(number)
