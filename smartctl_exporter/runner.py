from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
import logging
import subprocess
from typing import Any, Sequence

from smartctl_exporter.logging_utils import TRACE_LEVEL

# smartctl exit codes are a bitmask. These values still come with output
# that is parsed; every other code makes the invocation unusable.
USABLE_EXIT_CODES = frozenset({0, 2, 4, 6})


class ExitStatus(Enum):
    USABLE = "usable"
    FATAL = "fatal"


def classify(code: int) -> ExitStatus:
    if code in USABLE_EXIT_CODES:
        return ExitStatus.USABLE
    return ExitStatus.FATAL


@dataclass(frozen=True)
class CommandResult:
    output: bytes
    exit_code: int
    ok: bool


class SmartctlRunner:
    """Run smartctl with an argument vector and classify its exit code.

    ``timeout_s`` of ``None`` means no timeout: a hung smartctl blocks the
    caller indefinitely.
    """

    def __init__(self, smartctl_path: str = "smartctl", timeout_s: float | None = None) -> None:
        self.smartctl_path = smartctl_path
        self.timeout_s = timeout_s
        self.logger = logging.getLogger(self.__class__.__name__)

    def run(self, args: Sequence[str]) -> CommandResult:
        command = [self.smartctl_path, *args]
        try:
            result = subprocess.run(
                command,
                check=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=self.timeout_s,
            )
        except subprocess.TimeoutExpired:
            self.logger.warning(
                "Command '%s' timed out after %s seconds.",
                " ".join(command),
                self.timeout_s,
            )
            return CommandResult(output=b"", exit_code=-1, ok=False)
        except OSError as exc:
            self.logger.warning("Command '%s' could not be started: %s", " ".join(command), exc)
            return CommandResult(output=b"", exit_code=-1, ok=False)

        output = result.stdout or b""
        status = classify(result.returncode)
        if status is ExitStatus.FATAL:
            self.logger.warning(
                "Command '%s' returned exit code %d. Output: '%s'",
                " ".join(command),
                result.returncode,
                output.decode("utf-8", errors="replace"),
            )
        elif self.logger.isEnabledFor(TRACE_LEVEL):
            self.logger.log(
                TRACE_LEVEL,
                "Command '%s' (exit %d) stdout: %s",
                " ".join(command),
                result.returncode,
                output.decode("utf-8", errors="replace").strip(),
            )
        return CommandResult(
            output=output,
            exit_code=result.returncode,
            ok=status is ExitStatus.USABLE,
        )

    def run_json(self, args: Sequence[str]) -> dict[str, Any] | None:
        """Run smartctl and decode its JSON output.

        Returns None when the exit code is fatal or the output is not a JSON
        object; both cases are logged here so callers only check for None.
        """
        result = self.run(args)
        if not result.ok:
            return None
        try:
            data = json.loads(result.output)
        except (json.JSONDecodeError, UnicodeDecodeError):
            self.logger.warning(
                "Failed to parse smartctl JSON for '%s'.", " ".join(args)
            )
            return None
        if not isinstance(data, dict):
            self.logger.warning(
                "Unexpected smartctl JSON document for '%s'.", " ".join(args)
            )
            return None
        return data
