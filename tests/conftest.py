"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import copy
import json
from typing import Any
from unittest.mock import Mock

import pytest

from smartctl_exporter.runner import SmartctlRunner


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "megaraid: mark test as exercising MegaRAID pass-through devices"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as relying on real threads and timing"
    )


class FakeSmartctl:
    """Stand-in for ``subprocess.run`` keyed on the smartctl argument vector."""

    def __init__(self) -> None:
        self.responses: dict[tuple[str, ...], tuple[bytes, int]] = {}
        self.calls: list[tuple[str, ...]] = []

    def add(self, args: list[str], payload: Any, returncode: int = 0) -> None:
        if isinstance(payload, (dict, list)):
            output = json.dumps(payload).encode("utf-8")
        elif isinstance(payload, str):
            output = payload.encode("utf-8")
        else:
            output = payload
        self.responses[tuple(args)] = (output, returncode)

    def __call__(self, command: list[str], **kwargs: Any) -> Mock:
        args = tuple(command[1:])
        self.calls.append(args)
        output, returncode = self.responses.get(args, (b"", 1))
        return Mock(returncode=returncode, stdout=output)


@pytest.fixture
def fake_smartctl():
    return FakeSmartctl()


@pytest.fixture
def runner():
    return SmartctlRunner("smartctl")


SAT_SMART = {
    "json_format_version": [1, 0],
    "device": {"name": "/dev/sda", "type": "sat", "protocol": "ATA"},
    "smart_status": {"passed": True},
    "ata_smart_attributes": {
        "revision": 16,
        "table": [
            {
                "id": 5,
                "name": "Reallocated_Sector_Ct",
                "value": 100,
                "worst": 100,
                "thresh": 10,
                "raw": {"value": 5, "string": "5"},
            },
            {
                "id": 194,
                "name": "Temperature_Celsius",
                "value": 65,
                "worst": 52,
                "thresh": 0,
                "raw": {"value": 176094756899, "string": "35 (Min/Max 20/41)"},
            },
            {
                "id": 240,
                "name": "Head_Flying_Hours",
                "value": 100,
                "raw": {"value": 0, "string": "n/a"},
            },
        ],
    },
}

NVME_SMART = {
    "json_format_version": [1, 0],
    "device": {"name": "/dev/nvme0", "type": "nvme", "protocol": "NVMe"},
    "smart_status": {"passed": True, "nvme": {"value": 0}},
    "nvme_smart_health_information_log": {
        "critical_warning": 0,
        "temperature": 38,
        "available_spare": 100,
        "percentage_used": 2,
        "data_units_written": 12345678,
        "power_on_hours": 4321,
        "media_errors": 0,
        "temperature_sensors": [38, 45],
    },
}

SCSI_SMART = {
    "json_format_version": [1, 0],
    "smartctl": {"version": [7, 3], "exit_status": 0},
    "device": {"name": "/dev/sdb", "type": "scsi", "protocol": "SCSI"},
    "local_time": {"time_t": 1700000000, "asctime": "Tue Nov 14 2023"},
    "smart_status": {"passed": False},
    "temperature": {"current": 31, "drive_trip": 65},
    "power_on_time": {"hours": 29000, "minutes": 12},
    "scsi_grown_defect_list": 0,
    "scsi_error_counter_log": {"read": {"total_uncorrected_errors": 0}},
    "scsi_start_stop_cycle_counter": {
        "year_of_manufacture": "2017",
        "accumulated_start_stop_cycles": 62,
    },
}


@pytest.fixture
def sat_smart():
    return copy.deepcopy(SAT_SMART)


@pytest.fixture
def nvme_smart():
    return copy.deepcopy(NVME_SMART)


@pytest.fixture
def scsi_smart():
    return copy.deepcopy(SCSI_SMART)
