from __future__ import annotations

import logging
from typing import Any

from smartctl_exporter.flatten import flatten, numeric_value
from smartctl_exporter.models import (
    FAMILY_MEGARAID,
    FAMILY_NVME,
    FAMILY_SAT,
    AttributeSet,
    Device,
)
from smartctl_exporter.runner import SmartctlRunner

NVME_LOG_KEY = "nvme_smart_health_information_log"

# Top-level blocks of a smartctl document that describe the tool or the
# device rather than its health, plus multi-valued SCSI logs that would only
# leak as a single misleading number.
NON_METRIC_KEYS = frozenset(
    {
        "json_format_version",
        "smartctl",
        "device",
        "smart_status",
        "local_time",
        "scsi_grown_defect_list",
        "scsi_error_counter_log",
    }
)


def parse_raw_value(raw_string: Any) -> float | None:
    """Decode the leading token of an ATA ``raw.string`` such as ``"35 (Min/Max 20/41)"``."""
    if not isinstance(raw_string, str):
        return None
    parts = raw_string.split()
    if not parts:
        return None
    try:
        return float(parts[0])
    except ValueError:
        return None


def smart_passed(data: dict[str, Any]) -> float:
    status = data.get("smart_status")
    if isinstance(status, dict) and status.get("passed") is True:
        return 1.0
    return 0.0


def sat_attributes(data: dict[str, Any]) -> AttributeSet:
    attributes: AttributeSet = {}
    table = data.get("ata_smart_attributes")
    entries = table.get("table") if isinstance(table, dict) else None
    for entry in entries or []:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        value = numeric_value(entry.get("value"))
        if not isinstance(name, str) or not name or value is None:
            continue
        attributes[name] = value
        raw = entry.get("raw")
        raw_value = parse_raw_value(raw.get("string") if isinstance(raw, dict) else None)
        if raw_value is not None:
            attributes[f"{name}_raw"] = raw_value
    attributes["smart_passed"] = smart_passed(data)
    return attributes


def nvme_attributes(data: dict[str, Any]) -> AttributeSet:
    attributes: AttributeSet = {}
    health_log = data.get(NVME_LOG_KEY)
    if isinstance(health_log, dict):
        flatten("", health_log, attributes)
        for key, value in health_log.items():
            if not isinstance(value, list):
                continue
            for index, sensor_value in enumerate(value, start=1):
                number = numeric_value(sensor_value)
                if number is not None:
                    attributes[f"{key}_sensor{index}"] = number
    attributes["smart_passed"] = smart_passed(data)
    return attributes


def scsi_attributes(data: dict[str, Any]) -> AttributeSet:
    attributes: AttributeSet = {}
    document = {key: value for key, value in data.items() if key not in NON_METRIC_KEYS}
    flatten("", document, attributes)
    if isinstance(data.get("smart_status"), dict):
        attributes["smart_passed"] = smart_passed(data)
    return attributes


class AttributeExtractor:
    """Query smartctl for one device and normalise the answer to ``name -> float``."""

    def __init__(self, runner: SmartctlRunner) -> None:
        self.runner = runner
        self.logger = logging.getLogger(self.__class__.__name__)

    def extract(self, device: Device) -> AttributeSet | None:
        family = device.family
        if family is None:
            self.logger.debug("No extractor for device %s of type %s.", device.name, device.type)
            return None
        data = self.runner.run_json(self.query_args(device))
        if data is None:
            self.logger.debug("No SMART data for %s this cycle.", device.name)
            return None
        if family == FAMILY_MEGARAID:
            return self._megaraid(device, data)
        if family == FAMILY_SAT:
            return sat_attributes(data)
        if family == FAMILY_NVME:
            return nvme_attributes(data)
        return scsi_attributes(data)

    @staticmethod
    def query_args(device: Device) -> list[str]:
        if device.is_megaraid:
            return ["-A", "-H", "-d", device.megaraid_id, "--json=c", device.bus_device]
        return ["-A", "-H", "-d", device.type, "--json=c", device.name]

    def _megaraid(self, device: Device, data: dict[str, Any]) -> AttributeSet | None:
        device_block = data.get("device")
        protocol = device_block.get("protocol") if isinstance(device_block, dict) else None
        if protocol == "ATA":
            return sat_attributes(data)
        if protocol == "SCSI":
            return scsi_attributes(data)
        self.logger.debug(
            "Unrecognised protocol %r for MegaRAID device %s.", protocol, device.name
        )
        return None

