from __future__ import annotations

import logging
import re
from typing import Any

from smartctl_exporter.models import Device, format_capacity
from smartctl_exporter.runner import SmartctlRunner
from smartctl_exporter.schema import validate_scan

MEGARAID_PATTERN = re.compile(r"(sat\+)?(megaraid,\d+)")

PROTOCOL_FAMILIES = {
    "ATA": "sat",
    "SCSI": "scsi",
}


def parse_megaraid_id(device_type: str) -> str | None:
    """Return the ``megaraid,N`` selector embedded in a scan type, if any."""
    match = MEGARAID_PATTERN.search(device_type or "")
    if match is None:
        return None
    return match.group(2)


def protocol_family(protocol: Any) -> str:
    return PROTOCOL_FAMILIES.get(protocol, "unknown")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _capacity(info: dict[str, Any]) -> str:
    user_capacity = info.get("user_capacity")
    if not isinstance(user_capacity, dict):
        return format_capacity(None)
    return format_capacity(user_capacity.get("bytes"))


class DeviceDiscovery:
    """Build the device registry from ``smartctl --scan-open``.

    Every call to :meth:`discover` starts from an empty registry, so devices
    that vanished from the scan output are not carried over.
    """

    def __init__(self, runner: SmartctlRunner) -> None:
        self.runner = runner
        self.logger = logging.getLogger(self.__class__.__name__)

    def discover(self) -> dict[str, Device]:
        devices: dict[str, Device] = {}
        scan = self.runner.run_json(["--scan-open", "--json=c"])
        if scan is None:
            self.logger.warning("Device scan failed; no devices will be monitored.")
            return devices
        errors = validate_scan(scan)
        if errors:
            self.logger.warning(
                "Device scan output failed validation with %s errors.", len(errors)
            )
            self.logger.debug("Scan validation errors: %s", errors)
            return devices

        for entry in scan["devices"]:
            name = entry["name"]
            scan_type = _text(entry.get("type"))
            if entry.get("open_error"):
                self.logger.debug(
                    "Skipping device %s (%s): %s", name, scan_type, entry["open_error"]
                )
                continue

            megaraid_id = parse_megaraid_id(scan_type)
            if megaraid_id is not None:
                device = self._megaraid_device(name, megaraid_id)
                if device is None:
                    continue
            else:
                device = self._plain_device(name, scan_type)

            devices[device.name] = device
            self.logger.info("Discovered device %s with attributes %s", device.name, device)

        if not devices:
            self.logger.warning(
                "No devices discovered; check that the exporter runs with enough "
                "privileges to open the disks."
            )
        return devices

    def _plain_device(self, name: str, scan_type: str) -> Device:
        info = self.runner.run_json(["-i", "--json=c", name])
        if info is None:
            self.logger.warning("Device info unavailable for %s.", name)
            return Device(name=name, type=scan_type)
        return Device(
            name=name,
            type=scan_type,
            model_family=_text(info.get("model_family")),
            model_name=_text(info.get("model_name")),
            serial_number=_text(info.get("serial_number")),
            user_capacity=_capacity(info),
        )

    def _megaraid_device(self, bus_device: str, megaraid_id: str) -> Device | None:
        info = self.runner.run_json(["-i", "--json=c", "-d", megaraid_id, bus_device])
        if info is None:
            self.logger.warning(
                "Skipping MegaRAID device %s on %s: device info unavailable.",
                megaraid_id,
                bus_device,
            )
            return None

        model_name = _text(info.get("scsi_model_name")) or _text(info.get("model_name"))
        device_block = info.get("device")
        protocol = device_block.get("protocol") if isinstance(device_block, dict) else None
        return Device(
            name=f"{bus_device}_{megaraid_id}",
            type=protocol_family(protocol),
            model_family=_text(info.get("model_family")),
            model_name=model_name,
            serial_number=_text(info.get("serial_number")),
            user_capacity=_capacity(info),
            bus_device=bus_device,
            megaraid_id=megaraid_id,
        )
