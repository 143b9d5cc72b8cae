from __future__ import annotations

from dataclasses import dataclass

UNKNOWN_CAPACITY = "Unknown"

SAT_TYPES = frozenset({"sat", "usbjmicron", "usbprolific", "usbsunplus"})
NVME_TYPES = frozenset({"nvme", "sntasmedia", "sntjmicron", "sntrealtek"})
SCSI_TYPES = frozenset({"scsi"})

FAMILY_SAT = "sat"
FAMILY_NVME = "nvme"
FAMILY_SCSI = "scsi"
FAMILY_MEGARAID = "megaraid"

AttributeSet = dict[str, float]


@dataclass(frozen=True)
class Device:
    name: str
    type: str
    model_family: str = ""
    model_name: str = ""
    serial_number: str = ""
    user_capacity: str = UNKNOWN_CAPACITY
    # Only set for devices behind a MegaRAID controller.
    bus_device: str = ""
    megaraid_id: str = ""

    @property
    def is_megaraid(self) -> bool:
        return bool(self.megaraid_id)

    @property
    def family(self) -> str | None:
        """Extractor family for this device, or None when unsupported."""
        if self.is_megaraid:
            return FAMILY_MEGARAID
        if self.type in SAT_TYPES:
            return FAMILY_SAT
        if self.type in NVME_TYPES:
            return FAMILY_NVME
        if self.type in SCSI_TYPES:
            return FAMILY_SCSI
        return None


def format_capacity(capacity_bytes: object) -> str:
    if isinstance(capacity_bytes, bool) or not isinstance(capacity_bytes, (int, float)):
        return UNKNOWN_CAPACITY
    if capacity_bytes <= 0:
        return UNKNOWN_CAPACITY
    return str(int(capacity_bytes))
