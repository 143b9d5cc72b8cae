from __future__ import annotations

import logging
import re
import threading

from prometheus_client import CollectorRegistry, Gauge

from smartctl_exporter.models import AttributeSet, Device

METRIC_PREFIX = "smartctl_"

LABEL_NAMES = (
    "drive",
    "type",
    "model_family",
    "model_name",
    "serial_number",
    "user_capacity",
)

VALID_METRIC_NAME = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")

_METRIC_NAME_TABLE = str.maketrans({"-": "_", " ": "_", ".": None, "/": "_"})
_DRIVE_LABEL_TABLE = str.maketrans({",": "_", " ": "_", "/": "_", "\\": "_"})


def sanitize_metric_name(name: str) -> str:
    return name.translate(_METRIC_NAME_TABLE).lower()


def sanitize_drive_label(name: str) -> str:
    return name.translate(_DRIVE_LABEL_TABLE)


def device_labels(device: Device) -> dict[str, str]:
    return {
        "drive": sanitize_drive_label(device.name),
        "type": device.type,
        "model_family": device.model_family,
        "model_name": device.model_name,
        "serial_number": device.serial_number,
        "user_capacity": device.user_capacity,
    }


class MetricSink:
    """Publish attribute sets as labelled gauges in a Prometheus registry.

    Gauges are created the first time a metric name is seen and live for the
    rest of the process. Registration and the first ``set`` happen under one
    lock, so concurrent publishers never race on creating the same gauge.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.gauges: dict[str, Gauge] = {}
        self._lock = threading.Lock()
        self.logger = logging.getLogger(self.__class__.__name__)

    def publish(self, device: Device, attributes: AttributeSet) -> int:
        labels = device_labels(device)
        published = 0
        with self._lock:
            for key, value in attributes.items():
                gauge = self._gauge(key)
                if gauge is None:
                    continue
                gauge.labels(**labels).set(value)
                published += 1
        return published

    def _gauge(self, key: str) -> Gauge | None:
        name = sanitize_metric_name(METRIC_PREFIX + key)
        gauge = self.gauges.get(name)
        if gauge is not None:
            return gauge
        if not VALID_METRIC_NAME.match(name):
            self.logger.debug("Skipping attribute %r: %r is not a valid metric name.", key, name)
            return None
        gauge = Gauge(name, key, LABEL_NAMES, registry=self.registry)
        self.gauges[name] = gauge
        self.logger.debug("Registered gauge %s.", name)
        return gauge
