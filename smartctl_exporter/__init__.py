"""Prometheus exporter for smartctl SMART attributes."""

__version__ = "0.0.3"

from smartctl_exporter.collector import CollectionCycle
from smartctl_exporter.config import ExporterConfig, load_config
from smartctl_exporter.discovery import DeviceDiscovery
from smartctl_exporter.extractors import AttributeExtractor
from smartctl_exporter.flatten import flatten
from smartctl_exporter.models import Device
from smartctl_exporter.runner import CommandResult, ExitStatus, SmartctlRunner, classify
from smartctl_exporter.sink import MetricSink

__all__ = [
    "AttributeExtractor",
    "CollectionCycle",
    "CommandResult",
    "Device",
    "DeviceDiscovery",
    "ExitStatus",
    "ExporterConfig",
    "MetricSink",
    "SmartctlRunner",
    "classify",
    "flatten",
    "load_config",
]
