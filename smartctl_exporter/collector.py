from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import logging
import threading
import time
from types import MappingProxyType
from typing import Iterator, Mapping

from smartctl_exporter.discovery import DeviceDiscovery
from smartctl_exporter.extractors import AttributeExtractor
from smartctl_exporter.models import Device
from smartctl_exporter.sink import MetricSink


@dataclass
class CycleStats:
    passes: int = 0
    contended: int = 0
    skipped_ticks: int = 0


class CollectionCycle:
    """Serialise full passes over the device registry.

    One lock guards every pass and every rediscovery, so two passes never run
    at the same time. A caller that finds the lock taken waits for it and is
    counted in ``stats.contended``.
    """

    def __init__(
        self,
        discovery: DeviceDiscovery,
        extractor: AttributeExtractor,
        sink: MetricSink,
        devices: Mapping[str, Device] | None = None,
    ) -> None:
        self.discovery = discovery
        self.extractor = extractor
        self.sink = sink
        self.stats = CycleStats()
        self._devices: dict[str, Device] = dict(devices or {})
        self._lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def devices(self) -> Mapping[str, Device]:
        return MappingProxyType(dict(self._devices))

    def refresh_devices(self) -> int:
        """Replace the registry with a fresh discovery and return its size."""
        with self._locked():
            self._devices = self.discovery.discover()
            count = len(self._devices)
        self.logger.info("Monitoring %d devices.", count)
        return count

    def collect(self) -> int:
        """Run one pass over all devices and return how many were published."""
        with self._locked():
            self.logger.debug("Starting collection pass over %d devices.", len(self._devices))
            published = 0
            for device in self._devices.values():
                attributes = self.extractor.extract(device)
                if attributes is None:
                    continue
                self.sink.publish(device, attributes)
                published += 1
            with self._stats_lock:
                self.stats.passes += 1
            self.logger.debug("Completed collection pass; %d devices published.", published)
            return published

    def run_forever(self, interval_s: float, stop_event: threading.Event) -> None:
        """Collect every ``interval_s`` seconds until ``stop_event`` is set.

        Ticks that fall inside an overrunning pass are dropped, not queued.
        """
        next_tick = time.monotonic()
        while not stop_event.is_set():
            self.collect()
            next_tick += interval_s
            now = time.monotonic()
            if now > next_tick:
                missed = int((now - next_tick) // interval_s) + 1
                with self._stats_lock:
                    self.stats.skipped_ticks += missed
                self.logger.debug("Collection pass overran; skipping %d ticks.", missed)
                next_tick += missed * interval_s
            stop_event.wait(next_tick - now)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            with self._stats_lock:
                self.stats.contended += 1
            self.logger.debug("Collection already running; waiting for it to finish.")
            self._lock.acquire()
        try:
            yield
        finally:
            self._lock.release()
