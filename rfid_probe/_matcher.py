import dataclasses
import logging
from collections import abc

import pydantic

from rfid_probe import _exceptions
from rfid_probe import _scanning

log = logging.getLogger("rfid_probe.matching")


class MatchOptions(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(extra="forbid")

    hardware_ids: list[str] = ["CH340", "Arduino"]
    port_marker: str = "(COM"


@dataclasses.dataclass(frozen=True)
class HardwareInfo:
    """The reader we found, kept for display"""

    port_name: str
    description: str
    system_host: str
    device_name: str = dataclasses.field(default="", compare=False)

    def __str__(self):
        return (
            f" SystemName: {self.system_host}\n"
            f" Description: {self.description}\n"
            f" PortName: {self.port_name}"
        )


class HardwareMatcher:
    """Picks the RFID reader out of DeviceRecord scan results"""

    def __init__(self, opts: MatchOptions = MatchOptions()):
        """Checks 'opts' and keeps them for matching"""

        if not opts.port_marker:
            raise _exceptions.MatcherInvalid("Empty port marker")
        if not opts.hardware_ids:
            raise _exceptions.MatcherInvalid("No hardware ids")
        if not all(opts.hardware_ids):
            msg = f"Empty hardware id in {opts.hardware_ids!r}"
            raise _exceptions.MatcherInvalid(msg)

        self._opts = opts
        log.debug(
            "Matching %r in name, any of %r in description",
            opts.port_marker,
            opts.hardware_ids,
        )

    def __repr__(self) -> str:
        return f"HardwareMatcher({self._opts!r})"

    @property
    def options(self) -> MatchOptions:
        return self._opts

    def matching_ids(self, record: _scanning.DeviceRecord) -> list[str]:
        """The hardware ids found in the description of 'record'"""

        desc = record.description or ""
        return [h for h in self._opts.hardware_ids if h in desc]

    def matches(self, record: _scanning.DeviceRecord) -> bool:
        """True if 'record' looks like a supported RFID reader"""

        return (
            record.description is not None
            and self._opts.port_marker in record.name
            and bool(self.matching_ids(record))
        )

    def port_name(self, record: _scanning.DeviceRecord) -> str:
        """Extracts "COM3" from a name like "USB-SERIAL CH340 (COM3)" """

        start = record.name.index(self._opts.port_marker)
        end = record.name.find(")", start)
        part = record.name[start:] if end < 0 else record.name[start : end + 1]
        return part.replace("(", "").replace(")", "")

    def find_hardware(
        self, records: abc.Iterable[_scanning.DeviceRecord]
    ) -> HardwareInfo | None:
        """Returns the first matching record as HardwareInfo, if any"""

        for record in records:
            if not self.matches(record):
                log.debug("Skipping %r (%r)", record.name, record.description)
                continue

            assert record.description is not None
            found = HardwareInfo(
                port_name=self.port_name(record),
                description=record.description,
                system_host=record.system_host,
                device_name=record.name,
            )
            log.debug("Matched %r -> %s", record.name, found.port_name)
            return found

        log.debug("No device matches %r", self._opts)
        return None
