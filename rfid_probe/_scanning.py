import logging
import msgspec
import natsort
import os
import pathlib
import platform
from serial.tools import list_ports
from serial.tools import list_ports_common

from rfid_probe import _exceptions

log = logging.getLogger("rfid_probe.scanning")


class DeviceRecord(msgspec.Struct, frozen=True):
    """One entry from the host's plug-and-play serial device registry"""

    name: str
    description: str | None = None
    system_host: str = ""

    def __str__(self):
        return self.name


def scan_devices() -> list[DeviceRecord]:
    """Returns a snapshot of the serial devices attached to this host"""

    if ov := os.getenv("RFID_PROBE_SCAN_OVERRIDE"):
        try:
            out = msgspec.json.decode(
                pathlib.Path(ov).read_bytes(), type=list[DeviceRecord]
            )
        except (OSError, msgspec.MsgspecError) as ex:
            msg = f"Can't read $RFID_PROBE_SCAN_OVERRIDE {ov}"
            raise _exceptions.DeviceQueryFailure(msg) from ex

        log.debug("$RFID_PROBE_SCAN_OVERRIDE (%s): %d devices", ov, len(out))
        return out

    try:
        ports = list_ports.comports()
    except OSError as ex:
        raise _exceptions.DeviceQueryFailure("Can't query devices") from ex

    host = platform.node()
    out = [_convert_port(p, host) for p in ports]
    out.sort(key=natsort.natsort_keygen(key=lambda r: r.name))
    log.debug("Found %d devices on %r", len(out), host)
    return out


def _convert_port(
    p: list_ports_common.ListPortInfo, host: str
) -> DeviceRecord:
    # Windows friendly names already end in "(COMn)"; elsewhere we add it
    _NA = (None, "", "n/a")
    suffix = f" ({p.device})"
    desc = None if p.description in _NA else p.description
    if desc and desc.endswith(suffix):
        name, desc = desc, desc.removesuffix(suffix).rstrip() or None
    else:
        name = (desc or "") + suffix
    return DeviceRecord(name=name.strip(), description=desc, system_host=host)
