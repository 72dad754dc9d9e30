"""
Finds an RFID reader (Arduino or CH340 serial adapter) among the host's
serial devices, connects to it, and decodes scanned tag identifiers.
"""

from beartype.claw import beartype_this_package as _beartype_me

# ruff: noqa: E402
_beartype_me()

from rfid_probe._config import ProbeConfig, load_config
from rfid_probe._decoder import TagDecoder, decode_tag

from rfid_probe._exceptions import (
    ConfigInvalid,
    DeviceQueryFailure,
    MatcherInvalid,
    PortBusy,
    PortUnavailable,
    RfidProbeException,
    TransportClosed,
    TransportError,
)

from rfid_probe._matcher import HardwareInfo, HardwareMatcher, MatchOptions
from rfid_probe._scanning import DeviceRecord, scan_devices
from rfid_probe._session import ReaderSession, SessionOptions

__all__ = [n for n in dir() if not n.startswith("_")]
