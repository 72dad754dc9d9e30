"""Exception hierarchy for rfid_probe"""


class RfidProbeException(OSError):
    def __init__(
        self,
        message: str,
        port: str | None = None,
    ):
        super().__init__(f"{port}: {message}" if port else message)
        self.port = port


class DeviceQueryFailure(RfidProbeException):
    pass


class PortUnavailable(RfidProbeException):
    pass


class PortBusy(PortUnavailable):
    pass


class TransportError(RfidProbeException):
    pass


class TransportClosed(TransportError):
    pass


class MatcherInvalid(ValueError):
    pass


class ConfigInvalid(ValueError):
    pass
