import contextlib
import errno
import logging
import serial
import threading
from collections import abc

import pydantic

from rfid_probe import _exceptions

log = logging.getLogger("rfid_probe.session")
data_log = logging.getLogger(log.name + ".data")

_BUSY_ERRNOS = (errno.EBUSY, errno.EAGAIN, errno.EWOULDBLOCK)


class SessionOptions(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(extra="forbid")

    baud: int = 9600
    discard_null: bool = True
    encoding: str = "ascii"


class ReaderSession(contextlib.AbstractContextManager):
    """Serial connection to the reader, with callbacks as data arrives"""

    @pydantic.validate_call
    def __init__(
        self,
        port: str,
        opts: SessionOptions | int = SessionOptions(),
        *,
        on_data: abc.Callable[..., None] | None = None,
        on_error: abc.Callable[..., None] | None = None,
    ):
        """Opens 'port' and starts delivering callbacks.

        'on_data(session)' runs on the reader thread whenever bytes arrive,
        and should call read_existing() to take them. 'on_error(session,
        error)' runs when the port reports a TransportError.
        """

        if isinstance(opts, int):
            opts = SessionOptions(baud=opts)

        with contextlib.ExitStack() as cleanup:
            log.debug("Opening %s (%s)", port, opts)
            try:
                pyserial = cleanup.enter_context(
                    serial.Serial(port=port, baudrate=opts.baud, exclusive=True)
                )
            except OSError as ex:
                if ex.errno in _BUSY_ERRNOS:
                    message = "Serial port busy"
                    raise _exceptions.PortBusy(message, port) from ex
                else:
                    message = "Serial port open error"
                    raise _exceptions.PortUnavailable(message, port) from ex

            self._opts = opts
            self._io = cleanup.enter_context(
                _ReaderThread(self, pyserial, on_data, on_error)
            )
            self._io.start()
            self._cleanup = cleanup.pop_all()

        log.debug("Opened %s", port)

    def __del__(self) -> None:
        if hasattr(self, "_cleanup"):
            self._cleanup.close()

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self._cleanup.__exit__(exc_type, exc_value, traceback)

    def __repr__(self) -> str:
        return f"ReaderSession({self.port_name!r})"

    @property
    def port_name(self) -> str:
        return self._io.pyserial.port

    @property
    def is_open(self) -> bool:
        with self._io.lock:
            closed = isinstance(self._io.exception, _exceptions.TransportClosed)
        return self._io.pyserial.is_open and not closed

    @pydantic.validate_call
    def close(self) -> None:
        self._cleanup.close()

    @pydantic.validate_call
    def read_existing(self) -> str:
        """Takes all buffered input and decodes it as one text chunk"""

        with self._io.lock:
            incoming = bytes(self._io.incoming)
            self._io.incoming.clear()
            if not incoming and self._io.exception:
                raise self._io.exception

        return incoming.decode(self._opts.encoding, errors="replace")

    @pydantic.validate_call
    def incoming_size(self) -> int:
        with self._io.lock:
            return len(self._io.incoming)


class _ReaderThread(contextlib.AbstractContextManager):
    def __init__(
        self,
        session: ReaderSession,
        pyserial: serial.Serial,
        on_data: abc.Callable[..., None] | None,
        on_error: abc.Callable[..., None] | None,
    ) -> None:
        self.thread: threading.Thread | None = None
        self.session = session
        self.pyserial = pyserial
        self.on_data = on_data
        self.on_error = on_error
        self.lock = threading.Lock()
        self.incoming = bytearray()
        self.exception: None | _exceptions.TransportError = None

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.stop()

    def start(self) -> None:
        name = f"{self.pyserial.port} reader"
        self.thread = threading.Thread(target=self._readloop, name=name)
        self.thread.daemon = True
        self.thread.start()

    def stop(self) -> None:
        with self.lock:
            if isinstance(self.exception, _exceptions.TransportClosed):
                return
            message, port = "Serial port was closed", self.pyserial.port
            self.exception = _exceptions.TransportClosed(message, port)

        try:
            self.pyserial.cancel_read()
            log.debug("Cancelled %s reads", self.pyserial.port)
        except OSError:
            port = self.pyserial.port
            log.warning("Can't cancel %s reads", port, exc_info=True)

        if self.thread and self.thread is not threading.current_thread():
            log.debug("Joining %s reader", self.pyserial.port)
            self.thread.join()

    def _readloop(self) -> None:
        log.debug("Starting thread")
        discard_null = self.session._opts.discard_null
        while not self.exception:
            incoming, error = b"", None
            try:
                # Block for at least one byte, then grab all available
                incoming = self.pyserial.read(size=1)
                if incoming:
                    waiting = self.pyserial.in_waiting
                    if waiting > 0:
                        incoming += self.pyserial.read(size=waiting)
            except OSError as ex:
                message, port = "Serial read error", self.pyserial.port
                error = _exceptions.TransportError(message, port)
                error.__cause__ = ex
                data_log.warning("%s", message, exc_info=True)

            if discard_null and b"\0" in incoming:
                data_log.debug("Discarding %d NUL", incoming.count(b"\0"))
                incoming = incoming.replace(b"\0", b"")

            with self.lock:
                if self.exception:
                    break
                if incoming:
                    data_log.debug(
                        "Read %db buf=%db", len(incoming), len(self.incoming)
                    )
                    self.incoming.extend(incoming)
                self.exception = error

            if error and self.on_error:
                self._callback(self.on_error, self.session, error)
            if incoming and self.on_data:
                self._callback(self.on_data, self.session)

        log.debug("Stopping thread")

    def _callback(self, callback: abc.Callable[..., None], *args) -> None:
        try:
            callback(*args)
        except Exception:
            port = self.pyserial.port
            log.exception("%s: Callback %r failed", port, callback)
