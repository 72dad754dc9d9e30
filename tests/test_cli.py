"""Unit tests for rfid_probe.cli."""

import logging
import pytest
import threading

import rfid_probe

from rfid_probe import cli

DEVICES = [
    {"name": "Keyboard", "description": None, "system_host": "HOST1"},
    {"name": "Mouse (COM1)", "description": "HID mouse", "system_host": "H"},
    {
        "name": "USB Serial (COM3)",
        "description": "USB-SERIAL CH340",
        "system_host": "HOST1",
    },
]


def test_list(set_scan_override, capsys):
    set_scan_override(DEVICES)
    cli.run(cli.make_parser().parse_args(["--list"]))
    out = capsys.readouterr().out.splitlines()
    for line in [
        "Keyboard (no description)",
        "Mouse (COM1)✅ 'HID mouse'",
        "USB Serial (COM3)✅ 'USB-SERIAL CH340' CH340✅ -> COM3",
    ]:
        assert line in out


def test_list_extra_hardware(set_scan_override, capsys):
    set_scan_override(DEVICES)
    args = cli.make_parser().parse_args(["-l", "-H", "mouse"])
    cli.run(args)
    out = capsys.readouterr().out.splitlines()
    assert "Mouse (COM1)✅ 'HID mouse' mouse✅ -> COM1" in out


def test_not_found(set_scan_override, caplog, mocker):
    set_scan_override(DEVICES[:2])
    session_class = mocker.patch.object(cli.rfid_probe, "ReaderSession")
    cli.run(cli.make_parser().parse_args([]))

    session_class.assert_not_called()
    assert (
        "Could not identify the RFID device; "
        "verify the driver is installed and the device is connected"
    ) in caplog.text


def test_port_unavailable(set_scan_override):
    set_scan_override(DEVICES)
    with pytest.raises(cli.rfid_probe.PortUnavailable):
        cli.run(cli.make_parser().parse_args(["--marker", "(COM"]))


def test_reads_tags(pty_serial, set_scan_override, capsys, caplog, mocker):
    caplog.set_level(logging.INFO)
    set_scan_override(
        [
            {
                "name": f"Arduino Uno ({pty_serial.path})",
                "description": "Arduino Uno",
                "system_host": "HOST1",
            }
        ]
    )

    # the real session, with a signal for opening and for each delivery
    opened, delivered = threading.Event(), threading.Semaphore(0)
    real_session = rfid_probe.ReaderSession

    def open_session(*args, on_data, **kwargs):
        def on_data_signal(session):
            on_data(session)
            delivered.release()

        session = real_session(*args, on_data=on_data_signal, **kwargs)
        opened.set()
        return session

    mocker.patch.object(
        cli.rfid_probe, "ReaderSession", side_effect=open_session
    )

    args = cli.make_parser().parse_args(["--marker", "(/dev/", "-n", "2"])
    thread = threading.Thread(target=cli.run, args=(args,), daemon=True)
    thread.start()

    assert opened.wait(timeout=10)
    pty_serial.control.write(b"TAG1|")
    assert delivered.acquire(timeout=10)
    pty_serial.control.write(b"TA\x00G2\r\n")
    thread.join(timeout=10)
    assert not thread.is_alive()

    out = capsys.readouterr().out.splitlines()
    assert [line for line in out if line.startswith("TAG")] == ["TAG1", "TAG2"]

    name = f"Arduino Uno ({pty_serial.path})"
    assert f"Found RFID reader at {name}" in caplog.text
    assert " SystemName: HOST1\n" in caplog.text
    assert " Description: Arduino Uno\n" in caplog.text
    assert f" PortName: {pty_serial.path}" in caplog.text


def test_log_serial_error(pty_serial, caplog):
    with rfid_probe.ReaderSession(pty_serial.path) as session:
        cli.log_serial_error(session, rfid_probe.TransportError("x", "COM3"))

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    messages = [r.getMessage() for r in warnings]
    assert messages == ["⚠️ Serial error: COM3: x"]


def test_count_must_not_be_negative():
    parser = cli.make_parser()
    assert parser.parse_args(["-n", "0"]).count == 0
    assert parser.parse_args(["--count", "3"]).count == 3
    for bad in ("-1", "many"):
        with pytest.raises(SystemExit):
            parser.parse_args(["--count", bad])
