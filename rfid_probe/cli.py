#!/usr/bin/env python3

"""CLI tool to find an RFID reader and print the tags it scans"""

import argparse
import logging
import ok_logging_setup
import queue
import rfid_probe

ok_logging_setup.skip_traceback_for(rfid_probe.ConfigInvalid)
ok_logging_setup.skip_traceback_for(rfid_probe.DeviceQueryFailure)
ok_logging_setup.skip_traceback_for(rfid_probe.MatcherInvalid)
ok_logging_setup.skip_traceback_for(rfid_probe.PortUnavailable)

NOT_FOUND = (
    "🚫 Could not identify the RFID device; "
    "verify the driver is installed and the device is connected"
)


def main():
    args = make_parser().parse_args()
    level = "warning" if args.list else "info"
    ok_logging_setup.install({"OK_LOGGING_LEVEL": level})
    run(args)


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find an RFID reader and print scanned tags."
    )
    parser.add_argument("--config", "-c", help="JSON config file")
    parser.add_argument(
        "--hardware",
        "-H",
        action="append",
        default=[],
        help="extra description text identifying a reader (repeatable)",
    )
    parser.add_argument("--marker", help="port marker in device names")
    parser.add_argument("--baud", "-b", type=int, help="serial baud rate")
    parser.add_argument(
        "--list", "-l", action="store_true", help="list devices and exit"
    )
    parser.add_argument(
        "--count",
        "-n",
        type=_tag_count,
        default=0,
        help="exit after this many tags (0 = run until interrupted)",
    )
    return parser


def run(args: argparse.Namespace) -> None:
    config = rfid_probe.load_config(args.config)
    match_opts, session_opts = config.match, config.session
    if args.hardware:
        ids = [*match_opts.hardware_ids, *args.hardware]
        match_opts = match_opts.model_copy(update={"hardware_ids": ids})
    if args.marker:
        match_opts = match_opts.model_copy(update={"port_marker": args.marker})
    if args.baud:
        session_opts = session_opts.model_copy(update={"baud": args.baud})

    matcher = rfid_probe.HardwareMatcher(match_opts)
    logging.info("📡 Starting RFID reader detection")
    records = rfid_probe.scan_devices()

    if args.list:
        for record in records:
            print(format_line(record, matcher))
        return

    found = matcher.find_hardware(records)
    if not found:
        logging.error(NOT_FOUND)
        return

    logging.info("🔌 Found RFID reader at %s\n%s", found.device_name, found)

    decoder = rfid_probe.TagDecoder()
    with rfid_probe.ReaderSession(
        found.port_name,
        session_opts,
        on_data=decoder,
        on_error=log_serial_error,
    ) as session:
        logging.info("✅ %s open: %s", session.port_name, session.is_open)
        count = 0
        while not args.count or count < args.count:
            try:
                tag = decoder.tags.get(timeout=0.5)
            except queue.Empty:
                continue
            print(tag, flush=True)
            count += 1


def _tag_count(value: str) -> int:
    count = int(value)
    if count < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or more: {count}")
    return count


def log_serial_error(
    session: rfid_probe.ReaderSession, error: rfid_probe.TransportError
) -> None:
    logging.warning("⚠️ Serial error: %s", error)


def format_line(
    record: rfid_probe.DeviceRecord, matcher: rfid_probe.HardwareMatcher
) -> str:
    marker = matcher.options.port_marker in record.name
    words = [f"{record.name}✅" if marker else record.name]
    if record.description is None:
        words.append("(no description)")
    else:
        words.append(repr(record.description))
    words.extend(f"{h}✅" for h in matcher.matching_ids(record))
    if matcher.matches(record):
        words.append(f"-> {matcher.port_name(record)}")
    return " ".join(words)


if __name__ == "__main__":
    main()
