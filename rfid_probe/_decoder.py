import logging
import queue

from rfid_probe import _session

log = logging.getLogger("rfid_probe.decoding")

DELIMITERS = ("\r\n", "|")


def decode_tag(chunk: str) -> str | None:
    """Strips all delimiters from 'chunk', or None if it has none.

    Chunks are taken as they arrive; a tag split across two reads is not
    reassembled.
    """

    if not any(d in chunk for d in DELIMITERS):
        return None
    for d in DELIMITERS:
        chunk = chunk.replace(d, "")
    return chunk


class TagDecoder:
    """ReaderSession on_data callback that queues decoded tag identifiers"""

    def __init__(self) -> None:
        self.tags: queue.SimpleQueue[str] = queue.SimpleQueue()

    def __repr__(self) -> str:
        return f"TagDecoder(~{self.tags.qsize()} queued)"

    def __call__(self, session: _session.ReaderSession) -> None:
        chunk = session.read_existing()
        tag = decode_tag(chunk)
        if tag is None:
            log.debug("%s: No delimiter, dropping %r", session.port_name, chunk)
        else:
            log.debug("%s: Tag %r", session.port_name, tag)
            self.tags.put(tag)
