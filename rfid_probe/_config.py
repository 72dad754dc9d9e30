import logging
import os
import pathlib

import pydantic

from rfid_probe import _exceptions
from rfid_probe import _matcher
from rfid_probe import _session

log = logging.getLogger("rfid_probe.config")


class ProbeConfig(pydantic.BaseModel):
    """Everything about the probe that isn't hard-coded"""

    model_config = pydantic.ConfigDict(extra="forbid")

    match: _matcher.MatchOptions = _matcher.MatchOptions()
    session: _session.SessionOptions = _session.SessionOptions()


def load_config(path: str | os.PathLike | None = None) -> ProbeConfig:
    """Reads 'path' (or $RFID_PROBE_CONFIG) as JSON, or returns defaults"""

    path = path or os.getenv("RFID_PROBE_CONFIG")
    if not path:
        log.debug("No config file, using defaults")
        return ProbeConfig()

    try:
        config = ProbeConfig.model_validate_json(pathlib.Path(path).read_text())
    except (OSError, pydantic.ValidationError) as ex:
        raise _exceptions.ConfigInvalid(f"Can't read config {path}") from ex

    log.debug("Loaded %s: %s", path, config)
    return config
