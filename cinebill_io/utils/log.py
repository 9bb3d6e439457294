"""Loggers for the cinebill_io package.

I/O modules log under ``cinebill.io.<name>`` so their records reach the
handlers installed by :func:`cinebill.core.logger.get_logger` (the shared
``<work>/logs/cinebill.log`` file and stderr). Structured ``extra`` fields
are folded into the message text, since the shared formatter has no
placeholders for them.
"""

from __future__ import annotations

import logging
from typing import Any, MutableMapping

from cinebill.core.logger import LOGGER_NAME

IO_LOGGER_NAME = f"{LOGGER_NAME}.io"


class FieldsAdapter(logging.LoggerAdapter):
    """Append ``extra`` fields to the message as ``key=value`` pairs."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        fields = kwargs.pop("extra", None) or {}
        if fields:
            pairs = " ".join(f"{key}={value}" for key, value in fields.items())
            msg = f"{msg} [{pairs}]"
        return msg, kwargs


def get_logger(name: str) -> FieldsAdapter:
    """Return the ``cinebill.io.<name>`` logger wrapped for structured fields."""

    return FieldsAdapter(logging.getLogger(f"{IO_LOGGER_NAME}.{name}"), {})
