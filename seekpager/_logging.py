from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .keyset import CursorElement

# Create the library logger
logger = logging.getLogger("seekpager")

# Add NullHandler to prevent "No handlers could be found" warnings
# if the application doesn't configure logging.
logger.addHandler(logging.NullHandler())


def redact_elements(elements: Iterable[CursorElement]) -> str:
    """
    Redacts cursor element values for logging.

    Columns stay readable; each value is replaced by a short hash so that
    cursors can be correlated across log lines without revealing row data.
    """
    redacted = {
        element.column: hashlib.sha256(str(element.value).encode("utf-8")).hexdigest()[:8]
        for element in elements
    }
    return str(redacted)
