# backend/app/services/config_parser.py
import logging
import re
from typing import Any

from ..models import ResourceQuantity

logger = logging.getLogger(__name__)

CPU_PATTERN = re.compile(r"([0-9]+)\s*(core|CPU)", re.IGNORECASE)
RAM_PATTERN = re.compile(r"([0-9]+)\s*(GB|GB RAM)", re.IGNORECASE)
STORAGE_MARKER = "storage:"
STORAGE_PATTERN = re.compile(r"([0-9]+)\s*(gb|g|tb)", re.IGNORECASE)
STORAGE_FALLBACK_PATTERN = re.compile(r"([0-9]+)\s*(GB|G)\s*storage", re.IGNORECASE)

GB_PER_TB = 1024


def _first_int(pattern: re.Pattern, text: str) -> int:
    match = pattern.search(text)
    return int(match.group(1)) if match else 0


def _parse_storage(text: str) -> int:
    """Sum every size after the ``storage:`` marker, else use the ``<n>GB storage`` form."""
    segments = text.lower().split(STORAGE_MARKER)
    storage_part = segments[1] if len(segments) > 1 else ""

    total = 0
    matched = False
    for match in STORAGE_PATTERN.finditer(storage_part):
        matched = True
        value = int(match.group(1))
        if match.group(2).lower() == "tb":
            total += value * GB_PER_TB
        else:
            total += value
    if matched:
        return total

    logger.debug("No sizes after storage marker, trying fallback form: %r", text)
    return _first_int(STORAGE_FALLBACK_PATTERN, text)


def parse_config(configuration_text: Any) -> ResourceQuantity:
    """
    Extract CPU cores, RAM and storage (GB) from a free-text server description
    such as ``"CPU: 8 core; RAM 16GB; storage: 100GB"``.

    CPU and RAM take the first match only; storage sums every size listed after
    the marker. Unmatched fields are 0 and the function never raises.
    """
    if configuration_text is None:
        text = ""
    elif isinstance(configuration_text, str):
        text = configuration_text
    else:
        text = str(configuration_text)

    return ResourceQuantity(
        cpu_cores=_first_int(CPU_PATTERN, text),
        ram_gb=_first_int(RAM_PATTERN, text),
        storage_gb=_parse_storage(text),
    )
