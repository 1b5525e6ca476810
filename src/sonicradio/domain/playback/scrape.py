"""
Now-playing and fault extraction from ffplay's diagnostic output.

ffplay has no query protocol. With `-loglevel verbose` it logs ICY metadata
updates and fatal input errors to stderr; every poll rescans the captured text.
"""

import re
from typing import NamedTuple, Optional

from .errors import FaultKind, StreamFault

TITLE_MARKER = "Metadata update for StreamTitle:"

# Checked in order; any match wins over a title
KNOWN_FAULTS = (
    ("File Not Found", FaultKind.NOT_FOUND),
    ("Failed to resolve", FaultKind.RESOLVE_FAILED),
    ("Invalid data found when processing input", FaultKind.INVALID_DATA),
)

_LINE_BREAK = re.compile(r"[\r\n]")


class ScrapeResult(NamedTuple):
    title: str = ""
    fault: Optional[StreamFault] = None


def _rest_of_line(text: str) -> str:
    match = _LINE_BREAK.search(text)
    if match:
        text = text[: match.start()]
    return text.strip()


def find_fault(output: str) -> Optional[StreamFault]:
    """Return a StreamFault for the first known error present in `output`."""
    for needle, kind in KNOWN_FAULTS:
        index = output.find(needle)
        if index >= 0:
            return StreamFault(kind, _rest_of_line(output[index:]))
    return None


def find_title(output: str) -> str:
    """Text after the most recent title marker, up to the line break."""
    index = output.rfind(TITLE_MARKER)
    if index < 0:
        return ""
    return _rest_of_line(output[index + len(TITLE_MARKER):])


def scan_output(output: str) -> ScrapeResult:
    """Scan the whole captured output. Faults take priority over titles."""
    fault = find_fault(output)
    if fault is not None:
        return ScrapeResult(fault=fault)
    return ScrapeResult(title=find_title(output))
