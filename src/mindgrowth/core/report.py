"""
Report assembler: split a generated markdown report into named sections.

Grammar (line based):
    report   := preamble section*
    section  := heading body
    heading  := "## " title        (exactly two '#', then whitespace)
    body     := every line up to the next heading or end of text

The preamble (including a "# " title line) is discarded. Absent sections
produce no entry at all.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Tuple

from ..content.templates import REPORT_SECTIONS

_HEADING = re.compile(r"^##(?!#)\s+(?P<title>.+?)\s*$")


def parse_report(text: Optional[str]) -> Dict[str, str]:
    """Map section title -> stripped body. Later duplicates win."""
    if not text:
        return {}

    sections: Dict[str, str] = {}
    title: Optional[str] = None
    body: List[str] = []

    for line in text.splitlines():
        match = _HEADING.match(line.strip())
        if match:
            if title is not None:
                sections[title] = "\n".join(body).strip()
            title = match.group("title")
            body = []
        elif title is not None:
            body.append(line)

    if title is not None:
        sections[title] = "\n".join(body).strip()
    return sections


def report_sections(
    parsed: Dict[str, str],
    titles: Iterable[str] = REPORT_SECTIONS,
) -> List[Tuple[str, str]]:
    """The expected sections in display order; missing or empty ones are skipped."""
    return [(t, parsed[t]) for t in titles if parsed.get(t)]
