"""Source-context extraction around a matched line."""

from __future__ import annotations

from typing import List, Sequence

from vlayer.findings.models import ContextLine


def get_context_lines(lines: Sequence[str], index: int, size: int = 2) -> List[ContextLine]:
    """Return up to *size* lines either side of 0-based *index*."""
    start = max(0, index - size)
    end = min(len(lines), index + size + 1)
    return [
        ContextLine(line_number=i + 1, content=lines[i], is_match=(i == index))
        for i in range(start, end)
    ]
