"""SRT caption helpers."""

import re
from typing import Optional

from pydantic import BaseModel, Field

_TIMESTAMP_RE = re.compile(r"(\d{2}):(\d{2}):(\d{2}),(\d{3})")
_CUE_TIMING_RE = re.compile(
    r"^\s*(\d{2}:\d{2}:\d{2},\d{3})\s*-->\s*(\d{2}:\d{2}:\d{2},\d{3})"
)


class Cue(BaseModel):
    """One numbered subtitle cue."""

    index: int
    start_seconds: float = Field(..., ge=0)
    end_seconds: float = Field(..., ge=0)
    text: str


def timestamp_to_seconds(timestamp: str) -> float:
    """Convert ``HH:MM:SS,mmm`` to seconds."""
    match = _TIMESTAMP_RE.fullmatch(timestamp.strip())
    if not match:
        raise ValueError(f"Invalid SRT timestamp: {timestamp!r}")
    hours, minutes, seconds, millis = (int(part) for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds + millis / 1000


def parse_srt(text: str) -> list[Cue]:
    """
    Parse SRT text into cues.

    Blocks are separated by blank lines; each block is an index line, a
    ``start --> end`` line and one or more text lines. Blocks without a
    valid timing line are skipped.
    """
    cues = []
    blocks = re.split(r"\r?\n\s*\r?\n", text.strip())
    for block in blocks:
        lines = [line for line in block.splitlines() if line.strip()]
        if len(lines) < 2:
            continue
        timing_at = 1 if lines[0].strip().isdigit() else 0
        timing = _CUE_TIMING_RE.match(lines[timing_at])
        if not timing:
            continue
        index = int(lines[0]) if timing_at == 1 else len(cues) + 1
        cues.append(
            Cue(
                index=index,
                start_seconds=timestamp_to_seconds(timing.group(1)),
                end_seconds=timestamp_to_seconds(timing.group(2)),
                text="\n".join(line.strip() for line in lines[timing_at + 1:]),
            )
        )
    return cues


def srt_end_seconds(text: Optional[str]) -> Optional[float]:
    """Return the last timestamp in an SRT track, or None when there is none."""
    if not text:
        return None
    matches = _TIMESTAMP_RE.findall(text)
    if not matches:
        return None
    hours, minutes, seconds, millis = (int(part) for part in matches[-1])
    return hours * 3600 + minutes * 60 + seconds + millis / 1000
