"""
Stream session data structures and models
"""

from collections import deque
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, List, Optional, Tuple


class SessionState(Enum):
    """Stream session state"""
    IDLE = "idle"
    PROBING = "probing"
    DOWNLOADING = "downloading"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    FAILED = "failed"


NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class StreamMetrics:
    """Stream statistics scraped from one probe log"""
    real_fps: float = 0.0
    estimated_frame_rate: int = 0
    resolution: str = NOT_AVAILABLE
    duration: str = NOT_AVAILABLE
    bitrate: str = NOT_AVAILABLE

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class DownloadJob:
    """A single download/transcode job; output_path is fixed before launch"""
    source_url: str
    frame_rate: int
    output_path: str

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class JobResult:
    """Final outcome of a download job"""
    job: DownloadJob
    status: SessionState  # COMPLETED, FAILED or CANCELLED
    return_code: Optional[int] = None
    diagnostic: str = ""

    @property
    def success(self) -> bool:
        return self.status == SessionState.COMPLETED

    def to_dict(self) -> Dict:
        return {
            "job": self.job.to_dict(),
            "status": self.status.value,
            "success": self.success,
            "return_code": self.return_code,
            "diagnostic": self.diagnostic,
        }


class LogBuffer:
    """
    Ordered log lines for one probe/download attempt.

    Lines carry a cursor that keeps counting across drops, so readers can poll
    with read_since() and never see a line twice. Only the newest max_lines are kept.
    """

    def __init__(self, max_lines: int = 5000):
        self._lines = deque(maxlen=max_lines)
        self._total = 0

    def append(self, line: str) -> None:
        self._lines.append(line)
        self._total += 1

    def clear(self) -> None:
        # The cursor keeps counting so a reader polling across attempts never rereads
        self._lines.clear()

    @property
    def total(self) -> int:
        """Cursor value after the newest line"""
        return self._total

    def lines(self) -> List[str]:
        return list(self._lines)

    def text(self) -> str:
        return "\n".join(self._lines)

    def read_since(self, cursor: int = 0) -> Tuple[List[str], int]:
        """Lines appended at or after cursor still retained, and the next cursor"""
        first_kept = self._total - len(self._lines)
        start = max(cursor, first_kept) - first_kept
        if start >= len(self._lines):
            return [], self._total
        return list(self._lines)[start:], self._total

    def __len__(self) -> int:
        return len(self._lines)
