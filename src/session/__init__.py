"""
Stream session module: ffmpeg probe/download orchestration
"""

from .stream_session import StreamSession
from .models import SessionState, StreamMetrics, DownloadJob, JobResult, LogBuffer
from .log_parser import parse_log_metrics
from .file_allocator import allocate_output_path
from .errors import (
    StreamSessionError,
    SessionBusyError,
    ProbeFailedError,
    DownloadError,
    InvalidFrameRateError,
    DirectoryCreateFailedError,
    DownloadFailedError,
)

__all__ = [
    'StreamSession', 'SessionState', 'StreamMetrics', 'DownloadJob', 'JobResult', 'LogBuffer',
    'parse_log_metrics', 'allocate_output_path',
    'StreamSessionError', 'SessionBusyError', 'ProbeFailedError', 'DownloadError',
    'InvalidFrameRateError', 'DirectoryCreateFailedError', 'DownloadFailedError',
]
