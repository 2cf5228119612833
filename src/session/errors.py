"""
Stream session error taxonomy
"""

from typing import Optional


class StreamSessionError(Exception):
    """Base class for probe/download/session failures"""


class SessionBusyError(StreamSessionError):
    """A probe or download is already in flight"""

    def __init__(self, state):
        super().__init__(f"Session busy ({state.value})")
        self.state = state


class ProbeFailedError(StreamSessionError):
    """Probe subprocess could not run or exited unsuccessfully"""

    def __init__(self, message: str, return_code: Optional[int] = None, log_tail: str = ""):
        super().__init__(message)
        self.return_code = return_code
        self.log_tail = log_tail


class DownloadError(StreamSessionError):
    """Base class for download failures"""


class InvalidFrameRateError(DownloadError):
    def __init__(self, frame_rate):
        super().__init__(f"Invalid frame rate: {frame_rate!r}")
        self.frame_rate = frame_rate


class DirectoryCreateFailedError(DownloadError):
    def __init__(self, directory: str, reason: str):
        super().__init__(f"Cannot create download directory {directory}: {reason}")
        self.directory = directory


class DownloadFailedError(DownloadError):
    """Download subprocess could not be launched"""

    def __init__(self, message: str, output_path: Optional[str] = None, return_code: Optional[int] = None):
        super().__init__(message)
        self.output_path = output_path
        self.return_code = return_code
