"""
ffmpeg command lines for probe and download jobs
"""

from typing import List


def build_stream_url(address: str, stream_path: str = "stream") -> str:
    """Stream endpoint for a discovered device address or base URL"""
    base = address if "://" in address else f"http://{address}"
    return f"{base.rstrip('/')}/{stream_path.lstrip('/')}"


def build_probe_command(ffmpeg_path: str, url: str, probe_seconds: int = 10) -> List[str]:
    """Read the stream for a bounded window, log progress, write nothing"""
    return [
        ffmpeg_path,
        "-re",
        "-analyzeduration", "1M",
        "-probesize", "1M",
        "-i", url,
        "-t", str(probe_seconds),
        "-hide_banner",
        "-f", "null",
        "-",
    ]


def build_download_command(ffmpeg_path: str, url: str, frame_rate: int, output_path: str) -> List[str]:
    return [
        ffmpeg_path,
        "-nostdin",
        "-n",  # never overwrite an existing file
        "-i", url,
        "-r", str(frame_rate),
        output_path,
    ]
