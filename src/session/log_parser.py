"""
Stream metrics extraction from ffmpeg log text

Token grammar (first match wins unless noted):
    fps sample   "fps=" [spaces] DIGITS               every occurrence, in order
    resolution   ", " W "x" H        (2-5 digits each)
    duration     "Duration: " HH ":" MM ":" SS "." FF
    bitrate      "bitrate: " NUMBER [ "." DIGITS ] " " UNIT [ "/" UNIT ]
"""

import math
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import List

from .models import StreamMetrics, NOT_AVAILABLE

FPS_PATTERN = re.compile(r"fps=\s*(\d+)")
RESOLUTION_PATTERN = re.compile(r", (\d{2,5}x\d{2,5})")
DURATION_PATTERN = re.compile(r"Duration: (\d{2}:\d{2}:\d{2}\.\d{2})")
BITRATE_PATTERN = re.compile(r"bitrate: (\d+(?:\.\d+)? \w+(?:/\w+)?)")


def extract_fps_samples(log_text: str) -> List[int]:
    """All fps samples in order of appearance, zeros included"""
    return [int(value) for value in FPS_PATTERN.findall(log_text or "")]


def average_fps(samples: List[int]) -> float:
    """Mean of the non-zero samples rounded half-up to one decimal, 0.0 if none"""
    non_zero = [s for s in samples if s != 0]
    if not non_zero:
        return 0.0
    mean = Decimal(sum(non_zero)) / Decimal(len(non_zero))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def estimate_frame_rate(real_fps: float) -> int:
    # Request half the observed rate to keep the download bandwidth-friendly
    if real_fps <= 0:
        return 0
    return math.ceil(real_fps / 2)


def _first(pattern: re.Pattern, log_text: str) -> str:
    match = pattern.search(log_text)
    return match.group(1) if match else NOT_AVAILABLE


def parse_log_metrics(log_text: str) -> StreamMetrics:
    """Parse a complete probe log into StreamMetrics; missing tokens become "N/A" """
    log_text = log_text or ""
    real_fps = average_fps(extract_fps_samples(log_text))
    return StreamMetrics(
        real_fps=real_fps,
        estimated_frame_rate=estimate_frame_rate(real_fps),
        resolution=_first(RESOLUTION_PATTERN, log_text),
        duration=_first(DURATION_PATTERN, log_text),
        bitrate=_first(BITRATE_PATTERN, log_text),
    )
