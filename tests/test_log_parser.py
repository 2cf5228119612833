from session.log_parser import (
    parse_log_metrics,
    extract_fps_samples,
    average_fps,
    estimate_frame_rate,
)
from session.models import StreamMetrics

from conftest import SAMPLE_PROBE_LOG


def _progress(*samples):
    return "\n".join(f"frame=  {i * 10} fps= {fps} q=-0.0 size=N/A" for i, fps in enumerate(samples))


def test_full_probe_log():
    metrics = parse_log_metrics(SAMPLE_PROBE_LOG)
    assert metrics == StreamMetrics(
        real_fps=30.0,
        estimated_frame_rate=15,
        resolution="1920x1080",
        duration="00:01:05.00",
        bitrate="512.0 kb/s",
    )


def test_zero_samples_are_ignored_in_average():
    metrics = parse_log_metrics(_progress(0, 0, 24, 0, 26))
    assert metrics.real_fps == 25.0
    assert metrics.estimated_frame_rate == 13


def test_all_zero_or_absent_samples():
    assert parse_log_metrics(_progress(0, 0, 0)).real_fps == 0
    assert parse_log_metrics(_progress(0, 0, 0)).estimated_frame_rate == 0
    assert parse_log_metrics("no progress here").real_fps == 0
    assert parse_log_metrics("no progress here").estimated_frame_rate == 0


def test_missing_fields_default_to_not_available():
    metrics = parse_log_metrics("")
    assert metrics.resolution == "N/A"
    assert metrics.duration == "N/A"
    assert metrics.bitrate == "N/A"


def test_parse_is_idempotent():
    assert parse_log_metrics(SAMPLE_PROBE_LOG) == parse_log_metrics(SAMPLE_PROBE_LOG)


def test_samples_keep_order_and_zeros():
    assert extract_fps_samples("fps=0 fps= 12 fps=  7 fps=30.5") == [0, 12, 7, 30]


def test_average_rounds_half_up_to_one_decimal():
    assert average_fps([10, 11, 11]) == 10.7
    assert average_fps([1, 2, 2, 2]) == 1.8  # 1.75 rounds up
    assert average_fps([24, 25]) == 24.5


def test_estimated_rate_is_ceiling_of_half():
    assert estimate_frame_rate(25.0) == 13
    assert estimate_frame_rate(24.0) == 12
    assert estimate_frame_rate(0.4) == 1
    assert estimate_frame_rate(0) == 0


def test_first_resolution_after_comma_wins():
    log = "Stream #0:0: Video: h264, yuv420p, 1280x720, 25 fps\nStream #0:1: Video: h264, 640x480"
    assert parse_log_metrics(log).resolution == "1280x720"


def test_resolution_requires_leading_comma():
    assert parse_log_metrics("size 1920x1080 only").resolution == "N/A"


def test_bitrate_without_per_second_unit():
    assert parse_log_metrics("bitrate: 2048 kb").bitrate == "2048 kb"
