import asyncio

import pytest


SAMPLE_PROBE_LOG = (
    "Input #0, mjpeg, from 'http://192.168.1.105/stream':\n"
    "  Duration: 00:01:05.00, start: 0.000000, bitrate: 512.0 kb/s\n"
    "  Stream #0:0: Video: mjpeg (Baseline), yuvj422p(pc, bt470bg/unknown/unknown), 1920x1080, 25 tbr\n"
    "frame=    0 fps= 0 q=0.0 size=N/A time=00:00:00.00 bitrate=N/A speed=   0x\r"
    "frame=   15 fps= 30 q=-0.0 size=N/A time=00:00:00.50 bitrate=N/A speed=1.0x\r"
    "frame=   45 fps= 30 q=-0.0 size=N/A time=00:00:01.50 bitrate=N/A speed=1.0x\n"
)


class FakeProcess:
    """Stands in for asyncio.subprocess.Process; output is fed by the test"""

    def __init__(self, output: str = "", return_code: int = 0, hold_open: bool = False,
                 ignore_terminate: bool = False):
        self.stdout = asyncio.StreamReader()
        self.returncode = None
        self.terminated = False
        self.killed = False
        self._exit_code = return_code
        self._ignore_terminate = ignore_terminate
        self._exited = asyncio.Event()
        if output:
            self.feed(output)
        if not hold_open:
            self.finish()

    def feed(self, text: str):
        self.stdout.feed_data(text.encode())

    def finish(self, code=None):
        if self.returncode is not None:
            return
        if code is not None:
            self._exit_code = code
        self.stdout.feed_eof()
        self.returncode = self._exit_code
        self._exited.set()

    async def wait(self):
        await self._exited.wait()
        return self.returncode

    def terminate(self):
        self.terminated = True
        if not self._ignore_terminate:
            self.finish(-15)

    def kill(self):
        self.killed = True
        self.finish(-9)


class FakeProcessFactory:
    """process_factory for StreamSession; pops prepared processes (or builders) per launch"""

    def __init__(self, *processes):
        self.processes = list(processes)
        self.calls = []

    async def __call__(self, *args):
        self.calls.append(list(args))
        item = self.processes.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item()
        return item


@pytest.fixture
def session_config(tmp_path):
    return {
        'downloads_root': str(tmp_path),
        'download_folder': 'DownloadedVideos',
        'output_base_name': 'output',
        'output_extension': 'mp4',
        'ffmpeg_path': 'ffmpeg',
        'probe_seconds': 10,
        'probe_timeout_seconds': 2,
        'stop_timeout_seconds': 0.05,
        'max_log_lines': 100,
    }


async def settle(delay: float = 0.02):
    """Let background readers drain what was fed"""
    await asyncio.sleep(delay)
