"""
Stream session: owns the ffmpeg subprocess for probe and download jobs
"""

import asyncio
import codecs
import logging
import math
import re
import time
from collections import deque
from pathlib import Path
from typing import AsyncIterator, Callable, Dict, List, Optional

from .commands import build_probe_command, build_download_command
from .errors import (
    SessionBusyError,
    ProbeFailedError,
    InvalidFrameRateError,
    DirectoryCreateFailedError,
    DownloadFailedError,
)
from .file_allocator import allocate_output_path
from .log_parser import parse_log_metrics
from .models import SessionState, StreamMetrics, DownloadJob, JobResult, LogBuffer

logger = logging.getLogger(__name__)

LINE_SPLIT = re.compile(r"[\r\n]")
READ_CHUNK = 4096
DIAGNOSTIC_LINES = 20


async def iter_log_lines(stream: asyncio.StreamReader) -> AsyncIterator[str]:
    """Yield non-empty lines; ffmpeg ends progress lines with \\r, so both separators count"""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""
    while True:
        chunk = await stream.read(READ_CHUNK)
        if not chunk:
            break
        pending += decoder.decode(chunk)
        parts = LINE_SPLIT.split(pending)
        pending = parts.pop()
        for part in parts:
            if part.strip():
                yield part.rstrip()
    pending += decoder.decode(b"", final=True)
    if pending.strip():
        yield pending.rstrip()


class StreamSession:
    """
    Single-slot orchestrator for probe and download subprocesses.

    At most one subprocess is attached at a time. Starting a probe or download
    while one is in flight raises SessionBusyError. Every operation ends with the
    session back in IDLE; the terminal outcome of the last download is kept in
    last_outcome / last_result.
    """

    def __init__(self, config: Dict, process_factory: Optional[Callable] = None):
        self.config = config
        self.ffmpeg_path = config.get('ffmpeg_path', 'ffmpeg')
        self.downloads_root = Path(config.get('downloads_root', '.')).expanduser()
        self.download_folder = config.get('download_folder', 'DownloadedVideos')
        self.output_base_name = config.get('output_base_name', 'output')
        self.output_extension = config.get('output_extension', 'mp4')
        self.probe_seconds = config.get('probe_seconds', 10)
        self.probe_timeout_seconds = config.get('probe_timeout_seconds', 30)
        self.stop_timeout_seconds = config.get('stop_timeout_seconds', 5)

        # process_factory(*args) -> asyncio.subprocess.Process
        self.process_factory = process_factory or self._spawn

        self.state = SessionState.IDLE
        self.last_outcome: Optional[SessionState] = None
        self.log = LogBuffer(config.get('max_log_lines', 5000))
        self.current_job: Optional[DownloadJob] = None
        self.last_metrics: Optional[StreamMetrics] = None
        self.last_result: Optional[JobResult] = None
        self.listeners: List[Callable] = []

        self._process = None
        self._attempt = 0  # bumped on every start and on cancel; stale readers stop publishing
        self._job_task: Optional[asyncio.Task] = None
        self._job_done: Optional[asyncio.Future] = None
        self._reapers = set()

    @property
    def busy(self) -> bool:
        return self.state in (SessionState.PROBING, SessionState.DOWNLOADING)

    @property
    def download_directory(self) -> Path:
        return self.downloads_root / self.download_folder

    def add_listener(self, callback: Callable[[str, object], None]):
        """Register callback(event, payload); events are "log" (str) and "result" (JobResult)"""
        self.listeners.append(callback)

    def _notify(self, event: str, payload) -> None:
        for callback in self.listeners:
            try:
                callback(event, payload)
            except Exception as e:
                logger.error(f"Session listener failed on {event}: {e}")

    async def _spawn(self, *args):
        return await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )

    def _begin(self, state: SessionState) -> int:
        if self.busy:
            raise SessionBusyError(self.state)
        self.state = state
        self.log.clear()
        self._attempt += 1
        return self._attempt

    async def _pump_output(self, process, attempt: int, sink=None) -> int:
        """Copy process output into the log buffer until EOF, then wait for exit"""
        if process.stdout is not None:
            async for line in iter_log_lines(process.stdout):
                if attempt != self._attempt:
                    continue  # cancelled: keep draining the pipe, publish nothing
                self.log.append(line)
                if sink is not None:
                    sink.append(line)
                self._notify("log", line)
        return await process.wait()

    # ================== PROBE ==================

    async def probe(self, url: str) -> StreamMetrics:
        """
        Run a bounded ffmpeg read of the stream and parse its complete log.

        Raises SessionBusyError if another job is in flight and ProbeFailedError
        when ffmpeg cannot start, times out or exits non-zero.
        """
        attempt = self._begin(SessionState.PROBING)
        process = None
        lines: List[str] = []
        logger.info(f"Probing stream {url}")
        try:
            args = build_probe_command(self.ffmpeg_path, url, self.probe_seconds)
            try:
                process = await self.process_factory(*args)
            except (OSError, ValueError) as e:
                raise ProbeFailedError(f"Cannot launch {self.ffmpeg_path}: {e}")
            self._process = process

            try:
                return_code = await asyncio.wait_for(
                    self._pump_output(process, attempt, lines), self.probe_timeout_seconds
                )
            except asyncio.TimeoutError:
                raise ProbeFailedError(
                    f"Probe timed out after {self.probe_timeout_seconds}s",
                    log_tail="\n".join(lines[-DIAGNOSTIC_LINES:]),
                )

            if return_code != 0:
                raise ProbeFailedError(
                    f"Probe exited with code {return_code}",
                    return_code=return_code,
                    log_tail="\n".join(lines[-DIAGNOSTIC_LINES:]),
                )

            metrics = parse_log_metrics("\n".join(lines))
            self.last_metrics = metrics
            logger.info(f"Probe complete: fps={metrics.real_fps} (suggested {metrics.estimated_frame_rate}), "
                        f"resolution={metrics.resolution}, duration={metrics.duration}, bitrate={metrics.bitrate}")
            return metrics

        except ProbeFailedError as e:
            logger.error(f"Failed to retrieve stream info: {e}")
            raise
        finally:
            if process is not None and process.returncode is None:
                self._kill(process)
            if attempt == self._attempt:
                self._process = None
                self.state = SessionState.IDLE

    # ================== DOWNLOAD ==================

    @staticmethod
    def parse_frame_rate(frame_rate) -> int:
        """Positive frame rate as int; fractional values round up"""
        try:
            value = float(str(frame_rate).strip())
        except (TypeError, ValueError):
            raise InvalidFrameRateError(frame_rate)
        if not math.isfinite(value) or value <= 0:
            raise InvalidFrameRateError(frame_rate)
        return math.ceil(value)

    def _ensure_download_directory(self) -> Path:
        directory = self.download_directory
        if directory.is_dir():
            return directory
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateFailedError(str(directory), str(e))
        logger.info(f"Folder created: {directory}")
        return directory

    async def start_download(self, url: str, frame_rate) -> DownloadJob:
        """
        Launch an ffmpeg transcode of url at frame_rate into a fresh output file.

        Returns once the subprocess is running. The outcome arrives as a JobResult
        through listeners, wait_for_download() and last_result.
        """
        rate = self.parse_frame_rate(frame_rate)
        attempt = self._begin(SessionState.DOWNLOADING)
        loop = asyncio.get_running_loop()
        self._job_done = loop.create_future()
        job = None
        try:
            directory = self._ensure_download_directory()
            # Allocation and launch happen under the busy guard, so no two jobs share a path
            output_path = allocate_output_path(str(directory), self.output_base_name, self.output_extension)
            job = DownloadJob(source_url=url, frame_rate=rate, output_path=output_path)
            self.current_job = job

            args = build_download_command(self.ffmpeg_path, url, rate, output_path)
            try:
                process = await self.process_factory(*args)
            except (OSError, ValueError) as e:
                # ValueError: argv rejected before exec, e.g. an embedded null byte in the URL
                raise DownloadFailedError(f"Cannot launch {self.ffmpeg_path}: {e}", output_path=output_path)

        except Exception as e:
            logger.error(f"Failed to start download: {e}")
            if attempt == self._attempt:
                failed = JobResult(job, SessionState.FAILED, None, str(e)) if job else None
                self._finish_download(failed, SessionState.FAILED)
            if isinstance(e, (DirectoryCreateFailedError, DownloadFailedError)):
                raise
            raise DownloadFailedError(f"Download could not start: {e}", output_path=job.output_path if job else None) from e

        if attempt != self._attempt:
            # cancel() arrived while the process was being spawned
            self._terminate(process)
            return job

        self._process = process
        self._job_task = asyncio.create_task(self._run_download(job, process, attempt))
        logger.info(f"Download started: {url} -> {output_path} at {rate} fps")
        return job

    async def _run_download(self, job: DownloadJob, process, attempt: int) -> None:
        tail = deque(maxlen=DIAGNOSTIC_LINES)
        started = time.time()
        return_code = None
        error = None
        try:
            return_code = await self._pump_output(process, attempt, tail)
        except Exception as e:
            logger.error(f"Download monitor failed for {job.output_path}: {e}")
            error = str(e)
            if process.returncode is None:
                self._kill(process)

        if attempt != self._attempt:
            logger.info(f"Cancelled download process exited with code {return_code}")
            return

        elapsed = time.time() - started
        if return_code == 0 and error is None:
            logger.info(f"Video downloaded successfully in {elapsed:.1f}s, saved as {job.output_path}")
            result = JobResult(job, SessionState.COMPLETED, return_code, f"Saved to {job.output_path}")
        else:
            diagnostic = error or "\n".join(tail) or f"ffmpeg exited with code {return_code}"
            logger.error(f"Failed to download video (code {return_code}), partial output may remain at {job.output_path}")
            result = JobResult(job, SessionState.FAILED, return_code, diagnostic)
        self._finish_download(result, result.status)

    def _finish_download(self, result: Optional[JobResult], outcome: SessionState) -> None:
        self.last_outcome = outcome
        if result is not None:
            self.last_result = result
        self._process = None
        self.current_job = None
        self.state = SessionState.IDLE
        if self._job_done is not None and not self._job_done.done():
            self._job_done.set_result(result)
        if result is not None:
            self._notify("result", result)

    async def wait_for_download(self) -> Optional[JobResult]:
        """Result of the current (or most recent) download"""
        if self._job_done is None:
            return self.last_result
        return await asyncio.shield(self._job_done)

    # ================== CANCELLATION ==================

    def cancel(self) -> bool:
        """
        Stop the running download. No-op (returns False) unless DOWNLOADING.

        The session is IDLE again when this returns; the process gets a terminate
        signal and is killed in the background if it outlives stop_timeout_seconds.
        """
        if self.state != SessionState.DOWNLOADING:
            return False

        process = self._process
        job = self.current_job
        self._attempt += 1  # readers of the old process stop publishing from here on
        self.state = SessionState.CANCELLED
        if process is not None:
            self._terminate(process)

        logger.info("FFmpeg operation has been stopped")
        result = JobResult(job, SessionState.CANCELLED, None, "Cancelled by request") if job else None
        self._finish_download(result, SessionState.CANCELLED)
        return True

    def _terminate(self, process) -> None:
        try:
            process.terminate()
        except ProcessLookupError:
            return
        task = asyncio.create_task(self._reap(process))
        self._reapers.add(task)
        task.add_done_callback(self._reapers.discard)

    def _kill(self, process) -> None:
        try:
            process.kill()
        except ProcessLookupError:
            pass

    async def _reap(self, process) -> None:
        try:
            await asyncio.wait_for(process.wait(), timeout=self.stop_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"ffmpeg did not exit within {self.stop_timeout_seconds}s, killing")
            self._kill(process)
            await process.wait()

    async def shutdown(self) -> None:
        """Cancel any download and wait for background tasks to settle"""
        self.cancel()
        pending = list(self._reapers)
        if self._job_task is not None:
            pending.append(self._job_task)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # ================== STATUS ==================

    def status(self) -> Dict:
        return {
            "state": self.state.value,
            "busy": self.busy,
            "last_outcome": self.last_outcome.value if self.last_outcome else None,
            "current_job": self.current_job.to_dict() if self.current_job else None,
            "last_metrics": self.last_metrics.to_dict() if self.last_metrics else None,
            "last_result": self.last_result.to_dict() if self.last_result else None,
            "log_lines": len(self.log),
            "log_cursor": self.log.total,
        }
