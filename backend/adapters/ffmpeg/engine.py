"""FFmpegEngineAdapter: transcoder engine backed by ffmpeg/ffprobe subprocesses.

Each instance owns a private working-storage directory, so concurrent
coordinators never share temporary names. Progress is read from ffmpeg's
``-progress pipe:1`` key/value stream on stdout; stderr is forwarded line by
line as the engine log.
"""

import os
import re
import shutil
import stat
import logging
import tempfile
import threading
import subprocess
from collections import deque
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests

from ports.transcoder import (
    EngineAborted,
    EngineComponents,
    EngineExecError,
    LogHandler,
    ProgressHandler,
    TranscoderPort,
)

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = os.path.join(tempfile.gettempdir(), "echo-minutes-engine")
DOWNLOAD_TIMEOUT = 60
STDERR_TAIL_LINES = 20

_TIME_KEYS = ("out_time_us", "out_time_ms")
_VALID_NAME = re.compile(r"^[\w.\-]+$")


def parse_progress_line(line: str, duration: Optional[float]) -> Optional[tuple[float, Optional[float]]]:
    """Turn one ``-progress`` line into (fraction, seconds_processed).

    ffmpeg reports ``out_time_ms`` in microseconds too, so both keys are
    treated the same. Returns None for lines that carry no progress.
    """
    key, sep, value = line.strip().partition("=")
    if not sep:
        return None
    if key == "progress" and value == "end":
        return 1.0, duration
    if key in _TIME_KEYS:
        try:
            seconds = int(value) / 1_000_000
        except ValueError:
            return None
        if not duration or duration <= 0:
            return None
        return seconds / duration, seconds
    return None


def input_name_from_args(args: list[str]) -> Optional[str]:
    for i, arg in enumerate(args[:-1]):
        if arg == "-i":
            return args[i + 1]
    return None


class FFmpegEngineAdapter(TranscoderPort):
    def __init__(self, cache_dir: Optional[str] = None, download_timeout: int = DOWNLOAD_TIMEOUT):
        self._cache_dir = cache_dir or DEFAULT_CACHE_DIR
        self._download_timeout = download_timeout
        self._ffmpeg: Optional[str] = None
        self._ffprobe: Optional[str] = None
        self._workdir: Optional[Path] = None
        self._process: Optional[subprocess.Popen] = None
        self._progress_handlers: list[ProgressHandler] = []
        self._log_handlers: list[LogHandler] = []
        self._lock = threading.Lock()
        self._loaded = False
        self._terminated = False

    def load(self, components: EngineComponents) -> None:
        if self._terminated:
            raise RuntimeError("Engine instance was terminated and cannot be reloaded")

        self._ffmpeg = self._resolve(components.core)
        self._ffprobe = self._resolve(components.probe)

        result = subprocess.run([self._ffmpeg, "-version"], capture_output=True, text=True)
        if result.returncode != 0:
            raise RuntimeError(f"ffmpeg is not runnable: {result.stderr.strip()}")
        version = result.stdout.splitlines()[0] if result.stdout else "unknown version"

        root = components.worker or None
        if root:
            Path(root).mkdir(parents=True, exist_ok=True)
        self._workdir = Path(tempfile.mkdtemp(prefix="engine-", dir=root))
        self._loaded = True
        logger.info(f"Transcoder engine ready ({version}), working storage {self._workdir}")

    def is_loaded(self) -> bool:
        return self._loaded

    def terminate(self) -> None:
        with self._lock:
            self._terminated = True
            self._loaded = False
            process = self._process
            workdir, self._workdir = self._workdir, None

        if process is not None and process.poll() is None:
            logger.info("Terminating running ffmpeg process")
            process.kill()
        if workdir is not None:
            shutil.rmtree(workdir, ignore_errors=True)

    def _resolve(self, location: str) -> str:
        if location.startswith(("http://", "https://")):
            return self._fetch(location)
        path = shutil.which(location)
        if path is None:
            raise FileNotFoundError(f"Engine component not found: {location}")
        return path

    def _fetch(self, url: str) -> str:
        name = Path(urlparse(url).path).name or "component"
        target = Path(self._cache_dir) / name
        if target.exists():
            return str(target)

        target.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Fetching engine component {url}")
        try:
            response = requests.get(url, timeout=self._download_timeout)
            response.raise_for_status()
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise ConnectionError(f"failed to fetch {url}: {e}") from e

        partial = target.with_suffix(target.suffix + ".part")
        partial.write_bytes(response.content)
        partial.chmod(partial.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        partial.replace(target)
        return str(target)

    def _path(self, name: str) -> Path:
        if not self._loaded or self._workdir is None:
            raise RuntimeError("Transcoder engine is not loaded")
        if not _VALID_NAME.match(name):
            raise ValueError(f"Invalid working-storage name: {name!r}")
        return self._workdir / name

    def write_file(self, name: str, data: bytes) -> None:
        self._path(name).write_bytes(data)

    def read_file(self, name: str) -> bytes:
        return self._path(name).read_bytes()

    def delete_file(self, name: str) -> None:
        if self._workdir is None:
            return
        self._path(name).unlink(missing_ok=True)

    def on_progress(self, handler: ProgressHandler) -> None:
        self._progress_handlers.append(handler)

    def on_log(self, handler: LogHandler) -> None:
        self._log_handlers.append(handler)

    def _emit_progress(self, fraction: float, seconds: Optional[float]) -> None:
        for handler in self._progress_handlers:
            handler(fraction, seconds)

    def _emit_log(self, message: str) -> None:
        for handler in self._log_handlers:
            handler(message)

    def _probe_duration(self, name: Optional[str]) -> Optional[float]:
        if not name or self._workdir is None:
            return None
        cmd = [
            self._ffprobe, "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            name,
        ]
        result = subprocess.run(cmd, cwd=self._workdir, capture_output=True, text=True)
        try:
            return float(result.stdout.strip())
        except ValueError:
            logger.warning(f"Could not probe duration of {name}: {result.stderr.strip()}")
            return None

    def exec(self, args: list[str]) -> None:
        if self._terminated:
            raise EngineAborted("Transcoder engine was terminated")
        if not self._loaded:
            raise RuntimeError("Transcoder engine is not loaded")
        duration = self._probe_duration(input_name_from_args(args))

        cmd = [self._ffmpeg, "-y", "-nostdin", "-hide_banner", *args]
        logger.debug(f"Running: {' '.join(cmd)}")

        with self._lock:
            if self._terminated:
                raise EngineAborted("Transcoder engine was terminated")
            process = subprocess.Popen(
                cmd,
                cwd=self._workdir,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                bufsize=1,
            )
            self._process = process

        tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)

        def _drain_stderr():
            for line in process.stderr:
                line = line.rstrip()
                if line:
                    tail.append(line)
                    self._emit_log(line)

        reader = threading.Thread(target=_drain_stderr, name="ffmpeg-log", daemon=True)
        reader.start()

        try:
            for line in process.stdout:
                parsed = parse_progress_line(line, duration)
                if parsed is not None:
                    self._emit_progress(*parsed)
            returncode = process.wait()
        finally:
            if process.poll() is None:
                process.kill()
                process.wait()
            reader.join(timeout=5)
            with self._lock:
                self._process = None
                aborted = self._terminated

        if aborted:
            raise EngineAborted("ffmpeg was terminated")
        if returncode != 0:
            last = tail[-1] if tail else "no output"
            raise EngineExecError(f"ffmpeg exited with code {returncode}: {last}")
