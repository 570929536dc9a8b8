"""TranscoderPort: abstract interface for the media transcoding engine."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional


# (fraction, seconds_processed)
ProgressHandler = Callable[[float, Optional[float]], None]
LogHandler = Callable[[str], None]


class EngineAborted(Exception):
    """Raised by exec() when terminate() interrupted a running transcode."""


class EngineExecError(Exception):
    """Raised by exec() when the transcode itself failed."""


@dataclass(frozen=True)
class EngineComponents:
    """Locations of the engine's runtime components.

    Each entry is a local path, a bare executable name, or an http(s) URL.
    """
    core: str
    probe: str
    worker: str


class TranscoderPort(ABC):
    @abstractmethod
    def load(self, components: EngineComponents) -> None:
        """Load runtime components. Network failures raise ConnectionError."""

    @abstractmethod
    def is_loaded(self) -> bool:
        """Whether load() completed and terminate() has not been called."""

    @abstractmethod
    def write_file(self, name: str, data: bytes) -> None:
        """Store data in working storage under name."""

    @abstractmethod
    def read_file(self, name: str) -> bytes:
        """Read an entry back from working storage."""

    @abstractmethod
    def delete_file(self, name: str) -> None:
        """Remove an entry from working storage. Missing entries are ignored."""

    @abstractmethod
    def exec(self, args: list[str]) -> None:
        """Run a transcode with a command-like argument list."""

    @abstractmethod
    def on_progress(self, handler: ProgressHandler) -> None:
        """Subscribe to fractional progress events emitted during exec()."""

    @abstractmethod
    def on_log(self, handler: LogHandler) -> None:
        """Subscribe to the engine's textual log stream."""

    @abstractmethod
    def terminate(self) -> None:
        """Abort any running exec(), release resources, invalidate the instance."""
