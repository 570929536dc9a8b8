"""PipelineCoordinator: runs convert, transcribe and analyze as one cancellable unit.

The coordinator owns the cancellation token, the progress record and the
transcoder engine handle. It is the only object that reports progress back to
the consumer. Stages run on the caller's thread; cancel() may be called from
any other thread and interrupts a running transcode by tearing the engine down.

Stages run in order: convert, transcribe, analyze. A finished run may start
again with convert and reuses the loaded engine. A failed or cancelled
coordinator is not reusable: start a new one for the next run.
"""

import re
import logging
import threading
from typing import Callable, Optional

from domain.cancellation import CancellationToken
from domain.errors import (
    AnalysisError,
    AuthenticationError,
    ConversionError,
    InitializationError,
    OperationCancelled,
    PipelineStateError,
    TranscriptionError,
)
from domain.models import (
    AudioBlob,
    AudioInput,
    EngineState,
    PipelineState,
    ProgressRecord,
    Stage,
)
from mappers import parse_minutes, record_to_snapshot
from models import MinutesDocument, ProgressSnapshot, StageDetail
from ports.analysis import AnalysisPort
from ports.progress import ProgressPort
from ports.transcoder import EngineAborted, EngineComponents, TranscoderPort
from ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

TARGET_SAMPLE_RATE = 16000
OUTPUT_NAME = "output.wav"
IN_FLIGHT = 0.1

BITRATE_PATTERN = re.compile(r"bitrate=\s*(\d+\.\d+|\d+)\s*kbits/s")
_CREDENTIAL_HINTS = ("api key", "api_key", "apikey")

# stage -> states it may start from; a stage that is not busy has finished
_ALLOWED_FROM = {
    PipelineState.CONVERTING: {PipelineState.IDLE, PipelineState.DONE},
    PipelineState.TRANSCRIBING: {PipelineState.CONVERTING},
    PipelineState.ANALYZING: {PipelineState.TRANSCRIBING},
}


def build_transcode_args(input_name: str, output_name: str = OUTPUT_NAME) -> list[str]:
    """ffmpeg arguments for 16 kHz mono 16-bit PCM WAV with progress on stdout."""
    return [
        "-i", input_name,
        "-ar", str(TARGET_SAMPLE_RATE),
        "-ac", "1",
        "-c:a", "pcm_s16le",
        "-progress", "pipe:1",
        output_name,
    ]


def is_credential_error(exc: BaseException) -> bool:
    """Whether a service failure points at a missing or invalid API key."""
    if getattr(exc, "status_code", None) == 401:
        return True
    message = str(exc).lower()
    return any(hint in message for hint in _CREDENTIAL_HINTS)


def is_connectivity_error(exc: BaseException) -> bool:
    return isinstance(exc, (ConnectionError, TimeoutError)) or "failed to fetch" in str(exc).lower()


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


class PipelineCoordinator:
    def __init__(
        self,
        engine_factory: Callable[[], TranscoderPort],
        transcription: TranscriptionPort,
        analysis: AnalysisPort,
        progress: ProgressPort,
        components: EngineComponents,
        transcription_model: str = "whisper-1",
        transcription_language: str = "auto",
        analysis_model: str = "gpt-4o",
    ):
        self._engine_factory = engine_factory
        self._transcription = transcription
        self._analysis = analysis
        self._progress = progress
        self._components = components
        self._transcription_model = transcription_model
        self._transcription_language = transcription_language
        self._analysis_model = analysis_model

        self._engine: Optional[TranscoderPort] = None
        self._engine_state = EngineState.UNINITIALIZED
        self._token = CancellationToken()
        self._token.on_cancel(self._teardown_engine)
        self._record = ProgressRecord()
        self._state = PipelineState.IDLE
        self._busy = False
        self._lock = threading.Lock()
        # engine log and progress events arrive on different threads
        self._progress_lock = threading.RLock()

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def engine_state(self) -> EngineState:
        return self._engine_state

    @property
    def cancelled(self) -> bool:
        return self._token.cancelled

    @property
    def progress(self) -> ProgressSnapshot:
        with self._progress_lock:
            return record_to_snapshot(self._record)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # Progress

    def _report(self, stage: Stage, value: Optional[float] = None, detail: Optional[StageDetail] = None) -> None:
        with self._progress_lock:
            if value is not None:
                self._record.update(stage, value)
            snapshot = record_to_snapshot(self._record)
            self._progress.report(stage.value, snapshot, detail)

    def _complete(self, stage: Stage, detail: Optional[StageDetail] = None) -> None:
        with self._progress_lock:
            self._record.complete(stage)
        self._report(stage, detail=detail)

    def _on_engine_progress(self, fraction: float, seconds: Optional[float] = None) -> None:
        if self._token.cancelled:
            return
        detail = StageDetail(
            stage="Processing audio",
            duration=f"{round(seconds, 2)}s processed" if seconds else None,
        )
        self._report(Stage.CONVERTING, fraction, detail)

    def _on_engine_log(self, message: str) -> None:
        if self._token.cancelled:
            return
        logger.debug(f"ffmpeg: {message}")
        match = BITRATE_PATTERN.search(message)
        if match:
            self._report(
                Stage.CONVERTING,
                detail=StageDetail(stage="Processing audio", bitrate=f"{match.group(1)} kbps"),
            )

    # Lifecycle

    def _begin(self, state: PipelineState, new_run: bool = False) -> None:
        with self._lock:
            if self._token.cancelled:
                raise OperationCancelled()
            if self._busy:
                raise PipelineStateError(
                    f"Cannot start {state.value} while {self._state.value} is in progress"
                )
            if self._state not in _ALLOWED_FROM[state]:
                raise PipelineStateError(f"Cannot start {state.value} after {self._state.value}")
            self._busy = True
            self._state = state
        if new_run:
            with self._progress_lock:
                self._record = ProgressRecord()
        logger.info(f"Stage started: {state.value}")

    def _end(self, state: Optional[PipelineState] = None) -> None:
        with self._lock:
            self._busy = False
            if state is not None and self._state != PipelineState.CANCELLED:
                self._state = state

    def _run_stage(self, state: PipelineState, func: Callable, *args, new_run: bool = False, final: bool = False):
        self._begin(state, new_run=new_run)
        try:
            result = func(*args)
        except OperationCancelled:
            logger.info(f"Stage cancelled: {state.value}")
            self._end(PipelineState.CANCELLED)
            raise
        except Exception as e:
            logger.error(f"Stage failed: {state.value}: {e}")
            self._end(PipelineState.FAILED)
            raise
        self._end(PipelineState.DONE if final else None)
        logger.info(f"Stage complete: {state.value}")
        return result

    def _ensure_engine(self) -> TranscoderPort:
        """Return the ready engine, loading a new one on first use."""
        with self._lock:
            if self._engine is not None and self._engine_state == EngineState.READY:
                return self._engine
            self._token.raise_if_cancelled()
            engine = self._engine_factory()
            engine.on_progress(self._on_engine_progress)
            engine.on_log(self._on_engine_log)
            self._engine = engine

        logger.info("Initializing transcoder engine")
        try:
            engine.load(self._components)
        except Exception as e:
            with self._lock:
                if self._engine is engine:
                    self._engine = None
            if self._token.cancelled:
                raise OperationCancelled() from e
            logger.error(f"Transcoder engine failed to initialize: {e}")
            raise InitializationError(connectivity=is_connectivity_error(e), cause=e) from e

        with self._lock:
            ready = not self._token.cancelled and self._engine is engine
            if ready:
                self._engine_state = EngineState.READY
        if not ready:
            # cancelled while loading; the teardown may have run before load finished
            engine.terminate()
            raise OperationCancelled()
        return engine

    def _teardown_engine(self) -> None:
        with self._lock:
            engine, self._engine = self._engine, None
            self._engine_state = EngineState.UNINITIALIZED
        if engine is not None:
            try:
                engine.terminate()
            except Exception as e:
                logger.warning(f"Engine terminate failed: {e}")

    def cancel(self) -> None:
        """Cancel the run. Idempotent and safe to call at any time."""
        with self._lock:
            if self._state != PipelineState.DONE:
                self._state = PipelineState.CANCELLED
        if self._token.cancel():
            logger.info("Pipeline cancelled")
        else:
            self._teardown_engine()

    def close(self) -> None:
        """Release the engine without cancelling."""
        self._teardown_engine()

    # Stages

    def convert(self, audio_input: AudioInput) -> AudioBlob:
        """Normalize the recording to 16 kHz mono PCM WAV."""
        return self._run_stage(PipelineState.CONVERTING, self._convert, audio_input, new_run=True)

    def _convert(self, audio_input: AudioInput) -> AudioBlob:
        extension = audio_input.extension
        if not extension:
            raise ValueError(f"Audio input has no file extension: {audio_input.filename!r}")

        engine = self._ensure_engine()
        self._token.raise_if_cancelled()

        input_name = "input" + extension
        try:
            try:
                engine.write_file(input_name, audio_input.data)
                engine.exec(build_transcode_args(input_name, OUTPUT_NAME))
                data = engine.read_file(OUTPUT_NAME)
            finally:
                self._cleanup(engine, input_name, OUTPUT_NAME)
        except EngineAborted as e:
            raise OperationCancelled() from e
        except Exception as e:
            if self._token.cancelled:
                raise OperationCancelled() from e
            raise ConversionError(e) from e

        self._token.raise_if_cancelled()
        self._complete(
            Stage.CONVERTING,
            StageDetail(
                stage="Audio converted",
                size=format_size(len(data)),
                format="wav",
                sample_rate=f"{TARGET_SAMPLE_RATE} Hz",
            ),
        )
        return AudioBlob(data=data)

    @staticmethod
    def _cleanup(engine: TranscoderPort, *names: str) -> None:
        for name in names:
            try:
                engine.delete_file(name)
            except Exception as e:
                logger.warning(f"Could not remove {name} from working storage: {e}")

    def transcribe(self, audio: AudioBlob) -> str:
        """Send normalized audio to the transcription service."""
        return self._run_stage(PipelineState.TRANSCRIBING, self._transcribe, audio)

    def _transcribe(self, audio: AudioBlob) -> str:
        if not self._transcription.is_configured():
            raise AuthenticationError()

        self._report(Stage.TRANSCRIBING, IN_FLIGHT)
        try:
            text = self._transcription.transcribe(
                audio, self._transcription_model, self._transcription_language
            )
        except Exception as e:
            if self._token.cancelled:
                raise OperationCancelled() from e
            if is_credential_error(e):
                raise AuthenticationError(cause=e) from e
            raise TranscriptionError(e) from e

        self._token.raise_if_cancelled()
        self._report(Stage.TRANSCRIBING, 1.0)
        return text

    def analyze(self, transcript: str) -> MinutesDocument:
        """Segment the transcript into topics, key points and action items."""
        return self._run_stage(PipelineState.ANALYZING, self._analyze, transcript, final=True)

    def _analyze(self, transcript: str) -> MinutesDocument:
        if not transcript or not transcript.strip():
            raise ValueError("Transcript is empty: no speech was detected in the recording")
        if not self._analysis.is_configured():
            raise AuthenticationError()

        self._report(Stage.ANALYZING, IN_FLIGHT)
        try:
            payload = self._analysis.analyze(transcript, self._analysis_model)
        except Exception as e:
            if self._token.cancelled:
                raise OperationCancelled() from e
            if is_credential_error(e):
                raise AuthenticationError(cause=e) from e
            raise AnalysisError(e) from e

        self._token.raise_if_cancelled()
        minutes = parse_minutes(payload)
        self._report(Stage.ANALYZING, 1.0)
        return minutes
