import os
import logging
from typing import Dict, Optional, Any, Callable
from pathlib import Path

from dotenv import load_dotenv

from domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8001
DEFAULT_TRANSCRIPTION_MODEL = "whisper-1"
DEFAULT_TRANSCRIPTION_LANGUAGE = "auto"
DEFAULT_ANALYSIS_MODEL = "gpt-4o"
DEFAULT_FFMPEG_CORE = "ffmpeg"
DEFAULT_FFMPEG_PROBE = "ffprobe"
DEFAULT_MAX_UPLOAD_MB = 200
DEFAULT_MAX_FINISHED_JOBS = 100


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    @classmethod
    def reload(cls) -> "Config":
        """Rebuild the singleton from the current environment."""
        cls._instance = None
        return cls()

    def _initialize(self):
        self.host = os.environ.get("HOST", DEFAULT_HOST)
        self.port = int(os.environ.get("PORT", DEFAULT_PORT))
        self.debug = os.environ.get("DEBUG", "0") == "1"
        self.openai_api_key = os.environ.get("OPENAI_API_KEY", "").strip() or None
        self.openai_base_url = os.environ.get("OPENAI_BASE_URL", "").strip() or None
        self.transcription_model = os.environ.get("TRANSCRIPTION_MODEL", DEFAULT_TRANSCRIPTION_MODEL)
        self.transcription_language = os.environ.get("TRANSCRIPTION_LANGUAGE", DEFAULT_TRANSCRIPTION_LANGUAGE)
        self.analysis_model = os.environ.get("ANALYSIS_MODEL", DEFAULT_ANALYSIS_MODEL)
        self.ffmpeg_core = os.environ.get("FFMPEG_CORE", DEFAULT_FFMPEG_CORE)
        self.ffmpeg_probe = os.environ.get("FFMPEG_PROBE", DEFAULT_FFMPEG_PROBE)
        self.temp_dir = os.environ.get("TEMP_DIR", "/tmp/echo-minutes")
        self.job_workers = int(os.environ.get("JOB_WORKERS", "2"))
        self.job_timeout = float(os.environ.get("JOB_TIMEOUT", "0")) or None
        self.max_upload_mb = int(os.environ.get("MAX_UPLOAD_MB", DEFAULT_MAX_UPLOAD_MB))
        self.max_finished_jobs = int(os.environ.get("MAX_FINISHED_JOBS", DEFAULT_MAX_FINISHED_JOBS))
        Path(self.temp_dir).mkdir(parents=True, exist_ok=True)

    def get_openai_api_key(self) -> Optional[str]:
        return self.openai_api_key

    def validate(self) -> None:
        """Fail fast on missing credentials, before any stage runs."""
        if not self.openai_api_key:
            raise ConfigurationError(
                "OpenAI API key is not configured. Set OPENAI_API_KEY in the environment or .env file."
            )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "transcription_model": self.transcription_model,
            "transcription_language": self.transcription_language,
            "analysis_model": self.analysis_model,
            "ffmpeg_core": self.ffmpeg_core,
            "ffmpeg_probe": self.ffmpeg_probe,
            "temp_dir": self.temp_dir,
            "job_workers": self.job_workers,
            "job_timeout": self.job_timeout,
            "max_finished_jobs": self.max_finished_jobs,
            "has_openai_api_key": self.openai_api_key is not None,
        }


config = Config()


def get_config() -> Config:
    return Config()


def create_engine_components(cfg: Config):
    from ports.transcoder import EngineComponents
    return EngineComponents(core=cfg.ffmpeg_core, probe=cfg.ffmpeg_probe, worker=cfg.temp_dir)


def create_engine_factory(cfg: Config) -> Callable:
    """Return a factory building a fresh transcoder engine per call (always FFmpeg)."""
    from adapters.ffmpeg.engine import FFmpegEngineAdapter
    cache_dir = os.path.join(cfg.temp_dir, "engine-cache")
    return lambda: FFmpegEngineAdapter(cache_dir=cache_dir)


def create_service_adapters(cfg: Config):
    """Create transcription and analysis adapters (OpenAI)."""
    from adapters.openai_api import OpenAITranscriptionAdapter, OpenAIAnalysisAdapter
    transcription = OpenAITranscriptionAdapter(cfg.openai_api_key, base_url=cfg.openai_base_url)
    analysis = OpenAIAnalysisAdapter(cfg.openai_api_key, base_url=cfg.openai_base_url)
    logger.info(
        f"Service adapters: transcription={cfg.transcription_model}, analysis={cfg.analysis_model}"
    )
    return transcription, analysis


def create_coordinator(progress, cfg: Optional[Config] = None):
    """Build a PipelineCoordinator with production adapters.

    Each call returns a new coordinator with its own engine and cancellation token.
    """
    from use_cases.pipeline import PipelineCoordinator

    cfg = cfg or get_config()
    transcription, analysis = create_service_adapters(cfg)
    return PipelineCoordinator(
        engine_factory=create_engine_factory(cfg),
        transcription=transcription,
        analysis=analysis,
        progress=progress,
        components=create_engine_components(cfg),
        transcription_model=cfg.transcription_model,
        transcription_language=cfg.transcription_language,
        analysis_model=cfg.analysis_model,
    )
