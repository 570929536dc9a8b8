"""GenerateMinutesUseCase: drives a coordinator through all three stages.

This is the reference consumer: convert, transcribe, analyze in order, with an
optional overall timeout layered on top as a cancellation trigger.
"""

import logging
import threading
from typing import Optional

from domain.models import AudioInput
from models import MeetingDetails, PipelineResult
from post_processing import count_action_items, tidy_minutes
from use_cases.pipeline import PipelineCoordinator

logger = logging.getLogger(__name__)


class GenerateMinutesUseCase:
    def __init__(self, coordinator: PipelineCoordinator):
        self._coordinator = coordinator

    def execute(
        self,
        audio: AudioInput,
        meeting: Optional[MeetingDetails] = None,
        timeout: Optional[float] = None,
    ) -> PipelineResult:
        """Run the full pipeline and release the engine.

        Raises OperationCancelled if cancelled or timed out.
        """
        timer: Optional[threading.Timer] = None
        if timeout:
            timer = threading.Timer(timeout, self._on_timeout, args=(timeout,))
            timer.daemon = True
            timer.start()

        try:
            logger.info(f"Generating minutes for {audio.filename} ({len(audio.data)} bytes)")
            wav = self._coordinator.convert(audio)
            transcript = self._coordinator.transcribe(wav)
            minutes = self._coordinator.analyze(transcript)
        finally:
            if timer is not None:
                timer.cancel()
            self._coordinator.close()

        minutes = tidy_minutes(minutes)
        logger.info(
            f"Minutes ready: {len(minutes.topics)} topics, "
            f"{count_action_items(minutes)} action items"
        )
        return PipelineResult(transcript=transcript, minutes=minutes, meeting=meeting)

    def _on_timeout(self, timeout: float) -> None:
        logger.warning(f"Pipeline exceeded {timeout}s, cancelling")
        self._coordinator.cancel()
