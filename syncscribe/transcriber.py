"""Handles Speech-to-Text transcription via the OpenAI API or a local Whisper model."""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import openai
from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from .models import TranscriptionResult, Segment
from .exceptions import TranscriptionError
from .languages import to_iso639_1
from .utils import file_size_mb

logger = logging.getLogger(__name__)

RETRYABLE_API_ERRORS = (openai.RateLimitError, openai.APIConnectionError, openai.APITimeoutError)

# Whisper API list price in USD
COST_PER_MINUTE = 0.006

class Transcriber(ABC):
    """Abstract base class for transcription services."""

    @abstractmethod
    def transcribe(self, audio_path: str, language: Optional[str] = None) -> TranscriptionResult:
        """
        Transcribes the given audio file.

        Args:
            audio_path: Path to the audio file.
            language: Optional language hint; None lets the backend auto-detect.

        Returns:
            A TranscriptionResult object containing segments and language.

        Raises:
            TranscriptionError: If transcription fails.
            FileNotFoundError: If the audio file doesn't exist.
        """
        pass

    def cost_estimate(self, duration_seconds: float) -> Optional[dict]:
        """API cost of transcribing duration_seconds of audio; None for local backends."""
        return None


def build_segments(raw_segments: List[Any], full_text: str = "", duration: Optional[float] = None) -> List[Segment]:
    """
    Converts backend segments (objects or dicts with start/end/text) to Segments.

    A response without segments becomes a single segment spanning the whole
    duration so the text is not lost.
    """
    def field(item: Any, name: str) -> Any:
        return item.get(name) if isinstance(item, dict) else getattr(item, name, None)

    if not raw_segments:
        if not full_text or not full_text.strip():
            return []
        logger.warning("Transcription returned no segments; using the full text as a single segment.")
        return [Segment(start_time=0.0, end_time=float(duration or 0.0), text=full_text.strip(), sequence_id=1)]

    segments = []
    for raw in raw_segments:
        start, end, text = field(raw, 'start'), field(raw, 'end'), field(raw, 'text')
        if start is None or end is None or text is None:
            logger.warning(f"Skipping incomplete segment data: {raw}")
            continue
        segments.append(
            Segment(
                start_time=float(start),
                end_time=float(end),
                text=text.strip(),
                sequence_id=len(segments) + 1,
            )
        )
    return segments


class OpenAITranscriber(Transcriber):
    """Implements transcription using the hosted Whisper API."""

    def __init__(
        self,
        client: "openai.OpenAI",
        model: str = "whisper-1",
        max_file_mb: float = 25,
        retry_attempts: int = 3,
        retry_min_wait: float = 4.0,
        retry_max_wait: float = 10.0,
    ):
        """
        Initializes the OpenAITranscriber.

        Args:
            client: A configured OpenAI client, owned by the caller.
            model: The transcription model name.
            max_file_mb: Upload size limit enforced before calling the API.
            retry_attempts: Attempts for rate-limited or dropped requests.
            retry_min_wait: Minimum backoff between attempts, in seconds.
            retry_max_wait: Maximum backoff between attempts, in seconds.
        """
        self.client = client
        self.model = model
        self.max_file_mb = max_file_mb
        self.retry_attempts = retry_attempts
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait
        logger.info(f"Initialized OpenAITranscriber with model '{self.model}'")

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=1, min=self.retry_min_wait, max=self.retry_max_wait),
            retry=retry_if_exception_type(RETRYABLE_API_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _request(self, audio_path: str, language: Optional[str]) -> Any:
        request_args = {
            'model': self.model,
            'response_format': 'verbose_json',
            'timestamp_granularities': ['segment'],
        }
        if language:
            request_args['language'] = language
        with open(audio_path, 'rb') as audio_file:
            return self.client.audio.transcriptions.create(file=audio_file, **request_args)

    def cost_estimate(self, duration_seconds: float) -> Optional[dict]:
        return estimate_cost(duration_seconds)

    def transcribe(self, audio_path: str, language: Optional[str] = None) -> TranscriptionResult:
        """
        Uploads the audio file and converts the verbose JSON response.

        Raises:
            FileNotFoundError: If the audio file doesn't exist.
            TranscriptionError: If the file is too large or the API call fails.
        """
        logger.info(f"Starting transcription for: {audio_path}")
        if not os.path.exists(audio_path):
             raise FileNotFoundError(f"Audio file not found: {audio_path}")

        size_mb = file_size_mb(audio_path)
        logger.debug(f"Audio file size: {size_mb:.2f} MB")
        if size_mb > self.max_file_mb:
            raise TranscriptionError(
                f"Audio file is {size_mb:.2f} MB, which exceeds the {self.max_file_mb} MB upload limit. "
                "Consider using a shorter video or compressing the audio."
            )

        api_language = to_iso639_1(language)
        if language and not api_language:
            logger.warning(f"Unrecognized language code '{language}'; falling back to auto-detection.")

        try:
            response = self._retrying()(self._request, audio_path, api_language)
        except openai.AuthenticationError as e:
            raise TranscriptionError("OpenAI API authentication failed. Please check your OPENAI_API_KEY.") from e
        except openai.RateLimitError as e:
            raise TranscriptionError("OpenAI API rate limit exceeded. Please try again later.") from e
        except openai.OpenAIError as e:
            logger.error(f"Transcription request failed for {audio_path}: {e}")
            raise TranscriptionError(f"Transcription failed: {e}") from e

        full_text = getattr(response, 'text', '') or ''
        duration = getattr(response, 'duration', None)
        segments = build_segments(getattr(response, 'segments', None) or [], full_text, duration)
        detected = getattr(response, 'language', None)
        logger.info(f"Transcription completed: {len(segments)} segments (language: {detected or 'N/A'})")

        return TranscriptionResult(
            language=detected,
            segments=segments,
            duration=duration,
            text=full_text,
            original_audio_path=audio_path,
        )


class WhisperTranscriber(Transcriber):
    """Implements transcription using a local OpenAI Whisper model."""

    def __init__(self, model_name: str = "medium", device: str = "cuda", fp16: bool = True):
        """
        Initializes the WhisperTranscriber.

        Args:
            model_name: The name of the Whisper model to use (e.g., "base", "medium").
            device: The device to run the model on ("cuda" or "cpu").
            fp16: Whether to use float16 precision (faster on compatible GPUs).

        Raises:
            ValueError: If the specified device is invalid.
            TranscriptionError: If the model fails to load.
        """
        # Local backend dependencies are an optional extra
        import torch
        import whisper

        self.model_name = model_name
        self.device = device
        self.fp16 = fp16

        if self.device == "cuda" and not torch.cuda.is_available():
            logger.warning("CUDA device requested but not available. Falling back to CPU.")
            self.device = "cpu"
        elif self.device not in ["cuda", "cpu"]:
             raise ValueError(f"Invalid device specified: {self.device}. Choose 'cuda' or 'cpu'.")

        logger.info(f"Initializing WhisperTranscriber with model '{self.model_name}' on device '{self.device}' (FP16: {self.fp16})")
        try:
            self.model = whisper.load_model(self.model_name, device=self.device)
            logger.info(f"Whisper model '{self.model_name}' loaded successfully.")
        except Exception as e:
            logger.error(f"Failed to load Whisper model '{self.model_name}': {e}", exc_info=True)
            raise TranscriptionError(f"Failed to load Whisper model '{self.model_name}': {e}") from e

    def transcribe(self, audio_path: str, language: Optional[str] = None) -> TranscriptionResult:
        """
        Transcribes the audio file using the loaded Whisper model.

        Raises:
            FileNotFoundError: If the audio file doesn't exist.
            TranscriptionError: If transcription fails during processing.
        """
        logger.info(f"Starting local transcription for: {audio_path}")
        if not os.path.exists(audio_path):
             raise FileNotFoundError(f"Audio file not found: {audio_path}")

        try:
            result = self.model.transcribe(
                audio_path,
                language=to_iso639_1(language), # None lets Whisper auto-detect
                fp16=self.fp16 if self.device == "cuda" else False, # FP16 only works on CUDA
                verbose=None
            )
        except Exception as e:
            logger.error(f"Error during Whisper transcription process for {audio_path}: {e}", exc_info=True)
            raise TranscriptionError(f"Whisper transcription failed for {audio_path}: {e}") from e

        segments = build_segments(result.get('segments') or [], result.get('text', ''))
        logger.info(f"Transcription completed. Detected language: {result.get('language', 'N/A')}; {len(segments)} segments.")
        return TranscriptionResult(
            language=result.get('language'),
            segments=segments,
            duration=segments[-1].end_time if segments else None,
            text=result.get('text'),
            original_audio_path=audio_path,
        )


def estimate_cost(duration_seconds: float) -> dict:
    """Estimates the API transcription cost for an audio duration."""
    minutes = duration_seconds / 60
    return {
        'minutes': round(minutes, 2),
        'cost': round(minutes * COST_PER_MINUTE, 4),
        'currency': 'USD',
    }
