"""Handles translation of subtitle segments via the OpenAI API or Hugging Face models."""

import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import openai
from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from .models import Segment
from .exceptions import TranslationError
from .languages import language_name
from .transcriber import RETRYABLE_API_ERRORS

logger = logging.getLogger(__name__)

RESPONSE_LINE_PATTERN = re.compile(r'^\[(\d+)\]\s*(.+)$')

# gpt-4o-mini list prices in USD per 1K tokens
INPUT_COST_PER_1K = 0.00015
OUTPUT_COST_PER_1K = 0.0006

SYSTEM_PROMPT_TEMPLATE = """You are a professional subtitle translator. Translate the following subtitles from {source} to {target}.

CRITICAL RULES:
1. Preserve the [number] prefix for each line EXACTLY as shown
2. Translate ONLY the text after the [number] prefix
3. Keep translations concise - subtitles have limited screen time
4. Maintain the tone and style appropriate for the content
5. Each line is a separate subtitle - translate them independently but with context awareness
6. Return ONLY the translated lines with their [number] prefixes, no additional text

Example format:
[0] Original text here
[1] Another subtitle

Should return:
[0] Translated text here
[1] Another translated subtitle"""

class Translator(ABC):
    """Abstract base class for translation services."""

    @abstractmethod
    def translate_segments(
        self,
        segments: List[Segment],
        target_language: str,
        source_language: Optional[str] = None,
    ) -> List[Segment]:
        """
        Translates segment texts, keeping each segment's timing.

        Args:
            segments: The source-language segments.
            target_language: Target language code (e.g., 'es').
            source_language: Source language code, if known.

        Returns:
            A list of the same length and order with translated text.

        Raises:
            TranslationError: If translation fails.
        """
        pass

    def cost_estimate(self, segments: List[Segment]) -> Optional[dict]:
        """API cost of translating segments into one language; None for local backends."""
        return None


def format_request_lines(segments: List[Segment]) -> str:
    """Renders segments as '[index] text' lines for the translation prompt."""
    return "\n".join(f"[{idx}] {segment.text}" for idx, segment in enumerate(segments))


def parse_response_lines(response_text: str) -> Dict[int, str]:
    """Extracts {index: text} from '[index] text' lines, ignoring anything else."""
    translations = {}
    for line in response_text.splitlines():
        match = RESPONSE_LINE_PATTERN.match(line.strip())
        if match:
            translations[int(match.group(1))] = match.group(2).strip()
    return translations


def merge_translations(
    segments: List[Segment],
    translations: Dict[int, str],
    strict: bool = False,
) -> List[Segment]:
    """
    Joins parsed translations to the original segments by index.

    Missing entries keep the original text unless strict is set, in which case
    any gap raises TranslationError. Indexes outside the segment range are ignored.
    """
    missing = [idx for idx in range(len(segments)) if idx not in translations]
    unexpected = sorted(idx for idx in translations if idx >= len(segments))
    if unexpected:
        logger.warning(f"Ignoring translations for unknown segment indexes: {unexpected}")

    if missing:
        message = f"Translation parsing mismatch (got {len(segments) - len(missing)}, expected {len(segments)})"
        if strict:
            raise TranslationError(f"{message}; missing indexes: {missing}")
        logger.warning(f"{message}; using original text for {len(missing)} segment(s)")

    return [
        Segment(
            start_time=segment.start_time,
            end_time=segment.end_time,
            text=translations.get(idx, segment.text),
            sequence_id=segment.sequence_id,
        )
        for idx, segment in enumerate(segments)
    ]


class OpenAITranslator(Translator):
    """Translates a whole track in one chat completion request."""

    def __init__(
        self,
        client: "openai.OpenAI",
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        strict: bool = False,
        retry_attempts: int = 3,
        retry_min_wait: float = 4.0,
        retry_max_wait: float = 10.0,
    ):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.strict = strict
        self.retry_attempts = retry_attempts
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait
        logger.info(f"Initialized OpenAITranslator with model '{self.model}' (strict: {self.strict})")

    def _request(self, system_prompt: str, user_prompt: str) -> str:
        completion = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {'role': 'system', 'content': system_prompt},
                {'role': 'user', 'content': user_prompt},
            ],
            temperature=self.temperature,
        )
        return (completion.choices[0].message.content or "").strip()

    def cost_estimate(self, segments: List[Segment]) -> Optional[dict]:
        if not segments:
            return None
        avg_chars = sum(len(segment.text) for segment in segments) // len(segments)
        return estimate_cost(len(segments), avg_chars_per_segment=avg_chars)

    def translate_segments(
        self,
        segments: List[Segment],
        target_language: str,
        source_language: Optional[str] = None,
    ) -> List[Segment]:
        if not segments:
            return []

        target_name = language_name(target_language)
        source_name = language_name(source_language) if source_language else 'the source language'
        logger.info(f"Translating {len(segments)} segments from {source_name} to {target_name}...")

        system_prompt = SYSTEM_PROMPT_TEMPLATE.format(source=source_name, target=target_name)
        user_prompt = f"Translate these subtitles:\n\n{format_request_lines(segments)}"

        retrying = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=1, min=self.retry_min_wait, max=self.retry_max_wait),
            retry=retry_if_exception_type(RETRYABLE_API_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            response_text = retrying(self._request, system_prompt, user_prompt)
        except openai.AuthenticationError as e:
            raise TranslationError("OpenAI API authentication failed. Please check your OPENAI_API_KEY.") from e
        except openai.RateLimitError as e:
            raise TranslationError("OpenAI API rate limit exceeded. Please try again later.") from e
        except openai.OpenAIError as e:
            logger.error(f"Translation request failed: {e}")
            raise TranslationError(f"Translation failed: {e}") from e

        translated = merge_translations(segments, parse_response_lines(response_text), strict=self.strict)
        logger.info(f"Translation to {target_name} completed: {len(translated)} segments")
        return translated


class HuggingFaceTranslator(Translator):
    """Implements per-segment translation using Hugging Face MarianMT-style models."""

    def __init__(
        self,
        model_template: str = "Helsinki-NLP/opus-mt-{source}-{target}",
        device: str = "cuda",
        default_source: str = "en",
    ):
        """
        Initializes the HuggingFaceTranslator.

        Models are loaded lazily per language pair from model_template.

        Args:
            model_template: Model name pattern with {source} and {target} fields.
            device: The device to run the model on ("cuda" or "cpu").
            default_source: Source language used when none is detected.

        Raises:
            ValueError: If the specified device is invalid.
        """
        # Local backend dependencies are an optional extra
        import torch

        self.model_template = model_template
        self.device = device
        self.default_source = default_source
        self._pipelines = {}

        if self.device == "cuda" and not torch.cuda.is_available():
            logger.warning("CUDA device requested but not available for translation. Falling back to CPU.")
            self.device = "cpu"
        elif self.device not in ["cuda", "cpu"]:
             raise ValueError(f"Invalid device specified: {self.device}. Choose 'cuda' or 'cpu'.")

    def _load(self, source: str, target: str):
        key = (source, target)
        if key in self._pipelines:
            return self._pipelines[key]

        from transformers import AutoTokenizer, AutoModelForSeq2SeqLM

        model_name = self.model_template.format(source=source, target=target)
        logger.info(f"Loading Hugging Face translation model '{model_name}' on device '{self.device}'")
        try:
            tokenizer = AutoTokenizer.from_pretrained(model_name)
            model = AutoModelForSeq2SeqLM.from_pretrained(model_name)
            model.to(self.device)
            model.eval() # Set model to evaluation mode
        except Exception as e:
            logger.error(f"Failed to load translation model or tokenizer '{model_name}': {e}", exc_info=True)
            raise TranslationError(f"Failed to load translation model/tokenizer '{model_name}': {e}") from e
        self._pipelines[key] = (tokenizer, model)
        return tokenizer, model

    def _translate_text(self, text: str, tokenizer, model) -> str:
        import torch

        if not text:
            return ""
        inputs = tokenizer(text, return_tensors="pt", padding=True, truncation=True, max_length=512)
        inputs = {k: v.to(self.device) for k, v in inputs.items()}
        with torch.no_grad(): # Disable gradient calculation for inference
            translated_tokens = model.generate(**inputs)
        return tokenizer.decode(translated_tokens[0], skip_special_tokens=True)

    def translate_segments(
        self,
        segments: List[Segment],
        target_language: str,
        source_language: Optional[str] = None,
    ) -> List[Segment]:
        source = (source_language or self.default_source).lower()
        target = target_language.lower()
        tokenizer, model = self._load(source, target)

        translated = []
        total_segments = len(segments)
        for i, segment in enumerate(segments):
            try:
                text = self._translate_text(segment.text, tokenizer, model)
            except Exception as e:
                logger.error(f"Error during translation of text '{segment.text[:50]}...': {e}", exc_info=True)
                raise TranslationError(f"Hugging Face translation failed on segment {i + 1}: {e}") from e
            translated.append(
                Segment(
                    start_time=segment.start_time,
                    end_time=segment.end_time,
                    text=text,
                    sequence_id=segment.sequence_id,
                )
            )
            if (i + 1) % 20 == 0 or i == total_segments - 1: # Log progress periodically
                logger.info(f"Translated segment {i + 1}/{total_segments}")
        return translated


def estimate_cost(segment_count: int, avg_chars_per_segment: int = 50) -> dict:
    """Rough token and cost estimate for translating a track (~4 chars per token)."""
    input_tokens = (segment_count * avg_chars_per_segment) / 4
    output_tokens = input_tokens # Similar length output
    cost = (input_tokens / 1000) * INPUT_COST_PER_1K + (output_tokens / 1000) * OUTPUT_COST_PER_1K
    return {
        'estimated_tokens': round(input_tokens + output_tokens),
        'cost': round(cost, 4),
        'currency': 'USD',
    }
