"""
Voice Input Service
Chooses the transcript to apply to a form field; audio capture happens in the browser
"""
from typing import List, Sequence

from loguru import logger

from formfill.schemas.voice import SupportedLanguage, VoiceAlternative, VoiceRecognitionResult
from formfill.utils.text_utils import sanitize_value


class VoiceInputService:
    """Service for already-transcribed voice input"""

    DEFAULT_LANGUAGE = SupportedLanguage.HINDI

    def select_best(
        self,
        alternatives: Sequence[VoiceAlternative],
        language: SupportedLanguage = DEFAULT_LANGUAGE,
    ) -> VoiceRecognitionResult:
        """
        Pick the highest-confidence alternative (first one wins ties).
        Raises ValueError when there is no usable transcript.
        """
        best = None
        for alternative in alternatives:
            if not sanitize_value(alternative.transcript):
                continue
            if best is None or alternative.confidence > best.confidence:
                best = alternative

        if best is None:
            logger.warning("Speech recognition returned no usable transcript")
            raise ValueError("No speech detected. Please try speaking again.")

        text = sanitize_value(best.transcript)
        logger.info(f"Voice input recognized (confidence: {best.confidence})")
        return VoiceRecognitionResult(text=text, confidence=round(best.confidence, 2), language=language)

    def get_supported_languages(self) -> List[dict]:
        """Supported voice input languages"""
        return [
            {"code": lang.value, "name": lang.name.replace("_", " ").title()}
            for lang in SupportedLanguage
        ]
