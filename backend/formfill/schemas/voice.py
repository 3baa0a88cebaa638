"""
Voice Input Schemas
Pydantic models for already-transcribed voice input
"""
from pydantic import BaseModel, Field
from enum import Enum


class SupportedLanguage(str, Enum):
    """Supported voice input languages"""
    HINDI = "hi-IN"
    ENGLISH = "en-IN"
    BENGALI = "bn-IN"
    TAMIL = "ta-IN"
    TELUGU = "te-IN"
    MARATHI = "mr-IN"


class VoiceAlternative(BaseModel):
    """One transcription alternative from the speech recognizer"""
    transcript: str
    confidence: float = Field(0.0, ge=0.0, le=1.0)


class VoiceRecognitionResult(BaseModel):
    """Transcript chosen for a form field"""
    text: str
    confidence: float
    language: SupportedLanguage = SupportedLanguage.HINDI

    class Config:
        json_schema_extra = {
            "example": {
                "text": "Ravi Kumar",
                "confidence": 0.92,
                "language": "en-IN"
            }
        }
