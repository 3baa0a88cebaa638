"""
Document Schemas
Pydantic models for recognized documents and extracted identity records
"""
from pydantic import BaseModel, Field, validator
from typing import List, Sequence
from enum import Enum

from formfill.utils.text_utils import has_control_chars


class CanonicalField(str, Enum):
    """Identity attributes a form field can be mapped to"""
    NAME = "name"
    FATHER_NAME = "father_name"
    DOB = "dob"
    GENDER = "gender"
    ID_NUMBER = "id_number"
    ADDRESS = "address"


class BoundingBox(BaseModel):
    """Pixel box of a recognized word"""
    x0: float = 0
    y0: float = 0
    x1: float = 0
    y1: float = 0

    class Config:
        frozen = True


class RecognizedWord(BaseModel):
    """Single word reported by the OCR engine"""
    text: str
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    bbox: BoundingBox = Field(default_factory=BoundingBox)

    class Config:
        frozen = True


class RecognizedDocument(BaseModel):
    """
    Output of the OCR collaborator.
    Words are in reading order, not guaranteed sorted by position.
    """
    full_text: str = ""
    words: List[RecognizedWord] = []
    lines: List[str] = []

    class Config:
        frozen = True

    @validator("full_text")
    def normalize_line_endings(cls, v):
        return v.replace("\r\n", "\n").replace("\r", "\n")

    @classmethod
    def merge(cls, passes: Sequence["RecognizedDocument"]) -> "RecognizedDocument":
        """Concatenate per-language passes: texts joined by a newline, words and lines in pass order"""
        return cls(
            full_text="\n".join(p.full_text for p in passes),
            words=[w for p in passes for w in p.words],
            lines=[line for p in passes for line in p.lines],
        )


class IdentityRecord(BaseModel):
    """Structured result of extraction. Missing attributes are empty strings."""
    name: str
    father_name: str = ""
    dob: str = ""
    gender: str = ""
    id_number: str = ""
    address: str = ""

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "name": "Ravi Kumar",
                "father_name": "",
                "dob": "15/08/1990",
                "gender": "Male",
                "id_number": "234512345678",
                "address": ""
            }
        }

    @validator("name", "father_name", "dob", "gender", "id_number", "address")
    def validate_plain_text(cls, v):
        """Values are single-line plain text"""
        if has_control_chars(v):
            raise ValueError("Value must not contain line breaks or control characters")
        return v

    def get(self, field: CanonicalField) -> str:
        return getattr(self, field.value)
