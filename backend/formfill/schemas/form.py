"""
Form Schemas
Pydantic models for form templates, field matching and filled forms
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Tuple
from datetime import datetime
from enum import Enum

from formfill.schemas.document import CanonicalField
from formfill.utils.text_utils import has_control_chars


class FieldType(str, Enum):
    """Input widget type of a form field"""
    TEXT = "text"
    DATE = "date"
    SELECT = "select"
    NUMBER = "number"


class FillSource(str, Enum):
    """Where a field value came from"""
    EXPLICIT = "explicit"  # template mapping
    NLP = "nlp"  # fuzzy label match
    TYPED = "typed"
    VOICE = "voice"


class CanonicalFieldAlias(BaseModel):
    """Entry of the static alias table used by the field matcher"""
    field: CanonicalField
    key: str
    weight: float = Field(..., gt=0.0, le=1.0)
    aliases: Tuple[str, ...]

    class Config:
        frozen = True


class FieldMatch(BaseModel):
    """Result of matching one form label against the alias table"""
    canonical_field: Optional[CanonicalField] = None
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    matched_alias: str = ""

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "canonical_field": "name",
                "confidence": 0.76,
                "matched_alias": "applicant name"
            }
        }

    @property
    def is_match(self) -> bool:
        return self.canonical_field is not None


class FormField(BaseModel):
    """Single field of a form template"""
    id: str
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = False
    options: Optional[List[str]] = None
    mapped_from: Optional[CanonicalField] = None  # bypasses fuzzy matching

    class Config:
        frozen = True


class FormTemplate(BaseModel):
    """Government form the user can fill"""
    id: str
    name: str
    description: str = ""
    fields: List[FormField]

    class Config:
        frozen = True

    def get_field(self, field_id: str) -> FormField:
        for field in self.fields:
            if field.id == field_id:
                return field
        raise ValueError(f"Unknown field '{field_id}' for form '{self.id}'")


class FilledField(BaseModel):
    """Current value of one form field"""
    field_id: str
    value: str = ""
    confidence: Optional[float] = None
    source: Optional[FillSource] = None

    class Config:
        frozen = True

    @validator("value")
    def validate_plain_text(cls, v):
        """Field values are single-line plain text"""
        if has_control_chars(v):
            raise ValueError("Field value must not contain control characters")
        return v

    @property
    def is_filled(self) -> bool:
        return bool(self.value.strip())


class FilledForm(BaseModel):
    """Form template together with the current field values"""
    template: FormTemplate
    values: Dict[str, FilledField]

    class Config:
        frozen = True

    def value_of(self, field_id: str) -> str:
        filled = self.values.get(field_id)
        return filled.value if filled else ""


class PreviewRow(BaseModel):
    """Printable row of a filled form"""
    label: str
    value: str
    required: bool
    auto_filled: bool


class FormPreview(BaseModel):
    """Printable rendition of a filled form"""
    template_id: str
    template_name: str
    rows: List[PreviewRow]
    generated_at: datetime
    application_id: str

    class Config:
        json_schema_extra = {
            "example": {
                "template_id": "jan-dhan",
                "template_name": "Jan Dhan Yojana Account Opening",
                "rows": [
                    {"label": "Applicant Name", "value": "Ravi Kumar", "required": True, "auto_filled": True}
                ],
                "generated_at": "2024-01-15T10:30:00",
                "application_id": "1705314600000"
            }
        }
