# Schemas Package
from formfill.schemas.document import (
    CanonicalField, BoundingBox, RecognizedWord, RecognizedDocument, IdentityRecord
)
from formfill.schemas.form import (
    FieldType, FillSource, CanonicalFieldAlias, FieldMatch, FormField, FormTemplate,
    FilledField, FilledForm, PreviewRow, FormPreview
)
from formfill.schemas.voice import SupportedLanguage, VoiceAlternative, VoiceRecognitionResult

__all__ = [
    "CanonicalField", "BoundingBox", "RecognizedWord", "RecognizedDocument", "IdentityRecord",
    "FieldType", "FillSource", "CanonicalFieldAlias", "FieldMatch", "FormField", "FormTemplate",
    "FilledField", "FilledForm", "PreviewRow", "FormPreview",
    "SupportedLanguage", "VoiceAlternative", "VoiceRecognitionResult"
]
