"""
Form Filling Service
Auto-fill policy, typed/voice corrections and printable preview
"""
from datetime import datetime
from typing import List, Optional

from loguru import logger

from formfill.config import settings
from formfill.schemas.document import IdentityRecord
from formfill.schemas.form import (
    FieldType, FillSource, FormField, FormTemplate, FilledField, FilledForm, PreviewRow, FormPreview
)
from formfill.services.matcher_service import FieldMatcher
from formfill.utils.text_utils import sanitize_value


AUTO_SOURCES = (FillSource.EXPLICIT, FillSource.NLP)


class FormFillerService:
    """Service for seeding a form from an identity record and applying user input"""

    def __init__(self, matcher: Optional[FieldMatcher] = None, min_confidence: Optional[float] = None):
        self.matcher = matcher or FieldMatcher()
        self.min_confidence = settings.AUTOFILL_MIN_CONFIDENCE if min_confidence is None else min_confidence

    def prefill(self, template: FormTemplate, record: IdentityRecord) -> FilledForm:
        """
        Seed every field of the template.

        An explicit template mapping always wins (confidence 1.0). Other
        fields are filled only when the matcher is more confident than
        min_confidence. Empty record values never fill a field.
        """
        values = {field.id: self._prefill_field(field, record) for field in template.fields}

        filled = sum(1 for value in values.values() if value.is_filled)
        logger.info(f"Auto-filled {filled}/{len(template.fields)} fields of '{template.id}'")
        return FilledForm(template=template, values=values)

    def _prefill_field(self, field: FormField, record: IdentityRecord) -> FilledField:
        if field.mapped_from is not None:
            attribute, confidence, source = field.mapped_from, 1.0, FillSource.EXPLICIT
        else:
            match = self.matcher.match_field(field.label)
            if not match.is_match or match.confidence <= self.min_confidence:
                return FilledField(field_id=field.id)
            attribute, confidence, source = match.canonical_field, match.confidence, FillSource.NLP

        value = self._fit_to_field(field, record.get(attribute))
        if not value:
            return FilledField(field_id=field.id)

        logger.debug(f"Field '{field.id}' filled from {attribute.value} ({source.value}, {confidence:.2f})")
        return FilledField(field_id=field.id, value=value, confidence=confidence, source=source)

    def _fit_to_field(self, field: FormField, value: str) -> str:
        """Sanitize a value; select fields only accept one of their options"""
        value = sanitize_value(value)
        if value and field.type == FieldType.SELECT and field.options:
            for option in field.options:
                if option.lower() == value.lower():
                    return option
            return ""
        return value

    def apply_input(
        self,
        form: FilledForm,
        field_id: str,
        text: str,
        source: FillSource = FillSource.TYPED,
        confidence: Optional[float] = None,
    ) -> FilledForm:
        """
        Apply a typed or dictated value to one field and return the updated form.
        Blank input leaves the form unchanged.
        """
        field = form.template.get_field(field_id)

        value = sanitize_value(text)
        if not value:
            return form

        fitted = self._fit_to_field(field, value)
        if not fitted:
            raise ValueError(
                f"'{value}' is not a valid option for {field.label}. "
                f"Choose one of: {', '.join(field.options or [])}"
            )

        values = dict(form.values)
        values[field_id] = FilledField(field_id=field_id, value=fitted, confidence=confidence, source=source)
        logger.info(f"Field '{field_id}' updated from {source.value} input")
        return FilledForm(template=form.template, values=values)

    def missing_required(self, form: FilledForm) -> List[FormField]:
        """Required fields that are still empty"""
        return [
            field for field in form.template.fields
            if field.required and not form.value_of(field.id).strip()
        ]

    def is_complete(self, form: FilledForm) -> bool:
        return not self.missing_required(form)

    def build_preview(self, form: FilledForm, generated_at: Optional[datetime] = None) -> FormPreview:
        """Printable rendition of the form"""
        generated_at = generated_at or datetime.now()
        rows = []
        for field in form.template.fields:
            filled = form.values.get(field.id)
            rows.append(PreviewRow(
                label=field.label,
                value=filled.value if filled else "",
                required=field.required,
                auto_filled=bool(filled and filled.is_filled and filled.source in AUTO_SOURCES),
            ))

        return FormPreview(
            template_id=form.template.id,
            template_name=form.template.name,
            rows=rows,
            generated_at=generated_at,
            application_id=str(int(generated_at.timestamp() * 1000)),
        )


def render_text(preview: FormPreview) -> str:
    """Plain-text rendition of a preview for printing"""
    lines = [preview.template_name, "=" * len(preview.template_name)]

    width = max((len(row.label) for row in preview.rows), default=0) + 1
    for row in preview.rows:
        label = f"{row.label}{'*' if row.required else ''}"
        marker = "  (auto-filled)" if row.auto_filled else ""
        lines.append(f"{label:<{width + 1}} {row.value}{marker}".rstrip())

    lines.append("")
    lines.append(f"Generated on: {preview.generated_at:%d/%m/%Y %H:%M}")
    lines.append(f"Application ID: {preview.application_id}")
    return "\n".join(lines)
