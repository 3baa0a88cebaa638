"""
Test suite for form pre-filling, user input and preview
"""
import pytest
from datetime import datetime
from pydantic import ValidationError

from formfill.form_templates import FORM_TEMPLATES, get_template
from formfill.schemas.document import CanonicalField, IdentityRecord
from formfill.schemas.form import FieldType, FillSource, FilledField, FormField, FormTemplate
from formfill.services.form_service import FormFillerService, render_text


RECORD = IdentityRecord(name="Ravi Kumar", dob="15/08/1990", gender="Male", id_number="234512345678")

CUSTOM_TEMPLATE = FormTemplate(
    id="custom",
    name="Custom Form",
    fields=[
        FormField(id="applicant", label="Applicant Full Name", required=True),
        FormField(id="birth", label="Date of Birth", type=FieldType.DATE),
        FormField(id="father", label="Father Name"),
        FormField(id="phone", label="Mobile Number", required=True),
    ],
)


@pytest.fixture
def service():
    return FormFillerService(min_confidence=0.6)


@pytest.fixture
def jan_dhan(service):
    return service.prefill(get_template("jan-dhan"), RECORD)


class TestTemplates:
    """Test the built-in templates."""

    def test_lookup(self):
        """Test lookup by id."""
        assert get_template("pm-kisan").name == "PM-Kisan Scheme Registration"
        assert get_template("jan-dhan").get_field("gender").options == ["Male", "Female", "Other"]

    def test_unknown_template(self):
        """Test that unknown ids raise KeyError."""
        with pytest.raises(KeyError):
            get_template("passport")

    def test_unknown_field(self):
        """Test that unknown field ids raise ValueError."""
        with pytest.raises(ValueError):
            get_template("jan-dhan").get_field("email")

    def test_field_ids_unique(self):
        """Test that field ids are unique within each template."""
        for template in FORM_TEMPLATES:
            ids = [field.id for field in template.fields]
            assert len(ids) == len(set(ids))

    def test_identity_fields_explicitly_mapped(self):
        """Test that identity fields bypass fuzzy matching."""
        template = get_template("pm-kisan")
        assert template.get_field("farmerName").mapped_from == CanonicalField.NAME
        assert template.get_field("aadhaarNumber").mapped_from == CanonicalField.ID_NUMBER
        assert template.get_field("ifscCode").mapped_from is None


class TestPrefill:
    """Test the auto-fill policy."""

    def test_explicit_mapping(self, jan_dhan):
        """Test that explicit mappings fill with full confidence."""
        applicant = jan_dhan.values["applicantName"]
        assert applicant.value == "Ravi Kumar"
        assert applicant.confidence == 1.0
        assert applicant.source == FillSource.EXPLICIT
        assert jan_dhan.value_of("dob") == "15/08/1990"
        assert jan_dhan.value_of("gender") == "Male"
        assert jan_dhan.value_of("aadhaarNumber") == "234512345678"

    def test_empty_values_never_fill(self, jan_dhan):
        """Test that missing record attributes leave fields empty."""
        father = jan_dhan.values["fatherName"]
        assert father.value == ""
        assert father.source is None
        assert not father.is_filled

    def test_unmapped_fields_left_for_user(self, jan_dhan):
        """Test that fields without an identity counterpart stay empty."""
        assert jan_dhan.value_of("mobileNumber") == ""
        assert jan_dhan.value_of("occupation") == ""

    def test_fuzzy_mapping(self, service):
        """Test that labels are matched when no explicit mapping exists."""
        form = service.prefill(CUSTOM_TEMPLATE, RECORD)
        applicant = form.values["applicant"]
        assert applicant.value == "Ravi Kumar"
        assert applicant.source == FillSource.NLP
        assert 0.6 < applicant.confidence < 1.0
        assert form.values["birth"].confidence == pytest.approx(0.9)
        assert form.value_of("father") == ""
        assert form.value_of("phone") == ""

    def test_confidence_threshold(self):
        """Test that weaker matches are not auto-filled under a stricter threshold."""
        form = FormFillerService(min_confidence=0.8).prefill(CUSTOM_TEMPLATE, RECORD)
        assert form.value_of("applicant") == ""
        assert form.value_of("birth") == "15/08/1990"

    def test_select_uses_option_spelling(self, service):
        """Test that select values are rendered as the matching option."""
        record = RECORD.model_copy(update={"gender": "male"})
        form = service.prefill(get_template("jan-dhan"), record)
        assert form.value_of("gender") == "Male"

    def test_select_rejects_unknown_value(self, service):
        """Test that a value outside the options is not filled."""
        record = RECORD.model_copy(update={"gender": "Not Specified"})
        form = service.prefill(get_template("jan-dhan"), record)
        assert form.value_of("gender") == ""


class TestUserInput:
    """Test typed and voice corrections."""

    def test_typed_value_sanitized(self, service, jan_dhan):
        """Test that control characters and extra whitespace are removed."""
        form = service.apply_input(jan_dhan, "mobileNumber", "  98765\t43210\n")
        assert form.value_of("mobileNumber") == "98765 43210"
        assert form.values["mobileNumber"].source == FillSource.TYPED

    def test_forms_are_immutable(self, service, jan_dhan):
        """Test that applying input returns a new form."""
        form = service.apply_input(jan_dhan, "mobileNumber", "9876543210")
        assert form is not jan_dhan
        assert jan_dhan.value_of("mobileNumber") == ""

    def test_blank_input_ignored(self, service, jan_dhan):
        """Test that blank input leaves the form unchanged."""
        assert service.apply_input(jan_dhan, "applicantName", " \n ") is jan_dhan

    def test_voice_input(self, service, jan_dhan):
        """Test that dictated values keep their source and confidence."""
        form = service.apply_input(jan_dhan, "fatherName", "Mohan Lal", FillSource.VOICE, 0.92)
        father = form.values["fatherName"]
        assert father.value == "Mohan Lal"
        assert father.source == FillSource.VOICE
        assert father.confidence == 0.92

    def test_select_option(self, service, jan_dhan):
        """Test that select input is matched case-insensitively."""
        form = service.apply_input(jan_dhan, "occupation", "business")
        assert form.value_of("occupation") == "Business"

    def test_invalid_select_option(self, service, jan_dhan):
        """Test that a value outside the options is refused."""
        with pytest.raises(ValueError, match="not a valid option"):
            service.apply_input(jan_dhan, "occupation", "Pilot")

    def test_unknown_field(self, service, jan_dhan):
        """Test that an unknown field id is refused."""
        with pytest.raises(ValueError):
            service.apply_input(jan_dhan, "email", "a@b.c")

    def test_control_characters_rejected_by_model(self):
        """Test the plain-text invariant on stored values."""
        with pytest.raises(ValidationError):
            FilledField(field_id="applicantName", value="Ravi\nKumar")


class TestCompleteness:
    """Test required field tracking."""

    def test_missing_required(self, service, jan_dhan):
        """Test the list of required fields still empty."""
        missing = [field.id for field in service.missing_required(jan_dhan)]
        assert missing == ["fatherName", "mobileNumber", "occupation", "monthlyIncome"]
        assert not service.is_complete(jan_dhan)

    def test_complete(self, service, jan_dhan):
        """Test that a form with every required field is complete."""
        form = jan_dhan
        for field_id, value in [
            ("fatherName", "Mohan Lal"),
            ("mobileNumber", "9876543210"),
            ("occupation", "Service"),
            ("monthlyIncome", "5000"),
        ]:
            form = service.apply_input(form, field_id, value)
        assert service.missing_required(form) == []
        assert service.is_complete(form)


class TestPreview:
    """Test the printable preview."""

    GENERATED_AT = datetime(2024, 1, 15, 10, 30)

    def test_rows(self, service, jan_dhan):
        """Test one row per field with the auto-filled flag."""
        form = service.apply_input(jan_dhan, "mobileNumber", "9876543210")
        preview = service.build_preview(form, self.GENERATED_AT)

        assert preview.template_id == "jan-dhan"
        assert len(preview.rows) == len(form.template.fields)
        rows = {row.label: row for row in preview.rows}
        assert rows["Applicant Name"].auto_filled
        assert rows["Applicant Name"].required
        assert rows["Mobile Number"].value == "9876543210"
        assert not rows["Mobile Number"].auto_filled
        assert not rows["Father's Name"].auto_filled

    def test_application_id(self, service, jan_dhan):
        """Test that the application id is the generation time in milliseconds."""
        preview = service.build_preview(jan_dhan, self.GENERATED_AT)
        assert preview.application_id == str(int(self.GENERATED_AT.timestamp() * 1000))

    def test_render_text(self, service, jan_dhan):
        """Test the plain-text rendition."""
        preview = service.build_preview(jan_dhan, self.GENERATED_AT)
        text = render_text(preview)
        lines = text.split("\n")

        assert lines[0] == "Jan Dhan Yojana Account Opening"
        assert "Applicant Name*" in text
        assert "Ravi Kumar  (auto-filled)" in text
        assert "Generated on: 15/01/2024 10:30" in text
        assert lines[-1] == f"Application ID: {preview.application_id}"

    def test_json(self, service, jan_dhan):
        """Test that the preview serializes to JSON."""
        preview = service.build_preview(jan_dhan, self.GENERATED_AT)
        data = preview.model_dump(mode="json")
        assert data["template_name"] == "Jan Dhan Yojana Account Opening"
        assert data["generated_at"] == "2024-01-15T10:30:00"


if __name__ == "__main__":
    pytest.main(["-v", __file__])
