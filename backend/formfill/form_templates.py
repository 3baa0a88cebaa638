"""
Form Templates
Built-in government forms that can be pre-filled from an identity record
"""
from typing import Dict, List

from formfill.schemas.document import CanonicalField
from formfill.schemas.form import FieldType, FormField, FormTemplate


GENDER_OPTIONS = ["Male", "Female", "Other"]

FORM_TEMPLATES: List[FormTemplate] = [
    FormTemplate(
        id="jan-dhan",
        name="Jan Dhan Yojana Account Opening",
        description="Open a bank account under Pradhan Mantri Jan Dhan Yojana",
        fields=[
            FormField(id="applicantName", label="Applicant Name", required=True,
                      mapped_from=CanonicalField.NAME),
            FormField(id="fatherName", label="Father's Name", required=True,
                      mapped_from=CanonicalField.FATHER_NAME),
            FormField(id="dob", label="Date of Birth", type=FieldType.DATE, required=True,
                      mapped_from=CanonicalField.DOB),
            FormField(id="gender", label="Gender", type=FieldType.SELECT, required=True,
                      options=GENDER_OPTIONS, mapped_from=CanonicalField.GENDER),
            FormField(id="aadhaarNumber", label="Aadhaar Number", required=True,
                      mapped_from=CanonicalField.ID_NUMBER),
            FormField(id="mobileNumber", label="Mobile Number", required=True),
            FormField(id="occupation", label="Occupation", type=FieldType.SELECT, required=True,
                      options=["Agriculture", "Business", "Service", "Self-Employed",
                               "Housewife", "Student", "Other"]),
            FormField(id="monthlyIncome", label="Monthly Income (₹)", type=FieldType.NUMBER, required=True),
        ],
    ),
    FormTemplate(
        id="pm-kisan",
        name="PM-Kisan Scheme Registration",
        description="Register for Pradhan Mantri Kisan Samman Nidhi Yojana",
        fields=[
            FormField(id="farmerName", label="Farmer Name", required=True,
                      mapped_from=CanonicalField.NAME),
            FormField(id="fatherName", label="Father's Name", required=True,
                      mapped_from=CanonicalField.FATHER_NAME),
            FormField(id="dob", label="Date of Birth", type=FieldType.DATE, required=True,
                      mapped_from=CanonicalField.DOB),
            FormField(id="gender", label="Gender", type=FieldType.SELECT, required=True,
                      options=GENDER_OPTIONS, mapped_from=CanonicalField.GENDER),
            FormField(id="aadhaarNumber", label="Aadhaar Number", required=True,
                      mapped_from=CanonicalField.ID_NUMBER),
            FormField(id="mobileNumber", label="Mobile Number", required=True),
            FormField(id="bankAccountNumber", label="Bank Account Number", required=True),
            FormField(id="ifscCode", label="IFSC Code", required=True),
            FormField(id="landArea", label="Total Land Area (in hectares)", type=FieldType.NUMBER,
                      required=True),
            FormField(id="landType", label="Land Type", type=FieldType.SELECT, required=True,
                      options=["Irrigated", "Un-irrigated", "Mixed"]),
        ],
    ),
]

_TEMPLATES_BY_ID: Dict[str, FormTemplate] = {template.id: template for template in FORM_TEMPLATES}


def get_template(template_id: str) -> FormTemplate:
    """Look up a built-in template; raises KeyError for unknown ids"""
    try:
        return _TEMPLATES_BY_ID[template_id]
    except KeyError:
        raise KeyError(f"Unknown form template: {template_id}") from None
