"""
Field Matcher Service
Maps free-text form field labels onto canonical identity attributes
"""
from typing import List, Optional, Sequence, Tuple

from loguru import logger
from rapidfuzz import fuzz, process

from formfill.config import settings
from formfill.schemas.document import CanonicalField
from formfill.schemas.form import CanonicalFieldAlias, FieldMatch
from formfill.utils.text_utils import normalize_label


# Static alias table, English and Hindi phrases per canonical attribute
FIELD_ALIASES: Tuple[CanonicalFieldAlias, ...] = (
    CanonicalFieldAlias(
        field=CanonicalField.NAME,
        key="name",
        weight=0.9,
        aliases=("applicant name", "full name", "candidate name", "person name", "नाम", "आवेदक का नाम"),
    ),
    CanonicalFieldAlias(
        field=CanonicalField.FATHER_NAME,
        key="father",
        weight=0.85,
        aliases=(
            "father name", "fathers name", "guardian name", "parent name",
            "पिता का नाम", "अभिभावक का नाम", "s/o", "son of",
        ),
    ),
    CanonicalFieldAlias(
        field=CanonicalField.DOB,
        key="dob",
        weight=0.9,
        aliases=("date of birth", "birth date", "dob", "जन्म तिथि", "जन्मदिन"),
    ),
    CanonicalFieldAlias(
        field=CanonicalField.GENDER,
        key="gender",
        weight=0.9,
        aliases=("sex", "gender", "लिंग", "male/female"),
    ),
    CanonicalFieldAlias(
        field=CanonicalField.ID_NUMBER,
        key="aadhaar",
        weight=0.95,
        aliases=("aadhaar number", "aadhar number", "uid", "unique id", "आधार संख्या", "आधार नंबर"),
    ),
    CanonicalFieldAlias(
        field=CanonicalField.ADDRESS,
        key="address",
        weight=0.8,
        aliases=("address", "permanent address", "residential address", "पता", "स्थायी पता"),
    ),
)

MIN_LABEL_LENGTH = 2

# Relatives with no identity-card attribute of their own
OTHER_PERSON_WORDS = frozenset({"mother", "husband", "wife", "spouse", "माता", "पति", "पत्नी"})


def _names_other_person(clean_label: str) -> bool:
    return not OTHER_PERSON_WORDS.isdisjoint(clean_label.split())


class FieldMatcher:
    """
    Fuzzy matcher over a read-only alias table.

    Labels and alias phrases are normalized the same way and compared with
    rapidfuzz's token_sort_ratio. A phrase qualifies when its score reaches
    score_cutoff (60 means a match distance of at most 0.4); the reported
    confidence is (1 - distance) * entry weight.
    """

    def __init__(
        self,
        aliases: Sequence[CanonicalFieldAlias] = FIELD_ALIASES,
        score_cutoff: Optional[float] = None,
    ):
        self.aliases = aliases
        self.score_cutoff = settings.FUZZY_SCORE_CUTOFF if score_cutoff is None else score_cutoff

        # Flattened search space; owners[i] is the entry of choices[i]
        self._choices: List[str] = []
        self._owners: List[CanonicalFieldAlias] = []
        for entry in aliases:
            for phrase in (entry.key,) + entry.aliases:
                self._choices.append(normalize_label(phrase))
                self._owners.append(entry)

    def match_field(self, label: str) -> FieldMatch:
        """Best canonical attribute for a label; zero confidence when nothing matches"""
        matches = self.get_all_matches(label)
        if matches:
            return matches[0]

        clean_label = normalize_label(label)
        if _names_other_person(clean_label):
            logger.debug(f"Label '{label}' names another person, not matched")
            return FieldMatch()

        direct = self._keyword_match(clean_label)
        if direct:
            logger.debug(f"Label '{label}' matched by keyword: {direct.canonical_field.value}")
            return direct

        return FieldMatch()

    def get_all_matches(self, label: str) -> List[FieldMatch]:
        """Every attribute whose best phrase passes the cutoff, in ranking order"""
        clean_label = normalize_label(label)
        if len(clean_label) < MIN_LABEL_LENGTH or _names_other_person(clean_label):
            return []

        results = process.extract(
            clean_label,
            self._choices,
            scorer=fuzz.token_sort_ratio,
            processor=None,
            score_cutoff=self.score_cutoff,
            limit=None,
        )

        matches = []
        seen = set()
        for phrase, score, index in results:
            entry = self._owners[index]
            if entry.field in seen:
                continue
            seen.add(entry.field)
            matches.append(FieldMatch(
                canonical_field=entry.field,
                confidence=round((score / 100.0) * entry.weight, 4),
                matched_alias=phrase,
            ))
        return matches

    def _keyword_match(self, clean_label: str) -> Optional[FieldMatch]:
        """Deterministic containment checks used when fuzzy search finds nothing"""
        if 'name' in clean_label and 'father' not in clean_label and 'guardian' not in clean_label:
            return FieldMatch(canonical_field=CanonicalField.NAME, confidence=0.8, matched_alias='name')

        if 'father' in clean_label or 'guardian' in clean_label or 'parent' in clean_label:
            return FieldMatch(canonical_field=CanonicalField.FATHER_NAME, confidence=0.8, matched_alias='father')

        if 'date' in clean_label and 'birth' in clean_label:
            return FieldMatch(canonical_field=CanonicalField.DOB, confidence=0.8, matched_alias='dob')

        if 'gender' in clean_label or 'sex' in clean_label:
            return FieldMatch(canonical_field=CanonicalField.GENDER, confidence=0.8, matched_alias='gender')

        if 'aadhaar' in clean_label or 'aadhar' in clean_label or 'uid' in clean_label:
            return FieldMatch(canonical_field=CanonicalField.ID_NUMBER, confidence=0.9, matched_alias='aadhaar')

        if 'address' in clean_label or 'residence' in clean_label:
            return FieldMatch(canonical_field=CanonicalField.ADDRESS, confidence=0.7, matched_alias='address')

        return None
