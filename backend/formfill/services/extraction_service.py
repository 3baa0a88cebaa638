"""
Extraction Service
Structured identity-field extraction from noisy bilingual OCR output
"""
import re
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence

from loguru import logger

from formfill.config import settings
from formfill.schemas.document import RecognizedDocument, RecognizedWord, IdentityRecord
from formfill.utils.text_utils import (
    clean_and_validate_name,
    is_valid_date,
    is_valid_id_number,
    normalize_date,
    sanitize_value,
)


# A strategy looks at the whole document and returns a value or None
Strategy = Callable[[RecognizedDocument], Optional[str]]


class ExtractionError(ValueError):
    """No usable identity record could be derived from the image"""

    USER_MESSAGE = (
        "Could not read the identity card. "
        "Please retake the photo, ensure it is clear and fully visible."
    )

    def __init__(self, message: Optional[str] = None, detail: str = ""):
        super().__init__(message or self.USER_MESSAGE)
        self.detail = detail


# Words printed on identity cards that are never part of a person's name
NON_NAME_WORDS = frozenset({
    'government', 'govt', 'india', 'republic', 'aadhaar', 'aadhar', 'card',
    'unique', 'identification', 'authority', 'uidai', 'enrolment', 'download',
    'issue', 'vid', 'dob', 'date', 'birth', 'year', 'address', 'gender', 'sex',
    'male', 'female', 'pin', 'code', 'father', 'mother', 'husband', 'guardian',
    'name', 'to', 'signature', 'help',
    'भारत', 'सरकार', 'आधार', 'पुरुष', 'महिला', 'पता', 'जन्म', 'तिथि', 'पिता', 'नाम', 'लिंग',
})

# Lookahead ending a captured name: any non-letter (line break, digit, punctuation)
# or a personal-data keyword
NAME_STOP = r'(?=[ \t]*(?:[^A-Za-z \t]|\b(?:DOB|Date|Birth|Year|Gender|Male|Female)\b|$))'
NAME_VALUE = r'[ \t]*[:\-]?[ \t]*([A-Za-z][A-Za-z \t]{1,39}?)' + NAME_STOP

NAME_KEYWORD = re.compile(r'(?:\bName\b|नाम)' + NAME_VALUE, re.IGNORECASE)

FATHER_KEYWORD = re.compile(
    r"(?:Father(?:['’]?s)?(?:[ \t]+Name)?|Guardian(?:['’]?s)?(?:[ \t]+Name)?"
    r"|Parent(?:['’]?s)?(?:[ \t]+Name)?|Son[ \t]+of|S[ \t]*/[ \t]*O\b"
    r"|पिता(?:[ \t]*का[ \t]*नाम)?|अभिभावक)" + NAME_VALUE,
    re.IGNORECASE,
)

# Relation labels; a "Name" keyword after one of these belongs to a relative
RELATION_MARKER = re.compile(
    r'father|guardian|husband|parent|mother|पिता|अभिभावक|\b[SDWC][ \t]*/[ \t]*O\b',
    re.IGNORECASE,
)

CAPITALIZED_WORDS = r'([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)'

NAME_LAYOUT_PATTERNS = [
    # Holder name printed right before the relation marker
    re.compile(CAPITALIZED_WORDS + r'\s*(?i:S/O|D/O|W/O|Father|पिता)'),
    # First line under the "Government of India" header
    re.compile(r'(?i:Government[ \t]+of[ \t]+India)[^\n]*\n\s*' + CAPITALIZED_WORDS),
]

STRICT_NAME_LINE = re.compile(r'[A-Z][a-z]+(?: [A-Z][a-z]+)*')

DATE_KEYWORD = r'(?:\bDOB|\bD\.O\.B\.?|\bDate[ \t]+of[ \t]+Birth|\bBirth|जन्म[ \t]*तिथि|जन्म)[ \t]*[:\-]?[ \t]*'

DOB_PATTERNS = [
    re.compile(DATE_KEYWORD + r'(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{4})(?!\d)', re.IGNORECASE),
    re.compile(DATE_KEYWORD + r'(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2})(?!\d)', re.IGNORECASE),
    re.compile(r'(?<!\d)(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{4})(?!\d)'),
    re.compile(r'(?<!\d)(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2})(?!\d)'),
]

# 16-digit virtual ids, blanked before the id search; a year ending a date never starts one
VID_NUMBER = re.compile(r'(?<![\d/\-.])\d{4}(?:[ \t]*\d{4}){3}(?!\d)')
# 12 digits, optionally grouped 4-4-4 by any whitespace, not followed by more digits on the line
ID_NUMBER = re.compile(r'(?<!\d)(\d{4}\s*\d{4}\s*\d{4})(?![ \t]?\d)')

MALE_TEXT = re.compile(r'\bmale\b|पुरुष', re.IGNORECASE)
FEMALE_TEXT = re.compile(r'\bfemale\b|महिला', re.IGNORECASE)
# Standalone M / F on its own line or after a gender label
GENDER_TOKEN = re.compile(
    r'(?:^|(?i:\b(?:Gender|Sex)\b)[ \t]*[:/\-]?|लिंग[ \t]*[:/\-]?)[ \t]*([MF])[ \t]*$',
    re.MULTILINE,
)
GENDER_WORDS = {
    'male': 'Male', 'पुरुष': 'Male', 'M': 'Male',
    'female': 'Female', 'महिला': 'Female', 'F': 'Female',
}
GENDER_LABELS = frozenset({'gender', 'sex', 'लिंग'})

ADDRESS_KEYWORD = re.compile(
    r'(?:Address|पता)[ \t]*[:\-]?\s*(.+?)(?=\n[ \t]*\n|(?<!\d)\d{6}(?!\d)|\bPIN\b)',
    re.IGNORECASE | re.DOTALL,
)
PIN_CODE = re.compile(r'(?<!\d)\d{6}(?!\d)')


def fallback_gender(text: str) -> str:
    """Plain substring search used by callers when extraction found no gender"""
    lowered = text.lower()
    if 'female' in lowered or 'महिला' in text:
        return "Female"
    if 'male' in lowered or 'पुरुष' in text:
        return "Male"
    return "Not Specified"


def _contains_non_name_word(text: str) -> bool:
    return any(token in NON_NAME_WORDS for token in re.split(r'[\s/:,.]+', text.lower()) if token)


def _strip_address(value: str) -> str:
    return re.sub(r'[\s,;:\-]+$', '', sanitize_value(value))


class IdentityExtractor:
    """
    Field Extractor.

    Each attribute is derived by an ordered list of independent strategies;
    the first one returning a value wins. Only the name is mandatory.
    """

    def __init__(
        self,
        word_confidence: Optional[float] = None,
        line_tolerance: Optional[int] = None,
        word_gap: Optional[int] = None,
        scan_lines: Optional[int] = None,
        today: Optional[date] = None,
    ):
        self.word_confidence = settings.NAME_WORD_MIN_CONFIDENCE if word_confidence is None else word_confidence
        self.line_tolerance = settings.NAME_LINE_TOLERANCE_PX if line_tolerance is None else line_tolerance
        self.word_gap = settings.NAME_WORD_GAP_PX if word_gap is None else word_gap
        self.scan_lines = settings.NAME_SCAN_LINES if scan_lines is None else scan_lines
        self.today = today

        self.strategies: Dict[str, List[Strategy]] = {
            "name": [
                self._name_from_keyword,
                self._name_from_leading_lines,
                self._name_from_words,
                self._name_from_layout,
                self._name_from_any_line,  # last resort
            ],
            "father_name": [self._father_name_from_keyword],
            "dob": [self._dob_from_keyword, self._dob_from_any_date],
            "gender": [self._gender_from_text, self._gender_from_words],
            "id_number": [self._id_number_from_text],
            "address": [self._address_from_keyword, self._address_before_pin_code],
        }

    def extract(self, document: RecognizedDocument) -> IdentityRecord:
        """
        Derive an IdentityRecord from OCR output.
        Raises ExtractionError when no name of at least 2 characters is found.
        """
        values = {
            attribute: self._first_match(attribute, strategies, document)
            for attribute, strategies in self.strategies.items()
        }

        if len(values["name"]) < 2:
            logger.warning("Name extraction failed through all strategies")
            raise ExtractionError(detail="no usable name in recognized text")

        record = IdentityRecord(**values)
        missing = [attribute for attribute, value in values.items() if not value]
        if missing:
            logger.info(f"Extraction finished, missing: {', '.join(missing)}")
        return record

    def _first_match(
        self, attribute: str, strategies: Sequence[Strategy], document: RecognizedDocument
    ) -> str:
        for strategy in strategies:
            value = strategy(document)
            if value:
                logger.info(f"{attribute} found via {strategy.__name__.lstrip('_')}")
                return value
        return ""

    # --- Name ---

    def _name_from_keyword(self, document: RecognizedDocument) -> Optional[str]:
        text = document.full_text
        for match in NAME_KEYWORD.finditer(text):
            line_start = text.rfind('\n', 0, match.start()) + 1
            if RELATION_MARKER.search(text[line_start:match.start()]):
                continue  # "Father's Name", "पिता का नाम"
            cleaned = clean_and_validate_name(match.group(1))
            if cleaned and not _contains_non_name_word(cleaned):
                return cleaned
        return None

    def _name_from_leading_lines(self, document: RecognizedDocument) -> Optional[str]:
        lines = [line.strip() for line in document.full_text.split('\n') if line.strip()]
        for line in lines[:self.scan_lines]:
            if self._looks_like_name(line):
                cleaned = clean_and_validate_name(line)
                if cleaned:
                    return cleaned
        return None

    def _name_from_words(self, document: RecognizedDocument) -> Optional[str]:
        candidates = []
        for word in document.words:
            text = word.text.strip('.,:;')
            if (
                word.confidence > self.word_confidence
                and len(text) > 1
                and re.fullmatch(r'[A-Za-z]+', text)
                and text[0].isupper()
                and text.lower() not in NON_NAME_WORDS
            ):
                candidates.append(word.model_copy(update={"text": text}))

        best = ""
        for sequence in self._word_sequences(candidates):
            joined = ' '.join(word.text for word in sequence)
            if len(joined) > len(best) and 1 <= len(sequence) <= 4:
                best = joined

        return clean_and_validate_name(best) or None

    def _rows(self, words: List[RecognizedWord]) -> List[List[RecognizedWord]]:
        """Group words into rows by vertical position, each row left to right"""
        rows: List[List[RecognizedWord]] = []
        for word in sorted(words, key=lambda w: (w.bbox.y0, w.bbox.x0)):
            if rows and abs(word.bbox.y0 - rows[-1][0].bbox.y0) <= self.line_tolerance:
                rows[-1].append(word)
            else:
                rows.append([word])
        return [sorted(row, key=lambda w: w.bbox.x0) for row in rows]

    def _word_sequences(self, words: List[RecognizedWord]) -> List[List[RecognizedWord]]:
        """Split word rows at wide horizontal gaps"""
        sequences = []
        for row in self._rows(words):
            current: List[RecognizedWord] = []
            for word in row:
                if current:
                    previous = current[-1]
                    # Same word reported again by the second language pass
                    if word.text == previous.text and abs(word.bbox.x0 - previous.bbox.x0) <= self.line_tolerance:
                        continue
                    if word.bbox.x0 - previous.bbox.x1 > self.word_gap:
                        sequences.append(current)
                        current = []
                current.append(word)
            if current:
                sequences.append(current)
        return sequences

    def _name_from_layout(self, document: RecognizedDocument) -> Optional[str]:
        for pattern in NAME_LAYOUT_PATTERNS:
            for match in pattern.finditer(document.full_text):
                candidate = match.group(1)
                if _contains_non_name_word(candidate):
                    continue
                cleaned = clean_and_validate_name(candidate)
                if cleaned:
                    return cleaned
        return None

    def _name_from_any_line(self, document: RecognizedDocument) -> Optional[str]:
        for line in document.full_text.split('\n'):
            line = line.strip()
            if STRICT_NAME_LINE.fullmatch(line) and not _contains_non_name_word(line):
                cleaned = clean_and_validate_name(line)
                if cleaned:
                    return cleaned
        return None

    def _looks_like_name(self, line: str) -> bool:
        """Letters and spaces only, 2-50 characters, no card keywords"""
        if not re.fullmatch(r'[A-Za-z \t]+', line):
            return False
        if not (2 <= len(line) <= 50):
            return False
        return not _contains_non_name_word(line)

    # --- Father's name ---

    def _father_name_from_keyword(self, document: RecognizedDocument) -> Optional[str]:
        for match in FATHER_KEYWORD.finditer(document.full_text):
            cleaned = clean_and_validate_name(match.group(1))
            if cleaned and not _contains_non_name_word(cleaned):
                return cleaned
        return None

    # --- Date of birth ---

    def _dob_from_keyword(self, document: RecognizedDocument) -> Optional[str]:
        return self._first_valid_date(DOB_PATTERNS[:2], document.full_text)

    def _dob_from_any_date(self, document: RecognizedDocument) -> Optional[str]:
        return self._first_valid_date(DOB_PATTERNS[2:], document.full_text)

    def _first_valid_date(self, patterns: Sequence[re.Pattern], text: str) -> Optional[str]:
        for pattern in patterns:
            for match in pattern.finditer(text):
                candidate = match.group(1)
                if is_valid_date(candidate, self.today):
                    return normalize_date(candidate)
                logger.debug(f"Rejected date candidate: {candidate}")
        return None

    # --- Gender ---

    def _gender_from_text(self, document: RecognizedDocument) -> Optional[str]:
        text = document.full_text
        male = MALE_TEXT.search(text)
        female = FEMALE_TEXT.search(text)
        if male and female:
            return "Male" if male.start() < female.start() else "Female"
        if male:
            return "Male"
        if female:
            return "Female"

        token = GENDER_TOKEN.search(text)
        if token:
            return GENDER_WORDS[token.group(1)]
        return None

    def _gender_from_words(self, document: RecognizedDocument) -> Optional[str]:
        for row in self._rows(document.words):
            tokens = [word.text.strip('.,:;/-') for word in row]
            for i, token in enumerate(tokens):
                gender = GENDER_WORDS.get(token.lower())
                if gender:
                    return gender
                if token in ('M', 'F'):
                    # Initials inside a name are not gender
                    alone = all(other == token for other in tokens)
                    labelled = i > 0 and tokens[i - 1].lower() in GENDER_LABELS
                    if alone or labelled:
                        return GENDER_WORDS[token]
        return None

    # --- Identification number ---

    def _id_number_from_text(self, document: RecognizedDocument) -> Optional[str]:
        text = VID_NUMBER.sub(' ', document.full_text)
        for match in ID_NUMBER.finditer(text):
            digits = re.sub(r'\s', '', match.group(1))
            if is_valid_id_number(digits):
                return digits
            logger.debug("Rejected placeholder id number")
        return None

    # --- Address ---

    def _address_from_keyword(self, document: RecognizedDocument) -> Optional[str]:
        match = ADDRESS_KEYWORD.search(document.full_text)
        if match:
            address = _strip_address(match.group(1))
            if address:
                return address
        return None

    def _address_before_pin_code(self, document: RecognizedDocument) -> Optional[str]:
        text = document.full_text
        match = PIN_CODE.search(text)
        if not match:
            return None

        last_lines = text[:match.start()].rstrip().split('\n')[-3:]
        address = _strip_address(' '.join(last_lines))
        if len(address) > 10:
            return address
        return None
