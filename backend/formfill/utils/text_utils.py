"""
Text Utilities
Normalizers and validators shared by extraction, matching and form input
"""
import re
from datetime import date
from typing import Optional


# C0 and C1 control characters (includes line breaks and tabs)
CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f-\x9f]')

# D{1,2} sep D{1,2} sep YY|YYYY, any of / - . as separator
DATE_PARTS = re.compile(r'^\s*(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4}|\d{2})\s*$')

# Placeholder numbers printed on sample cards
DEGENERATE_ID_NUMBERS = frozenset({
    "000000000000",
    "111111111111",
    "222222222222",
    "123456789012",
})


def clean_and_validate_name(name: str) -> str:
    """
    Normalize a candidate name.

    Punctuation becomes whitespace, tokens shorter than 2 characters or
    containing anything but ASCII letters are dropped and the rest are
    title-cased. Returns "" unless the result is 2-50 characters long.
    """
    if not name:
        return ""

    cleaned = re.sub(r'[^\w\s]', ' ', name)
    tokens = [
        token.capitalize()
        for token in cleaned.split()
        if len(token) > 1 and re.fullmatch(r'[A-Za-z]+', token)
    ]
    result = ' '.join(tokens)

    if len(result) < 2 or len(result) > 50:
        return ""
    if not re.fullmatch(r'[A-Za-z ]+', result):
        return ""
    return result


def expand_year(year: str) -> int:
    """Expand a 2-digit year with a pivot at 50 (51-99 -> 19xx, 00-50 -> 20xx)"""
    value = int(year)
    if len(year) == 2:
        return 1900 + value if value > 50 else 2000 + value
    return value


def normalize_date(date_str: str) -> str:
    """Render a day-first date as zero-padded DD/MM/YYYY, or return it unchanged"""
    match = DATE_PARTS.match(date_str)
    if not match:
        return date_str

    day, month, year = match.groups()
    return f"{int(day):02d}/{int(month):02d}/{expand_year(year)}"


def is_valid_date(date_str: str, today: Optional[date] = None) -> bool:
    """Check day/month ranges and that the (expanded) year lies in [1900, current year]"""
    match = DATE_PARTS.match(date_str)
    if not match:
        return False

    day = int(match.group(1))
    month = int(match.group(2))
    year = expand_year(match.group(3))
    current_year = (today or date.today()).year

    return 1 <= day <= 31 and 1 <= month <= 12 and 1900 <= year <= current_year


def is_valid_id_number(number: str) -> bool:
    """12 digits and not one of the known placeholder numbers"""
    return bool(re.fullmatch(r'\d{12}', number)) and number not in DEGENERATE_ID_NUMBERS


def normalize_label(label: str) -> str:
    """Lowercase, strip punctuation (Devanagari is kept) and collapse whitespace"""
    cleaned = re.sub(r'[^\w\s\u0900-\u097F]', ' ', label.lower())
    return re.sub(r'\s+', ' ', cleaned).strip()


def has_control_chars(value: str) -> bool:
    return bool(CONTROL_CHARS.search(value))


def sanitize_value(value: str) -> str:
    """Replace control characters with spaces, collapse whitespace and trim"""
    return re.sub(r'\s+', ' ', CONTROL_CHARS.sub(' ', value)).strip()
