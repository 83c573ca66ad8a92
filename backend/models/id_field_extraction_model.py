"""ID DOCUMENT FIELD EXTRACTION
----------------------------
Turn the OCR transcript of a Ghanaian identity document into structured
fields.

Every field has an ordered tuple of matchers ``(lines, full_text) -> value``;
the first matcher returning a value wins. Line-pair matchers (label on one
line, value on the next) come first, inline regexes over the flattened text
come after, generic fallbacks come last.

Fields:
  - id_name             "<firstnames> <surname>"
  - id_number           document number
  - id_dob / id_issue_date / id_expiry_date   (ISO YYYY-MM-DD)
  - id_issuer           place of issuance
  - personal_id_number  GHA-XXXXXXXXXX
  - gender / nationality
  - id_type             document category
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from models.ghana_geography import find_issuing_city
from models.id_text_normalizer import normalize_ocr_text, transcript_from_payload

logger = logging.getLogger("idverify.extraction")

Matcher = Callable[[List[str], str], Optional[str]]


# ----------------------------------------------------------- results ---

# attribute → key used by the HTTP API and the validator
WIRE_KEYS: Dict[str, str] = {
    "id_name": "idName",
    "id_number": "idNumber",
    "id_dob": "idDOB",
    "id_issue_date": "idIssueDate",
    "id_expiry_date": "idExpiryDate",
    "id_issuer": "idIssuer",
    "personal_id_number": "personalIdNumber",
    "gender": "gender",
    "nationality": "nationality",
    "id_type": "idType",
    "raw_text": "rawText",
}


@dataclass
class ExtractedIDInfo:
    id_name: Optional[str] = None
    id_number: Optional[str] = None
    id_dob: Optional[str] = None
    id_issue_date: Optional[str] = None
    id_expiry_date: Optional[str] = None
    id_issuer: Optional[str] = None
    personal_id_number: Optional[str] = None
    gender: Optional[str] = None
    nationality: Optional[str] = None
    id_type: Optional[str] = None
    raw_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {WIRE_KEYS[k]: v for k, v in asdict(self).items()}


# ------------------------------------------------------- label patterns ---

SURNAME_LABEL_RE = re.compile(r"Surname[\s/]+Nom\b", re.IGNORECASE)
FIRSTNAMES_LABEL_RE = re.compile(r"First\s*names?[\s/]+Pr[ée]noms?", re.IGNORECASE)
DOB_LABEL_RE = re.compile(r"Date\s+of\s+Birth", re.IGNORECASE)
ISSUE_DATE_LABEL_RE = re.compile(r"Date\s+of\s+Issu(?:ance|e)", re.IGNORECASE)
EXPIRY_DATE_LABEL_RE = re.compile(r"Date\s+of\s+Expiry", re.IGNORECASE)
DOC_NUMBER_LABEL_RE = re.compile(r"Document\s+(?:Number|No)\b", re.IGNORECASE)
ISSUER_LABEL_RE = re.compile(r"Place\s+of\s+Issu(?:ance|e)", re.IGNORECASE)
SEX_LABEL_RE = re.compile(r"\bSex\s*/\s*Sexe\b", re.IGNORECASE)
NATIONALITY_LABEL_RE = re.compile(r"Nationality\s*/\s*Nationalit[ée]", re.IGNORECASE)

# Labels printed on the card that never carry a value we extract, but must
# not be mistaken for one.
_OTHER_LABEL_RES = (
    re.compile(r"Personal\s+ID\s+Number", re.IGNORECASE),
    re.compile(r"Height\s*/\s*Taille", re.IGNORECASE),
    re.compile(r"Signature", re.IGNORECASE),
)

_ALL_LABEL_RES = (
    SURNAME_LABEL_RE,
    FIRSTNAMES_LABEL_RE,
    DOB_LABEL_RE,
    ISSUE_DATE_LABEL_RE,
    EXPIRY_DATE_LABEL_RE,
    DOC_NUMBER_LABEL_RE,
    ISSUER_LABEL_RE,
    SEX_LABEL_RE,
    NATIONALITY_LABEL_RE,
) + _OTHER_LABEL_RES


# ------------------------------------------------------- value patterns ---

_NAME_VALUE_RE = re.compile(r"[A-Za-z][A-Za-z\s'\-]*")
_DATE_RE = re.compile(r"(?<!\d)(\d{2})[/\-](\d{2})[/\-](\d{4})(?!\d)")
_DATE_IN_LINE_RE = re.compile(r".*?(\d{2}[/\-]\d{2}[/\-]\d{4}).*")
_DATE_AFTER_LABEL_RE = re.compile(r".*?(\d{2}[/\-]\d{2}[/\-]\d{4})")
_ALNUM_VALUE_RE = re.compile(r"(?=[A-Za-z]*\d)[A-Za-z0-9]+")
_UPPER_WORDS_RE = re.compile(r"[A-Z][A-Z\s]*")
_UPPER_WORD_RE = re.compile(r"[A-Z]{3,}")
_SEX_VALUE_RE = re.compile(r"(MALE|FEMALE|M|F)", re.IGNORECASE)
_SEX_AFTER_LABEL_RE = re.compile(r"\s*:?\s*(MALE|FEMALE|M|F)\b", re.IGNORECASE)
_WORD_AFTER_LABEL_RE = re.compile(r"\s*:?\s*([A-Z]{3,})\b(?!\s*/)")

# OCR often merges the nationality and sex values into one line,
# e.g. "GHANAIAN M" under a "Nationality/Nationalité Sex/Sexe" header.
_NATIONALITY_SEX_RE = re.compile(r"([A-Z]{3,})\s+([MF])")

DOC_NUMBER_MIN_LEN = 6
DOC_NUMBER_MAX_LEN = 20

DATE_MIN_YEAR = 1900
DATE_MAX_YEAR = 2100


# -------------------------------------------------------------- helpers ---

def _is_label_line(text: str) -> bool:
    """Return True if *text* contains any known field label."""
    return any(rx.search(text) for rx in _ALL_LABEL_RES)


def _value(m: re.Match) -> str:
    return (m.group(1) if m.re.groups else m.group(0)).strip()


def _identity(value: str) -> Optional[str]:
    return value or None


def _first_match(matchers: Sequence[Matcher], lines: List[str],
                 full_text: str) -> Optional[str]:
    for matcher in matchers:
        value = matcher(lines, full_text)
        if value:
            return value
    return None


def _next_line_value(lines: List[str], label_re: re.Pattern,
                     accept_re: re.Pattern) -> Optional[re.Match]:
    """Find a line matching *label_re* whose next line fullmatches *accept_re*.

    The next line is rejected when it is itself a labelled field.
    """
    for i in range(len(lines) - 1):
        if not label_re.search(lines[i]):
            continue
        candidate = lines[i + 1]
        m = accept_re.fullmatch(candidate)
        if m and not _is_label_line(candidate):
            return m
    return None


# ---- matcher builders ---------------------------------------------

def _line_pair(label_re: re.Pattern, accept_re: re.Pattern,
               transform: Callable[[str], Optional[str]] = _identity) -> Matcher:
    """Method A: label on one line, value on the next."""
    def matcher(lines: List[str], full_text: str) -> Optional[str]:
        m = _next_line_value(lines, label_re, accept_re)
        return transform(_value(m)) if m else None
    return matcher


def _same_line(label_re: re.Pattern, value_re: re.Pattern,
               transform: Callable[[str], Optional[str]] = _identity) -> Matcher:
    """Value printed on the label line, directly after the label."""
    def matcher(lines: List[str], full_text: str) -> Optional[str]:
        for line in lines:
            label = label_re.search(line)
            if not label:
                continue
            m = value_re.match(line, label.end())
            if m:
                value = transform(_value(m))
                if value:
                    return value
        return None
    return matcher


def _inline(pattern: re.Pattern,
            transform: Callable[[str], Optional[str]] = _identity) -> Matcher:
    """Method B: one regex over the flattened text."""
    def matcher(lines: List[str], full_text: str) -> Optional[str]:
        m = pattern.search(full_text)
        return transform(_value(m)) if m else None
    return matcher


# ================================================================ dates ===

def parse_date(text: Optional[str]) -> Optional[str]:
    """Convert the first ``DD/MM/YYYY`` or ``DD-MM-YYYY`` in *text* to ISO.

    Day, month and year are range-checked independently; day-in-month is
    not checked (``31/02/2020`` → ``2020-02-31``).
    """
    m = _DATE_RE.search(text or "")
    if not m:
        logger.warning("Could not parse date from text: %r", text)
        return None

    day, month, year = (int(g) for g in m.groups())
    if not (1 <= day <= 31 and 1 <= month <= 12
            and DATE_MIN_YEAR <= year <= DATE_MAX_YEAR):
        logger.warning("Date out of range: %r", m.group(0))
        return None
    return f"{m.group(3)}-{m.group(2)}-{m.group(1)}"


_DATE_LABEL_RES = (DOB_LABEL_RE, ISSUE_DATE_LABEL_RE, EXPIRY_DATE_LABEL_RE)


def _unlabelled_dates(full_text: str) -> List[re.Match]:
    """Date tokens not claimed by a date label.

    The first date after each date label belongs to that label, even when
    it is out of range.
    """
    claimed = set()
    for label_re in _DATE_LABEL_RES:
        for label in label_re.finditer(full_text):
            m = _DATE_RE.search(full_text, label.end())
            if m:
                claimed.add(m.start())
    return [m for m in _DATE_RE.finditer(full_text) if m.start() not in claimed]


def _bare_date(index: int) -> Matcher:
    """Fallback: the *index*-th unlabelled date in text order."""
    def matcher(lines: List[str], full_text: str) -> Optional[str]:
        found = _unlabelled_dates(full_text)
        if index >= len(found):
            return None
        return parse_date(found[index].group(0))
    return matcher


def _date_matchers(label_re: re.Pattern, bare_index: int) -> Tuple[Matcher, ...]:
    inline_re = re.compile(
        label_re.pattern + r".*?(\d{2}[/\-]\d{2}[/\-]\d{4})", re.IGNORECASE
    )
    return (
        _same_line(label_re, _DATE_AFTER_LABEL_RE, parse_date),
        _line_pair(label_re, _DATE_IN_LINE_RE, parse_date),
        _inline(inline_re, parse_date),
        _bare_date(bare_index),
    )


DOB_MATCHERS = _date_matchers(DOB_LABEL_RE, 0)
ISSUE_DATE_MATCHERS = _date_matchers(ISSUE_DATE_LABEL_RE, 1)
EXPIRY_DATE_MATCHERS = _date_matchers(EXPIRY_DATE_LABEL_RE, 2)


# ================================================================ names ===

SURNAME_MATCHERS: Tuple[Matcher, ...] = (
    _line_pair(SURNAME_LABEL_RE, _NAME_VALUE_RE),
    _inline(re.compile(r"(?i:Surname[\s/]+Nom)\s*:?\s*([A-Z][A-Z'\-]+)\b")),
)

FIRSTNAMES_MATCHERS: Tuple[Matcher, ...] = (
    _line_pair(FIRSTNAMES_LABEL_RE, _NAME_VALUE_RE),
    _inline(re.compile(
        r"(?i:First\s*names?[\s/]+Pr[ée]noms?)\s*:?\s*([A-Z][A-Z'\-]+)\b"
    )),
)


def extract_name(lines: List[str], full_text: str) -> Optional[str]:
    firstnames = _first_match(FIRSTNAMES_MATCHERS, lines, full_text)
    surname = _first_match(SURNAME_MATCHERS, lines, full_text)
    name = " ".join(part for part in (firstnames, surname) if part)
    return name or None


# ==================================================== personal ID number ===

_PERSONAL_ID_RES = (
    re.compile(r"\b(GHA-\d{10,12})(?!\d)"),
    # OCR spacing around the hyphen, or a dropped hyphen
    re.compile(r"\b(?i:GHA)\s*-?\s*(\d{10,12})(?!\d)"),
    # Check digit printed after its own hyphen: GHA-123456789-0
    re.compile(r"\b(?i:GHA)\s*-?\s*(\d(?:-?\d){9,11})(?!\d)"),
)


def _gha_digits(digits: str) -> Optional[str]:
    digits = re.sub(r"\D", "", digits)
    return f"GHA-{digits}" if 10 <= len(digits) <= 12 else None


PERSONAL_ID_MATCHERS: Tuple[Matcher, ...] = (
    _inline(_PERSONAL_ID_RES[0]),
    _inline(_PERSONAL_ID_RES[1], _gha_digits),
    _inline(_PERSONAL_ID_RES[2], _gha_digits),
)


def _personal_id_spans(full_text: str) -> List[Tuple[int, int]]:
    return [m.span() for rx in _PERSONAL_ID_RES for m in rx.finditer(full_text)]


# ======================================================= document number ===

_DOC_NUMBER_PATTERNS = (
    re.compile(r"(?i:Document\s+(?:Number|No)\b)\.?\s*:?\s*((?=[A-Z]*\d)[A-Z0-9]{6,})"),
    # Ghana card: two letters followed by the digit run
    re.compile(r"\b([A-Z]{2}\d{6,})\b"),
    # Any 6+ alphanumeric token with a digit
    re.compile(r"(?<!GHA-)\b((?=[A-Z]*\d)[A-Z0-9]{6,})\b"),
)


def _within_doc_number_length(value: str) -> bool:
    return DOC_NUMBER_MIN_LEN <= len(value) <= DOC_NUMBER_MAX_LEN


def _doc_number_line_pair(lines: List[str], full_text: str) -> Optional[str]:
    m = _next_line_value(lines, DOC_NUMBER_LABEL_RE, _ALNUM_VALUE_RE)
    if m and _within_doc_number_length(m.group(0)):
        return m.group(0)
    return None


def _doc_number_candidates(lines: List[str], full_text: str) -> Optional[str]:
    """First in-length candidate that is not part of a personal ID number."""
    personal_ids = _personal_id_spans(full_text)
    for pattern in _DOC_NUMBER_PATTERNS:
        for m in pattern.finditer(full_text):
            start, end = m.span(1)
            if any(start < p_end and p_start < end for p_start, p_end in personal_ids):
                continue
            if _within_doc_number_length(m.group(1)):
                return m.group(1)
    return None


DOC_NUMBER_MATCHERS: Tuple[Matcher, ...] = (
    _doc_number_line_pair,
    _doc_number_candidates,
)


# ================================================================ issuer ===

def _issuing_city(lines: List[str], full_text: str) -> Optional[str]:
    return find_issuing_city(full_text)


ISSUER_MATCHERS: Tuple[Matcher, ...] = (
    _line_pair(ISSUER_LABEL_RE, _UPPER_WORDS_RE),
    _inline(re.compile(r"(?i:Place\s+of\s+Issu(?:ance|e))\s*:?\s*([A-Z]{2,})\b")),
    _issuing_city,
)


# ============================================== gender and nationality ===

def _sex_letter(value: str) -> Optional[str]:
    return value[:1].upper() if value else None


def _nationality_word(value: str) -> Optional[str]:
    if not value or _is_label_line(value):
        return None
    return value.upper()


def _merged_line(label_re: re.Pattern, group: int) -> Matcher:
    """Read one half of a merged "GHANAIAN M" line under *label_re*."""
    def matcher(lines: List[str], full_text: str) -> Optional[str]:
        m = _next_line_value(lines, label_re, _NATIONALITY_SEX_RE)
        return m.group(group) if m else None
    return matcher


GENDER_MATCHERS: Tuple[Matcher, ...] = (
    _same_line(SEX_LABEL_RE, _SEX_AFTER_LABEL_RE, _sex_letter),
    _line_pair(SEX_LABEL_RE, _SEX_VALUE_RE, _sex_letter),
    _merged_line(SEX_LABEL_RE, 2),
    _merged_line(NATIONALITY_LABEL_RE, 2),
    _inline(re.compile(r"(?i:\bSex\s*/\s*Sexe)\s*:?\s*(?i:(MALE|FEMALE|M|F))\b"),
            _sex_letter),
)

NATIONALITY_MATCHERS: Tuple[Matcher, ...] = (
    _same_line(NATIONALITY_LABEL_RE, _WORD_AFTER_LABEL_RE, _nationality_word),
    _line_pair(NATIONALITY_LABEL_RE, _UPPER_WORD_RE, _nationality_word),
    _merged_line(NATIONALITY_LABEL_RE, 1),
    _merged_line(SEX_LABEL_RE, 1),
    _inline(re.compile(r"(?i:Nationality\s*/\s*Nationalit[ée])\s*:?\s*([A-Z]{3,})\b(?!\s*/)"),
            _nationality_word),
    _inline(re.compile(r"\b(GHANAIAN)\b", re.IGNORECASE), _nationality_word),
)


# ========================================================= document type ===

# Ordered: the first entry with any keyword present wins.
DOCUMENT_TYPE_KEYWORDS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("ghana card", "identity card"), "ghana_card"),
    (("passport",), "passport"),
    (("driver", "driving", "license", "licence"), "driver_license"),
    (("voter", "electoral commission"), "voter_id"),
    (("student", "university"), "student_id"),
)


def classify_document_type(lower_text: str) -> Optional[str]:
    """Infer the document category from keywords in lowercase text."""
    for keywords, doc_type in DOCUMENT_TYPE_KEYWORDS:
        if any(keyword in lower_text for keyword in keywords):
            return doc_type
    return None


# ========================================================== entry point ===

def extract_id_info(data: Any) -> ExtractedIDInfo:
    """Extract ID fields from an OCR response shaped ``{"text": {"text": str}}``.

    Never raises: a malformed payload or an unexpected error gives a record
    with every field None (``raw_text`` kept when it was readable).
    """
    raw_text = transcript_from_payload(data)
    if raw_text is None:
        logger.error("OCR text is not a string (payload type %s)", type(data).__name__)
        return ExtractedIDInfo()

    try:
        text = normalize_ocr_text(raw_text)
        lines, full_text = text.lines, text.full_text
        logger.debug("Full text for extraction: %s", full_text)

        info = ExtractedIDInfo(
            id_name=extract_name(lines, full_text),
            id_number=_first_match(DOC_NUMBER_MATCHERS, lines, full_text),
            id_dob=_first_match(DOB_MATCHERS, lines, full_text),
            id_issue_date=_first_match(ISSUE_DATE_MATCHERS, lines, full_text),
            id_expiry_date=_first_match(EXPIRY_DATE_MATCHERS, lines, full_text),
            id_issuer=_first_match(ISSUER_MATCHERS, lines, full_text),
            personal_id_number=_first_match(PERSONAL_ID_MATCHERS, lines, full_text),
            gender=_first_match(GENDER_MATCHERS, lines, full_text),
            nationality=_first_match(NATIONALITY_MATCHERS, lines, full_text),
            id_type=classify_document_type(text.lower_text),
            raw_text=raw_text,
        )
    except Exception:
        logger.exception("Unexpected error during ID extraction")
        return ExtractedIDInfo(raw_text=raw_text)

    logger.info(
        "Extracted ID fields: name=%r number=%r dob=%r expiry=%r issuer=%r type=%r",
        info.id_name, info.id_number, info.id_dob,
        info.id_expiry_date, info.id_issuer, info.id_type,
    )
    return info
