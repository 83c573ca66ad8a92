"""ID validation: format and temporal checks on extracted ID fields.

Every rule runs, so the caller receives the complete list of problems in one
pass. A failed rule is an ordinary outcome reported back to the user, never an
exception.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Union

from models.id_field_extraction_model import ExtractedIDInfo

logger = logging.getLogger("idverify.validation")


NAME_RE = re.compile(r"^[A-Z][a-zA-Z\s\-']{1,}$")
ID_NUMBER_RE = re.compile(r"^[A-Z0-9\-]{5,20}$")
ISSUER_RE = re.compile(r"^[A-Za-z\s]{2,}$")

# YYYY-MM-DD, optionally followed by a time part
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T\s].*)?$")


@dataclass
class ValidationVerdict:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"isValid": self.is_valid, "errors": list(self.errors)}


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` leniently.

    Days past the end of the month roll over into the next month
    (``2020-02-31`` → 2020-03-02); month must be 1-12 and day 1-31.
    """
    if not value or not isinstance(value, str):
        return None
    m = _ISO_DATE_RE.match(value.strip())
    if not m:
        return None
    year, month, day = (int(g) for g in m.groups())
    if year < 1 or not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    return date(year, month, 1) + timedelta(days=day - 1)


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


def validate_extracted_data(
    data: Union[ExtractedIDInfo, Mapping[str, Any]],
    today: Optional[date] = None,
) -> ValidationVerdict:
    """Validate name, number, DOB, expiry date and issuer.

    Args:
        data: an ExtractedIDInfo, or a mapping keyed by the wire names
              (idName, idNumber, idDOB, idExpiryDate, idIssuer).
        today: reference date for the temporal checks (defaults to today).
    """
    if isinstance(data, ExtractedIDInfo):
        data = data.to_dict()
    today = today or date.today()
    errors: List[str] = []

    if not NAME_RE.match(_text(data, "idName")):
        errors.append(
            "Invalid or missing name: expected a capitalised name of letters, "
            "spaces, hyphens or apostrophes"
        )

    if not ID_NUMBER_RE.match(_text(data, "idNumber")):
        errors.append(
            "Invalid or missing ID number: expected 5-20 uppercase letters, "
            "digits or hyphens"
        )

    dob = parse_iso_date(data.get("idDOB"))
    if dob is None:
        errors.append("Invalid or missing date of birth")
    elif dob > today:
        errors.append("Invalid date of birth: date is in the future")

    expiry = parse_iso_date(data.get("idExpiryDate"))
    if expiry is None:
        errors.append("Invalid or missing expiry date")
    elif expiry < today:
        errors.append("Invalid expiry date: document has expired")

    if not ISSUER_RE.match(_text(data, "idIssuer")):
        errors.append("Invalid or missing issuer: expected at least 2 letters")

    verdict = ValidationVerdict(is_valid=not errors, errors=errors)
    if verdict.is_valid:
        logger.info("Extracted data passed validation")
    else:
        logger.warning("Extracted data failed validation: %s", errors)
    return verdict
