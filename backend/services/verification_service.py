"""Identity verification workflow.

OCR → field extraction → validation → face match, plus idempotent
provider-account creation once a user is verified.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from rapidfuzz import fuzz

import config
from db.database import get_item, put_item
from models.id_field_extraction_model import ExtractedIDInfo, extract_id_info
from models.id_validation import ValidationVerdict, validate_extracted_data
from models.image_verification_model import verify_face_identity
from schemas.verification_schemas import ProviderRegistration
from services.ocr_service import send_to_taggun

logger = logging.getLogger("idverify.verification")


# ---- VERIFICATION OUTCOMES ----
STATUS_VERIFIED = "VERIFIED"
STATUS_INVALID_DOCUMENT = "INVALID_DOCUMENT"
STATUS_FACE_MISMATCH = "FACE_MISMATCH"

BUSINESS_DOCUMENT_SLOTS = (
    "tinCertificate",
    "incorporationCert",
    "vatCertificate",
    "ssnitCert",
)


@dataclass
class IdentityVerificationResult:
    status: str
    extracted: ExtractedIDInfo
    validation: ValidationVerdict
    verification_id: str
    match_confidence: Optional[float] = None
    name_match: Optional[bool] = None

    @property
    def verified(self) -> bool:
        return self.status == STATUS_VERIFIED


# =========================
# NAME / PHONE HELPERS
# =========================

def _normalize_name(text: str) -> str:
    """Lowercase, strip, collapse whitespace and remove punctuation."""
    text = text.lower().strip()
    text = re.sub(r"[^a-z0-9\s]", "", text)
    return " ".join(text.split())


def names_match(typed_name: str, id_name: str, threshold: Optional[float] = None) -> bool:
    """Fuzzy comparison of the name typed by the user with the name on the ID."""
    threshold = config.NAME_MATCH_THRESHOLD if threshold is None else threshold
    a, b = _normalize_name(typed_name or ""), _normalize_name(id_name or "")
    if not a or not b:
        return False
    if a == b or a in b or b in a:
        return True
    score = max(fuzz.partial_ratio(a, b), fuzz.token_sort_ratio(a, b))
    return score >= threshold


def format_ghana_phone(value: str) -> Optional[str]:
    """Normalise a Ghana mobile number to +233XXXXXXXXX, or None if invalid."""
    cleaned = re.sub(r"[^0-9]", "", value or "")

    # Local format: 0501234567
    if re.fullmatch(r"0[2-7]\d{8}", cleaned):
        return f"+233{cleaned[1:]}"

    # International, with or without the plus: 233501234567
    if re.fullmatch(r"233[2-7]\d{8}", cleaned):
        return f"+{cleaned}"

    return None


# =========================
# IDENTITY VERIFICATION
# =========================

def _record_verification(result: IdentityVerificationResult, face_result: Optional[dict]):
    """Keep the outcome (raw OCR text included) for the admin review screen.

    A storage failure is logged; the verification result still stands.
    """
    try:
        put_item("verifications", result.verification_id, {
            "status": result.status,
            "extracted_data": result.extracted.to_dict(),
            "validation": result.validation.to_dict(),
            "face": face_result,
            "name_match": result.name_match,
            "created_at": datetime.now(timezone.utc).isoformat(),
        })
    except Exception:
        logger.exception("Could not store verification %s", result.verification_id)


def verify_identity(
    selfie_path: str,
    id_image_path: str,
    full_name: Optional[str] = None,
    id_filename: Optional[str] = None,
) -> IdentityVerificationResult:
    """
    - Run OCR on the ID image
    - Extract and validate the ID fields
    - Compare the selfie with the ID photo (only for a valid document)

    Raises OCRServiceError / FaceMatchError when a provider call fails.
    """
    verification_id = uuid.uuid4().hex
    logger.info("Starting identity verification %s", verification_id)

    ocr_response = send_to_taggun(id_image_path, filename=id_filename)
    extracted = extract_id_info(ocr_response)
    verdict = validate_extracted_data(extracted)

    result = IdentityVerificationResult(
        status=STATUS_INVALID_DOCUMENT,
        extracted=extracted,
        validation=verdict,
        verification_id=verification_id,
    )
    if full_name:
        result.name_match = names_match(full_name, extracted.id_name or "")

    if not verdict.is_valid:
        logger.warning("ID validation failed for %s: %s", verification_id, verdict.errors)
        _record_verification(result, None)
        return result

    face_result = verify_face_identity(selfie_path, id_image_path)
    result.match_confidence = face_result["confidence"]
    result.status = STATUS_VERIFIED if face_result["face_match"] else STATUS_FACE_MISMATCH

    logger.info("Identity verification %s finished: %s", verification_id, result.status)
    _record_verification(result, face_result)
    return result


# =========================
# PROVIDER ACCOUNT
# =========================

def create_user_if_needed(registration: ProviderRegistration) -> Dict[str, Any]:
    """Return the existing user for this email, or create a verified one.

    Raises ValueError for a phone number that is not a Ghana mobile number.
    """
    email = registration.email.strip().lower()
    existing = get_item("users", email)
    if existing:
        logger.info("User %s already exists, skipping creation", email)
        return existing

    contact_phone = format_ghana_phone(registration.contact_phone)
    if not contact_phone:
        raise ValueError(f"Invalid Ghana phone number: {registration.contact_phone}")

    user = {
        "email": email,
        "name": registration.name,
        "contact_phone": contact_phone,
        "role": registration.role,
        "selfie_url": registration.selfie_url,
        "id_url": registration.id_url,
        "id_name": registration.id_name or None,
        "id_number": registration.id_number or None,
        "id_dob": registration.id_dob or None,
        "id_expiry_date": registration.id_expiry_date or None,
        "id_issuer": registration.id_issuer or None,
        "verified": True,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    put_item("users", email, user)
    logger.info("Created verified %s account for %s", registration.role, email)
    return user


# =========================
# BUSINESS DOCUMENTS
# =========================

def collect_business_documents(saved: Mapping[str, Optional[str]]) -> Dict[str, Optional[str]]:
    """Map each business document slot to its stored URL (None when absent)."""
    return {f"{slot}Url": saved.get(slot) for slot in BUSINESS_DOCUMENT_SLOTS}
