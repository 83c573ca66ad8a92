import logging
import os
import shutil
import uuid
from typing import Optional, Tuple

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse

import config
from models.id_field_extraction_model import extract_id_info
from models.id_validation import validate_extracted_data
from models.image_verification_model import FaceMatchError
from schemas.verification_schemas import ProviderRegistration, TranscriptIn
from services.ocr_service import OCRServiceError
from services.verification_service import (
    STATUS_FACE_MISMATCH,
    STATUS_INVALID_DOCUMENT,
    collect_business_documents,
    create_user_if_needed,
    verify_identity,
)

logger = logging.getLogger("idverify.routes")

router = APIRouter(prefix="/api", tags=["verification"])


def _has_file(file: Optional[UploadFile]) -> bool:
    return file is not None and bool(file.filename)


def _save_upload(file: UploadFile, folder: str) -> Tuple[str, str]:
    """Save an upload under UPLOAD_DIR/<folder>; return (disk path, URL)."""
    ext = file.filename.split(".")[-1] if file.filename and "." in file.filename else "bin"
    filename = f"{uuid.uuid4()}.{ext}"
    target_dir = os.path.join(config.UPLOAD_DIR, folder)
    os.makedirs(target_dir, exist_ok=True)
    file_path = os.path.join(target_dir, filename)

    with open(file_path, "wb") as buffer:
        shutil.copyfileobj(file.file, buffer)

    logger.info("Saved upload %r to %s", file.filename, file_path)
    return file_path, f"/static/uploads/{folder}/{filename}"


def _identity_step(selfie: UploadFile, id_image: UploadFile, email: Optional[str],
                   name: Optional[str], contact_phone: Optional[str]):
    selfie_path, selfie_url = _save_upload(selfie, "selfies")
    id_path, id_url = _save_upload(id_image, "ids")

    result = verify_identity(
        selfie_path=selfie_path,
        id_image_path=id_path,
        full_name=name,
        id_filename=id_image.filename,
    )
    extracted = result.extracted.to_dict()

    if result.status == STATUS_INVALID_DOCUMENT:
        return JSONResponse(
            status_code=422,
            content={"error": "Invalid ID document", "details": result.validation.errors},
        )
    if result.status == STATUS_FACE_MISMATCH:
        return JSONResponse(
            status_code=401,
            content={"error": "Face does not match ID", "confidence": result.match_confidence},
        )

    user = None
    if email and name and contact_phone:
        try:
            user = create_user_if_needed(ProviderRegistration(
                email=email,
                name=name,
                contact_phone=contact_phone,
                selfie_url=selfie_url,
                id_url=id_url,
                id_name=result.extracted.id_name,
                id_number=result.extracted.id_number,
                id_dob=result.extracted.id_dob,
                id_expiry_date=result.extracted.id_expiry_date,
                id_issuer=result.extracted.id_issuer,
            ))
        except ValueError as e:
            return JSONResponse(status_code=400, content={"error": str(e)})

    return {
        "success": True,
        "verified": True,
        "selfieUrl": selfie_url,
        "idUrl": id_url,
        "matchConfidence": result.match_confidence,
        "extractedData": extracted,
        "nameMatch": result.name_match,
        "userCreated": user is not None,
    }


@router.post("/verify")
def verify(
    verification_step: Optional[str] = Form(None, alias="verificationStep"),
    selfie: Optional[UploadFile] = File(None),
    id_image: Optional[UploadFile] = File(None, alias="idImage"),
    tin_certificate: Optional[UploadFile] = File(None, alias="tinCertificate"),
    incorporation_cert: Optional[UploadFile] = File(None, alias="incorporationCert"),
    vat_certificate: Optional[UploadFile] = File(None, alias="vatCertificate"),
    ssnit_cert: Optional[UploadFile] = File(None, alias="ssnitCert"),
    email: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    contact_phone: Optional[str] = Form(None, alias="contactPhone"),
):
    try:
        if verification_step == "identity":
            if _has_file(selfie) and _has_file(id_image):
                return _identity_step(selfie, id_image, email, name, contact_phone)
            logger.warning("Skipping identity verification since selfie or ID is missing")

        if verification_step == "business":
            uploads = {
                "tinCertificate": tin_certificate,
                "incorporationCert": incorporation_cert,
                "vatCertificate": vat_certificate,
                "ssnitCert": ssnit_cert,
            }
            saved = {
                slot: _save_upload(file, f"business/{slot}")[1]
                for slot, file in uploads.items()
                if _has_file(file)
            }
            return {
                "success": True,
                "message": "Business documents processed.",
                **collect_business_documents(saved),
            }

    except (OCRServiceError, FaceMatchError) as e:
        logger.error("Verification provider error: %s", e)
        return JSONResponse(status_code=502, content={"error": str(e)})
    except Exception:
        logger.exception("An error occurred during verification")
        return JSONResponse(status_code=500, content={"error": "Verification failed"})

    logger.warning("Unknown or missing verificationStep: %r", verification_step)
    return {"success": True, "message": "Verification step completed with no data."}


@router.post("/verify/extract")
def extract_transcript(payload: TranscriptIn):
    """Run extraction and validation on an existing OCR transcript."""
    extracted = extract_id_info({"text": {"text": payload.text}})
    verdict = validate_extracted_data(extracted)
    return {
        "extractedData": extracted.to_dict(),
        "validation": verdict.to_dict(),
    }
