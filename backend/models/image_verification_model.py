"""Image Verification Model: Face identity matching.

Exposes:
    verify_face_identity(selfie_image_path, id_image_path)

Called by verification_service.py after the ID document passed validation,
to compare the live selfie against the photo on the ID card with the Face++
compare API.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import requests

import config

logger = logging.getLogger("idverify.face")


class FaceMatchError(Exception):
    """Raised when the face comparison could not be performed."""


def verify_face_identity(
    selfie_image_path: str,
    id_image_path: str,
    threshold: Optional[float] = None,
) -> dict:
    """Compare the live selfie against the face on the ID card.

    Args:
        selfie_image_path: Path to the live selfie photo.
        id_image_path: Path to the ID document image.
        threshold: Minimum Face++ confidence (0-100) for a match
                   (defaults to FACE_MATCH_THRESHOLD, 80).

    Returns:
        dict with:
            face_match: bool
            confidence: float (0-100, higher = more similar)
            threshold: float
            final_status: "APPROVED" | "REJECTED"
            reason: str | None

    Raises:
        FaceMatchError: an image is missing or Face++ gave no confidence.
    """
    threshold = config.FACE_MATCH_THRESHOLD if threshold is None else threshold

    for path in (selfie_image_path, id_image_path):
        if not os.path.isfile(path):
            logger.error("Face comparison image not found: %s", path)
            raise FaceMatchError("Face comparison failed")

    try:
        with open(selfie_image_path, "rb") as selfie, open(id_image_path, "rb") as id_image:
            response = requests.post(
                config.FACEPP_URL,
                data={
                    "api_key": config.FACEPP_API_KEY,
                    "api_secret": config.FACEPP_API_SECRET,
                },
                files={"image_file1": selfie, "image_file2": id_image},
                timeout=config.FACE_MATCH_TIMEOUT_SECONDS,
            )
        response.raise_for_status()
        body = response.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.error("Face++ comparison failed: %s", e)
        raise FaceMatchError("Face comparison failed") from e

    confidence = body.get("confidence") if isinstance(body, dict) else None
    if not isinstance(confidence, (int, float)):
        # Face++ omits confidence when no face was found in one of the images
        logger.error("Face++ returned no confidence: %s", body)
        raise FaceMatchError("Face comparison failed")

    face_match = confidence >= threshold
    result = {
        "face_match": face_match,
        "confidence": float(confidence),
        "threshold": float(threshold),
        "final_status": "APPROVED" if face_match else "REJECTED",
        "reason": None,
    }
    if not face_match:
        result["reason"] = f"Face confidence {confidence:.2f} below threshold {threshold:.2f}"

    logger.info("Face match: %s, confidence: %.2f, threshold: %.2f",
                face_match, confidence, threshold)
    return result
