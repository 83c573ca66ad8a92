"""
Taggun OCR Service
Sends an ID document image to the Taggun verbose-file endpoint and returns
the decoded JSON response. The transcript the field extractor reads lives
at ``response["text"]["text"]``.

API Docs: https://developers.taggun.io/
"""

import logging
import mimetypes
import os
from typing import Any, Dict, Optional

import requests

import config

logger = logging.getLogger("idverify.ocr")


class OCRServiceError(Exception):
    """Raised when the OCR provider cannot produce a transcript."""


def send_to_taggun(
    image_path: str,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run OCR on an ID image with Taggun.

    Args:
        image_path:    Path of the saved upload.
        filename:      Original filename sent to Taggun (default: basename).
        content_type:  MIME type (default: guessed, falling back to image/jpeg).

    Returns:
        The Taggun verbose response as a dict.

    Raises:
        OCRServiceError: missing file, transport failure, non-2xx response
                         or a body that is not JSON.
    """
    if not os.path.isfile(image_path):
        raise OCRServiceError(f"ID image not found: {image_path}")

    filename = filename or os.path.basename(image_path) or "id.jpg"
    content_type = content_type or mimetypes.guess_type(filename)[0] or "image/jpeg"

    form = {
        "extractLineItems": "true",
        "extractTime": "false",
        "refresh": "false",
        "incognito": "false",
    }
    headers = {
        "apikey": config.TAGGUN_API_KEY,
        "accept": "application/json",
    }

    logger.info("Sending file %r to Taggun for OCR", filename)
    try:
        with open(image_path, "rb") as fh:
            response = requests.post(
                config.TAGGUN_URL,
                headers=headers,
                data=form,
                files={"file": (filename, fh, content_type)},
                timeout=config.OCR_TIMEOUT_SECONDS,
            )
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.Timeout as e:
        logger.warning("Taggun OCR request timed out")
        raise OCRServiceError("OCR service timed out") from e
    except requests.exceptions.HTTPError as e:
        logger.error("Taggun API HTTP error: %s", e)
        raise OCRServiceError(f"OCR API error: {e.response.status_code}") from e
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.error("Taggun OCR failed: %s", e)
        raise OCRServiceError(f"OCR failed: {e}") from e

    logger.info("OCR response received for %r", filename)
    return data
