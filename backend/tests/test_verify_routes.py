"""
Tests for the verification API. The verification service is replaced on the
router module; uploads land in the temporary UPLOAD_DIR set by conftest.
"""

import os

import pytest
from fastapi.testclient import TestClient

import config
from main import app
from models.id_field_extraction_model import ExtractedIDInfo
from models.id_validation import ValidationVerdict
from models.image_verification_model import FaceMatchError
from routers import verify_routes
from services.ocr_service import OCRServiceError
from services.verification_service import (
    STATUS_FACE_MISMATCH,
    STATUS_INVALID_DOCUMENT,
    STATUS_VERIFIED,
    IdentityVerificationResult,
)


@pytest.fixture
def client():
    return TestClient(app)


def _identity_files():
    return {
        "selfie": ("selfie.jpg", b"\xff\xd8selfie", "image/jpeg"),
        "idImage": ("card.png", b"\x89PNGcard", "image/png"),
    }


def _result(status, confidence=None, errors=None, name_match=None):
    return IdentityVerificationResult(
        status=status,
        extracted=ExtractedIDInfo(
            id_name="KWAME MENSAH",
            id_number="AB1234567",
            id_dob="1990-03-15",
            id_expiry_date="2090-01-09",
            id_issuer="ACCRA",
            raw_text="...",
        ),
        validation=ValidationVerdict(is_valid=not errors, errors=errors or []),
        verification_id="abc123",
        match_confidence=confidence,
        name_match=name_match,
    )


@pytest.fixture
def identity(monkeypatch):
    """Make verify_identity return (or raise) the given outcome."""
    calls = []

    def set_outcome(outcome):
        def fake_verify_identity(**kwargs):
            calls.append(kwargs)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        monkeypatch.setattr(verify_routes, "verify_identity", fake_verify_identity)
        return calls

    return set_outcome


class TestRoot:

    def test_health(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json() == {"status": "running", "service": "ID Verification Backend"}


class TestIdentityStep:

    def test_verified(self, client, identity):
        calls = identity(_result(STATUS_VERIFIED, confidence=93.1))

        response = client.post(
            "/api/verify", data={"verificationStep": "identity"}, files=_identity_files()
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["verified"] is True
        assert body["matchConfidence"] == 93.1
        assert body["extractedData"]["idName"] == "KWAME MENSAH"
        assert body["extractedData"]["rawText"] == "..."
        assert body["userCreated"] is False
        assert body["selfieUrl"].startswith("/static/uploads/selfies/")
        assert body["idUrl"].startswith("/static/uploads/ids/")
        assert body["idUrl"].endswith(".png")

        saved = os.path.join(config.UPLOAD_DIR, "ids", os.path.basename(body["idUrl"]))
        assert os.path.isfile(saved)
        assert calls[0]["id_filename"] == "card.png"

    def test_invalid_document(self, client, identity):
        identity(_result(STATUS_INVALID_DOCUMENT, errors=["Invalid or missing date of birth"]))

        response = client.post(
            "/api/verify", data={"verificationStep": "identity"}, files=_identity_files()
        )

        assert response.status_code == 422
        assert response.json() == {
            "error": "Invalid ID document",
            "details": ["Invalid or missing date of birth"],
        }

    def test_face_mismatch(self, client, identity):
        identity(_result(STATUS_FACE_MISMATCH, confidence=42.0))

        response = client.post(
            "/api/verify", data={"verificationStep": "identity"}, files=_identity_files()
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Face does not match ID", "confidence": 42.0}

    @pytest.mark.parametrize("error", [
        OCRServiceError("OCR service timed out"),
        FaceMatchError("Face comparison failed"),
    ])
    def test_provider_failure(self, client, identity, error):
        identity(error)

        response = client.post(
            "/api/verify", data={"verificationStep": "identity"}, files=_identity_files()
        )

        assert response.status_code == 502
        assert response.json() == {"error": str(error)}

    def test_unexpected_failure(self, client, identity):
        identity(RuntimeError("boom"))

        response = client.post(
            "/api/verify", data={"verificationStep": "identity"}, files=_identity_files()
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Verification failed"}

    def test_missing_id_image(self, client, identity):
        calls = identity(_result(STATUS_VERIFIED, confidence=90.0))

        response = client.post(
            "/api/verify",
            data={"verificationStep": "identity"},
            files={"selfie": ("selfie.jpg", b"\xff\xd8", "image/jpeg")},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Verification step completed with no data.",
        }
        assert calls == []


class TestProviderRegistration:

    def test_creates_user(self, client, identity, monkeypatch):
        identity(_result(STATUS_VERIFIED, confidence=90.0, name_match=True))
        registrations = []

        def fake_create(registration):
            registrations.append(registration)
            return {"email": registration.email}

        monkeypatch.setattr(verify_routes, "create_user_if_needed", fake_create)

        response = client.post(
            "/api/verify",
            data={
                "verificationStep": "identity",
                "email": "kwame@example.com",
                "name": "Kwame Mensah",
                "contactPhone": "0241234567",
            },
            files=_identity_files(),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["userCreated"] is True
        assert body["nameMatch"] is True

        registration = registrations[0]
        assert registration.email == "kwame@example.com"
        assert registration.contact_phone == "0241234567"
        assert registration.id_number == "AB1234567"
        assert registration.id_url == body["idUrl"]

    def test_invalid_phone(self, client, identity, monkeypatch):
        identity(_result(STATUS_VERIFIED, confidence=90.0))

        def fake_create(registration):
            raise ValueError("Invalid Ghana phone number: 123")

        monkeypatch.setattr(verify_routes, "create_user_if_needed", fake_create)

        response = client.post(
            "/api/verify",
            data={
                "verificationStep": "identity",
                "email": "kwame@example.com",
                "name": "Kwame Mensah",
                "contactPhone": "123",
            },
            files=_identity_files(),
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid Ghana phone number: 123"}


class TestBusinessStep:

    def test_saves_provided_documents(self, client):
        response = client.post(
            "/api/verify",
            data={"verificationStep": "business"},
            files={"tinCertificate": ("tin.pdf", b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Business documents processed."
        assert body["tinCertificateUrl"].startswith("/static/uploads/business/tinCertificate/")
        assert body["tinCertificateUrl"].endswith(".pdf")
        assert body["incorporationCertUrl"] is None
        assert body["vatCertificateUrl"] is None
        assert body["ssnitCertUrl"] is None


class TestUnknownStep:

    @pytest.mark.parametrize("data", [{}, {"verificationStep": "payment"}])
    def test_no_op(self, client, data):
        response = client.post("/api/verify", data=data)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Verification step completed with no data.",
        }


class TestExtractEndpoint:

    def test_extract_and_validate(self, client, ghana_card_payload):
        response = client.post(
            "/api/verify/extract", json={"text": ghana_card_payload["text"]["text"]}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["extractedData"]["idName"] == "KWAME KOFI MENSAH"
        assert body["extractedData"]["idType"] == "ghana_card"
        assert body["validation"] == {"isValid": True, "errors": []}

    def test_unreadable_transcript(self, client):
        response = client.post("/api/verify/extract", json={"text": "???"})

        assert response.status_code == 200
        body = response.json()
        assert body["extractedData"]["idName"] is None
        assert body["validation"]["isValid"] is False
        assert len(body["validation"]["errors"]) == 5

    def test_text_is_required(self, client):
        response = client.post("/api/verify/extract", json={})
        assert response.status_code == 422
