"""
Shared fixtures. No test touches the network or a database.
"""

import os
import tempfile

# Must be set before config is imported by the application modules.
os.environ.setdefault("INIT_DB_ON_STARTUP", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="idverify-uploads-"))

import pytest


GHANA_CARD_TRANSCRIPT = "\n".join([
    "REPUBLIC OF GHANA",
    "ECOWAS IDENTITY CARD",
    "Surname/Nom",
    "MENSAH",
    "Firstnames/Prénoms",
    "KWAME KOFI",
    "Nationality/Nationalité Sex/Sexe",
    "GHANAIAN M",
    "Date of Birth",
    "15/03/1990",
    "Personal ID Number",
    "GHA-123456789-0",
    "Height/Taille",
    "1.75",
    "Document Number",
    "AB1234567",
    "Place of Issuance",
    "ACCRA",
    "Date of Issuance",
    "10/01/2020",
    "Date of Expiry",
    "09/01/2090",
])


@pytest.fixture
def ghana_card_payload():
    """OCR response for a well-read Ghana card."""
    return {"text": {"text": GHANA_CARD_TRANSCRIPT}}


@pytest.fixture
def image_files(tmp_path):
    """A selfie and an ID image on disk."""
    selfie = tmp_path / "selfie.jpg"
    id_image = tmp_path / "id.jpg"
    selfie.write_bytes(b"\xff\xd8selfie")
    id_image.write_bytes(b"\xff\xd8id-card")
    return str(selfie), str(id_image)


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, body=None, json_error=None):
        self.status_code = status_code
        self._body = body
        self._json_error = json_error

    def raise_for_status(self):
        import requests

        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(
                f"{self.status_code} Error", response=self
            )

    def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._body


@pytest.fixture
def fake_response():
    return FakeResponse
