from typing import Optional

from pydantic import BaseModel


class TranscriptIn(BaseModel):
    text: str


class ProviderRegistration(BaseModel):
    email: str
    name: str
    contact_phone: str
    role: str = "PROVIDER"
    selfie_url: str
    id_url: str
    id_name: Optional[str] = None
    id_number: Optional[str] = None
    id_dob: Optional[str] = None
    id_expiry_date: Optional[str] = None
    id_issuer: Optional[str] = None
