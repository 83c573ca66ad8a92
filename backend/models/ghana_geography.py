"""Ghana geography data: regional capitals and other ID issuing centres.

Used by the field extractor as the last fallback for the place of issuance
when no ``Place of Issuance`` label could be read.
"""

import re
from typing import Dict, List, Optional


# ---------------------------------------------------------------- data ---

# Region → towns with an NIA / passport / DVLA issuing office.
# Two-letter capitals (Ho, Wa) are left out: they collide with OCR noise.
GHANA_REGIONS: Dict[str, List[str]] = {
    "Greater Accra": ["Accra", "Tema", "Madina", "Kasoa"],
    "Ashanti": ["Kumasi", "Obuasi", "Ejisu"],
    "Western": ["Takoradi", "Sekondi", "Tarkwa"],
    "Northern": ["Tamale", "Yendi"],
    "Central": ["Cape Coast", "Winneba"],
    "Eastern": ["Koforidua", "Nkawkaw"],
    "Bono": ["Sunyani", "Berekum"],
    "Bono East": ["Techiman", "Kintampo"],
    "Upper East": ["Bolgatanga", "Navrongo"],
    "Volta": ["Hohoe", "Keta"],
    "Oti": ["Dambai"],
    "Ahafo": ["Goaso"],
    "Savannah": ["Damongo"],
    "North East": ["Nalerigu"],
    "Western North": ["Sefwi Wiawso"],
}


# ---------------------------------------------------------- lookups ---

KNOWN_ISSUING_CITIES: List[str] = [
    city.upper() for cities in GHANA_REGIONS.values() for city in cities
]

_CITY_RE = re.compile(
    r"\b("
    + "|".join(r"\s+".join(map(re.escape, c.split())) for c in KNOWN_ISSUING_CITIES)
    + r")\b",
    re.IGNORECASE,
)


# -------------------------------------------------------- public API ---

def find_issuing_city(text: str) -> Optional[str]:
    """Return the first known issuing city in *text* (uppercase), or None."""
    if not text:
        return None
    m = _CITY_RE.search(text)
    if not m:
        return None
    return " ".join(m.group(1).split()).upper()
