import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# ---- Database ----
DATABASE_URL = os.getenv("DATABASE_URL", "postgresql://localhost:5432/idverify")
INIT_DB_ON_STARTUP = os.getenv("INIT_DB_ON_STARTUP", "true").lower() in ("1", "true", "yes")

# ---- Taggun OCR ----
TAGGUN_API_KEY = os.getenv("TAGGUN_API_KEY", "")
TAGGUN_URL = os.getenv(
    "TAGGUN_URL",
    "https://api.taggun.io/api/receipt/v1/verbose/file",
)
OCR_TIMEOUT_SECONDS = float(os.getenv("OCR_TIMEOUT_SECONDS", "60"))

# ---- Face++ comparison ----
FACEPP_API_KEY = os.getenv("FACEPP_API_KEY", "")
FACEPP_API_SECRET = os.getenv("FACEPP_API_SECRET", "")
FACEPP_URL = os.getenv("FACEPP_URL", "https://api-us.faceplusplus.com/facepp/v3/compare")
FACE_MATCH_TIMEOUT_SECONDS = float(os.getenv("FACE_MATCH_TIMEOUT_SECONDS", "30"))

# Face++ confidence is on a 0-100 scale
FACE_MATCH_THRESHOLD = float(os.getenv("FACE_MATCH_THRESHOLD", "80"))

# rapidfuzz partial_ratio threshold for typed name vs. name on the ID
NAME_MATCH_THRESHOLD = float(os.getenv("NAME_MATCH_THRESHOLD", "65"))

# ---- Uploads ----
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
UPLOAD_DIR = os.path.abspath(
    os.getenv("UPLOAD_DIR", os.path.join(BACKEND_DIR, "static", "uploads"))
)

# ---- App ----
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    ).split(",")
    if origin.strip()
]
