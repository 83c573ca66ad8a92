import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import config
from db.database import init_db
from routers.verify_routes import router as verify_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.INIT_DB_ON_STARTUP:
        init_db()
    yield


app = FastAPI(
    title="ID Verification Backend",
    description="Identity document OCR extraction, validation and face matching",
    version="1.0.0",
    lifespan=lifespan,
)

# -------- CORS --------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------- REGISTER ROUTERS --------
app.include_router(verify_router)

# Serve uploads
os.makedirs(config.UPLOAD_DIR, exist_ok=True)
app.mount("/static/uploads", StaticFiles(directory=config.UPLOAD_DIR), name="uploads")


# -------- ROOT HEALTH CHECK --------

@app.get("/")
def root():
    return {
        "status": "running",
        "service": "ID Verification Backend"
    }
