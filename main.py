# FILE: main.py
"""
Shelf Backend - FastAPI Application
Version: 0.3.0

Features:
- Conversational content commands (create, view, edit, delete, share, protect,
  list, duplicate, search) over POST /commands/messages
- Modal confirmation commit path over POST /commands/complete
- Chat sessions with best-effort history
"""
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load .env FIRST before any other imports that might need env vars
load_dotenv()

from shelf import __version__
from shelf.config import DATABASE_URL, LOG_LEVEL
from shelf.db import init_db
from shelf.commands.router import router as commands_router

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("shelf")

app = FastAPI(
    title="Shelf",
    version=__version__,
    description="Personal content library driven by chat commands",
)

# ====== CORS ======

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:8000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ====== STARTUP ======

@app.on_event("startup")
def on_startup():
    if DATABASE_URL.startswith("sqlite:///./data/"):
        os.makedirs("data", exist_ok=True)
    init_db()
    logger.info(f"[startup] Database ready: {DATABASE_URL}")


# ====== ROUTERS ======

app.include_router(commands_router)


@app.get("/ping")
def ping():
    return {"status": "ok", "version": __version__}
