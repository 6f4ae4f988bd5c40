# backend/organizer/config.py
from __future__ import annotations
import json
import os


def _json_serializer(value) -> str:
    # Keep non-ASCII tags readable in the JSON column so LIKE search can match them.
    return json.dumps(value, ensure_ascii=False)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/organizer.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///organizer.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"json_serializer": _json_serializer}

    # Upper bound for POST /api/qr-codes/batch
    QR_BATCH_MAX = int(os.environ.get("QR_BATCH_MAX", "100"))

    # Page size cap for GET /api/boxes
    BOX_PAGE_MAX = int(os.environ.get("BOX_PAGE_MAX", "100"))

    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))
