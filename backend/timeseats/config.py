# backend/timeseats/config.py
from __future__ import annotations
import os


def _csv(value: str | None) -> frozenset[str]:
    if not value:
        return frozenset()
    return frozenset(part.strip().upper() for part in value.split(",") if part.strip())


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the process by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///timeseats.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Sales slots must start and end on this minute boundary
    SLOT_ALIGNMENT_MINUTES = int(os.environ.get("SLOT_ALIGNMENT_MINUTES", "30"))
    # How far ahead next_slot() looks
    NEXT_SLOT_LOOKAHEAD_MINUTES = int(os.environ.get("NEXT_SLOT_LOOKAHEAD_MINUTES", "30"))

    # Payment methods whose tickets start unpaid (settled later)
    TICKET_DEFERRED_PAYMENT_METHODS = _csv(os.environ.get("TICKET_DEFERRED_PAYMENT_METHODS"))
    TICKET_NUMBER_MAX_ATTEMPTS = int(os.environ.get("TICKET_NUMBER_MAX_ATTEMPTS", "5"))

    DB_RETRY_ATTEMPTS = int(os.environ.get("DB_RETRY_ATTEMPTS", "3"))
