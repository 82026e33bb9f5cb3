"""
Centralized settings for the RinkBuddy waitlist.

This file reads environment variables (optionally from a .env file)
and provides sane defaults so the app can boot locally.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Any
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from the .env file NEXT TO THIS FILE
ENV_PATH = Path(__file__).resolve().parent / ".env"
load_dotenv(ENV_PATH)


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_str(name: str, default: str = "") -> str:
    raw = os.getenv(name)
    return default if raw is None else raw


# ---------------------------
# Storage
# ---------------------------
WAITLIST_BACKEND: str = _get_str("WAITLIST_BACKEND", "file").strip().lower()
WAITLIST_PATH: str = _get_str("WAITLIST_PATH", "data/waitlist.json")
WAITLIST_DB_PATH: str = _get_str("WAITLIST_DB_PATH", "waitlist.db")

# ---------------------------
# Copy
# ---------------------------
PRODUCT_NAME: str = _get_str("PRODUCT_NAME", "RinkBuddy")
SIGNUP_NOUN: str = _get_str("SIGNUP_NOUN", "skater")
SIGNUP_NOUN_PLURAL: str = _get_str("SIGNUP_NOUN_PLURAL", "skaters")

# ---------------------------
# HTTP
# ---------------------------
CORS_ORIGIN_REGEX: str = _get_str(
    "CORS_ORIGIN_REGEX", r"https?://(localhost|127\.0\.0\.1)(:\d+)?"
)

# ---------------------------
# Form client
# ---------------------------
WAITLIST_API_URL: str = _get_str("WAITLIST_API_URL", "http://localhost:8000")
FORM_SUCCESS_RESET_SECONDS: float = _get_float("FORM_SUCCESS_RESET_SECONDS", 2.0)
FORM_ERROR_RESET_SECONDS: float = _get_float("FORM_ERROR_RESET_SECONDS", 3.0)

# ---------------------------
# Logging
# ---------------------------
LOG_LEVEL: str = _get_str("LOG_LEVEL", "INFO").strip().upper()
if LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
    LOG_LEVEL = "INFO"

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s | %(levelname)s | %(message)s")
logger = logging.getLogger("rinkbuddy")


@dataclass(frozen=True)
class Settings:
    WAITLIST_BACKEND: str
    WAITLIST_PATH: str
    WAITLIST_DB_PATH: str
    PRODUCT_NAME: str
    SIGNUP_NOUN: str
    SIGNUP_NOUN_PLURAL: str
    CORS_ORIGIN_REGEX: str
    WAITLIST_API_URL: str
    FORM_SUCCESS_RESET_SECONDS: float
    FORM_ERROR_RESET_SECONDS: float
    LOG_LEVEL: str


def get_settings() -> Dict[str, Any]:
    return {
        "WAITLIST_BACKEND": WAITLIST_BACKEND,
        "WAITLIST_PATH": WAITLIST_PATH,
        "WAITLIST_DB_PATH": WAITLIST_DB_PATH,
        "PRODUCT_NAME": PRODUCT_NAME,
        "SIGNUP_NOUN": SIGNUP_NOUN,
        "SIGNUP_NOUN_PLURAL": SIGNUP_NOUN_PLURAL,
        "CORS_ORIGIN_REGEX": CORS_ORIGIN_REGEX,
        "WAITLIST_API_URL": WAITLIST_API_URL,
        "FORM_SUCCESS_RESET_SECONDS": FORM_SUCCESS_RESET_SECONDS,
        "FORM_ERROR_RESET_SECONDS": FORM_ERROR_RESET_SECONDS,
        "LOG_LEVEL": LOG_LEVEL,
    }


def get_settings_obj() -> Settings:
    return Settings(**get_settings())
