"""
Basic configuration

- CORS origins for development and production
- Hosted backend (REST database + serverless functions) connection settings
- Lead submission retry policy and session lifetime
- Supports environment variables for production values
"""
import os
from typing import Optional

# Default localhost origins for development
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8080",
]

# Get additional CORS origins from environment variable
ADDITIONAL_CORS_ORIGINS = os.getenv("CORS_ORIGINS", "").split(",") if os.getenv("CORS_ORIGINS") else []

# Filter out empty strings from split
ADDITIONAL_CORS_ORIGINS = [origin.strip() for origin in ADDITIONAL_CORS_ORIGINS if origin.strip()]

# Combine default and additional origins
CORS_ORIGINS = DEFAULT_CORS_ORIGINS + ADDITIONAL_CORS_ORIGINS

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def get_backend_url() -> Optional[str]:
    """
    Base URL of the hosted backend (e.g. https://<project>.supabase.co)

    Returns:
        URL without trailing slash, or None if not configured
    """
    url = os.getenv("BACKEND_URL")
    return url.rstrip("/") if url else None


def get_backend_key() -> Optional[str]:
    """Public (anon) API key sent as 'apikey' and bearer token"""
    return os.getenv("BACKEND_ANON_KEY")


def get_backend_timeout() -> float:
    return float(os.getenv("BACKEND_TIMEOUT_SECONDS", "10"))


def get_lead_submit_attempts() -> int:
    """Number of attempts for lead and partial submissions (default 3)"""
    return int(os.getenv("LEAD_SUBMIT_ATTEMPTS", "3"))


def get_lead_retry_delay() -> float:
    """Seconds to wait before the first retry; doubles on each further retry"""
    return float(os.getenv("LEAD_RETRY_DELAY_SECONDS", "1.0"))


def get_session_ttl() -> int:
    """Seconds an idle assessment session is kept in memory"""
    return int(os.getenv("SESSION_TTL_SECONDS", "3600"))


def get_public_base_url() -> str:
    """Public site URL used to build share links and embed code"""
    return os.getenv("PUBLIC_BASE_URL", "http://localhost:8080").rstrip("/")
