"""
Process-wide configuration loaded from the environment.

Values are read once at import time and never mutated afterwards.
"""

import os

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

# Hosted auth/data provider
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
if not SUPABASE_URL or not SUPABASE_KEY:
    if ENVIRONMENT == "production":
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set in production")
    SUPABASE_URL = SUPABASE_URL or "http://localhost:54321"
    SUPABASE_KEY = SUPABASE_KEY or ""

SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Optional shared secret for verifying access tokens without a network call
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")

REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
