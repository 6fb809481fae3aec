import os

JWT_SECRET = os.getenv("JWT_SECRET", "super-secret-jwt-key-change-in-production")
JWT_ALGORITHM = "HS256"

# Base64 of 16 or 32 raw bytes (AES-128-GCM / AES-256-GCM)
ENCRYPTION_KEY = os.getenv("ENCRYPTION_KEY", "")

INTERNAL_API_KEY = os.getenv("INTERNAL_API_KEY", "change-me-internal-key")

# ── Upstream measurement API ──────────────────────────
UPSTREAM_API_URL = os.getenv(
    "UPSTREAM_API_URL",
    "https://ajtwnkl2yb.execute-api.us-east-2.amazonaws.com/test/sponge",
)
UPSTREAM_TIMEOUT_SECONDS = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "30"))

# ── Decrypting boundary ───────────────────────────────
# Empty DECRYPT_URL means values are decrypted in-process.
DECRYPT_URL = os.getenv("DECRYPT_URL", "")
DECRYPT_MODE = os.getenv("DECRYPT_MODE", "batch")  # batch | per_item
DECRYPT_CONCURRENCY = int(os.getenv("DECRYPT_CONCURRENCY", "8"))
DECRYPT_MAX_ATTEMPTS = int(os.getenv("DECRYPT_MAX_ATTEMPTS", "3"))
DECRYPT_BACKOFF_SECONDS = float(os.getenv("DECRYPT_BACKOFF_SECONDS", "0.2"))
DECRYPT_TIMEOUT_SECONDS = float(os.getenv("DECRYPT_TIMEOUT_SECONDS", "10"))
