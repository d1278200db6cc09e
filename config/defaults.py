"""Default pipeline settings."""

# Placeholder embedded in generated forms; the project store swaps in the real id.
PROJECT_ID_PLACEHOLDER = "SITE_PROJECT_ID"

DEFAULTS = {
    "max_units": 7,             # keeps a full run inside the host time ceiling
    "strong_model": "claude-sonnet-4-6",
    "fast_model": "claude-haiku-4-5-20251001",
    "strong_max_tokens": 8000,
    "fast_max_tokens": 4000,
    "shared_max_tokens": 4000,
    "max_retries": 2,           # extra attempts on transient provider failures
    "backoff_seconds": 3,       # 3s, 6s
    "min_visible_text": 200,
    "min_content_length": 800,
    "low_content_warning": 100,
    "repair_context_chars": 2000,
    "stream_keepalive_seconds": 15,
    "penalties": {
        "framework-leakage": 20,
        "error": 15,
        "missing": 12,
        "empty": 10,
    },
}
