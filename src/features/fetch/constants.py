"""HTTP constants for the guarded fetch layer.

Centralizes all HTTP-related constants to avoid duplication across modules.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_EXPECTATION_FAILED = 417

# Response Size Limits
DEFAULT_MAX_RESPONSE_BYTES = 1024 * 1024  # 1 MiB
MIN_MAX_RESPONSE_BYTES = 2048

# Redirects
DEFAULT_MAX_REDIRECTS = 10

# Timeouts (seconds)
DEFAULT_READ_WRITE_TIMEOUT_SECONDS = 0.5
DEFAULT_TOTAL_TIMEOUT_SECONDS = 10.0
DEBUG_TIMEOUT_SECONDS = 60.0 * 60.0

# Request construction
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
EXPECT_CONTINUE = "100-continue"
DEFAULT_USER_AGENT = "guarded-fetch/0.1"
