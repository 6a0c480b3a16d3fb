"""
Project-wide constants for the fitscan interpretation layer
"""  # noqa: D200, D212, D415

# ==============================================================================
# Confidence Constants
# ==============================================================================

# Used when the vendor omits a per-item confidence
VENDOR_DEFAULT_CONFIDENCE = 0.9
# Upper bound for any item confidence on a fallback record
KEYWORD_CONFIDENCE_CEILING = 0.7
# Items rebuilt from a keyword match in the response text
KEYWORD_RECONSTRUCTION_CONFIDENCE = 0.5
# Items synthesized from request context alone (meal type, clock)
CONTEXT_DEFAULT_CONFIDENCE = 0.3

# ==============================================================================
# Extraction Limits
# ==============================================================================

_MB = 1024 * 1024
MAX_TEXT_SIZE = 1 * _MB

# ==============================================================================
# Transport Retry Policy
# ==============================================================================

MAX_TRANSPORT_ATTEMPTS = 3
RETRY_BASE_DELAY = 1.0  # seconds
RETRYABLE_STATUS_MARKERS = ("502", "503", "504", "500", "timeout", "timed out")

# ==============================================================================
# Result Reasons
# ==============================================================================

GENERIC_FAILURE_REASON = "UnknownError: interpretation failed"

# ==============================================================================
# Request Defaults
# ==============================================================================

DEFAULT_MODEL = "gemini-2.5-pro"
DEFAULT_TEMPERATURE = 1.0
DEFAULT_TOP_K = 1
DEFAULT_TOP_P = 1.0
DEFAULT_MAX_OUTPUT_TOKENS = 2048
