"""
Adapter constants.

Defaults used when neither the environment nor per-call options say otherwise,
plus the upstream vocabulary (finish reasons, harm categories) the parsers map.
"""

# Provider defaults
DEFAULT_MODEL_ID = "gemini-1.5-flash"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_MAX_RETRIES = 3

# Retry schedule
DEFAULT_BASE_DELAY_MS = 1000.0
DEFAULT_BACKOFF_FACTOR = 2.0
DEFAULT_JITTER_FACTOR = 0.25
DEFAULT_RATE_LIMIT_RETRY_MS = 60000.0

# Known model ids (advisory; unknown ids are still accepted)
KNOWN_MODEL_IDS = (
    "gemini-2.0-flash-exp",
    "gemini-1.5-flash",
    "gemini-1.5-flash-8b",
    "gemini-1.5-pro",
)

# Health check request
HEALTH_CHECK_PROMPT = "ping"
HEALTH_CHECK_MAX_TOKENS = 10
HEALTH_CHECK_TEMPERATURE = 0.0

# Upstream finish reasons; wire integers follow the upstream enum numbering
FINISH_REASON_BY_NUMBER = {
    0: "FINISH_REASON_UNSPECIFIED",
    1: "STOP",
    2: "MAX_TOKENS",
    3: "SAFETY",
    4: "RECITATION",
    5: "OTHER",
}
TERMINAL_FINISH_REASONS = frozenset({"STOP", "MAX_TOKENS", "SAFETY"})
BLOCKING_FINISH_REASONS = frozenset({"SAFETY", "RECITATION"})

# Safety
HARM_CATEGORY_PREFIX = "HARM_CATEGORY_"
DEFAULT_HARM_CATEGORIES = (
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
)
DEFAULT_BLOCK_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"
REPORTED_SAFETY_PROBABILITIES = frozenset({"HIGH", "MEDIUM"})
UNSPECIFIED_SAFETY_SUMMARY = "unspecified safety concerns"
HARM_PROBABILITY_BY_NUMBER = {
    0: "HARM_PROBABILITY_UNSPECIFIED",
    1: "NEGLIGIBLE",
    2: "LOW",
    3: "MEDIUM",
    4: "HIGH",
}
BLOCK_REASON_BY_NUMBER = {
    0: "BLOCK_REASON_UNSPECIFIED",
    1: "SAFETY",
    2: "OTHER",
}
UNSPECIFIED_BLOCK_REASONS = frozenset({"BLOCK_REASON_UNSPECIFIED", "UNSPECIFIED"})
