"""Application constants."""

USER_AGENT = "collision-clean/0.3 (+research; contact: configured-email)"
STAGES = (
    "addresses",
    "geocode",
    "clean",
)
EXIT_SUCCESS = 0
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "event",
    "status",
    "attempt",
    "duration_ms",
    "rows_in",
    "rows_out",
    "dropped",
    "error_code",
    "message",
)
CROSS_STREET_SEPARATOR = " & "
MISSING_ADDRESS = "MISSING_ADDRESS"
