"""Application constants."""

USER_AGENT = "alpr-sync/0.3 (+camera map; contact: configured-email)"
COMMANDS = (
    "fetch",
    "transform",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "region",
    "source",
    "event",
    "status",
    "attempt",
    "endpoint",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
DEFAULT_CAMERA_FILTERS = (
    '["man_made"="surveillance"]["surveillance:type"="ALPR"]',
    '["man_made"="surveillance"]["camera:type"="ALPR"]',
    '["man_made"="surveillance"]["brand"="Flock Safety"]',
)
DEFAULT_KIND = "flock"
