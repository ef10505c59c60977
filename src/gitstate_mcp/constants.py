"""Project-wide constants for gitstate."""

GIT_EXECUTABLE = "git"
GIT_TIMEOUT_SECONDS = 5.0

LOG_FIELD_SEPARATOR = "<<SEP>>"
LOG_FORMAT_FIELDS = ("%H", "%h", "%s", "%an", "%ar", "%D", "%P")
LOG_FORMAT = LOG_FIELD_SEPARATOR.join(LOG_FORMAT_FIELDS)
REF_SEPARATOR = ", "
RENAME_ARROW = " -> "

DEFAULT_MAX_COUNT = 50
MIN_MAX_COUNT = 1
MAX_MAX_COUNT = 1000

LANE_COLORS = (
    "#4ade80",  # green
    "#60a5fa",  # blue
    "#c084fc",  # purple
    "#facc15",  # yellow
    "#f472b6",  # pink
    "#22d3ee",  # cyan
    "#fb923c",  # orange
    "#a78bfa",  # violet
    "#34d399",  # emerald
    "#f87171",  # red
)
