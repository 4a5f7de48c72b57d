"""Internal constants shared across the library."""

BASE_URL = "http://localhost:8080"
USER_AGENT = "takmap"

# ------------------------------------------------------------------
# Server endpoints
# ------------------------------------------------------------------

CONFIG_PATH = "/config"
TYPES_PATH = "/types"
ENTITIES_PATH = "/unit"
MESSAGES_PATH = "/message"
POSITION_PATH = "/pos"
DIGITAL_POINTER_PATH = "/dp"
PUSH_PATH = "/ws"

AUTH_FAILURE_STATUSES: frozenset[int] = frozenset({401, 403})

# ------------------------------------------------------------------
# Presentation
# ------------------------------------------------------------------

TEAM_COLORS: dict[str, str] = {
    "Clear": "white",
    "White": "white",
    "Yellow": "yellow",
    "Orange": "orange",
    "Magenta": "magenta",
    "Red": "red",
    "Maroon": "maroon",
    "Purple": "purple",
    "Dark Blue": "darkblue",
    "Blue": "blue",
    "Cyan": "cyan",
    "Teal": "teal",
    "Green": "green",
    "Dark Green": "darkgreen",
    "Brown": "brown",
}
OFFLINE_COLOR = "#555"
UNKNOWN_TEAM_COLOR = "#777"
DEFAULT_POINT_COLOR = "green"
CIRCLE_STROKE = "#000"

ROLE_ABBREVIATIONS: dict[str, str] = {
    "HQ": "HQ",
    "Team Lead": "TL",
    "K9": "K9",
    "Forward Observer": "FO",
    "Sniper": "S",
    "Medic": "M",
    "RTO": "R",
}

SPOT_MAP_PREFIX = "COT_MAPPING_SPOTMAP/"
SMALL_CIRCLE_SIZE = 16

# type literal -> (image file, anchor x, anchor y)
STATIC_TYPE_ICONS: dict[str, tuple[str, int, int]] = {
    "b": ("b.png", 16, 16),
    "b-m-p-w-GOTO": ("green_flag.png", 6, 30),
    "b-m-p-s-p-op": ("binos.png", 16, 16),
    "b-m-p-s-p-loc": ("sensor_location.png", 16, 16),
    "b-m-p-s-p-i": ("b-m-p-s-p-i.png", 16, 16),
    "b-m-p-a": ("aimpoint.png", 16, 16),
}

# ------------------------------------------------------------------
# Operator-created points
# ------------------------------------------------------------------

POINT_TYPE = "b-m-p-s-m"
POINT_STALE_DAYS = 365
DIGITAL_POINTER_NAME = "DP1"
