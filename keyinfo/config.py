"""
Configuration constants for the KeyInfo application.
"""

import os

# Application Metadata
APP_VERSION = "1.0"  # Use: Current version of the application. Type: str. Range: Semantic versioning string (e.g., "1.0.0")
APP_NAME = "KeyInfo"  # Use: Name of the application. Type: str. Range: Any valid string.
APP_TAGLINE = "Your secure key information manager"  # Use: Subtitle shown on the lock screen. Type: str. Range: Any valid string.
APP_TITLE_PREFIX = f"{APP_NAME} v{APP_VERSION}"  # Use: Prefix for the application window titles, combining name and version. Type: str (f-string). Range: Derived from APP_NAME and APP_VERSION.

# File and Directory Names
CONFIG_DIR_NAME = ".keyinfo"  # Use: Name of the hidden directory within the user's home directory where KeyInfo stores its files. Type: str. Range: Any valid directory name.
CONFIG_DIR_ENV_VAR = "KEYINFO_HOME"  # Use: Environment variable that overrides the data directory. Type: str. Range: Any environment variable name.
DEFAULT_STORE_FILE = "items.json"  # Use: Default filename for the item store. Type: str. Range: Any valid filename.
SETTINGS_FILE = "settings.json"  # Use: Filename for the persisted user settings. Type: str. Range: Any valid filename.
PASSCODE_FILE = "auth.json"  # Use: Filename for the stored passcode hash. Type: str. Range: Any valid filename.
STORE_FORMAT_VERSION = 1  # Use: Version number written into the store document. Type: int. Range: Positive integer.

# Authentication Settings
AUTH_REASON_UNLOCK = "Unlock KeyInfo to access your secure information"  # Use: Reason string passed to the platform authenticator. Type: str. Range: Any descriptive string.
AUTH_ERROR_UNAVAILABLE = "Biometric authentication is not available on this device."  # Use: Failure reason when no biometric hardware/enrollment is found. Type: str. Range: Any descriptive string.
AUTH_ERROR_DISABLED = "Biometric authentication is turned off in Settings."  # Use: Failure reason when the user disabled biometrics. Type: str. Range: Any descriptive string.
AUTH_ERROR_DEFAULT = "Authentication failed"  # Use: Failure reason when the platform gives none. Type: str. Range: Any descriptive string.
AUTH_ERROR_PASSCODE = "Incorrect passcode. Please try again."  # Use: Failure reason for a wrong passcode. Type: str. Range: Any descriptive string.
AUTH_ERROR_NO_PASSCODE = "No passcode has been set up."  # Use: Failure reason when no passcode is configured yet. Type: str. Range: Any descriptive string.
PASSCODE_PROMPT_ENTER = "Enter Passcode"  # Use: Prompt for the passcode field on the lock screen. Type: str. Range: Any descriptive string.
PASSCODE_PROMPT_SETUP = "Set up a passcode for unlocking KeyInfo:"  # Use: Prompt shown when no passcode exists yet. Type: str. Range: Any descriptive string.
BIOMETRIC_AUTH_TIMEOUT_SECONDS = 30  # Use: Timeout in seconds for the platform biometric subprocess. Type: int. Range: Positive integer.
ARGON2_TIME_COST = 2  # Use: Argon2id time cost parameter for the passcode hash. Type: int. Range: Typically 1 to 10.
ARGON2_MEMORY_COST = 65536  # Use: Argon2id memory cost parameter in KiB. Type: int. Range: At least 65536 recommended.
ARGON2_PARALLELISM = 4  # Use: Argon2id parallelism parameter. Type: int. Range: Typically 1 to 8.
FPRINTD_VERIFY_COMMAND = "fprintd-verify"  # Use: Linux fingerprint verification command. Type: str. Range: Executable name on PATH.
FPRINTD_MATCH_MARKER = "verify-match"  # Use: Output marker printed by fprintd-verify on a successful match. Type: str. Range: Any string.

# Item Settings
DEFAULT_CATEGORY = "General"  # Use: Category assigned when the caller gives none. Type: str. Range: Any non-empty string.
DEFAULT_COLOR = "blue"  # Use: Fallback color for unknown color names. Type: str. Range: One of COLOR_PALETTE.
DEFAULT_ICON = "doc.fill"  # Use: Icon used for custom items. Type: str. Range: Any icon name.
COLOR_PALETTE = [  # Use: Named colors an item may carry, in picker order. Type: list[str]. Range: Twelve color names.
    "blue", "red", "green", "orange", "purple", "teal",
    "pink", "yellow", "indigo", "mint", "cyan", "brown",
]
COLOR_HEX = {  # Use: Swatch color for each palette name, used by the presentation layer. Type: dict[str, str]. Range: Hex RGB strings.
    "red": "#FF3B30", "orange": "#FF9500", "yellow": "#FFCC00", "green": "#34C759",
    "mint": "#00C7BE", "teal": "#30B0C7", "cyan": "#32ADE6", "blue": "#007AFF",
    "indigo": "#5856D6", "purple": "#AF52DE", "pink": "#FF2D55", "brown": "#A2845E",
}
PREDEFINED_CATEGORIES = [  # Use: Categories offered by the add-item form. Type: list[str]. Range: Any strings; free text is still accepted.
    "General", "Personal", "Financial", "Work", "Home", "Travel", "Security",
]

# Item kinds: display name -> (icon, suggested category, suggested color)
ITEM_KIND_DEFAULTS = {  # Use: Lookup table backing ItemKind defaults. Type: dict[str, tuple[str, str, str]]. Range: Keys match ItemKind values.
    "Driver License": ("car.fill", "Personal", "blue"),
    "PPS Number": ("person.text.rectangle.fill", "Personal", "blue"),
    "Eircode": ("house.fill", "Home", "orange"),
    "Locker Code": ("lock.fill", "Security", "red"),
    "Passport": ("airplane", "Personal", "blue"),
    "Bank Account": ("banknote.fill", "Financial", "green"),
    "Credit Card": ("creditcard.fill", "Financial", "green"),
    "WiFi Password": ("wifi", "Home", "orange"),
    "Email Account": ("envelope.fill", "Contact", "teal"),
    "Phone Number": ("phone.fill", "Contact", "teal"),
    "Insurance": ("checkmark.shield.fill", "Financial", "red"),
    "Membership": ("person.2.fill", "Membership", "purple"),
    "Custom": ("doc.fill", "General", "blue"),
}

# Sample data: (label, kind, category, value, is_favorite)
SAMPLE_ITEMS = [  # Use: Entries inserted by "Generate Sample Data". Type: list[tuple]. Range: Any.
    ("Personal Email", "Email Account", "Personal", "johndoe@example.com", True),
    ("Work Email", "Email Account", "Work", "john.doe@company.com", False),
    ("Home WiFi Password", "WiFi Password", "Home", "HomeWifi2023!", False),
    ("Netflix Account", "Custom", "Entertainment", "NetflixPass123", False),
    ("Credit Card", "Credit Card", "Finance", "1234 5678 9012 3456", True),
    ("Passport Number", "Passport", "Travel", "AB123456", False),
    ("Social Security", "PPS Number", "Personal", "123-45-6789", False),
    ("Bank Account", "Bank Account", "Finance", "987654321", False),
    ("Office Door Code", "Locker Code", "Work", "4513", False),
    ("Car Registration", "Driver License", "Vehicle", "ABC123XYZ", False),
]
SAMPLE_ITEM_SPACING_DAYS = 1  # Use: Gap in days between consecutive sample item creation dates. Type: int. Range: Positive integer.

# List Settings
FAVORITES_SECTION_TITLE = "Favorites"  # Use: Title of the synthetic favorites section in grouped view. Type: str. Range: Any string.
DETAIL_DATE_FORMAT = "%b %d, %Y, %H:%M"  # Use: strftime format of the creation date in the item details. Type: str. Range: Valid strftime format.
FAVORITE_BADGE_TEXT = "Favorite"  # Use: Badge shown in the item details for favorites. Type: str. Range: Any string.

# UI Settings
COPY_CONFIRMATION_SECONDS = 2.0  # Use: How long the "Copied to clipboard" confirmation stays visible. Type: float. Range: Positive number.
COPY_CONFIRMATION_TEXT = "Copied to clipboard"  # Use: Text of the copy confirmation. Type: str. Range: Any string.
DELETE_ALL_CONFIRMATION_WORD = "delete"  # Use: Word the user must type to confirm deleting everything. Type: str. Range: Any string.
TABLE_VALUE_HIDDEN_TEXT = "••••••••"  # Use: Placeholder displayed in the list for hidden values. Type: str. Range: Any string.
APP_STYLE = 'Fusion'  # Use: PyQt5 application style. Type: str. Range: Valid PyQt5 style names.


def get_config_dir() -> str:
    """Return the data directory, honouring the KEYINFO_HOME override."""
    override = os.environ.get(CONFIG_DIR_ENV_VAR)
    if override:
        return override
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)
