"""
Station prioritizer configuration.

Column aliases, hidden columns, business-rule constants and UI labels.
Headers come from the planners' Hebrew exports; English variants are
accepted wherever the older English template used a different name.
"""

# ===========================
# COLUMN ALIASES
# ===========================

# Tried in order, first non-blank value wins
WORK_CENTER_ALIASES = [
    "מרכז עבודה",
    "Station Name",
    "תחנה",
    "תחנת עבודה",
    "station",
]

TEAM_ALIASES = [
    "צוות",
]

EXPECTED_COMPLETION_ALIASES = [
    "מועד סיום צפוי",
    "Expected Completion Date",
]

PRIORITY_NOTE_ALIASES = [
    "הערות מנהל פרויקט",
    "Internal Priority",
]

# Quantity for the supply rule: header contains the term AND any qualifier
QUANTITY_COLUMN_TERMS = ["כמות"]
QUANTITY_COLUMN_QUALIFIERS = ["פק", "פקיע", "הפקיע"]

# Remaining-to-execute: exact names first, then a header containing all of these
REMAINING_ALIASES = [
    "יתרה לביצוע",
    "Remaining to Execute",
    "Balance to Execute",
    "Balance",
]
REMAINING_COLUMN_TERMS = ["יתרה", "ביצוע"]

# Standard-time columns are shown as H:MM
STANDARD_TIME_MARKER = "זמן תקן"

# ===========================
# OUTPUT COLUMNS
# ===========================

SUPPLY_COMPLETION_COLUMN = "תאריך סיום אספקות"
RANK_COLUMN = "#"
# Title of an input column that is itself called "#"
SOURCE_RANK_COLUMN = "# (source)"

# Never shown or exported
HIDDEN_COLUMNS = [
    "איש הנדסה",
    "פעולה",
    "צוות",
    "תאור מוצר",
]

# ===========================
# BUSINESS RULES
# ===========================

# Supply completion date = expected completion (+ offset when quantity is large)
SUPPLY_QUANTITY_THRESHOLD = 30
SUPPLY_OFFSET_DAYS = 28

# Remaining == quantity comparison tolerance
BALANCE_MATCH_TOLERANCE = 1e-4

# The only work center that is split into team tabs
TEAM_SPLIT_WORK_CENTER = "TU"

# ===========================
# DATES
# ===========================

# Spreadsheet serial day 0
SERIAL_DATE_EPOCH = (1899, 12, 30)

# he-IL short date, e.g. 5.3.2024
DISPLAY_DATE_FORMAT = "{day}.{month}.{year}"
EXCEL_DATE_NUMBER_FORMAT = "dd.mm.yyyy"

# ===========================
# FILES & STORAGE
# ===========================

ALLOWED_UPLOAD_EXTENSIONS = [".csv", ".xlsx", ".xls"]

UPLOAD_LIBRARY_PATH = ".tmp/upload_library.db"

EXPORT_BASENAME = "prioritized_results"

# Excel sheet names
MAX_SHEET_NAME_LENGTH = 31
FORBIDDEN_SHEET_NAME_CHARS = "[]:*?/\\"

# ===========================
# BRANDING & UI
# ===========================

APP_TITLE = "Station Prioritization Tool"
APP_TAGLINE = "Upload your station data and get a smart, ranked list in seconds"
EMPTY_PARTITION_MESSAGE = "No stations found for this type."
