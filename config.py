"""
Configuration for WIST Student Level Analysis Dashboard

Contains spreadsheet column names, insight thresholds and chart colors.
To change a threshold or label, simply edit the values below.
"""

APP_TITLE = "WIST Student Level Analysis"

# =============================================================================
# SPREADSHEET COLUMNS
# =============================================================================
# Column headers expected in the first worksheet of the upload

GRADE_COLUMN = "Grade"
SUBJECT_COLUMN = "Subject"
ON_LEVEL_COLUMN = "On Level"
BELOW_LEVEL_COLUMN = "Below Level"

REQUIRED_COLUMNS = [SUBJECT_COLUMN, GRADE_COLUMN]

ACCEPTED_FILE_TYPES = ["xlsx", "xls", "csv"]

# =============================================================================
# INSIGHT SETTINGS
# =============================================================================

PRIORITY_THRESHOLD = 70.0       # On-level % below this flags a priority class
STRONGEST_SUBJECT_COUNT = 3
WEAKEST_SUBJECT_COUNT = 2
PRIORITY_CLASS_COUNT = 3

GRADE_STANDING_LABELS = {
    "top": "Strongest",
    "middle": "Moderate",
    "bottom": "Needs most attention"
}

# =============================================================================
# CHART DISPLAY SETTINGS
# =============================================================================

SERIES_COLORS = {
    "on_level": "#0088FE",      # Blue
    "below_level": "#FF8042"    # Orange
}
