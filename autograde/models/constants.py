# autograde/models/constants.py

# Status options printed after the score bubbles, in column order
STATUS_OPTIONS = ["Missing", "Absent", "Exempt"]

# Single-letter headers used on the printed sheet and in free-text replies
STATUS_ABBREVIATIONS = {
    "M": "Missing",
    "A": "Absent",
    "E": "Exempt",
}

DEFAULT_GRADING_SCALE = ["10", "8.5", "7.5", "6.5", "5"]
MAX_GRADING_SCALE_SIZE = 5

# Glyphs that OCR returns for a marked bubble (compared upper-cased)
MARK_GLYPHS = ["X", "✓", "✔", "●", "■", "▪", "*", "•"]

OCR_PROVIDERS = ["vision", "claude"]

JOB_STATUSES = ["pending", "processing", "completed", "failed", "cancelled"]
