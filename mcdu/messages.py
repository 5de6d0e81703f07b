"""Fixed user-facing vocabulary.

Everything the terminal shows as feedback comes from this module so the
tokens stay short, upper case and ASCII-safe for the hardware font.
"""

# Scratchpad rejections (recoverable with one CLR)
FORMAT_ERROR = "FORMAT ERROR"
ENTRY_OUT_OF_RANGE = "ENTRY OUT OF RANGE"
WRITE_ERROR = "WRITE ERROR"

# Overlays
SCRATCHPAD_FULL = "SCRATCHPAD FULL"
RETURNING_HOME = "RETURNING TO HOME"
SAVED = "OK SAVED"
ERROR_PREFIX = "ERR "

# Confirmation dialog
WARNING_PREFIX = "!! "
INSTRUCTION_SOFT = "LSK OR OVFY TO SELECT"
INSTRUCTION_HARD = "PRESS OVFY TO CONFIRM"
INSTRUCTION_COUNTDOWN = "OVFY = NOW | < = CANCEL"
OPTION_CANCEL = "< CANCEL"
OPTION_CONFIRM = "CONFIRM*"
OPTION_HARD = "OVFY KEY ONLY"
WRONG_KEY = "OVFY KEY ONLY!"
COUNTDOWN_DETAIL = "AUTO EXECUTE IN {seconds} SEC"

# Validation (templates; numeric suffixes appended by the validators)
VALIDATION_MESSAGES = {
    "required": "REQUIRED",
    "invalidFormat": "INVALID FORMAT",
    "invalidNumber": "INVALID NUMBER",
    "invalidTime": "FORMAT: HH:MM",
    "invalidDate": "FORMAT: DD.MM.YYYY",
    "invalidCalendarDate": "INVALID DATE",
    "invalidChars": "INVALID CHARACTERS",
    "tooShort": "TOO SHORT",
    "tooLong": "TOO LONG",
    "belowMin": "MINIMUM",
    "aboveMax": "MAXIMUM",
    "invalidStep": "STEP",
    "invalidOption": "INVALID OPTION",
    "validationError": "VALIDATION ERROR",
    "notFound": "NOT FOUND",
    "alreadyExists": "ALREADY EXISTS",
}

GENERIC_ERROR = "ERROR"

# Page rendering and navigation
PAGE_NOT_FOUND = "PAGE NOT FOUND"
NO_VALUE = "---"
OFFLINE = "OFFLINE"
READ_ERROR = "ERR"
