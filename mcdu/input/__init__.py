"""Input and confirmation subsystem for the MCDU terminal.

This package houses the entry stack (validation engine, scratchpad, input
mode manager) and the modal confirmation dialog. The terminal wires them
together; each can also be constructed on its own for testing.
"""

from .validation import ValidationEngine, CustomValidator
from .scratchpad import (
    ScratchpadBuffer,
    ScratchpadColor,
    BufferState,
    Clean,
    Editing,
    ErrorShown,
    validate_numeric_format,
)
from .mode_manager import InputMode, InputModeManager
from .confirmation import (
    CallbackHandler,
    ConfirmationDialog,
    ConfirmationHandler,
    DialogState,
    DialogType,
)

__all__ = [
    "ValidationEngine",
    "CustomValidator",
    "ScratchpadBuffer",
    "ScratchpadColor",
    "BufferState",
    "Clean",
    "Editing",
    "ErrorShown",
    "validate_numeric_format",
    "InputMode",
    "InputModeManager",
    "CallbackHandler",
    "ConfirmationDialog",
    "ConfirmationHandler",
    "DialogState",
    "DialogType",
]
