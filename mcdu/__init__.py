"""
mcdu - input and confirmation subsystem for a cockpit-style 14x24 text terminal.

Type values into a scratchpad, write them to remote devices with line select
keys, and guard risky actions behind soft, hard or countdown confirmations.

No transport required. No global state. All collaborators (value store,
page configuration, display) are injected by the user.
"""

__version__ = "0.1.0"

# Wiring
from .terminal import Terminal, KEYPAD_MAP, LSK_ROWS

# Input subsystem
from .input import (
    ValidationEngine,
    ScratchpadBuffer,
    ScratchpadColor,
    InputMode,
    InputModeManager,
    ConfirmationDialog,
    ConfirmationHandler,
    CallbackHandler,
    DialogType,
)

# Collaborator interfaces
from .remote import (
    RemoteValueStore,
    InMemoryValueStore,
    RemoteAccessError,
    MetadataCache,
    build_metadata_cache,
    read_with_retries,
)
from .display import (
    DisplayPublisher,
    RecordingDisplayPublisher,
    DisplayLine,
    DisplayColor,
)
from .pages import (
    PageConfig,
    PageConfigProvider,
    PageControl,
    LineConfig,
    ButtonField,
    DisplayField,
    FunctionKeyConfig,
    ConfigurationError,
)
from .renderer import DefaultPageRenderer, PageRenderer
from .timers import OwnedTimer

# Core schemas
from .schemas import (
    DatapointMetadata,
    DatapointType,
    FieldConfig,
    InputType,
    RemoteValue,
    ValidationResult,
    ValidationRule,
)

from .config import Config

__all__ = [
    "Terminal",
    "KEYPAD_MAP",
    "LSK_ROWS",
    "ValidationEngine",
    "ScratchpadBuffer",
    "ScratchpadColor",
    "InputMode",
    "InputModeManager",
    "ConfirmationDialog",
    "ConfirmationHandler",
    "CallbackHandler",
    "DialogType",
    "RemoteValueStore",
    "InMemoryValueStore",
    "RemoteAccessError",
    "MetadataCache",
    "build_metadata_cache",
    "read_with_retries",
    "DisplayPublisher",
    "RecordingDisplayPublisher",
    "DisplayLine",
    "DisplayColor",
    "PageConfig",
    "PageConfigProvider",
    "PageControl",
    "LineConfig",
    "ButtonField",
    "DisplayField",
    "FunctionKeyConfig",
    "ConfigurationError",
    "DefaultPageRenderer",
    "PageRenderer",
    "OwnedTimer",
    "DatapointMetadata",
    "DatapointType",
    "FieldConfig",
    "InputType",
    "RemoteValue",
    "ValidationResult",
    "ValidationRule",
    "Config",
]
