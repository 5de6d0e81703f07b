"""
Page and line configuration.

Pages are authored in the admin UI and arrive as JSON. Each page has an id, an
optional parent (CLR navigates there), and up to 13 configured rows. Each row
has a left and a right side; each side may carry a display field (what is
shown) and a button field (what the line select key next to it does).

Two line formats exist in the wild:
- current: ``{"row": 3, "left": {"display": {...}, "button": {...}}, "right": {...}}``
- legacy: ``{"row": 3, "display": {...}, "leftButton": {...}, "rightButton": {...}}``

Legacy lines are normalized to the current shape on load, with the single
legacy display assigned to the left side.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .schemas import FieldConfig


class ConfigurationError(Exception):
    """Raised when a page, line or field the caller asked for is not configured."""


class FieldType(str, Enum):
    """Known display/button field types. Unknown strings are kept as-is."""

    EMPTY = "empty"
    LABEL = "label"
    DATAPOINT = "datapoint"
    NAVIGATION = "navigation"


class ButtonAction(str, Enum):
    GOTO = "goto"
    TOGGLE = "toggle"
    INCREMENT = "increment"
    DECREMENT = "decrement"


class ButtonField(BaseModel):
    """What a line select key does when pressed."""

    model_config = ConfigDict(extra="allow")

    type: str = FieldType.EMPTY.value
    action: Optional[str] = None
    target: Optional[str] = None

    @property
    def is_actionable(self) -> bool:
        """A button is actionable when it has a type and, where needed, a target.

        The admin UI persists ``type: "datapoint"`` (or ``"navigation"``) on
        buttons even when the author only configured the display; such buttons
        have no target and must not shadow the display field.
        """

        if not self.type or self.type == FieldType.EMPTY:
            return False
        if self.type in (FieldType.NAVIGATION, FieldType.DATAPOINT):
            return bool(self.target)
        return True


class DisplayField(FieldConfig):
    """What is shown on one side of a row (and how it may be edited)."""

    type: str = FieldType.EMPTY.value
    source: Optional[str] = None
    text: Optional[str] = None
    label: Optional[str] = None
    format: Optional[str] = None
    unit: Optional[str] = None
    color: Optional[str] = None

    @property
    def is_datapoint(self) -> bool:
        return self.type == FieldType.DATAPOINT and bool(self.source)

    @property
    def declares_rules(self) -> bool:
        """True when the author attached explicit input rules to this field."""

        return "input_type" in self.model_fields_set or "validation" in self.model_fields_set


class SideConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    label: str = ""
    display: DisplayField = Field(default_factory=DisplayField)
    button: ButtonField = Field(default_factory=ButtonField)


class LineConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    row: int
    left: SideConfig = Field(default_factory=SideConfig)
    right: SideConfig = Field(default_factory=SideConfig)

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy_format(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "left" in data or "right" in data:
            return data
        if not any(key in data for key in ("leftButton", "rightButton", "display")):
            return data
        normalized = {key: value for key, value in data.items()
                      if key not in ("leftButton", "rightButton", "display")}
        left: Dict[str, Any] = {}
        right: Dict[str, Any] = {}
        if data.get("display"):
            left["display"] = data["display"]
        if data.get("leftButton"):
            left["button"] = data["leftButton"]
        if data.get("rightButton"):
            right["button"] = data["rightButton"]
        normalized["left"] = left
        normalized["right"] = right
        return normalized

    def side(self, side: str) -> SideConfig:
        if side not in ("left", "right"):
            raise ConfigurationError(f"Unknown side '{side}' (expected left|right)")
        return self.left if side == "left" else self.right


class PageConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: Optional[str] = None
    parent: Optional[str] = None
    lines: List[LineConfig] = Field(default_factory=list)

    def line_for(self, row: int) -> Optional[LineConfig]:
        for line in self.lines:
            if line.row == row:
                return line
        return None

    @property
    def display_name(self) -> str:
        return self.name or self.id


class FunctionKeyAction(str, Enum):
    NAVIGATE_HOME = "navigateHome"
    GOTO_PAGE = "gotoPage"
    DIRECT_ACCESS = "directAccess"


class FunctionKeyConfig(BaseModel):
    """Binding of a hardware function key (MENU, DIR, INIT...) to an action."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    key: str
    enabled: bool = True
    action: Optional[str] = None
    target_page_id: Optional[str] = Field(None, alias="targetPageId")


class PageConfigProvider:
    """Ordered, in-memory page configuration. The first page is the root (home)."""

    def __init__(self, pages: Iterable[PageConfig] = ()) -> None:
        self.pages: List[PageConfig] = list(pages)

    @classmethod
    def from_dicts(cls, raw_pages: Iterable[Dict[str, Any]]) -> "PageConfigProvider":
        return cls(PageConfig.model_validate(raw) for raw in raw_pages)

    def get_page(self, page_id: Optional[str]) -> Optional[PageConfig]:
        if not page_id:
            return None
        for page in self.pages:
            if page.id == page_id:
                return page
        return None

    def require_page(self, page_id: Optional[str]) -> PageConfig:
        page = self.get_page(page_id)
        if page is None:
            raise ConfigurationError(f"Page config not found: {page_id}")
        return page

    @property
    def root_page(self) -> Optional[PageConfig]:
        return self.pages[0] if self.pages else None

    def line_for(self, page_id: str, row: int) -> Optional[LineConfig]:
        """Line configuration for ``row`` on ``page_id``.

        Raises:
            ConfigurationError: If the page is not configured
        """

        return self.require_page(page_id).line_for(row)

    def parent_of(self, page_id: str) -> Optional[PageConfig]:
        """Return the configured parent page, if it exists."""

        page = self.get_page(page_id)
        if page is None or not page.parent:
            return None
        return self.get_page(page.parent)

    def siblings_of(self, page_id: str) -> List[PageConfig]:
        """Pages sharing ``page_id``'s parent, in configuration order (includes itself)."""

        page = self.get_page(page_id)
        if page is None:
            return []
        parent_id = page.parent or None
        return [candidate for candidate in self.pages if (candidate.parent or None) == parent_id]

    def build_breadcrumb(self, page_id: str) -> List[PageConfig]:
        """Walk the parent chain from ``page_id`` up; returns root-first.

        Orphans (unknown parent) end the chain; parent cycles are cut at the
        first repeated id.
        """

        breadcrumb: List[PageConfig] = []
        visited = set()
        current_id: Optional[str] = page_id
        while current_id and current_id not in visited:
            visited.add(current_id)
            page = self.get_page(current_id)
            if page is None:
                break
            breadcrumb.insert(0, page)
            current_id = page.parent or None
        return breadcrumb


class PageControl(Protocol):
    """What the input subsystem may ask of the page layer.

    Implemented by ``mcdu.terminal.Terminal``. Invoked after successful writes,
    clears, overlay expiry and dialog teardown.
    """

    @property
    def current_page_id(self) -> Optional[str]:
        ...

    @property
    def modal_active(self) -> bool:
        """True while a confirmation dialog owns the whole display."""
        ...

    async def switch_to_page(self, page_id: str) -> None:
        """Make ``page_id`` the active page and render it."""
        ...

    async def render_current_page(self) -> None:
        """Redraw whatever is currently active."""
        ...

    async def execute_button_action(self, button: ButtonField) -> None:
        """Run a configured button (navigation or datapoint action)."""
        ...
