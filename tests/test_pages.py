"""Tests for page/line configuration loading and page tree queries."""

import pytest

from mcdu.pages import (
    ButtonField,
    ConfigurationError,
    DisplayField,
    FunctionKeyConfig,
    LineConfig,
    PageConfigProvider,
)


def make_provider() -> PageConfigProvider:
    return PageConfigProvider.from_dicts(
        [
            {"id": "home", "lines": [{"row": 1, "left": {"display": {"type": "label", "text": "HI"}}}]},
            {"id": "climate", "parent": "home"},
            {"id": "lights", "parent": "home"},
            {"id": "orphan", "parent": "missing"},
            {"id": "loop-a", "parent": "loop-b"},
            {"id": "loop-b", "parent": "loop-a"},
        ]
    )


def test_legacy_line_format_is_normalized():
    line = LineConfig.model_validate(
        {
            "row": 3,
            "display": {"type": "datapoint", "source": "a.b"},
            "leftButton": {"type": "navigation", "target": "climate"},
            "rightButton": {"type": "datapoint", "action": "toggle", "target": "c.d"},
        }
    )
    assert line.left.display.source == "a.b"
    assert line.left.button.target == "climate"
    assert line.right.button.action == "toggle"
    assert line.right.display.type == "empty"


def test_side_rejects_unknown_names():
    line = LineConfig(row=1)
    assert line.side("left") is line.left
    with pytest.raises(ConfigurationError):
        line.side("middle")


@pytest.mark.parametrize(
    "raw, actionable",
    [
        ({}, False),
        ({"type": "datapoint"}, False),
        ({"type": "navigation"}, False),
        ({"type": "navigation", "target": "home"}, True),
        ({"type": "datapoint", "action": "toggle", "target": "a.b"}, True),
        ({"type": "custom"}, True),
    ],
)
def test_button_actionability(raw, actionable):
    assert ButtonField.model_validate(raw).is_actionable is actionable


def test_display_field_declares_rules_only_when_authored():
    plain = DisplayField.model_validate({"type": "datapoint", "source": "a.b"})
    ruled = DisplayField.model_validate(
        {"type": "datapoint", "source": "a.b", "inputType": "numeric", "validation": {"min": 1}}
    )
    assert plain.is_datapoint
    assert not plain.declares_rules
    assert ruled.declares_rules


def test_provider_lookup_and_root():
    provider = make_provider()
    assert provider.root_page.id == "home"
    assert provider.get_page("climate").parent == "home"
    assert provider.get_page(None) is None
    with pytest.raises(ConfigurationError):
        provider.require_page("nowhere")


def test_line_for_requires_known_page():
    provider = make_provider()
    assert provider.line_for("home", 1).left.display.text == "HI"
    assert provider.line_for("home", 3) is None
    with pytest.raises(ConfigurationError):
        provider.line_for("nowhere", 1)


def test_parent_and_siblings():
    provider = make_provider()
    assert provider.parent_of("climate").id == "home"
    assert provider.parent_of("home") is None
    assert provider.parent_of("orphan") is None
    assert [page.id for page in provider.siblings_of("climate")] == ["climate", "lights"]


def test_breadcrumb_stops_at_orphans_and_cycles():
    provider = make_provider()
    assert [page.id for page in provider.build_breadcrumb("climate")] == ["home", "climate"]
    assert [page.id for page in provider.build_breadcrumb("orphan")] == ["orphan"]
    assert [page.id for page in provider.build_breadcrumb("loop-a")] == ["loop-b", "loop-a"]


def test_function_key_config_alias():
    config = FunctionKeyConfig.model_validate({"key": "INIT", "action": "gotoPage", "targetPageId": "climate"})
    assert config.enabled
    assert config.target_page_id == "climate"
