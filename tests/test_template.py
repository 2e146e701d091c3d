"""Tests for winbundle.template."""

from __future__ import annotations

from winbundle.template import replace_template_variables


def test_replaces_single_variable() -> None:
    assert replace_template_variables("Hello {{NAME}}!", {"NAME": "World"}) == "Hello World!"


def test_replaces_multiple_variables() -> None:
    result = replace_template_variables(
        "{{GREETING}} {{NAME}}!", {"GREETING": "Hello", "NAME": "World"}
    )
    assert result == "Hello World!"


def test_replaces_every_occurrence() -> None:
    assert replace_template_variables("{{X}} + {{X}} = {{X}}{{X}}", {"X": "1"}) == "1 + 1 = 11"


def test_leaves_unknown_variables_unchanged() -> None:
    result = replace_template_variables("{{KNOWN}} {{UNKNOWN}}", {"KNOWN": "value"})
    assert result == "value {{UNKNOWN}}"


def test_empty_mapping_returns_template() -> None:
    assert replace_template_variables("{{VAR}}", {}) == "{{VAR}}"


def test_empty_template() -> None:
    assert replace_template_variables("", {"VAR": "value"}) == ""


def test_inserted_values_are_not_rescanned() -> None:
    result = replace_template_variables("{{A}}", {"A": "{{B}}", "B": "nope"})
    assert result == "{{B}}"


def test_values_are_inserted_without_escaping() -> None:
    assert replace_template_variables("<{{V}}>", {"V": "a & <b>"}) == "<a & <b>>"


def test_second_pass_is_stable() -> None:
    variables = {"KNOWN": "value"}
    once = replace_template_variables("{{KNOWN}} {{OTHER}}", variables)
    assert replace_template_variables(once, variables) == once
