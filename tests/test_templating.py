"""Tests for $variable templating."""

from __future__ import annotations

import logging

import pytest

from pipekit.templating import (
    find_variables,
    render,
    replace_variables_in_map,
    resolve_binding,
)


class TestFindVariables:
    """Tests for placeholder scanning."""

    def test_finds_in_order_with_duplicates(self) -> None:
        text = "deploy $version to $host_1, then verify $version"
        assert find_variables(text) == ["version", "host_1", "version"]

    def test_names_may_start_with_digit(self) -> None:
        assert find_variables("$1st and $2") == ["1st", "2"]

    def test_stops_at_non_word_characters(self) -> None:
        assert find_variables("$name.txt $a-b") == ["name", "a"]

    def test_lone_dollar_is_not_a_variable(self) -> None:
        assert find_variables("costs $ 5") == []

    def test_braced_form(self) -> None:
        assert find_variables("${app}_v$ver") == ["app", "ver"]

    def test_no_variables(self) -> None:
        assert find_variables("plain text") == []


class TestRender:
    """Tests for single string rendering."""

    def test_replaces_known_names(self) -> None:
        assert render("v$version on $host", {"version": "1.2", "host": "srv"}) == "v1.2 on srv"

    def test_braced_form(self) -> None:
        assert render("${name}_suffix", {"name": "build"}) == "build_suffix"

    def test_unknown_names_untouched(self) -> None:
        assert render("$known $unknown ${other}", {"known": "x"}) == "x $unknown ${other}"

    def test_values_are_stringified(self) -> None:
        assert render("$n items, ok=$ok", {"n": 3, "ok": True}) == "3 items, ok=True"

    def test_replacement_is_not_rescanned(self) -> None:
        assert render("$a", {"a": "$b", "b": "nope"}) == "$b"

    def test_longest_name_wins(self) -> None:
        assert render("$version_major", {"version": "1", "version_major": "2"}) == "2"


class TestResolveBinding:
    """Tests for binding resolution rules."""

    def test_truthy_values_are_found(self) -> None:
        binding, report = resolve_binding(["a"], {"a": "value"})
        assert binding == {"a": "value"}
        assert report[0].startswith("found: 'a'")

    def test_empty_value_uses_no_data(self) -> None:
        binding, _ = resolve_binding(["a", "b"], {"a": ""}, no_data="n/a")
        assert binding == {"a": "n/a", "b": "n/a"}

    def test_without_no_data_placeholder_is_kept(self) -> None:
        binding, report = resolve_binding(["a"], {}, None)
        assert binding == {"a": "$a"}
        assert "leaving this unchanged" in report[0]

    def test_duplicates_reported_once(self) -> None:
        _, report = resolve_binding(["a", "a"], {"a": "1"})
        assert len(report) == 1


class TestReplaceVariablesInMap:
    """Tests for whole-map templating."""

    def test_flattens_and_renders(self) -> None:
        params = {
            "title": "Build $build_number",
            "msg": {"ok": "$app deployed", "fail": "$app failed: $reason"},
        }
        values = {"build_number": "42", "app": "web", "reason": ""}

        result = replace_variables_in_map(params, values, no_data="<no data>")

        assert result == {
            "title": "Build 42",
            "msg_ok": "web deployed",
            "msg_fail": "web failed: <no data>",
        }

    def test_missing_variables_kept_when_no_default(self) -> None:
        result = replace_variables_in_map({"text": "$found and $missing"}, {"found": "yes"})
        assert result == {"text": "yes and $missing"}

    def test_non_string_values_are_stringified(self) -> None:
        result = replace_variables_in_map({"count": 3, "flag": True}, {})
        assert result == {"count": "3", "flag": "True"}

    def test_does_not_mutate_params(self) -> None:
        params = {"nested": {"text": "$x"}}
        replace_variables_in_map(params, {"x": "1"})
        assert params == {"nested": {"text": "$x"}}

    def test_logs_binding_report(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="pipekit"):
            replace_variables_in_map({"text": "$x"}, {}, "none")

        assert "Binding log" in caplog.text
        assert "'x' not found, replaced with: 'none'" in caplog.text
