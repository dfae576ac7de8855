"""Tests for downstream job parameter helpers."""

from __future__ import annotations

import logging
from typing import Any
from unittest.mock import MagicMock

import pytest

from pipekit.errors import MissingVariablesError
from pipekit.job_params import (
    JobParam,
    check_required_variables,
    dry_run_job,
    item_key_to_job_param,
    map_config_to_job_params,
    map_to_job_params,
    readable_job_params,
)


class TestItemKeyToJobParam:
    """Tests for single item conversion."""

    def test_bool(self) -> None:
        assert item_key_to_job_param("debug", True) == [JobParam("boolean", "DEBUG", True)]

    def test_string(self) -> None:
        assert item_key_to_job_param("host", "srv1") == [JobParam("string", "HOST", "srv1")]

    def test_numbers(self) -> None:
        assert item_key_to_job_param("port", 22) == [JobParam("string", "PORT", "22")]
        assert item_key_to_job_param("ratio", 0.5) == [JobParam("string", "RATIO", "0.5")]

    def test_list_drops_commas(self) -> None:
        assert item_key_to_job_param("tags", ["a", "b", 3]) == [
            JobParam("string", "TAGS", "[a b 3]")
        ]

    def test_unsupported_types(self) -> None:
        assert item_key_to_job_param("x", None) == []
        assert item_key_to_job_param("x", {"a": 1}) == []


class TestMapConfigToJobParams:
    def test_nested_keys_prefixed(self) -> None:
        params = map_config_to_job_params({"target": {"host": "h", "port": 2}, "force": False})
        assert params == [
            JobParam("string", "TARGET_HOST", "h"),
            JobParam("string", "TARGET_PORT", "2"),
            JobParam("boolean", "FORCE", False),
        ]


class TestMapToJobParams:
    """Tests for config validation and filtering."""

    @pytest.fixture
    def config(self) -> dict[str, Any]:
        return {
            "name": "nightly",
            "enabled": True,
            "jobname": "deploy",
            "msg_success": "ok",
            "target": {"host": "srv1"},
            "verbose": True,
        }

    def test_enabled_config(self, config: dict[str, Any]) -> None:
        assert map_to_job_params(config) == [
            JobParam("string", "TARGET_HOST", "srv1"),
            JobParam("boolean", "VERBOSE", True),
        ]

    def test_missing_name(self, config: dict[str, Any], caplog: pytest.LogCaptureFixture) -> None:
        del config["name"]
        with caplog.at_level(logging.ERROR, logger="pipekit"):
            assert map_to_job_params(config) == []
        assert "'name' param not found" in caplog.text

    def test_missing_name_allowed(self, config: dict[str, Any]) -> None:
        del config["name"]
        assert len(map_to_job_params(config, check_name=False)) == 2

    def test_disabled(self, config: dict[str, Any], caplog: pytest.LogCaptureFixture) -> None:
        config["enabled"] = False
        with caplog.at_level(logging.INFO, logger="pipekit"):
            assert map_to_job_params(config) == []
        assert "nightly config disabled" in caplog.text

    def test_blank_jobname(self, config: dict[str, Any], caplog: pytest.LogCaptureFixture) -> None:
        config["jobname"] = "  "
        with caplog.at_level(logging.WARNING, logger="pipekit"):
            assert map_to_job_params(config) == []
        assert "jobname in this config wasn't set" in caplog.text

    def test_missing_enabled(self, config: dict[str, Any], caplog: pytest.LogCaptureFixture) -> None:
        del config["enabled"]
        with caplog.at_level(logging.ERROR, logger="pipekit"):
            assert map_to_job_params(config) == []
        assert "Config was skipped" in caplog.text


class TestReadableJobParams:
    def test_one_per_line(self) -> None:
        text = readable_job_params([JobParam("string", "A", "1"), JobParam("boolean", "B", True)])
        assert text == "[\n\tstring(name=A, value=1),\n\tboolean(name=B, value=True)\n]"

    def test_empty(self) -> None:
        assert readable_job_params([]) == "[]"


class TestCheckRequiredVariables:
    def test_all_present(self) -> None:
        assert check_required_variables(["A", "B"], ["1", "2"]) is False

    def test_missing_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="pipekit"):
            assert check_required_variables(["A", "B"], ["1", ""]) is True
        assert "B is undefined for current job run" in caplog.text

    def test_stop_on_error(self) -> None:
        with pytest.raises(MissingVariablesError) as exc_info:
            check_required_variables(["A", "B"], [None, ""], stop_on_error=True)
        assert exc_info.value.missing == ["A", "B"]

    def test_names_without_values_are_missing(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="pipekit"):
            assert check_required_variables(["A", "B", "C"], ["1"]) is True

        assert "B is undefined for current job run" in caplog.text
        assert "C is undefined for current job run" in caplog.text
        assert "A is undefined" not in caplog.text

    def test_extra_values_ignored(self) -> None:
        assert check_required_variables(["A"], ["1", ""]) is False


class TestDryRunJob:
    """Tests for dry-run wrapping of downstream jobs."""

    def test_normal_run_triggers(self) -> None:
        trigger = MagicMock(return_value="build-7")
        params = [JobParam("string", "A", "1")]

        result = dry_run_job("deploy", params, False, trigger=trigger)

        assert result == "build-7"
        trigger.assert_called_once_with(job="deploy", parameters=params, propagate=True, wait=True)

    def test_dry_run_skips(self) -> None:
        trigger = MagicMock()
        assert dry_run_job("deploy", [], True, trigger=trigger) is None
        trigger.assert_not_called()

    def test_dry_run_with_param_runs(self) -> None:
        trigger = MagicMock(return_value="build-8")

        result = dry_run_job("deploy", [], True, trigger=trigger, run_with_dry_run_param=True)

        assert result == "build-8"
        parameters = trigger.call_args.kwargs["parameters"]
        assert parameters == [JobParam("boolean", "DRY_RUN", True)]

    def test_dry_run_param_value_override(self) -> None:
        trigger = MagicMock()
        dry_run_job(
            "deploy",
            [],
            False,
            trigger=trigger,
            run_with_dry_run_param=True,
            dry_run_value=True,
            wait=False,
        )
        kwargs = trigger.call_args.kwargs
        assert kwargs["parameters"] == [JobParam("boolean", "DRY_RUN", True)]
        assert kwargs["wait"] is False

    def test_params_not_mutated(self) -> None:
        params = [JobParam("string", "A", "1")]
        dry_run_job("deploy", params, False, trigger=MagicMock(), run_with_dry_run_param=True)
        assert len(params) == 1
