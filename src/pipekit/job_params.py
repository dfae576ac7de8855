"""Downstream job parameters built from configuration maps.

A regression or deploy config names a downstream job and carries the values
to pass to it. Keys become upper-cased parameter names; nested maps are
flattened one level with an underscore.

Example config:
    {"name": "nightly", "enabled": True, "jobname": "deploy",
     "target": {"host": "srv1"}, "verbose": True}

becomes:
    [string(name=TARGET_HOST, value=srv1), boolean(name=VERBOSE, value=True)]
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal, TypeVar

from pipekit.errors import MissingVariablesError
from pipekit.mapping import flatten_nested_map, readable_map

logger = logging.getLogger(__name__)

ParamKind = Literal["boolean", "string"]
UNDEFINED_CONFIG_NAME = "<undefined_config_name>"

# Keys that describe the config itself rather than job parameters
RESERVED_KEYS = frozenset({"name", "enabled", "jobname"})
MESSAGE_KEY_PREFIX = "msg"

T = TypeVar("T")


@dataclass(frozen=True)
class JobParam:
    """Single downstream job parameter.

    Attributes:
        kind: 'boolean' or 'string'.
        name: Parameter name as the downstream job declares it.
        value: Parameter value (bool for boolean params, str otherwise).
    """

    kind: ParamKind
    name: str
    value: bool | str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"type": self.kind, "name": self.name, "value": self.value}

    def __str__(self) -> str:
        return f"{self.kind}(name={self.name}, value={self.value})"


def item_key_to_job_param(key: str, value: Any) -> list[JobParam]:
    """Convert one config item into job parameters.

    Returns an empty list for value types a job parameter cannot carry
    (maps, None, ...).
    """
    name = key.upper()
    if isinstance(value, bool):
        return [JobParam("boolean", name, value)]
    if isinstance(value, list):
        rendered = "[" + ", ".join(str(v) for v in value) + "]"
        return [JobParam("string", name, rendered.replace(",", ""))]
    if isinstance(value, str):
        return [JobParam("string", name, value)]
    if isinstance(value, int | float):
        return [JobParam("string", name, str(value))]
    return []


def map_config_to_job_params(config: Mapping[str, Any]) -> list[JobParam]:
    """Convert a whole config map (nested one level at most) to job parameters."""
    params: list[JobParam] = []
    for key, value in flatten_nested_map(config).items():
        params.extend(item_key_to_job_param(str(key), value))
    return params


def map_to_job_params(config: Mapping[str, Any], *, check_name: bool = True) -> list[JobParam]:
    """Build job parameters for an enabled config.

    The config must carry 'enabled' and 'jobname'; 'name' is required when
    check_name is set. Skipped configs are logged and produce no parameters.
    Keys 'name', 'enabled', 'jobname' and any 'msg*' keys are not passed on.

    Args:
        config: Config map.
        check_name: Require a visible 'name' in the config.

    Returns:
        Job parameters, or an empty list when the config is skipped.
    """
    config_name = config.get("name")
    if not config_name:
        if check_name:
            logger.error("'name' param not found, please set visible name.")
            return []
        config_name = UNDEFINED_CONFIG_NAME

    if "enabled" not in config or "jobname" not in config:
        logger.error(
            f"Unable to find 'enabled' and/or 'jobname' param(s) in {config_name} config. "
            "Please check and try again. Config was skipped."
        )
        return []

    if not config["enabled"]:
        logger.info(f"{config_name} config disabled, skipping.")
        return []

    if not str(config["jobname"] or "").strip():
        logger.warning(
            f"Unable to run {config_name} config because jobname in this config wasn't set. "
            "Skipping this config."
        )
        return []

    logger.debug(f"Processing current {config_name} config:\n{readable_map(config)}")
    params = map_config_to_job_params(
        {
            key: value
            for key, value in config.items()
            if key not in RESERVED_KEYS and not str(key).startswith(MESSAGE_KEY_PREFIX)
        }
    )
    logger.debug(
        f"Config {config_name} includes the next pipeline params:\n{readable_job_params(params)}"
    )
    return params


def readable_job_params(params: Sequence[Any]) -> str:
    """Render a parameter list with one parameter per line."""
    if not params:
        return "[]"
    return "[\n\t" + ",\n\t".join(str(p) for p in params) + "\n]"


def check_required_variables(
    names: Sequence[str],
    values: Sequence[Any],
    *,
    stop_on_error: bool = False,
) -> bool:
    """Check that every named pipeline variable has a non-empty value.

    Args:
        names: Variable names, used in log messages.
        values: Values in the same order as names; names past its end are
            treated as undefined.
        stop_on_error: Raise instead of only logging.

    Returns:
        True if at least one variable is missing.

    Raises:
        MissingVariablesError: If a variable is missing and stop_on_error is set.
    """
    missing = [
        name for index, name in enumerate(names) if index >= len(values) or not values[index]
    ]
    for name in missing:
        logger.error(f"{name} is undefined for current job run")

    if missing and stop_on_error:
        raise MissingVariablesError(
            "Current job run terminated. Please specify the parameters listed above and run again.",
            missing=missing,
        )
    return bool(missing)


def dry_run_job(
    job_name: str,
    params: Sequence[JobParam],
    dry_run: bool,
    *,
    trigger: Callable[..., T],
    run_with_dry_run_param: bool = False,
    dry_run_value: bool | None = None,
    propagate: bool = True,
    wait: bool = True,
) -> T | None:
    """Trigger a downstream job, honouring dry-run mode.

    Args:
        job_name: Downstream job name.
        params: Job parameters.
        dry_run: Current run is a dry run.
        trigger: Host callable starting the job; receives job, parameters,
            propagate and wait keyword arguments.
        run_with_dry_run_param: Run the job anyway, with a DRY_RUN parameter
            appended so it can dry-run itself.
        dry_run_value: Value of the appended DRY_RUN parameter (defaults to dry_run).
        propagate: Propagate downstream failures.
        wait: Wait for the downstream job to complete.

    Returns:
        Whatever trigger returns, or None when the run was skipped.
    """
    job_params = list(params)
    if run_with_dry_run_param:
        value = dry_run if dry_run_value is None else dry_run_value
        job_params.append(JobParam("boolean", "DRY_RUN", value))

    if dry_run:
        logger.warning(
            f"Dry-run mode. Run '{job_name}': {run_with_dry_run_param}. "
            f"Job/pipeline parameters:\n{readable_job_params(job_params)}"
        )

    if not dry_run or run_with_dry_run_param:
        return trigger(job=job_name, parameters=job_params, propagate=propagate, wait=wait)

    logger.warning(
        f"Dry-run mode. Running '{job_name}' was skipped "
        f"(run_with_dry_run_param={run_with_dry_run_param}), no job results available."
    )
    return None
