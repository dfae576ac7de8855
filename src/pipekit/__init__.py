"""pipekit: helper routines for CI pipeline scripts."""

__version__ = "0.1.0"

from pipekit.chunking import split_message
from pipekit.clients.webhook import send_message, send_single_message
from pipekit.console import configure_logging, out_msg
from pipekit.deps import Deps, build_deps
from pipekit.env import PipelineEnv, load_pipeline_env
from pipekit.errors import PipelineError, readable_error
from pipekit.job_params import (
    JobParam,
    check_required_variables,
    dry_run_job,
    map_config_to_job_params,
    map_to_job_params,
    readable_job_params,
)
from pipekit.mapping import flatten_nested_map
from pipekit.templating import find_variables, render, replace_variables_in_map

__all__ = [
    # Core
    "Deps",
    "PipelineEnv",
    "PipelineError",
    "build_deps",
    "configure_logging",
    "load_pipeline_env",
    "out_msg",
    "readable_error",
    # Templating
    "find_variables",
    "flatten_nested_map",
    "render",
    "replace_variables_in_map",
    # Chat messages
    "send_message",
    "send_single_message",
    "split_message",
    # Job parameters
    "JobParam",
    "check_required_variables",
    "dry_run_job",
    "map_config_to_job_params",
    "map_to_job_params",
    "readable_job_params",
]
