"""Environment variable parsing for pipeline helpers.

Parses the job metadata the CI host exports into a typed PipelineEnv object.
This is the only place where job environment variables are read.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

TRUTHY_VALUES = frozenset({"true", "y", "yes", "1", "on"})


class PipelineEnv(BaseModel):
    """Parsed environment variables of the current job run."""

    # Job Identity
    job_name: str = Field(default="", description="JOB_NAME - Name of the running job")
    build_url: str = Field(default="", description="BUILD_URL - URL of the running build")

    # Behaviour Switches
    debug_mode: bool = Field(default=False, description="DEBUG_MODE - Emit debug messages")
    dry_run: bool = Field(default=False, description="DRY_RUN - Skip side effects")

    # Placement
    workspace: str = Field(default="", description="WORKSPACE - Job workspace directory")
    node_name: str = Field(default="", description="NODE_NAME - Agent running the job")
    home: str = Field(default="", description="HOME - Home directory of the agent user")

    @field_validator("debug_mode", "dry_run", mode="before")
    @classmethod
    def parse_bool(cls, v: Any) -> bool:
        """Parse 'true'/'1'/'yes' style strings."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.strip().lower() in TRUTHY_VALUES
        return bool(v)

    @property
    def known_hosts_path(self) -> str:
        """Path to the agent user's known_hosts file."""
        home = self.home or os.path.expanduser("~")
        return os.path.join(home, ".ssh", "known_hosts")

    @property
    def on_builtin_node(self) -> bool:
        """Check if the job runs on the controller itself."""
        return self.node_name in ("master", "built-in")


# Environment variable names (single source of truth)
ENV_VARS = {
    "job_name": "JOB_NAME",
    "build_url": "BUILD_URL",
    "debug_mode": "DEBUG_MODE",
    "dry_run": "DRY_RUN",
    "workspace": "WORKSPACE",
    "node_name": "NODE_NAME",
    "home": "HOME",
}


def load_pipeline_env(environ: Mapping[str, str] | None = None) -> PipelineEnv:
    """Load and parse job environment variables into PipelineEnv.

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Parsed PipelineEnv object
    """
    if environ is None:
        environ = os.environ

    kwargs: dict[str, Any] = {}
    for field_name, env_var in ENV_VARS.items():
        value = environ.get(env_var)
        if value is not None:
            kwargs[field_name] = value

    return PipelineEnv(**kwargs)
