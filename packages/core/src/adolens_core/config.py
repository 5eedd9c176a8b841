from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import yaml

from adolens_core.errors import ConfigurationError
from adolens_core.resolvers import FALLBACKS, resolve_first

DEFAULT_CONFIG: dict = {
    "timeout": 15,  # minutes
    "model": None,  # None = let the Copilot CLI pick its default model
    "prompt": None,
    "prompt_file": None,
    "authors": None,  # None = every requester triggers a review
}

# Only behaviour settings may come from the YAML file; credentials never do.
_FILE_KEYS = set(DEFAULT_CONFIG)


@dataclass(frozen=True)
class TaskConfig:
    """Fully resolved inputs for one pipeline run."""

    github_pat: str
    ado_token: str
    ado_auth_scheme: str  # "basic" for a PAT, "bearer" for System.AccessToken
    organization: str
    project: str
    repository: str
    pull_request_id: int
    timeout_minutes: int = 15
    model: str | None = None
    prompt: str | None = None
    prompt_file: str | None = None
    authors: tuple[str, ...] = ()
    requested_for_email: str | None = None
    working_directory: str = "."


def load_config(config_path: str = ".adolens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load settings by merging (in order of precedence):
      1. Built-in defaults
      2. .adolens.yml in the current directory
      3. Task inputs / CLI options
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        try:
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not read config file {config_path}: {e}")
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"Config file {config_path} must contain a mapping of settings, got {type(file_config).__name__}."
            )
        config.update({k: v for k, v in file_config.items() if k in _FILE_KEYS})

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None and value != "":
                config[key] = value

    return config


def parse_authors(value) -> tuple[str, ...]:
    """Accept a comma-separated string or a YAML list of emails."""
    if not value:
        return ()
    items = value if isinstance(value, (list, tuple)) else str(value).split(",")
    return tuple(a.strip() for a in items if a and str(a).strip())


def _parse_positive_int(value, field: str) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise ConfigurationError(f"{field} must be a whole number, got {value!r}.")
    if number <= 0:
        raise ConfigurationError(f"{field} must be greater than zero, got {number}.")
    return number


def _require(field: str, settings: Mapping, environ: Mapping[str, str], message: str) -> str:
    found = resolve_first(FALLBACKS[field], settings, environ)
    if found is None:
        raise ConfigurationError(message)
    return found[0]


def resolve_task_config(settings: Mapping, environ: Optional[Mapping[str, str]] = None) -> TaskConfig:
    """Resolve settings plus pipeline variables into a TaskConfig.

    Required fields are checked in a fixed order and the first missing one
    raises ConfigurationError. No network call happens before this returns.
    """
    environ = os.environ if environ is None else environ

    github_pat = _require(
        "github_pat",
        settings,
        environ,
        "GitHub PAT is required. Set the githubPat input to a token with Copilot access.",
    )

    pat = resolve_first(FALLBACKS["azure_devops_pat"], settings, environ)
    if pat is not None:
        ado_token, scheme = pat[0], "basic"
    else:
        access_token = resolve_first(FALLBACKS["access_token"], settings, environ)
        if access_token is None:
            raise ConfigurationError(
                "Azure DevOps token is required. Set the azureDevOpsPat input or map "
                "System.AccessToken into the task environment as SYSTEM_ACCESSTOKEN."
            )
        ado_token, scheme = access_token[0], "bearer"

    organization = _require(
        "organization",
        settings,
        environ,
        "Organization is required. Provide it as an input or run inside a pipeline where "
        "System.CollectionUri is set.",
    )
    project = _require(
        "project",
        settings,
        environ,
        "Project is required. Provide it as an input or run inside a pipeline where System.TeamProject is set.",
    )
    repository = _require(
        "repository",
        settings,
        environ,
        "Repository is required. Provide it as an input or run inside a pipeline where "
        "Build.Repository.Name is set.",
    )
    pr_id = _require(
        "pull_request_id",
        settings,
        environ,
        "Pull Request ID is required. Either provide it as an input or run this task "
        "as part of a PR validation build.",
    )

    timeout = settings.get("timeout")
    if timeout is None:
        timeout = DEFAULT_CONFIG["timeout"]

    working = resolve_first(FALLBACKS["working_directory"], settings, environ)
    requester = resolve_first(FALLBACKS["requested_for_email"], settings, environ)

    return TaskConfig(
        github_pat=github_pat,
        ado_token=ado_token,
        ado_auth_scheme=scheme,
        organization=organization,
        project=project,
        repository=repository,
        pull_request_id=_parse_positive_int(pr_id, "Pull Request ID"),
        timeout_minutes=_parse_positive_int(timeout, "timeout"),
        model=(settings.get("model") or None),
        prompt=settings.get("prompt") or None,
        prompt_file=settings.get("prompt_file") or None,
        authors=parse_authors(settings.get("authors")),
        requested_for_email=requester[0] if requester else None,
        working_directory=working[0] if working else os.getcwd(),
    )
