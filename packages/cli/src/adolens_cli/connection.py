"""Shared connection options for the standalone commands.

During a review the Copilot process inherits AZUREDEVOPSPAT, ORGANIZATION,
PROJECT, REPOSITORY and PRID, so `adolens comment` works without flags.
Outside of that, the usual pipeline variables are tried next.
"""

from __future__ import annotations

import functools
import os

import click

from adolens_core.ado.client import AzureDevOpsClient
from adolens_core.errors import ConfigurationError
from adolens_core.resolvers import FALLBACKS, resolve_first


def connection_options(fn):
    @click.option("--organization", envvar="ORGANIZATION", default=None, help="Azure DevOps organization.")
    @click.option("--project", envvar="PROJECT", default=None, help="Azure DevOps project.")
    @click.option("--repository", envvar="REPOSITORY", default=None, help="Repository name or id.")
    @click.option("--pr-id", "pr_id", envvar="PRID", default=None, help="Pull request id.")
    @click.option("--pat", envvar="AZUREDEVOPSPAT", default=None, help="Azure DevOps PAT or access token.")
    @click.option(
        "--auth-scheme",
        envvar="ADOLENS_AUTH_SCHEME",
        type=click.Choice(["basic", "bearer"]),
        default="basic",
        show_default=True,
        help="Use 'bearer' for System.AccessToken.",
    )
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        return fn(*args, **kwargs)

    return wrapper


def resolve_connection(organization, project, repository, pr_id, pat, auth_scheme, environ=None):
    """Return ``(client, pr_id)`` or raise ConfigurationError for the first missing value."""
    environ = os.environ if environ is None else environ
    settings = {
        "organization": organization,
        "project": project,
        "repository": repository,
        "pull_request_id": pr_id,
        "azure_devops_pat": pat,
    }

    values = {}
    for field, label in (
        ("organization", "Organization"),
        ("project", "Project"),
        ("repository", "Repository"),
        ("pull_request_id", "Pull request id"),
    ):
        found = resolve_first(FALLBACKS[field], settings, environ)
        if found is None:
            raise ConfigurationError(f"{label} is required.")
        values[field] = found[0]

    token = resolve_first(FALLBACKS["azure_devops_pat"], settings, environ)
    if token is None:
        token = resolve_first(FALLBACKS["access_token"], settings, environ)
        auth_scheme = "bearer"
    if token is None:
        raise ConfigurationError("An Azure DevOps PAT is required (--pat or AZUREDEVOPSPAT).")

    try:
        number = int(values["pull_request_id"])
    except ValueError:
        raise ConfigurationError(f"Pull request id must be a number, got {values['pull_request_id']!r}.")

    client = AzureDevOpsClient(
        organization=values["organization"],
        project=values["project"],
        repository=values["repository"],
        token=token[0],
        auth_scheme=auth_scheme,
    )
    return client, number
