"""review command — the Azure Pipelines task entry point."""

from __future__ import annotations

import logging

import click

from adolens_cli.pipelines import report_outcome
from adolens_core.config import load_config
from adolens_core.errors import TaskError
from adolens_core.task import TaskOutcome, TaskResult, run_task

logger = logging.getLogger(__name__)


@click.command("review")
@click.option("--github-pat", envvar="INPUT_GITHUBPAT", default=None, help="GitHub PAT with Copilot access.")
@click.option(
    "--azure-devops-pat",
    envvar="INPUT_AZUREDEVOPSPAT",
    default=None,
    help="Azure DevOps PAT. Falls back to SYSTEM_ACCESSTOKEN.",
)
@click.option("--organization", envvar="INPUT_ORGANIZATION", default=None, help="Azure DevOps organization.")
@click.option("--project", envvar="INPUT_PROJECT", default=None, help="Azure DevOps project.")
@click.option("--repository", envvar="INPUT_REPOSITORY", default=None, help="Repository name or id.")
@click.option(
    "--pull-request-id",
    envvar="INPUT_PULLREQUESTID",
    default=None,
    help="Pull request id. Defaults to System.PullRequest.PullRequestId.",
)
@click.option("--timeout", envvar="INPUT_TIMEOUT", default=None, help="Review timeout in minutes.  [default: 15]")
@click.option("--model", envvar="INPUT_MODEL", default=None, help="Copilot model name.")
@click.option("--prompt-file", envvar="INPUT_PROMPTFILE", default=None, help="File with custom review instructions.")
@click.option("--prompt", envvar="INPUT_PROMPT", default=None, help="Inline custom review instructions.")
@click.option(
    "--authors",
    envvar="INPUT_AUTHORS",
    default=None,
    help="Comma-separated requester emails allowed to trigger a review.",
)
@click.pass_context
def review_cmd(
    ctx,
    github_pat: str | None,
    azure_devops_pat: str | None,
    organization: str | None,
    project: str | None,
    repository: str | None,
    pull_request_id: str | None,
    timeout: str | None,
    model: str | None,
    prompt_file: str | None,
    prompt: str | None,
    authors: str | None,
):
    """Run a GitHub Copilot CLI review against an Azure DevOps pull request.

    Installs the Copilot CLI if needed, writes PR_Details.txt and
    Iteration_Details.txt to the working directory, then lets Copilot review
    the change and post its comments.

    \b
    Pipeline variables used as fallbacks:
      SYSTEM_COLLECTIONURI               organization
      SYSTEM_TEAMPROJECT                 project
      BUILD_REPOSITORY_NAME              repository
      SYSTEM_PULLREQUEST_PULLREQUESTID   pull request id
      SYSTEM_ACCESSTOKEN                 Azure DevOps token
      BUILD_REQUESTEDFOREMAIL            requester checked against --authors
    """
    config_path = (ctx.obj or {}).get("config_path", ".adolens.yml")
    overrides = {
        "github_pat": github_pat,
        "azure_devops_pat": azure_devops_pat,
        "organization": organization,
        "project": project,
        "repository": repository,
        "pull_request_id": pull_request_id,
        "timeout": timeout,
        "model": model,
        "prompt_file": prompt_file,
        "prompt": prompt,
        "authors": authors,
    }

    try:
        settings = load_config(config_path, cli_overrides=overrides)
        outcome = run_task(settings)
    except TaskError as e:
        outcome = TaskOutcome(TaskResult.FAILED, f"Task failed: {e.message}")
    except Exception as e:
        # Anything else still ends the task as Failed.
        logger.debug("Unexpected error during review", exc_info=True)
        outcome = TaskOutcome(TaskResult.FAILED, f"Task failed: {e}")

    ctx.exit(report_outcome(outcome))
