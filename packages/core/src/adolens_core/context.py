"""Pull-request context reports for the Copilot reviewer.

Two plain-text files are written into the working directory before Copilot
starts: PR_Details.txt (metadata, reviewers, existing threads) and
Iteration_Details.txt (latest iteration commits and changed files). adolens
never parses them again. They exist only for the reviewer to read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from adolens_core.ado.client import AzureDevOpsClient

console = Console()
logger = logging.getLogger(__name__)

PR_DETAILS_FILE = "PR_Details.txt"
ITERATION_DETAILS_FILE = "Iteration_Details.txt"

# Long thread comments are cut to this many lines in the PR report.
_MAX_COMMENT_LINES = 5

_VOTES = {
    10: "Approved",
    5: "Approved with suggestions",
    0: "No vote",
    -5: "Waiting for author",
    -10: "Rejected",
}

_RULE = "=" * 60


@dataclass
class ContextFiles:
    pr_details: Path
    iteration_details: Path


def _branch(ref: str | None) -> str:
    ref = ref or ""
    return ref[len("refs/heads/") :] if ref.startswith("refs/heads/") else ref


def _person(identity: dict | None) -> str:
    identity = identity or {}
    name = identity.get("displayName") or identity.get("name") or "unknown"
    email = identity.get("uniqueName") or identity.get("email")
    return f"{name} <{email}>" if email else name


def _truncate_lines(text: str, limit: int = _MAX_COMMENT_LINES) -> list[str]:
    lines = (text or "").splitlines() or [""]
    if len(lines) <= limit:
        return lines
    return lines[:limit] + [f"... {len(lines) - limit} more lines"]


def _is_system_thread(thread: dict) -> bool:
    comments = thread.get("comments") or []
    return bool(comments) and all(c.get("commentType") == "system" for c in comments)


def format_thread(thread: dict) -> list[str]:
    lines = [f"Thread #{thread.get('id')} [{thread.get('status', 'unknown')}]"]
    ctx = thread.get("threadContext") or {}
    if ctx.get("filePath"):
        start = (ctx.get("rightFileStart") or ctx.get("leftFileStart") or {}).get("line")
        anchor = f"{ctx['filePath']}:{start}" if start else ctx["filePath"]
        lines.append(f"  File: {anchor}")
    for comment in thread.get("comments") or []:
        if comment.get("isDeleted"):
            continue
        lines.append(f"  - {_person(comment.get('author'))} (comment {comment.get('id')}):")
        lines.extend(f"      {line}" for line in _truncate_lines(comment.get("content", "")))
    return lines


def format_pull_request(pr: dict, threads: list[dict]) -> str:
    lines = [
        _RULE,
        f"Pull Request #{pr.get('pullRequestId')}: {pr.get('title', '')}",
        _RULE,
        f"Status:         {pr.get('status', '')}",
        f"Draft:          {bool(pr.get('isDraft', False))}",
        f"Created by:     {_person(pr.get('createdBy'))}",
        f"Created on:     {pr.get('creationDate', '')}",
        f"Source branch:  {_branch(pr.get('sourceRefName'))}",
        f"Target branch:  {_branch(pr.get('targetRefName'))}",
        f"Merge status:   {pr.get('mergeStatus', 'unknown')}",
        "",
        "Description:",
        pr.get("description") or "(no description)",
        "",
        "Reviewers:",
    ]

    reviewers = pr.get("reviewers") or []
    if not reviewers:
        lines.append("  (none)")
    for reviewer in reviewers:
        vote = _VOTES.get(reviewer.get("vote", 0), str(reviewer.get("vote")))
        required = " (required)" if reviewer.get("isRequired") else ""
        lines.append(f"  - {_person(reviewer)}{required}: {vote}")

    visible = [t for t in threads if not _is_system_thread(t) and not t.get("isDeleted")]
    lines.append("")
    lines.append(f"Threads ({len(visible)}):")
    if not visible:
        lines.append("  (none)")
    for thread in visible:
        lines.extend("  " + line for line in format_thread(thread))

    return "\n".join(lines) + "\n"


def format_iteration(iteration: dict, commits: list[dict], changes: list[dict]) -> str:
    source = (iteration.get("sourceRefCommit") or {}).get("commitId", "")
    target = (iteration.get("targetRefCommit") or {}).get("commitId", "")
    lines = [
        _RULE,
        f"Iteration {iteration.get('id')}: {iteration.get('description', '')}",
        _RULE,
        f"Source commit:  {source}",
        f"Target commit:  {target}",
        "",
        f"Commits ({len(commits)}):",
    ]
    for commit in commits:
        author = commit.get("author") or {}
        message = (commit.get("comment") or "").splitlines()
        lines.append(
            f"  {commit.get('commitId', '')[:8]}  {author.get('name', 'unknown')}  "
            f"{author.get('date', '')}  {message[0] if message else ''}"
        )

    lines.append("")
    lines.append(f"Changed files ({len(changes)}):")
    for change in changes:
        item = change.get("item") or {}
        if item.get("isFolder"):
            continue
        lines.append(f"  [{change.get('changeType', 'edit')}] {item.get('path', '')}")

    return "\n".join(lines) + "\n"


def write_pr_details(client: AzureDevOpsClient, pr_id: int, path: Path) -> Path:
    pr = client.get_pull_request(pr_id)
    threads = client.list_threads(pr_id)
    path.write_text(format_pull_request(pr, threads), encoding="utf-8")
    logger.debug("Wrote %s (%d thread(s))", path, len(threads))
    return path


def write_iteration_details(client: AzureDevOpsClient, pr_id: int, path: Path) -> Path:
    iteration = client.get_latest_iteration(pr_id)
    iteration_id = iteration["id"]
    commits = client.list_iteration_commits(pr_id, iteration_id)
    changes = client.get_iteration_changes(pr_id, iteration_id)
    path.write_text(format_iteration(iteration, commits, changes), encoding="utf-8")
    logger.debug("Wrote %s (iteration %s, %d change(s))", path, iteration_id, len(changes))
    return path


def fetch_context(client: AzureDevOpsClient, pr_id: int, directory: str | Path) -> ContextFiles:
    """Fetch PR detail, then latest-iteration changes, writing both reports."""
    directory = Path(directory)

    console.print("Fetching pull request details...")
    pr_path = write_pr_details(client, pr_id, directory / PR_DETAILS_FILE)
    console.print(f"PR details saved to: {pr_path}")

    console.print("Fetching pull request changes...")
    iteration_path = write_iteration_details(client, pr_id, directory / ITERATION_DETAILS_FILE)
    console.print(f"Iteration details saved to: {iteration_path}")

    return ContextFiles(pr_details=pr_path, iteration_details=iteration_path)
