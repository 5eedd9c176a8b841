"""Ordered fallback chains for inputs that Azure Pipelines can supply implicitly.

Each field is resolved by trying named resolvers in order and stopping at the
first non-empty value. The chains are plain data so tests can swap in fakes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

# https://dev.azure.com/{org}/  or  https://{org}.visualstudio.com/
_DEV_AZURE_RE = re.compile(r"^https?://dev\.azure\.com/([^/]+)", re.IGNORECASE)
_VISUALSTUDIO_RE = re.compile(r"^https?://([^./]+)\.visualstudio\.com", re.IGNORECASE)


@dataclass(frozen=True)
class Resolver:
    name: str
    fn: Callable[[Mapping, Mapping[str, str]], str | None]

    def __call__(self, settings: Mapping, environ: Mapping[str, str]) -> str | None:
        return self.fn(settings, environ)


def from_setting(key: str) -> Resolver:
    def _resolve(settings, environ):
        value = settings.get(key)
        return str(value).strip() if value not in (None, "") else None

    return Resolver(f"input:{key}", _resolve)


def from_env(var: str) -> Resolver:
    def _resolve(settings, environ):
        value = environ.get(var, "").strip()
        return value or None

    return Resolver(f"env:{var}", _resolve)


def parse_organization(collection_uri: str) -> str | None:
    """Extract the organization name from a System.CollectionUri value."""
    for pattern in (_DEV_AZURE_RE, _VISUALSTUDIO_RE):
        match = pattern.match(collection_uri.strip())
        if match:
            return match.group(1)
    return None


def from_collection_uri(var: str = "SYSTEM_COLLECTIONURI") -> Resolver:
    def _resolve(settings, environ):
        uri = environ.get(var, "")
        return parse_organization(uri) if uri else None

    return Resolver(f"env:{var}", _resolve)


def resolve_first(
    resolvers: Sequence[Resolver], settings: Mapping, environ: Mapping[str, str]
) -> tuple[str, str] | None:
    """Return ``(value, resolver_name)`` from the first resolver that yields a value."""
    for resolver in resolvers:
        value = resolver(settings, environ)
        if value:
            return value, resolver.name
    return None


FALLBACKS: dict[str, tuple[Resolver, ...]] = {
    "github_pat": (from_setting("github_pat"),),
    "azure_devops_pat": (from_setting("azure_devops_pat"),),
    "access_token": (from_env("SYSTEM_ACCESSTOKEN"),),
    "organization": (from_setting("organization"), from_collection_uri()),
    "project": (from_setting("project"), from_env("SYSTEM_TEAMPROJECT")),
    "repository": (from_setting("repository"), from_env("BUILD_REPOSITORY_NAME")),
    "pull_request_id": (from_setting("pull_request_id"), from_env("SYSTEM_PULLREQUEST_PULLREQUESTID")),
    "working_directory": (from_env("SYSTEM_DEFAULTWORKINGDIRECTORY"),),
    "requested_for_email": (from_env("BUILD_REQUESTEDFOREMAIL"),),
}
