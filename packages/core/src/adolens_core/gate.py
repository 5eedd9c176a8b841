from __future__ import annotations


def is_author_allowed(authors, requester_email: str | None) -> bool:
    """Return True when the run should proceed for this requester.

    An empty allow-list lets everyone through. Matching is case-insensitive.
    """
    if not authors:
        return True
    if not requester_email:
        return False
    allowed = {a.strip().lower() for a in authors if a and a.strip()}
    return requester_email.strip().lower() in allowed
