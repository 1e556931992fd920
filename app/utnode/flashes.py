"""
One-shot notifications.

Messages are queued with flask.flash() while handling request N and stored in
the session. At the start of request N+1 they are popped into
g.flash_messages, grouped by category in insertion order, so they are exposed
to that request's templates and gone for request N+2 whether or not N+1
rendered anything.
"""
from __future__ import annotations

from flask import g, get_flashed_messages, request

SKIP_PREFIXES = ("/static/", "/health", "/healthz")


def restore_flash_messages() -> None:
    if request.path.startswith(SKIP_PREFIXES):
        g.flash_messages = {}
        return
    grouped: dict[str, list[str]] = {}
    for category, message in get_flashed_messages(with_categories=True):
        grouped.setdefault(category, []).append(message)
    g.flash_messages = grouped


def pending_flash_messages() -> dict[str, list[str]]:
    return getattr(g, "flash_messages", None) or {}
