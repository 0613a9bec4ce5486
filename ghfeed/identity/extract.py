"""Extract hashed actor and commit-author identifiers from feed events."""

from __future__ import annotations

import hashlib
import re
import typing as typ

if typ.TYPE_CHECKING:
    from ghfeed.feed.models import Event

# Bot logins end in ``[bot]`` or ``bot``. The loose match yields some false
# positives, which are tolerated.
_BOT_LOGIN = re.compile(r"\[?bot\]?$", re.IGNORECASE)
_PRIVATE_EMAIL = re.compile(r"(noreply\.github\.com$|\.local$)")

PUSH_EVENT = "PushEvent"
LOGIN_PREFIX = "c:"
EMAIL_PREFIX = "e:"


def is_bot_login(login: str) -> bool:
    """Return whether ``login`` looks like an automation account."""
    return _BOT_LOGIN.search(login) is not None


def is_public_email(email: str) -> bool:
    """Return whether ``email`` is a real, non-placeholder address."""
    return bool(email) and _PRIVATE_EMAIL.search(email) is None


def hash_email(email: str) -> str:
    """Return the hex SHA-256 digest of ``email``."""
    return hashlib.sha256(email.encode("utf-8")).hexdigest()


def _commit_author_emails(payload: dict[str, typ.Any]) -> typ.Iterator[str]:
    commits = payload.get("commits")
    if not isinstance(commits, list):
        return
    for commit in commits:
        if not isinstance(commit, dict):
            continue
        author = commit.get("author")
        if not isinstance(author, dict):
            continue
        email = author.get("email")
        if isinstance(email, str):
            yield email.lower()


def gather_identifiers(event: Event) -> list[str]:
    """Return the identifiers to forward for ``event``.

    The actor login always comes first as ``c:<login>``. Push events add one
    ``e:<sha256>`` entry per distinct public commit-author email, in commit
    order.

    Examples
    --------
    >>> from ghfeed.feed.models import Actor, Event
    >>> gather_identifiers(Event(id="1", type="WatchEvent", actor=Actor(login="Octo")))
    ['c:octo']

    """
    ids = [LOGIN_PREFIX + event.actor.login.lower()]
    if event.type != PUSH_EVENT:
        return ids

    seen: set[str] = set()
    for email in _commit_author_emails(event.payload):
        if not is_public_email(email) or email in seen:
            continue
        seen.add(email)
        ids.append(EMAIL_PREFIX + hash_email(email))
    return ids
