from __future__ import annotations

import dataclasses
import fnmatch
import threading

from .models import UNKNOWN_AUTHOR, Author


def normalize_email(email: str) -> str:
    return email.strip().strip("<>").strip().lower()


def normalize_name(name: str) -> str:
    return name.strip().casefold()


def normalize_github_username(username: str) -> str:
    return username.strip().lstrip("@").casefold()


def github_username_from_email(email: str) -> str:
    """
    Extract GitHub username from GitHub noreply patterns:
      - username@users.noreply.github.com
      - 123456+username@users.noreply.github.com
    Returns normalized username or "".
    """
    e = normalize_email(email)
    if not e:
        return ""
    if not e.endswith("@users.noreply.github.com"):
        return ""
    local = e.split("@", 1)[0]
    if "+" in local:
        local = local.rsplit("+", 1)[-1]
    return normalize_github_username(local)


@dataclasses.dataclass(frozen=True)
class IdentityMatcher:
    emails: frozenset[str] = frozenset()
    names: frozenset[str] = frozenset()
    email_globs: tuple[str, ...] = ()
    name_globs: tuple[str, ...] = ()
    github_usernames: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not (self.emails or self.names or self.email_globs or self.name_globs or self.github_usernames)

    def matches(self, author_name: str, author_email: str) -> bool:
        email = normalize_email(author_email)
        if email and email in self.emails:
            return True
        name = normalize_name(author_name)
        if name and name in self.names:
            return True
        gh = github_username_from_email(email) if email else ""
        if gh and gh in self.github_usernames:
            return True
        if name and name in self.github_usernames:
            return True
        if email:
            for pat in self.email_globs:
                if fnmatch.fnmatch(email, pat):
                    return True
        if name:
            for pat in self.name_globs:
                if fnmatch.fnmatch(name, pat):
                    return True
        return False


def matcher_from_values(values: list[str]) -> IdentityMatcher:
    """Build a matcher from loose strings: emails, names, or globs of either."""
    emails: set[str] = set()
    names: set[str] = set()
    email_globs: list[str] = []
    name_globs: list[str] = []
    for raw in values:
        v = str(raw or "").strip()
        if not v:
            continue
        is_glob = any(ch in v for ch in "*?[")
        if "@" in v:
            if is_glob:
                email_globs.append(normalize_email(v))
            else:
                emails.add(normalize_email(v))
        elif is_glob:
            name_globs.append(normalize_name(v))
        else:
            names.add(normalize_name(v))
    return IdentityMatcher(
        emails=frozenset(emails),
        names=frozenset(names),
        email_globs=tuple(email_globs),
        name_globs=tuple(name_globs),
    )


@dataclasses.dataclass(frozen=True)
class AuthorEntry:
    author: Author
    matcher: IdentityMatcher


def author_entry_from_dict(raw: dict) -> AuthorEntry:
    name = str(raw.get("name", "") or "").strip()
    if not name:
        raise ValueError(f"author entry without a name: {raw!r}")
    emails = [str(e) for e in (raw.get("emails") or []) if str(e).strip()]
    aliases = [str(a) for a in (raw.get("aliases") or []) if str(a).strip()]
    author = Author(
        name=name,
        display_name=str(raw.get("display_name", "") or "").strip() or name,
        ignore_globs=tuple(str(g) for g in (raw.get("ignore_globs") or []) if str(g).strip()),
    )
    matcher = IdentityMatcher(
        emails=frozenset(normalize_email(e) for e in emails),
        names=frozenset(normalize_name(n) for n in [name, *aliases]),
        email_globs=tuple(normalize_email(p) for p in (raw.get("email_globs") or []) if str(p).strip()),
        name_globs=tuple(normalize_name(p) for p in (raw.get("name_globs") or []) if str(p).strip()),
        github_usernames=frozenset(normalize_github_username(u) for u in (raw.get("github_usernames") or []) if str(u).strip()),
    )
    return AuthorEntry(author=author, matcher=matcher)


class AuthorConfig:
    """
    Resolves raw git identities to canonical authors.

    With an empty author list every identity is reported, keyed by its git
    name. With a non-empty list only listed authors are reported and all other
    identities resolve to UNKNOWN_AUTHOR. Ignored authors always resolve to
    UNKNOWN_AUTHOR. Results are cached, so one run always maps the same
    (name, email) to the same Author; the cache is shared by worker threads.
    """

    def __init__(self, entries: list[AuthorEntry] | None = None, ignored: IdentityMatcher | None = None) -> None:
        self._entries = list(entries or [])
        self._author_list = frozenset(e.author for e in self._entries)
        self._ignored = ignored or IdentityMatcher()
        self._cache: dict[tuple[str, str], Author] = {}
        self._discovered: dict[str, Author] = {}
        self._lock = threading.Lock()

    @property
    def author_list(self) -> frozenset[Author]:
        return self._author_list

    def is_allowed(self, author: Author) -> bool:
        if author == UNKNOWN_AUTHOR:
            return False
        if not self._entries:
            return True
        return author in self._author_list

    def resolve(self, name: str, email: str) -> Author:
        key = (name, email)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached
            author = self._resolve_uncached(name, email)
            self._cache[key] = author
            return author

    def _resolve_uncached(self, name: str, email: str) -> Author:
        if not self._ignored.is_empty and self._ignored.matches(name, email):
            return UNKNOWN_AUTHOR
        for entry in self._entries:
            if entry.matcher.matches(name, email):
                return entry.author
        if self._entries:
            return UNKNOWN_AUTHOR
        git_name = name.strip()
        if not git_name:
            return UNKNOWN_AUTHOR
        author = self._discovered.get(git_name)
        if author is None:
            author = Author(name=git_name, display_name=git_name)
            self._discovered[git_name] = author
        return author
