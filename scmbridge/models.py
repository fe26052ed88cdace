"""Provider-agnostic value types embedded in webhook events.

All structs are frozen and use camelCase wire names, so they can be encoded
inside webhook payloads and decoded back without loss. Every field has a
zero value, which lets callers build partially populated events.
"""

from __future__ import annotations

import datetime as dt
import enum

import msgspec


class Action(enum.StrEnum):
    """Action that triggered a webhook event."""

    UNKNOWN = ""
    CREATE = "created"
    UPDATE = "updated"
    DELETE = "deleted"
    OPEN = "opened"
    REOPEN = "reopened"
    CLOSE = "closed"
    LABEL = "labeled"
    UNLABEL = "unlabeled"
    SYNC = "synchronized"
    MERGE = "merged"
    EDITED = "edited"
    SUBMITTED = "submitted"
    DISMISSED = "dismissed"


class _Value(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """Common struct configuration for embedded value types."""


class Perm(_Value):
    """Permissions the acting user holds on a repository."""

    pull: bool = False
    push: bool = False
    admin: bool = False


class Repository(_Value):
    """Repository an event belongs to.

    Attributes
    ----------
    id : str
        Provider identifier, kept as a string so numeric and opaque ids fit.
    namespace : str
        Owning user, group or organisation path.
    name : str
        Repository name within the namespace.
    full_name : str
        ``namespace/name``.
    perm : Perm | None
        Caller permissions when the provider reports them.
    branch : str
        Default branch.
    clone, clone_ssh, link : str
        HTTPS clone, SSH clone and web URLs.

    """

    id: str = ""
    namespace: str = ""
    name: str = ""
    full_name: str = ""
    perm: Perm | None = None
    branch: str = ""
    private: bool = False
    archived: bool = False
    clone: str = ""
    clone_ssh: str = ""
    link: str = ""
    created: dt.datetime | None = None
    updated: dt.datetime | None = None


class User(_Value):
    """Account that performed or authored something."""

    id: int = 0
    login: str = ""
    name: str = ""
    email: str = ""
    avatar: str = ""
    link: str = ""
    is_admin: bool = False
    created: dt.datetime | None = None
    updated: dt.datetime | None = None


class Reference(_Value):
    """Git reference: a branch or tag name together with its target."""

    name: str = ""
    path: str = ""
    sha: str = ""


class Signature(_Value):
    """Author or committer identity on a commit."""

    name: str = ""
    email: str = ""
    date: dt.datetime | None = None
    login: str = ""
    avatar: str = ""


class Commit(_Value):
    """Commit resolved by the provider."""

    sha: str = ""
    message: str = ""
    author: Signature = msgspec.field(default_factory=Signature)
    committer: Signature = msgspec.field(default_factory=Signature)
    link: str = ""


class PushCommit(_Value):
    """Commit summary carried by a push event."""

    id: str = ""
    message: str = ""
    added: list[str] = msgspec.field(default_factory=list)
    removed: list[str] = msgspec.field(default_factory=list)
    modified: list[str] = msgspec.field(default_factory=list)


class Label(_Value):
    """Label attached to an issue or pull request."""

    url: str = ""
    name: str = ""
    description: str = ""
    color: str = ""


class Issue(_Value):
    """Issue snapshot at the time of the event."""

    number: int = 0
    title: str = ""
    body: str = ""
    link: str = ""
    labels: list[str] = msgspec.field(default_factory=list)
    closed: bool = False
    locked: bool = False
    author: User = msgspec.field(default_factory=User)
    assignees: list[User] = msgspec.field(default_factory=list)
    created: dt.datetime | None = None
    updated: dt.datetime | None = None


class Comment(_Value):
    """Comment on an issue or pull request."""

    id: int = 0
    body: str = ""
    author: User = msgspec.field(default_factory=User)
    link: str = ""
    created: dt.datetime | None = None
    updated: dt.datetime | None = None


class PullRequest(_Value):
    """Pull (merge) request snapshot at the time of the event."""

    number: int = 0
    title: str = ""
    body: str = ""
    sha: str = ""
    ref: str = ""
    source: str = ""
    target: str = ""
    base: Reference = msgspec.field(default_factory=Reference)
    head: Reference = msgspec.field(default_factory=Reference)
    fork: str = ""
    link: str = ""
    closed: bool = False
    merged: bool = False
    draft: bool = False
    author: User = msgspec.field(default_factory=User)
    labels: list[Label] = msgspec.field(default_factory=list)
    created: dt.datetime | None = None
    updated: dt.datetime | None = None


class Review(_Value):
    """Review comment left on a pull request diff."""

    id: int = 0
    body: str = ""
    path: str = ""
    sha: str = ""
    line: int = 0
    link: str = ""
    state: str = ""
    author: User = msgspec.field(default_factory=User)
    created: dt.datetime | None = None
    updated: dt.datetime | None = None


class PullRequestHookBranchFrom(_Value):
    """Previous value of a changed pull request attribute."""

    from_: str = msgspec.field(default="", name="from")


class PullRequestHookBranch(_Value):
    """Previous base branch details of an edited pull request."""

    ref: PullRequestHookBranchFrom = msgspec.field(
        default_factory=PullRequestHookBranchFrom
    )
    sha: PullRequestHookBranchFrom = msgspec.field(
        default_factory=PullRequestHookBranchFrom
    )
    repo: Repository = msgspec.field(default_factory=Repository)


class PullRequestHookChanges(_Value):
    """Changes reported alongside an ``edited`` pull request event."""

    base: PullRequestHookBranch = msgspec.field(default_factory=PullRequestHookBranch)


__all__ = [
    "Action",
    "Comment",
    "Commit",
    "Issue",
    "Label",
    "Perm",
    "PullRequest",
    "PullRequestHookBranch",
    "PullRequestHookBranchFrom",
    "PullRequestHookChanges",
    "PushCommit",
    "Reference",
    "Repository",
    "Review",
    "Signature",
    "User",
]
