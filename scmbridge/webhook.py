"""Provider-agnostic webhook events and their tagged JSON codec.

Each event kind is a frozen :class:`msgspec.Struct` whose JSON form starts
with a ``type`` discriminator, for example::

    {"type": "tagHook", "repo": {...}, "ref": {...}, "action": "created", ...}

Decoding reads the discriminator first and then parses the same payload again
into the variant registered for it in :data:`WEBHOOK_TYPES`. Unknown kinds
are rejected instead of being coerced into a default variant.
"""

from __future__ import annotations

import dataclasses
import typing as typ

import msgspec

from .errors import UnknownWebhookTypeError, WebhookShapeError, WebhookSyntaxError
from .models import (
    Action,
    Comment,
    Commit,
    Issue,
    Label,
    PullRequest,
    PullRequestHookChanges,
    PushCommit,
    Reference,
    Repository,
    Review,
    User,
)


class Webhook(typ.Protocol):
    """Capability shared by every webhook event."""

    def repository(self) -> Repository:
        """Return the repository the event belongs to."""
        ...


class _Hook(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    rename="camel",
    tag_field="type",
):
    repo: Repository = msgspec.field(default_factory=Repository)

    def repository(self) -> Repository:
        """Return the repository the event belongs to."""
        return self.repo


class PushHook(_Hook, kw_only=True, tag="pushHook"):
    """Commits pushed to a branch."""

    ref: str = ""
    base_ref: str = ""
    before: str = ""
    after: str = ""
    created: bool = False
    deleted: bool = False
    forced: bool = False
    compare: str = ""
    commits: list[PushCommit] = msgspec.field(default_factory=list)
    head_commit: Commit = msgspec.field(default_factory=Commit)
    sender: User = msgspec.field(default_factory=User)
    guid: str = ""


class BranchHook(_Hook, kw_only=True, tag="branchHook"):
    """Branch created or deleted."""

    ref: Reference = msgspec.field(default_factory=Reference)
    action: Action = Action.UNKNOWN
    sender: User = msgspec.field(default_factory=User)


class TagHook(_Hook, kw_only=True, tag="tagHook"):
    """Tag created or deleted."""

    ref: Reference = msgspec.field(default_factory=Reference)
    action: Action = Action.UNKNOWN
    sender: User = msgspec.field(default_factory=User)


class DeployHook(_Hook, kw_only=True, tag="deployHook"):
    """Deployment requested for a reference.

    ``data`` is the provider's free-form deployment payload and is carried
    through unchanged.
    """

    data: typ.Any = None
    desc: str = ""
    ref: Reference = msgspec.field(default_factory=Reference)
    sender: User = msgspec.field(default_factory=User)
    target: str = ""
    target_url: str = ""
    task: str = ""


class IssueHook(_Hook, kw_only=True, tag="issueHook"):
    """Issue opened, edited, labelled or closed."""

    action: Action = Action.UNKNOWN
    issue: Issue = msgspec.field(default_factory=Issue)
    sender: User = msgspec.field(default_factory=User)


class IssueCommentHook(_Hook, kw_only=True, tag="issueCommentHook"):
    """Comment added to or changed on an issue."""

    action: Action = Action.UNKNOWN
    issue: Issue = msgspec.field(default_factory=Issue)
    comment: Comment = msgspec.field(default_factory=Comment)
    sender: User = msgspec.field(default_factory=User)


class PullRequestHook(_Hook, kw_only=True, tag="pullRequestHook"):
    """Pull request lifecycle event."""

    action: Action = Action.UNKNOWN
    label: Label = msgspec.field(default_factory=Label)
    pull_request: PullRequest = msgspec.field(default_factory=PullRequest)
    sender: User = msgspec.field(default_factory=User)
    changes: PullRequestHookChanges = msgspec.field(
        default_factory=PullRequestHookChanges
    )
    guid: str = ""


class PullRequestCommentHook(_Hook, kw_only=True, tag="pullRequestCommentHook"):
    """Comment on the conversation of a pull request."""

    action: Action = Action.UNKNOWN
    pull_request: PullRequest = msgspec.field(default_factory=PullRequest)
    comment: Comment = msgspec.field(default_factory=Comment)
    sender: User = msgspec.field(default_factory=User)


class ReviewCommentHook(_Hook, kw_only=True, tag="reviewCommentHook"):
    """Review comment on a pull request diff."""

    action: Action = Action.UNKNOWN
    pull_request: PullRequest = msgspec.field(default_factory=PullRequest)
    review: Review = msgspec.field(default_factory=Review)


AnyWebhook = (
    PushHook
    | BranchHook
    | TagHook
    | DeployHook
    | IssueHook
    | IssueCommentHook
    | PullRequestHook
    | PullRequestCommentHook
    | ReviewCommentHook
)

_VARIANTS: tuple[type[_Hook], ...] = (
    PushHook,
    BranchHook,
    TagHook,
    DeployHook,
    IssueHook,
    IssueCommentHook,
    PullRequestHook,
    PullRequestCommentHook,
    ReviewCommentHook,
)


def webhook_type(hook: AnyWebhook) -> str:
    """Return the discriminator written for ``hook``."""
    return typ.cast("str", type(hook).__struct_config__.tag)


# Discriminator -> variant. Registering a new event kind is one entry here.
WEBHOOK_TYPES: dict[str, type[_Hook]] = {
    typ.cast("str", variant.__struct_config__.tag): variant for variant in _VARIANTS
}

_ENCODER = msgspec.json.Encoder()
_DECODERS: dict[str, msgspec.json.Decoder[typ.Any]] = {
    tag: msgspec.json.Decoder(variant) for tag, variant in WEBHOOK_TYPES.items()
}


class _Discriminator(msgspec.Struct):
    """First-pass view of a payload; every other key is skipped."""

    type: typ.Any = None


@dataclasses.dataclass(frozen=True, slots=True)
class WebhookEnvelope:
    """Decoded webhook boxed with the discriminator it was decoded from."""

    type: str
    webhook: AnyWebhook

    def repository(self) -> Repository:
        """Return the repository of the boxed webhook."""
        return self.webhook.repository()

    def encode(self) -> bytes:
        """Re-encode the boxed webhook in its tagged wire form."""
        return encode_webhook(self.webhook)


def encode_webhook(hook: AnyWebhook) -> bytes:
    """Encode ``hook`` as a JSON object whose first key is ``type``."""
    return _ENCODER.encode(hook)


def _read_discriminator(payload: bytes | str) -> str:
    try:
        header = msgspec.json.decode(payload, type=_Discriminator)
    except msgspec.ValidationError as exc:
        raise WebhookSyntaxError.not_an_object(str(exc)) from exc
    except msgspec.DecodeError as exc:
        raise WebhookSyntaxError.malformed(str(exc)) from exc

    if header.type is None:
        raise UnknownWebhookTypeError.missing()
    if not isinstance(header.type, str) or header.type not in WEBHOOK_TYPES:
        raise UnknownWebhookTypeError.unrecognized(header.type)
    return header.type


def decode_webhook(payload: bytes | str) -> WebhookEnvelope:
    """Decode a tagged webhook payload into its concrete variant.

    Parameters
    ----------
    payload
        JSON text as produced by :func:`encode_webhook`.

    Returns
    -------
    WebhookEnvelope
        The concrete variant together with its discriminator.

    Raises
    ------
    WebhookSyntaxError
        If the payload is not JSON, or not a JSON object.
    UnknownWebhookTypeError
        If the ``type`` key is missing or names no known variant.
    WebhookShapeError
        If the payload does not fit the variant its ``type`` names.

    """
    kind = _read_discriminator(payload)
    try:
        hook = _DECODERS[kind].decode(payload)
    except msgspec.ValidationError as exc:
        raise WebhookShapeError.invalid(kind, str(exc)) from exc
    except msgspec.DecodeError as exc:
        raise WebhookSyntaxError.malformed(str(exc)) from exc
    return WebhookEnvelope(type=kind, webhook=hook)


__all__ = [
    "WEBHOOK_TYPES",
    "AnyWebhook",
    "BranchHook",
    "DeployHook",
    "IssueCommentHook",
    "IssueHook",
    "PullRequestCommentHook",
    "PullRequestHook",
    "PushHook",
    "ReviewCommentHook",
    "TagHook",
    "Webhook",
    "WebhookEnvelope",
    "decode_webhook",
    "encode_webhook",
    "webhook_type",
]
