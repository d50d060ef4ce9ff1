"""Outcomes produced by the resolver and poller.

Every provider interaction ends in exactly one of these values, so the
reconciler's transition table can match on them exhaustively instead of
inspecting nullable fields.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class NotYetAvailable:
    """The provider is still working; nothing to apply."""

    label = "not_yet_available"


@dataclass(frozen=True)
class Transient:
    """The provider could not be asked; retry later."""

    reason: str

    label = "transient"


@dataclass(frozen=True)
class Resolved:
    """The upload handle now maps to a durable asset handle."""

    asset_handle: str

    label = "resolved"


@dataclass(frozen=True)
class Ready:
    """The asset has a public stream reference."""

    stream_reference: str
    asset_handle: str

    label = "ready"


@dataclass(frozen=True)
class Permanent:
    """The asset can never become playable."""

    kind: str
    detail: str = ""

    label = "permanent"


Outcome = Union[NotYetAvailable, Transient, Resolved, Ready, Permanent]
