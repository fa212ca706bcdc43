"""Pick whose booking a command acts on."""

from __future__ import annotations

import re
from typing import NamedTuple, Optional

from signups.models.booking import CUSTOM_IDENTITY_PREFIX
from signups.models.commands import Caller

_NON_SLUG = re.compile(r"[^a-z0-9]")


class Identity(NamedTuple):
    key: str
    display_name: str
    is_custom: bool


def custom_identity_key(name: str) -> str:
    """Deterministic key for an operator-supplied name.

    >>> custom_identity_key("Foo Bar!")
    'custom:foo_bar_'
    """
    return CUSTOM_IDENTITY_PREFIX + _NON_SLUG.sub("_", name.lower())


def resolve_identity(caller: Caller, custom_name: Optional[str] = None) -> Identity:
    """Return the caller's identity, or the stand-in named by ``custom_name``."""
    if custom_name is None:
        return Identity(key=caller.id, display_name=caller.name, is_custom=False)
    return Identity(
        key=custom_identity_key(custom_name),
        display_name=custom_name,
        is_custom=True,
    )
