"""Port for checking that remote assets exist."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


@runtime_checkable
class UrlProbe(Protocol):
    """Report for every URL whether it answered with a success status.

    Implementations bound the time spent on each URL; a URL that cannot be
    reached counts as missing.
    """

    def __call__(self, urls: Sequence[str]) -> Mapping[str, bool]: ...
