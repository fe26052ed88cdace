"""Rate-limit snapshot and the per-client state cell that holds it."""

from __future__ import annotations

import dataclasses
import datetime as dt


@dataclasses.dataclass(frozen=True, slots=True)
class Rate:
    """Quota reported by the server on a single exchange.

    Attributes
    ----------
    limit
        Requests allowed in the current window.
    remaining
        Requests left in the current window.
    reset
        Unix epoch seconds at which the window resets.

    """

    limit: int = 0
    remaining: int = 0
    reset: int = 0

    @property
    def reset_at(self) -> dt.datetime | None:
        """Return the reset instant as an aware UTC datetime, if known."""
        if self.reset <= 0:
            return None
        return dt.datetime.fromtimestamp(self.reset, tz=dt.UTC)


class RateLimitState:
    """Most recently observed :class:`Rate` for one client.

    Each exchange replaces the snapshot wholesale. Because :class:`Rate` is
    immutable and the swap is a single attribute assignment, concurrent
    writers can only leave one complete snapshot behind (last writer wins);
    fields from different exchanges are never mixed.
    """

    __slots__ = ("_snapshot",)

    def __init__(self, initial: Rate | None = None) -> None:
        """Initialise with an optional starting snapshot."""
        self._snapshot = initial or Rate()

    def observe(self, rate: Rate) -> None:
        """Replace the stored snapshot."""
        self._snapshot = rate

    def current(self) -> Rate:
        """Return the last observed snapshot, or the zero ``Rate``."""
        return self._snapshot
