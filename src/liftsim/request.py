from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class Request:
    """A passenger call: collect at ``origin_floor``, drop at ``dest_floor``."""

    id: int
    origin_floor: int
    dest_floor: int
    release_time: int

    @property
    def direction(self) -> int:
        """Return +1 for up, -1 for down."""
        return 1 if self.dest_floor > self.origin_floor else -1

    @property
    def is_troll(self) -> bool:
        return self.origin_floor == self.dest_floor


def call_order(request: Request) -> Tuple[int, int]:
    """Tie-break key shared by every selection: earlier release, then lower id."""
    return (request.release_time, request.id)


def earliest(requests: Iterable[Request]) -> Optional[Request]:
    return min(requests, key=call_order, default=None)
