from __future__ import annotations

from dataclasses import dataclass, field
from typing import Container, Dict, Iterable, Iterator, List, Optional

from .request import Request, call_order, earliest


@dataclass
class CallLedger:
    """Open calls (released, not yet dropped) and the passengers already served.

    A passenger stays in the ledger while aboard; only a completed drop takes
    them out.
    """

    _open: Dict[int, Request] = field(default_factory=dict)
    served: List[Request] = field(default_factory=list)

    def release(self, requests: Iterable[Request]) -> List[Request]:
        released: List[Request] = []
        for request in requests:
            if request.id in self._open:
                continue
            self._open[request.id] = request
            released.append(request)
        return released

    def serve(self, request: Request) -> None:
        self._open.pop(request.id, None)
        self.served.append(request)

    def earliest(self) -> Optional[Request]:
        return earliest(self._open.values())

    def waiting_at(self, floor: int, aboard: Container[int]) -> List[Request]:
        """Open calls originating at ``floor`` that are not already in the lift."""
        waiting = [
            request
            for request in self._open.values()
            if request.origin_floor == floor and request.id not in aboard
        ]
        return sorted(waiting, key=call_order)

    def first_waiting_at(self, floor: int, aboard: Container[int]) -> Optional[Request]:
        waiting = self.waiting_at(floor, aboard)
        return waiting[0] if waiting else None

    def waiting_beyond(self, floor: int, direction: int, aboard: Container[int]) -> List[Request]:
        """Open, not-aboard calls whose origin lies strictly past ``floor`` in ``direction``."""
        return [
            request
            for request in self._open.values()
            if request.id not in aboard and (request.origin_floor - floor) * direction > 0
        ]

    def __iter__(self) -> Iterator[Request]:
        return iter(sorted(self._open.values(), key=call_order))

    def __len__(self) -> int:
        return len(self._open)
