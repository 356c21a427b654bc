from __future__ import annotations

import random
from typing import List, Tuple

from liftsim import EventKind, Request


def make_requests(*rows: Tuple[int, int, int, int]) -> List[Request]:
    """Rows are (id, origin_floor, dest_floor, release_time)."""
    return [Request(id=i, origin_floor=o, dest_floor=d, release_time=t) for i, o, d, t in rows]


def random_requests(seed: int, count: int = 15, floors: int = 10, horizon: int = 200) -> List[Request]:
    rng = random.Random(seed)
    requests = []
    for passenger_id in range(1, count + 1):
        origin = rng.randint(1, floors)
        dest = rng.choice([f for f in range(1, floors + 1) if f != origin])
        requests.append(
            Request(
                id=passenger_id,
                origin_floor=origin,
                dest_floor=dest,
                release_time=rng.randint(0, horizon),
            )
        )
    return requests


def passenger_id(entry) -> int:
    # "Passenger ID 7 collection completed" / "Passenger ID 7 drop off completed"
    return int(entry.description.split()[2])


def state_changes(log) -> List[Tuple[int, int, str]]:
    # "Lift changed state to X" / "Lift updated state to X"
    return [
        (entry.time, entry.floor, entry.description.split(" state to ", 1)[1])
        for entry in log
        if entry.kind is EventKind.STATE_CHANGE
    ]
