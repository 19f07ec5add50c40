from dataclasses import dataclass
from typing import Iterable, List

from capacity.catalog import Catalog
from capacity.entities import Station, Worker
from capacity.skills import compute_effective_skills


@dataclass
class CompatibilityResult:
    workers: List[Worker]
    required_skills: List[str]


def find_compatible_workers(
    station: Station, workers: Iterable[Worker], catalog: Catalog
) -> CompatibilityResult:
    """
    Workers holding every effective skill of the station.

    The worker's current station assignment does not affect the match.
    """
    required = compute_effective_skills(station, catalog)
    compatible = sorted(
        (worker for worker in workers if required <= set(worker.skills)),
        key=lambda worker: (worker.name, worker.id),
    )
    return CompatibilityResult(workers=compatible, required_skills=sorted(required))
