# fleet_panel/trailers.py
"""
Resolution of the trailer roster against the vehicle list.

The roster names tractors by plate, while everything else is keyed by
vehicle id. Plates are compared after removing separators and upper-casing,
so ``abc-1d23`` in the roster matches ``ABC1D23`` in the vehicle list.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Final

from fleet_panel.models.entities import TrailerRosterEntry, Vehicle

__all__: list[str] = ['build_plate_index', 'normalize_plate', 'resolve_trailer_links']

logger: logging.Logger = logging.getLogger(__name__)

_PLATE_SEPARATORS: Final[re.Pattern[str]] = re.compile(r'[\s.\-]+')


def normalize_plate(plate: str) -> str:
    """
    Canonical form of a plate for matching.

    Example:
        >>> normalize_plate(' abc-1d23 ')
        'ABC1D23'
    """
    return _PLATE_SEPARATORS.sub('', plate).upper()


def build_plate_index(vehicles: Mapping[str, Vehicle]) -> dict[str, str]:
    """Map normalized plate -> vehicle id, skipping vehicles without a plate."""
    index: dict[str, str] = {}
    for vehicle_id, vehicle in vehicles.items():
        key: str = normalize_plate(vehicle.plate)
        if key:
            index[key] = vehicle_id
    return index


def resolve_trailer_links(
    roster: Iterable[TrailerRosterEntry],
    vehicles: Mapping[str, Vehicle],
) -> dict[str, str]:
    """
    Turn roster pairs into vehicle id -> trailer name links.

    Pairs whose tractor plate matches no known vehicle are left out. When two
    pairs resolve to the same vehicle, the later one wins.

    Returns:
        The resolved links; empty when nothing matched.
    """
    plate_index: dict[str, str] = build_plate_index(vehicles)
    links: dict[str, str] = {}
    unmatched: int = 0

    for entry in roster:
        vehicle_id: str | None = plate_index.get(normalize_plate(entry.tractor_plate))
        if vehicle_id is None:
            unmatched += 1
            continue
        links[vehicle_id] = entry.trailer_name

    if unmatched:
        logger.debug('%d roster entries matched no known plate', unmatched)
    return links
