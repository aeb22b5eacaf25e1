# fleet_panel/merge.py
"""
Reconciliation of an incoming position with the stored one.

Acceptance:
    An incoming message replaces the stored position only when its timestamp
    is greater than or equal to the stored timestamp. Late messages are
    dropped without logging anything above DEBUG; they are routine.

Timestamp order:
    The upstream sends ``dd/mm/YYYY HH:MM:SS``, which does not sort as text,
    so both sides are parsed first. Plain string order is used only when a
    side cannot be parsed. A message without a timestamp is accepted only
    when nothing is stored yet.

Sparse fields:
    Some fields are missing from many message types. When the accepted
    message leaves one of them None, the stored value carries over. Every
    other field, the alert list included, is replaced outright.
"""

import logging
from datetime import datetime
from typing import Any, Final

from fleet_panel.models.entities import Position

__all__: list[str] = [
    'SPARSE_FIELDS',
    'is_not_older',
    'merge_position',
    'parse_timestamp',
]

logger: logging.Logger = logging.getLogger(__name__)

SPARSE_FIELDS: Final[tuple[str, ...]] = (
    'odometer',
    'rpm',
    'temperature_1',
    'temperature_2',
    'temperature_3',
    'humidity_1',
    'humidity_2',
    'humidity_3',
    'trailer_battery',
    'fleet_drive_battery',
    'driver_name',
    'driver_id',
    'trailer',
)

TIMESTAMP_FORMATS: Final[tuple[str, ...]] = (
    '%d/%m/%Y %H:%M:%S',
    '%d/%m/%Y %H:%M',
    '%d/%m/%Y',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%dT%H:%M:%S',
)


def parse_timestamp(timestamp: str) -> datetime | None:
    """
    Parse an upstream timestamp into a naive datetime.

    An offset on an ISO string is dropped; every upstream time is local.
    """
    text: str = timestamp.strip()
    if not text:
        return None

    for timestamp_format in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, timestamp_format)
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(text).replace(tzinfo=None)
    except ValueError:
        return None


def is_not_older(incoming: str, stored: str) -> bool:
    """
    Whether a message timestamped `incoming` may replace one at `stored`.

    Examples:
        >>> is_not_older('02/01/2025 08:00:00', '31/12/2024 23:59:59')
        True
        >>> is_not_older('05/01/2025 14:30:00', '05/01/2025 14:30:00')
        True
    """
    if not stored:
        return True
    if not incoming:
        return False

    incoming_time: datetime | None = parse_timestamp(incoming)
    stored_time: datetime | None = parse_timestamp(stored)
    if incoming_time is not None and stored_time is not None:
        return incoming_time >= stored_time
    return incoming >= stored


def merge_position(stored: Position | None, incoming: Position) -> Position | None:
    """
    Combine an incoming position with the stored one.

    Args:
        stored: Current position of the vehicle, if any.
        incoming: Freshly normalized position.

    Returns:
        The position to store, or None when the incoming message is older
        than the stored one and must be dropped.
    """
    if stored is None:
        return incoming

    if not is_not_older(incoming.timestamp, stored.timestamp):
        logger.debug(
            'Dropping late message %s for vehicle %s (%s < %s)',
            incoming.message_id,
            incoming.vehicle_id,
            incoming.timestamp,
            stored.timestamp,
        )
        return None

    carried: dict[str, Any] = {
        field: getattr(stored, field)
        for field in SPARSE_FIELDS
        if getattr(incoming, field) is None and getattr(stored, field) is not None
    }
    if not carried:
        return incoming
    return incoming.model_copy(update=carried)
