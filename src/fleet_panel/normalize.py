# fleet_panel/normalize.py
"""
Conversion of raw upstream records into typed entities.

Every function takes one flat record as produced by the client (tag -> text
or None) and returns one entity, or None when the record lacks the key that
identifies it. Unparseable values never raise; they become None (or the
documented placeholder), so one bad record cannot abort a batch.

Numeric conventions of the upstream:
    - Decimals may use a comma (``'-19,5'``).
    - Speed ``-1`` means "not reported".
    - Ignition (``evt4``) is ``1`` on, ``0`` off, anything else unknown.
    - Boolean flags are ``'1'`` (vehicle list) or ``'1'``/``'true'`` (messages).
"""

import logging
import math
from collections.abc import Mapping
from typing import Final, TypeAlias

from fleet_panel.models.entities import (
    Alert,
    Driver,
    Position,
    TrailerRosterEntry,
    Vehicle,
)
from fleet_panel.reference import EVENT_FLAGS, equipment_name, origin_name

__all__: list[str] = [
    'classify_alerts',
    'is_flag_set',
    'normalize_driver',
    'normalize_position',
    'normalize_trailer_entry',
    'normalize_vehicle',
    'parse_decimal',
    'parse_ignition',
    'parse_optional_int',
    'parse_speed',
]

logger: logging.Logger = logging.getLogger(__name__)

Record: TypeAlias = Mapping[str, str | None]

SPEED_NOT_REPORTED: Final[int] = -1
TRUTHY_FLAG_VALUES: Final[frozenset[str]] = frozenset({'1', 'true'})


# =============================================================================
# Field Parsers
# =============================================================================


def _text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped: str = value.strip()
    return stripped or None


def parse_decimal(value: str | None) -> float | None:
    """
    Parse a decimal that may use a comma separator.

    Examples:
        >>> parse_decimal('-19,5')
        -19.5
        >>> parse_decimal('') is None
        True
    """
    text: str | None = _text(value)
    if text is None:
        return None
    try:
        number: float = float(text.replace(',', '.'))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_optional_int(value: str | None) -> int | None:
    """Parse an integer field; decimals are truncated, garbage is None."""
    text: str | None = _text(value)
    if text is None:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    number: float | None = parse_decimal(text)
    return int(number) if number is not None else None


def parse_speed(value: str | None) -> int | None:
    """
    Parse speed in km/h, mapping the "not reported" sentinel to None.

    Only a value equal to -1 is the sentinel; decimals are compared before
    truncation, so '-1,5' is not.
    """
    speed: float | None = parse_decimal(value)
    if speed is None or speed == SPEED_NOT_REPORTED:
        return None
    return int(speed)


def parse_ignition(value: str | None) -> bool | None:
    """
    Decode the three-valued ignition field.

    Returns:
        True for 1, False for 0, None for an absent field or any other value.
    """
    match parse_optional_int(value):
        case 1:
            return True
        case 0:
            return False
        case _:
            return None


def is_flag_set(value: str | None) -> bool:
    text: str | None = _text(value)
    return text is not None and text.lower() in TRUTHY_FLAG_VALUES


def classify_alerts(record: Record) -> tuple[Alert, ...]:
    """
    Resolve the active alert flags of a message, in event table order.

    Only flags present in the event table become alerts; unknown ``evtN``
    fields are ignored.
    """
    return tuple(
        Alert(
            code=code,
            description=info.description,
            severity=info.severity,
            icon=info.icon,
        )
        for code, info in EVENT_FLAGS.items()
        if is_flag_set(record.get(code))
    )


# =============================================================================
# Entity Normalizers
# =============================================================================


def normalize_vehicle(record: Record) -> Vehicle | None:
    """Build a Vehicle from a ``Veiculo`` record; None without ``veiID``."""
    vehicle_id: str | None = _text(record.get('veiID'))
    if vehicle_id is None:
        logger.debug('Skipping vehicle record without veiID: %r', record)
        return None

    raw_equipment: str | None = _text(record.get('eqp'))
    equipment_code: int = parse_optional_int(raw_equipment) or 0

    return Vehicle(
        vehicle_id=vehicle_id,
        plate=_text(record.get('placa')) or '',
        equipment_code=equipment_code,
        equipment=equipment_name(equipment_code, raw_equipment),
        identification=_text(record.get('ident')) or '',
        driver_name=_text(record.get('mot')) or '',
        in_maintenance=_text(record.get('vManut')) == '1',
        firmware_version=_text(record.get('vs')),
        has_temperature_sensor_1=_text(record.get('st1')) == '1',
        has_temperature_sensor_2=_text(record.get('st2')) == '1',
        has_temperature_sensor_3=_text(record.get('st3')) == '1',
        has_macro_keypad=_text(record.get('tMac')) == '1',
        accepts_commands=_text(record.get('eCmd')) == '1',
        has_ignition_interlock=_text(record.get('dIE')) == '1',
        ignition_interlock_active=_text(record.get('IE')) == '1',
    )


def normalize_driver(record: Record) -> Driver | None:
    """Build a Driver from a ``Motorista`` record; None without ``motID``."""
    driver_id: str | None = _text(record.get('motID'))
    if driver_id is None:
        logger.debug('Skipping driver record without motID: %r', record)
        return None
    return Driver(
        driver_id=driver_id,
        name=_text(record.get('mot')) or '',
        document=_text(record.get('cpf')) or '',
    )


def normalize_trailer_entry(record: Record) -> TrailerRosterEntry | None:
    """Build a roster pair from a ``Carretas`` record; None unless both sides are set."""
    tractor_plate: str | None = _text(record.get('cavalo'))
    trailer_name: str | None = _text(record.get('carreta'))
    if tractor_plate is None or trailer_name is None:
        return None
    return TrailerRosterEntry(tractor_plate=tractor_plate, trailer_name=trailer_name)


def normalize_position(record: Record) -> Position | None:
    """
    Build a Position from a ``MensagemCB`` record.

    Coordinates, sensors and counters that are absent or unparseable become
    None rather than 0.

    Returns:
        The position, or None when the record has no ``veiID``.
    """
    vehicle_id: str | None = _text(record.get('veiID'))
    if vehicle_id is None:
        logger.debug('Skipping message without veiID: %r', record)
        return None

    origin_code: int | None = parse_optional_int(record.get('ori'))

    return Position(
        message_id=_text(record.get('mId')) or '',
        vehicle_id=vehicle_id,
        plate=_text(record.get('placa')) or '',
        timestamp=_text(record.get('dt')) or '',
        latitude=parse_decimal(record.get('lat')),
        longitude=parse_decimal(record.get('lon')),
        municipality=_text(record.get('mun')) or '',
        state=_text(record.get('uf')) or '',
        highway=_text(record.get('rod')) or '',
        street=_text(record.get('rua')) or '',
        speed=parse_speed(record.get('vel')),
        ignition=parse_ignition(record.get('evt4')),
        odometer=parse_optional_int(record.get('odm')),
        rpm=parse_optional_int(record.get('rpm')),
        temperature_1=parse_decimal(record.get('st1')),
        temperature_2=parse_decimal(record.get('st2')),
        temperature_3=parse_decimal(record.get('st3')),
        humidity_1=parse_decimal(record.get('umd1')),
        humidity_2=parse_decimal(record.get('umd2')),
        humidity_3=parse_decimal(record.get('umd3')),
        alerts=classify_alerts(record),
        telemetry_alert=_text(record.get('alrtTelem')),
        macro=_text(record.get('dMac')),
        driver_name=_text(record.get('mot')),
        driver_id=_text(record.get('motID')),
        control_point=_text(record.get('pcNome')),
        route_point=_text(record.get('prNome')),
        trailer=_text(record.get('carreta')),
        trailer_battery=parse_optional_int(record.get('carretaBateria')),
        fleet_drive_battery=parse_optional_int(record.get('fleetDriveBateria')),
        origin_code=origin_code,
        origin=origin_name(origin_code),
        message_type=parse_optional_int(record.get('tpMsg')),
        trigger_event=parse_optional_int(record.get('evtG')),
    )
