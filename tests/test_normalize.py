"""
Tests for fleet_panel.normalize module.

Tests field parsers and the per-entity normalizers.
"""

import pytest

from fleet_panel.models import Driver, Position, TrailerRosterEntry, Vehicle
from fleet_panel.normalize import (
    classify_alerts,
    normalize_driver,
    normalize_position,
    normalize_trailer_entry,
    normalize_vehicle,
    parse_decimal,
    parse_ignition,
    parse_optional_int,
    parse_speed,
)
from fleet_panel.reference import Severity


class TestFieldParsers:
    """Test the scalar field parsers."""

    @pytest.mark.parametrize(
        ('raw', 'expected'),
        [
            ('-19,5', -19.5),
            ('-43.938', -43.938),
            (' 12,25 ', 12.25),
            ('', None),
            (None, None),
            ('abc', None),
            ('nan', None),
        ],
    )
    def test_parse_decimal(self, raw: str | None, expected: float | None) -> None:
        """Should accept comma decimals and map garbage to None."""
        assert parse_decimal(raw) == expected

    def test_parse_optional_int_truncates_decimals(self) -> None:
        """Should truncate decimal input like the upstream's integer fields."""
        assert parse_optional_int('123456') == 123456  # noqa: PLR2004
        assert parse_optional_int('12,9') == 12  # noqa: PLR2004
        assert parse_optional_int(None) is None
        assert parse_optional_int('x') is None

    def test_parse_optional_int_keeps_zero(self) -> None:
        """Should keep a reported zero distinct from a missing value."""
        assert parse_optional_int('0') == 0

    @pytest.mark.parametrize(
        ('raw', 'expected'),
        [('45', 45), ('0', 0), ('-1', None), (None, None), ('', None)],
    )
    def test_parse_speed(self, raw: str | None, expected: int | None) -> None:
        """Should map the -1 sentinel to None."""
        assert parse_speed(raw) == expected

    @pytest.mark.parametrize(
        ('raw', 'expected'),
        [('-1,0', None), ('-1,5', -1), ('-1.9', -1), ('45,7', 45)],
    )
    def test_parse_speed_compares_before_truncating(
        self,
        raw: str,
        expected: int | None,
    ) -> None:
        """Should treat only a value equal to -1 as not reported."""
        assert parse_speed(raw) == expected

    @pytest.mark.parametrize(
        ('raw', 'expected'),
        [('1', True), ('0', False), ('-1', None), ('2', None), (None, None), ('x', None)],
    )
    def test_parse_ignition(self, raw: str | None, expected: bool | None) -> None:
        """Should keep ignition three-valued."""
        assert parse_ignition(raw) is expected


class TestClassifyAlerts:
    """Test classify_alerts()."""

    def test_truthy_flags_become_alerts(self) -> None:
        """Should resolve flags set to '1' or 'true' through the event table."""
        alerts = classify_alerts({'evt5': '1', 'evt14': 'true', 'evt1': '0', 'evt3': None})

        assert [alert.code for alert in alerts] == ['evt5', 'evt14']
        assert alerts[0].description == 'Botão de Pânico'
        assert alerts[0].severity is Severity.CRITICO
        assert alerts[1].severity is Severity.ALTO

    def test_unknown_and_ignition_flags_are_ignored(self) -> None:
        """Should skip codes missing from the table, including evt4 and evt26."""
        assert classify_alerts({'evt4': '1', 'evt26': '1', 'evt999': '1'}) == ()


class TestNormalizeVehicle:
    """Test normalize_vehicle()."""

    def test_full_record(self) -> None:
        """Should map every vehicle field."""
        vehicle: Vehicle | None = normalize_vehicle(
            {
                'veiID': '1001',
                'placa': 'ABC-1D23',
                'eqp': '8',
                'ident': 'Truck 01',
                'mot': 'João',
                'vManut': '1',
                'vs': '3.2.1',
                'st1': '1',
                'st2': '0',
                'tMac': '1',
                'eCmd': '1',
                'dIE': '1',
                'IE': '0',
            }
        )

        assert vehicle is not None
        assert vehicle.equipment == 'Smart GSM'
        assert vehicle.in_maintenance is True
        assert vehicle.firmware_version == '3.2.1'
        assert vehicle.has_temperature_sensor_1 is True
        assert vehicle.has_temperature_sensor_2 is False
        assert vehicle.has_macro_keypad is True
        assert vehicle.accepts_commands is True
        assert vehicle.has_ignition_interlock is True
        assert vehicle.ignition_interlock_active is False

    def test_unknown_equipment_gets_placeholder(self) -> None:
        """Should label unknown equipment codes with the raw value."""
        vehicle: Vehicle | None = normalize_vehicle({'veiID': '1', 'eqp': '99'})

        assert vehicle is not None
        assert vehicle.equipment_code == 99  # noqa: PLR2004
        assert vehicle.equipment == 'Tipo 99'

    def test_missing_equipment_defaults_to_zero(self) -> None:
        """Should default a missing equipment code to 0."""
        vehicle: Vehicle | None = normalize_vehicle({'veiID': '1'})

        assert vehicle is not None
        assert vehicle.equipment_code == 0
        assert vehicle.plate == ''

    def test_record_without_id_is_skipped(self) -> None:
        """Should return None without a vehicle id."""
        assert normalize_vehicle({'placa': 'ABC1234'}) is None


class TestNormalizeDriverAndTrailer:
    """Test normalize_driver() and normalize_trailer_entry()."""

    def test_driver(self) -> None:
        """Should map id, name and document."""
        driver: Driver | None = normalize_driver({'motID': '7', 'mot': 'Ana', 'cpf': None})

        assert driver == Driver(driver_id='7', name='Ana', document='')

    def test_driver_without_id_is_skipped(self) -> None:
        """Should return None without a driver id."""
        assert normalize_driver({'mot': 'Ana'}) is None

    def test_trailer_entry(self) -> None:
        """Should map tractor plate and trailer name."""
        entry: TrailerRosterEntry | None = normalize_trailer_entry(
            {'cavalo': 'abc-1d23', 'carreta': 'CAR-01'}
        )

        assert entry == TrailerRosterEntry(tractor_plate='abc-1d23', trailer_name='CAR-01')

    def test_trailer_entry_needs_both_sides(self) -> None:
        """Should skip pairs missing either side."""
        assert normalize_trailer_entry({'cavalo': 'ABC1234'}) is None
        assert normalize_trailer_entry({'carreta': 'CAR-01', 'cavalo': ''}) is None


class TestNormalizePosition:
    """Test normalize_position()."""

    def test_full_message(self) -> None:
        """Should map kinematics, sensors and labels."""
        position: Position | None = normalize_position(
            {
                'mId': '90071992547409931',
                'veiID': '1001',
                'placa': 'ABC-1D23',
                'dt': '05/01/2025 14:30:00',
                'lat': '-19,5',
                'lon': '-43,9',
                'mun': 'Contagem',
                'uf': 'MG',
                'vel': '45',
                'evt4': '1',
                'odm': '152340',
                'st1': '-18,5',
                'umd1': '40',
                'evt5': '1',
                'dMac': 'Cheguei',
                'carreta': 'CAR-01',
                'carretaBateria': '87',
                'ori': '2',
                'tpMsg': '1',
                'evtG': '5',
            }
        )

        assert position is not None
        assert position.message_id == '90071992547409931'
        assert position.latitude == -19.5  # noqa: PLR2004
        assert position.longitude == -43.9  # noqa: PLR2004
        assert position.speed == 45  # noqa: PLR2004
        assert position.ignition is True
        assert position.odometer == 152340  # noqa: PLR2004
        assert position.temperature_1 == -18.5  # noqa: PLR2004
        assert position.humidity_1 == 40.0  # noqa: PLR2004
        assert [alert.code for alert in position.alerts] == ['evt5']
        assert position.macro == 'Cheguei'
        assert position.trailer == 'CAR-01'
        assert position.trailer_battery == 87  # noqa: PLR2004
        assert position.origin_code == 2  # noqa: PLR2004
        assert position.origin == 'GSM Híbrido'
        assert position.trigger_event == 5  # noqa: PLR2004

    def test_absent_fields_are_none_not_zero(self) -> None:
        """Should normalize missing optional fields to None."""
        position: Position | None = normalize_position({'veiID': '1', 'mId': '2'})

        assert position is not None
        assert position.latitude is None
        assert position.longitude is None
        assert position.speed is None
        assert position.ignition is None
        assert position.odometer is None
        assert position.temperature_1 is None
        assert position.origin is None
        assert position.alerts == ()

    def test_speed_sentinel(self) -> None:
        """Should map a speed of -1 to None."""
        position: Position | None = normalize_position({'veiID': '1', 'vel': '-1'})

        assert position is not None
        assert position.speed is None

    def test_unknown_origin_placeholder(self) -> None:
        """Should label unknown origin codes with a placeholder."""
        position: Position | None = normalize_position({'veiID': '1', 'ori': '42'})

        assert position is not None
        assert position.origin == 'Origem 42'

    def test_bad_fields_do_not_raise(self) -> None:
        """Should turn unparseable values into None instead of failing."""
        position: Position | None = normalize_position(
            {'veiID': '1', 'lat': 'N/A', 'vel': 'fast', 'odm': '??', 'evt4': 'on'}
        )

        assert position is not None
        assert position.latitude is None
        assert position.speed is None
        assert position.odometer is None
        assert position.ignition is None

    def test_message_without_vehicle_is_skipped(self) -> None:
        """Should return None without a vehicle id."""
        assert normalize_position({'mId': '5'}) is None
