"""
Tests for fleet_panel.merge module.

Tests timestamp ordering and last-known-state reconciliation.
"""

from typing import TypeAlias
from collections.abc import Callable
from datetime import datetime

import pytest

from fleet_panel.merge import is_not_older, merge_position, parse_timestamp
from fleet_panel.models import Position

PositionFactory: TypeAlias = Callable[..., Position]


class TestParseTimestamp:
    """Test parse_timestamp()."""

    def test_upstream_format(self) -> None:
        """Should parse day-first timestamps."""
        assert parse_timestamp('05/01/2025 14:30:00') == datetime(2025, 1, 5, 14, 30)

    def test_iso_with_offset_becomes_naive(self) -> None:
        """Should drop the offset of ISO timestamps."""
        assert parse_timestamp('2025-01-05T14:30:00-03:00') == datetime(2025, 1, 5, 14, 30)

    @pytest.mark.parametrize('raw', ['', '   ', 'ontem', '32/13/2025 99:00:00'])
    def test_unparseable(self, raw: str) -> None:
        """Should return None for empty or unparseable text."""
        assert parse_timestamp(raw) is None


class TestIsNotOlder:
    """Test is_not_older()."""

    def test_day_first_order_is_chronological(self) -> None:
        """Should compare across month boundaries by date, not by text."""
        assert is_not_older('02/01/2025 08:00:00', '31/12/2024 23:59:59') is True
        assert is_not_older('31/12/2024 23:59:59', '02/01/2025 08:00:00') is False

    def test_equal_timestamps_are_accepted(self) -> None:
        """Should accept a message with the same timestamp."""
        assert is_not_older('05/01/2025 14:30:00', '05/01/2025 14:30:00') is True

    def test_empty_stored_accepts_anything(self) -> None:
        """Should accept any message when nothing is stored."""
        assert is_not_older('', '') is True
        assert is_not_older('05/01/2025 14:30:00', '') is True

    def test_empty_incoming_is_rejected(self) -> None:
        """Should reject an untimestamped message over a timestamped one."""
        assert is_not_older('', '05/01/2025 14:30:00') is False

    def test_unparseable_falls_back_to_text(self) -> None:
        """Should compare as strings when a side cannot be parsed."""
        assert is_not_older('b', 'a') is True
        assert is_not_older('a', 'b') is False


class TestMergePosition:
    """Test merge_position()."""

    def test_first_position_is_stored(self, make_position: PositionFactory) -> None:
        """Should take the incoming position when nothing is stored."""
        incoming: Position = make_position()

        assert merge_position(None, incoming) is incoming

    def test_newer_replaces(self, make_position: PositionFactory) -> None:
        """Should replace the stored position with a newer one."""
        stored: Position = make_position(timestamp='05/01/2025 14:30:00', speed=10)
        incoming: Position = make_position(
            message_id='501', timestamp='05/01/2025 14:35:00', speed=60
        )

        merged: Position | None = merge_position(stored, incoming)

        assert merged is not None
        assert merged.message_id == '501'
        assert merged.speed == 60  # noqa: PLR2004

    def test_older_is_dropped(self, make_position: PositionFactory) -> None:
        """Should return None for a late message."""
        stored: Position = make_position(timestamp='05/01/2025 14:30:00')
        incoming: Position = make_position(message_id='499', timestamp='05/01/2025 14:00:00')

        assert merge_position(stored, incoming) is None

    def test_sparse_fields_carry_over(self, make_position: PositionFactory) -> None:
        """Should keep stored sparse values the incoming message omits."""
        stored: Position = make_position(
            odometer=152340,
            temperature_1=-18.5,
            driver_name='Ana',
            trailer='CAR-01',
        )
        incoming: Position = make_position(
            message_id='501',
            timestamp='05/01/2025 14:31:00',
            temperature_1=-17.0,
        )

        merged: Position | None = merge_position(stored, incoming)

        assert merged is not None
        assert merged.odometer == 152340  # noqa: PLR2004
        assert merged.temperature_1 == -17.0  # noqa: PLR2004
        assert merged.driver_name == 'Ana'
        assert merged.trailer == 'CAR-01'

    def test_non_sparse_fields_are_replaced(self, make_position: PositionFactory) -> None:
        """Should not carry over speed, coordinates or alerts."""
        stored: Position = make_position(speed=45, ignition=True, macro='Cheguei')
        incoming: Position = make_position(
            message_id='501', timestamp='05/01/2025 14:31:00', latitude=None
        )

        merged: Position | None = merge_position(stored, incoming)

        assert merged is not None
        assert merged.speed is None
        assert merged.ignition is None
        assert merged.latitude is None
        assert merged.macro is None
