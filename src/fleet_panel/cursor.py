# fleet_panel/cursor.py
"""
Watermark of the highest message id seen.

Message ids are compared as Python integers, which have arbitrary precision,
and the cursor keeps the id string exactly as the upstream sent it so the
next request carries it verbatim.
"""

import logging
import re
from collections.abc import Iterable
from typing import Final

__all__: list[str] = ['INITIAL_CURSOR', 'MessageCursor', 'parse_message_id']

logger: logging.Logger = logging.getLogger(__name__)

INITIAL_CURSOR: Final[str] = '1'
_MESSAGE_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r'-?[0-9]+')


def parse_message_id(message_id: str | None) -> int | None:
    """Return the id as an int, or None if it is not a decimal integer."""
    if message_id is None:
        return None
    text: str = message_id.strip()
    if _MESSAGE_ID_PATTERN.fullmatch(text) is None:
        return None
    return int(text)


class MessageCursor:
    """
    Monotonic message id watermark.

    Example:
        >>> cursor = MessageCursor()
        >>> cursor.advance(['90071992547409930', '12'])
        True
        >>> cursor.value
        '90071992547409930'
        >>> cursor.advance(['12'])
        False
    """

    def __init__(self, value: str = INITIAL_CURSOR) -> None:
        parsed: int | None = parse_message_id(value)
        if parsed is None:
            logger.warning('Invalid cursor %r, starting from %s', value, INITIAL_CURSOR)
            value = INITIAL_CURSOR
            parsed = int(INITIAL_CURSOR)
        self._value: str = value.strip()
        self._number: int = parsed

    @property
    def value(self) -> str:
        """Cursor as sent in the next request."""
        return self._value

    def advance(self, message_ids: Iterable[str | None]) -> bool:
        """
        Move the cursor to the largest id in the batch if it is higher.

        Ids that are not integers are ignored. Replaying a batch is a no-op.

        Returns:
            True if the cursor moved.
        """
        best_value: str | None = None
        best_number: int = self._number

        for message_id in message_ids:
            number: int | None = parse_message_id(message_id)
            if number is None:
                if message_id is not None:
                    logger.debug('Ignoring non-numeric message id %r', message_id)
                continue
            if number > best_number:
                best_number = number
                best_value = message_id.strip()

        if best_value is None:
            return False

        self._number = best_number
        self._value = best_value
        return True

    def __repr__(self) -> str:
        return f'MessageCursor({self._value!r})'
