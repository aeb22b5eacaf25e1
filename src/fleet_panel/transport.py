# fleet_panel/transport.py
"""
Payload decoding for upstream responses.

The upstream may answer with plain XML, a gzip stream, or a ZIP archive
holding a single XML file, without saying which in its headers. The format
is detected from the leading magic bytes only.

Decoding is permissive: an archive without entries falls through to being
read as text, so the XML parser downstream reports the real problem.
"""

import gzip
import io
import logging
import zipfile
from typing import Final

__all__: list[str] = ['decode_payload']

logger: logging.Logger = logging.getLogger(__name__)

ZIP_MAGIC: Final[bytes] = b'PK'
GZIP_MAGIC: Final[bytes] = b'\x1f\x8b'
# utf-8-sig drops a leading byte order mark if the upstream sends one
TEXT_ENCODING: Final[str] = 'utf-8-sig'


def _to_text(payload: bytes) -> str:
    return payload.decode(TEXT_ENCODING, errors='replace')


def _unzip_first_entry(payload: bytes) -> str | None:
    """
    Return the first archive entry decoded as text.

    Returns:
        Text of the first entry, or None if the archive has no entries.

    Raises:
        zipfile.BadZipFile: If the payload has a ZIP signature but is not a
            readable archive.
    """
    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        entries: list[zipfile.ZipInfo] = archive.infolist()
        if not entries:
            return None
        return _to_text(archive.read(entries[0]))


def decode_payload(payload: bytes) -> str:
    """
    Turn a raw response body into text, undoing any compression.

    Detection order: ZIP signature (``PK``), then gzip signature
    (``1f 8b``), otherwise the body is taken as already-decoded UTF-8 text.
    Payloads of two bytes or fewer are always taken as text.

    Args:
        payload: Raw response body.

    Returns:
        Decoded text. Identical XML yields identical text whether it arrived
        zipped, gzipped or plain.

    Raises:
        zipfile.BadZipFile: Corrupt ZIP archive.
        gzip.BadGzipFile: Corrupt gzip stream.
        EOFError: Truncated gzip stream.
    """
    if len(payload) > 2 and payload.startswith(ZIP_MAGIC):
        text: str | None = _unzip_first_entry(payload)
        if text is not None:
            logger.debug('Decoded ZIP payload (%d bytes)', len(payload))
            return text
        logger.debug('ZIP payload has no entries, reading it as text')

    if len(payload) > 2 and payload.startswith(GZIP_MAGIC):
        logger.debug('Decoded gzip payload (%d bytes)', len(payload))
        return _to_text(gzip.decompress(payload))

    return _to_text(payload)
