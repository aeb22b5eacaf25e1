# fleet_panel/models/operations.py
"""
Self-describing definitions of the upstream XML operations.

Each operation knows its request root element, the root element of a
successful response, and the tag of the repeated record element inside it.
The client builds request documents and extracts records through these
definitions without any per-operation branching.

Key Components:
    - RequestShape: Child-element or attribute encoding of the credentials.
    - UpstreamOperation: One request/response pair.
    - UpstreamErrorResponse: The structured error envelope (not an exception).
    - ParsedResponse: Records extracted from one successful response.
    - UpstreamOperations: Registry of the four operations the panel uses.
"""

import logging
import xml.etree.ElementTree as ET
from enum import Enum
from typing import Final, TypeAlias

from pydantic import BaseModel, ConfigDict, Field

__all__: list[str] = [
    'ERROR_ROOT_TAG',
    'ParsedResponse',
    'RawRecord',
    'RequestShape',
    'UpstreamErrorResponse',
    'UpstreamOperation',
    'UpstreamOperations',
]

logger: logging.Logger = logging.getLogger(__name__)

# One parsed record: child tag (or attribute name) -> stripped text or None.
RawRecord: TypeAlias = dict[str, str | None]

ERROR_ROOT_TAG: Final[str] = 'ErrorRequest'
ERROR_CODE_TAG: Final[str] = 'codigo'
ERROR_MESSAGE_TAG: Final[str] = 'erro'
LOGIN_FIELD: Final[str] = 'login'
PASSWORD_FIELD: Final[str] = 'senha'


class RequestShape(str, Enum):
    """How credentials and fields are encoded in the request document."""

    ELEMENTS = 'elements'
    ATTRIBUTES = 'attributes'


# =============================================================================
# Response Containers
# =============================================================================


class UpstreamErrorResponse(BaseModel):
    """Error envelope the upstream sends instead of data."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    code: str | None = None
    message: str | None = None

    @classmethod
    def from_element(cls, root: ET.Element) -> 'UpstreamErrorResponse':
        return cls(
            code=_element_text(root.find(ERROR_CODE_TAG)),
            message=_element_text(root.find(ERROR_MESSAGE_TAG)),
        )


class ParsedResponse(BaseModel):
    """
    Records extracted from one successful response.

    `records` is always a list, holding zero, one or many entries regardless
    of how many record elements the upstream document contained.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    operation: str
    records: list[RawRecord] = Field(default_factory=list)

    @property
    def record_count(self) -> int:
        return len(self.records)


# =============================================================================
# Operation Definition
# =============================================================================


def _element_text(element: ET.Element | None) -> str | None:
    if element is None or element.text is None:
        return None
    text: str = element.text.strip()
    return text or None


def element_to_record(element: ET.Element) -> RawRecord:
    """
    Flatten one record element into a dict.

    Attributes come first, then one key per child element. Child text is
    stripped; empty text becomes None. A repeated child keeps its last value.
    """
    record: RawRecord = {
        name: (value.strip() or None) for name, value in element.attrib.items()
    }
    for child in element:
        record[child.tag] = _element_text(child)
    return record


class UpstreamOperation(BaseModel):
    """
    One upstream request/response pair.

    Attributes:
        name: Short identifier used in logs.
        request_tag: Root element of the request document.
        response_tag: Root element of a successful response.
        record_tag: Repeated element holding one record in the response.
        description: Human-readable summary.
        cursor_field: Request field carrying the incremental cursor, if any.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    name: str
    request_tag: str
    response_tag: str
    record_tag: str
    description: str = ''
    cursor_field: str | None = None

    def build_request(
        self,
        login: str,
        password: str,
        shape: RequestShape = RequestShape.ELEMENTS,
        **fields: str,
    ) -> bytes:
        """
        Serialize the request document.

        Values are escaped by ElementTree, so credentials containing markup
        characters are sent intact.

        Args:
            login: Account login.
            password: Account password.
            shape: Child elements (default) or attributes on the root.
            **fields: Operation-specific fields, e.g. ``mId='123'``.

        Returns:
            UTF-8 encoded XML document.

        Example:
            >>> UpstreamOperations.VEHICLES.build_request('user', 'secret')
            b'<RequestVeiculo><login>user</login><senha>secret</senha></RequestVeiculo>'
        """
        values: dict[str, str] = {LOGIN_FIELD: login, PASSWORD_FIELD: password, **fields}
        root: ET.Element = ET.Element(self.request_tag)

        if shape is RequestShape.ATTRIBUTES:
            for key, value in values.items():
                root.set(key, value)
        else:
            for key, value in values.items():
                ET.SubElement(root, key).text = value

        return ET.tostring(root, encoding='utf-8', xml_declaration=False)

    def parse_records(self, root: ET.Element) -> ParsedResponse:
        """Extract every record element below a successful response root."""
        records: list[RawRecord] = [
            element_to_record(element) for element in root.iter(self.record_tag)
        ]
        logger.debug('%s: parsed %d records', self.name, len(records))
        return ParsedResponse(operation=self.name, records=records)


# =============================================================================
# Operation Registry
# =============================================================================


class UpstreamOperations:
    """
    Registry of the upstream operations used by the panel.

    Usage:
        >>> operation = UpstreamOperations.MESSAGES
        >>> body = operation.build_request('user', 'secret', mId='1')
    """

    VEHICLES: UpstreamOperation = UpstreamOperation(
        name='vehicles',
        request_tag='RequestVeiculo',
        response_tag='ResponseVeiculo',
        record_tag='Veiculo',
        description='Full vehicle list with equipment and sensor flags',
    )

    DRIVERS: UpstreamOperation = UpstreamOperation(
        name='drivers',
        request_tag='RequestMotorista',
        response_tag='ResponseMotorista',
        record_tag='Motorista',
        description='Full driver list',
    )

    TRAILERS: UpstreamOperation = UpstreamOperation(
        name='trailers',
        request_tag='RequestCarretas',
        response_tag='ResponseCarretas',
        record_tag='Carretas',
        description='Tractor plate to trailer roster',
    )

    MESSAGES: UpstreamOperation = UpstreamOperation(
        name='messages',
        request_tag='RequestMensagemCB',
        response_tag='ResponseMensagemCB',
        record_tag='MensagemCB',
        description='Position messages newer than the cursor',
        cursor_field='mId',
    )
