# fleet_panel/client.py
"""
HTTP client for the Trucks Control XML endpoint.

The client sends one request document per call and returns the records of the
response. It knows nothing about vehicles or messages; the operation
definitions in fleet_panel.models.operations describe every request/response
pair.

Error Behavior:
---------------
- Timeouts and connection errors: TransientAPIError
- HTTP 429 and 5xx: TransientAPIError
- Other HTTP 4xx, non-XML or truncated bodies, unexpected response roots:
  APIError
- A well-formed upstream error envelope (ErrorRequest): logged, send()
  returns None

`request_timeout_seconds` is a wall-clock deadline for the whole call, body
included. An upstream that keeps trickling bytes fails once it passes.

No call is retried here. A failed call waits for the next scheduled tick;
the trailer roster fetch layers its own bounded retry on top of send().

SSL/TLS Handling:
-----------------
- Standard verification (verify_ssl=True)
- Disabled verification (verify_ssl=False) for development
- Custom CA bundle (verify_ssl='/path/to/cert.pem') for intercepting proxies
- Truststore integration (use_truststore=True) for the OS certificate store
"""

import gzip
import logging
import time
import xml.etree.ElementTree as ET
import zipfile
from ssl import SSLContext
from types import TracebackType
from typing import Final, NoReturn, Self

import httpx

from fleet_panel.common import build_truststore_ssl_context
from fleet_panel.config import UpstreamConfig
from fleet_panel.models.operations import (
    ERROR_ROOT_TAG,
    ParsedResponse,
    RequestShape,
    UpstreamErrorResponse,
    UpstreamOperation,
)
from fleet_panel.transport import decode_payload

__all__: list[str] = [
    'APIError',
    'TransientAPIError',
    'UpstreamClient',
]

logger: logging.Logger = logging.getLogger(__name__)

# HTTP status codes
HTTP_STATUS_CLIENT_ERROR_MIN: Final[int] = 400
HTTP_STATUS_RATE_LIMITED: Final[int] = 429
HTTP_STATUS_SERVER_ERROR_MIN: Final[int] = 500

REQUEST_HEADERS: Final[dict[str, str]] = {'Content-Type': 'text/xml; charset=utf-8'}

# Longest body excerpt attached to errors and log lines
BODY_EXCERPT_LENGTH: Final[int] = 500


# =============================================================================
# Exception Hierarchy
# =============================================================================


class APIError(Exception):
    """
    Base exception for API errors.

    Catch this to handle every hard failure of a call. An upstream error
    envelope is not an exception; see UpstreamClient.send().

    Attributes:
        status_code: HTTP status code if available, None for connection errors.
        response_body: Raw response body excerpt for debugging, None if unavailable.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code: int | None = status_code
        self.response_body: str | None = response_body


class TransientAPIError(APIError):
    """
    Raised for failures that may succeed on a later attempt.

    This includes timeouts, connection errors, rate limiting and server
    errors (5xx).
    """


# =============================================================================
# HTTP Client
# =============================================================================


class UpstreamClient:
    """
    Client for the single upstream XML endpoint.

    Thread Safety:
        The underlying httpx.Client is thread-safe, so the message and roster
        cycles may share one UpstreamClient.

    Example:
        >>> with UpstreamClient(config.upstream) as client:
        ...     response = client.send(UpstreamOperations.VEHICLES)
        ...     if response is not None:
        ...         print(response.record_count)
    """

    def __init__(self, config: UpstreamConfig) -> None:
        """
        Initialize the client.

        Args:
            config: Endpoint URL, credentials, timeout and SSL settings.

        Raises:
            RuntimeError: If use_truststore is set and truststore is missing.
        """
        self._config: UpstreamConfig = config

        ssl_verify: SSLContext | bool | str = self._build_ssl_context()

        # Per-phase limit; _post() enforces the deadline of the whole call
        self._http_client: httpx.Client = httpx.Client(
            timeout=httpx.Timeout(config.request_timeout_seconds),
            verify=ssl_verify,
            headers=REQUEST_HEADERS,
        )

        logger.info(
            'Initialized UpstreamClient: url=%r, timeout=%.1fs',
            config.url,
            config.request_timeout_seconds,
        )

    def _build_ssl_context(self) -> SSLContext | bool | str:
        verify_ssl: bool | str = self._config.verify_ssl

        # verify_ssl=False wins over use_truststore
        if self._config.use_truststore and verify_ssl is not False:
            logger.debug('Building SSLContext from truststore (system CA store)')
            return build_truststore_ssl_context(
                verify_ssl if isinstance(verify_ssl, str) else None
            )

        logger.debug('Using SSL verification setting: %r', verify_ssl)
        return verify_ssl

    # -------------------------------------------------------------------------
    # Context Manager Protocol
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the HTTP client. Safe to call multiple times."""
        self._http_client.close()
        logger.debug('UpstreamClient closed')

    def __enter__(self) -> Self:
        """Enter context manager, returning self."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager, closing the HTTP client."""
        self.close()

    # -------------------------------------------------------------------------
    # Core Send Method
    # -------------------------------------------------------------------------

    def send(
        self,
        operation: UpstreamOperation,
        shape: RequestShape = RequestShape.ELEMENTS,
        **fields: str,
    ) -> ParsedResponse | None:
        """
        Send one request and return the parsed records.

        Args:
            operation: Operation definition to execute.
            shape: Request document encoding (child elements or attributes).
            **fields: Operation-specific request fields, e.g. ``mId='42'``.

        Returns:
            ParsedResponse whose records list may be empty, or None when the
            upstream answered with its error envelope.

        Raises:
            TransientAPIError: Timeout (including the call deadline),
                connection failure, HTTP 429 or 5xx.
            APIError: Any other HTTP error, an undecodable or non-XML body,
                or a response root that does not match the operation.
        """
        body: bytes = operation.build_request(
            self._config.login,
            self._config.password.get_secret_value(),
            shape=shape,
            **fields,
        )

        logger.debug(
            'POST %s (%s, %s shape, fields=%r)',
            self._config.url,
            operation.request_tag,
            shape.value,
            fields,
        )

        status_code, payload = self._post(body)
        text: str = self._decode(payload, status_code)
        root: ET.Element = self._parse(text, status_code)

        if root.tag == ERROR_ROOT_TAG:
            envelope: UpstreamErrorResponse = UpstreamErrorResponse.from_element(root)
            logger.warning(
                'Upstream error for %s: code=%s message=%s',
                operation.name,
                envelope.code,
                envelope.message,
            )
            return None

        if status_code >= HTTP_STATUS_CLIENT_ERROR_MIN:
            self._raise_for_status_code(status_code, text)

        if root.tag != operation.response_tag:
            raise APIError(
                f'Unexpected response root {root.tag!r} for {operation.name}, '
                f'expected {operation.response_tag!r}',
                status_code=status_code,
                response_body=text[:BODY_EXCERPT_LENGTH],
            )

        return operation.parse_records(root)

    # -------------------------------------------------------------------------
    # Request Pipeline Steps
    # -------------------------------------------------------------------------

    def _post(self, body: bytes) -> tuple[int, bytes]:
        """
        POST the request and read the body before the call deadline.

        Returns:
            Status code and raw body.

        Raises:
            TransientAPIError: Deadline passed, timeout or connection error.
        """
        timeout: float = self._config.request_timeout_seconds
        deadline: float = time.monotonic() + timeout
        request: httpx.Request = self._http_client.build_request(
            'POST', self._config.url, content=body
        )

        try:
            response: httpx.Response = self._http_client.send(request, stream=True)
            try:
                chunks: list[bytes] = []
                for chunk in response.iter_bytes():
                    chunks.append(chunk)
                    if time.monotonic() > deadline:
                        raise TransientAPIError(
                            f'Request exceeded its {timeout}s deadline',
                            status_code=response.status_code,
                        )
                return response.status_code, b''.join(chunks)
            finally:
                response.close()
        except httpx.TimeoutException as timeout_error:
            raise TransientAPIError(
                f'Request timed out after {timeout}s: {timeout_error}'
            ) from timeout_error
        except httpx.RequestError as request_error:
            raise TransientAPIError(f'Connection error: {request_error}') from request_error

    def _decode(self, payload: bytes, status_code: int) -> str:
        try:
            return decode_payload(payload)
        except (zipfile.BadZipFile, gzip.BadGzipFile, EOFError, OSError) as decode_error:
            raise APIError(
                f'Could not decompress response body: {decode_error}',
                status_code=status_code,
            ) from decode_error

    def _parse(self, text: str, status_code: int) -> ET.Element:
        stripped: str = text.strip()
        if not stripped.startswith('<'):
            if status_code >= HTTP_STATUS_CLIENT_ERROR_MIN:
                # Plain-text error pages get the status-based classification
                self._raise_for_status_code(status_code, stripped)
            raise APIError(
                'Response body is not XML',
                status_code=status_code,
                response_body=stripped[:BODY_EXCERPT_LENGTH],
            )

        try:
            return ET.fromstring(stripped)
        except ET.ParseError as parse_error:
            if status_code >= HTTP_STATUS_CLIENT_ERROR_MIN:
                self._raise_for_status_code(status_code, stripped)
            raise APIError(
                f'Malformed XML response: {parse_error}',
                status_code=status_code,
                response_body=stripped[:BODY_EXCERPT_LENGTH],
            ) from parse_error

    @staticmethod
    def _raise_for_status_code(status_code: int, text: str) -> NoReturn:
        excerpt: str = text[:BODY_EXCERPT_LENGTH]
        if status_code == HTTP_STATUS_RATE_LIMITED or status_code >= HTTP_STATUS_SERVER_ERROR_MIN:
            raise TransientAPIError(
                f'Upstream returned HTTP {status_code}',
                status_code=status_code,
                response_body=excerpt,
            )
        raise APIError(
            f'Upstream returned HTTP {status_code}',
            status_code=status_code,
            response_body=excerpt,
        )
