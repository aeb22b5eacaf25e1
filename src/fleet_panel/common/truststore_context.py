# fleet_panel/common/truststore_context.py
"""
SSL context backed by the operating system trust store.

Used when the upstream is only reachable through a TLS-inspecting proxy
whose root CA is installed in the OS store but missing from the CA bundle
shipped with Python. An extra CA file can be layered on top for hosts that
also need a private root.

`truststore` is an optional dependency (``pip install fleet-panel[truststore]``)
and is imported only when this factory is called.
"""

import logging
import ssl
from ssl import SSLContext

__all__: list[str] = ['build_truststore_ssl_context']

logger: logging.Logger = logging.getLogger(__name__)


def build_truststore_ssl_context(extra_ca_bundle: str | None = None) -> SSLContext:
    """
    Create a client SSLContext that verifies against the OS trust store.

    Args:
        extra_ca_bundle: Optional PEM file whose certificates are trusted in
            addition to the system store.

    Returns:
        SSLContext with PROTOCOL_TLS_CLIENT defaults (hostname checking on).

    Raises:
        RuntimeError: If truststore is not installed.
        OSError: If extra_ca_bundle cannot be read.
        ssl.SSLError: If extra_ca_bundle holds no valid certificate.
    """
    try:
        import truststore  # noqa: PLC0415
    except ImportError as import_error:
        raise RuntimeError(
            'use_truststore is enabled but truststore is not installed; '
            'install it with: pip install fleet-panel[truststore]'
        ) from import_error

    ssl_context: SSLContext = truststore.SSLContext(ssl.PROTOCOL_TLS_CLIENT)

    if extra_ca_bundle is not None:
        ssl_context.load_verify_locations(cafile=extra_ca_bundle)
        logger.debug('Added CA bundle %s on top of the system trust store', extra_ca_bundle)

    return ssl_context
