"""
Factory module for opening message streams to measurement servers.
"""

import logging

# Keep library chatter off stderr unless something goes wrong
logging.getLogger('websockets').setLevel(logging.WARNING)
logging.getLogger('urllib3').setLevel(logging.WARNING)

from common.errors import ConnectError
from systems.base import MessageStream
from systems.websocket import WebSocketStream
from configuration import ClientConfig

logger = logging.getLogger(__name__)


def dial_stream(url: str, config: ClientConfig) -> MessageStream:
    """Open the message stream for one sub-test.

    Args:
        url: Test endpoint (ws:// or wss://)
        config: Run configuration (TLS verification, dial timeout)

    Returns:
        Connected MessageStream

    Raises:
        ConnectError: If the stream cannot be established or the URL scheme is unsupported
    """
    scheme = url.split("://", 1)[0].lower() if "://" in url else ""
    if scheme not in ("ws", "wss"):
        raise ConnectError(f"Unsupported URL scheme: '{scheme}'. Must be 'ws' or 'wss'.")

    return WebSocketStream.dial(
        url,
        no_verify=config.no_verify,
        timeout_seconds=config.dial_timeout_seconds,
    )
