# ledgerkey_core/transport/__init__.py
import os
from ledgerkey_core.transport.transport_base import (
    BaseSession,
    Message,
    TransportError,
    TransportTransientError,
    TransportPermanentError,
    SessionClosed,
    SessionTimeout,
    MalformedMessage,
)
from ledgerkey_core.transport.transport_local import LocalNetwork, LocalSession


def transport_factory():
    """
    Selects the messaging layer participants open sessions over.

    LEDGERKEY_TRANSPORT:
      - "local" → in-process LocalNetwork (default)
    """
    mode = os.getenv("LEDGERKEY_TRANSPORT", "local").lower()

    if mode == "local":
        return LocalNetwork()

    raise ValueError(f"Unknown transport: {mode}")
