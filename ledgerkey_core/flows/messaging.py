# ledgerkey_core/flows/messaging.py
"""Send/receive helpers translating transport failures into protocol errors."""

from __future__ import annotations
from typing import Optional, Type

from ledgerkey_core.constants import PROTOCOL_VERSION
from ledgerkey_core.errors import KeyRequestError, ProtocolViolation
from ledgerkey_core.transport.transport_base import (
    BaseSession,
    MalformedMessage,
    Message,
    TransportError,
)


def send(session: BaseSession, message: Message, on_failure: Type[KeyRequestError]) -> None:
    try:
        session.send(message)
    except TransportError as e:
        raise on_failure(f"could not send {message.kind} to {session.counterparty}: {e}") from e


def expect(session: BaseSession, kind: str, on_closed: Type[KeyRequestError],
           timeout: Optional[float] = None) -> Message:
    """Block for the next message and require it to be of ``kind``."""
    try:
        message = session.receive(timeout)
    except MalformedMessage as e:
        raise ProtocolViolation(f"malformed message from {session.counterparty}: {e}") from e
    except TransportError as e:
        raise on_closed(f"no {kind} from {session.counterparty}: {e}") from e
    if message.version != PROTOCOL_VERSION:
        raise ProtocolViolation(
            f"{session.counterparty} speaks protocol {message.version}, expected {PROTOCOL_VERSION}"
        )
    if message.kind != kind:
        raise ProtocolViolation(f"expected {kind} from {session.counterparty}, got {message.kind}")
    return message
