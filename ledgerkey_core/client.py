# ledgerkey_core/client.py
"""
Initiating entry points.

``request_key_for_account`` opens its own session to the account's host and
runs the requester side on it; ``serve_key_requests`` registers the host side
so every inbound session is answered by the responder.
"""

from __future__ import annotations
from functools import partial
from typing import Optional

from ledgerkey_core.crypto import KeyService
from ledgerkey_core.directory import AccountDirectory
from ledgerkey_core.errors import KeyExchangeFailed
from ledgerkey_core.flows.request_key import request_key, respond_to_key_request
from ledgerkey_core.logger import get_logger
from ledgerkey_core.models import AccountInfo, AnonymousIdentity
from ledgerkey_core.storage.provider import StorageProvider
from ledgerkey_core.transport.transport_base import TransportError

log = get_logger("LedgerKey.Client")


def request_key_for_account(account_info: AccountInfo, network, storage: StorageProvider,
                            requester: str = "requester") -> AnonymousIdentity:
    try:
        session = network.open_session(account_info.host, initiator=requester)
    except TransportError as e:
        raise KeyExchangeFailed(f"could not open session to {account_info.host}: {e}") from e

    try:
        return request_key(account_info, session, storage)
    finally:
        session.close()


def serve_key_requests(network, host: str, directory: AccountDirectory, key_service: KeyService,
                       audit: Optional[StorageProvider] = None) -> None:
    network.register_host(host, partial(respond_to_key_request, directory=directory,
                                        key_service=key_service, audit=audit))
    log.info(f"[HOST] {host} answering key requests")
