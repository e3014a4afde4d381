# ledgerkey_core/flows/request_key.py
"""
Requesting a fresh key for an account hosted by another participant.

Requester: INIT -> AWAITING_STATUS -> REJECTED
                                   -> AWAITING_KEY -> PERSISTED | PERSISTENCE_FAILED
Host:      INIT -> LOOKED_UP -> SENT_NOT_FOUND
                             -> SENT_FOUND -> PROVISIONED | PROVISION_FAILED

Both sides run on one already-open session; each run is an independent grant.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional

from ledgerkey_core.constants import MSG_ACCOUNT_ID, MSG_SEARCH_STATUS
from ledgerkey_core.crypto import KeyService
from ledgerkey_core.directory import AccountDirectory
from ledgerkey_core.errors import (
    HostRejected,
    KeyExchangeFailed,
    KeyGenerationFailed,
    PersistenceFailure,
    ProtocolViolation,
)
from ledgerkey_core.flows.key_exchange import acquire_key, provide_key
from ledgerkey_core.flows.messaging import expect, send
from ledgerkey_core.logger import get_logger
from ledgerkey_core.models import AccountInfo, AccountSearchStatus, AnonymousIdentity, IssuedKey
from ledgerkey_core.storage.models import KeyMappingRecord
from ledgerkey_core.storage.provider import StorageProvider
from ledgerkey_core.transport.transport_base import BaseSession, Message
from ledgerkey_core.utils import now_ts, parse_account_id

log = get_logger("LedgerKey.Flow.RequestKey")


class RequesterState(Enum):
    INIT = "init"
    AWAITING_STATUS = "awaiting_status"
    REJECTED = "rejected"
    AWAITING_KEY = "awaiting_key"
    PERSISTED = "persisted"
    PERSISTENCE_FAILED = "persistence_failed"
    FAILED = "failed"


class HostState(Enum):
    INIT = "init"
    LOOKED_UP = "looked_up"
    SENT_NOT_FOUND = "sent_not_found"
    SENT_FOUND = "sent_found"
    PROVISIONED = "provisioned"
    PROVISION_FAILED = "provision_failed"
    ABORTED = "aborted"


def parse_search_status(value) -> AccountSearchStatus:
    try:
        return AccountSearchStatus(value)
    except (ValueError, TypeError) as e:
        raise ProtocolViolation(f"unknown account search status: {value!r}") from e


class KeyRequester:
    """Drives one run from the requesting participant's side."""

    def __init__(self, account_info: AccountInfo, session: BaseSession, storage: StorageProvider):
        self.account_info = account_info
        self.session = session
        self.storage = storage
        self.state = RequesterState.INIT
        self.issued: Optional[IssuedKey] = None

    def run(self) -> AnonymousIdentity:
        try:
            return self._run()
        except (HostRejected, PersistenceFailure):
            raise
        except Exception:
            self.state = RequesterState.FAILED
            raise

    def _run(self) -> AnonymousIdentity:
        info = self.account_info
        account_id = info.identifier

        send(self.session, Message(MSG_ACCOUNT_ID, str(account_id)), on_failure=KeyExchangeFailed)
        self.state = RequesterState.AWAITING_STATUS
        log.info(f"[REQ] asked {info.host} for a key for {account_id} ({info.name})")

        reply = expect(self.session, MSG_SEARCH_STATUS, on_closed=KeyExchangeFailed)
        status = parse_search_status(reply.payload)

        if status is AccountSearchStatus.NOT_FOUND:
            self.state = RequesterState.REJECTED
            log.warning(f"[REQ] {info.host} does not host {account_id} ({info.name})")
            raise HostRejected(info.host, account_id, info.name)
        elif status is AccountSearchStatus.FOUND:
            self.state = RequesterState.AWAITING_KEY
            self.issued = acquire_key(self.session, account_id)
        else:
            raise ProtocolViolation(f"unhandled account search status: {status}")

        identity = AnonymousIdentity(self.issued.public_key)
        self._persist(self.issued, identity)
        return identity

    def _persist(self, issued: IssuedKey, identity: AnonymousIdentity) -> None:
        # maps the key back to its account for later "who owns this key" lookups
        rec = KeyMappingRecord(
            account_id=str(issued.account_id),
            pubkey_b64=issued.pubkey_b64,
            pub_key_fpr=issued.fingerprint,
            created_at=now_ts(),
        )
        try:
            self.storage.add_key_mapping(rec)
        except Exception as e:
            self.state = RequesterState.PERSISTENCE_FAILED
            log.error(
                f"[REQ] key {issued.fingerprint} for {issued.account_id} received but mapping "
                f"not stored: {e}"
            )
            raise PersistenceFailure(
                f"mapping for key {issued.fingerprint} of account {issued.account_id} not stored: {e}",
                identity=identity,
            ) from e
        self.state = RequesterState.PERSISTED
        log.info(f"[REQ] key {issued.fingerprint} recorded for {issued.account_id}")


class KeyResponder:
    """Drives one run from the hosting participant's side."""

    def __init__(self, session: BaseSession, directory: AccountDirectory, key_service: KeyService,
                 audit: Optional[StorageProvider] = None):
        self.session = session
        self.directory = directory
        self.key_service = key_service
        self.audit = audit
        self.state = HostState.INIT

    def _receive_account_id(self):
        msg = expect(self.session, MSG_ACCOUNT_ID, on_closed=ProtocolViolation)
        try:
            return parse_account_id(msg.payload)
        except ValueError as e:
            raise ProtocolViolation(f"malformed account id from {self.session.counterparty}: {e}") from e

    def run(self) -> None:
        try:
            account_id = self._receive_account_id()
        except ProtocolViolation as e:
            self.state = HostState.ABORTED
            self.session.close()
            log.warning(f"[HOST] aborting session with {self.session.counterparty}: {e}")
            raise

        info = self.directory.lookup(account_id)
        self.state = HostState.LOOKED_UP

        if info is None:
            send(self.session, Message(MSG_SEARCH_STATUS, AccountSearchStatus.NOT_FOUND.value),
                 on_failure=KeyExchangeFailed)
            self.state = HostState.SENT_NOT_FOUND
            log.info(f"[HOST] {account_id} not hosted here, told {self.session.counterparty}")
            return

        send(self.session, Message(MSG_SEARCH_STATUS, AccountSearchStatus.FOUND.value),
             on_failure=KeyExchangeFailed)
        self.state = HostState.SENT_FOUND
        try:
            issued = provide_key(self.session, account_id, self.key_service)
        except (KeyGenerationFailed, KeyExchangeFailed, ProtocolViolation) as e:
            self.state = HostState.PROVISION_FAILED
            self.session.close()
            log.warning(f"[HOST] provisioning for {account_id} failed, closed session with "
                        f"{self.session.counterparty}: {e}")
            raise
        self.state = HostState.PROVISIONED

        if self.audit is not None:
            self.audit.log_event("key_provisioned", {
                "account_id": str(account_id),
                "pub_key_fpr": issued.fingerprint,
                "requester": self.session.counterparty,
            })


def request_key(account_info: AccountInfo, session: BaseSession, storage: StorageProvider) -> AnonymousIdentity:
    """
    Obtain a fresh key for ``account_info`` from its host over ``session``.

    Raises HostRejected when the host does not know the account. Raises
    PersistenceFailure, carrying the still-valid identity, when the key was
    received but its mapping could not be stored.
    """
    return KeyRequester(account_info, session, storage).run()


def respond_to_key_request(session: BaseSession, directory: AccountDirectory, key_service: KeyService,
                           audit: Optional[StorageProvider] = None) -> None:
    KeyResponder(session, directory, key_service, audit=audit).run()
