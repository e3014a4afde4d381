# ledgerkey_core/flows/key_exchange.py
"""
Key acquisition (requester) and key provisioning (host).

    requester                         host
    key_request {account_id, challenge}  ->
                                      generate pair, retain private half
                                 <-   signed_key {account_id, pubkey_b64, signature}
    verify signature over the claim

The signature is made with the new key over ``key_claim_bytes``, proving the
host holds the private half for exactly this request.
"""

from __future__ import annotations
import os
from uuid import UUID

from ledgerkey_core.constants import CHALLENGE_BYTES, MSG_KEY_REQUEST, MSG_SIGNED_KEY
from ledgerkey_core.crypto import KeyService, ed25519_sign, ed25519_verify, key_claim_bytes
from ledgerkey_core.errors import KeyExchangeFailed, KeyGenerationFailed, ProtocolViolation
from ledgerkey_core.flows.messaging import expect, send
from ledgerkey_core.logger import get_logger
from ledgerkey_core.models import IssuedKey
from ledgerkey_core.transport.transport_base import BaseSession, Message
from ledgerkey_core.utils import b64d, b64e, parse_account_id

log = get_logger("LedgerKey.Flow.KeyExchange")


def acquire_key(session: BaseSession, correlation_id: UUID) -> IssuedKey:
    """Pull a freshly minted key for ``correlation_id`` from the host."""
    challenge = os.urandom(CHALLENGE_BYTES)
    send(session, Message(MSG_KEY_REQUEST, {
        "account_id": str(correlation_id),
        "challenge": b64e(challenge),
    }), on_failure=KeyExchangeFailed)
    log.debug(f"[KEYX] key_request sent to {session.counterparty} for {correlation_id}")

    msg = expect(session, MSG_SIGNED_KEY, on_closed=KeyExchangeFailed)
    try:
        account_id = parse_account_id(msg.payload["account_id"])
        public_key = b64d(msg.payload["pubkey_b64"])
        signature = b64d(msg.payload["signature"])
    except (TypeError, KeyError, ValueError, AttributeError) as e:
        raise ProtocolViolation(f"malformed signed_key from {session.counterparty}: {e}") from e

    if account_id != correlation_id:
        raise KeyExchangeFailed(
            f"host {session.counterparty} issued a key for {account_id}, expected {correlation_id}"
        )
    if not ed25519_verify(public_key, signature, key_claim_bytes(challenge, correlation_id, public_key)):
        raise KeyExchangeFailed(f"host {session.counterparty} did not prove possession of the issued key")

    log.info(f"[KEYX] key acquired from {session.counterparty} for {correlation_id}")
    return IssuedKey(account_id=correlation_id, public_key=public_key)


def provide_key(session: BaseSession, account_id: UUID, key_service: KeyService) -> IssuedKey:
    """
    Mint a key for ``account_id`` and send its public half.

    On key-service failure nothing is sent and nothing is kept in custody;
    the caller closes the session so the requester stops waiting.
    """
    msg = expect(session, MSG_KEY_REQUEST, on_closed=KeyExchangeFailed)
    try:
        requested = parse_account_id(msg.payload["account_id"])
        challenge = b64d(msg.payload["challenge"])
    except (TypeError, KeyError, ValueError, AttributeError) as e:
        raise ProtocolViolation(f"malformed key_request from {session.counterparty}: {e}") from e
    if requested != account_id:
        raise ProtocolViolation(f"key_request for {requested} after lookup of {account_id}")

    try:
        public_key, private_key = key_service.generate_key_pair(account_id)
        signature = ed25519_sign(private_key, key_claim_bytes(challenge, account_id, public_key))
        # custody moves to the key service only once the claim is signed
        key_service.retain(account_id, public_key, private_key)
        del private_key
    except Exception as e:
        log.error(f"[KEYX] key generation failed for {account_id}: {e}")
        raise KeyGenerationFailed(f"key service failed for {account_id}: {e}") from e

    send(session, Message(MSG_SIGNED_KEY, {
        "account_id": str(account_id),
        "pubkey_b64": b64e(public_key),
        "signature": b64e(signature),
    }), on_failure=KeyExchangeFailed)
    log.info(f"[KEYX] key provided to {session.counterparty} for {account_id}")
    return IssuedKey(account_id=account_id, public_key=public_key)
