"""
ledgerkey_core.crypto
---------------------
Cryptographic primitives for LedgerKey:

- Ed25519: fresh per-request account keys and signatures made with them
- Key claims: the bytes a host signs to prove it holds a newly issued key
- KeyService: host-side key generation and custody of private halves

Only raw public key bytes ever leave the host; private halves stay in the
host's storage provider.
"""

from __future__ import annotations
from typing import Tuple
from uuid import UUID
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ed25519
import hashlib
from .constants import KEY_CLAIM_INFO
from .utils import b64e, b64d, now_ts

# --------- Ed25519 (sign/verify) ----------
def ed25519_generate() -> Tuple[bytes, bytes]:
    sk = ed25519.Ed25519PrivateKey.generate()
    pk = sk.public_key()
    return sk.private_bytes_raw(), pk.public_bytes_raw()

def ed25519_sign(priv_raw: bytes, data: bytes) -> bytes:
    sk = ed25519.Ed25519PrivateKey.from_private_bytes(priv_raw)
    return sk.sign(data)

def ed25519_verify(pub_raw: bytes, sig: bytes, data: bytes) -> bool:
    try:
        ed25519.Ed25519PublicKey.from_public_bytes(pub_raw).verify(sig, data)
        return True
    except (InvalidSignature, ValueError):
        return False

# --------- Key claims ----------
def key_claim_bytes(challenge: bytes, account_id: UUID, public_key: bytes) -> bytes:
    """Bytes signed by the new key: binds it to the requester's challenge and the account."""
    return b"|".join([KEY_CLAIM_INFO, challenge, str(account_id).encode("ascii"), public_key])

def compute_pubkey_fingerprint(pubkey_b64: str) -> str:
    """
    Compute a stable fingerprint for an Ed25519 public key.

    - Input: base64-encoded Ed25519 public key
    - Output: hex-encoded SHA256 hash truncated to 32 chars

    Key mappings are keyed by this value, so "which account owns this key"
    is a single indexed lookup.
    """
    raw = b64d(pubkey_b64)
    return hashlib.sha256(raw).hexdigest()[:32]


# --------- Key service ----------
class KeyService:
    """Contract consumed by the host's provisioning step."""

    def generate_key_pair(self, account_id: UUID) -> Tuple[bytes, bytes]:
        """Return (public_raw, private_raw) for a brand new key bound to ``account_id``."""
        raise NotImplementedError

    def retain(self, account_id: UUID, public_raw: bytes, private_raw: bytes) -> None:
        """Take custody of the private half under the account's signing identity."""
        raise NotImplementedError

    def sign(self, account_id: UUID, pubkey_b64: str, data: bytes) -> bytes:
        raise NotImplementedError


class LocalKeyService(KeyService):
    """Ed25519 key service keeping private halves in a local storage provider."""

    def __init__(self, storage):
        self.storage = storage

    def generate_key_pair(self, account_id: UUID) -> Tuple[bytes, bytes]:
        priv, pub = ed25519_generate()
        return pub, priv

    def retain(self, account_id: UUID, public_raw: bytes, private_raw: bytes) -> None:
        from .storage.models import SigningKeyRecord

        pubkey_b64 = b64e(public_raw)
        self.storage.put_signing_key(SigningKeyRecord(
            account_id=str(account_id),
            pubkey_b64=pubkey_b64,
            privkey_b64=b64e(private_raw),
            pub_key_fpr=compute_pubkey_fingerprint(pubkey_b64),
            created_at=now_ts(),
        ))

    def sign(self, account_id: UUID, pubkey_b64: str, data: bytes) -> bytes:
        rec = self.storage.get_signing_key(compute_pubkey_fingerprint(pubkey_b64))
        if rec is None or rec.account_id != str(account_id):
            raise LookupError(f"no signing key {pubkey_b64} held for account {account_id}")
        return ed25519_sign(b64d(rec.privkey_b64), data)
