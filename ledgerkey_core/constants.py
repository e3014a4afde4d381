# ledgerkey_core/constants.py
"""
Protocol constants and environment-driven defaults.

Environment Variables:
    LEDGERKEY_STORAGE_PROVIDER: sqlite | memory (default: sqlite)
    LEDGERKEY_DB_PATH: SQLite file for key mappings (default: db/ledgerkey_state.db)
    LEDGERKEY_TRANSPORT: session transport (default: local)
    LEDGERKEY_SESSION_TIMEOUT: seconds a receive may block; unset or invalid means no timeout
"""

import os
from typing import Final, Optional

PROTOCOL_VERSION: Final[str] = "1.0"

# Wire message kinds, in protocol order
MSG_ACCOUNT_ID: Final[str] = "account_id"          # requester -> host
MSG_SEARCH_STATUS: Final[str] = "search_status"    # host -> requester
MSG_KEY_REQUEST: Final[str] = "key_request"        # requester -> host
MSG_SIGNED_KEY: Final[str] = "signed_key"          # host -> requester

CHALLENGE_BYTES: Final[int] = 32
KEY_CLAIM_INFO: Final[bytes] = b"ledgerkey-key-claim-v1"


def session_timeout() -> Optional[float]:
    """Per-receive timeout in seconds, or None to block until the session closes."""
    raw = os.getenv("LEDGERKEY_SESSION_TIMEOUT", "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        from ledgerkey_core.logger import get_logger

        get_logger("LedgerKey.Config").warning(
            f"[CONFIG] ignoring LEDGERKEY_SESSION_TIMEOUT={raw!r}: not a number of seconds"
        )
        return None
    return value if value > 0 else None
