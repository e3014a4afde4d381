# ledgerkey_core/flows/__init__.py
from ledgerkey_core.flows.key_exchange import acquire_key, provide_key
from ledgerkey_core.flows.request_key import (
    KeyRequester,
    KeyResponder,
    RequesterState,
    HostState,
    request_key,
    respond_to_key_request,
)

__all__ = [
    "acquire_key",
    "provide_key",
    "KeyRequester",
    "KeyResponder",
    "RequesterState",
    "HostState",
    "request_key",
    "respond_to_key_request",
]
