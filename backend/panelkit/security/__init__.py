"""
panelkit/security - authorization gate, policies and panel authentication
"""
from panelkit.security.auth import (
    Authenticate,
    create_access_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from panelkit.security.gate import AuthorizationGate, Policy, gate, model_key

__all__ = [
    "Authenticate",
    "create_access_token",
    "decode_token",
    "get_password_hash",
    "verify_password",
    "AuthorizationGate",
    "Policy",
    "gate",
    "model_key",
]
