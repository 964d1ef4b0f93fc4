"""Bearer token validation for the administrative API."""

from bukialo.core.auth.jwt import create_access_token, decode_token

__all__ = ["create_access_token", "decode_token"]
