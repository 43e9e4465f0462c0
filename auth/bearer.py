"""
auth/bearer.py -- Authorization header parsing.

The same parser serves two schemes:
  Bearer <token>  -- access tokens and refresh tokens (meaning depends on the
                     endpoint, not on the token).
  ApiKey <key>    -- the payment provider's webhook key.

Parsing rules:
  - Missing or empty header -> MissingHeader.
  - The value is split on any run of whitespace, so leading, trailing and
    repeated spaces are tolerated.
  - The first segment must equal the scheme, case-insensitively, or
    MalformedScheme is raised.
  - Nothing after the scheme -> EmptyToken.
  - More than one segment after the scheme are rejoined with single spaces and
    returned as the token. This is deliberately lenient: a token that happens
    to contain whitespace survives, and the token validator rejects garbage.

Layer rule: no imports from api/, chirps/, or core/.
"""

from __future__ import annotations

from collections.abc import Mapping

AUTHORIZATION_HEADER = "Authorization"


class CredentialError(Exception):
    """Base class for Authorization header parse failures."""


class MissingHeader(CredentialError):
    pass


class MalformedScheme(CredentialError):
    pass


class EmptyToken(CredentialError):
    pass


def parse_authorization(value: str | None, scheme: str = "Bearer") -> str:
    """Return the credential from a raw Authorization header value."""
    if not value:
        raise MissingHeader("authorization header not found")
    parts = value.split()
    if not parts or parts[0].lower() != scheme.lower():
        raise MalformedScheme(f"authorization header must be in format '{scheme} TOKEN'")
    token = " ".join(parts[1:])
    if not token:
        raise EmptyToken("token cannot be empty")
    return token


def get_bearer_token(headers: Mapping[str, str]) -> str:
    """Extract the bearer token from a header mapping.

    Starlette's Headers is case-insensitive; plain dicts are looked up with the
    canonical header name.
    """
    return parse_authorization(headers.get(AUTHORIZATION_HEADER), "Bearer")


def get_api_key(headers: Mapping[str, str]) -> str:
    """Extract the key from an `Authorization: ApiKey <key>` header."""
    return parse_authorization(headers.get(AUTHORIZATION_HEADER), "ApiKey")
