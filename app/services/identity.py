"""Caller identity — pseudonymous key used for quota accounting.

An explicit ``x-user`` header wins; otherwise the key is derived from the
client address and user agent. Keys are SHA-256 hex digests, stable across
restarts.
"""

import hashlib

from fastapi import Request

DESCRIPTOR_MAX_CHARS = 200
UNKNOWN_ADDRESS = "0.0.0.0"


def _digest(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def resolve_identity(
    explicit_id: str | None,
    source_address: str,
    client_descriptor: str,
) -> str:
    """Return the identity key for a caller."""
    explicit = (explicit_id or "").strip()
    if explicit:
        return _digest(f"user:{explicit}")
    descriptor = (client_descriptor or "")[:DESCRIPTOR_MAX_CHARS]
    return _digest(f"{source_address}|{descriptor}")


def client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if forwarded:
        return forwarded
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_ADDRESS


def identity_from_request(request: Request) -> str:
    return resolve_identity(
        request.headers.get("x-user"),
        client_address(request),
        request.headers.get("user-agent", ""),
    )
