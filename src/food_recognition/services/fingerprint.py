"""Deterministic cache keys derived from request shape or content."""

import hashlib
import json

ANONYMOUS_IDENTITY = "anon"

FOOD_NAMESPACE = "food"
NUTRITION_NAMESPACE = "nutrition"
CONFIRMED_NAMESPACE = "confirmed"


def request_fingerprint(
    method: str,
    path: str,
    body: object | None = None,
    query: dict[str, object] | None = None,
) -> str:
    """Return a SHA-256 digest of the canonical request descriptor.

    Top-level fields are always serialized in the order method, path, body,
    query. Nested mappings are serialized with sorted keys so that two
    bodies differing only in key order produce the same fingerprint.
    """
    descriptor = {
        "method": method.upper(),
        "path": path,
        "body": _canonical(body if body is not None else {}),
        "query": _canonical(query or {}),
    }
    serialized = json.dumps(descriptor, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def content_fingerprint(data: bytes) -> str:
    """Return a SHA-256 digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def cache_key(namespace: str, *parts: object) -> str:
    """Join a namespace and key parts into a cache key."""
    return ":".join([namespace, *(str(part) for part in parts)])


def identity_for(user_id: int | None) -> str:
    """Return the caching identity for a user, shared for anonymous callers."""
    if user_id is None:
        return ANONYMOUS_IDENTITY
    return str(user_id)


def _canonical(value: object) -> object:
    if isinstance(value, dict):
        return {str(key): _canonical(value[key]) for key in sorted(value, key=str)}
    if isinstance(value, list | tuple):
        return [_canonical(item) for item in value]
    return value
