"""Error types raised by the sandbox layer."""

from __future__ import annotations


class SandboxError(Exception):
    """Base class for sandbox failures."""


class AccessDenied(SandboxError, PermissionError):
    """Path is outside the allow-list, inside the block-list, or a forbidden symlink."""


class NotFound(SandboxError, FileNotFoundError):
    """Path does not exist."""


class TooLarge(SandboxError):
    """File exceeds the configured size ceiling."""


class IndexNotReady(SandboxError):
    """Index was queried before its initial scan completed."""
