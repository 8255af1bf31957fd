"""Sandbox path validation.

Every path is canonicalized with ``os.path.realpath`` before it is compared
against the policy roots, which are canonicalized the same way when the policy
is built. Containment is decided component-wise, so ``/home/ann`` never
contains ``/home/anna``.
"""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from sparklefinder.errors import AccessDenied, NotFound, TooLarge

MAX_FILENAME_LENGTH = 255

PathLike = str | os.PathLike


def canonicalize(path: PathLike) -> str:
    """Expand ``~`` and resolve symlinks and ``..`` segments to an absolute path."""
    return os.path.realpath(os.path.expanduser(os.fspath(path)))


def is_within(path: str, root: str) -> bool:
    """Return True if canonical ``path`` equals ``root`` or lies below it."""
    return path == root or path.startswith(os.path.join(root, ""))


def default_allowed_paths() -> list[Path]:
    home = Path.home()
    return [
        home,
        home / "Documents",
        home / "Downloads",
        home / "Desktop",
        home / "Sparkle",
    ]


def default_blocked_paths() -> list[Path]:
    home = Path.home()
    return [
        Path("/etc"),
        Path("/sys"),
        Path("/proc"),
        Path("/dev"),
        Path("/private/etc"),
        Path("/System"),
        Path("/Library/Security"),
        home / ".ssh",
        home / ".gnupg",
        home / ".aws",
        home / ".config" / "gcloud",
    ]


def _canonical_roots(paths: Iterable[PathLike]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(canonicalize(p) for p in paths))


@dataclass(slots=True, frozen=True)
class SecurityPolicy:
    """Immutable access policy. Blocked roots always win over allowed roots."""

    allowed_paths: Sequence[PathLike] = field(default_factory=default_allowed_paths)
    blocked_paths: Sequence[PathLike] = ()
    max_file_size: int | None = None
    allow_symlinks: bool = False
    include_default_blocks: bool = True

    def __post_init__(self) -> None:
        blocked = list(self.blocked_paths)
        if self.include_default_blocks:
            blocked = [*default_blocked_paths(), *blocked]
        object.__setattr__(self, "allowed_paths", _canonical_roots(self.allowed_paths))
        object.__setattr__(self, "blocked_paths", _canonical_roots(blocked))

    @classmethod
    def for_sandbox(
        cls,
        root: PathLike,
        *,
        blocked_paths: Sequence[PathLike] = (),
        max_file_size: int | None = None,
        allow_symlinks: bool = False,
    ) -> "SecurityPolicy":
        """Policy that allows only the sandbox root."""
        return cls(
            allowed_paths=[root],
            blocked_paths=blocked_paths,
            max_file_size=max_file_size,
            allow_symlinks=allow_symlinks,
        )


class PathGuard:
    """Validates paths against a :class:`SecurityPolicy` before any disk access."""

    def __init__(self, policy: SecurityPolicy) -> None:
        self.policy = policy

    def is_blocked(self, canonical_path: str) -> bool:
        return any(is_within(canonical_path, root) for root in self.policy.blocked_paths)

    def is_allowed(self, canonical_path: str) -> bool:
        return any(is_within(canonical_path, root) for root in self.policy.allowed_paths)

    def contains(self, path: PathLike) -> bool:
        """Non-raising containment check; does not touch the disk beyond resolution."""
        resolved = canonicalize(path)
        return not self.is_blocked(resolved) and self.is_allowed(resolved)

    def validate(self, requested_path: PathLike, *, enforce_size: bool = True) -> Path:
        """Return the canonical path or raise a :class:`SandboxError` subclass.

        ``enforce_size=False`` skips the size ceiling; indexing only reads a
        bounded prefix of each file and binds to containment alone.
        """
        raw = os.path.expanduser(os.fspath(requested_path))
        if "\0" in raw:
            raise AccessDenied(f"Access denied: invalid path {requested_path!r}")

        resolved = os.path.realpath(raw)

        if self.is_blocked(resolved):
            raise AccessDenied(f"Access denied: {requested_path} is in a blocked directory")
        if not self.is_allowed(resolved):
            raise AccessDenied(f"Access denied: {requested_path} is outside allowed directories")
        if not self.policy.allow_symlinks and os.path.islink(os.path.abspath(raw)):
            raise AccessDenied(f"Access denied: symbolic links are not allowed ({requested_path})")

        try:
            st = os.stat(resolved)
        except FileNotFoundError as exc:
            raise NotFound(f"Path does not exist: {requested_path}") from exc

        limit = self.policy.max_file_size
        if enforce_size and limit is not None and stat.S_ISREG(st.st_mode) and st.st_size > limit:
            raise TooLarge(f"File too large: {st.st_size} bytes exceeds limit of {limit}")

        return Path(resolved)

    def validate_search_path(self, requested_path: PathLike) -> Path:
        """Validate a location that is going to be enumerated."""
        validated = self.validate(requested_path)
        if not validated.is_dir():
            raise NotADirectoryError(f"Search path must be a directory: {requested_path}")
        return validated


def sanitize_filename(filename: str) -> str:
    """Strip traversal segments and separators from a single file name."""
    sanitized = filename.replace("..", "").replace("/", "_").replace("\\", "_")
    if sanitized.startswith("."):
        sanitized = "_" + sanitized[1:]

    if len(sanitized) > MAX_FILENAME_LENGTH:
        stem, ext = os.path.splitext(sanitized)
        return stem[: MAX_FILENAME_LENGTH - len(ext)] + ext
    return sanitized
