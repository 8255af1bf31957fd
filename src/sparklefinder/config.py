"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from sparklefinder.security.guard import SecurityPolicy

DEFAULT_SANDBOX_ROOT = Path("~/Sparkle")
DEFAULT_MAX_FILE_SIZE = 100 * 1024 * 1024


@dataclass(slots=True)
class AppConfig:
    sandbox_root: Path = DEFAULT_SANDBOX_ROOT
    max_file_size: int | None = DEFAULT_MAX_FILE_SIZE
    allow_symlinks: bool = False
    watch_depth: int = 5
    auto_rename: bool = True
    watcher_enabled: bool = True
    track_downloads: bool = False
    downloads_path: Path = Path("~/Downloads")
    # None means the sandbox root is the only allowed location
    allowed_paths: Sequence[Path] | None = None
    blocked_paths: Sequence[Path] = ()

    def resolve_sandbox_root(self) -> Path:
        return Path(self.sandbox_root).expanduser().absolute()

    def resolve_downloads_path(self) -> Path:
        return Path(self.downloads_path).expanduser().absolute()

    def build_policy(self) -> SecurityPolicy:
        if self.allowed_paths is None and not self.track_downloads:
            return SecurityPolicy.for_sandbox(
                self.resolve_sandbox_root(),
                blocked_paths=self.blocked_paths,
                max_file_size=self.max_file_size,
                allow_symlinks=self.allow_symlinks,
            )
        allowed = self.allowed_paths
        if allowed is None:
            # Tracked downloads must pass the guard to be returned.
            allowed = [self.resolve_sandbox_root(), self.resolve_downloads_path()]
        return SecurityPolicy(
            allowed_paths=allowed,
            blocked_paths=self.blocked_paths,
            max_file_size=self.max_file_size,
            allow_symlinks=self.allow_symlinks,
        )
