from __future__ import annotations

from typing import List, Optional, Sequence


class PackagerError(RuntimeError):
    """Base class for every error raised while packaging an app."""


class ValidationError(PackagerError):
    """Raised when a requested architecture or platform is not supported."""


class InferenceError(PackagerError):
    """Raised when the app name or runtime version cannot be determined."""


class ConfigError(PackagerError):
    """Raised when a request file cannot be parsed."""


class FileSystemError(PackagerError):
    """Raised when the staging area cannot be cleared or created."""


class CombinationError(PackagerError):
    """Failure scoped to a single (platform, arch) combination."""

    def __init__(self, message: str, *, platform: Optional[str] = None, arch: Optional[str] = None) -> None:
        self.platform = platform
        self.arch = arch
        super().__init__(message)


class AcquisitionError(CombinationError):
    """Raised when the runtime archive cannot be downloaded."""


class ExtractionError(CombinationError):
    """Raised when the runtime archive cannot be unpacked."""


class HookError(CombinationError):
    """Raised when an after-extract hook fails."""


class BuildError(CombinationError):
    """Raised when a platform builder cannot produce the bundle."""


class PackagingError(PackagerError):
    """Raised in best-effort mode when one or more combinations failed.

    ``app_paths`` holds the bundles that were produced anyway.
    """

    def __init__(self, errors: Sequence[PackagerError], app_paths: Sequence[str]) -> None:
        self.errors: List[PackagerError] = list(errors)
        self.app_paths: List[str] = list(app_paths)
        lines = [f"{len(self.errors)} combination(s) failed:"]
        lines.extend(f"* {error}" for error in self.errors)
        super().__init__("\n".join(lines))
