from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

Selector = Union[str, Sequence[str], None]
IgnoreRule = Union[str, Sequence[str], Callable[[str], bool], None]
AfterExtractHook = Callable[[str, str, str, str], None]

FAIL_FAST = "fail_fast"
BEST_EFFORT = "best_effort"

_ALIASES = {
    "afterExtract": "after_extract",
    "appBundleId": "app_bundle_id",
    "appVersion": "app_version",
    "source_dir": "dir",
}


@dataclass
class PackagingRequest:
    """Everything the caller asked for; name/version/ignore are filled in during resolution."""

    dir: Optional[str] = None
    name: Optional[str] = None
    version: Optional[str] = None
    arch: Selector = None
    platform: Selector = None
    all: bool = False
    out: Optional[str] = None
    overwrite: bool = False
    tmpdir: Union[str, bool, None] = None
    after_extract: List[AfterExtractHook] = field(default_factory=list)
    ignore: IgnoreRule = None
    app_bundle_id: Optional[str] = None
    app_version: Optional[str] = None
    download: Dict[str, Any] = field(default_factory=dict)
    mode: str = FAIL_FAST
    jobs: int = 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackagingRequest":
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            key = _ALIASES.get(key, key)
            if key not in known:
                raise ValueError(f"Unknown packaging option: {key}")
            kwargs[key] = value
        if kwargs.get("download") is None:
            kwargs.pop("download", None)
        return cls(**kwargs)

    def __post_init__(self) -> None:
        if callable(self.after_extract):
            self.after_extract = [self.after_extract]
        elif self.after_extract is None:
            self.after_extract = []

    def for_combination(self, platform: str, arch: str) -> "PackagingRequest":
        """Per-combination view of the options, used for output naming."""
        return dataclasses.replace(self, platform=platform, arch=arch)


@dataclass(frozen=True)
class Combination:
    """One (platform, arch, runtime version) triple slated for its own pipeline."""

    platform: str
    arch: str
    version: str
    download: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def key(self) -> str:
        return f"{self.platform}-{self.arch}"


@dataclass
class PipelineResult:
    """Outcome of a single combination pipeline."""

    combination: Combination
    status: str
    final_path: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[BaseException] = None

    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"

    @classmethod
    def completed(cls, combination: Combination, final_path: str) -> "PipelineResult":
        return cls(combination, cls.COMPLETED, final_path=final_path)

    @classmethod
    def skipped(cls, combination: Combination, reason: str) -> "PipelineResult":
        return cls(combination, cls.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, combination: Combination, error: BaseException) -> "PipelineResult":
        return cls(combination, cls.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status != self.FAILED

    def to_dict(self) -> Dict[str, Any]:
        details: Dict[str, Any] = {}
        if self.final_path is not None:
            details["final_path"] = self.final_path
        if self.reason is not None:
            details["reason"] = self.reason
        if self.error is not None:
            details["error"] = str(self.error)
        return {
            "platform": self.combination.platform,
            "arch": self.combination.arch,
            "version": self.combination.version,
            "status": self.status,
            "details": details,
        }


@dataclass
class RunReport:
    """Ordered pipeline results for one packaging run."""

    results: List[PipelineResult] = field(default_factory=list)

    @property
    def app_paths(self) -> List[str]:
        return [r.final_path for r in self.results if r.status == PipelineResult.COMPLETED and r.final_path]

    @property
    def failures(self) -> List[PipelineResult]:
        return [r for r in self.results if r.status == PipelineResult.FAILED]

    @property
    def skipped(self) -> List[PipelineResult]:
        return [r for r in self.results if r.status == PipelineResult.SKIPPED]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_paths": self.app_paths,
            "results": [r.to_dict() for r in self.results],
        }
