"""Supported architectures/platforms and the validation of requested targets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import ValidationError
from .models import Combination, Selector

logger = logging.getLogger(__name__)

MAC_PLATFORMS = frozenset({"darwin", "mas"})

_DEFAULT_ARCHS: Tuple[str, ...] = ("ia32", "x64")
_DEFAULT_PLATFORMS: Dict[str, str] = {
    # platform -> builder id
    "darwin": "mac",
    "linux": "linux",
    "mas": "mac",
    "win32": "win32",
}


def is_platform_mac(platform: str) -> bool:
    return platform in MAC_PLATFORMS


@dataclass(frozen=True)
class SupportedTargets:
    """Immutable registry of the architectures and platforms that can be packaged."""

    archs: Tuple[str, ...]
    platforms: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "archs", tuple(self.archs))
        object.__setattr__(self, "platforms", MappingProxyType(dict(self.platforms)))

    @classmethod
    def default(cls) -> "SupportedTargets":
        return _DEFAULT_TARGETS

    def builder_id(self, platform: str) -> str:
        try:
            return self.platforms[platform]
        except KeyError as exc:
            raise ValidationError(f"Unsupported platform {platform}") from exc

    def validate_archs(self, selector: Selector) -> List[str]:
        return validate_list(selector, self.archs, "arch")

    def validate_platforms(self, selector: Selector) -> List[str]:
        return validate_list(selector, self.platforms, "platform")


_DEFAULT_TARGETS = SupportedTargets(archs=_DEFAULT_ARCHS, platforms=_DEFAULT_PLATFORMS)


def validate_list(selector: Selector, supported: Iterable[str], name: str) -> List[str]:
    """Normalize an arch/platform selector into a list of supported entries.

    ``selector`` is ``"all"``, a comma separated string or a list. Raises
    :class:`ValidationError` for an empty selector or the first unsupported entry.
    """

    supported_keys = list(supported)
    if not selector:
        raise ValidationError(f"Must specify {name}")
    if selector == "all":
        return supported_keys

    if isinstance(selector, str):
        entries = [entry.strip() for entry in selector.split(",")]
    else:
        entries = list(selector)
    for entry in entries:
        if entry not in supported_keys:
            raise ValidationError(
                f"Unsupported {name} {entry}; must be one of: {', '.join(supported_keys)}"
            )
    return entries


def enumerate_combinations(
    archs: Sequence[str],
    platforms: Sequence[str],
    version: str,
    download: Optional[Mapping[str, Any]] = None,
) -> List[Combination]:
    combinations: List[Combination] = []
    for arch in archs:
        for platform in platforms:
            # There are no 32-bit runtime releases for the mac family.
            if is_platform_mac(platform) and arch == "ia32":
                logger.debug("Skipping unsupported combination %s-%s", platform, arch)
                continue
            combinations.append(Combination(platform, arch, version, dict(download or {})))
    return combinations
