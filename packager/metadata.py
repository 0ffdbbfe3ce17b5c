"""Infer the app name and runtime version from the project's package.json."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .errors import InferenceError
from .models import PackagingRequest

logger = logging.getLogger(__name__)

DESCRIPTOR_NAME = "package.json"
# Current package name first, then the legacy prebuilt one.
RUNTIME_PACKAGES = ("electron", "electron-prebuilt")


@dataclass
class ProjectDescriptor:
    name: Optional[str] = None
    product_name: Optional[str] = None
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectDescriptor":
        return cls(
            name=data.get("name"),
            product_name=data.get("productName"),
            dependencies=dict(data.get("dependencies") or {}),
            dev_dependencies=dict(data.get("devDependencies") or {}),
        )

    def declared_version(self, package: str) -> Optional[str]:
        return self.dependencies.get(package) or self.dev_dependencies.get(package)


DescriptorReader = Callable[[Path], Optional[ProjectDescriptor]]
VersionResolver = Callable[[str, Path], str]


def anchor_directory(directory: str | Path) -> Path:
    """Anchor a ``.``-relative project directory at the current working directory."""

    text = str(directory)
    if text.startswith("."):
        return Path(os.environ.get("PWD") or os.getcwd()) / text
    return Path(text)


def read_descriptor(directory: Path) -> Optional[ProjectDescriptor]:
    path = Path(directory) / DESCRIPTOR_NAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InferenceError(f"Unable to parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise InferenceError(f"{path} must contain a JSON object")
    return ProjectDescriptor.from_dict(data)


def resolve_installed_version(package: str, base_dir: Path) -> str:
    """Find the version of ``package`` installed in a ``node_modules`` visible from ``base_dir``."""

    base_dir = Path(base_dir).resolve()
    for candidate_dir in (base_dir, *base_dir.parents):
        manifest = candidate_dir / "node_modules" / package / DESCRIPTOR_NAME
        if not manifest.is_file():
            continue
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise InferenceError(f"Unable to parse {manifest}: {exc}") from exc
        version = data.get("version") if isinstance(data, dict) else None
        if not version:
            raise InferenceError(f"{manifest} does not declare a version")
        return str(version)
    raise InferenceError(f"Cannot find module '{package}' from '{base_dir}'")


def resolve_name_and_version(
    request: PackagingRequest,
    directory: str | Path,
    *,
    descriptor_reader: DescriptorReader = read_descriptor,
    version_resolver: VersionResolver = resolve_installed_version,
) -> None:
    """Fill in ``request.name`` and ``request.version`` in place.

    Leaves ``version`` unset when it was not supplied and no runtime dependency
    is declared; the caller reports that.
    """

    if request.name and request.version:
        return

    project_dir = anchor_directory(directory)
    descriptor = descriptor_reader(project_dir)
    if descriptor is None:
        raise InferenceError(f"no {DESCRIPTOR_NAME} file found in {project_dir}")

    request.name = request.name or descriptor.product_name or descriptor.name

    if request.version:
        return

    for package in RUNTIME_PACKAGES:
        declared = descriptor.declared_version(package)
        if not declared:
            continue
        logger.debug(
            "Inferring target Electron version from `%s` dependency or devDependency in %s",
            package,
            DESCRIPTOR_NAME,
        )
        request.version = version_resolver(package, project_dir)
        return
