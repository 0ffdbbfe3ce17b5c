"""Platform builders turning an extracted runtime into the final app bundle.

Each builder drops the runtime's default app, copies the project into the
runtime's resources directory, renames the executable after the app and
moves the result to ``<out>/<name>-<platform>-<arch>``.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import plistlib
import re
import shutil
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set, Type

from .errors import BuildError
from .metadata import anchor_directory
from .models import PackagingRequest
from .targets import SupportedTargets
from .utils import move_path, remove_path

logger = logging.getLogger(__name__)

DEFAULT_APP_ENTRIES = ("default_app", "default_app.asar")


def generate_final_path(options: PackagingRequest) -> Path:
    out_dir = Path(options.out) if options.out else Path.cwd()
    return out_dir / f"{options.name}-{options.platform}-{options.arch}"


def _output_paths(options: PackagingRequest) -> List[Path]:
    """Final bundle paths for every supported target."""

    targets = SupportedTargets.default()
    return [
        generate_final_path(dataclasses.replace(options, platform=platform, arch=arch))
        for platform in targets.platforms
        for arch in targets.archs
    ]


def _make_ignore_filter(
    options: PackagingRequest, source: Path, skip: Iterable[Path] = ()
) -> Callable[[str, List[str]], Set[str]]:
    rule = options.ignore
    predicate: Optional[Callable[[str], bool]] = None
    patterns: List[re.Pattern[str]] = []
    if callable(rule):
        predicate = rule
    elif isinstance(rule, str):
        patterns = [re.compile(rule)]
    elif rule:
        patterns = [re.compile(pattern) for pattern in rule]

    skip_dirs = {Path(path).resolve() for path in skip}
    skip_dirs.update(path.resolve() for path in _output_paths(options))
    if options.out:
        skip_dirs.add(Path(options.out).resolve())

    def _ignore(dirname: str, names: List[str]) -> Set[str]:
        ignored: Set[str] = set()
        for name in names:
            full_path = Path(dirname) / name
            relative = "/" + full_path.relative_to(source).as_posix()
            if full_path.resolve() in skip_dirs:
                ignored.add(name)
            elif predicate is not None and predicate(relative):
                ignored.add(name)
            elif any(pattern.search(relative) for pattern in patterns):
                ignored.add(name)
        return ignored

    return _ignore


class PlatformBuilder:
    """Shared bundle layout steps; subclasses describe where things live."""

    executable_name = "electron"

    def final_path(self, options: PackagingRequest) -> Path:
        return generate_final_path(options)

    def resources_dir(self, build_dir: Path) -> Path:
        return build_dir / "resources"

    def renamed_executable(self, options: PackagingRequest) -> str:
        return str(options.name)

    def build(self, options: PackagingRequest, build_dir: str | Path) -> str:
        build_dir = Path(build_dir)
        resources = self.resources_dir(build_dir)
        for entry in DEFAULT_APP_ENTRIES:
            remove_path(resources / entry)

        self.copy_app(options, resources / "app", skip=[build_dir])
        self.update_metadata(options, build_dir)
        self.rename_executable(options, build_dir)
        return str(self.move_app(options, build_dir))

    def copy_app(self, options: PackagingRequest, destination: Path, skip: Iterable[Path] = ()) -> None:
        source = anchor_directory(options.dir or os.getcwd()).resolve()
        if not source.is_dir():
            raise BuildError(f"Source directory {source} does not exist")
        logger.debug("Copying %s to %s", source, destination)
        shutil.copytree(
            source,
            destination,
            symlinks=True,
            ignore=_make_ignore_filter(options, source, skip),
            dirs_exist_ok=True,
        )

    def update_metadata(self, options: PackagingRequest, build_dir: Path) -> None:
        pass

    def rename_executable(self, options: PackagingRequest, build_dir: Path) -> None:
        source = build_dir / self.executable_name
        if not source.exists():
            raise BuildError(f"Runtime executable {source} not found in extracted archive")
        source.rename(build_dir / self.renamed_executable(options))

    def move_app(self, options: PackagingRequest, build_dir: Path) -> Path:
        final_path = self.final_path(options)
        if final_path.resolve() == build_dir.resolve():
            return final_path
        if final_path.exists():
            if not options.overwrite:
                raise BuildError(f"Output directory {final_path} already exists, use overwrite to replace it")
            remove_path(final_path)
        return move_path(build_dir, final_path)


class LinuxBuilder(PlatformBuilder):
    executable_name = "electron"


class Win32Builder(PlatformBuilder):
    executable_name = "electron.exe"

    def renamed_executable(self, options: PackagingRequest) -> str:
        return f"{options.name}.exe"


class MacBuilder(PlatformBuilder):
    """darwin and mas share the ``.app`` bundle layout."""

    executable_name = "Electron.app"

    def resources_dir(self, build_dir: Path) -> Path:
        return build_dir / self.executable_name / "Contents" / "Resources"

    def renamed_executable(self, options: PackagingRequest) -> str:
        return f"{options.name}.app"

    def bundle_id(self, options: PackagingRequest) -> str:
        if options.app_bundle_id:
            return options.app_bundle_id
        slug = re.sub(r"[^A-Za-z0-9.-]", "", str(options.name)).lower()
        return f"com.electron.{slug}"

    def update_metadata(self, options: PackagingRequest, build_dir: Path) -> None:
        plist_path = build_dir / self.executable_name / "Contents" / "Info.plist"
        if not plist_path.is_file():
            return
        with open(plist_path, "rb") as handle:
            info = plistlib.load(handle)
        info["CFBundleDisplayName"] = options.name
        info["CFBundleName"] = options.name
        info["CFBundleIdentifier"] = self.bundle_id(options)
        if options.app_version:
            info["CFBundleShortVersionString"] = options.app_version
            info["CFBundleVersion"] = options.app_version
        with open(plist_path, "wb") as handle:
            plistlib.dump(info, handle)


_BUILDERS: Dict[str, Type[PlatformBuilder]] = {
    "linux": LinuxBuilder,
    "mac": MacBuilder,
    "win32": Win32Builder,
}


def builder_for(builder_id: str) -> PlatformBuilder:
    try:
        return _BUILDERS[builder_id]()
    except KeyError as exc:
        raise BuildError(f"No builder registered for {builder_id}") from exc


def default_builders(builder_ids: Iterable[str]) -> Dict[str, PlatformBuilder]:
    return {builder_id: builder_for(builder_id) for builder_id in set(builder_ids)}
