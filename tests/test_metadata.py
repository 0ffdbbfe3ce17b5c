from __future__ import annotations

import json
from pathlib import Path

import pytest

from packager.errors import InferenceError
from packager.metadata import anchor_directory, read_descriptor, resolve_installed_version, resolve_name_and_version
from packager.models import PackagingRequest


def _write_package(directory: Path, payload: dict) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "package.json").write_text(json.dumps(payload))


def _install(directory: Path, package: str, version: str) -> None:
    _write_package(directory / "node_modules" / package, {"name": package, "version": version})


def _forbidden(*args, **kwargs):
    raise AssertionError("no I/O expected")


def test_supplied_name_and_version_skip_all_io(tmp_path: Path) -> None:
    request = PackagingRequest(name="App", version="1.0.0")
    resolve_name_and_version(
        request,
        tmp_path / "missing",
        descriptor_reader=_forbidden,
        version_resolver=_forbidden,
    )
    assert (request.name, request.version) == ("App", "1.0.0")


def test_product_name_wins_over_name(tmp_path: Path) -> None:
    _write_package(tmp_path, {"name": "my-app", "productName": "My App", "devDependencies": {"electron": "^9.0.0"}})
    _install(tmp_path, "electron", "9.0.0")
    request = PackagingRequest()
    resolve_name_and_version(request, tmp_path)
    assert request.name == "My App"
    assert request.version == "9.0.0"


def test_name_fallback_and_prebuilt_dependency(tmp_path: Path) -> None:
    _write_package(tmp_path, {"name": "my-app", "dependencies": {"electron-prebuilt": "1.2.0"}})
    _install(tmp_path, "electron-prebuilt", "1.2.3")
    request = PackagingRequest()
    resolve_name_and_version(request, tmp_path)
    assert request.name == "my-app"
    assert request.version == "1.2.3"


def test_current_package_preferred_over_prebuilt(tmp_path: Path) -> None:
    _write_package(
        tmp_path,
        {"name": "a", "dependencies": {"electron-prebuilt": "1.0.0"}, "devDependencies": {"electron": "2.0.0"}},
    )
    seen = []

    def resolver(package: str, base_dir: Path) -> str:
        seen.append(package)
        return "2.0.1"

    request = PackagingRequest()
    resolve_name_and_version(request, tmp_path, version_resolver=resolver)
    assert seen == ["electron"]
    assert request.version == "2.0.1"


def test_supplied_version_is_kept(tmp_path: Path) -> None:
    _write_package(tmp_path, {"name": "a", "dependencies": {"electron": "2.0.0"}})
    request = PackagingRequest(version="3.0.0")
    resolve_name_and_version(request, tmp_path, version_resolver=_forbidden)
    assert (request.name, request.version) == ("a", "3.0.0")


def test_no_runtime_dependency_leaves_version_unset(tmp_path: Path) -> None:
    _write_package(tmp_path, {"name": "a"})
    request = PackagingRequest()
    resolve_name_and_version(request, tmp_path)
    assert request.name == "a"
    assert request.version is None


def test_missing_descriptor(tmp_path: Path) -> None:
    with pytest.raises(InferenceError, match="no package.json file found"):
        resolve_name_and_version(PackagingRequest(name="App"), tmp_path)


def test_unparsable_descriptor(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text("{not json")
    with pytest.raises(InferenceError, match="Unable to parse"):
        read_descriptor(tmp_path)


def test_installed_version_found_in_parent(tmp_path: Path) -> None:
    _install(tmp_path, "electron", "4.1.0")
    project = tmp_path / "packages" / "app"
    project.mkdir(parents=True)
    assert resolve_installed_version("electron", project) == "4.1.0"


def test_installed_version_missing_is_hard_error(tmp_path: Path) -> None:
    _write_package(tmp_path, {"name": "a", "dependencies": {"electron": "2.0.0"}})
    with pytest.raises(InferenceError, match="Cannot find module 'electron'"):
        resolve_name_and_version(PackagingRequest(), tmp_path)


def test_relative_directory_is_anchored_at_working_directory(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PWD", str(tmp_path))
    _write_package(tmp_path / "app", {"productName": "Rel", "dependencies": {"electron": "5.0.0"}})
    _install(tmp_path / "app", "electron", "5.0.0")

    assert anchor_directory("./app") == tmp_path / "./app"
    request = PackagingRequest()
    resolve_name_and_version(request, "./app")
    assert (request.name, request.version) == ("Rel", "5.0.0")
