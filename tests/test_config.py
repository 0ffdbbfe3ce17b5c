from pathlib import Path

import pytest

from packager.config import load_request_file, request_from_file
from packager.errors import ConfigError


def test_request_file_loads_json(tmp_path: Path) -> None:
    path = tmp_path / "packager.json"
    path.write_text('{"name": "App", "platform": "linux", "appBundleId": "com.example.app"}')
    request = request_from_file(path, arch="x64", version=None)
    assert request.name == "App"
    assert request.arch == "x64"
    assert request.app_bundle_id == "com.example.app"
    assert request.version is None


def test_request_file_loads_yaml_subset(tmp_path: Path) -> None:
    path = tmp_path / "packager.yaml"
    path.write_text(
        """
name: App
version: 1.4.0
platform: [linux, win32]
arch: all
tmpdir: false
ignore:
  - ^/docs
download:
  mirror: https://mirror.example.com/
"""
    )
    request = request_from_file(path)
    assert request.platform == ["linux", "win32"]
    assert request.tmpdir is False
    assert request.ignore == ["^/docs"]
    assert request.download == {"mirror": "https://mirror.example.com/"}


def test_request_file_must_be_a_mapping(tmp_path: Path) -> None:
    path = tmp_path / "packager.yaml"
    path.write_text("- linux\n- win32\n")
    with pytest.raises(ConfigError, match="mapping"):
        load_request_file(path)


def test_unknown_option_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "packager.json"
    path.write_text('{"platfrom": "linux"}')
    with pytest.raises(ConfigError, match="platfrom"):
        request_from_file(path)


def test_missing_request_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Unable to read"):
        load_request_file(tmp_path / "missing.yaml")
