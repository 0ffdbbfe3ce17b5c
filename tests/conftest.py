from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import pytest

from packager.builders import PlatformBuilder, generate_final_path


class FakeFetcher:
    def __init__(self, archive_dir: Path, events: List[str], fail_for: Tuple[str, ...] = ()) -> None:
        self.archive_dir = archive_dir
        self.events = events
        self.fail_for = fail_for
        self.calls: List[Tuple[str, str, str]] = []

    def fetch(self, platform: str, arch: str, version: str) -> Path:
        self.calls.append((platform, arch, version))
        self.events.append(f"fetch:{platform}-{arch}")
        if f"{platform}-{arch}" in self.fail_for:
            raise ConnectionError("mirror unreachable")
        return self.archive_dir / f"electron-v{version}-{platform}-{arch}.zip"


class FakeExtractor:
    def __init__(self, events: List[str]) -> None:
        self.events = events
        self.calls: List[Tuple[Path, Path]] = []

    def __call__(self, archive: Path, destination: Path) -> None:
        self.calls.append((archive, destination))
        self.events.append(f"extract:{destination.name}")
        (destination / "electron").write_text("binary")


class FakeBuilder(PlatformBuilder):
    def __init__(self, events: List[str]) -> None:
        self.events = events

    def build(self, options, build_dir):
        final_path = generate_final_path(options)
        final_path.mkdir(parents=True, exist_ok=True)
        (final_path / "built-from").write_text(str(build_dir))
        self.events.append(f"build:{options.platform}-{options.arch}")
        return str(final_path)


@pytest.fixture
def events() -> List[str]:
    return []


@pytest.fixture
def make_fetcher(tmp_path: Path, events: List[str]):
    def _make(fail_for: Tuple[str, ...] = ()) -> FakeFetcher:
        return FakeFetcher(tmp_path / "cache", events, fail_for)

    return _make


@pytest.fixture
def fetcher(make_fetcher) -> FakeFetcher:
    return make_fetcher()


@pytest.fixture
def extractor(events: List[str]) -> FakeExtractor:
    return FakeExtractor(events)


@pytest.fixture
def builders(events: List[str]):
    builder = FakeBuilder(events)
    return {"mac": builder, "linux": builder, "win32": builder}
