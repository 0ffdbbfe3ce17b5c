from __future__ import annotations

import dataclasses

import pytest

from packager.errors import ValidationError
from packager.targets import SupportedTargets, enumerate_combinations, is_platform_mac, validate_list


def test_all_selector_returns_registry_order() -> None:
    targets = SupportedTargets.default()
    assert targets.validate_archs("all") == ["ia32", "x64"]
    assert targets.validate_platforms("all") == ["darwin", "linux", "mas", "win32"]


def test_comma_string_and_list_selectors() -> None:
    targets = SupportedTargets.default()
    assert targets.validate_platforms("linux,win32") == ["linux", "win32"]
    assert targets.validate_platforms(["darwin"]) == ["darwin"]


def test_unsupported_entry_names_entry_and_supported_set() -> None:
    with pytest.raises(ValidationError) as excinfo:
        SupportedTargets.default().validate_archs("x64,arm64")
    assert str(excinfo.value) == "Unsupported arch arm64; must be one of: ia32, x64"


@pytest.mark.parametrize("selector", [None, "", []])
def test_missing_selector(selector) -> None:
    with pytest.raises(ValidationError, match="Must specify platform"):
        validate_list(selector, ["linux"], "platform")


def test_enumeration_excludes_32_bit_mac() -> None:
    targets = SupportedTargets.default()
    combinations = enumerate_combinations(
        targets.validate_archs("all"), targets.validate_platforms("all"), "1.4.0"
    )
    keys = [combination.key for combination in combinations]
    assert keys == [
        "linux-ia32",
        "win32-ia32",
        "darwin-x64",
        "linux-x64",
        "mas-x64",
        "win32-x64",
    ]
    assert all(not (is_platform_mac(c.platform) and c.arch == "ia32") for c in combinations)
    assert {c.version for c in combinations} == {"1.4.0"}


def test_registry_is_immutable() -> None:
    targets = SupportedTargets.default()
    with pytest.raises(dataclasses.FrozenInstanceError):
        targets.archs = ("arm",)  # type: ignore[misc]
    with pytest.raises(TypeError):
        targets.platforms["arm"] = "linux"  # type: ignore[index]
    assert targets.builder_id("mas") == "mac"
