"""Dependency alignment between pyproject and the requirements files."""

from __future__ import annotations

from pathlib import Path

import tomllib


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _read_requirements(path: Path) -> list[str]:
    """Load requirement strings from a file, ignoring comments and blanks."""

    return [
        line.strip()
        for line in path.read_text().splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ]


def _pyproject() -> dict:
    return tomllib.loads((PROJECT_ROOT / "pyproject.toml").read_text())


def test_requirements_match_pyproject_dependencies() -> None:
    """Runtime dependencies stay in sync between pyproject and requirements."""

    pyproject_deps = sorted(_pyproject()["project"]["dependencies"])
    base_requirements = _read_requirements(PROJECT_ROOT / "requirements" / "base.txt")
    assert sorted(base_requirements) == pyproject_deps


def test_dev_requirements_match_optional_group() -> None:
    """Dev requirements include the base set plus the dev extra."""

    expected_dev = sorted(_pyproject()["project"]["optional-dependencies"]["dev"])
    dev_requirements = _read_requirements(PROJECT_ROOT / "requirements" / "dev.txt")
    assert dev_requirements[0] == "-r base.txt"
    assert sorted(dev_requirements[1:]) == expected_dev


def test_test_client_dependency_is_declared() -> None:
    dev = _pyproject()["project"]["optional-dependencies"]["dev"]
    assert any(requirement.startswith("httpx") for requirement in dev)
