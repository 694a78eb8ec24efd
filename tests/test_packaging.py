"""
Drowsy Guard -- Packaging Metadata Tests
========================================
"""

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

ROOT = Path(__file__).resolve().parent.parent


def test_project_readme_points_at_existing_file():
    project = tomllib.loads((ROOT / "pyproject.toml").read_text())["project"]
    readme = project.get("readme")
    if readme is not None:
        assert (ROOT / readme).is_file()
        assert readme.lower().startswith("readme")
    assert project["scripts"]["drowsy-guard"] == "drowsy_guard.main:main"
