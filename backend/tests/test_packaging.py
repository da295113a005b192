from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def test_directly_imported_libraries_are_declared():
    project = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))["project"]
    names = {dep.split(">")[0].split("=")[0].split("[")[0] for dep in project["dependencies"]}

    assert {"fastapi", "slowapi", "boto3", "botocore", "pydantic", "httpx"} <= names
