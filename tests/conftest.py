from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

# Make the src package and the tests' own helpers importable without installing
_ROOT = Path(__file__).resolve().parents[1]
for p in (_ROOT / "src", _ROOT / "tests"):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from fakes import make_articles  # noqa: E402


@pytest.fixture()
def articles() -> List[Dict[str, Any]]:
    return make_articles(3)


@pytest.fixture()
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "outputs"
