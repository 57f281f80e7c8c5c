from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "worldtidy"
    monkeypatch.setenv("WORLDTIDY_DATA_DIR", str(data_dir))
    for name in ("WORLD_INSTANCE", "WORLD_USERNAME", "WORLD_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    return data_dir
