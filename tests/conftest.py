from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_path() -> None:
    """Guarantee the repository root is discoverable for absolute imports."""

    root = Path(__file__).resolve().parent.parent
    root_str = str(root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)

    tests_dir = root / "tests"
    tests_str = str(tests_dir)
    if tests_str not in sys.path:
        sys.path.insert(1, tests_str)


_ensure_project_root_on_path()


@pytest.fixture(autouse=True)
def _isolated_deploy_env(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Keep developer credentials and config files out of every test."""

    for name in list(os.environ):
        if name.upper().startswith("ONIONDEPLOY_"):
            monkeypatch.delenv(name, raising=False)

    config_dir = tmp_path_factory.mktemp("deploy_config")
    monkeypatch.setenv("ONIONDEPLOY_CONFIG", str(config_dir / "oniondeploy.json"))

    from app.config import reset_deploy_config_cache

    reset_deploy_config_cache()
    yield
    reset_deploy_config_cache()
