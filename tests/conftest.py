"""
Shared fixtures for hostcmd tests.
"""

import logging
import os

import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point XDG config lookups at empty temp dirs and drop HOSTCMD_* variables."""
    user_dir = tmp_path / "config_home"
    system_dir = tmp_path / "config_dirs"
    user_dir.mkdir()
    system_dir.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(user_dir))
    monkeypatch.setenv("XDG_CONFIG_DIRS", str(system_dir))
    for name in list(os.environ):
        if name.startswith("HOSTCMD_"):
            monkeypatch.delenv(name)
    return {"user": user_dir / "hostcmd", "system": system_dir / "hostcmd"}


@pytest.fixture
def restore_root_logger():
    """Restore root logger level and handlers changed by setup_logging."""
    root = logging.getLogger()
    level = root.level
    handlers = root.handlers[:]
    yield root
    root.setLevel(level)
    root.handlers[:] = handlers
