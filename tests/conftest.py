from __future__ import annotations

import pathlib
import sys
import tempfile

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stylo import store
from stylo.config import StyloConfig


@pytest.fixture()
def db_path(tmp_path: pathlib.Path) -> pathlib.Path:
    return tmp_path / "log.db"


@pytest.fixture()
def socket_path():
    # AF_UNIX paths are capped near 108 bytes; pytest's tmp_path can exceed that
    with tempfile.TemporaryDirectory(prefix="stylo-") as d:
        yield pathlib.Path(d) / "log.sock"


@pytest.fixture()
def cfg(db_path: pathlib.Path, socket_path: pathlib.Path) -> StyloConfig:
    return StyloConfig(db_path=db_path, socket_path=socket_path, verbose=False)


@pytest.fixture()
def conn(db_path: pathlib.Path):
    c = store.connect(db_path)
    yield c
    c.close()


@pytest.fixture()
def stylo_env(monkeypatch, db_path, socket_path):
    for var in ("STYLO_HEARTBEAT_URL", "STYLO_BUSY_TIMEOUT_MS", "STYLO_HEARTBEAT_INTERVAL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("STYLO_ENV", "development")
    monkeypatch.setenv("STYLO_DB", str(db_path))
    monkeypatch.setenv("STYLO_SOCKET", str(socket_path))
    monkeypatch.setenv("STYLO_VERBOSE", "0")
