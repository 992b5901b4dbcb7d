import sys
from pathlib import Path
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

import logger


@pytest.fixture(autouse=True)
def _log_to_tmp(tmp_path, monkeypatch):
    monkeypatch.setattr(logger, "LOG_PATH", tmp_path / "test.log")
    monkeypatch.setattr(logger, "_min_level", logger.LEVELS["DBG"])
