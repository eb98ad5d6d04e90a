import os
import sys
from unittest.mock import Mock

import pytest

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from common.kv_cache import KVCache


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, t: float = 1_700_000_000.0):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, s: float) -> None:
        self.t += s


def make_response(status_code=200, json_data=None, headers=None):
    r = Mock()
    r.status_code = status_code
    r.ok = 200 <= status_code < 300
    r.headers = headers or {}
    r.json.return_value = json_data if json_data is not None else {}
    r.text = str(json_data)
    return r


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(tmp_path, clock):
    return KVCache(str(tmp_path / "cache"), clock=clock)


@pytest.fixture
def make_resp():
    return make_response
