import pytest

from netsweeper import utils


@pytest.fixture(autouse=True)
def reset_stop_event():
    utils.stop_event.clear()
    yield
    utils.stop_event.clear()


@pytest.fixture
def cache_file(tmp_path):
    return tmp_path / "vendor_cache.json"
