import json
from pathlib import Path

from app.client.rate_limiter import STORAGE_KEY, ClientRateLimiter
from app.client.storage import LocalStorage
from app.services.rate_limiter import DATA_LIMIT, FILE_LIMIT, FILE_WINDOW_MS

MB = 1024 * 1024


def test_state_survives_new_instances(tmp_path, clock):
    path = tmp_path / "storage.json"
    ClientRateLimiter(LocalStorage(path), clock=clock).record_upload(2 * MB)

    reloaded = ClientRateLimiter(LocalStorage(path), clock=clock)
    status = reloaded.get_status()

    assert status["files"].used == 1
    assert status["data"].used == 2 * MB


def test_persisted_layout(tmp_path, clock):
    path = tmp_path / "storage.json"
    ClientRateLimiter(LocalStorage(path), clock=clock).record_upload(10)

    stored = json.loads(json.loads(path.read_text())[STORAGE_KEY])
    assert stored == {
        "files": [{"timestamp": clock.now, "size": 10}],
        "data": [{"timestamp": clock.now, "size": 10}],
    }


def test_same_limits_as_server(tmp_path, clock):
    limiter = ClientRateLimiter(LocalStorage(tmp_path / "s.json"), clock=clock)
    for _ in range(FILE_LIMIT):
        limiter.record_upload(1)

    assert limiter.check_file_limit().allowed is False
    assert limiter.check_data_limit(DATA_LIMIT).allowed is False
    assert limiter.check_data_limit(DATA_LIMIT - FILE_LIMIT).allowed is True

    clock.advance(FILE_WINDOW_MS)
    assert limiter.check_file_limit().remaining == FILE_LIMIT


def test_corrupt_storage_allows_everything(tmp_path, clock):
    path = tmp_path / "storage.json"
    path.write_text("{not json")
    limiter = ClientRateLimiter(LocalStorage(path), clock=clock)

    assert limiter.check_file_limit().allowed is True
    assert limiter.check_data_limit(MB).allowed is True


def test_wrong_shape_is_treated_as_empty(tmp_path, clock):
    path = tmp_path / "storage.json"
    path.write_text(json.dumps({STORAGE_KEY: json.dumps({"files": "oops"})}))
    limiter = ClientRateLimiter(LocalStorage(path), clock=clock)

    assert limiter.check_file_limit().remaining == FILE_LIMIT


def test_unwritable_storage_does_not_raise(tmp_path, clock):
    # A directory where the file should be: every read and write fails.
    path = tmp_path / "storage.json"
    path.mkdir()
    limiter = ClientRateLimiter(LocalStorage(path), clock=clock)

    limiter.record_upload(MB)

    assert limiter.check_file_limit().allowed is True
    assert limiter.get_status()["files"].used == 0


def test_corrupt_file_is_replaced_on_write(tmp_path, clock):
    path = tmp_path / "storage.json"
    path.write_text("[]")
    limiter = ClientRateLimiter(LocalStorage(path), clock=clock)

    limiter.record_upload(5)

    assert limiter.get_status()["files"].used == 1


def test_reset_clears_history(tmp_path, clock):
    limiter = ClientRateLimiter(LocalStorage(tmp_path / "s.json"), clock=clock)
    limiter.record_upload(MB)

    limiter.reset()

    assert limiter.get_status()["files"].used == 0


def test_remove_item_rewrites_through_temp_file(tmp_path, monkeypatch):
    storage = LocalStorage(tmp_path / "storage.json")
    storage.set_item("keep", "1")
    storage.set_item("drop", "2")

    replaced = []
    original_replace = Path.replace

    def spy(self, target):
        replaced.append((self.name, Path(target).name))
        return original_replace(self, target)

    monkeypatch.setattr(Path, "replace", spy)
    storage.remove_item("drop")

    assert replaced == [("storage.json.tmp", "storage.json")]
    assert json.loads((tmp_path / "storage.json").read_text()) == {"keep": "1"}
    assert not (tmp_path / "storage.json.tmp").exists()
