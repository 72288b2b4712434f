from fastapi.testclient import TestClient

from survey_csv.config import Settings
from survey_csv.main import create_app
from survey_csv.rules import CSV_HEADER, STORAGE_KEY
from survey_csv.storage import MemoryStore, SurveyStorage

PASSWORD = "3939889"
VALID = {"name": "王小明", "phone": "0912345678", "region": "台北市", "occupation": "藥師"}


class FailingWriteStore(MemoryStore):
    def set(self, key, text):
        raise OSError("read-only")


def make_client(store=None):
    storage = SurveyStorage(store if store is not None else MemoryStore())
    app = create_app(storage=storage, settings=Settings(admin_password=PASSWORD))
    return TestClient(app), storage


def test_health():
    client, _ = make_client()
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_submit_and_list_responses():
    client, storage = make_client()

    r = client.post("/api/responses", json=VALID)
    assert r.status_code == 201
    data = r.json()
    assert data["success"] is True
    assert data["record"]["name"] == "王小明"
    assert data["record"]["timestamp"].endswith("Z")

    r = client.post("/api/responses", json={**VALID, "name": "Amy Lin", "region": "高雄市"})
    assert r.status_code == 201

    r = client.get("/api/responses")
    assert r.status_code == 200
    data = r.json()
    assert data["count"] == 2
    assert [rec["name"] for rec in data["records"]] == ["王小明", "Amy Lin"]
    assert len(storage.read_all()) == 2


def test_submit_invalid_response():
    client, storage = make_client()
    r = client.post("/api/responses", json={"name": "", "phone": "12", "region": "台北市", "occupation": "醫師"})
    assert r.status_code == 422
    data = r.json()
    assert data["success"] is False
    assert [e["field"] for e in data["errors"]] == ["name", "phone", "occupation"]
    assert storage.read_all() == []


def test_submit_with_storage_failure():
    client, _ = make_client(FailingWriteStore())
    r = client.post("/api/responses", json=VALID)
    assert r.status_code == 500
    assert r.json()["success"] is False


def test_stats():
    client, _ = make_client()
    client.post("/api/responses", json=VALID)
    client.post("/api/responses", json={**VALID, "occupation": "藥助"})
    client.post("/api/responses", json={**VALID, "region": "新竹縣"})

    r = client.get("/api/stats")
    assert r.status_code == 200
    assert r.json() == {
        "total": 3,
        "by_region": {"台北市": 2, "新竹縣": 1},
        "by_occupation": {"藥師": 2, "藥助": 1},
    }


def test_export_requires_password():
    client, _ = make_client()
    assert client.get("/api/export").status_code == 401

    r = client.get("/api/export", headers={"X-Admin-Password": "wrong"})
    assert r.status_code == 403
    assert r.json()["detail"] == "密碼錯誤，請重試"


def test_export_csv_with_bom():
    client, storage = make_client()
    client.post("/api/responses", json={**VALID, "name": "John Smith"})

    r = client.get("/api/export", headers={"X-Admin-Password": PASSWORD})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=\"survey_responses_" in r.headers["content-disposition"]

    # UTF-8 BOM bytes
    assert r.content.startswith(b"\xef\xbb\xbf")
    text = r.content.decode("utf-8-sig")
    assert text == storage.export_text()
    assert text.split("\n")[0] == CSV_HEADER


def test_storage_key_from_settings():
    store = MemoryStore()
    app = create_app(
        storage=SurveyStorage(store, key="custom"),
        settings=Settings(admin_password=PASSWORD, storage_key="custom"),
    )
    client = TestClient(app)
    client.post("/api/responses", json=VALID)
    assert store.get("custom").startswith(CSV_HEADER)
    assert store.get(STORAGE_KEY) is None


def test_default_app_uses_file_store(tmp_path):
    app = create_app(settings=Settings(data_dir=tmp_path, admin_password=PASSWORD))
    client = TestClient(app)
    assert client.post("/api/responses", json=VALID).status_code == 201
    assert (tmp_path / f"{STORAGE_KEY}.csv").read_text(encoding="utf-8").startswith(CSV_HEADER)


def test_carriage_return_in_name_survives_file_store(tmp_path):
    app = create_app(settings=Settings(data_dir=tmp_path, admin_password=PASSWORD))
    client = TestClient(app)
    assert client.post("/api/responses", json={**VALID, "name": "王\r明"}).status_code == 201
    assert client.post("/api/responses", json=VALID).status_code == 201

    data = client.get("/api/responses").json()
    assert data["count"] == 2
    assert [rec["name"] for rec in data["records"]] == ["王\r明", "王小明"]


class FailingReadStore(MemoryStore):
    def get(self, key):
        raise PermissionError("EACCES")


def test_submit_with_unreadable_storage():
    client, _ = make_client(FailingReadStore())
    r = client.post("/api/responses", json=VALID)
    assert r.status_code == 500
    assert r.json()["success"] is False
