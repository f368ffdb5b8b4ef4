import importlib
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def load_module(monkeypatch, tmp_path):
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("DB_PATH", raising=False)
    import campuslf.main as main_module
    return importlib.reload(main_module)


def build_test_app(monkeypatch, tmp_path, **overrides):
    mod = load_module(monkeypatch, tmp_path)
    config = {
        "DATA_DIR": str(tmp_path / "factory_data"),
        "TESTING": True,
    }
    config.update(overrides)
    app = mod.create_app(config)
    return mod, app


BACKPACK_LOST = {
    "item_name": "Blue Backpack",
    "description": "Jansport blue backpack with laptop",
    "category": "Bags",
    "location": "Library",
    "date_lost": "2024-03-01",
}
BACKPACK_FOUND = {
    "item_name": "Backpack blue",
    "description": "found blue backpack near library entrance",
    "category": "Bags",
    "location": "Library",
    "date_found": "2024-03-02",
}


def test_create_app_accepts_config_overrides(monkeypatch, tmp_path):
    mod, app = build_test_app(monkeypatch, tmp_path)
    assert app.secret_key is None
    assert app.config["SECRET_KEY"] is None
    assert app.config["MAX_CONTENT_LENGTH"] == 1024 * 1024
    assert app.config["DB_PATH"] == str(tmp_path / "factory_data" / "lostfound.db")
    assert Path(app.config["DB_PATH"]).exists()
    assert mod.DEFAULT_DATA_DIR == "/app/data"


def test_healthz(monkeypatch, tmp_path):
    _mod, app = build_test_app(monkeypatch, tmp_path)
    resp = app.test_client().get("/healthz")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_report_requires_item_name(monkeypatch, tmp_path):
    _mod, app = build_test_app(monkeypatch, tmp_path)
    resp = app.test_client().post("/api/lost", json={"description": "no name"})
    assert resp.status_code == 400
    assert "item_name" in resp.get_json()["errors"]


def test_report_rejects_non_iso_date(monkeypatch, tmp_path):
    _mod, app = build_test_app(monkeypatch, tmp_path)
    resp = app.test_client().post("/api/found", json={"item_name": "Keys", "date_found": "03/02/2024"})
    assert resp.status_code == 400
    assert "date_found" in resp.get_json()["errors"]

    resp = app.test_client().post("/api/lost", json={"item_name": "Keys", "date_lost": "2024-3-1"})
    assert resp.status_code == 400
    assert "date_lost" in resp.get_json()["errors"]


def test_unknown_kind_is_404(monkeypatch, tmp_path):
    _mod, app = build_test_app(monkeypatch, tmp_path)
    resp = app.test_client().post("/api/stolen", json={"item_name": "Bike"})
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Not Found"


def test_lost_report_returns_ranked_found_matches(monkeypatch, tmp_path):
    _mod, app = build_test_app(monkeypatch, tmp_path)
    client = app.test_client()

    found = client.post("/api/found", json=BACKPACK_FOUND)
    assert found.status_code == 201
    assert found.get_json()["matches"] == []
    client.post("/api/found", json={"item_name": "Umbrella", "category": "Accessories", "location": "Gym"})

    resp = client.post("/api/lost", json=BACKPACK_LOST)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["item"]["item_name"] == "Blue Backpack"
    assert body["item"]["status"] == "open"
    assert len(body["matches"]) == 1
    match = body["matches"][0]
    assert match["item"]["id"] == found.get_json()["id"]
    assert match["item"]["date_found"] == "2024-03-02"
    assert 0.45 <= match["score"] <= 1.0


def test_found_report_accepts_form_posts(monkeypatch, tmp_path):
    _mod, app = build_test_app(monkeypatch, tmp_path)
    client = app.test_client()
    client.post("/api/lost", json=BACKPACK_LOST)

    form = dict(BACKPACK_FOUND)
    form["date"] = form.pop("date_found")
    resp = client.post("/api/found", data=form)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["item"]["date_found"] == "2024-03-02"
    assert [m["item"]["item_name"] for m in body["matches"]] == ["Blue Backpack"]


def test_closed_items_are_not_candidates(monkeypatch, tmp_path):
    _mod, app = build_test_app(monkeypatch, tmp_path)
    client = app.test_client()
    found_id = client.post("/api/found", json=BACKPACK_FOUND).get_json()["id"]

    resp = client.post(f"/api/found/{found_id}/status", json={"status": "returned"})
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "returned"

    body = client.post("/api/lost", json=BACKPACK_LOST).get_json()
    assert body["matches"] == []


def test_status_update_validation(monkeypatch, tmp_path):
    _mod, app = build_test_app(monkeypatch, tmp_path)
    client = app.test_client()
    lost_id = client.post("/api/lost", json=BACKPACK_LOST).get_json()["id"]

    assert client.post(f"/api/lost/{lost_id}/status", json={"status": "lost forever"}).status_code == 400
    assert client.post("/api/lost/999/status", json={"status": "closed"}).status_code == 404


def test_item_matches_endpoint(monkeypatch, tmp_path):
    _mod, app = build_test_app(monkeypatch, tmp_path)
    client = app.test_client()
    lost_id = client.post("/api/lost", json=BACKPACK_LOST).get_json()["id"]
    client.post("/api/found", json=BACKPACK_FOUND)

    resp = client.get(f"/api/lost/{lost_id}/matches")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["id"] == lost_id
    assert len(body["matches"]) == 1
    assert client.get("/api/lost/999/matches").status_code == 404


def test_candidate_fetch_failure_returns_empty_matches(monkeypatch, tmp_path):
    mod, app = build_test_app(monkeypatch, tmp_path)
    conn = mod.db_utils.get_db(app.config["DB_PATH"])
    conn.execute("DROP TABLE found_items")
    conn.commit()
    conn.close()

    resp = app.test_client().post("/api/lost", json=BACKPACK_LOST)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["matches"] == []
    assert body["id"] > 0


def test_list_and_filter_items(monkeypatch, tmp_path):
    _mod, app = build_test_app(monkeypatch, tmp_path)
    client = app.test_client()
    client.post("/api/lost", json=BACKPACK_LOST)
    client.post("/api/lost", json={"item_name": "Car keys", "category": "Keys", "location": "Parking lot"})

    all_items = client.get("/api/lost").get_json()
    assert [i["item_name"] for i in all_items] == ["Car keys", "Blue Backpack"]

    assert [i["item_name"] for i in client.get("/api/lost?q=jansport").get_json()] == ["Blue Backpack"]
    assert [i["item_name"] for i in client.get("/api/lost?category=Keys").get_json()] == ["Car keys"]
    assert [i["item_name"] for i in client.get("/api/lost?location=parking").get_json()] == ["Car keys"]
    assert client.get("/api/lost?status=closed").get_json() == []


def test_item_detail_and_stats(monkeypatch, tmp_path):
    _mod, app = build_test_app(monkeypatch, tmp_path)
    client = app.test_client()
    lost_id = client.post("/api/lost", json=BACKPACK_LOST).get_json()["id"]
    client.post("/api/found", json=BACKPACK_FOUND)
    client.post(f"/api/lost/{lost_id}/status", json={"status": "matched"})

    detail = client.get(f"/api/lost/{lost_id}")
    assert detail.status_code == 200
    assert detail.get_json()["status"] == "matched"
    assert client.get("/api/found/999").status_code == 404

    stats = client.get("/api/stats").get_json()
    assert stats["lost"] == 1
    assert stats["found"] == 1
    assert stats["lost_by_status"]["matched"] == 1
    assert stats["found_by_status"]["open"] == 1
