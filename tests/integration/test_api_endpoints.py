import io

import numpy as np
from PIL import Image


def make_png_bytes(w=8, h=6, color=(128, 64, 32)) -> bytes:
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[:, :] = color
    img = Image.fromarray(arr)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def open_session(client, w=8, h=6) -> dict:
    files = {"file": ("sample.png", make_png_bytes(w, h), "image/png")}
    r = client.post("/editor/sessions", files=files)
    assert r.status_code == 201, r.text
    return r.json()


def test_root_and_health(client):
    assert client.get("/").json()["service"] == "studiokit-editor"
    assert client.get("/health").json() == {"status": "healthy"}


def test_presets_catalog(client):
    r = client.get("/editor/presets")
    assert r.status_code == 200
    data = r.json()
    names = [p["name"] for p in data["presets"]]
    assert names[0] == "none"
    assert "neo-noir" in names
    cool = next(p for p in data["presets"] if p["name"] == "cool")
    assert cool["operations"] == [
        {"kind": "hue_rotate", "amount": 180.0},
        {"kind": "opacity", "amount": 0.9},
    ]
    assert data["crop_ratios"] == ["original", "1:1", "4:3", "16:9"]
    assert data["ranges"]["saturation"] == [0.0, 200.0]


def test_open_session_snapshot(client):
    data = open_session(client)
    assert (data["source_width"], data["source_height"]) == (8, 6)
    assert (data["width"], data["height"]) == (8, 6)
    assert data["cursor"] == 0
    assert data["history_length"] == 1
    assert data["is_live"] is False
    assert data["can_undo"] is False

    preview = client.get(data["preview_url"])
    assert preview.status_code == 200
    assert preview.headers["content-type"] == "image/png"


def test_open_session_rejects_garbage(client):
    files = {"file": ("sample.png", b"definitely not a png", "image/png")}
    r = client.post("/editor/sessions", files=files)
    assert r.status_code == 400


def test_live_commit_undo_redo_flow(client):
    sid = open_session(client)["session_id"]
    base = f"/editor/sessions/{sid}"

    r = client.patch(f"{base}/live", json={"saturation": 500})
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["is_live"] is True
    assert data["effective_state"]["saturation"] == 200
    assert data["history_length"] == 1

    r = client.post(f"{base}/commit", json={"crop_ratio": "1:1"})
    data = r.json()
    assert data["is_live"] is False
    assert data["committed_state"]["crop_ratio"] == "1:1"
    # merged onto the committed snapshot, not the live drag
    assert data["committed_state"]["saturation"] == 100
    assert (data["width"], data["height"]) == (6, 6)

    data = client.post(f"{base}/rotate").json()
    assert data["committed_state"]["rotation_degrees"] == 90
    assert data["history_length"] == 3

    data = client.post(f"{base}/undo").json()
    assert data["cursor"] == 1
    assert data["can_redo"] is True

    data = client.post(f"{base}/redo").json()
    assert data["cursor"] == 2
    assert data["can_redo"] is False

    data = client.post(f"{base}/redo").json()
    assert data["cursor"] == 2


def test_commit_without_body_records_current_snapshot(client):
    sid = open_session(client)["session_id"]
    r = client.post(f"/editor/sessions/{sid}/commit")
    assert r.status_code == 200, r.text
    assert r.json()["history_length"] == 2


def test_unknown_preset_is_rejected(client):
    sid = open_session(client)["session_id"]
    r = client.post(f"/editor/sessions/{sid}/commit", json={"filter_preset": "lomo"})
    assert r.status_code == 400
    assert client.get(f"/editor/sessions/{sid}").json()["history_length"] == 1


def test_unknown_field_is_rejected(client):
    sid = open_session(client)["session_id"]
    r = client.patch(f"/editor/sessions/{sid}/live", json={"hue": 20})
    assert r.status_code == 422


def test_export_returns_jpeg(client):
    sid = open_session(client, w=10, h=4)["session_id"]
    client.post(f"/editor/sessions/{sid}/commit", json={"rotation_degrees": 90})
    r = client.get(f"/editor/sessions/{sid}/export")
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/jpeg"
    with Image.open(io.BytesIO(r.content)) as img:
        assert img.size == (4, 10)


def test_close_is_idempotent_and_unknown_is_404(client):
    sid = open_session(client)["session_id"]
    assert client.delete(f"/editor/sessions/{sid}").status_code == 204
    assert client.delete(f"/editor/sessions/{sid}").status_code == 204
    assert client.get(f"/editor/sessions/{sid}").status_code == 404
    assert client.post(f"/editor/sessions/{sid}/undo").status_code == 404
