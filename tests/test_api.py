import json
from io import BytesIO

from markgrove.models import Bookmark


EXPORT_HTML = """
<!DOCTYPE NETSCAPE-Bookmark-file-1>
<DL><p>
  <DT><H3>Bookmarks bar</H3>
  <DL><p>
    <DT><H3>Work</H3>
    <DL><p>
      <DT><A HREF="https://example.com/a">A</A>
      <DT><A HREF="https://example.com/b">B</A>
    </DL><p>
    <DT><A HREF="https://example.com/c">C</A>
  </DL><p>
</DL><p>
"""

EXPORT_JSON = {
    "roots": {
        "bookmark_bar": {
            "children": [
                {
                    "type": "folder",
                    "name": "Work",
                    "children": [
                        {"type": "url", "name": "A2", "url": "https://example.com/a"},
                        {"type": "url", "name": "D", "url": "https://example.com/d"},
                    ],
                }
            ]
        }
    }
}


def _import(client, body, fmt=None):
    url = "/api/v1/import" + (f"?format={fmt}" if fmt else "")
    return client.post(url, data=body, content_type="text/plain")


def test_import_html_then_json_merges_by_identity(client, app):
    response = _import(client, EXPORT_HTML, "html")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["leaves"] == 3
    assert payload["outcomes"]["created"] == 3
    assert payload["ok"] is True

    response = _import(client, json.dumps(EXPORT_JSON))
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["format"] == "json"
    assert payload["outcomes"]["created"] == 1
    assert payload["outcomes"]["updated"] == 1

    with app.app_context():
        assert Bookmark.query.filter_by(type="folder", title="Work").count() == 1
        assert Bookmark.query.filter_by(address="https://example.com/a").one().title == "A2"


def test_import_accepts_file_upload(client):
    response = client.post(
        "/api/v1/import",
        data={"file": (BytesIO(EXPORT_HTML.encode("utf-8")), "bookmarks.html")},
        content_type="multipart/form-data",
    )
    assert response.status_code == 200
    assert response.get_json()["format"] == "html"


def test_import_rejects_bad_requests(client):
    assert _import(client, "   ").status_code == 400
    assert _import(client, "{}", "csv").status_code == 400
    assert _import(client, "{broken", "json").status_code == 400


def test_tree_and_batch_queries(client):
    _import(client, EXPORT_HTML, "html")

    response = client.get("/api/v1/bookmarks/tree")
    assert response.status_code == 200
    items = response.get_json()["items"]
    assert [item["title"] for item in items] == ["Work", "C"]
    assert [child["title"] for child in items[0]["children"]] == ["A", "B"]

    ids = [items[0]["children"][0]["id"], items[1]["id"]]
    response = client.get(f"/api/v1/bookmarks?ids={ids[0]},{ids[1]}")
    assert response.status_code == 200
    assert sorted(row["id"] for row in response.get_json()["items"]) == sorted(ids)

    assert client.get("/api/v1/bookmarks?ids=999").status_code == 404
    assert client.get("/api/v1/bookmarks?ids=abc").status_code == 400
    assert len(client.get("/api/v1/bookmarks").get_json()["items"]) == 4


def test_patch_bookmarks(client):
    _import(client, EXPORT_HTML, "html")
    rows = client.get("/api/v1/bookmarks").get_json()["items"]
    leaf_ids = [row["id"] for row in rows if row["type"] == "bookmark"]

    response = client.patch(
        "/api/v1/bookmarks",
        json={"ids": leaf_ids[:2], "data": [{"title": "x"}]},
    )
    assert response.status_code == 400

    response = client.patch(
        "/api/v1/bookmarks",
        json={"ids": leaf_ids[:2], "data": {"tags": ["read-later"]}},
    )
    assert response.status_code == 200

    response = client.get(f"/api/v1/bookmarks?ids={leaf_ids[0]}")
    assert response.get_json()["items"][0]["tags"] == ["read-later"]

    response = client.patch("/api/v1/bookmarks", json={"ids": [999], "data": {"title": "x"}})
    assert response.status_code == 404


def test_delete_folder_cascades(client):
    _import(client, EXPORT_HTML, "html")
    tree = client.get("/api/v1/bookmarks/tree").get_json()["items"]
    work_id = tree[0]["id"]

    response = client.delete(f"/api/v1/bookmarks/{work_id}")
    assert response.status_code == 200
    assert len(response.get_json()["removed"]) == 3

    response = client.delete("/api/v1/bookmarks", json={"ids": [work_id]})
    assert response.status_code == 404
    assert response.get_json()["not_found"] == [work_id]

    assert client.delete("/api/v1/bookmarks", json={}).status_code == 400
    remaining = client.get("/api/v1/bookmarks").get_json()["items"]
    assert [row["title"] for row in remaining] == ["C"]


def test_patch_rejects_invalid_parent(client):
    _import(client, EXPORT_HTML, "html")
    tree = client.get("/api/v1/bookmarks/tree").get_json()["items"]
    work_id = tree[0]["id"]
    leaf_id = tree[0]["children"][0]["id"]

    for parent in (work_id, leaf_id, 999):
        response = client.patch(
            "/api/v1/bookmarks", json={"ids": [work_id], "data": {"parent": parent}}
        )
        assert response.status_code == 400

    tree_after = client.get("/api/v1/bookmarks/tree").get_json()["items"]
    assert tree_after == tree


def test_non_object_bodies_are_rejected(client):
    response = client.patch("/api/v1/bookmarks", json=[1, 2])
    assert response.status_code == 400
    assert response.get_json() == {"error": "expected a JSON object"}

    response = client.delete("/api/v1/bookmarks", json=[1, 2])
    assert response.status_code == 400
    assert response.get_json() == {"error": "expected a JSON object"}


def test_app_carries_no_placeholder_secret(app):
    # Nothing signs cookies or tokens, so no secret is configured.
    assert app.config["SECRET_KEY"] is None
