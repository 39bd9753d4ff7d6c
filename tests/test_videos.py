from fastapi.testclient import TestClient


def test_upload_creates_unpublished_video_with_duration(api, client: TestClient, uploader):
    user, headers = api.signup("maker")
    r = client.post(
        "/api/v1/videos/",
        headers=headers,
        data={"title": "Launch", "description": "Our launch"},
        files={
            "videoFile": ("launch.mp4", b"mp4", "video/mp4"),
            "thumbnail": ("launch.png", b"png", "image/png"),
        },
    )
    assert r.status_code == 201
    video = r.json()["data"]
    assert video["duration"] == 42.5
    assert video["views"] == 0
    assert video["isPublished"] is False
    assert video["thumbnail"].startswith("https://cdn.test/thumbnails/")
    assert video["videoFile"].startswith("https://cdn.test/videos/")
    assert video["owner"] == {"id": user["id"], "username": "maker", "avatar": user["avatar"]}

    # Drafts stay out of the public feed but show up for the owner.
    assert client.get("/api/v1/videos/", headers=headers).json()["data"] == []
    r = client.get("/api/v1/videos/", headers=headers, params={"userId": user["id"]})
    assert [v["id"] for v in r.json()["data"]] == [video["id"]]


def test_toggle_publish_flips_state(api, client: TestClient):
    _, headers = api.signup("toggler")
    video = api.publish_video(headers, publish=False)
    r = client.patch(f"/api/v1/videos/toggle/publish/{video['id']}", headers=headers)
    assert r.json()["data"] == {"id": video["id"], "isPublished": True}
    r = client.patch(f"/api/v1/videos/toggle/publish/{video['id']}", headers=headers)
    assert r.json()["data"] == {"id": video["id"], "isPublished": False}


def test_watching_counts_views_and_records_history(api, client: TestClient):
    _, owner_headers = api.signup("host")
    _, viewer_headers = api.signup("watcher")
    first = api.publish_video(owner_headers, title="first")
    second = api.publish_video(owner_headers, title="second")

    for video in (first, second, first):
        r = client.get(f"/api/v1/videos/{video['id']}", headers=viewer_headers)
        assert r.status_code == 200

    assert r.json()["data"]["views"] == 2

    r = client.get("/api/v1/users/history", headers=viewer_headers)
    assert r.status_code == 200
    assert [v["title"] for v in r.json()["data"]] == ["first", "second"]

    r = client.get("/api/v1/users/history", headers=owner_headers)
    assert r.json()["data"] == []


def test_update_video_details(api, client: TestClient):
    _, headers = api.signup("fixer")
    video = api.publish_video(headers)
    r = client.patch(
        f"/api/v1/videos/{video['id']}",
        headers=headers,
        data={"title": "Better title"},
        files={"thumbnail": ("new.png", b"png", "image/png")},
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["title"] == "Better title"
    assert data["description"] == video["description"]
    assert data["thumbnail"].startswith("https://cdn.test/thumbnails/")


def test_deleting_video_removes_its_comments_and_history(api, client: TestClient):
    _, owner_headers = api.signup("remover")
    _, viewer_headers = api.signup("fan")
    video = api.publish_video(owner_headers)
    client.get(f"/api/v1/videos/{video['id']}", headers=viewer_headers)
    client.post(f"/api/v1/comments/{video['id']}", headers=viewer_headers, json={"content": "great"})
    client.post(f"/api/v1/likes/toggle/v/{video['id']}", headers=viewer_headers)

    r = client.delete(f"/api/v1/videos/{video['id']}", headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["data"] == {"id": video["id"]}

    assert client.get(f"/api/v1/videos/{video['id']}", headers=viewer_headers).status_code == 404
    assert client.get("/api/v1/users/history", headers=viewer_headers).json()["data"] == []
    assert client.get("/api/v1/likes/videos", headers=viewer_headers).json()["data"] == []
    assert client.get(f"/api/v1/comments/{video['id']}", headers=viewer_headers).status_code == 404


def test_comments_are_listed_newest_first(api, client: TestClient):
    _, owner_headers = api.signup("director")
    _, viewer_headers = api.signup("critic")
    video = api.publish_video(owner_headers)
    for text in ("one", "two", "three"):
        r = client.post(f"/api/v1/comments/{video['id']}", headers=viewer_headers, json={"content": text})
        assert r.status_code == 201

    r = client.get(f"/api/v1/comments/{video['id']}", headers=owner_headers)
    comments = r.json()["data"]
    assert [c["content"] for c in comments] == ["three", "two", "one"]
    assert comments[0]["videoId"] == video["id"]
    assert comments[0]["owner"]["username"] == "critic"

    r = client.get(f"/api/v1/comments/{video['id']}", headers=owner_headers, params={"limit": 1, "page": 3})
    assert [c["content"] for c in r.json()["data"]] == ["one"]


def test_healthcheck(client: TestClient):
    r = client.get("/api/v1/healthcheck")
    assert r.status_code == 200
    assert r.json() == {"statusCode": 200, "data": {"status": "ok"}, "message": "OK", "success": True}
