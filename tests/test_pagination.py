from fastapi.testclient import TestClient


def test_videos_paginate_with_defaults(api, client: TestClient):
    user, headers = api.signup("pager")
    for i in range(12):
        api.publish_video(headers, title=f"clip {i:02d}")

    r = client.get("/api/v1/videos/", headers=headers)
    assert r.status_code == 200
    first = r.json()["data"]
    assert len(first) == 10
    assert first[0]["title"] == "clip 11"

    r = client.get("/api/v1/videos/", headers=headers, params={"page": 2})
    assert [v["title"] for v in r.json()["data"]] == ["clip 01", "clip 00"]


def test_videos_sort_by_title_ascending(api, client: TestClient):
    _, headers = api.signup("sorter")
    for title in ("banana", "apple", "cherry"):
        api.publish_video(headers, title=title)

    r = client.get(
        "/api/v1/videos/",
        headers=headers,
        params={"sortBy": "title", "sortType": "ASC", "limit": 2},
    )
    assert r.status_code == 200
    assert [v["title"] for v in r.json()["data"]] == ["apple", "banana"]


def test_unknown_sort_field_is_rejected(api, client: TestClient):
    _, headers = api.signup("picky")
    r = client.get("/api/v1/videos/", headers=headers, params={"sortBy": "hashedPassword"})
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert "Cannot sort by" in r.json()["message"]

    r = client.get("/api/v1/videos/", headers=headers, params={"sortType": "random"})
    assert r.status_code == 400

    r = client.get("/api/v1/videos/", headers=headers, params={"page": 0})
    assert r.status_code == 400

    r = client.get("/api/v1/videos/", headers=headers, params={"limit": "lots"})
    assert r.status_code == 400


def test_tweets_paginate_per_user(api, client: TestClient):
    user, headers = api.signup("chatty")
    for i in range(5):
        r = client.post("/api/v1/tweets/", headers=headers, json={"content": f"tweet {i}"})
        assert r.status_code == 201

    r = client.get(
        f"/api/v1/tweets/user/{user['id']}",
        headers=headers,
        params={"page": 2, "limit": 2, "sortType": "asc"},
    )
    assert r.status_code == 200
    assert [t["content"] for t in r.json()["data"]] == ["tweet 2", "tweet 3"]

    r = client.get(f"/api/v1/tweets/user/{user['id']}", headers=headers, params={"sortBy": "views"})
    assert r.status_code == 400


def test_search_filters_title_and_description(api, client: TestClient):
    _, headers = api.signup("searcher")
    api.publish_video(headers, title="Cooking pasta", description="Dinner")
    api.publish_video(headers, title="Gardening", description="Growing basil for PASTA sauce")
    api.publish_video(headers, title="Running", description="Morning jog")

    r = client.get("/api/v1/videos/", headers=headers, params={"query": "pasta", "sortBy": "title", "sortType": "asc"})
    assert [v["title"] for v in r.json()["data"]] == ["Cooking pasta", "Gardening"]
