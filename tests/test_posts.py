import sqlite3

import app as social
from errors import UpstreamError
from imagehost import ImageHost, UploadedImage


class RecordingHost(ImageHost):
    name = "recording"

    def __init__(self, fail=False):
        self.fail = fail
        self.uploaded = []
        self.deleted = []

    def upload(self, file_storage):
        if self.fail:
            raise UpstreamError("Image upload failed")
        self.uploaded.append(file_storage.filename)
        return UploadedImage(url=f"https://img.example/{file_storage.filename}", asset_id=f"asset-{len(self.uploaded)}")

    def delete(self, asset_id):
        self.deleted.append(asset_id)


def post_count(flask_app):
    with flask_app.app_context():
        return social.count_db("SELECT COUNT(*) FROM posts")


def test_create_text_post(client, make_user):
    alice = make_user("alice")
    res = client.post("/api/posts", json={"userId": alice["id"], "content": "hello world"})
    assert res.status_code == 201
    post = res.get_json()
    assert post["content"] == "hello world"
    assert post["type"] == "text"
    assert post["image"] is None
    assert post["userId"] == alice["id"]
    assert post["user"] == {"id": alice["id"], "username": "alice", "avatar": None}
    assert post["likes"] == 0
    assert post["comments"] == 0


def test_create_post_from_form_fields(client, make_user):
    alice = make_user("alice")
    res = client.post("/api/posts", data={"userId": str(alice["id"]), "content": "form post", "type": "text"})
    assert res.status_code == 201
    assert res.get_json()["content"] == "form post"


def test_create_post_missing_fields(client, make_user):
    alice = make_user("alice")
    res = client.post("/api/posts", json={"userId": alice["id"]})
    assert res.status_code == 400
    assert "content" in res.get_json()["error"]


def test_create_post_rejects_unknown_type(client, make_user):
    alice = make_user("alice")
    res = client.post("/api/posts", json={"userId": alice["id"], "content": "x", "type": "video"})
    assert res.status_code == 400


def test_create_post_unknown_user(client):
    res = client.post("/api/posts", json={"userId": 777, "content": "x"})
    assert res.status_code == 404


def test_create_image_post_with_local_host(client, make_user, image_upload):
    alice = make_user("alice")
    res = client.post("/api/posts", data={
        "userId": str(alice["id"]), "content": "look", "image": image_upload(),
    }, content_type="multipart/form-data")
    assert res.status_code == 201
    post = res.get_json()
    assert post["type"] == "image"
    assert post["image"].startswith("/uploads/")
    assert post["image"].endswith("_photo.png")

    served = client.get(post["image"])
    assert served.status_code == 200
    assert served.data.startswith(b"\x89PNG")


def test_create_image_post_uses_configured_host(flask_app, client, make_user, image_upload):
    host = RecordingHost()
    flask_app.config["IMAGE_HOST"] = host
    alice = make_user("alice")
    res = client.post("/api/posts", data={
        "userId": str(alice["id"]), "content": "look", "type": "image", "image": image_upload("cat.gif", mimetype="image/gif"),
    }, content_type="multipart/form-data")
    assert res.status_code == 201
    assert res.get_json()["image"] == "https://img.example/cat.gif"
    assert host.uploaded == ["cat.gif"]


def test_oversize_image_rejected_before_post_created(flask_app, client, make_user, image_upload):
    host = RecordingHost()
    flask_app.config["IMAGE_HOST"] = host
    alice = make_user("alice")
    res = client.post("/api/posts", data={
        "userId": str(alice["id"]), "content": "big", "image": image_upload(size=5 * 1024 * 1024 + 1),
    }, content_type="multipart/form-data")
    assert res.status_code == 400
    assert "5MB" in res.get_json()["error"]
    assert host.uploaded == []
    assert post_count(flask_app) == 0


def test_request_over_body_limit_is_413(flask_app, client, make_user, image_upload):
    alice = make_user("alice")
    res = client.post("/api/posts", data={
        "userId": str(alice["id"]), "content": "huge", "image": image_upload(size=7 * 1024 * 1024),
    }, content_type="multipart/form-data")
    assert res.status_code == 413
    assert post_count(flask_app) == 0


def test_disallowed_extension_rejected(flask_app, client, make_user, image_upload):
    alice = make_user("alice")
    for name, mimetype in (("notes.txt", "text/plain"), ("photo.webp", "image/webp"), ("photo.png", "application/pdf")):
        res = client.post("/api/posts", data={
            "userId": str(alice["id"]), "content": "x", "image": image_upload(name, mimetype=mimetype),
        }, content_type="multipart/form-data")
        assert res.status_code == 400, name
    assert post_count(flask_app) == 0


def test_upload_failure_aborts_post(flask_app, client, make_user, image_upload):
    flask_app.config["IMAGE_HOST"] = RecordingHost(fail=True)
    alice = make_user("alice")
    res = client.post("/api/posts", data={
        "userId": str(alice["id"]), "content": "x", "image": image_upload(),
    }, content_type="multipart/form-data")
    assert res.status_code == 500
    assert res.get_json() == {"error": "Image upload failed"}
    assert post_count(flask_app) == 0


def test_failed_insert_deletes_uploaded_image(flask_app, client, make_user, image_upload, monkeypatch):
    host = RecordingHost()
    flask_app.config["IMAGE_HOST"] = host
    alice = make_user("alice")
    real_execute = social.execute_db

    def failing_insert(query, args=()):
        if "INSERT INTO posts" in query:
            raise sqlite3.OperationalError("database is locked")
        return real_execute(query, args)

    monkeypatch.setattr(social, "execute_db", failing_insert)
    res = client.post("/api/posts", data={
        "userId": str(alice["id"]), "content": "x", "image": image_upload(),
    }, content_type="multipart/form-data")
    assert res.status_code == 500
    assert res.get_json() == {"error": "Server error during post creation"}
    assert host.deleted == ["asset-1"]


def test_get_single_post(client, make_user, make_post):
    alice = make_user("alice")
    post = make_post(alice, "single")
    res = client.get(f"/api/posts/{post['id']}")
    assert res.status_code == 200
    assert res.get_json()["content"] == "single"
    assert client.get("/api/posts/999").status_code == 404
    assert client.get("/api/posts/abc").status_code == 400


def test_feed_contains_self_and_followed_only(client, make_user, make_post):
    alice = make_user("alice")
    bob = make_user("bob")
    carol = make_user("carol")
    client.post("/api/follow", json={"followerId": alice["id"], "followingId": bob["id"]})
    # carol follows alice; that must not pull carol's posts into alice's feed
    client.post("/api/follow", json={"followerId": carol["id"], "followingId": alice["id"]})

    make_post(alice, "a1")
    make_post(bob, "b1")
    make_post(carol, "c1")
    make_post(alice, "a2")
    make_post(bob, "b2")

    res = client.get(f"/api/posts/feed/{alice['id']}")
    assert res.status_code == 200
    feed = res.get_json()
    assert [p["content"] for p in feed] == ["b2", "a2", "b1", "a1"]
    stamps = [p["createdAt"] for p in feed]
    assert stamps == sorted(stamps, reverse=True)
    assert all(p["user"]["username"] in ("alice", "bob") for p in feed)


def test_feed_of_user_without_follows(client, make_user, make_post):
    alice = make_user("alice")
    bob = make_user("bob")
    make_post(bob, "not mine")
    assert client.get(f"/api/posts/feed/{alice['id']}").get_json() == []


def test_feed_counts_are_live(client, make_user, make_post):
    alice = make_user("alice")
    bob = make_user("bob")
    post = make_post(alice)
    client.post("/api/likes", json={"userId": alice["id"], "postId": post["id"]})
    client.post("/api/likes", json={"userId": bob["id"], "postId": post["id"]})
    client.post("/api/comments", json={"userId": bob["id"], "postId": post["id"], "content": "nice"})

    entry = client.get(f"/api/posts/feed/{alice['id']}").get_json()[0]
    assert entry["likes"] == 2
    assert entry["comments"] == 1
    assert entry["likedByMe"] is True

    client.post("/api/likes", json={"userId": bob["id"], "postId": post["id"]})
    entry = client.get(f"/api/posts/feed/{alice['id']}").get_json()[0]
    assert entry["likes"] == 1


def test_feed_malformed_id(client):
    assert client.get("/api/posts/feed/xyz").status_code == 400


def test_create_post_rejects_non_string_fields(flask_app, client, make_user):
    alice = make_user("alice")
    for body in (
        {"userId": alice["id"], "content": {"a": 1}},
        {"userId": alice["id"], "content": ["x"]},
        {"userId": alice["id"], "content": 42},
        {"userId": alice["id"], "content": "ok", "type": ["text"]},
    ):
        res = client.post("/api/posts", json=body)
        assert res.status_code == 400, body
        assert "error" in res.get_json()
    assert post_count(flask_app) == 0


def test_feed_with_more_followings_than_sqlite_variables(flask_app, client, make_user, make_post):
    alice = make_user("alice")
    bob = make_user("bob")
    make_post(bob, "from bob")
    with flask_app.app_context():
        db = social.get_db()
        stamp = social.now_iso()
        db.executemany(
            "INSERT INTO users (username, email, password_hash, created_at) VALUES (?, ?, ?, ?)",
            ((f"bulk{i}", f"bulk{i}@example.com", "x", stamp) for i in range(33000)),
        )
        db.execute(
            "INSERT INTO follows (follower_id, following_id, created_at) SELECT ?, id, ? FROM users WHERE id <> ?",
            (alice["id"], stamp, alice["id"]),
        )
        db.commit()

    res = client.get(f"/api/posts/feed/{alice['id']}")
    assert res.status_code == 200
    assert [p["content"] for p in res.get_json()] == ["from bob"]
