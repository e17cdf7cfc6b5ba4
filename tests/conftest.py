import io
import os
import sys
import tempfile
from pathlib import Path

import pytest

# point the module-level config at a scratch dir before the app is imported
_SCRATCH = tempfile.mkdtemp(prefix="mini-social-")
os.environ["SOCIAL_DATABASE"] = os.path.join(_SCRATCH, "boot.db")
os.environ["SOCIAL_UPLOAD_FOLDER"] = os.path.join(_SCRATCH, "uploads")
for var in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"):
    os.environ.pop(var, None)

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import app as social  # noqa: E402
from imagehost import LocalFolderHost  # noqa: E402


@pytest.fixture
def flask_app(tmp_path):
    upload_dir = tmp_path / "uploads"
    social.app.config.update(
        TESTING=True,
        DATABASE=str(tmp_path / "social.db"),
        UPLOAD_FOLDER=str(upload_dir),
        IMAGE_HOST=LocalFolderHost(str(upload_dir)),
    )
    with social.app.app_context():
        social.init_db()
    yield social.app


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture
def make_user(client):
    def _make(username, email=None, password="secret123"):
        res = client.post("/api/register", json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
        })
        assert res.status_code == 201, res.get_json()
        return res.get_json()["user"]
    return _make


@pytest.fixture
def make_post(client):
    def _make(user, content="hello", **extra):
        res = client.post("/api/posts", json=dict({"userId": user["id"], "content": content}, **extra))
        assert res.status_code == 201, res.get_json()
        return res.get_json()
    return _make


@pytest.fixture
def image_upload():
    def _make(name="photo.png", size=64, mimetype="image/png"):
        # PNG signature followed by filler bytes; the host never decodes it
        data = b"\x89PNG\r\n\x1a\n" + b"\0" * max(size - 8, 0)
        return (io.BytesIO(data), name, mimetype)
    return _make
