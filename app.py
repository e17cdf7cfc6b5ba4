# app.py
"""
Mini Social: Flask REST API over sqlite plus a single-page browser client.

Key production notes:
 - Configure via environment variables (see defaults below). A .env file in
   the working directory is loaded first.
 - Serve with a WSGI server (recommended): e.g.
     gunicorn -w 4 -b 0.0.0.0:3000 app:app
 - Set CLOUDINARY_CLOUD_NAME / CLOUDINARY_API_KEY / CLOUDINARY_API_SECRET to
   push post images to Cloudinary. Without them images are kept in the local
   uploads folder and served by this app.
"""

import os
import re
import sqlite3
import datetime
import functools
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import (
    Flask,
    Blueprint,
    request,
    jsonify,
    g,
    send_from_directory,
    render_template_string,
    abort,
)
from werkzeug.security import generate_password_hash, check_password_hash
from werkzeug.utils import secure_filename
from flask_cors import CORS

from errors import (
    ApiError,
    ValidationError,
    ConflictError,
    NotFoundError,
    AuthError,
    UpstreamError,
    InternalError,
)
from imagehost import build_image_host
from webui import INDEX_HTML

load_dotenv()

# -----------------------
# Configuration (env)
# -----------------------
BASE_DIR = Path(__file__).parent.resolve()
DATABASE = os.environ.get("SOCIAL_DATABASE", str(BASE_DIR / "social.db"))
UPLOAD_FOLDER = os.environ.get("SOCIAL_UPLOAD_FOLDER", str(BASE_DIR / "uploads"))

MAX_IMAGE_BYTES = int(os.environ.get("SOCIAL_MAX_IMAGE_BYTES", 5 * 1024 * 1024))  # 5 MB by default
ALLOWED_EXTENSIONS = set(os.environ.get("SOCIAL_ALLOWED_EXT", "jpeg,jpg,png,gif").split(","))
ALLOWED_MIMETYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif"}
CORS_ORIGINS = os.environ.get("SOCIAL_CORS_ORIGINS", "*")  # set to origin(s) in prod

CLOUDINARY_CLOUD_NAME = os.environ.get("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.environ.get("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.environ.get("CLOUDINARY_API_SECRET")
IMAGE_FOLDER = os.environ.get("SOCIAL_IMAGE_FOLDER", "socialmedia_posts")
UPLOAD_TIMEOUT = int(os.environ.get("SOCIAL_UPLOAD_TIMEOUT", 30))

POST_TYPES = ("text", "image")

# -----------------------
# App init
# -----------------------
app = Flask(__name__, static_folder=None)
app.config["UPLOAD_FOLDER"] = UPLOAD_FOLDER
app.config["DATABASE"] = DATABASE
# room for the form fields next to a full-size image
app.config["MAX_CONTENT_LENGTH"] = MAX_IMAGE_BYTES + 1024 * 1024
app.config["MAX_IMAGE_BYTES"] = MAX_IMAGE_BYTES
app.config["IMAGE_HOST"] = build_image_host(
    UPLOAD_FOLDER,
    cloud_name=CLOUDINARY_CLOUD_NAME,
    api_key=CLOUDINARY_API_KEY,
    api_secret=CLOUDINARY_API_SECRET,
    folder=IMAGE_FOLDER,
    timeout=UPLOAD_TIMEOUT,
)

# CORS
CORS(app, resources={r"/*": {"origins": CORS_ORIGINS}})

# Logging
logging.basicConfig(level=os.environ.get("SOCIAL_LOG_LEVEL", "INFO"))
logger = logging.getLogger("mini-social")

api = Blueprint("api", __name__, url_prefix="/api")


# -----------------------
# Database helpers
# -----------------------
def get_db():
    """
    Returns the request's sqlite3.Connection, opening it on first use.
    check_same_thread=False lets multi-worker WSGI servers share the file;
    uniqueness is left to the table constraints.
    """
    if "db" not in g:
        conn = sqlite3.connect(app.config["DATABASE"], check_same_thread=False)
        conn.row_factory = sqlite3.Row
        # unicode-aware case folding; sqlite lower() only folds ASCII
        conn.create_function("casefold", 1, casefold, deterministic=True)
        cur = conn.cursor()
        cur.execute("PRAGMA journal_mode=WAL;")
        cur.execute("PRAGMA synchronous=NORMAL;")
        cur.execute("PRAGMA foreign_keys=ON;")
        cur.close()
        g.db = conn
    return g.db


def casefold(value):
    return value.casefold() if isinstance(value, str) else value


@app.teardown_appcontext
def close_db(exc):
    db = g.pop("db", None)
    if db is not None:
        db.close()


def query_db(query, args=(), one=False):
    cur = get_db().execute(query, args)
    rv = cur.fetchall()
    cur.close()
    return (rv[0] if rv else None) if one else rv


def execute_db(query, args=()):
    conn = get_db()
    try:
        cur = conn.execute(query, args)
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise
    lastrowid = cur.lastrowid
    cur.close()
    return lastrowid


def count_db(query, args=()):
    return query_db(query, args, one=True)[0]


# -----------------------
# DB initialization
# -----------------------
def init_db():
    db = get_db()
    cur = db.cursor()
    cur.executescript(
        """
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT UNIQUE NOT NULL,
    email TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL,
    avatar TEXT,
    bio TEXT DEFAULT '',
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS posts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    content TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'text',
    image TEXT,
    created_at TEXT NOT NULL,
    FOREIGN KEY(user_id) REFERENCES users(id)
);
CREATE INDEX IF NOT EXISTS idx_posts_user_created ON posts(user_id, created_at);

CREATE TABLE IF NOT EXISTS follows (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    follower_id INTEGER NOT NULL,
    following_id INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE(follower_id, following_id),
    CHECK(follower_id <> following_id),
    FOREIGN KEY(follower_id) REFERENCES users(id),
    FOREIGN KEY(following_id) REFERENCES users(id)
);

CREATE TABLE IF NOT EXISTS likes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    post_id INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE(user_id, post_id),
    FOREIGN KEY(user_id) REFERENCES users(id),
    FOREIGN KEY(post_id) REFERENCES posts(id)
);

CREATE TABLE IF NOT EXISTS comments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    post_id INTEGER NOT NULL,
    content TEXT NOT NULL,
    created_at TEXT NOT NULL,
    FOREIGN KEY(user_id) REFERENCES users(id),
    FOREIGN KEY(post_id) REFERENCES posts(id)
);
CREATE INDEX IF NOT EXISTS idx_comments_post_created ON comments(post_id, created_at);
"""
    )
    db.commit()
    cur.close()


def store_action(action):
    """Map unexpected sqlite failures in a handler to a logged 500."""
    def decorator(f):
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except sqlite3.Error:
                logger.exception("Store error during %s", action)
                raise InternalError(f"Server error during {action}")
        return wrapper
    return decorator


# -----------------------
# Utility helpers
# -----------------------
def now_iso():
    # fixed-width UTC timestamps sort lexically in time order
    return datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="microseconds")


def user_to_dict(row):
    if row is None:
        return None
    return {
        "id": row["id"],
        "username": row["username"],
        "email": row["email"],
        "avatar": row["avatar"],
        "bio": row["bio"],
        "createdAt": row["created_at"],
    }


def get_user_row(user_id: int):
    return query_db("SELECT * FROM users WHERE id = ?", (user_id,), one=True)


def require_user(user_id: int):
    row = get_user_row(user_id)
    if row is None:
        raise NotFoundError("User not found")
    return row


def require_post(post_id: int):
    row = query_db("SELECT id FROM posts WHERE id = ?", (post_id,), one=True)
    if row is None:
        raise NotFoundError("Post not found")
    return row


# The viewer id is bound first; NULL matches no like row.
POST_SELECT = """
SELECT p.*,
       u.username AS author_username,
       u.avatar AS author_avatar,
       (SELECT COUNT(*) FROM likes l WHERE l.post_id = p.id) AS likes_count,
       (SELECT COUNT(*) FROM comments c WHERE c.post_id = p.id) AS comments_count,
       EXISTS(SELECT 1 FROM likes v WHERE v.post_id = p.id AND v.user_id = ?) AS liked_by_me
FROM posts p JOIN users u ON u.id = p.user_id
"""


def post_to_dict(row):
    if row is None:
        return None
    return {
        "id": row["id"],
        "userId": row["user_id"],
        "content": row["content"],
        "type": row["type"],
        "image": row["image"],
        "createdAt": row["created_at"],
        "user": {"id": row["user_id"], "username": row["author_username"], "avatar": row["author_avatar"]},
        "likes": row["likes_count"],
        "comments": row["comments_count"],
        "likedByMe": bool(row["liked_by_me"]),
    }


def get_post_dict(post_id: int, viewer_id=None):
    row = query_db(POST_SELECT + " WHERE p.id = ?", (viewer_id, post_id), one=True)
    return post_to_dict(row)


def comment_to_dict(row):
    return {
        "id": row["id"],
        "userId": row["user_id"],
        "postId": row["post_id"],
        "content": row["content"],
        "createdAt": row["created_at"],
        "user": {"id": row["user_id"], "username": row["username"], "avatar": row["avatar"]},
    }


# -----------------------
# Validation helpers
# -----------------------
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
ID_RE = re.compile(r"^[0-9]+$")


def validate_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def parse_id(value, label="ID"):
    """Integer ids only; anything else is the malformed-id 400."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {label} format")
    if isinstance(value, int):
        parsed = value
    else:
        text = str(value).strip()
        if not ID_RE.match(text):
            raise ValidationError(f"Invalid {label} format")
        parsed = int(text)
    if parsed < 1:
        raise ValidationError(f"Invalid {label} format")
    return parsed


def get_body():
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data
    if request.form:
        return request.form.to_dict()
    return request.args.to_dict()


def require_fields(data, *names):
    missing = []
    for name in names:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


# upload helpers
def allowed_file_extension(filename: str) -> bool:
    if "." not in filename:
        return False
    ext = filename.rsplit(".", 1)[1].lower()
    return ext in ALLOWED_EXTENSIONS


def is_image_mimetype(file_storage) -> bool:
    return (file_storage.mimetype or "").lower() in ALLOWED_MIMETYPES


def file_size(file_storage) -> int:
    stream = file_storage.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def check_image_file(file_storage):
    filename = secure_filename(file_storage.filename or "")
    if not allowed_file_extension(filename) or not is_image_mimetype(file_storage):
        raise ValidationError("Only image files are allowed (jpeg, jpg, png, gif)")
    if file_size(file_storage) > app.config["MAX_IMAGE_BYTES"]:
        raise ValidationError(f"Image exceeds the {app.config['MAX_IMAGE_BYTES'] // (1024 * 1024)}MB limit")


# -----------------------
# Auth routes
# -----------------------
@api.route("/register", methods=["POST"])
@store_action("registration")
def register():
    data = get_body()
    require_fields(data, "username", "email", "password")
    username = str(data["username"]).strip()
    email = str(data["email"]).strip().lower()
    password = str(data["password"])

    if not validate_email(email):
        raise ValidationError("Invalid email format")

    if query_db("SELECT id FROM users WHERE username = ? OR email = ?", (username, email), one=True):
        raise ConflictError("User with this email or username already exists")

    try:
        user_id = execute_db(
            "INSERT INTO users (username, email, password_hash, bio, created_at) VALUES (?, ?, ?, '', ?)",
            (username, email, generate_password_hash(password), now_iso()),
        )
    except sqlite3.IntegrityError:
        raise ConflictError("User with this email or username already exists")

    logger.info("Registered user %s (%s)", user_id, username)
    return jsonify({"user": user_to_dict(get_user_row(user_id))}), 201


@api.route("/login", methods=["POST"])
@store_action("login")
def login():
    data = get_body()
    require_fields(data, "email", "password")
    email = str(data["email"]).strip().lower()

    row = query_db("SELECT * FROM users WHERE email = ?", (email,), one=True)
    if not row or not check_password_hash(row["password_hash"], str(data["password"])):
        raise AuthError("Invalid credentials")

    return jsonify({"user": user_to_dict(row)})


# -----------------------
# User routes
# -----------------------
@api.route("/users/search/<query>", methods=["GET"])
@store_action("user search")
def search_users(query):
    q = query.strip()
    if not q:
        return jsonify([])
    rows = query_db(
        "SELECT * FROM users WHERE instr(casefold(username), casefold(?)) > 0 ORDER BY username",
        (q,),
    )
    return jsonify([user_to_dict(r) for r in rows])


@api.route("/users/<user_id>", methods=["GET"])
@store_action("fetching user profile")
def get_profile(user_id):
    user_id = parse_id(user_id, "user ID")
    viewer = request.args.get("viewerId")
    viewer_id = parse_id(viewer, "viewer ID") if viewer else None

    user = user_to_dict(require_user(user_id))
    rows = query_db(
        POST_SELECT + " WHERE p.user_id = ? ORDER BY p.created_at DESC, p.id DESC",
        (viewer_id, user_id),
    )
    posts = [post_to_dict(r) for r in rows]
    followers = count_db("SELECT COUNT(*) FROM follows WHERE following_id = ?", (user_id,))
    following = count_db("SELECT COUNT(*) FROM follows WHERE follower_id = ?", (user_id,))

    user.update({
        "postsCount": len(posts),
        "followersCount": followers,
        "followingCount": following,
        "posts": posts,
    })
    return jsonify(user)


@api.route("/users/<user_id>", methods=["PUT"])
@store_action("profile update")
def update_profile(user_id):
    user_id = parse_id(user_id, "user ID")
    require_user(user_id)
    data = get_body()
    if "bio" not in data and "avatar" not in data:
        raise ValidationError("Nothing to update: send bio and/or avatar")

    if "bio" in data:
        execute_db("UPDATE users SET bio = ? WHERE id = ?", (str(data["bio"] or "").strip(), user_id))
    if "avatar" in data:
        avatar = str(data["avatar"] or "").strip() or None
        execute_db("UPDATE users SET avatar = ? WHERE id = ?", (avatar, user_id))
    return jsonify({"user": user_to_dict(get_user_row(user_id))})


@api.route("/users/<user_id>/followers", methods=["GET"])
@store_action("listing followers")
def list_followers(user_id):
    user_id = parse_id(user_id, "user ID")
    require_user(user_id)
    rows = query_db(
        "SELECT u.* FROM follows f JOIN users u ON f.follower_id = u.id "
        "WHERE f.following_id = ? ORDER BY f.created_at DESC",
        (user_id,),
    )
    return jsonify([user_to_dict(r) for r in rows])


@api.route("/users/<user_id>/following", methods=["GET"])
@store_action("listing followings")
def list_following(user_id):
    user_id = parse_id(user_id, "user ID")
    require_user(user_id)
    rows = query_db(
        "SELECT u.* FROM follows f JOIN users u ON f.following_id = u.id "
        "WHERE f.follower_id = ? ORDER BY f.created_at DESC",
        (user_id,),
    )
    return jsonify([user_to_dict(r) for r in rows])


# -----------------------
# Follow routes
# -----------------------
def follow_pair(data):
    require_fields(data, "followerId", "followingId")
    return parse_id(data["followerId"], "follower ID"), parse_id(data["followingId"], "following ID")


@api.route("/follow", methods=["POST"])
@store_action("follow action")
def follow():
    follower_id, following_id = follow_pair(get_body())
    if follower_id == following_id:
        raise ValidationError("Cannot follow yourself")
    require_user(follower_id)
    require_user(following_id)

    if query_db(
        "SELECT 1 FROM follows WHERE follower_id = ? AND following_id = ?",
        (follower_id, following_id),
        one=True,
    ):
        raise ConflictError("Already following this user")
    try:
        execute_db(
            "INSERT INTO follows (follower_id, following_id, created_at) VALUES (?, ?, ?)",
            (follower_id, following_id, now_iso()),
        )
    except sqlite3.IntegrityError:
        # lost a race against an identical request
        raise ConflictError("Already following this user")
    return jsonify({"message": "Followed successfully"}), 201


@api.route("/follow", methods=["DELETE"])
@store_action("unfollow action")
def unfollow():
    follower_id, following_id = follow_pair(get_body())
    execute_db(
        "DELETE FROM follows WHERE follower_id = ? AND following_id = ?",
        (follower_id, following_id),
    )
    return jsonify({"message": "Unfollowed successfully"})


@api.route("/follow/status/<follower_id>/<following_id>", methods=["GET"])
@store_action("follow status check")
def follow_status(follower_id, following_id):
    follower_id = parse_id(follower_id, "follower ID")
    following_id = parse_id(following_id, "following ID")
    rel = query_db(
        "SELECT 1 FROM follows WHERE follower_id = ? AND following_id = ?",
        (follower_id, following_id),
        one=True,
    )
    return jsonify({"isFollowing": rel is not None})


# -----------------------
# Post routes
# -----------------------
@api.route("/posts", methods=["POST"])
@store_action("post creation")
def create_post():
    # multipart/form-data (with optional image) or JSON accepted
    if request.is_json:
        data = get_body()
        file = None
    else:
        data = request.form.to_dict()
        file = request.files.get("image")
        if file is not None and not file.filename:
            file = None

    if file is not None:
        check_image_file(file)

    require_fields(data, "userId", "content")
    user_id = parse_id(data["userId"], "user ID")
    if not isinstance(data["content"], str):
        raise ValidationError("content must be a string")
    if data.get("type") is not None and not isinstance(data["type"], str):
        raise ValidationError("type must be 'text' or 'image'")
    post_type = (data.get("type") or ("image" if file else "text")).strip()
    if post_type not in POST_TYPES:
        raise ValidationError("type must be 'text' or 'image'")
    require_user(user_id)

    host = app.config["IMAGE_HOST"]
    uploaded = host.upload(file) if file is not None else None

    try:
        post_id = execute_db(
            "INSERT INTO posts (user_id, content, type, image, created_at) VALUES (?, ?, ?, ?, ?)",
            (user_id, data["content"], post_type, uploaded.url if uploaded else None, now_iso()),
        )
    except sqlite3.Error:
        logger.exception("Post insert failed for user %s", user_id)
        if uploaded is not None:
            try:
                host.delete(uploaded.asset_id)
            except UpstreamError:
                logger.error("Orphaned image %s left on %s", uploaded.asset_id, host.name)
        raise InternalError("Server error during post creation")

    return jsonify(get_post_dict(post_id, viewer_id=user_id)), 201


@api.route("/posts/<post_id>", methods=["GET"])
@store_action("fetching post")
def get_post(post_id):
    post_id = parse_id(post_id, "post ID")
    viewer = request.args.get("viewerId")
    viewer_id = parse_id(viewer, "viewer ID") if viewer else None
    post = get_post_dict(post_id, viewer_id=viewer_id)
    if post is None:
        raise NotFoundError("Post not found")
    return jsonify(post)


@api.route("/posts/feed/<user_id>", methods=["GET"])
@store_action("loading feed")
def feed(user_id):
    # posts by the user and everyone they follow, newest first
    user_id = parse_id(user_id, "user ID")
    rows = query_db(
        POST_SELECT
        + """
        WHERE p.user_id = ?
           OR p.user_id IN (SELECT following_id FROM follows WHERE follower_id = ?)
        ORDER BY p.created_at DESC, p.id DESC
        """,
        (user_id, user_id, user_id),
    )
    return jsonify([post_to_dict(r) for r in rows])


# -----------------------
# Like routes
# -----------------------
@api.route("/likes", methods=["POST"])
@store_action("toggling like")
def toggle_like():
    data = get_body()
    require_fields(data, "userId", "postId")
    user_id = parse_id(data["userId"], "user ID")
    post_id = parse_id(data["postId"], "post ID")
    require_user(user_id)
    require_post(post_id)

    existing = query_db("SELECT id FROM likes WHERE user_id = ? AND post_id = ?", (user_id, post_id), one=True)
    if existing:
        execute_db("DELETE FROM likes WHERE id = ?", (existing["id"],))
        return jsonify({"message": "Post unliked", "liked": False})

    try:
        execute_db(
            "INSERT INTO likes (user_id, post_id, created_at) VALUES (?, ?, ?)",
            (user_id, post_id, now_iso()),
        )
    except sqlite3.IntegrityError:
        raise ConflictError("Post already liked")
    return jsonify({"message": "Post liked", "liked": True}), 201


@api.route("/likes/status/<user_id>/<post_id>", methods=["GET"])
@store_action("checking like status")
def like_status(user_id, post_id):
    user_id = parse_id(user_id, "user ID")
    post_id = parse_id(post_id, "post ID")
    r = query_db("SELECT 1 FROM likes WHERE user_id = ? AND post_id = ?", (user_id, post_id), one=True)
    return jsonify({"isLiked": r is not None})


# -----------------------
# Comment routes
# -----------------------
COMMENT_SELECT = "SELECT c.*, u.username, u.avatar FROM comments c JOIN users u ON c.user_id = u.id"


@api.route("/comments", methods=["POST"])
@store_action("adding comment")
def add_comment():
    data = get_body()
    require_fields(data, "userId", "postId", "content")
    user_id = parse_id(data["userId"], "user ID")
    post_id = parse_id(data["postId"], "post ID")
    content = str(data["content"]).strip()
    require_user(user_id)
    require_post(post_id)

    comment_id = execute_db(
        "INSERT INTO comments (user_id, post_id, content, created_at) VALUES (?, ?, ?, ?)",
        (user_id, post_id, content, now_iso()),
    )
    row = query_db(COMMENT_SELECT + " WHERE c.id = ?", (comment_id,), one=True)
    return jsonify(comment_to_dict(row)), 201


@api.route("/comments/<post_id>", methods=["GET"])
@store_action("loading comments")
def list_comments(post_id):
    post_id = parse_id(post_id, "post ID")
    rows = query_db(COMMENT_SELECT + " WHERE c.post_id = ? ORDER BY c.created_at ASC, c.id ASC", (post_id,))
    return jsonify([comment_to_dict(r) for r in rows])


app.register_blueprint(api)


# -----------------------
# Client UI and uploaded files
# -----------------------
@app.route("/", methods=["GET"])
def index_ui():
    return render_template_string(INDEX_HTML, api_base=api.url_prefix)


@app.route("/uploads/<path:filename>", methods=["GET"])
def uploaded_file(filename):
    # Only populated by the local image host; use nginx or a CDN at scale
    safe_path = os.path.normpath(filename)
    if safe_path.startswith(".."):
        abort(404)
    return send_from_directory(app.config["UPLOAD_FOLDER"], filename, as_attachment=False)


# -----------------------
# Security headers
# -----------------------
@app.after_request
def set_security_headers(response):
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=()")
    # inline script/style for the bundled UI; remote images come from the image host over https
    response.headers.setdefault("Content-Security-Policy", "default-src 'self' 'unsafe-inline'; img-src 'self' data: https:;")
    return response


# -----------------------
# Error handlers
# -----------------------
@app.errorhandler(ApiError)
def api_error(e):
    return jsonify({"error": e.message}), e.status_code


@app.errorhandler(413)
def too_large(e):
    return jsonify({"error": "Uploaded file is too large"}), 413


@app.errorhandler(404)
def not_found(e):
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(405)
def method_not_allowed(e):
    return jsonify({"error": "Method not allowed"}), 405


@app.errorhandler(400)
def bad_request(e):
    return jsonify({"error": "Bad request"}), 400


@app.errorhandler(500)
def internal_error(e):
    # Flask has already logged the traceback of the original exception
    return jsonify({"error": "Internal server error"}), 500


# -----------------------
# Startup: initialize DB on first run
# -----------------------
with app.app_context():
    init_db()
    logger.info("Database initialized/ready at %s", app.config["DATABASE"])
    logger.info("Image host: %s", app.config["IMAGE_HOST"].name)

# -----------------------
# Run server (for dev only). For production use a WSGI server.
# -----------------------
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 3000)), debug=os.environ.get("FLASK_DEBUG", "0") == "1")
