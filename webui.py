# webui.py
"""
Browser client served at /.

Plain HTML + vanilla JS talking to the JSON API. The only persisted client
state is the logged-in user, kept in a session object backed by
localStorage["currentUser"]; everything else is re-rendered from API replies.
Rendered through render_template_string with ``api_base`` as the only
template variable.
"""

INDEX_HTML = r"""
<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>Mini Social</title>
  <meta name="viewport" content="width=device-width,initial-scale=1" />
  <style>
    body { font-family: Arial, sans-serif; background:#f4f5f7; margin:0; }
    .hidden { display:none !important; }
    .error { color:#c0392b; font-size:0.9em; min-height:1.2em; }
    .small { font-size:0.85em; color:#6c757d; }
    button { cursor:pointer; padding:6px 10px; border-radius:6px; border:1px solid #ddd; background:#fff; }
    button.active, button.primary { background:#4a6cf7; color:#fff; border-color:#4a6cf7; }
    input[type="text"], input[type="email"], input[type="password"], textarea {
      width:100%; box-sizing:border-box; padding:8px; border-radius:6px; border:1px solid #ccc; margin-bottom:8px;
    }
    textarea { min-height:70px; }
    #auth-section { display:flex; justify-content:center; padding-top:60px; }
    .auth-card { background:#fff; padding:24px; border-radius:8px; width:320px; box-shadow:0 1px 4px rgba(0,0,0,0.08); }
    #main-app { display:none; max-width:720px; margin:0 auto; padding:16px; flex-direction:column; gap:12px; }
    nav { display:flex; gap:8px; align-items:center; }
    nav .spacer { flex:1; }
    .card, .post-card { background:#fff; border:1px solid #e3e3e3; border-radius:8px; padding:12px; margin-bottom:12px; }
    .post-header { display:flex; gap:10px; align-items:center; }
    .user-avatar { width:36px; height:36px; border-radius:50%; background:#4a6cf7; color:#fff;
      display:flex; align-items:center; justify-content:center; font-weight:bold; overflow:hidden; }
    .user-avatar img { width:100%; height:100%; object-fit:cover; }
    .post-image { max-width:100%; border-radius:6px; margin-top:8px; }
    .post-actions { display:flex; gap:8px; margin-top:8px; }
    .action-btn.liked { color:#e0245e; border-color:#e0245e; }
    .comments-section { margin-top:8px; border-top:1px solid #eee; padding-top:8px; }
    .comment { margin-bottom:6px; }
    .comment-form { display:flex; gap:6px; }
    .comment-form input { margin:0; }
    .user-row { display:flex; justify-content:space-between; align-items:center; padding:6px 0; border-bottom:1px solid #f0f0f0; }
    .profile-stats { display:flex; gap:16px; margin:8px 0; }
    .link { color:#4a6cf7; cursor:pointer; }
  </style>
</head>
<body>
  <div id="auth-section">
    <div class="auth-card">
      <h2>Mini Social</h2>
      <form id="login-form">
        <h3>Login</h3>
        <input id="login-email" type="email" placeholder="email" required />
        <input id="login-password" type="password" placeholder="password" required />
        <div id="login-error" class="error"></div>
        <button type="submit" class="primary">Login</button>
        <p class="small">No account? <span class="link" id="show-register">Register</span></p>
      </form>
      <form id="register-form" class="hidden">
        <h3>Register</h3>
        <input id="register-username" type="text" placeholder="username" required />
        <input id="register-email" type="email" placeholder="email" required />
        <input id="register-password" type="password" placeholder="password" required />
        <div id="register-error" class="error"></div>
        <button type="submit" class="primary">Register</button>
        <p class="small">Have an account? <span class="link" id="show-login">Login</span></p>
      </form>
    </div>
  </div>

  <div id="main-app">
    <nav class="card">
      <button data-section="feed" class="nav-btn active">Feed</button>
      <button data-section="profile" class="nav-btn">Profile</button>
      <button data-section="search" class="nav-btn">Search</button>
      <span class="spacer"></span>
      <span id="user-info" class="small"></span>
      <button id="logout-btn">Logout</button>
    </nav>

    <div id="feed-section">
      <form id="post-form" class="card">
        <div style="margin-bottom:8px;">
          <button type="button" class="type-btn active" data-type="text">Text</button>
          <button type="button" class="type-btn" data-type="image">Image</button>
        </div>
        <textarea id="post-content" placeholder="What's on your mind?" required></textarea>
        <div id="image-upload" class="hidden">
          <input type="file" id="post-image" accept="image/jpeg,image/png,image/gif" />
        </div>
        <div id="post-error" class="error"></div>
        <button type="submit" class="primary">Post</button>
      </form>
      <div id="posts-container"></div>
    </div>

    <div id="profile-section" class="hidden">
      <div id="profile-container"></div>
    </div>

    <div id="search-section" class="hidden">
      <div class="card">
        <input id="search-input" type="text" placeholder="Search users by username" />
        <div id="search-results"></div>
      </div>
    </div>
  </div>

<script>
const API_BASE = "{{ api_base }}";

// -----------------------
// Session
// -----------------------
function createSession(storage) {
  let stored = null;
  try {
    stored = JSON.parse(storage.getItem("currentUser") || "null");
  } catch (e) {
    storage.removeItem("currentUser");
  }
  return {
    user: stored,
    postType: "text",
    set(user) {
      this.user = user;
      storage.setItem("currentUser", JSON.stringify(user));
    },
    clear() {
      this.user = null;
      storage.removeItem("currentUser");
    },
    isSelf(userId) {
      return !!this.user && String(this.user.id) === String(userId);
    },
  };
}

// -----------------------
// API helpers
// -----------------------
async function apiRequest(path, options) {
  const res = await fetch(API_BASE + path, options || {});
  let body = null;
  try {
    body = await res.json();
  } catch (e) {
    body = null;
  }
  if (!res.ok) {
    throw new Error((body && body.error) || ("HTTP " + res.status));
  }
  return body;
}

function jsonRequest(method, payload) {
  return { method, headers: { "Content-Type": "application/json" }, body: JSON.stringify(payload) };
}

function escapeHtml(unsafe) {
  if (unsafe === null || unsafe === undefined) return "";
  return String(unsafe)
    .replaceAll("&", "&amp;")
    .replaceAll("<", "&lt;")
    .replaceAll(">", "&gt;")
    .replaceAll('"', "&quot;")
    .replaceAll("'", "&#039;");
}

function getTimeAgo(date) {
  const seconds = Math.floor((new Date() - date) / 1000);
  if (seconds < 60) return "just now";
  const minutes = Math.floor(seconds / 60);
  if (minutes < 60) return minutes + "m ago";
  const hours = Math.floor(minutes / 60);
  if (hours < 24) return hours + "h ago";
  const days = Math.floor(hours / 24);
  if (days < 7) return days + "d ago";
  return date.toLocaleDateString();
}

function showError(elementId, message) {
  const el = document.getElementById(elementId);
  el.textContent = message;
  setTimeout(() => { el.textContent = ""; }, 5000);
}

function avatarHtml(user) {
  if (user.avatar) return `<div class="user-avatar"><img src="${escapeHtml(user.avatar)}" alt="" /></div>`;
  return `<div class="user-avatar">${escapeHtml((user.username || "?")[0].toUpperCase())}</div>`;
}

// -----------------------
// Auth
// -----------------------
async function login(session, event) {
  event.preventDefault();
  const email = document.getElementById("login-email").value;
  const password = document.getElementById("login-password").value;
  try {
    const data = await apiRequest("/login", jsonRequest("POST", { email, password }));
    session.set(data.user);
    showMainApp(session);
  } catch (error) {
    showError("login-error", error.message);
  }
}

async function register(session, event) {
  event.preventDefault();
  const username = document.getElementById("register-username").value;
  const email = document.getElementById("register-email").value;
  const password = document.getElementById("register-password").value;
  try {
    const data = await apiRequest("/register", jsonRequest("POST", { username, email, password }));
    session.set(data.user);
    showMainApp(session);
  } catch (error) {
    showError("register-error", error.message);
  }
}

function showAuthForm(which) {
  document.getElementById("login-form").classList.toggle("hidden", which !== "login");
  document.getElementById("register-form").classList.toggle("hidden", which !== "register");
}

function showMainApp(session) {
  document.getElementById("auth-section").style.display = "none";
  document.getElementById("main-app").style.display = "flex";
  document.getElementById("user-info").textContent = "@" + session.user.username;
  showSection(session, "feed");
}

function logout(session) {
  session.clear();
  document.getElementById("auth-section").style.display = "flex";
  document.getElementById("main-app").style.display = "none";
  document.getElementById("posts-container").innerHTML = "";
  document.getElementById("profile-container").innerHTML = "";
  document.getElementById("search-results").innerHTML = "";
  showAuthForm("login");
}

function showSection(session, sectionName) {
  for (const name of ["feed", "profile", "search"]) {
    document.getElementById(name + "-section").classList.toggle("hidden", name !== sectionName);
  }
  document.querySelectorAll(".nav-btn").forEach(btn => {
    btn.classList.toggle("active", btn.dataset.section === sectionName);
  });
  if (sectionName === "feed") loadFeed(session);
  if (sectionName === "profile") loadProfile(session, session.user.id);
}

// -----------------------
// Posts
// -----------------------
function setPostType(session, type) {
  session.postType = type;
  document.querySelectorAll(".type-btn").forEach(btn => {
    btn.classList.toggle("active", btn.dataset.type === type);
  });
  const imageInput = document.getElementById("post-image");
  document.getElementById("image-upload").classList.toggle("hidden", type !== "image");
  imageInput.required = type === "image";
  if (type !== "image") imageInput.value = "";
}

async function createPost(session, event) {
  event.preventDefault();
  const content = document.getElementById("post-content").value;
  const imageFile = document.getElementById("post-image").files[0];

  const formData = new FormData();
  formData.append("userId", session.user.id);
  formData.append("content", content);
  formData.append("type", session.postType);
  if (session.postType === "image" && imageFile) formData.append("image", imageFile);

  try {
    await apiRequest("/posts", { method: "POST", body: formData });
    document.getElementById("post-form").reset();
    setPostType(session, "text");
    loadFeed(session);
  } catch (error) {
    showError("post-error", error.message);
  }
}

async function loadFeed(session) {
  const container = document.getElementById("posts-container");
  container.innerHTML = '<p class="small">Loading...</p>';
  try {
    const posts = await apiRequest(`/posts/feed/${session.user.id}`);
    renderPosts(session, posts, container);
  } catch (error) {
    container.innerHTML = `<p class="error">${escapeHtml(error.message)}</p>`;
  }
}

function renderPosts(session, posts, container) {
  container.innerHTML = "";
  if (!posts.length) {
    container.innerHTML = '<p class="small">No posts yet. Follow someone or write your first post.</p>';
    return;
  }
  for (const post of posts) {
    container.appendChild(createPostElement(session, post));
  }
}

function createPostElement(session, post) {
  const postDiv = document.createElement("div");
  postDiv.className = "post-card";
  const author = post.user || { id: post.userId, username: "?" };

  postDiv.innerHTML = `
    <div class="post-header">
      ${avatarHtml(author)}
      <div>
        <strong class="link author-link">${escapeHtml(author.username)}</strong>
        <div class="small">${getTimeAgo(new Date(post.createdAt))}</div>
      </div>
    </div>
    <div class="post-content">
      <p>${escapeHtml(post.content)}</p>
      ${post.image ? `<img src="${escapeHtml(post.image)}" alt="Post image" class="post-image">` : ""}
    </div>
    <div class="post-actions">
      <button class="action-btn like-btn"><span class="heart"></span> <span class="likes-count">${post.likes}</span></button>
      <button class="action-btn comments-btn">Comments <span class="comments-count">${post.comments}</span></button>
    </div>
    <div class="comments-section hidden">
      <div class="comments-list"></div>
      <div class="comment-form">
        <input type="text" class="comment-input" placeholder="Write a comment..." />
        <button class="comment-send">Send</button>
      </div>
    </div>
  `;

  const likeBtn = postDiv.querySelector(".like-btn");
  renderLikeState(likeBtn, post.likedByMe);
  likeBtn.addEventListener("click", () => toggleLike(session, post.id, likeBtn));
  postDiv.querySelector(".author-link").addEventListener("click", () => viewProfile(session, author.id));
  postDiv.querySelector(".comments-btn").addEventListener("click", () => toggleComments(post.id, postDiv));
  postDiv.querySelector(".comment-send").addEventListener("click", () => addComment(session, post.id, postDiv));
  postDiv.querySelector(".comment-input").addEventListener("keydown", e => {
    if (e.key === "Enter") addComment(session, post.id, postDiv);
  });
  return postDiv;
}

function renderLikeState(likeBtn, liked) {
  likeBtn.classList.toggle("liked", liked);
  likeBtn.querySelector(".heart").textContent = liked ? "♥" : "♡";
}

async function toggleLike(session, postId, likeBtn) {
  try {
    const data = await apiRequest("/likes", jsonRequest("POST", { userId: session.user.id, postId }));
    const count = likeBtn.querySelector(".likes-count");
    count.textContent = parseInt(count.textContent, 10) + (data.liked ? 1 : -1);
    renderLikeState(likeBtn, data.liked);
  } catch (error) {
    console.error("Error toggling like:", error);
  }
}

// -----------------------
// Comments
// -----------------------
async function toggleComments(postId, postDiv) {
  const section = postDiv.querySelector(".comments-section");
  section.classList.toggle("hidden");
  if (!section.classList.contains("hidden")) await loadComments(postId, postDiv);
}

async function loadComments(postId, postDiv) {
  const list = postDiv.querySelector(".comments-list");
  list.innerHTML = '<p class="small">Loading comments...</p>';
  try {
    const comments = await apiRequest(`/comments/${postId}`);
    list.innerHTML = comments.length ? "" : '<p class="small">No comments yet.</p>';
    for (const c of comments) {
      list.insertAdjacentHTML("beforeend", `
        <div class="comment">
          <strong>${escapeHtml(c.user.username)}</strong> ${escapeHtml(c.content)}
          <span class="small">${getTimeAgo(new Date(c.createdAt))}</span>
        </div>`);
    }
  } catch (error) {
    list.innerHTML = `<p class="error">${escapeHtml(error.message)}</p>`;
  }
}

async function addComment(session, postId, postDiv) {
  const input = postDiv.querySelector(".comment-input");
  const content = input.value.trim();
  if (!content) return;
  try {
    await apiRequest("/comments", jsonRequest("POST", { userId: session.user.id, postId, content }));
    input.value = "";
    const count = postDiv.querySelector(".comments-count");
    count.textContent = parseInt(count.textContent, 10) + 1;
    await loadComments(postId, postDiv);
  } catch (error) {
    console.error("Error adding comment:", error);
  }
}

// -----------------------
// Search and follows
// -----------------------
async function searchUsers(session, query) {
  const results = document.getElementById("search-results");
  query = query.trim();
  if (!query) {
    results.innerHTML = "";
    return;
  }
  try {
    const users = await apiRequest(`/users/search/${encodeURIComponent(query)}`);
    results.innerHTML = users.length ? "" : '<p class="small">No users found.</p>';
    for (const user of users) {
      const row = document.createElement("div");
      row.className = "user-row";
      row.innerHTML = `
        <div class="post-header">${avatarHtml(user)}
          <div><strong class="link">${escapeHtml(user.username)}</strong>
          <div class="small">${escapeHtml(user.bio || "")}</div></div>
        </div>`;
      row.querySelector(".link").addEventListener("click", () => viewProfile(session, user.id));
      if (!session.isSelf(user.id)) {
        const followBtn = document.createElement("button");
        followBtn.textContent = "...";
        followBtn.addEventListener("click", () => toggleFollow(session, user.id, followBtn));
        row.appendChild(followBtn);
        checkFollowStatus(session, user.id, followBtn);
      }
      results.appendChild(row);
    }
  } catch (error) {
    results.innerHTML = `<p class="error">${escapeHtml(error.message)}</p>`;
  }
}

function renderFollowState(button, following) {
  button.dataset.following = following ? "true" : "false";
  button.textContent = following ? "Unfollow" : "Follow";
  button.classList.toggle("primary", !following);
}

async function checkFollowStatus(session, userId, button) {
  try {
    const data = await apiRequest(`/follow/status/${session.user.id}/${userId}`);
    renderFollowState(button, data.isFollowing);
  } catch (error) {
    console.error("Error checking follow status:", error);
  }
}

async function toggleFollow(session, userId, button, onChange) {
  const following = button.dataset.following === "true";
  const payload = { followerId: session.user.id, followingId: userId };
  try {
    await apiRequest("/follow", jsonRequest(following ? "DELETE" : "POST", payload));
    renderFollowState(button, !following);
    if (onChange) onChange(!following);
  } catch (error) {
    console.error("Error toggling follow:", error);
  }
}

// -----------------------
// Profile
// -----------------------
function viewProfile(session, userId) {
  showSection(session, "none");
  document.getElementById("profile-section").classList.remove("hidden");
  loadProfile(session, userId);
}

async function loadProfile(session, userId) {
  const container = document.getElementById("profile-container");
  container.innerHTML = '<p class="small">Loading profile...</p>';
  try {
    const user = await apiRequest(`/users/${userId}?viewerId=${session.user.id}`);
    container.innerHTML = `
      <div class="card">
        <div class="post-header">
          ${avatarHtml(user)}
          <div><h3 style="margin:0;">${escapeHtml(user.username)}</h3>
          <div class="small">${escapeHtml(user.bio || "")}</div></div>
        </div>
        <div class="profile-stats">
          <span><strong>${user.postsCount}</strong> posts</span>
          <span><strong class="followers-count">${user.followersCount}</strong> followers</span>
          <span><strong>${user.followingCount}</strong> following</span>
        </div>
        <div class="profile-actions"></div>
      </div>
      <div id="profile-posts"></div>`;

    if (!session.isSelf(user.id)) {
      const followBtn = document.createElement("button");
      followBtn.textContent = "...";
      const followers = container.querySelector(".followers-count");
      followBtn.addEventListener("click", () => toggleFollow(session, user.id, followBtn, nowFollowing => {
        followers.textContent = parseInt(followers.textContent, 10) + (nowFollowing ? 1 : -1);
      }));
      container.querySelector(".profile-actions").appendChild(followBtn);
      checkFollowStatus(session, user.id, followBtn);
    }
    renderPosts(session, user.posts, document.getElementById("profile-posts"));
  } catch (error) {
    container.innerHTML = `<p class="error">${escapeHtml(error.message)}</p>`;
  }
}

// -----------------------
// Wiring
// -----------------------
(function () {
  const session = createSession(window.localStorage);

  document.getElementById("login-form").addEventListener("submit", e => login(session, e));
  document.getElementById("register-form").addEventListener("submit", e => register(session, e));
  document.getElementById("show-register").addEventListener("click", () => showAuthForm("register"));
  document.getElementById("show-login").addEventListener("click", () => showAuthForm("login"));
  document.getElementById("logout-btn").addEventListener("click", () => logout(session));
  document.getElementById("post-form").addEventListener("submit", e => createPost(session, e));
  document.getElementById("search-input").addEventListener("input", e => searchUsers(session, e.target.value));
  document.querySelectorAll(".nav-btn").forEach(btn => {
    btn.addEventListener("click", () => showSection(session, btn.dataset.section));
  });
  document.querySelectorAll(".type-btn").forEach(btn => {
    btn.addEventListener("click", () => setPostType(session, btn.dataset.type));
  });

  if (session.user && session.user.id) {
    showMainApp(session);
  } else {
    session.clear();
    showAuthForm("login");
  }
})();
</script>
</body>
</html>
"""
