import json

from devforum.core import storage
from devforum.db.models.comment import Comment
from devforum.db.models.like import CommentHelpful, CommentLike, PostHelpful, PostLike
from devforum.db.models.notifications import Notification
from devforum.db.models.post import Post
from devforum.db.models.report import Report
from devforum.db.models.saved_post import SavedPost


def test_create_post_returns_view_with_zero_counts(client, make_user, auth_header):
    user = make_user("Alice")

    response = client.post(
        "/api/posts/",
        data={
            "title": "Borrow checker error",
            "description": "cannot borrow as mutable",
            "content": "Clone the value first.",
            "code_snippet": "let x = y.clone();",
            "tags": json.dumps(["rust", "borrowck"]),
        },
        headers=auth_header(user),
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["title"] == "Borrow checker error"
    assert body["tags"] == ["rust", "borrowck"]
    assert body["author"]["id"] == user.id
    assert body["likes"] == 0 and body["helpful_count"] == 0 and body["comment_count"] == 0
    assert body["liked"] is False and body["saved"] is False


def test_create_post_validates_required_fields_and_tags(client, make_user, auth_header):
    headers = auth_header(make_user("Alice"))

    missing = client.post("/api/posts/", data={"title": "No solution"}, headers=headers)
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Missing required fields"

    bad_tags = client.post(
        "/api/posts/",
        data={"title": "t", "content": "c", "tags": "python, fastapi"},
        headers=headers,
    )
    assert bad_tags.status_code == 400


def test_create_post_uploads_screenshot(client, make_user, auth_header, monkeypatch):
    uploads = []

    def fake_upload(data, **options):
        uploads.append(options)
        return {"secure_url": "https://cdn.example.com/post_images/shot.png", "public_id": "post_images/shot"}

    monkeypatch.setattr(storage.uploader, "upload", fake_upload)

    response = client.post(
        "/api/posts/",
        data={"title": "Layout bug", "content": "Use flex-basis."},
        files={"screenshot": ("shot.png", b"\x89PNG fake", "image/png")},
        headers=auth_header(make_user("Alice")),
    )

    assert response.status_code == 201, response.text
    assert response.json()["image_url"] == "https://cdn.example.com/post_images/shot.png"
    assert uploads[0]["folder"] == "post_images"


def test_create_post_rejects_non_image_upload(client, make_user, auth_header):
    response = client.post(
        "/api/posts/",
        data={"title": "t", "content": "c"},
        files={"screenshot": ("notes.txt", b"hello", "text/plain")},
        headers=auth_header(make_user("Alice")),
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid image format"


def test_get_post_counts_come_from_join_tables(client, make_user, make_post, auth_header):
    author = make_user("Alice")
    fan = make_user("Bob")
    post = make_post(author)
    client.post(f"/api/posts/{post.id}/like", headers=auth_header(fan))
    client.post(f"/api/posts/{post.id}/helpful", headers=auth_header(fan))
    client.post(f"/api/comments/post/{post.id}", data={"content": "thanks"}, headers=auth_header(fan))

    body = client.get(f"/api/posts/{post.id}", headers=auth_header(fan)).json()
    assert body["likes"] == 1
    assert body["helpful_count"] == 1
    assert body["comment_count"] == 1
    assert body["liked"] is True and body["helpful"] is True

    anonymous = client.get(f"/api/posts/{post.id}").json()
    assert anonymous["likes"] == 1 and anonymous["liked"] is False


def test_get_missing_post_is_404(client):
    response = client.get("/api/posts/404")
    assert response.status_code == 404
    assert response.json()["detail"] == "Post not found"


def test_list_posts_newest_first_with_paging(client, make_user, make_post):
    author = make_user("Alice")
    older = make_post(author, title="Older")
    newer = make_post(author, title="Newer")

    listed = client.get("/api/posts/").json()
    assert [p["id"] for p in listed] == [newer.id, older.id]

    page = client.get("/api/posts/", params={"skip": 1, "limit": 1}).json()
    assert [p["id"] for p in page] == [older.id]


def test_only_owner_can_edit_post(client, make_user, make_post, auth_header):
    author = make_user("Alice")
    post = make_post(author, tags=["go"])

    forbidden = client.put(f"/api/posts/{post.id}", data={"title": "mine now"}, headers=auth_header(make_user("Eve")))
    assert forbidden.status_code == 403

    response = client.put(
        f"/api/posts/{post.id}",
        data={"title": "Goroutine leak", "tags": json.dumps(["go", "concurrency"])},
        headers=auth_header(author),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Goroutine leak"
    assert body["tags"] == ["go", "concurrency"]
    assert body["content"] == "Check your bounds."


def test_delete_post_removes_every_dependent_row(client, db_session, make_user, make_post, auth_header):
    author = make_user("Alice")
    fan = make_user("Bob")
    post = make_post(author)
    post_id = post.id
    fan_headers = auth_header(fan)
    comment = client.post(f"/api/comments/post/{post_id}", data={"content": "nice"}, headers=fan_headers).json()
    client.post(f"/api/posts/{post_id}/like", headers=fan_headers)
    client.post(f"/api/posts/{post_id}/helpful", headers=fan_headers)
    client.post(f"/api/posts/{post_id}/save", headers=fan_headers)
    client.post(f"/api/posts/{post_id}/report", json={"reason": "spam"}, headers=fan_headers)
    client.post(f"/api/comments/{comment['id']}/like", headers=auth_header(author))
    client.post(f"/api/comments/{comment['id']}/helpful", headers=auth_header(author))

    assert client.delete(f"/api/posts/{post_id}", headers=fan_headers).status_code == 403

    response = client.delete(f"/api/posts/{post_id}", headers=auth_header(author))
    assert response.status_code == 200
    assert response.json() == {"success": True}

    for model in (SavedPost, PostLike, PostHelpful, Comment, Report, Notification):
        assert db_session.query(model).filter(model.post_id == post_id).count() == 0
    assert db_session.query(CommentLike).count() == 0
    assert db_session.query(CommentHelpful).count() == 0
    assert db_session.query(Post).count() == 0
    assert client.get(f"/api/posts/{post_id}").status_code == 404


def test_delete_missing_post_is_404(client, make_user, auth_header):
    assert client.delete("/api/posts/77", headers=auth_header(make_user("Alice"))).status_code == 404


def test_save_and_unsave_are_idempotent(client, db_session, make_user, make_post, auth_header):
    post = make_post(make_user("Alice"))
    reader = make_user("Bob")
    headers = auth_header(reader)

    assert client.post(f"/api/posts/{post.id}/save", headers=headers).json() == {"saved": True}
    assert client.post(f"/api/posts/{post.id}/save", headers=headers).json() == {"saved": True}
    assert db_session.query(SavedPost).count() == 1

    saved = client.get("/api/users/me/saved-posts", headers=headers).json()
    assert [p["id"] for p in saved] == [post.id]
    assert saved[0]["saved"] is True

    assert client.post(f"/api/posts/{post.id}/unsave", headers=headers).json() == {"saved": False}
    assert client.post(f"/api/posts/{post.id}/unsave", headers=headers).json() == {"saved": False}
    assert client.get("/api/users/me/saved-posts", headers=headers).json() == []


def test_save_missing_post_is_404(client, make_user, auth_header):
    assert client.post("/api/posts/5/save", headers=auth_header(make_user("Bob"))).status_code == 404


def test_liked_posts_lists_only_current_likes(client, make_user, make_post, auth_header):
    author = make_user("Alice")
    reader = make_user("Bob")
    headers = auth_header(reader)
    kept = make_post(author, title="Kept")
    dropped = make_post(author, title="Dropped")
    client.post(f"/api/posts/{kept.id}/like", headers=headers)
    client.post(f"/api/posts/{dropped.id}/like", headers=headers)
    client.post(f"/api/posts/{dropped.id}/like", headers=headers)

    liked = client.get("/api/users/me/liked-posts", headers=headers).json()
    assert [p["id"] for p in liked] == [kept.id]
    assert liked[0]["liked"] is True
