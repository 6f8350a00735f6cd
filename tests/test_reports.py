from devforum.db.models.report import Report


def test_second_pending_report_conflicts(client, db_session, make_user, make_post, auth_header):
    post = make_post(make_user("Alice"))
    headers = auth_header(make_user("Bob"))

    first = client.post("/api/reports/", json={"post_id": post.id, "reason": "spam"}, headers=headers)
    assert first.status_code == 201
    assert first.json()["status"] == "pending"
    assert first.json()["reason"] == "spam"

    second = client.post(f"/api/posts/{post.id}/report", json={"reason": "still spam"}, headers=headers)
    assert second.status_code == 409
    assert second.json()["detail"] == "You have already reported this post."
    assert db_session.query(Report).count() == 1


def test_different_users_may_report_same_post(client, make_user, make_post, auth_header):
    post = make_post(make_user("Alice"))
    for name in ("Bob", "Carol"):
        response = client.post(f"/api/posts/{post.id}/report", headers=auth_header(make_user(name)))
        assert response.status_code == 201
        assert response.json()["reason"] is None


def test_report_missing_post_is_404(client, make_user, auth_header):
    response = client.post("/api/reports/", json={"post_id": 31337}, headers=auth_header(make_user("Bob")))
    assert response.status_code == 404


def test_admin_lists_and_resolves_reports(client, make_user, make_post, auth_header):
    admin = make_user("Root", role="admin")
    reporter = make_user("Bob")
    post = make_post(make_user("Alice"))
    report = client.post(f"/api/posts/{post.id}/report", json={"reason": "offtopic"}, headers=auth_header(reporter)).json()

    pending = client.get("/api/admin/reports", params={"status": "pending"}, headers=auth_header(admin))
    assert pending.status_code == 200
    assert [r["id"] for r in pending.json()] == [report["id"]]
    listed = pending.json()[0]
    assert listed["post"]["title"] == post.title
    assert listed["post"]["author"]["name"] == "Alice"
    assert listed["user"]["name"] == "Bob"

    resolved = client.patch(
        f"/api/admin/reports/{report['id']}",
        json={"status": "resolved"},
        headers=auth_header(admin),
    )
    assert resolved.status_code == 200
    assert resolved.json()["status"] == "resolved"
    assert client.get("/api/admin/reports", params={"status": "pending"}, headers=auth_header(admin)).json() == []

    # Once resolved, the same user may report the post again
    again = client.post(f"/api/posts/{post.id}/report", headers=auth_header(reporter))
    assert again.status_code == 201

    reopen = client.patch(
        f"/api/admin/reports/{report['id']}",
        json={"status": "pending"},
        headers=auth_header(admin),
    )
    assert reopen.status_code == 409


def test_admin_report_routes_reject_regular_users(client, make_user, auth_header):
    headers = auth_header(make_user("Bob"))
    assert client.get("/api/admin/reports", headers=headers).status_code == 403
    assert client.patch("/api/admin/reports/1", json={"status": "resolved"}, headers=headers).status_code == 403


def test_admin_rejects_unknown_status(client, make_user, auth_header):
    admin = make_user("Root", role="admin")
    response = client.patch("/api/admin/reports/1", json={"status": "archived"}, headers=auth_header(admin))
    assert response.status_code == 422
