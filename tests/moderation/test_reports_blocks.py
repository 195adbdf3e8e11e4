"""Report and block tests."""

import pytest


@pytest.fixture
def new_post(client, auth_headers, channels):
    async def _post(user, title="Post"):
        body = {"channel_id": channels["free"].id, "title": title, "content": "c"}
        return (await client.post("/api/v1/posts", json=body, headers=auth_headers(user))).json()

    return _post


class TestReports:
    async def test_report_post(self, client, make_user, auth_headers, new_post):
        author = await make_user()
        reporter = await make_user()
        post = await new_post(author)
        response = await client.post(
            "/api/v1/reports",
            json={"target_type": "POST", "post_id": post["id"], "reason": "SPAM", "detail": "ads"},
            headers=auth_headers(reporter),
        )
        assert response.status_code == 201
        assert response.json()["target_id"] == post["id"]
        assert response.json()["status"] == "PENDING"

    async def test_duplicate_report_conflicts(self, client, make_user, auth_headers, new_post):
        author = await make_user()
        reporter = await make_user()
        post = await new_post(author)
        body = {"target_type": "POST", "post_id": post["id"], "reason": "SPAM"}
        await client.post("/api/v1/reports", json=body, headers=auth_headers(reporter))
        again = await client.post("/api/v1/reports", json={**body, "reason": "ABUSE"}, headers=auth_headers(reporter))
        assert again.status_code == 409

    async def test_cannot_report_own_post(self, client, make_user, auth_headers, new_post):
        author = await make_user()
        post = await new_post(author)
        response = await client.post(
            "/api/v1/reports",
            json={"target_type": "POST", "post_id": post["id"], "reason": "SPAM"},
            headers=auth_headers(author),
        )
        assert response.status_code == 400

    async def test_cannot_report_self(self, client, make_user, auth_headers):
        user = await make_user()
        response = await client.post(
            "/api/v1/reports",
            json={"target_type": "USER", "target_user_id": user.id, "reason": "ABUSE"},
            headers=auth_headers(user),
        )
        assert response.status_code == 400

    async def test_missing_target_id(self, client, make_user, auth_headers):
        user = await make_user()
        response = await client.post(
            "/api/v1/reports", json={"target_type": "COMMENT", "reason": "SPAM"}, headers=auth_headers(user)
        )
        assert response.status_code == 400

    async def test_deleted_post_not_reportable(self, client, make_user, auth_headers, new_post):
        author = await make_user()
        reporter = await make_user()
        post = await new_post(author)
        await client.delete(f"/api/v1/posts/{post['id']}", headers=auth_headers(author))
        response = await client.post(
            "/api/v1/reports",
            json={"target_type": "POST", "post_id": post["id"], "reason": "SPAM"},
            headers=auth_headers(reporter),
        )
        assert response.status_code == 404

    async def test_my_reports(self, client, make_user, auth_headers):
        reporter = await make_user()
        target = await make_user()
        await client.post(
            "/api/v1/reports",
            json={"target_type": "USER", "target_user_id": target.id, "reason": "ABUSE"},
            headers=auth_headers(reporter),
        )
        response = await client.get("/api/v1/reports/my", headers=auth_headers(reporter))
        assert response.json()["total"] == 1


class TestBlocks:
    async def test_block_lifecycle(self, client, make_user, auth_headers):
        me = await make_user()
        other = await make_user(nickname="pest")
        headers = auth_headers(me)

        created = await client.post(f"/api/v1/blocks/{other.id}", headers=headers)
        assert created.status_code == 201
        assert created.json()["nickname"] == "pest"
        assert (await client.post(f"/api/v1/blocks/{other.id}", headers=headers)).status_code == 409
        assert (await client.get(f"/api/v1/blocks/{other.id}", headers=headers)).json()["blocked"] is True
        assert (await client.get("/api/v1/blocks", headers=headers)).json()["total"] == 1

        assert (await client.delete(f"/api/v1/blocks/{other.id}", headers=headers)).status_code == 204
        assert (await client.delete(f"/api/v1/blocks/{other.id}", headers=headers)).status_code == 404

    async def test_cannot_block_self(self, client, make_user, auth_headers):
        me = await make_user()
        assert (await client.post(f"/api/v1/blocks/{me.id}", headers=auth_headers(me))).status_code == 400

    async def test_block_unknown_user(self, client, make_user, auth_headers):
        me = await make_user()
        assert (await client.post("/api/v1/blocks/missing", headers=auth_headers(me))).status_code == 404

    async def test_blocked_authors_hidden(self, client, make_user, auth_headers, new_post):
        me = await make_user()
        pest = await make_user()
        post = await new_post(pest, title="noise")
        await new_post(me, title="mine")
        await client.post(
            "/api/v1/comments", json={"post_id": post["id"], "content": "hi"}, headers=auth_headers(pest)
        )
        headers = auth_headers(me)
        await client.post(f"/api/v1/blocks/{pest.id}", headers=headers)

        posts = await client.get("/api/v1/posts", headers=headers)
        assert [p["title"] for p in posts.json()["items"]] == ["mine"]
        comments = await client.get("/api/v1/comments", params={"post_id": post["id"]}, headers=headers)
        assert comments.json()["total"] == 0
