"""Comment threads, counters, and like tests."""

import pytest
from sqlalchemy import select

from offcast.db.models import Hashtag, Post


@pytest.fixture
def post_in_free(client, auth_headers, channels):
    async def _post(user):
        body = {"channel_id": channels["free"].id, "title": "Thread", "content": "Discuss"}
        response = await client.post("/api/v1/posts", json=body, headers=auth_headers(user))
        return response.json()

    return _post


@pytest.fixture
def comment(client, auth_headers):
    async def _comment(user, post_id, content="Nice", **extra):
        body = {"post_id": post_id, "content": content, **extra}
        return await client.post("/api/v1/comments", json=body, headers=auth_headers(user))

    return _comment


class TestThreads:
    async def test_replies_nest_under_parent(self, client, make_user, auth_headers, post_in_free, comment):
        user = await make_user()
        post = await post_in_free(user)
        parent = (await comment(user, post["id"], "first")).json()
        await comment(user, post["id"], "reply", parent_id=parent["id"])
        await comment(user, post["id"], "second")

        response = await client.get("/api/v1/comments", params={"post_id": post["id"]}, headers=auth_headers(user))
        data = response.json()
        assert data["total"] == 2
        assert [c["content"] for c in data["items"]] == ["first", "second"]
        assert [r["content"] for r in data["items"][0]["replies"]] == ["reply"]

    async def test_reply_to_reply_rejected(self, make_user, post_in_free, comment):
        user = await make_user()
        post = await post_in_free(user)
        parent = (await comment(user, post["id"])).json()
        reply = (await comment(user, post["id"], parent_id=parent["id"])).json()
        response = await comment(user, post["id"], parent_id=reply["id"])
        assert response.status_code == 400

    async def test_parent_from_other_post_rejected(self, make_user, post_in_free, comment):
        user = await make_user()
        first = await post_in_free(user)
        second = await post_in_free(user)
        parent = (await comment(user, first["id"])).json()
        response = await comment(user, second["id"], parent_id=parent["id"])
        assert response.status_code == 400

    async def test_missing_parent(self, make_user, post_in_free, comment):
        user = await make_user()
        post = await post_in_free(user)
        assert (await comment(user, post["id"], parent_id="nope")).status_code == 404

    async def test_missing_post(self, make_user, channels, comment):
        user = await make_user()
        assert (await comment(user, "nope")).status_code == 404


class TestCounters:
    async def test_comment_count_follows_create_and_delete(
        self, client, db, make_user, auth_headers, post_in_free, comment
    ):
        user = await make_user()
        post = await post_in_free(user)
        first = (await comment(user, post["id"])).json()
        await comment(user, post["id"])
        await client.delete(f"/api/v1/comments/{first['id']}", headers=auth_headers(user))

        stored = await db.scalar(select(Post.comment_count).where(Post.id == post["id"]))
        live = await client.get("/api/v1/comments/count", params={"post_id": post["id"]}, headers=auth_headers(user))
        assert stored == live.json()["count"] == 1


class TestEditDelete:
    async def test_only_author_edits(self, client, make_user, auth_headers, post_in_free, comment):
        author = await make_user()
        other = await make_user()
        post = await post_in_free(author)
        created = (await comment(author, post["id"], hashtags=["tag"])).json()
        assert created["hashtags"] == ["tag"]

        denied = await client.put(
            f"/api/v1/comments/{created['id']}", json={"content": "hijack"}, headers=auth_headers(other)
        )
        assert denied.status_code == 403
        edited = await client.put(
            f"/api/v1/comments/{created['id']}", json={"content": "fixed"}, headers=auth_headers(author)
        )
        assert edited.json()["content"] == "fixed"

    async def test_deleted_comment_is_gone(self, client, make_user, auth_headers, post_in_free, comment):
        user = await make_user()
        post = await post_in_free(user)
        created = (await comment(user, post["id"])).json()
        await client.delete(f"/api/v1/comments/{created['id']}", headers=auth_headers(user))
        response = await client.get(f"/api/v1/comments/{created['id']}", headers=auth_headers(user))
        assert response.status_code == 404


async def _usage(db):
    return dict((await db.execute(select(Hashtag.name, Hashtag.usage_count))).all())


class TestCommentHashtags:
    async def test_delete_releases_tags(self, client, db, make_user, auth_headers, post_in_free, comment):
        user = await make_user()
        post = await post_in_free(user)
        created = (await comment(user, post["id"], hashtags=["gear", "tips"])).json()
        await comment(user, post["id"], hashtags=["tips"])

        await client.delete(f"/api/v1/comments/{created['id']}", headers=auth_headers(user))
        assert await _usage(db) == {"gear": 0, "tips": 1}

    async def test_edit_replaces_tags(self, client, db, make_user, auth_headers, post_in_free, comment):
        user = await make_user()
        post = await post_in_free(user)
        created = (await comment(user, post["id"], hashtags=["old", "kept"])).json()

        response = await client.put(
            f"/api/v1/comments/{created['id']}",
            json={"content": "edited", "hashtags": ["kept", "new"]},
            headers=auth_headers(user),
        )
        assert sorted(response.json()["hashtags"]) == ["kept", "new"]
        assert await _usage(db) == {"old": 0, "kept": 1, "new": 1}

    async def test_post_delete_releases_comment_tags(
        self, client, db, make_user, auth_headers, post_in_free, comment
    ):
        user = await make_user()
        post = await post_in_free(user)
        other_post = await post_in_free(user)
        await comment(user, post["id"], hashtags=["onlycomment", "shared"])
        await comment(user, post["id"], hashtags=["shared"])
        await comment(user, other_post["id"], hashtags=["shared"])

        await client.delete(f"/api/v1/posts/{post['id']}", headers=auth_headers(user))
        assert await _usage(db) == {"onlycomment": 0, "shared": 1}


class TestCommentLikes:
    async def test_toggle(self, client, make_user, auth_headers, post_in_free, comment):
        user = await make_user()
        post = await post_in_free(user)
        created = (await comment(user, post["id"])).json()
        url = f"/api/v1/comments/{created['id']}/like"

        assert (await client.post(url, headers=auth_headers(user))).json() == {"liked": True, "like_count": 1}
        assert (await client.get(url, headers=auth_headers(user))).json() == {"liked": True}
        assert (await client.post(url, headers=auth_headers(user))).json() == {"liked": False, "like_count": 0}
