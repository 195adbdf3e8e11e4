"""Hashtag usage bookkeeping and discovery endpoint tests."""

import pytest

from offcast.hashtags import service


@pytest.fixture
def tagged_post(client, auth_headers, channels):
    async def _post(user, hashtags, channel="free"):
        body = {"channel_id": channels[channel].id, "title": "t", "content": "c", "hashtags": hashtags}
        response = await client.post("/api/v1/posts", json=body, headers=auth_headers(user))
        return response.json()

    return _post


class TestUsage:
    async def test_usage_counts_posts_and_comments(self, client, db, make_user, auth_headers, tagged_post):
        user = await make_user()
        post = await tagged_post(user, ["shared"])
        await client.post(
            "/api/v1/comments",
            json={"post_id": post["id"], "content": "me too", "hashtags": ["#shared"]},
            headers=auth_headers(user),
        )
        tag = await service.find_by_name(db, "shared")
        await db.refresh(tag)
        assert tag.usage_count == 2


class TestDiscovery:
    async def test_search_by_prefix(self, client, make_user, auth_headers, tagged_post):
        user = await make_user()
        await tagged_post(user, ["gaming", "game_dev"])
        await tagged_post(user, ["gaming"])
        await tagged_post(user, ["food"])

        response = await client.get("/api/v1/hashtags/search", params={"q": "#GAM"}, headers=auth_headers(user))
        assert [h["name"] for h in response.json()] == ["gaming", "game_dev"]

    async def test_search_escapes_wildcards(self, client, make_user, auth_headers, tagged_post):
        user = await make_user()
        await tagged_post(user, ["game_dev", "gamexdev"])
        response = await client.get("/api/v1/hashtags/search", params={"q": "game_"}, headers=auth_headers(user))
        assert [h["name"] for h in response.json()] == ["game_dev"]

    async def test_popular(self, client, make_user, auth_headers, tagged_post):
        user = await make_user()
        await tagged_post(user, ["b", "a"])
        await tagged_post(user, ["a"])
        response = await client.get("/api/v1/hashtags/popular")
        assert [(h["name"], h["usage_count"]) for h in response.json()] == [("a", 2), ("b", 1)]

    async def test_get_by_name(self, client, make_user, tagged_post):
        user = await make_user()
        await tagged_post(user, ["gaming"])
        response = await client.get("/api/v1/hashtags/%23Gaming")
        assert response.status_code == 200
        assert response.json()["name"] == "gaming"
        assert response.json()["usage_count"] == 1

    async def test_get_unknown_name(self, client):
        response = await client.get("/api/v1/hashtags/nothing-here")
        assert response.status_code == 404
        assert response.json() == {"detail": "Hashtag not found"}

    async def test_trending_counts_recent_tagging(self, client, make_user, tagged_post):
        user = await make_user()
        await tagged_post(user, ["hot"])
        await tagged_post(user, ["hot", "warm"])
        response = await client.get("/api/v1/hashtags/trending")
        assert response.json()[0]["name"] == "hot"
        assert response.json()[0]["recent_count"] == 2

    async def test_posts_by_hashtag_respects_access(self, client, make_user, auth_headers, tagged_post):
        big = await make_user(subscriber_count=150_000)
        small = await make_user(subscriber_count=500)
        await tagged_post(big, ["news"], channel="lounge-100k")
        await tagged_post(small, ["news"], channel="free")

        response = await client.get("/api/v1/hashtags/news/posts", headers=auth_headers(small))
        assert response.json()["total"] == 1
