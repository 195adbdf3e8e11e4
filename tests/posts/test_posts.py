"""Post CRUD, listing, and like tests."""

import pytest
from sqlalchemy import select

from offcast.db.models import Hashtag, Post, PostLike
from offcast.posts import service


@pytest.fixture
def create_post(client, auth_headers):
    async def _create(user, channel, title="Hello", content="First post", **extra):
        body = {"channel_id": channel.id, "title": title, "content": content, **extra}
        response = await client.post("/api/v1/posts", json=body, headers=auth_headers(user))
        assert response.status_code == 201, response.text
        return response.json()

    return _create


class TestCreate:
    async def test_create_with_images_and_hashtags(self, make_user, channels, create_post):
        user = await make_user(nickname="alice")
        post = await create_post(
            user,
            channels["free"],
            hashtags=["#Gaming", "gaming", "Tips"],
            image_urls=["https://cdn/a.png", "https://cdn/b.png"],
            image_keys=["posts/a.png"],
        )
        assert sorted(post["hashtags"]) == ["gaming", "tips"]
        assert [i["order"] for i in post["images"]] == [0, 1]
        assert post["images"][0]["key"] == "posts/a.png"
        assert post["author"]["author_info"] == "youtube|alice|15만"

    async def test_outside_band_forbidden(self, client, make_user, auth_headers, channels):
        user = await make_user(subscriber_count=150_000)
        body = {"channel_id": channels["lounge-10k"].id, "title": "t", "content": "c"}
        response = await client.post("/api/v1/posts", json=body, headers=auth_headers(user))
        assert response.status_code == 403

    async def test_unknown_channel(self, client, make_user, auth_headers, channels):
        user = await make_user()
        body = {"channel_id": "missing", "title": "t", "content": "c"}
        response = await client.post("/api/v1/posts", json=body, headers=auth_headers(user))
        assert response.status_code == 404

    async def test_validation(self, client, make_user, auth_headers, channels):
        user = await make_user()
        body = {"channel_id": channels["free"].id, "title": "", "content": "c"}
        response = await client.post("/api/v1/posts", json=body, headers=auth_headers(user))
        assert response.status_code == 422

    async def test_requires_auth(self, client, channels):
        response = await client.post("/api/v1/posts", json={"channel_id": channels["free"].id})
        assert response.status_code == 401


class TestRead:
    async def test_detail_counts_views(self, client, make_user, auth_headers, channels, create_post):
        user = await make_user()
        post = await create_post(user, channels["free"])
        headers = auth_headers(user)
        await client.get(f"/api/v1/posts/{post['id']}", headers=headers)
        response = await client.get(f"/api/v1/posts/{post['id']}", headers=headers)
        assert response.json()["view_count"] == 2

    async def test_detail_in_foreign_band_forbidden(self, client, make_user, auth_headers, channels, create_post):
        author = await make_user(subscriber_count=150_000)
        post = await create_post(author, channels["lounge-100k"])
        outsider = await make_user(subscriber_count=500)
        response = await client.get(f"/api/v1/posts/{post['id']}", headers=auth_headers(outsider))
        assert response.status_code == 403

    async def test_missing_post(self, client, make_user, auth_headers, channels):
        user = await make_user()
        response = await client.get("/api/v1/posts/nope", headers=auth_headers(user))
        assert response.status_code == 404


class TestList:
    async def test_all_accessible_channels(self, client, make_user, auth_headers, channels, create_post):
        big = await make_user(subscriber_count=150_000)
        small = await make_user(subscriber_count=500)
        await create_post(big, channels["lounge-100k"], title="big lounge")
        await create_post(small, channels["lounge-100"], title="small lounge")
        await create_post(small, channels["free"], title="open")

        response = await client.get("/api/v1/posts", headers=auth_headers(small))
        titles = {p["title"] for p in response.json()["items"]}
        assert titles == {"small lounge", "open"}

    async def test_channel_filter_requires_access(self, client, make_user, auth_headers, channels):
        small = await make_user(subscriber_count=500)
        response = await client.get(
            "/api/v1/posts", params={"channel_id": channels["lounge-1m"].id}, headers=auth_headers(small)
        )
        assert response.status_code == 403

    async def test_keyword_and_hashtag_filters(self, client, make_user, auth_headers, channels, create_post):
        user = await make_user()
        await create_post(user, channels["free"], title="Camera review", hashtags=["gear"])
        await create_post(user, channels["free"], title="Cooking", content="camera angles", hashtags=["food"])
        await create_post(user, channels["free"], title="Other")
        headers = auth_headers(user)

        by_keyword = await client.get("/api/v1/posts", params={"keyword": "CAMERA"}, headers=headers)
        assert by_keyword.json()["total"] == 2
        by_tag = await client.get("/api/v1/posts", params={"hashtag": "#Food"}, headers=headers)
        assert [p["title"] for p in by_tag.json()["items"]] == ["Cooking"]

    async def test_sort_by_views(self, client, make_user, auth_headers, channels, create_post):
        user = await make_user()
        headers = auth_headers(user)
        quiet = await create_post(user, channels["free"], title="quiet")
        loud = await create_post(user, channels["free"], title="loud")
        for _ in range(3):
            await client.get(f"/api/v1/posts/{loud['id']}", headers=headers)
        await client.get(f"/api/v1/posts/{quiet['id']}", headers=headers)

        response = await client.get("/api/v1/posts", params={"sort": "views"}, headers=headers)
        assert [p["title"] for p in response.json()["items"]] == ["loud", "quiet"]

    async def test_sort_popular_prefers_liked(self, client, make_user, auth_headers, channels, create_post):
        author = await make_user()
        fans = [await make_user() for _ in range(2)]
        liked = await create_post(author, channels["free"], title="liked")
        await create_post(author, channels["free"], title="ignored")
        for fan in fans:
            await client.post(f"/api/v1/posts/{liked['id']}/like", headers=auth_headers(fan))

        response = await client.get("/api/v1/posts", params={"sort": "popular"}, headers=auth_headers(author))
        assert response.json()["items"][0]["title"] == "liked"

    async def test_pagination(self, client, make_user, auth_headers, channels, create_post):
        user = await make_user()
        for i in range(5):
            await create_post(user, channels["free"], title=f"p{i}")
        response = await client.get("/api/v1/posts", params={"limit": 2, "page": 3}, headers=auth_headers(user))
        data = response.json()
        assert data["total"] == 5
        assert data["total_pages"] == 3
        assert len(data["items"]) == 1

    async def test_my_posts(self, client, make_user, auth_headers, channels, create_post):
        me = await make_user()
        other = await make_user()
        await create_post(me, channels["free"], title="mine")
        await create_post(other, channels["free"], title="theirs")
        response = await client.get("/api/v1/posts/my", headers=auth_headers(me))
        assert [p["title"] for p in response.json()["items"]] == ["mine"]
        assert response.json()["limit"] == 15


class TestUpdateDelete:
    async def test_author_edits_and_replaces_hashtags(self, client, db, make_user, auth_headers, channels, create_post):
        user = await make_user()
        post = await create_post(user, channels["free"], hashtags=["old"])
        response = await client.put(
            f"/api/v1/posts/{post['id']}", json={"title": "Edited", "hashtags": ["new"]}, headers=auth_headers(user)
        )
        assert response.status_code == 200
        assert response.json()["title"] == "Edited"
        assert response.json()["hashtags"] == ["new"]

        usage = dict((await db.execute(select(Hashtag.name, Hashtag.usage_count))).all())
        assert usage == {"old": 0, "new": 1}

    async def test_other_user_cannot_edit(self, client, make_user, auth_headers, channels, create_post):
        author = await make_user()
        other = await make_user()
        post = await create_post(author, channels["free"])
        response = await client.put(f"/api/v1/posts/{post['id']}", json={"title": "x"}, headers=auth_headers(other))
        assert response.status_code == 403

    async def test_soft_delete(self, client, db, make_user, auth_headers, channels, create_post):
        user = await make_user()
        post = await create_post(user, channels["free"], hashtags=["gone"])
        headers = auth_headers(user)
        assert (await client.delete(f"/api/v1/posts/{post['id']}", headers=headers)).status_code == 204
        assert (await client.get(f"/api/v1/posts/{post['id']}", headers=headers)).status_code == 404

        row = (await db.execute(select(Post).where(Post.id == post["id"]))).scalar_one()
        await db.refresh(row)
        assert row.deleted_at is not None
        tag = (await db.execute(select(Hashtag).where(Hashtag.name == "gone"))).scalar_one()
        await db.refresh(tag)
        assert tag.usage_count == 0

    async def test_delete_releases_each_association_once(
        self, client, db, make_user, auth_headers, channels, create_post
    ):
        user = await make_user()
        doomed = await create_post(user, channels["free"], hashtags=["shared", "solo", "extra"])
        await create_post(user, channels["free"], hashtags=["shared"])

        await client.delete(f"/api/v1/posts/{doomed['id']}", headers=auth_headers(user))
        usage = dict((await db.execute(select(Hashtag.name, Hashtag.usage_count))).all())
        assert usage == {"shared": 1, "solo": 0, "extra": 0}


class TestLikes:
    async def test_toggle(self, client, make_user, auth_headers, channels, create_post):
        user = await make_user()
        post = await create_post(user, channels["free"])
        headers = auth_headers(user)

        first = await client.post(f"/api/v1/posts/{post['id']}/like", headers=headers)
        assert first.json() == {"liked": True, "like_count": 1}
        status = await client.get(f"/api/v1/posts/{post['id']}/like", headers=headers)
        assert status.json() == {"liked": True}
        second = await client.post(f"/api/v1/posts/{post['id']}/like", headers=headers)
        assert second.json() == {"liked": False, "like_count": 0}

    async def test_counter_matches_rows(self, db, make_user, channels):
        author = await make_user()
        fans = [await make_user() for _ in range(3)]
        post = await service.create_post(db, author.id, channels["free"].id, "t", "c")
        for fan in fans:
            await service.toggle_like(db, post.id, fan.id)
        await service.toggle_like(db, post.id, fans[0].id)

        rows = (await db.execute(select(PostLike).where(PostLike.post_id == post.id))).scalars().all()
        count = await db.scalar(select(Post.like_count).where(Post.id == post.id))
        assert count == len(rows) == 2

    async def test_counter_never_negative(self, db, make_user, channels):
        author = await make_user()
        post = await service.create_post(db, author.id, channels["free"].id, "t", "c")
        # Like row without a counter bump, as left by an interrupted writer
        db.add(PostLike(post_id=post.id, user_id=author.id))
        await db.flush()

        liked, like_count = await service.toggle_like(db, post.id, author.id)
        assert liked is False
        assert like_count == 0

    async def test_author_info_endpoint(self, client, make_user, auth_headers, channels, create_post):
        author = await make_user(subscriber_count=5_500, provider="tiktok", nickname="bob")
        post = await create_post(author, channels["free"])
        response = await client.get(f"/api/v1/posts/{post['id']}/author-info", headers=auth_headers(author))
        assert response.json() == {"author_info": "tiktok|bob|5.5천"}
