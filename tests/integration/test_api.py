"""End-to-end API flows over the ASGI app."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

API = "/api/v1"


async def _create_article(
    client: AsyncClient, headers: dict[str, str], title: str = "Hello World", **extra  # noqa: ANN003
) -> dict:
    resp = await client.post(
        f"{API}/articles", json={"title": title, "content": "Some words", **extra}, headers=headers
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_ready_without_redis(self, client: AsyncClient):
        resp = await client.get("/ready")
        assert resp.json()["status"] == "ready"
        assert resp.json()["checks"]["redis"] == "not configured"

    @pytest.mark.asyncio
    async def test_request_id_header(self, client: AsyncClient):
        resp = await client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert resp.headers["X-Request-ID"] == "abc-123"


class TestArticles:
    @pytest.mark.asyncio
    async def test_requires_auth(self, client: AsyncClient):
        resp = await client.post(f"{API}/articles", json={"title": "t", "content": "c"})
        assert resp.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_create_and_fetch_by_slug(self, client: AsyncClient, make_user, auth_headers):
        author = await make_user("Ada")
        created = await _create_article(client, auth_headers(author))

        assert created["slug"] == "hello-world"
        assert created["status"] == "PUBLISHED"
        assert created["author"]["name"] == "Ada"

        resp = await client.get(f"{API}/articles/slug/hello-world")
        assert resp.status_code == 200
        assert resp.json()["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_duplicate_title_gets_suffixed_slug(self, client: AsyncClient, make_user, auth_headers):
        headers = auth_headers(await make_user())
        first = await _create_article(client, headers)
        second = await _create_article(client, headers)

        assert first["slug"] == "hello-world"
        assert second["slug"].startswith("hello-world-")
        assert len(second["slug"]) == len("hello-world-") + 6

    @pytest.mark.asyncio
    async def test_missing_article_is_404(self, client: AsyncClient):
        resp = await client.get(f"{API}/articles/999999")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_only_author_can_edit(self, client: AsyncClient, make_user, auth_headers):
        article = await _create_article(client, auth_headers(await make_user()))
        other = auth_headers(await make_user())

        resp = await client.put(f"{API}/articles/{article['id']}", json={"title": "Mine"}, headers=other)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_invalid_body_is_422(self, client: AsyncClient, make_user, auth_headers):
        headers = auth_headers(await make_user())
        resp = await client.post(f"{API}/articles", json={"title": ""}, headers=headers)
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Validation error"


class TestRevisions:
    @pytest.mark.asyncio
    async def test_edit_and_restore(self, client: AsyncClient, make_user, auth_headers):
        headers = auth_headers(await make_user())
        article = await _create_article(client, headers, title="Draft one")
        url = f"{API}/articles/{article['id']}/revisions"

        resp = await client.post(url, json={"title": "Draft two", "content": "Better words"}, headers=headers)
        assert resp.status_code == 201
        snapshot = resp.json()
        assert snapshot["title"] == "Draft one"

        resp = await client.post(f"{url}/restore", json={"revision_id": snapshot["id"]}, headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["article"]["title"] == "Draft one"
        assert body["before"]["change_log"] == "Auto-saved before restoration"
        assert body["after"]["version"] == body["before"]["version"] + 1

        listing = (await client.get(url, headers=headers)).json()["revisions"]
        versions = [r["version"] for r in listing]
        assert versions == sorted(versions, reverse=True)

    @pytest.mark.asyncio
    async def test_history_hidden_from_others(self, client: AsyncClient, make_user, auth_headers):
        article = await _create_article(client, auth_headers(await make_user()))
        other = auth_headers(await make_user())

        resp = await client.get(f"{API}/articles/{article['id']}/revisions", headers=other)
        assert resp.status_code == 403


class TestClapsAndNotifications:
    @pytest.mark.asyncio
    async def test_clap_toggle_notifies_author(self, client: AsyncClient, make_user, auth_headers):
        author, reader = await make_user("Author"), await make_user("Reader")
        article = await _create_article(client, auth_headers(author))
        url = f"{API}/articles/{article['id']}/clap"

        resp = await client.post(url, json={"count": 5}, headers=auth_headers(reader))
        assert resp.json() == {"clapped": True, "total": 5}

        status = (await client.get(url, headers=auth_headers(reader))).json()
        assert status == {"total": 5, "has_clapped": True}

        notifications = (await client.get(f"{API}/notifications", headers=auth_headers(author))).json()
        assert notifications["total"] == 1
        assert notifications["unread_count"] == 1
        assert notifications["notifications"][0]["type"] == "CLAP"

        resp = await client.post(url, headers=auth_headers(reader))
        assert resp.json() == {"clapped": False, "total": 0}

    @pytest.mark.asyncio
    async def test_clap_count_out_of_range(self, client: AsyncClient, make_user, auth_headers):
        article = await _create_article(client, auth_headers(await make_user()))
        resp = await client.post(
            f"{API}/articles/{article['id']}/clap", json={"count": 51}, headers=auth_headers(await make_user())
        )
        assert resp.status_code in (400, 422)

    @pytest.mark.asyncio
    async def test_notifications_scoped_to_owner(self, client: AsyncClient, make_user, auth_headers):
        author, reader = await make_user(), await make_user()
        article = await _create_article(client, auth_headers(author))
        await client.post(
            f"{API}/articles/{article['id']}/comments", json={"content": "Great"}, headers=auth_headers(reader)
        )
        [notification] = (await client.get(f"{API}/notifications", headers=auth_headers(author))).json()[
            "notifications"
        ]

        resp = await client.patch(
            f"{API}/notifications", json={"notification_ids": [notification["id"]]}, headers=auth_headers(reader)
        )
        assert resp.status_code == 403
        resp = await client.request(
            "DELETE",
            f"{API}/notifications",
            json={"notification_ids": [notification["id"]]},
            headers=auth_headers(reader),
        )
        assert resp.status_code == 403

        resp = await client.patch(f"{API}/notifications", json={"mark_all": True}, headers=auth_headers(author))
        assert resp.json() == {"count": 1}
        unread = await client.get(f"{API}/notifications/unread-count", headers=auth_headers(author))
        assert unread.json()["unread_count"] == 0

        resp = await client.request(
            "DELETE", f"{API}/notifications", json={"delete_all_read": True}, headers=auth_headers(author)
        )
        assert resp.json() == {"count": 1}


class TestFollow:
    @pytest.mark.asyncio
    async def test_follow_toggle_and_unfollow(self, client: AsyncClient, make_user, auth_headers):
        star, fan = await make_user(), await make_user()
        headers = auth_headers(fan)

        resp = await client.post(f"{API}/users/{star.id}/follow", headers=headers)
        assert resp.json() == {"following": True, "followers": 1}
        resp = await client.get(f"{API}/users/{star.id}/following", headers=headers)
        assert resp.json()["following"] is True

        resp = await client.post(f"{API}/users/{star.id}/unfollow", headers=headers)
        assert resp.json() == {"following": False, "followers": 0}

        resp = await client.post(f"{API}/users/{star.id}/unfollow", headers=headers)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Not following this user"

    @pytest.mark.asyncio
    async def test_cannot_follow_self(self, client: AsyncClient, make_user, auth_headers):
        user = await make_user()
        resp = await client.post(f"{API}/users/{user.id}/follow", headers=auth_headers(user))
        assert resp.status_code == 400


class TestAnalyticsAndDashboard:
    @pytest.mark.asyncio
    async def test_analytics_for_author(self, client: AsyncClient, make_user, auth_headers):
        author, reader = await make_user(), await make_user()
        article = await _create_article(client, auth_headers(author))
        await client.post(
            f"{API}/articles/{article['id']}/reads",
            json={"read_time": 90, "progress": 100, "device": "desktop", "referrer": "twitter"},
            headers=auth_headers(reader),
        )

        resp = await client.get(f"{API}/articles/{article['id']}/analytics", headers=auth_headers(author))
        assert resp.status_code == 200
        body = resp.json()
        assert body["views"] == {"total": 1, "unique": 1}
        assert body["read_metrics"]["total_reads"] == 1
        assert body["read_metrics"]["completion_rate"] == 1.0
        assert body["devices"] == {"desktop": 1}
        assert body["referrals"] == {"twitter": 1}
        assert len(body["time_series"]) == 31
        assert body["views_estimated"] is True

    @pytest.mark.asyncio
    async def test_analytics_forbidden_for_others(self, client: AsyncClient, make_user, auth_headers):
        article = await _create_article(client, auth_headers(await make_user()))
        resp = await client.get(f"{API}/articles/{article['id']}/analytics", headers=auth_headers(await make_user()))
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_dashboard(self, client: AsyncClient, make_user, auth_headers):
        author, reader = await make_user(), await make_user()
        article = await _create_article(client, auth_headers(author))
        await client.post(f"{API}/articles/{article['id']}/clap", json={"count": 3}, headers=auth_headers(reader))
        await client.post(f"{API}/bookmarks", json={"article_id": article["id"]}, headers=auth_headers(reader))

        resp = await client.get(f"{API}/users/{author.id}/dashboard", headers=auth_headers(author))
        assert resp.status_code == 200
        body = resp.json()
        assert body["stats"]["article_count"] == 1
        assert body["stats"]["total_claps"] == 3
        assert body["lifetime"]["claps_received"] == 3

        reader_view = (await client.get(f"{API}/users/{reader.id}/dashboard", headers=auth_headers(reader))).json()
        assert [b["article_id"] for b in reader_view["bookmarks"]] == [article["id"]]

        resp = await client.get(f"{API}/users/{author.id}/dashboard", headers=auth_headers(reader))
        assert resp.status_code == 403


class TestAchievementAdmin:
    PAYLOAD = {
        "name": "Prolific",
        "description": "Publish 5 articles",
        "badge": "/badges/prolific.svg",
        "criteria": {"type": "ARTICLE_COUNT", "count": 5},
        "points": 25,
    }

    @pytest.mark.asyncio
    async def test_admin_only(self, client: AsyncClient, make_user, auth_headers):
        resp = await client.post(f"{API}/achievements", json=self.PAYLOAD, headers=auth_headers(await make_user()))
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_create_and_list(self, client: AsyncClient, make_user, auth_headers):
        admin = auth_headers(await make_user(role="ADMIN"))
        resp = await client.post(f"{API}/achievements", json=self.PAYLOAD, headers=admin)
        assert resp.status_code == 201
        assert resp.json()["criteria"] == {"type": "ARTICLE_COUNT", "count": 5}

        names = [a["name"] for a in (await client.get(f"{API}/achievements")).json()["achievements"]]
        assert "Prolific" in names

    @pytest.mark.asyncio
    async def test_rejects_unknown_criterion(self, client: AsyncClient, make_user, auth_headers):
        admin = auth_headers(await make_user(role="ADMIN"))
        payload = {**self.PAYLOAD, "criteria": {"type": "COMMENT_COUNT", "count": 1}}
        resp = await client.post(f"{API}/achievements", json=payload, headers=admin)
        assert resp.status_code == 422


class TestSearch:
    @pytest.mark.asyncio
    async def test_anonymous_search_is_not_recorded(self, client: AsyncClient, make_user, auth_headers):
        author = await make_user("Ada")
        await _create_article(client, auth_headers(author), title="Difference Engine")

        resp = await client.get(f"{API}/search", params={"q": "engine"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 1
        assert body["results"][0]["article"]["title"] == "Difference Engine"

        dashboard = (await client.get(f"{API}/users/{author.id}/dashboard", headers=auth_headers(author))).json()
        assert dashboard["search_history"] == []

    @pytest.mark.asyncio
    async def test_signed_in_search_shows_on_dashboard(self, client: AsyncClient, make_user, auth_headers):
        author, reader = await make_user("Ada"), await make_user()
        await _create_article(client, auth_headers(author), title="Difference Engine")

        resp = await client.get(
            f"{API}/search", params={"q": "ada", "author": author.id}, headers=auth_headers(reader)
        )
        assert resp.json()["total"] == 1

        dashboard = (await client.get(f"{API}/users/{reader.id}/dashboard", headers=auth_headers(reader))).json()
        [entry] = dashboard["search_history"]
        assert entry["query"] == "ada"
        assert entry["results"] == 1
        assert entry["filters"]["author"] == author.id


class TestProfileSettings:
    @pytest.mark.asyncio
    async def test_update_settings(self, client: AsyncClient, make_user, auth_headers):
        headers = auth_headers(await make_user("Ada"))

        resp = await client.put(
            f"{API}/users/me/settings", json={"name": "Countess", "bio": "Poetical science"}, headers=headers
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "Countess"
        assert resp.json()["bio"] == "Poetical science"

        me = (await client.get(f"{API}/users/me", headers=headers)).json()
        assert (me["name"], me["bio"]) == ("Countess", "Poetical science")

    @pytest.mark.asyncio
    async def test_requires_auth(self, client: AsyncClient):
        resp = await client.put(f"{API}/users/me/settings", json={"name": "x"})
        assert resp.status_code in (401, 403)
