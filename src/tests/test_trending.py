"""Tests for the trending window and its composite ordering."""

from __future__ import annotations

from datetime import timedelta

from django.utils import timezone

from articles.models import Article, Comment, Like
from tests.utils import APITestCase, create_article, create_user


def _published(author, title, days_ago, views=0):
    article = create_article(author, title=title, published=True, views=views)
    Article.objects.filter(pk=article.pk).update(published_at=timezone.now() - timedelta(days=days_ago))
    return article


class TrendingTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.author = create_user("author@example.com")
        cls.fans = [create_user(f"fan{index}@example.com") for index in range(3)]

    def _titles(self, query=""):
        response = self.api_client.get(f"/articles/trending/{query}")
        self.assertEqual(response.status_code, 200)
        return [item["title"] for item in response.json()["articles"]]

    def test_window_includes_six_days_and_excludes_eight(self):
        _published(self.author, "Recent", days_ago=6)
        _published(self.author, "Stale", days_ago=8)

        self.assertEqual(self._titles("?days=7"), ["Recent"])
        self.assertEqual(set(self._titles("?days=30")), {"Recent", "Stale"})

    def test_drafts_are_never_trending(self):
        create_article(self.author, title="Draft", views=1000)
        self.assertEqual(self._titles(), [])

    def test_invalid_days_fall_back_to_seven(self):
        _published(self.author, "Recent", days_ago=6)
        _published(self.author, "Stale", days_ago=8)

        self.assertEqual(self._titles("?days=abc"), ["Recent"])
        self.assertEqual(self._titles("?days=0"), ["Recent"])

    def test_order_views_then_engagement_then_recency(self):
        _published(self.author, "Most viewed", days_ago=5, views=50)
        quiet = _published(self.author, "Quiet", days_ago=1, views=10)
        busy = _published(self.author, "Busy", days_ago=4, views=10)
        _published(self.author, "Newer tie", days_ago=2, views=5)
        _published(self.author, "Older tie", days_ago=3, views=5)

        Like.objects.create(article=busy, user=self.fans[0])
        Like.objects.create(article=busy, user=self.fans[1])
        Comment.objects.create(article=quiet, user=self.fans[2], content="hi")

        self.assertEqual(
            self._titles(),
            ["Most viewed", "Busy", "Quiet", "Newer tie", "Older tie"],
        )

    def test_trending_is_paginated(self):
        for index in range(3):
            _published(self.author, f"Post {index}", days_ago=1, views=index)

        body = self.api_client.get("/articles/trending/?limit=2&page=2").json()
        self.assertEqual(body["pagination"]["total"], 3)
        self.assertEqual([item["title"] for item in body["articles"]], ["Post 0"])

    def test_huge_window_has_no_lower_bound(self):
        _published(self.author, "Recent", days_ago=6)
        _published(self.author, "Ancient", days_ago=3000)

        for days in ("1000000000", "800000"):
            self.assertEqual(set(self._titles(f"?days={days}")), {"Recent", "Ancient"})
