"""QuerySet helpers for article visibility, filtering, and ranking."""

from datetime import timedelta

from django.apps import apps
from django.db import models
from django.db.models import Count, Exists, F, OuterRef, Q
from django.utils import timezone


def _is_authenticated(user) -> bool:
    return user is not None and getattr(user, "is_authenticated", False)


class ArticleQuerySet(models.QuerySet):
    """Chainable filters used by the article views and services."""

    def visible_to(self, user):
        """Published articles, plus the requester's own drafts."""
        if _is_authenticated(user):
            return self.filter(Q(published=True) | Q(author=user))
        return self.filter(published=True)

    def published(self):
        return self.filter(published=True)

    def tagged(self, tag: str):
        return self.filter(tags__name=tag.strip().lower())

    def search(self, term: str):
        """Case-insensitive substring match over title, content, and tags."""
        term = term.strip()
        return self.filter(
            Q(title__icontains=term) | Q(content__icontains=term) | Q(tags__name__icontains=term)
        ).distinct()

    def with_related(self):
        return self.select_related("author").prefetch_related("tags")

    def with_engagement(self):
        """Annotate ``likes_count``, ``comments_count`` and ``bookmarks_count``."""
        return self.annotate(
            likes_count=Count("likes", distinct=True),
            comments_count=Count("comments", distinct=True),
            bookmarks_count=Count("bookmarks", distinct=True),
        )

    def with_viewer_state(self, user):
        """Annotate ``is_liked`` / ``is_bookmarked`` for an authenticated viewer."""
        if not _is_authenticated(user):
            return self
        like_model = apps.get_model("articles", "Like")
        bookmark_model = apps.get_model("articles", "Bookmark")
        return self.annotate(
            is_liked=Exists(like_model.objects.filter(article=OuterRef("pk"), user=user)),
            is_bookmarked=Exists(bookmark_model.objects.filter(article=OuterRef("pk"), user=user)),
        )

    def feed_order(self):
        """Most recently published first; drafts (no publish date) last."""
        return self.order_by(F("published_at").desc(nulls_last=True), "-created_at")

    def trending(self, days: int, now=None):
        """Articles published in the last ``days`` days, ranked live.

        Order: views, then likes + comments, then publish date, all descending.
        A window reaching past the earliest representable date has no lower bound.
        """
        queryset = self.filter(published=True)
        try:
            threshold = (now or timezone.now()) - timedelta(days=days)
        except OverflowError:
            threshold = None
        if threshold is not None:
            queryset = queryset.filter(published_at__gte=threshold)
        return (
            queryset
            .with_engagement()
            .annotate(engagement=F("likes_count") + F("comments_count"))
            .order_by("-views", "-engagement", "-published_at")
        )


__all__ = ["ArticleQuerySet"]
