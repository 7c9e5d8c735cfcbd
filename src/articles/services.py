"""Article engagement, bulk operations, statistics, and image handling."""

import logging
from typing import Any, Iterable

from django.conf import settings
from django.db import transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied

from core.validators import parse_uuid
from uploads.services import StoredImage, UploadOptions, delete_image, replace_image
from .models import Article, Bookmark, Comment, Like

logger = logging.getLogger(__name__)

BULK_UPDATABLE_FIELDS = ("published", "category")
ARTICLE_IMAGE_OPTIONS = {"width": 800, "height": 400, "crop": "fill"}


class ArticleService:
    """Operations on articles beyond plain field updates.

    Each toggle or counter change is a single-row database operation so that
    concurrent requests against one article converge without extra locking.
    """

    @classmethod
    def record_view(cls, article: Article) -> None:
        """Increment the stored view counter and reflect it on ``article``."""
        Article.objects.filter(pk=article.pk).update(views=F("views") + 1)
        article.views += 1

    @classmethod
    def toggle_like(cls, user, article: Article) -> tuple[bool, int]:
        """Remove the user's like if present, else add one; return (liked, count)."""
        with transaction.atomic():
            removed, _ = Like.objects.filter(article=article, user=user).delete()
            if not removed:
                Like.objects.get_or_create(article=article, user=user)
        return not removed, Like.objects.filter(article=article).count()

    @classmethod
    def toggle_bookmark(cls, user, article: Article) -> tuple[bool, int]:
        """Same toggle discipline as likes, over bookmarks."""
        with transaction.atomic():
            removed, _ = Bookmark.objects.filter(article=article, user=user).delete()
            if not removed:
                Bookmark.objects.get_or_create(article=article, user=user)
        return not removed, Bookmark.objects.filter(article=article).count()

    @classmethod
    def add_comment(cls, user, article: Article, content: str) -> Comment:
        return Comment.objects.create(article=article, user=user, content=content)

    @classmethod
    def get_comment(cls, article: Article, comment_id) -> Comment:
        comment_pk = parse_uuid(comment_id, "Invalid comment ID format")
        try:
            return Comment.objects.select_related("user").get(pk=comment_pk, article=article)
        except Comment.DoesNotExist:
            raise NotFound("Comment not found")

    @classmethod
    def edit_comment(cls, user, article: Article, comment_id, content: str) -> Comment:
        """Only the comment's author may change its content."""
        comment = cls.get_comment(article, comment_id)
        if comment.user_id != user.pk:
            raise PermissionDenied("Not authorized to update this comment")
        comment.content = content
        comment.save(update_fields=["content", "updated_at"])
        return comment

    @classmethod
    def delete_comment(cls, user, article: Article, comment_id) -> None:
        """The comment's author or the article's author may delete a comment."""
        comment = cls.get_comment(article, comment_id)
        if user.pk not in (comment.user_id, article.author_id):
            raise PermissionDenied("Not authorized to delete this comment")
        comment.delete()

    @classmethod
    def replace_featured_image(cls, article: Article, upload) -> StoredImage:
        """Release the current image (best-effort) and store the new one."""
        options = UploadOptions(folder=cls._folder("articles"), **ARTICLE_IMAGE_OPTIONS)
        stored = replace_image(article.featured_image_id or None, upload, options)
        article.set_featured_image(stored.id, stored.url)
        article.save(update_fields=["featured_image_id", "featured_image_url"])
        return stored

    @classmethod
    def delete_article(cls, article: Article) -> None:
        if article.featured_image_id:
            delete_image(article.featured_image_id)
        article.delete()

    @classmethod
    def bulk_delete(cls, user, article_ids: Iterable) -> int:
        """Delete all requested articles or none of them.

        Every id must resolve to an article owned by ``user``; otherwise the
        call is rejected with 403 before anything is touched. Images are
        released before rows are removed.
        """
        ids = set(article_ids)
        owned = list(Article.objects.filter(pk__in=ids, author=user))
        if len(owned) != len(ids):
            raise PermissionDenied("Some articles not found or not authorized")

        for article in owned:
            if article.featured_image_id:
                delete_image(article.featured_image_id)

        Article.objects.filter(pk__in=ids, author=user).delete()
        logger.info("Bulk deleted %d articles for user %s", len(owned), user.pk)
        return len(owned)

    @classmethod
    def bulk_update(cls, user, article_ids: Iterable, updates: dict[str, Any]) -> int:
        """Apply ``published``/``category`` to the requester's articles only.

        Ids the requester does not own are skipped rather than rejected.
        Publishing stamps ``published_at`` only where it is still unset.
        """
        changes = {key: value for key, value in updates.items() if key in BULK_UPDATABLE_FIELDS}
        queryset = Article.objects.filter(pk__in=set(article_ids), author=user)
        with transaction.atomic():
            if changes.get("published") is True:
                queryset.filter(published_at__isnull=True).update(published_at=timezone.now())
            modified = queryset.update(updated_at=timezone.now(), **changes)
        return modified

    @classmethod
    def author_stats(cls, user) -> dict[str, int]:
        """Aggregate counters across every article written by ``user``."""
        articles = Article.objects.filter(author=user)
        totals = articles.aggregate(
            total=Count("pk"),
            published=Count("pk", filter=Q(published=True)),
            views=Sum("views"),
        )
        total = totals["total"] or 0
        published = totals["published"] or 0
        return {
            "totalArticles": total,
            "publishedArticles": published,
            "draftArticles": total - published,
            "totalViews": totals["views"] or 0,
            "totalLikes": Like.objects.filter(article__author=user).count(),
            "totalComments": Comment.objects.filter(article__author=user).count(),
            "totalBookmarks": Bookmark.objects.filter(article__author=user).count(),
        }

    @staticmethod
    def _folder(kind: str) -> str:
        return f"{settings.CLOUDINARY_FOLDER}/{kind}"


__all__ = ["ArticleService", "BULK_UPDATABLE_FIELDS"]
