"""Article model with engagement records (likes, bookmarks, comments) and tags."""

import math
import re
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from .querysets import ArticleQuerySet

WORDS_PER_MINUTE = 200
EXCERPT_LENGTH = 300
MARKDOWN_MARKERS = re.compile(r"[#*`]")


def compute_read_time(content: str) -> int:
    """Minutes needed to read ``content`` at 200 words per minute, at least 1."""
    return max(1, math.ceil(len(content.split()) / WORDS_PER_MINUTE))


def derive_excerpt(content: str) -> str:
    """Plain-text preview of ``content`` capped at 300 characters."""
    plain = MARKDOWN_MARKERS.sub("", content).strip()
    if len(plain) <= EXCERPT_LENGTH:
        return plain
    return plain[: EXCERPT_LENGTH - 3].rstrip() + "..."


class Category(models.TextChoices):
    TECHNOLOGY = "Technology"
    HEALTH = "Health"
    BUSINESS = "Business"
    SCIENCE = "Science"
    POLITICS = "Politics"
    SPORTS = "Sports"
    ENTERTAINMENT = "Entertainment"
    OTHER = "Other"


class Article(models.Model):
    """Long-form Markdown article owned by its author.

    ``read_time``, ``excerpt`` and ``published_at`` are derived in ``save()``:
    read time and the default excerpt follow ``content``; ``published_at`` is
    stamped once, on the first save where ``published`` is true.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    content = models.TextField()
    excerpt = models.CharField(max_length=EXCERPT_LENGTH, blank=True)
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="articles")
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.OTHER)
    featured_image_id = models.CharField(max_length=255, blank=True)
    featured_image_url = models.CharField(max_length=500, blank=True)
    read_time = models.PositiveIntegerField(default=1)
    published = models.BooleanField(default=False)
    published_at = models.DateTimeField(null=True, blank=True)
    views = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ArticleQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["author", "-created_at"], name="article_author_created_idx"),
            models.Index(fields=["published", "-published_at"], name="article_published_idx"),
            models.Index(fields=["category"], name="article_category_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.title

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        # Remember what was loaded so save() can tell whether content changed.
        instance._loaded_content = instance.__dict__.get("content")
        return instance

    def refresh_from_db(self, *args, **kwargs):
        super().refresh_from_db(*args, **kwargs)
        self._loaded_content = self.__dict__.get("content")

    @property
    def content_changed(self) -> bool:
        if self._state.adding:
            return True
        return self.content != getattr(self, "_loaded_content", None)

    @property
    def featured_image(self) -> dict | None:
        if not self.featured_image_id:
            return None
        return {"id": self.featured_image_id, "url": self.featured_image_url}

    @property
    def tag_names(self) -> list[str]:
        return [tag.name for tag in self.tags.all()]

    def set_featured_image(self, image_id: str = "", url: str = "") -> None:
        self.featured_image_id = image_id
        self.featured_image_url = url

    def apply_derived_fields(self) -> None:
        """Recompute read time, default excerpt, and first publish time."""
        if self.content_changed:
            self.read_time = compute_read_time(self.content)
            if not self.excerpt:
                self.excerpt = derive_excerpt(self.content)
        if self.published and self.published_at is None:
            self.published_at = timezone.now()

    def save(self, *args, **kwargs):
        self.apply_derived_fields()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | {"read_time", "excerpt", "published_at", "updated_at"}
        super().save(*args, **kwargs)
        self._loaded_content = self.content

    def set_tags(self, names: list[str]) -> None:
        """Replace tags, preserving order and dropping duplicates."""
        unique: list[str] = []
        for name in names:
            if name not in unique:
                unique.append(name)
        self.tags.all().delete()
        ArticleTag.objects.bulk_create(
            [ArticleTag(article=self, name=name, position=index) for index, name in enumerate(unique)]
        )


class ArticleTag(models.Model):
    article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name="tags")
    name = models.CharField(max_length=30)
    position = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(fields=["article", "name"], name="unique_article_tag"),
        ]
        indexes = [models.Index(fields=["name"], name="article_tag_name_idx")]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class Like(models.Model):
    """One like per user per article; ``created_at`` orders recent likes."""

    article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name="likes")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="likes")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["article", "user"], name="unique_article_like"),
        ]


class Bookmark(models.Model):
    article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name="bookmarks")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="bookmarks")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["article", "user"], name="unique_article_bookmark"),
        ]


class Comment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name="comments")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="comments")
    content = models.CharField(max_length=1000)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.user_id} on {self.article_id}"


__all__ = ["Article", "ArticleTag", "Bookmark", "Category", "Comment", "Like", "compute_read_time", "derive_excerpt"]
