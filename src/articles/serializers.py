"""Serializers for article CRUD, feeds, engagement, and bulk operations.

Response fields use camelCase names (``readTime``, ``publishedAt`` ...) so the
payload matches what API clients already consume.
"""

from django.db import transaction
from rest_framework import serializers

from authentication.serializers import UserSummarySerializer
from .models import Article, Category, Comment, Like


class ArticleWriteSerializer(serializers.ModelSerializer):
    """Validate author-supplied fields for create and update."""

    tags = serializers.ListField(
        child=serializers.CharField(max_length=30), required=False
    )
    category = serializers.ChoiceField(choices=Category.choices, required=False)
    excerpt = serializers.CharField(max_length=300, required=False, allow_blank=True)

    class Meta:
        """Author, counters, and derived fields are never client-writable."""
        model = Article
        fields = ["title", "content", "excerpt", "tags", "category", "published"]
        extra_kwargs = {
            "title": {"max_length": 200},
            "published": {"required": False},
        }

    @staticmethod
    def validate_tags(value):
        return [tag.strip().lower() for tag in value]

    def create(self, validated_data):
        tags = validated_data.pop("tags", [])
        with transaction.atomic():
            article = Article.objects.create(**validated_data)
            article.set_tags(tags)
        return article

    def update(self, instance, validated_data):
        tags = validated_data.pop("tags", None)
        with transaction.atomic():
            for field, value in validated_data.items():
                setattr(instance, field, value)
            instance.save()
            if tags is not None:
                instance.set_tags(tags)
        return instance


class CommentSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Comment
        fields = ["id", "content", "user", "createdAt", "updatedAt"]
        read_only_fields = fields


class CommentWriteSerializer(serializers.Serializer):
    content = serializers.CharField(min_length=1, max_length=1000)


class LikeSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Like
        fields = ["user", "createdAt"]
        read_only_fields = fields


class ArticleListSerializer(serializers.ModelSerializer):
    """Feed card: everything but the body, plus engagement counters.

    ``isLiked`` and ``isBookmarked`` are present only when the queryset was
    annotated for an authenticated viewer.
    """

    author = UserSummarySerializer(read_only=True)
    tags = serializers.SerializerMethodField()
    featuredImage = serializers.JSONField(source="featured_image", read_only=True)
    readTime = serializers.IntegerField(source="read_time", read_only=True)
    publishedAt = serializers.DateTimeField(source="published_at", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)
    likesCount = serializers.SerializerMethodField()
    commentsCount = serializers.SerializerMethodField()

    class Meta:
        model = Article
        fields = [
            "id",
            "title",
            "excerpt",
            "author",
            "tags",
            "category",
            "featuredImage",
            "readTime",
            "likesCount",
            "commentsCount",
            "views",
            "published",
            "publishedAt",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields

    @staticmethod
    def get_tags(obj) -> list[str]:
        return obj.tag_names

    @staticmethod
    def get_likesCount(obj) -> int:
        if hasattr(obj, "likes_count"):
            return obj.likes_count
        return obj.likes.count()

    @staticmethod
    def get_commentsCount(obj) -> int:
        if hasattr(obj, "comments_count"):
            return obj.comments_count
        return obj.comments.count()

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if hasattr(instance, "is_liked"):
            data["isLiked"] = bool(instance.is_liked)
            data["isBookmarked"] = bool(instance.is_bookmarked)
        return data


class ArticleDetailSerializer(ArticleListSerializer):
    """Full article: body, likes, comments, and follow state for the viewer."""

    likes = LikeSerializer(many=True, read_only=True)
    comments = CommentSerializer(many=True, read_only=True)

    class Meta(ArticleListSerializer.Meta):
        fields = ArticleListSerializer.Meta.fields + ["content", "likes", "comments"]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        request = self.context.get("request")
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated:
            data["isFollowingAuthor"] = user.following.filter(pk=instance.author_id).exists()
        return data


class BulkDeleteSerializer(serializers.Serializer):
    articleIds = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class BulkUpdateValuesSerializer(serializers.Serializer):
    published = serializers.BooleanField(required=False)
    category = serializers.ChoiceField(choices=Category.choices, required=False)


class BulkUpdateSerializer(serializers.Serializer):
    """Only ``published`` and ``category`` survive; other update keys are dropped."""

    articleIds = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    updates = serializers.DictField()

    def validate_updates(self, value):
        values = BulkUpdateValuesSerializer(data=value)
        values.is_valid(raise_exception=True)
        return dict(values.validated_data)


__all__ = [
    "ArticleDetailSerializer",
    "ArticleListSerializer",
    "ArticleWriteSerializer",
    "BulkDeleteSerializer",
    "BulkUpdateSerializer",
    "CommentSerializer",
    "CommentWriteSerializer",
]
