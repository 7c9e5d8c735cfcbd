"""Article endpoints: CRUD, feeds, engagement toggles, comments, bulk ops, stats."""

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated

from core.response import BaseViewSet, api_response
from core.validators import parse_uuid, positive_int
from uploads.services import validate_image
from .models import Article, Category
from .pagination import ArticlePagination
from .permissions import IsArticleAuthor
from .serializers import (
    ArticleDetailSerializer,
    ArticleListSerializer,
    ArticleWriteSerializer,
    BulkDeleteSerializer,
    BulkUpdateSerializer,
    CommentSerializer,
    CommentWriteSerializer,
)
from .services import ArticleService

DEFAULT_TRENDING_DAYS = 7


class ArticleViewSet(BaseViewSet):
    """Articles visible to the requester, plus author-only mutations.

    Reads go through the visibility filter (published, or the requester's own
    drafts), so hidden articles answer 404. Update, delete, and image
    replacement look up any article and answer 403 to non-authors.
    """

    serializer_class = ArticleListSerializer
    pagination_class = ArticlePagination

    public_actions = {"list", "retrieve", "trending", "user_articles"}
    author_actions = {"update", "partial_update", "destroy", "image"}

    def get_permissions(self):
        if self.action in self.public_actions:
            return [AllowAny()]
        if self.action in self.author_actions:
            return [IsAuthenticated(), IsArticleAuthor()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        if self.action in ("create", "update", "partial_update"):
            return ArticleWriteSerializer
        if self.action == "retrieve":
            return ArticleDetailSerializer
        return ArticleListSerializer

    def get_queryset(self):
        if self.action in self.author_actions:
            return Article.objects.all()
        queryset = Article.objects.visible_to(self.request.user)
        if self.action == "retrieve":
            return self._detail_queryset(queryset)
        return queryset

    def get_object(self):
        """Resolve ``pk`` to an article, answering 400 for malformed ids."""
        article_pk = parse_uuid(self.kwargs.get("pk"), "Invalid article ID format")
        try:
            article = self.get_queryset().get(pk=article_pk)
        except Article.DoesNotExist:
            raise NotFound("Article not found")
        self.check_object_permissions(self.request, article)
        return article

    def _detail_queryset(self, queryset=None):
        queryset = Article.objects.all() if queryset is None else queryset
        return (
            queryset.with_related()
            .with_engagement()
            .with_viewer_state(self.request.user)
            .prefetch_related("likes", "comments__user")
        )

    def _detail(self, article: Article) -> dict:
        fresh = self._detail_queryset().get(pk=article.pk)
        return ArticleDetailSerializer(fresh, context=self.get_serializer_context()).data

    def _feed(self, queryset):
        queryset = queryset.with_related().with_engagement().with_viewer_state(self.request.user)
        page = self.paginate_queryset(queryset)
        serializer = ArticleListSerializer(page, many=True, context=self.get_serializer_context())
        return self.get_paginated_response(serializer.data)

    # CRUD

    def list(self, request):
        """Visible articles filtered by tag, category, author, and search."""
        params = request.query_params
        queryset = Article.objects.visible_to(request.user)

        tag = params.get("tag", "").strip()
        if tag:
            queryset = queryset.tagged(tag)

        category = params.get("category", "").strip()
        if category and category != "All":
            if category not in Category.values:
                raise ValidationError("Invalid category")
            queryset = queryset.filter(category=category)

        author = params.get("author", "").strip()
        if author:
            queryset = queryset.filter(author_id=parse_uuid(author, "Invalid author ID format"))

        search = params.get("search", "").strip()
        if search:
            queryset = queryset.search(search)

        return self._feed(queryset.feed_order())

    def retrieve(self, request, pk=None):
        article = self.get_object()
        ArticleService.record_view(article)
        serializer = self.get_serializer(article)
        return api_response({"article": serializer.data})

    def create(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        article = serializer.save(author=request.user)
        return api_response(
            {"article": self._detail(article)},
            status=status.HTTP_201_CREATED,
            message="Article created successfully",
        )

    def update(self, request, pk=None):
        """Apply any subset of the writable fields; PUT and PATCH behave alike."""
        article = self.get_object()
        serializer = ArticleWriteSerializer(article, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return api_response({"article": self._detail(article)}, message="Article updated successfully")

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        article = self.get_object()
        ArticleService.delete_article(article)
        return api_response(message="Article deleted successfully")

    @action(detail=True, methods=["post"], parser_classes=[MultiPartParser, FormParser])
    def image(self, request, pk=None):
        """Replace the featured image from the multipart ``image`` field."""
        upload = request.FILES.get("image")
        validate_image(upload)
        article = self.get_object()
        stored = ArticleService.replace_featured_image(article, upload)
        return api_response({"featuredImage": stored.as_dict()}, message="Image uploaded successfully")

    # Engagement

    @action(detail=True, methods=["post"])
    def like(self, request, pk=None):
        article = self.get_object()
        liked, count = ArticleService.toggle_like(request.user, article)
        return api_response(
            {"likesCount": count, "isLiked": liked},
            message="Article liked" if liked else "Article unliked",
        )

    @action(detail=True, methods=["post"])
    def bookmark(self, request, pk=None):
        article = self.get_object()
        bookmarked, count = ArticleService.toggle_bookmark(request.user, article)
        return api_response(
            {"bookmarksCount": count, "isBookmarked": bookmarked},
            message="Article bookmarked" if bookmarked else "Bookmark removed",
        )

    @action(detail=True, methods=["post"])
    def comments(self, request, pk=None):
        article = self.get_object()
        serializer = CommentWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = ArticleService.add_comment(request.user, article, serializer.validated_data["content"])
        return api_response(
            {"comment": CommentSerializer(comment).data},
            status=status.HTTP_201_CREATED,
            message="Comment added successfully",
        )

    @action(detail=True, methods=["put", "delete"], url_path=r"comments/(?P<comment_id>[^/.]+)")
    def comment_detail(self, request, pk=None, comment_id=None):
        """Edit (comment author) or delete (comment or article author) a comment."""
        article = self.get_object()
        if request.method == "DELETE":
            ArticleService.delete_comment(request.user, article, comment_id)
            return api_response(message="Comment deleted successfully")

        serializer = CommentWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = ArticleService.edit_comment(
            request.user, article, comment_id, serializer.validated_data["content"]
        )
        return api_response({"comment": CommentSerializer(comment).data}, message="Comment updated successfully")

    # Feeds

    @action(detail=False, methods=["get"], url_path="user/my-articles")
    def my_articles(self, request):
        """Every article written by the requester, drafts included, newest first."""
        return self._feed(Article.objects.filter(author=request.user).order_by("-created_at"))

    @action(detail=False, methods=["get"], url_path="user/bookmarks")
    def bookmarks(self, request):
        queryset = Article.objects.published().filter(bookmarks__user=request.user).order_by("-created_at")
        return self._feed(queryset)

    @action(detail=False, methods=["get"], url_path=r"user/(?P<user_id>[^/.]+)")
    def user_articles(self, request, user_id=None):
        """Published articles of one author."""
        author_pk = parse_uuid(user_id, "Invalid user ID format")
        return self._feed(Article.objects.published().filter(author_id=author_pk).feed_order())

    @action(detail=False, methods=["get"])
    def trending(self, request):
        """Recent published articles ranked by views, then likes + comments."""
        days = positive_int(request.query_params.get("days"), DEFAULT_TRENDING_DAYS)
        queryset = Article.objects.trending(days).select_related("author").prefetch_related("tags")
        page = self.paginate_queryset(queryset.with_viewer_state(request.user))
        serializer = ArticleListSerializer(page, many=True, context=self.get_serializer_context())
        return self.get_paginated_response(serializer.data)

    # Bulk operations and stats

    @action(detail=False, methods=["delete"], url_path="bulk/delete")
    def bulk_delete(self, request):
        serializer = BulkDeleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        deleted = ArticleService.bulk_delete(request.user, serializer.validated_data["articleIds"])
        return api_response({"deletedCount": deleted}, message=f"{deleted} articles deleted successfully")

    @action(detail=False, methods=["put"], url_path="bulk/update")
    def bulk_update(self, request):
        serializer = BulkUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updates = serializer.validated_data["updates"]
        if not updates:
            raise ValidationError("No valid updates provided")
        modified = ArticleService.bulk_update(request.user, serializer.validated_data["articleIds"], updates)
        return api_response({"modifiedCount": modified}, message=f"{modified} articles updated successfully")

    @action(detail=False, methods=["get"], url_path="stats/overview")
    def stats(self, request):
        return api_response({"stats": ArticleService.author_stats(request.user)})


__all__ = ["ArticleViewSet"]
