"""Object-level permission restricting article mutations to the author."""

from rest_framework import permissions


class IsArticleAuthor(permissions.BasePermission):
    """Allow update, delete, and image replacement only for the article's author."""

    message = "Not authorized to modify this article"

    def has_object_permission(self, request, view, obj) -> bool:
        user = getattr(request, "user", None)
        if not user or not getattr(user, "is_authenticated", False):
            return False
        return obj.author_id == user.pk


__all__ = ["IsArticleAuthor"]
