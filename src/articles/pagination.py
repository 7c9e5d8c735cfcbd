"""Offset pagination producing the ``{articles, pagination}`` payload."""

import math

from rest_framework.pagination import BasePagination

from core.response import api_response
from core.validators import positive_int

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100


class ArticlePagination(BasePagination):
    """``page``/``limit`` query parameters; bad values fall back to defaults."""

    default_limit = DEFAULT_PAGE_LIMIT
    max_limit = MAX_PAGE_LIMIT

    def paginate_queryset(self, queryset, request, view=None):
        self.page = positive_int(request.query_params.get("page"), 1)
        self.limit = min(positive_int(request.query_params.get("limit"), self.default_limit), self.max_limit)
        self.total = queryset.count()
        offset = (self.page - 1) * self.limit
        if offset >= self.total:
            return []
        return list(queryset[offset:offset + self.limit])

    def get_paginated_response(self, data):
        return api_response(
            {
                "articles": data,
                "pagination": {
                    "page": self.page,
                    "limit": self.limit,
                    "total": self.total,
                    "pages": math.ceil(self.total / self.limit),
                },
            }
        )

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                "success": {"type": "boolean"},
                "articles": schema,
                "pagination": {
                    "type": "object",
                    "properties": {
                        "page": {"type": "integer"},
                        "limit": {"type": "integer"},
                        "total": {"type": "integer"},
                        "pages": {"type": "integer"},
                    },
                },
            },
        }


__all__ = ["ArticlePagination", "DEFAULT_PAGE_LIMIT", "MAX_PAGE_LIMIT"]
