from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from ..core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from .validators import require_positive_int


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_args(cls, args: Mapping[str, Any], *, default_limit: int = DEFAULT_PAGE_LIMIT) -> "PageRequest":
        page = require_positive_int(args.get("page") or 1, "page")
        limit = require_positive_int(args.get("limit") or default_limit, "limit")
        return cls(page=page, limit=min(limit, MAX_PAGE_LIMIT))


def pagination_meta(page: PageRequest, total: int, *, total_key: str) -> dict:
    total_pages = math.ceil(total / page.limit) if total else 0
    return {
        "currentPage": page.page,
        "totalPages": total_pages,
        total_key: total,
        "hasNext": page.page < total_pages,
        "hasPrev": page.page > 1,
    }
