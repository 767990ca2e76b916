"""
Cache invalidation bookkeeping.

Every mutation type maps to a fixed list of key templates. Templates ending
in `*` (or containing one) are evicted with a SCAN pattern delete, the rest
with a plain DEL. Keeping the table declarative means a new cached read only
has to be added here once, next to the mutations that make it stale.

Eviction is fire-and-forget: it runs after the mutation has been committed,
and a cache failure is logged, never raised to the caller.
"""

import enum
from typing import Optional

from alumni_api.core.logging import get_logger
from alumni_api.core.metrics import record_cache_invalidation
from alumni_api.services.interfaces.cache import CacheBackend

logger = get_logger(__name__)


class Mutation(str, enum.Enum):
    EVENT_CREATED = "EVENT_CREATED"
    EVENT_UPDATED = "EVENT_UPDATED"
    EVENT_STATUS_CHANGED = "EVENT_STATUS_CHANGED"
    EVENT_DELETED = "EVENT_DELETED"
    FORM_CHANGED = "FORM_CHANGED"
    REGISTRATION_CHANGED = "REGISTRATION_CHANGED"
    GUEST_CHANGED = "GUEST_CHANGED"
    MERCHANDISE_CHANGED = "MERCHANDISE_CHANGED"
    CART_CHANGED = "CART_CHANGED"
    ORDER_PLACED = "ORDER_PLACED"
    CATEGORY_CHANGED = "CATEGORY_CHANGED"
    SECTION_CHANGED = "SECTION_CHANGED"
    FEEDBACK_FORM_CHANGED = "FEEDBACK_FORM_CHANGED"
    FEEDBACK_SUBMITTED = "FEEDBACK_SUBMITTED"


class CacheKeys:
    """Builders for the keys the read endpoints cache under."""

    DASHBOARD = "admin:dashboard:stats"
    CATEGORIES = "events:categories:active"

    @staticmethod
    def event_list(
        page: int, limit: int, upcoming_only: bool, status: Optional[str], category: Optional[str] = None
    ) -> str:
        return (
            f"events:list:page={page}&limit={limit}&upcoming={upcoming_only}"
            f"&status={status or 'any'}&category={category or 'any'}"
        )

    @staticmethod
    def category(category_id: int) -> str:
        return f"events:category:{category_id}"

    @staticmethod
    def event(event_id: int) -> str:
        return f"event:{event_id}"

    @staticmethod
    def merchandise(event_id: int, include_inactive: bool = False) -> str:
        return f"event:{event_id}:merchandise:{'all' if include_inactive else 'active'}"

    @staticmethod
    def registration_stats(event_id: int) -> str:
        return f"event:{event_id}:registration:stats"

    @staticmethod
    def sections(event_id: int) -> str:
        return f"event:{event_id}:sections"

    @staticmethod
    def feedback_analytics(event_id: int) -> str:
        return f"event:{event_id}:feedback:analytics"


_EVENT_WIDE = [
    "event:{event_id}",
    "event:slug:{slug}",
    "event:{event_id}:*",
    "events:list:*",
    "admin:events:*",
    CacheKeys.DASHBOARD,
    CacheKeys.CATEGORIES,
    "events:category:*",
]

_CART = [
    "registration:{registration_id}:cart",
    "registration:{registration_id}:orders",
    "event:{event_id}:merchandise:stats",
]

INVALIDATION_MAP: dict[Mutation, list[str]] = {
    Mutation.EVENT_CREATED: [
        "events:list:*",
        "admin:events:*",
        CacheKeys.DASHBOARD,
        CacheKeys.CATEGORIES,
        "events:category:*",
    ],
    Mutation.EVENT_UPDATED: _EVENT_WIDE,
    Mutation.EVENT_STATUS_CHANGED: _EVENT_WIDE,
    Mutation.EVENT_DELETED: _EVENT_WIDE,
    Mutation.FORM_CHANGED: [
        "event:{event_id}:form",
        "event:{event_id}:form:fields",
        "event:{event_id}",
    ],
    Mutation.REGISTRATION_CHANGED: [
        "event:{event_id}:registration:stats",
        "event:{event_id}:registration:summary",
        "event:{event_id}:stats",
        "event:{event_id}",
        "event:{event_id}:combined:stats",
        "admin:event:{event_id}:registrations:*",
        CacheKeys.DASHBOARD,
        "events:list:*",
    ],
    Mutation.GUEST_CHANGED: [
        "event:{event_id}:guest:stats",
        "event:{event_id}:guest:summary",
        "event:{event_id}:stats",
        "event:{event_id}:registration:stats",
        "event:{event_id}:combined:stats",
        "registration:{registration_id}:guest:summary",
        "admin:event:{event_id}:guests:*",
    ],
    Mutation.MERCHANDISE_CHANGED: [
        "event:{event_id}:merchandise:*",
        "event:{event_id}:merchandise:stats",
        "admin:event:{event_id}:orders:*",
    ],
    Mutation.CART_CHANGED: _CART,
    Mutation.ORDER_PLACED: _CART + [
        "admin:event:{event_id}:orders:*",
        "event:{event_id}:registration:stats",
        "event:{event_id}:merchandise:*",
    ],
    Mutation.CATEGORY_CHANGED: [
        CacheKeys.CATEGORIES,
        "events:category:{category_id}",
        "events:list:*",
    ],
    Mutation.SECTION_CHANGED: [
        "event:{event_id}:sections",
    ],
    Mutation.FEEDBACK_FORM_CHANGED: [
        "event:{event_id}:feedback:*",
    ],
    Mutation.FEEDBACK_SUBMITTED: [
        "event:{event_id}:feedback:analytics",
    ],
}


def keys_for(
    mutation: Mutation,
    event_id: Optional[int] = None,
    registration_id: Optional[int] = None,
    slug: Optional[str] = None,
    category_id: Optional[int] = None,
) -> list[str]:
    """
    Resolve the templates for `mutation`. Templates whose placeholders are not
    supplied are skipped rather than evicted with a literal "None".
    """
    values = {
        "event_id": event_id,
        "registration_id": registration_id,
        "slug": slug,
        "category_id": category_id,
    }
    keys = []
    for template in INVALIDATION_MAP[mutation]:
        needed = [name for name in values if "{" + name + "}" in template]
        if any(values[name] is None for name in needed):
            continue
        key = template.format(**{name: values[name] for name in needed})
        if key not in keys:
            keys.append(key)
    return keys


class CacheInvalidator:
    def __init__(self, cache: CacheBackend):
        self.cache = cache

    async def invalidate(
        self,
        mutation: Mutation,
        event_id: Optional[int] = None,
        registration_id: Optional[int] = None,
        slug: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> list[str]:
        keys = keys_for(
            mutation, event_id=event_id, registration_id=registration_id, slug=slug, category_id=category_id
        )
        exact = [key for key in keys if "*" not in key]
        patterns = [key for key in keys if "*" in key]

        try:
            deleted = await self.cache.delete(*exact)
            for pattern in patterns:
                deleted += await self.cache.delete_pattern(pattern)
        except Exception as e:
            logger.error("cache_invalidation_failed", mutation=mutation.value, error=str(e))
            return keys

        record_cache_invalidation(mutation.value)
        logger.info(
            "cache_invalidated",
            mutation=mutation.value,
            event_id=event_id,
            registration_id=registration_id,
            category_id=category_id,
            deleted=deleted,
        )
        return keys
