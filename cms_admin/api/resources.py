"""
CMS Resources

Entity endpoints for the admin screens. Reads go through the request cache
under stable keys; writes invalidate their entity once they succeed.
"""

from typing import Any, Dict, Mapping, Optional

from ..domain.cache.value_objects import CacheEntity, CacheKey
from ..services.cache.invalidation import with_cache_invalidation
from ..services.cache.request_cache import RequestCache
from .client import ApiClient


class CmsResources:
    """Courses, categories, course types, partners and partner groups."""

    def __init__(self, client: ApiClient, cache: RequestCache):
        self.client = client
        self.cache = cache

        def invalidates(entity: CacheEntity):
            return with_cache_invalidation(cache, entity)

        self.create_course = invalidates(CacheEntity.COURSES)(self._create_course)
        self.update_course = invalidates(CacheEntity.COURSES)(self._update_course)
        self.delete_course = invalidates(CacheEntity.COURSES)(self._delete_course)

        self.create_category = invalidates(CacheEntity.CATEGORIES)(self._create_category)
        self.update_category = invalidates(CacheEntity.CATEGORIES)(self._update_category)

        self.create_course_type = invalidates(CacheEntity.COURSE_TYPES)(
            self._create_course_type
        )
        self.update_course_type = invalidates(CacheEntity.COURSE_TYPES)(
            self._update_course_type
        )

        self.create_partner = invalidates(CacheEntity.PARTNERS)(self._create_partner)
        self.update_partner = invalidates(CacheEntity.PARTNERS)(self._update_partner)
        self.delete_partner = invalidates(CacheEntity.PARTNERS)(self._delete_partner)
        self.update_partner_position = invalidates(CacheEntity.PARTNERS)(
            self._update_partner_position
        )

    # Cached reads

    async def get_categories(self) -> Any:
        return await self.cache.get_or_fetch(
            lambda: self.client.get("/api/course-category"), cache_key="categories"
        )

    async def get_course_types(self) -> Any:
        return await self.cache.get_or_fetch(
            lambda: self.client.get("/api/course-type"), cache_key="course-types"
        )

    async def list_courses(self, filters: Optional[Mapping[str, Any]] = None) -> Any:
        """Paginated course list; one cache slot per distinct filter set."""
        params = _with_paging(filters)
        return await self.cache.get_or_fetch(
            lambda: self.client.get("/api/courses", params=params),
            cache_key=CacheKey.build("paginated-courses", params),
        )

    async def list_partners(self, filters: Optional[Mapping[str, Any]] = None) -> Any:
        """Paginated partner list filtered by group_name and search."""
        params = _with_paging(filters)
        return await self.cache.get_or_fetch(
            lambda: self.client.get("/api/partners", params=params),
            cache_key=CacheKey.build("paginated-partners", params),
        )

    async def get_grouped_partners(self) -> Any:
        return await self.cache.get_or_fetch(
            lambda: self.client.get("/api/partners/grouped"),
            cache_key="partners-grouped",
        )

    async def get_partner_groups(self) -> Any:
        return await self.cache.get_or_fetch(
            lambda: self.client.get("/api/partners/groups"),
            cache_key="partner-groups",
        )

    async def get_partner(self, uuid: str) -> Any:
        return await self.cache.get_or_fetch(
            lambda: self.client.get(f"/api/partners/{uuid}"),
            cache_key=f"partner-{uuid}",
        )

    # Mutations (wrapped in __init__)

    async def _create_course(self, data: Mapping[str, Any]) -> Any:
        return await self.client.post("/api/courses", dict(data))

    async def _update_course(self, course_id: Any, data: Mapping[str, Any]) -> Any:
        return await self.client.put(f"/api/courses/{course_id}", dict(data))

    async def _delete_course(self, course_id: Any) -> Any:
        return await self.client.delete(f"/api/courses/{course_id}")

    async def _create_category(self, data: Mapping[str, Any]) -> Any:
        return await self.client.post("/api/course-category", dict(data))

    async def _update_category(self, category_id: Any, data: Mapping[str, Any]) -> Any:
        return await self.client.put(f"/api/course-category/{category_id}", dict(data))

    async def _create_course_type(self, data: Mapping[str, Any]) -> Any:
        return await self.client.post("/api/course-type", dict(data))

    async def _update_course_type(self, type_id: Any, data: Mapping[str, Any]) -> Any:
        return await self.client.put(f"/api/course-type/{type_id}", dict(data))

    async def _create_partner(self, data: Mapping[str, Any]) -> Any:
        return await self.client.post("/api/partners", dict(data))

    async def _update_partner(self, uuid: str, data: Mapping[str, Any]) -> Any:
        return await self.client.put(f"/api/partners/{uuid}", dict(data))

    async def _delete_partner(self, uuid: str) -> Any:
        return await self.client.delete(f"/api/partners/{uuid}")

    async def _update_partner_position(self, uuid: str, data: Mapping[str, Any]) -> Any:
        return await self.client.patch(f"/api/partners/{uuid}/position", dict(data))


def _with_paging(filters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Apply the list defaults (page 1, 10 per page) and drop empty filters."""
    params: Dict[str, Any] = {"page": 1, "limit": 10}
    for key, value in (filters or {}).items():
        if value is None or value == "":
            continue
        params[key] = value
    return params
