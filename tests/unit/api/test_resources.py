"""
Unit tests for CMS resources.

Checks that reads are cached under stable keys and that mutations
invalidate the related entity.
"""

import httpx
import pytest
import pytest_asyncio

from cms_admin.api.client import ApiClient
from cms_admin.api.exceptions import ApiRequestError
from cms_admin.api.resources import CmsResources


class FakeCmsApi:
    """Routes requests to canned JSON responses and records them."""

    def __init__(self):
        self.requests = []
        self.routes = {
            ("GET", "/api/course-category"): [{"id": 2, "status": 0}],
            ("GET", "/api/course-type"): [{"id": 1, "status": 1}],
            ("GET", "/api/courses"): {"items": [{"id": 10}], "total": 1},
            ("GET", "/api/partners"): {"items": [], "total": 0},
            ("GET", "/api/partners/grouped"): {"gold": []},
            ("GET", "/api/partners/groups"): ["gold", "silver"],
            ("GET", "/api/partners/p1"): {"uuid": "p1"},
            ("POST", "/api/courses"): {"id": 11},
            ("PUT", "/api/course-type/1"): {"id": 1},
            ("PATCH", "/api/partners/p1/position"): {"uuid": "p1", "position": 2},
        }

    def count(self, method, path):
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        payload = self.routes.get((request.method, request.url.path))
        if payload is None:
            return httpx.Response(404, json={"message": "Not found"})
        return httpx.Response(200, json=payload)


@pytest.fixture
def api():
    return FakeCmsApi()


@pytest_asyncio.fixture
async def resources(api, cache):
    client = ApiClient("http://cms.test", lambda: "token", transport=httpx.MockTransport(api))
    yield CmsResources(client, cache)
    await client.aclose()


class TestCachedReads:
    """Test cached read endpoints."""

    @pytest.mark.asyncio
    async def test_categories_cached(self, resources, api):
        first = await resources.get_categories()
        second = await resources.get_categories()

        assert first == second == [{"id": 2, "status": 0}]
        assert api.count("GET", "/api/course-category") == 1
        assert resources.cache.entries.peek("categories") is not None

    @pytest.mark.asyncio
    async def test_course_list_key_includes_paging(self, resources, api):
        await resources.list_courses({"page": 1, "search": ""})
        await resources.list_courses({"page": 1})
        await resources.list_courses({"page": 2})

        assert api.count("GET", "/api/courses") == 2
        assert resources.cache.entries.memory_keys() == [
            'paginated-courses-{"limit":10,"page":1}',
            'paginated-courses-{"limit":10,"page":2}',
        ]
        assert dict(api.requests[0].url.params) == {"page": "1", "limit": "10"}

    @pytest.mark.asyncio
    async def test_partner_reads(self, resources, api):
        assert await resources.get_partner("p1") == {"uuid": "p1"}
        assert await resources.get_partner_groups() == ["gold", "silver"]
        assert await resources.get_grouped_partners() == {"gold": []}
        await resources.list_partners({"group_name": "gold"})

        assert set(resources.cache.entries.memory_keys()) == {
            "partner-groups",
            "partner-p1",
            'paginated-partners-{"group_name":"gold","limit":10,"page":1}',
            "partners-grouped",
        }

    @pytest.mark.asyncio
    async def test_api_errors_not_cached(self, resources, api):
        del api.routes[("GET", "/api/course-type")]

        with pytest.raises(ApiRequestError, match="Not found"):
            await resources.get_course_types()

        api.routes[("GET", "/api/course-type")] = [{"id": 1, "status": 1}]
        assert await resources.get_course_types() == [{"id": 1, "status": 1}]
        assert api.count("GET", "/api/course-type") == 2


class TestMutations:
    """Test mutations invalidate their entity."""

    @pytest.mark.asyncio
    async def test_create_course_invalidates_course_lists(self, resources, api):
        await resources.list_courses()
        await resources.get_categories()

        assert await resources.create_course({"title": "Python"}) == {"id": 11}

        await resources.list_courses()
        await resources.get_categories()
        assert api.count("GET", "/api/courses") == 2
        assert api.count("GET", "/api/course-category") == 1

    @pytest.mark.asyncio
    async def test_update_course_type_keeps_categories(self, resources, api):
        await resources.get_course_types()
        await resources.get_categories()

        await resources.update_course_type(1, {"status": 0})

        await resources.get_course_types()
        await resources.get_categories()
        assert api.count("GET", "/api/course-type") == 2
        assert api.count("GET", "/api/course-category") == 1

    @pytest.mark.asyncio
    async def test_partner_position_invalidates_partner_detail(self, resources, api):
        await resources.get_partner("p1")

        await resources.update_partner_position("p1", {"position": 2})

        await resources.get_partner("p1")
        assert api.count("GET", "/api/partners/p1") == 2

    @pytest.mark.asyncio
    async def test_failed_mutation_keeps_cache(self, resources, api):
        await resources.list_courses()

        with pytest.raises(ApiRequestError):
            await resources.delete_course(999)

        await resources.list_courses()
        assert api.count("GET", "/api/courses") == 1
