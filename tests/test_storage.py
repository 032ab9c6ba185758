"""
Tests for the in-memory metadata storage and the user store on top of it.
"""

import pytest

from one_engine.api.pagination import PaginationParams
from one_engine.auth import UserRole
from one_engine.services import ConflictError, UserService
from one_engine.storage import InMemoryMetadataStorage, create_local_storage


class TestInMemoryMetadataStorage:
    @pytest.mark.asyncio
    async def test_returned_docs_are_copies(self):
        storage = InMemoryMetadataStorage()
        await storage.save("things", "t1", {"tags": ["a"]})

        doc = await storage.get("things", "t1")
        doc["tags"].append("b")

        assert (await storage.get("things", "t1"))["tags"] == ["a"]

    @pytest.mark.asyncio
    async def test_query_and_count(self):
        storage = InMemoryMetadataStorage()
        for i in range(5):
            await storage.save("things", f"t{i}", {"even": i % 2 == 0})

        assert await storage.count("things", {"even": True}) == 3
        assert len(await storage.query("things", limit=2, offset=4)) == 1

    @pytest.mark.asyncio
    async def test_update_and_delete_missing(self):
        storage = InMemoryMetadataStorage()

        assert await storage.update("things", "nope", {"a": 1}) is False
        assert await storage.delete("things", "nope") is False
        assert await storage.ping() is True


class TestUserService:
    @pytest.mark.asyncio
    async def test_duplicate_email(self):
        users = UserService(create_local_storage())
        await users.create_user("Someone@Example.com")

        with pytest.raises(ConflictError):
            await users.create_user("someone@example.com")

    @pytest.mark.asyncio
    async def test_record_for_resolver(self):
        users = UserService(create_local_storage())
        user = await users.create_user("a@example.com", role=UserRole.AGENT, project_id="proj_1")

        record = await users.find_by_id(user.id)
        assert (record.role, record.project_id, record.is_active) == ("agent", "proj_1", True)
        assert await users.find_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_deactivate(self, seeded):
        await seeded.users.set_active("user_active", False)
        assert (await seeded.users.find_by_id("user_active")).is_active is False

    @pytest.mark.asyncio
    async def test_list_users_default_sort(self, seeded):
        result = await seeded.users.list_users(PaginationParams(limit=2))

        assert result["pagination"]["total"] == 4
        assert len(result["items"]) == 2
