"""Tests for client wiring, run end to end against the in-memory gateway."""

import pytest

from container import build_client
from core.config import Settings
from core.exceptions import PostValidationError
from infrastructure.auth.session import AuthSession
from infrastructure.gateway.supabase_gateway import SupabaseGateway
from tests.conftest import TEST_USER_ID, make_image_bytes
from tests.unit.conftest import FakeGateway


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://proj.supabase.co",
        supabase_anon_key="anon",
        avatars_bucket="avatars",
        post_max_length=180,
        _env_file=None,
    )


class TestBuildClient:
    @pytest.mark.asyncio
    async def test_defaults_to_supabase_gateway(self, test_session: AuthSession, settings: Settings):
        async with build_client(test_session, settings=settings) as client:
            assert isinstance(client.gateway, SupabaseGateway)

    @pytest.mark.asyncio
    async def test_services_share_one_gateway(
        self, test_session: AuthSession, settings: Settings, gateway: FakeGateway
    ):
        client = build_client(test_session, settings=settings, gateway=gateway)

        assert client.feed.directory is client.directory
        assert client.gateway is gateway

    def test_post_limit_comes_from_settings(
        self, test_session: AuthSession, settings: Settings, gateway: FakeGateway
    ):
        limited = settings.model_copy(update={"post_max_length": 10})
        client = build_client(test_session, settings=limited, gateway=gateway)

        client.publisher.set_draft("x" * 10)
        with pytest.raises(PostValidationError) as exc_info:
            client.publisher.set_draft("x" * 11)

        assert exc_info.value.message == "Post cannot exceed 10 characters"
        assert client.publisher.draft == "x" * 10


class TestContentLifecycle:
    @pytest.mark.asyncio
    async def test_profile_post_and_avatar_flow(
        self, test_session: AuthSession, settings: Settings, gateway: FakeGateway
    ):
        client = build_client(test_session, settings=settings, gateway=gateway)

        loaded = await client.load_profile()
        assert loaded.error is None
        assert loaded.profile.username is None

        saved = await client.profiles.save_profile(TEST_USER_ID, "iron_ivy", full_name="Ivy")
        assert saved.message == "Profile updated!"

        client.publisher.set_draft("Hit a new squat PR today")
        result = await client.publisher.submit(TEST_USER_ID)
        assert result.success
        assert result.feed.entries[0].display_name == "iron_ivy"

        session = client.avatars.select(make_image_bytes(120, 90))
        first = await client.avatars.confirm_crop(session)
        assert first.success

        await client.load_profile()
        second = await client.avatars.confirm_crop(client.avatars.select(make_image_bytes(40, 40)))
        assert second.success

        assert gateway.profile_row(TEST_USER_ID)["avatar_key"] == second.avatar_key
        assert list(gateway.buckets["avatars"]) == [second.avatar_key]

        feed = await client.feed.load_feed()
        assert feed.entries[0].avatar_url == f"https://cdn.test/avatars/{second.avatar_key}"

    @pytest.mark.asyncio
    async def test_avatar_replacement_without_loading_profile_retires_old_asset(
        self, test_session: AuthSession, settings: Settings, gateway: FakeGateway
    ):
        gateway.add_profile(TEST_USER_ID, username="iron_ivy", avatar_key="old.jpg")
        gateway.buckets["avatars"]["old.jpg"] = b"old-jpeg"
        client = build_client(test_session, settings=settings, gateway=gateway)

        outcome = await client.avatars.confirm_crop(client.avatars.select(make_image_bytes(60, 60)))

        assert outcome.success
        assert "old.jpg" not in gateway.buckets["avatars"]
        assert list(gateway.buckets["avatars"]) == [outcome.avatar_key]
