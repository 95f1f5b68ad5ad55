"""Pytest configuration and fixtures."""

import io
import os
import sys
from pathlib import Path

# Keep test runs independent of any local .env
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

import pytest
from PIL import Image

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from infrastructure.auth.session import AuthSession

TEST_USER_ID = "6f1c1a52-2b1e-4a53-9d57-1b5d4c1e0a01"


def make_image_bytes(
    width: int = 64,
    height: int = 48,
    fmt: str = "PNG",
    color: tuple[int, int, int] = (200, 40, 40),
    mode: str = "RGB",
) -> bytes:
    """Encode a solid-colour test image."""
    image = Image.new(mode, (width, height), color if mode == "RGB" else color + (255,))
    buf = io.BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def test_session() -> AuthSession:
    """Session for the signed-in test user."""
    return AuthSession(
        user_id=TEST_USER_ID,
        access_token="test-access-token",
        email="lifter@example.com",
    )


@pytest.fixture
def png_bytes() -> bytes:
    """A decodable 64x48 PNG."""
    return make_image_bytes()
