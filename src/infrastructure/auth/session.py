"""Authenticated session handed over by the external identity provider."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AuthSession:
    """The signed-in user and the access token used for gateway calls."""

    user_id: str
    access_token: str
    email: Optional[str] = None
