"""Client-side credential holder.

One AuthSession per signed-in user, passed explicitly to the API client.
It is never stored at module level.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class AuthSession:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def update(self, access_token: str, refresh_token: str) -> None:
        self.access_token = access_token
        self.refresh_token = refresh_token

    def clear(self) -> None:
        self.access_token = None
        self.refresh_token = None

    def auth_header(self) -> dict:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}
