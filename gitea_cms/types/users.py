"""User and branch data models."""

from dataclasses import dataclass
from typing import Any


@dataclass
class User:
    """Authenticated user."""

    id: int
    login: str
    name: str
    email: str | None
    avatar_url: str | None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "User":
        login = data.get("login") or data.get("username", "")
        return cls(
            id=int(data.get("id", 0)),
            login=login,
            name=data.get("full_name") or data.get("name") or login,
            email=data.get("email"),
            avatar_url=data.get("avatar_url"),
        )


@dataclass
class Branch:
    """Repository branch."""

    name: str
    commit_id: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Branch":
        commit = data.get("commit") or {}
        return cls(name=data["name"], commit_id=commit.get("id", ""))
