"""Data models for the authentication session"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class UserInfo(BaseModel):
    """Identity summary returned alongside a credential"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    sub: str
    name: Optional[str] = None
    email: Optional[str] = None
    picture: Optional[str] = None  # Avatar URL


class Credential(BaseModel):
    """Session credential issued by the broker

    Attributes:
        access_token: Opaque bearer token
        refresh_token: Token used to renew the session; without it the
            session is never renewed automatically
        id_token: Optional identity token
        expires_at: Expiry as Unix epoch seconds
        user_info: Optional identity summary
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None
    expires_at: Optional[int] = None
    user_info: Optional[UserInfo] = None

    @property
    def renewable(self) -> bool:
        """True if the credential carries both an expiry and a refresh token"""
        return self.expires_at is not None and bool(self.refresh_token)

    def redacted(self) -> Dict[str, Any]:
        """Summary safe for logs and status output (no token material)"""
        user = self.user_info
        return {
            "subject": user.sub if user else None,
            "name": user.name if user else None,
            "email": user.email if user else None,
            "expires_at": self.expires_at,
            "has_refresh_token": bool(self.refresh_token),
            "has_id_token": bool(self.id_token),
        }

    def __repr__(self) -> str:
        subject = self.user_info.sub if self.user_info else None
        return f"Credential(subject={subject!r}, expires_at={self.expires_at!r})"

    __str__ = __repr__


# None is the Absent state
SessionState = Optional[Credential]
