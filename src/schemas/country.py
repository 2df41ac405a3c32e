from __future__ import annotations

from pydantic import BaseModel


class CountryRead(BaseModel):
    name: str
    code: str | None = None
    region: str | None = None

    class Config:
        from_attributes = True


class CountryRefreshAccepted(BaseModel):
    status: str = "accepted"
    queued: bool
