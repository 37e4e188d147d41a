"""Quota snapshot data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class ModelQuota:
    label: str
    model_id: str
    remaining_percentage: float
    is_exhausted: bool
    reset_time: Optional[datetime]
    time_until_reset: str


@dataclass(frozen=True)
class CreditsInfo:
    available: float
    monthly: float
    used_percentage: float
    remaining_percentage: float


@dataclass(frozen=True)
class UserInfo:
    name: Optional[str] = None
    email: Optional[str] = None
    tier: Optional[str] = None
    tier_id: Optional[str] = None
    plan_name: Optional[str] = None
    teams_tier: Optional[str] = None
    upgrade_uri: Optional[str] = None


@dataclass(frozen=True)
class QuotaSnapshot:
    """Parsed ``GetUserStatus`` response"""

    timestamp: datetime
    models: List[ModelQuota] = field(default_factory=list)
    prompt_credits: Optional[CreditsInfo] = None
    flow_credits: Optional[CreditsInfo] = None
    user_info: Optional[UserInfo] = None

    def model(self, label: str) -> Optional[ModelQuota]:
        return next((model for model in self.models if model.label == label), None)


__all__ = ["CreditsInfo", "ModelQuota", "QuotaSnapshot", "UserInfo"]
