"""Parsing of ``GetUserStatus`` payloads into quota snapshots."""

import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from .types import CreditsInfo, ModelQuota, QuotaSnapshot, UserInfo

logger = logging.getLogger(__name__)

READY = "Ready"
UNKNOWN_MODEL = "unknown"
UNKNOWN_RESET = "Unknown"

# fromisoformat before 3.11 wants exactly 3 or 6 fractional digits.
_SECONDS_FRACTION = re.compile(r"(:\d{2})\.(\d+)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_time_until(seconds: float) -> str:
    """
    Render a countdown the way the status UI shows it.

    Args:
        seconds: Seconds until reset (negative when already past)

    Returns:
        ``Ready``, ``<m>m`` or ``<h>h <m>m``
    """
    if seconds <= 0:
        return READY
    minutes = math.ceil(seconds / 60)
    if minutes < 60:
        return f"{minutes}m"
    return f"{minutes // 60}h {minutes % 60}m"


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _SECONDS_FRACTION.sub(lambda match: f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}", text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparseable reset time: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class QuotaResponseParser:
    """Turns the server's ``userStatus`` object into a ``QuotaSnapshot``."""

    def __init__(self, now: Callable[[], datetime] = utc_now):
        self._now = now

    @staticmethod
    def credits(monthly_value: Any, available_value: Any) -> Optional[CreditsInfo]:
        monthly = _number(monthly_value)
        available = _number(available_value)
        if monthly is None or available is None or monthly <= 0:
            return None
        return CreditsInfo(
            available=available,
            monthly=monthly,
            used_percentage=(monthly - available) / monthly * 100,
            remaining_percentage=available / monthly * 100,
        )

    @staticmethod
    def user_info(user_status: Mapping[str, Any], plan_info: Mapping[str, Any]) -> Optional[UserInfo]:
        tier = _as_dict(user_status.get("userTier"))
        if not user_status.get("name") and not tier:
            return None
        return UserInfo(
            name=user_status.get("name"),
            email=user_status.get("email"),
            tier=tier.get("name") or plan_info.get("teamsTier"),
            tier_id=tier.get("id"),
            plan_name=plan_info.get("planName"),
            teams_tier=plan_info.get("teamsTier"),
            upgrade_uri=tier.get("upgradeSubscriptionUri"),
        )

    def models(self, user_status: Mapping[str, Any], now: datetime) -> List[ModelQuota]:
        configs = _as_dict(user_status.get("cascadeModelConfigData")).get("clientModelConfigs") or []
        models: List[ModelQuota] = []
        for config in configs:
            if not isinstance(config, dict) or not isinstance(config.get("quotaInfo"), dict):
                continue
            quota_info = config["quotaInfo"]
            fraction = _number(quota_info.get("remainingFraction"))
            if fraction is None:
                fraction = 0.0
            reset_time = parse_timestamp(quota_info.get("resetTime"))
            if reset_time is None:
                until_reset = UNKNOWN_RESET
            else:
                until_reset = format_time_until((reset_time - now).total_seconds())
            models.append(
                ModelQuota(
                    label=str(config.get("label") or ""),
                    model_id=_as_dict(config.get("modelOrAlias")).get("model") or UNKNOWN_MODEL,
                    remaining_percentage=fraction * 100,
                    is_exhausted=fraction == 0,
                    reset_time=reset_time,
                    time_until_reset=until_reset,
                )
            )
        return models

    def parse(self, user_status: Mapping[str, Any]) -> QuotaSnapshot:
        """
        Build a snapshot from ``response["userStatus"]``.

        Args:
            user_status: The ``userStatus`` object

        Returns:
            Snapshot stamped with the current time
        """
        now = self._now()
        plan_status = _as_dict(user_status.get("planStatus"))
        plan_info = _as_dict(plan_status.get("planInfo"))

        prompt_credits = None
        flow_credits = None
        if plan_info:
            prompt_credits = self.credits(plan_info.get("monthlyPromptCredits"), plan_status.get("availablePromptCredits"))
            flow_credits = self.credits(plan_info.get("monthlyFlowCredits"), plan_status.get("availableFlowCredits"))

        return QuotaSnapshot(
            timestamp=now,
            models=self.models(user_status, now),
            prompt_credits=prompt_credits,
            flow_credits=flow_credits,
            user_info=self.user_info(user_status, plan_info),
        )


__all__ = ["QuotaResponseParser", "format_time_until", "parse_timestamp", "utc_now"]
