"""Helper modules for the quota service."""

from .response_parser import QuotaResponseParser, format_time_until
from .types import CreditsInfo, ModelQuota, QuotaSnapshot, UserInfo

__all__ = ["CreditsInfo", "ModelQuota", "QuotaResponseParser", "QuotaSnapshot", "UserInfo", "format_time_until"]
