"""Database package (repositórios Redis)."""

from .campaign_repo import CampaignRepository  # noqa: F401
from .user_repo import UserDirectory  # noqa: F401
from .window_repo import WindowRepository  # noqa: F401
