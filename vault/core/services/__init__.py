from vault.core.services.auth import AuthService
from vault.core.services.base import SingletonService
from vault.core.services.brevo import BrevoService
from vault.core.services.delivery import (
    ChannelResult,
    DeliveryGateway,
    DeliveryResult,
)
from vault.core.services.download_token import DownloadTokenService
from vault.core.services.rate_limit import (
    MemoryBackend,
    RateLimitBackend,
    RateLimiter,
    RateLimitResult,
    RedisBackend,
    rate_limit_by_ip,
)
from vault.core.services.redis_service import RedisService
from vault.core.services.sms import TwilioService
from vault.core.services.step_up import StepUpChallenge, StepUpGrant, StepUpService
from vault.core.services.template import Renderer

__all__ = [
    # Core services
    "AuthService",
    "SingletonService",
    "BrevoService",
    "TwilioService",
    "RedisService",
    "Renderer",
    # Step-up
    "ChannelResult",
    "DeliveryGateway",
    "DeliveryResult",
    "DownloadTokenService",
    "StepUpService",
    "StepUpChallenge",
    "StepUpGrant",
    # Rate limiting
    "MemoryBackend",
    "RateLimitBackend",
    "RateLimiter",
    "RateLimitResult",
    "RedisBackend",
    "rate_limit_by_ip",
]
