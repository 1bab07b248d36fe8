from slowapi import Limiter
from slowapi.util import get_remote_address

from ...config import settings

limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.RATE_LIMIT_ENABLED,
    storage_uri="memory://",
)

SIGN_UP_LIMIT = f"{settings.RATE_LIMIT_PER_MINUTE}/minute"
# Более строгий лимит для входа (защита от брутфорса)
SIGN_IN_LIMIT = "10/minute"
