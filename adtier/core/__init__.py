# Core module - config, database, errors
from adtier.core.config import settings
from adtier.core.database import Base, Database
from adtier.core.exceptions import (
    AdTierError,
    AuthError,
    ConfigError,
    DataError,
    GraphAPIError,
    PermissionDeniedError,
    RateLimitError,
    TransientError,
)
