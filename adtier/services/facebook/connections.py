"""
Token-store boundary: resolves a brand's decrypted access token and ad account.

Encryption and the OAuth dialog live outside this package; the decrypt step is
an injected callable.
"""
import logging
from typing import Callable, List, Optional

from adtier.core.database import Database
from adtier.core.exceptions import AuthError, ConfigError
from adtier.core.timeutils import ensure_aware, utcnow
from adtier.models.brand import FbConnection
from adtier.models.enums import ConnectionStatus
from adtier.schemas.sync import Credentials

logger = logging.getLogger(__name__)


def _passthrough(token: str) -> str:
    return token


class ConnectionStore:
    """Reads and updates `fb_connections` rows"""

    def __init__(self, db: Database, decrypt: Optional[Callable[[str], str]] = None):
        self.db = db
        self.decrypt = decrypt or _passthrough

    def get_credentials(self, brand_id: int) -> Credentials:
        """
        Pre-flight check before any network call.

        Raises:
            ConfigError: no active connection, or no ad account selected.
            AuthError: the stored token has expired.
        """
        with self.db.session_scope() as session:
            conn = (
                session.query(FbConnection)
                .filter(
                    FbConnection.brand_id == brand_id,
                    FbConnection.status == ConnectionStatus.ACTIVE,
                )
                .first()
            )

            if conn is None:
                raise ConfigError(f"No active Facebook connection for brand {brand_id}")

            expires_at = ensure_aware(conn.token_expires_at)
            if expires_at is not None and expires_at < utcnow():
                raise AuthError("Facebook token has expired. Please reconnect.", retryable=False)

            if not conn.ad_account_id:
                raise ConfigError("No ad account selected. Please select an ad account.")

            return Credentials(
                access_token=self.decrypt(conn.access_token_encrypted),
                ad_account_id=conn.ad_account_id,
            )

    def mark_expired(self, brand_id: int) -> None:
        with self.db.session_scope() as session:
            session.query(FbConnection).filter(FbConnection.brand_id == brand_id).update(
                {FbConnection.status: ConnectionStatus.EXPIRED},
                synchronize_session=False,
            )
        logger.warning(f"Marked Facebook connection for brand {brand_id} as expired")

    def touch_last_sync(self, brand_id: int) -> None:
        with self.db.session_scope() as session:
            session.query(FbConnection).filter(FbConnection.brand_id == brand_id).update(
                {FbConnection.last_sync_at: utcnow()},
                synchronize_session=False,
            )

    def active_brand_ids(self) -> List[int]:
        """Brands with an active connection and a selected ad account"""
        with self.db.session_scope() as session:
            rows = (
                session.query(FbConnection.brand_id)
                .filter(
                    FbConnection.status == ConnectionStatus.ACTIVE,
                    FbConnection.ad_account_id.isnot(None),
                )
                .order_by(FbConnection.brand_id)
                .all()
            )
            return [row.brand_id for row in rows]
