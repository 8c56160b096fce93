"""
Brand and Facebook connection models
"""
from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship

from adtier.models.base import BaseModel
from adtier.models.enums import ConnectionStatus, enum_values


class Brand(BaseModel):
    """Tenant key. Holds the per-brand classification goals."""

    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)

    # Goals (0 = unset, fall back to account benchmarks)
    target_roas = Column(Float, default=0, nullable=False)
    target_cpa = Column(Float, default=0, nullable=False)

    connection = relationship("FbConnection", back_populates="brand", uselist=False)


class FbConnection(BaseModel):
    """One Facebook connection per brand"""

    __tablename__ = "fb_connections"

    id = Column(Integer, primary_key=True, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, unique=True)

    # Encrypted by the token-store collaborator; decrypted through an injected callable
    access_token_encrypted = Column(Text, nullable=False)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)

    ad_account_id = Column(String(100), nullable=True)  # act_xxx
    ad_account_name = Column(String(255), nullable=True)

    status = Column(
        Enum(ConnectionStatus, values_callable=enum_values, name="connection_status"),
        default=ConnectionStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    last_sync_at = Column(DateTime(timezone=True), nullable=True)

    brand = relationship("Brand", back_populates="connection")
