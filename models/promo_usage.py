import uuid
from datetime import datetime, timezone

from pydantic import BaseModel
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint, CheckConstraint

from models.base import Base


class PromoUsage(Base):
    """
    Append-only ledger of applied promos.

    One row per completed order that used a promo; rows are never updated.
    Only used to count usage against usage_limit_total / usage_limit_per_customer.
    """
    __tablename__ = 'promo_usage'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    promo_id = Column(String(36), ForeignKey("promos.id", ondelete="CASCADE"), nullable=False)
    order_id = Column(String(36), nullable=False)
    customer_identifier = Column(String(255), nullable=True)
    discount_cents = Column(Integer, nullable=False)
    applied_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint('promo_id', 'order_id', name='unique_promo_order'),
        CheckConstraint('discount_cents >= 0', name='check_usage_discount_non_negative'),
    )


class PromoUsageDTO(BaseModel):
    id: str | None = None
    promo_id: str
    order_id: str
    customer_identifier: str | None = None
    discount_cents: int
    applied_at: datetime | None = None
