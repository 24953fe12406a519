from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Enum as SAEnum,
    Index,
    JSON,
    String,
)
from sqlalchemy.orm import declarative_base

from .base import Base

# Separate metadata so the device-local drafts file never grows remote tables.
DraftBase = declarative_base()


class SubscriptionStatus(str, enum.Enum):
    NONE = "none"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"


class SiteRecord(Base):
    __tablename__ = "sites"
    __table_args__ = (Index("ix_sites_user_updated", "user_id", "last_saved"),)

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    company_name = Column(String, nullable=False, default="")
    industry = Column(String, nullable=False, default="barber")
    service_area = Column(String, nullable=False, default="")
    phone = Column(String, nullable=False, default="")
    brand_colour = Column(String, nullable=True)
    site_data = Column(JSON, nullable=False)
    form_inputs = Column(JSON, nullable=True)
    deployed_url = Column(String, nullable=True)
    deployment_status = Column(String, nullable=False, default="draft")
    custom_domain = Column(String, nullable=True)
    domain_order_id = Column(String, nullable=True)
    last_saved = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class UserProfile(Base):
    __tablename__ = "users_profile"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=True)
    full_name = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    stripe_customer_id = Column(String, nullable=True)
    subscription_status = Column(
        SAEnum(SubscriptionStatus, values_callable=lambda enum_cls: [item.value for item in enum_cls]),
        nullable=False,
        default=SubscriptionStatus.NONE,
    )
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class LocalDraft(DraftBase):
    __tablename__ = "local_drafts"

    id = Column(String, primary_key=True)
    payload = Column(JSON, nullable=False)
    last_saved = Column(BigInteger, nullable=False, default=0)


__all__ = ["DraftBase", "LocalDraft", "SiteRecord", "SubscriptionStatus", "UserProfile"]
