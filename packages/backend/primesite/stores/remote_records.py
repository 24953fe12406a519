from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..db.database import Database, get_database
from ..db.models import SiteRecord, UserProfile
from ..db.utils import store_session
from ..exceptions import RemoteStoreError
from ..schemas.site import DeploymentStatus, ShopInputs, SiteInstance, WebsiteData
from ..utils.time import ms_to_datetime

logger = logging.getLogger(__name__)


def _to_site(record: SiteRecord) -> SiteInstance:
    form_inputs = ShopInputs.model_validate(record.form_inputs) if record.form_inputs else None
    return SiteInstance(
        id=record.id,
        data=WebsiteData.model_validate(record.site_data),
        form_inputs=form_inputs,
        last_saved=record.last_saved or 0,
        deployed_url=record.deployed_url,
        deployment_status=DeploymentStatus(record.deployment_status or DeploymentStatus.DRAFT.value),
        custom_domain=record.custom_domain,
        domain_order_id=record.domain_order_id,
    )


class RemoteRecordStore:
    """User-scoped relational store holding the multi-device copy of each site."""

    def __init__(self, database: Optional[Database] = None) -> None:
        self.database = database or get_database()

    def upsert_sync(self, user_id: str, site: SiteInstance) -> None:
        projected = site.remote_projection()
        data = projected.data
        with store_session(self.database, RemoteStoreError, f"upsert site {site.id}", commit=True) as db:
            record = db.get(SiteRecord, site.id)
            if record is None:
                record = SiteRecord(id=site.id, user_id=user_id)
                db.add(record)
            elif record.user_id and record.user_id != user_id:
                raise RemoteStoreError(f"Site {site.id} belongs to another account")
            record.user_id = user_id
            record.company_name = data.shop_name
            record.service_area = data.area
            record.phone = data.phone
            record.site_data = data.model_dump(mode="json", by_alias=True)
            record.form_inputs = (
                projected.form_inputs.model_dump(mode="json", by_alias=True)
                if projected.form_inputs
                else None
            )
            record.deployed_url = projected.deployed_url
            record.deployment_status = projected.deployment_status.value
            record.custom_domain = projected.custom_domain
            record.domain_order_id = projected.domain_order_id
            record.last_saved = projected.last_saved
            record.updated_at = ms_to_datetime(projected.last_saved)

    def list_for_user_sync(self, user_id: str) -> list[SiteInstance]:
        with store_session(self.database, RemoteStoreError, f"list sites for {user_id}") as db:
            records = (
                db.query(SiteRecord)
                .filter(SiteRecord.user_id == user_id)
                .order_by(SiteRecord.last_saved.desc())
                .all()
            )
            return [_to_site(record) for record in records]

    def get_profile_sync(self, user_id: str) -> Optional[UserProfile]:
        with store_session(self.database, RemoteStoreError, f"load profile {user_id}") as db:
            profile = db.get(UserProfile, user_id)
            if profile is not None:
                db.expunge(profile)
            return profile

    async def upsert(self, user_id: str, site: SiteInstance) -> None:
        await asyncio.to_thread(self.upsert_sync, user_id, site)

    async def list_for_user(self, user_id: str) -> list[SiteInstance]:
        return await asyncio.to_thread(self.list_for_user_sync, user_id)

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return await asyncio.to_thread(self.get_profile_sync, user_id)


__all__ = ["RemoteRecordStore"]
