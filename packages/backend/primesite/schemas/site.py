"""Site content value objects.

``WebsiteData`` is immutable: every edit goes through one of the explicit
``with_*`` methods, which replace a single field and copy the rest.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_GALLERY_KEY_RE = re.compile(r"^gallery(?P<index>\d+)$")

HERO_SLOT = "hero"
ABOUT_SLOT = "about"


def is_inline_payload(value: Optional[str]) -> bool:
    return bool(value) and value.startswith("data:")


def is_durable_url(value: Optional[str]) -> bool:
    if not value:
        return False
    lowered = value.lower()
    return lowered.startswith("http://") or lowered.startswith("https://")


def gallery_slot_key(index: int) -> str:
    return f"gallery{index}"


class _ValueModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class DeploymentStatus(str, enum.Enum):
    DRAFT = "draft"
    DEPLOYING = "deploying"
    DEPLOYED = "deployed"
    FAILED = "failed"


class SaveStatus(str, enum.Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class ShopInputs(_ValueModel):
    shop_name: str
    area: str = ""
    phone: str = ""


class HeroSection(_ValueModel):
    heading: str = ""
    tagline: str = ""
    image_url: str = ""


class AboutSection(_ValueModel):
    heading: str = ""
    description: tuple[str, ...] = ()
    image_url: str = ""


class ServiceItem(_ValueModel):
    title: str = ""
    subtitle: str = ""
    description: str = ""
    icon: Literal["scissors", "razor", "mustache", "face"] = "scissors"
    image_url: str = ""


class ContactInfo(_ValueModel):
    address: str = ""
    email: str = ""


@dataclass(frozen=True)
class ImageSlot:
    key: str
    filename: str


class WebsiteData(_ValueModel):
    shop_name: str
    area: str = ""
    phone: str = ""
    hero: HeroSection = Field(default_factory=HeroSection)
    about: AboutSection = Field(default_factory=AboutSection)
    services: tuple[ServiceItem, ...] = ()
    gallery: tuple[str, ...] = ()
    contact: ContactInfo = Field(default_factory=ContactInfo)

    # -- top-level fields -------------------------------------------------

    def with_shop_name(self, value: str) -> WebsiteData:
        return self.model_copy(update={"shop_name": value})

    def with_area(self, value: str) -> WebsiteData:
        return self.model_copy(update={"area": value})

    def with_phone(self, value: str) -> WebsiteData:
        return self.model_copy(update={"phone": value})

    # -- hero -------------------------------------------------------------

    def with_hero_heading(self, value: str) -> WebsiteData:
        return self.model_copy(update={"hero": self.hero.model_copy(update={"heading": value})})

    def with_hero_tagline(self, value: str) -> WebsiteData:
        return self.model_copy(update={"hero": self.hero.model_copy(update={"tagline": value})})

    def with_hero_image(self, value: str) -> WebsiteData:
        return self.model_copy(update={"hero": self.hero.model_copy(update={"image_url": value})})

    # -- about ------------------------------------------------------------

    def with_about_heading(self, value: str) -> WebsiteData:
        return self.model_copy(update={"about": self.about.model_copy(update={"heading": value})})

    def with_about_paragraph(self, index: int, text: str) -> WebsiteData:
        paragraphs = list(self.about.description)
        if index == len(paragraphs):
            paragraphs.append(text)
        else:
            _check_index(index, len(paragraphs), "about paragraph")
            paragraphs[index] = text
        return self.model_copy(
            update={"about": self.about.model_copy(update={"description": tuple(paragraphs)})}
        )

    def with_about_image(self, value: str) -> WebsiteData:
        return self.model_copy(update={"about": self.about.model_copy(update={"image_url": value})})

    # -- services ---------------------------------------------------------

    def with_service_text(
        self,
        index: int,
        *,
        title: Optional[str] = None,
        subtitle: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WebsiteData:
        _check_index(index, len(self.services), "service")
        changes = {
            key: value
            for key, value in (("title", title), ("subtitle", subtitle), ("description", description))
            if value is not None
        }
        return self._replace_service(index, self.services[index].model_copy(update=changes))

    def with_service_image(self, index: int, value: str) -> WebsiteData:
        _check_index(index, len(self.services), "service")
        return self._replace_service(index, self.services[index].model_copy(update={"image_url": value}))

    def _replace_service(self, index: int, service: ServiceItem) -> WebsiteData:
        services = list(self.services)
        services[index] = service
        return self.model_copy(update={"services": tuple(services)})

    # -- gallery & contact ------------------------------------------------

    def with_gallery_image(self, index: int, value: str) -> WebsiteData:
        _check_index(index, len(self.gallery), "gallery image")
        gallery = list(self.gallery)
        gallery[index] = value
        return self.model_copy(update={"gallery": tuple(gallery)})

    def with_contact_address(self, value: str) -> WebsiteData:
        return self.model_copy(update={"contact": self.contact.model_copy(update={"address": value})})

    def with_contact_email(self, value: str) -> WebsiteData:
        return self.model_copy(update={"contact": self.contact.model_copy(update={"email": value})})

    # -- image slots ------------------------------------------------------

    def image_slots(self) -> list[tuple[ImageSlot, str]]:
        """Slots read by the deployment path, in upload order."""
        slots = [
            (ImageSlot(HERO_SLOT, "hero.jpg"), self.hero.image_url),
            (ImageSlot(ABOUT_SLOT, "about.jpg"), self.about.image_url),
        ]
        for index, value in enumerate(self.gallery):
            slots.append((ImageSlot(gallery_slot_key(index), f"gallery-{index}.jpg"), value))
        return slots

    def with_image(self, slot_key: str, value: str) -> WebsiteData:
        if slot_key == HERO_SLOT:
            return self.with_hero_image(value)
        if slot_key == ABOUT_SLOT:
            return self.with_about_image(value)
        match = _GALLERY_KEY_RE.match(slot_key)
        if match:
            return self.with_gallery_image(int(match.group("index")), value)
        raise ValueError(f"Unknown image slot: {slot_key}")

    def with_image_urls(self, urls: Mapping[str, str]) -> WebsiteData:
        data = self
        for slot, _ in self.image_slots():
            url = urls.get(slot.key)
            if url:
                data = data.with_image(slot.key, url)
        return data

    def has_inline_images(self) -> bool:
        return any(is_inline_payload(value) for _, value in self.image_slots())

    def without_inline_images(self) -> WebsiteData:
        """Blank every inline payload, including service images."""
        data = self
        for slot, value in self.image_slots():
            if is_inline_payload(value):
                data = data.with_image(slot.key, "")
        for index, service in enumerate(self.services):
            if is_inline_payload(service.image_url):
                data = data.with_service_image(index, "")
        return data


def _check_index(index: int, size: int, label: str) -> None:
    if index < 0 or index >= size:
        raise IndexError(f"{label} index {index} out of range (size={size})")


class SiteInstance(_ValueModel):
    id: str = Field(min_length=1)
    data: WebsiteData
    last_saved: int = 0
    form_inputs: Optional[ShopInputs] = None
    deployed_url: Optional[str] = None
    deployment_status: DeploymentStatus = DeploymentStatus.DRAFT
    custom_domain: Optional[str] = None
    domain_order_id: Optional[str] = None

    def stamped(self, last_saved: int) -> SiteInstance:
        return self.model_copy(update={"last_saved": last_saved})

    def with_data(self, data: WebsiteData) -> SiteInstance:
        return self.model_copy(update={"data": data})

    def with_status(self, status: DeploymentStatus) -> SiteInstance:
        return self.model_copy(update={"deployment_status": status})

    def deployed(self, url: str, data: WebsiteData) -> SiteInstance:
        return self.model_copy(
            update={
                "data": data,
                "deployed_url": url,
                "deployment_status": DeploymentStatus.DEPLOYED,
            }
        )

    def with_domain(self, domain: str, order_id: str) -> SiteInstance:
        return self.model_copy(update={"custom_domain": domain, "domain_order_id": order_id})

    def remote_projection(self) -> SiteInstance:
        """Copy safe for the remote store: inline image payloads removed."""
        return self.with_data(self.data.without_inline_images())

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_payload(cls, payload: dict) -> SiteInstance:
        return cls.model_validate(payload)


__all__ = [
    "ABOUT_SLOT",
    "HERO_SLOT",
    "AboutSection",
    "ContactInfo",
    "DeploymentStatus",
    "HeroSection",
    "ImageSlot",
    "SaveStatus",
    "ServiceItem",
    "ShopInputs",
    "SiteInstance",
    "WebsiteData",
    "gallery_slot_key",
    "is_durable_url",
    "is_inline_payload",
]
