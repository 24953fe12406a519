from .site import (
    AboutSection,
    ContactInfo,
    DeploymentStatus,
    HeroSection,
    ImageSlot,
    SaveStatus,
    ServiceItem,
    ShopInputs,
    SiteInstance,
    WebsiteData,
)

__all__ = [
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
]
