from .analytics import PurchaseTracker
from .deployment import DeploymentClient, DeploymentResult, DomainAvailability
from .domains import DomainPurchase, DomainService
from .dual_write import DualWriteCoordinator
from .image_upload import ImageUploadPipeline, UploadMode
from .object_storage import ObjectStorage, SignedUpload
from .payments import PaymentClient, PaymentVerification
from .publish import PublishKind, PublishOutcome, PublishPhase, PublishRun, PublishSequencer
from .publish_runs import PublishRunRegistry
from .reconciliation import ReconciliationResolver

__all__ = [
    "DeploymentClient",
    "DeploymentResult",
    "DomainAvailability",
    "DomainPurchase",
    "DomainService",
    "DualWriteCoordinator",
    "ImageUploadPipeline",
    "ObjectStorage",
    "PaymentClient",
    "PaymentVerification",
    "PublishKind",
    "PublishOutcome",
    "PublishPhase",
    "PublishRun",
    "PublishRunRegistry",
    "PublishSequencer",
    "PurchaseTracker",
    "ReconciliationResolver",
    "SignedUpload",
    "UploadMode",
]
