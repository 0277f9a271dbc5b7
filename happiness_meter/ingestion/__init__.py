from happiness_meter.ingestion.dataset import Dataset
from happiness_meter.ingestion.pipeline import IngestionPipeline
from happiness_meter.ingestion.schema import (
    Booth,
    Channel,
    ChannelRating,
    ChannelType,
    Entity,
    Journey,
    JourneyReview,
    Phase,
    ReviewChannel,
    SchemaValidator,
    Service,
    ServiceKind,
    ServiceReview,
)

__all__ = [
    "Booth",
    "Channel",
    "ChannelRating",
    "ChannelType",
    "Dataset",
    "Entity",
    "IngestionPipeline",
    "Journey",
    "JourneyReview",
    "Phase",
    "ReviewChannel",
    "SchemaValidator",
    "Service",
    "ServiceKind",
    "ServiceReview",
]
