from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from happiness_meter.ingestion.schema import (
    Booth,
    Channel,
    ChannelRating,
    Entity,
    Journey,
    JourneyReview,
    Service,
    ServiceReview,
)


class Dataset(BaseModel):
    """Immutable bundle of every raw collection the scoring engine reads."""

    model_config = ConfigDict(frozen=True)

    entities: tuple[Entity, ...] = ()
    services: tuple[Service, ...] = ()
    channels: tuple[Channel, ...] = ()
    booths: tuple[Booth, ...] = ()
    service_reviews: tuple[ServiceReview, ...] = ()
    channel_ratings: tuple[ChannelRating, ...] = ()
    journeys: tuple[Journey, ...] = ()
    journey_reviews: tuple[JourneyReview, ...] = ()

    def for_entity(self, entity_id: str) -> Dataset:
        """Scope the dataset to one entity.

        Journeys span entities, so journeys and their reviews are kept whole.
        """
        services = tuple(s for s in self.services if s.entity_id == entity_id)
        channels = tuple(c for c in self.channels if c.entity_id == entity_id)

        service_ids = {s.id for s in services}
        channel_ids = {c.id for c in channels}
        booths = tuple(b for b in self.booths if b.center_id in channel_ids)
        booth_ids = {b.id for b in booths}

        return self.model_copy(
            update={
                "entities": tuple(e for e in self.entities if e.id == entity_id),
                "services": services,
                "channels": channels,
                "booths": booths,
                "service_reviews": tuple(
                    r for r in self.service_reviews if r.service_id in service_ids
                ),
                "channel_ratings": tuple(
                    r
                    for r in self.channel_ratings
                    if r.channel_id in channel_ids or r.booth_id in booth_ids
                ),
            }
        )

    def entity_ids(self) -> list[str]:
        return [e.id for e in self.entities]

    def summary(self) -> dict[str, int]:
        return {
            "entities": len(self.entities),
            "services": len(self.services),
            "channels": len(self.channels),
            "booths": len(self.booths),
            "service_reviews": len(self.service_reviews),
            "channel_ratings": len(self.channel_ratings),
            "journeys": len(self.journeys),
            "journey_reviews": len(self.journey_reviews),
        }
