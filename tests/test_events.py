from __future__ import annotations

from sqlmodel import Session, SQLModel, create_engine, select

from parksys.domain.models import EventEnvelope, EventRecord
from parksys.infra.events import EventBus


def test_event_bus_publish_and_subscribe() -> None:
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)

    bus = EventBus()
    seen: list[str] = []

    def handler(event: EventEnvelope) -> None:
        seen.append(event.event_id)

    event = EventEnvelope(
        event_type="asset.updated",
        payload={"asset_id": 7, "fields": ["condition"]},
    )
    bus.subscribe("asset.updated", handler)

    with Session(engine) as session:
        bus.publish(event, session=session)
        session.commit()

    with Session(engine) as session:
        stored = session.exec(select(EventRecord)).all()

    assert len(stored) == 1
    assert stored[0].event_id == event.event_id
    assert stored[0].payload == {"asset_id": 7, "fields": ["condition"]}
    assert seen == [event.event_id]

    bus.unsubscribe("asset.updated", handler)
    with Session(engine) as session:
        bus.publish(EventEnvelope(event_type="asset.updated", payload={}), session=session)
        session.commit()
    assert seen == [event.event_id]
