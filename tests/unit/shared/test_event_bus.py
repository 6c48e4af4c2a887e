"""Unit tests for the in-memory event bus."""

from dataclasses import dataclass
from uuid import uuid4

import pytest

from shared.domain.events import DomainEvent
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


@dataclass(frozen=True)
class CakeBaked(DomainEvent):
    flavor: str = ""


@dataclass(frozen=True)
class CakeDropped(DomainEvent):
    pass


class Recorder:
    def __init__(self):
        self.seen = []

    def handle(self, event):
        self.seen.append(event)


def test_event_name_is_class_name():
    event = CakeBaked(aggregate_id=uuid4(), flavor="pandan")
    assert event.event_name == "CakeBaked"


def test_publish_dispatches_by_exact_class():
    bus = InMemoryEventBus()
    recorder = Recorder()
    bus.subscribe(CakeBaked, recorder)

    baked = CakeBaked(aggregate_id=uuid4())
    bus.publish_all([baked, CakeDropped(aggregate_id=uuid4())])

    assert recorder.seen == [baked]


def test_subscribe_is_idempotent():
    bus = InMemoryEventBus()
    recorder = Recorder()
    bus.subscribe(CakeBaked, recorder)
    bus.subscribe(CakeBaked, recorder)

    bus.publish(CakeBaked(aggregate_id=uuid4()))

    assert len(recorder.seen) == 1


def test_publish_without_handlers_is_noop():
    InMemoryEventBus().publish(CakeDropped(aggregate_id=uuid4()))
