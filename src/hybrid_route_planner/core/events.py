"""Publish/subscribe notifications consumed by UI collaborators."""

import logging
from enum import Enum
from typing import Callable, ClassVar

from pydantic import BaseModel

from hybrid_route_planner.models import RoutingMode, RoutingProfile

logger = logging.getLogger(__name__)


class Topic(str, Enum):
    ROUTE_CHANGED = "routeChanged"
    ROUTING_MODE_CHANGED = "routingModeChanged"
    ROUTING_PROFILE_CHANGED = "routingProfileChanged"
    AUTO_SEGMENTS_CLEARED = "autoSegmentsCleared"
    ROUTE_UPDATED = "routeUpdated"


class Event(BaseModel):
    topic: ClassVar[Topic]


class RouteChanged(Event):
    topic: ClassVar[Topic] = Topic.ROUTE_CHANGED


class RouteUpdated(Event):
    topic: ClassVar[Topic] = Topic.ROUTE_UPDATED


class AutoSegmentsCleared(Event):
    topic: ClassVar[Topic] = Topic.AUTO_SEGMENTS_CLEARED


class RoutingModeChanged(Event):
    topic: ClassVar[Topic] = Topic.ROUTING_MODE_CHANGED
    mode: RoutingMode


class RoutingProfileChanged(Event):
    topic: ClassVar[Topic] = Topic.ROUTING_PROFILE_CHANGED
    profile: RoutingProfile


Subscriber = Callable[[Event], None]


class EventBus:
    """Named-topic registry; subscribers run synchronously in subscription order.

    A subscriber must not unsubscribe itself (or others on the same topic)
    while that topic is being dispatched.
    """

    def __init__(self):
        self._subscribers: dict[Topic, list[Subscriber]] = {}

    def subscribe(self, topic: Topic, callback: Subscriber) -> None:
        self._subscribers.setdefault(Topic(topic), []).append(callback)

    def unsubscribe(self, topic: Topic, callback: Subscriber) -> None:
        callbacks = self._subscribers.get(Topic(topic), [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event: Event) -> None:
        callbacks = self._subscribers.get(event.topic, [])
        logger.debug("Emitting %s to %d subscriber(s)", event.topic.value, len(callbacks))
        for callback in callbacks:
            callback(event)
