# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - Lifecycle orchestration, persistence and event delivery.
"""

from .interfaces import ChildRepository, EventSink, PublishResult
from .filters import ChildFilters, ChildPage
from .memory import InMemoryChildRepository
from .events import InMemoryEventSink
from .mongodb import MongoDBService, MongoChildRepository, get_mongodb_service
from .amqp import AMQPService, AMQPConfig, AMQPEventSink, create_amqp_service
from .children import ChildLifecycleManager, create_child_lifecycle_manager

__all__ = [
    "ChildRepository",
    "EventSink",
    "PublishResult",
    "ChildFilters",
    "ChildPage",
    "InMemoryChildRepository",
    "InMemoryEventSink",
    "MongoDBService",
    "MongoChildRepository",
    "get_mongodb_service",
    "AMQPService",
    "AMQPConfig",
    "AMQPEventSink",
    "create_amqp_service",
    "ChildLifecycleManager",
    "create_child_lifecycle_manager"
]
