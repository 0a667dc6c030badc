"""
Pytest configuration and shared fixtures.

The gateway is replaced by an in-process fake with call counters, and
storage by an in-memory key-value store; nothing here touches the network.
"""

import pytest

from fakes import FakeGateway
from studyhall.core.kv_store import InMemoryKeyValueStore
from studyhall.core.persistence import CourseRepository
from studyhall.services.course_store import CourseStore
from studyhall.services.orchestrator import SessionOrchestrator


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def course_store(gateway, kv):
    return CourseStore(gateway, CourseRepository(kv))


@pytest.fixture
def orchestrator(gateway, kv):
    return SessionOrchestrator(gateway, kv)


@pytest.fixture
async def lesson_orchestrator(orchestrator):
    """Orchestrator with a generated course open on its first lesson"""
    orchestrator.start_course_generator()
    course = await orchestrator.generate_course("Topology")
    await orchestrator.open_module(course.modules[0].id)
    return orchestrator
