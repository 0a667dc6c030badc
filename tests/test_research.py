import asyncio

import pytest

from studyhall.core.errors import ValidationError
from studyhall.core.models import Citation, ResearchResult
from studyhall.services.research import ResearchSession


async def test_query_stores_result_with_citations(gateway):
    session = ResearchSession(gateway)
    result = await session.query("dark matter")

    assert session.result == result
    assert len(session.result.citations) == 1
    assert session.result.citations[0].uri == "https://x"
    assert session.query_text == "dark matter"
    assert not session.busy

    with pytest.raises(ValidationError):
        await session.query("")
    assert gateway.calls["research"] == 1
    assert session.result == result


async def test_failure_leaves_slot_empty(gateway):
    session = ResearchSession(gateway)
    await session.query("dark matter")

    gateway.fail.add("research")
    assert await session.query("dark energy") is None
    assert session.result is None
    assert not session.busy
    assert "research failed" in session.last_error


async def test_new_query_clears_previous_result_immediately(gateway):
    session = ResearchSession(gateway)
    await session.query("dark matter")

    gate = asyncio.Event()
    original = gateway.research

    async def slow_research(query):
        await gate.wait()
        return await original(query)

    gateway.research = slow_research
    pending = asyncio.create_task(session.query("neutrinos"))
    await asyncio.sleep(0)
    assert session.result is None
    assert session.busy

    gate.set()
    await pending
    assert session.result is not None


async def test_superseded_response_is_dropped(gateway):
    session = ResearchSession(gateway)
    first_gate = asyncio.Event()
    answers = {
        "old": ResearchResult(text="old", citations=(Citation(uri="https://old", title="Old"),)),
        "new": ResearchResult(text="new"),
    }

    async def research(query):
        if query == "old":
            await first_gate.wait()
        return answers[query]

    gateway.research = research
    old = asyncio.create_task(session.query("old"))
    await asyncio.sleep(0)
    await session.query("new")
    first_gate.set()
    assert await old is None

    assert session.result.text == "new"
    assert session.result.citations == ()
    assert not session.busy
