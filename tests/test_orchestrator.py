import asyncio
import json

import pytest

from studyhall.core.errors import GenerationError, InvalidTransitionError, ValidationError
from studyhall.core.models import DEFAULT_DISPLAY_SETTINGS, ViewState
from studyhall.core.persistence import SETTINGS_KEY
from studyhall.services.orchestrator import SessionOrchestrator


async def test_generate_course_moves_to_course_view(orchestrator):
    orchestrator.start_course_generator("Physics")
    assert orchestrator.state.generator_prefill == "Physics"

    course = await orchestrator.generate_course("Topology")

    assert orchestrator.view.current == ViewState.COURSE_VIEW
    assert orchestrator.active_course() == course
    assert orchestrator.courses.list_courses()[0] == course
    assert orchestrator.state.generator_prefill == ""


async def test_failed_generation_stays_on_generator(orchestrator, gateway):
    orchestrator.start_course_generator()
    gateway.fail.add("syllabus")

    with pytest.raises(GenerationError):
        await orchestrator.generate_course("Topology")

    assert orchestrator.view.current == ViewState.COURSE_GENERATOR
    assert orchestrator.courses.list_courses() == []
    assert orchestrator.state.last_error


async def test_generate_course_only_from_generator(orchestrator, gateway):
    with pytest.raises(InvalidTransitionError):
        await orchestrator.generate_course("Topology")
    assert gateway.calls["syllabus"] == 0


async def test_lesson_view_requires_active_course(orchestrator):
    with pytest.raises(InvalidTransitionError):
        await orchestrator.open_module("anything")
    with pytest.raises(InvalidTransitionError):
        orchestrator.back_to_course()


async def test_chat_history_is_scoped_to_module(lesson_orchestrator):
    orch = lesson_orchestrator
    course = orch.active_course()
    first_tutor = orch.tutor

    await orch.send_chat("What is a basis?")
    await orch.send_chat("And a subbasis?")
    assert len(first_tutor.messages) == 4

    orch.back_to_course()
    await orch.open_module(course.modules[1].id)

    assert orch.tutor.messages == ()
    assert orch.tutor.module_id == course.modules[1].id
    assert len(first_tutor.messages) == 4


async def test_reopening_a_module_reuses_its_content(lesson_orchestrator, gateway):
    orch = lesson_orchestrator
    module_id = orch.state.active_module_id
    first = orch.active_module().content

    orch.back_to_course()
    again = await orch.open_module(module_id)

    assert again.content == first
    assert gateway.calls["lesson"] == 1


async def test_failed_lesson_leaves_empty_module(orchestrator, gateway):
    orchestrator.start_course_generator()
    course = await orchestrator.generate_course("Topology")
    gateway.fail.add("lesson")

    module = await orchestrator.open_module(course.modules[0].id)

    assert module.content is None
    assert orchestrator.view.current == ViewState.LESSON_VIEW
    assert orchestrator.state.last_error


async def test_late_lesson_commits_without_moving_the_view(orchestrator, gateway):
    orchestrator.start_course_generator()
    course = await orchestrator.generate_course("Topology")
    first, second = course.modules[0], course.modules[1]
    gateway.lesson_gate = asyncio.Event()

    slow = asyncio.create_task(orchestrator.open_module(first.id))
    await asyncio.sleep(0)
    orchestrator.back_to_course()
    gateway.lesson_gate.set()
    await orchestrator.open_module(second.id)
    await slow

    assert orchestrator.state.active_module_id == second.id
    assert orchestrator.courses.get_module(course.id, first.id).content
    assert orchestrator.courses.get_module(course.id, second.id).content


async def test_toggle_completion_through_orchestrator(lesson_orchestrator):
    orch = lesson_orchestrator
    course = orch.toggle_completion(orch.state.active_module_id)
    assert course.progress == round(100 / 9)
    assert orch.active_course().progress == course.progress


async def test_research_runs_in_lesson_view(lesson_orchestrator, gateway):
    result = await lesson_orchestrator.research("dark matter")
    assert result.citations[0].uri == "https://x"
    assert lesson_orchestrator.snapshot()["researchBusy"] is False


async def test_chat_and_research_need_a_lesson(orchestrator):
    with pytest.raises(InvalidTransitionError):
        await orchestrator.send_chat("hello")
    with pytest.raises(InvalidTransitionError):
        await orchestrator.research("dark matter")


async def test_deleting_active_course_returns_to_dashboard(lesson_orchestrator):
    orch = lesson_orchestrator
    orch.delete_course(orch.state.active_course_id)
    assert orch.view.current == ViewState.DASHBOARD
    assert orch.state.active_course_id is None
    assert orch.tutor is None


async def test_dashboard_clears_active_entities(lesson_orchestrator):
    orch = lesson_orchestrator
    orch.go_to_dashboard()
    snapshot = orch.snapshot()
    assert snapshot["view"] == "dashboard"
    assert snapshot["activeCourseId"] is None
    assert snapshot["activeModuleId"] is None


def test_settings_are_written_through(orchestrator, kv):
    orchestrator.update_settings(theme="sepia", maxWidth="wide")
    orchestrator.zoom_in()

    stored = json.loads(kv.get(SETTINGS_KEY))
    assert stored["theme"] == "sepia"
    assert stored["maxWidth"] == "wide"
    assert stored["zoom"] == 105

    reloaded = SessionOrchestrator(orchestrator.gateway, kv)
    assert reloaded.display == orchestrator.display


@pytest.mark.parametrize("changes", [{"zoom": 160}, {"theme": "neon"}, {"colour": "red"}])
def test_invalid_settings_are_rejected(orchestrator, kv, changes):
    with pytest.raises(ValidationError):
        orchestrator.update_settings(**changes)
    assert orchestrator.display == DEFAULT_DISPLAY_SETTINGS
    assert kv.get(SETTINGS_KEY) is None


def test_reset_settings(orchestrator):
    orchestrator.update_settings(font_family="mono")
    assert orchestrator.reset_settings() == DEFAULT_DISPLAY_SETTINGS


async def test_generator_cannot_skip_back_to_previous_course(orchestrator, gateway):
    orchestrator.start_course_generator()
    course = await orchestrator.generate_course("Topology")

    orchestrator.start_course_generator("Physics")
    assert orchestrator.state.active_course_id is None
    with pytest.raises(InvalidTransitionError):
        orchestrator.back_to_course()
    with pytest.raises(InvalidTransitionError):
        orchestrator.open_course(course.id)
    assert orchestrator.view.current == ViewState.COURSE_GENERATOR
    assert gateway.calls["syllabus"] == 1


async def test_dashboard_course_reopens_but_generator_does_not(orchestrator):
    orchestrator.start_course_generator()
    course = await orchestrator.generate_course("Topology")
    orchestrator.go_to_dashboard()

    assert orchestrator.open_course(course.id) == course
    assert orchestrator.view.current == ViewState.COURSE_VIEW

    orchestrator.go_to_dashboard()
    orchestrator.start_course_generator()
    with pytest.raises(InvalidTransitionError):
        orchestrator.open_course(course.id)


async def test_toggle_completion_needs_course_screen(orchestrator):
    orchestrator.start_course_generator()
    course = await orchestrator.generate_course("Topology")
    orchestrator.start_course_generator()

    with pytest.raises(InvalidTransitionError):
        orchestrator.toggle_completion(course.modules[0].id)
    assert orchestrator.courses.get_course(course.id).progress == 0


def test_reset_settings_forgets_stored_preferences(orchestrator, kv):
    orchestrator.update_settings(theme="sepia")
    assert kv.get(SETTINGS_KEY) is not None

    orchestrator.reset_settings()

    assert kv.get(SETTINGS_KEY) is None
    assert SessionOrchestrator(orchestrator.gateway, kv).display == DEFAULT_DISPLAY_SETTINGS
