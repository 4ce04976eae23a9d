import pytest

from chart_models import ConnectionPoint, DirectionalNote, Side, SlideNote, TapNote, TempoMarker, Tool
from note_store import NoteStore
from placement_engine import PlacementEngine, PlacementOutcome


@pytest.fixture
def engine():
    return PlacementEngine(division=4)


@pytest.fixture
def slide_store():
    slide = SlideNote(
        connections=(
            ConnectionPoint(beat=1.0, lane=1),
            ConnectionPoint(beat=2.0, lane=2),
            ConnectionPoint(beat=3.0, lane=3),
        )
    )
    return NoteStore([slide])


def place_at(engine, store, tool, beat=1.0, lane=2):
    return engine.place(store, tool, beat, lane)


def test_tap_on_empty_inserts(engine):
    result = place_at(engine, NoteStore(), Tool.TAP)

    assert result.outcome == PlacementOutcome.INSERTED
    assert result.store.notes() == (TapNote(beat=1.0, lane=2),)


def test_tap_twice_equals_tap_once(engine):
    once = place_at(engine, NoteStore(), Tool.TAP).store
    twice = place_at(engine, once, Tool.TAP).store

    assert twice == once


def test_sub_beat_is_folded_into_beat(engine):
    result = engine.place(NoteStore(), Tool.TAP, 3, 0, sub_beat=3)

    assert result.store[0] == TapNote(beat=3.75, lane=0)


def test_directional_same_side_cycles_length(engine):
    store = NoteStore()
    lengths = []
    for _ in range(4):
        store = place_at(engine, store, Tool.DIRECTIONAL_LEFT).store
        assert len(store) == 1
        lengths.append(store[0].length)

    assert lengths == [1, 2, 3, 1]


def test_directional_other_side_replaces_with_length_one(engine):
    store = place_at(engine, NoteStore(), Tool.DIRECTIONAL_LEFT).store
    store = place_at(engine, store, Tool.DIRECTIONAL_RIGHT).store

    assert store.notes() == (DirectionalNote(beat=1.0, lane=2, side=Side.RIGHT, length=1),)


def test_directional_cycle_keeps_flags(engine):
    store = NoteStore([DirectionalNote(beat=1.0, lane=2, side=Side.LEFT, length=1, skill=True)])

    store = place_at(engine, store, Tool.DIRECTIONAL_LEFT).store

    assert store[0] == DirectionalNote(beat=1.0, lane=2, side=Side.LEFT, length=2, skill=True)


def test_tap_styles_replace_each_other(engine):
    store = place_at(engine, NoteStore(), Tool.SKILL).store
    result = place_at(engine, store, Tool.FLICK)

    assert result.outcome == PlacementOutcome.MUTATED
    assert result.store[0] == TapNote(beat=1.0, lane=2, flick=True, skill=False)

    plain = place_at(engine, result.store, Tool.TAP).store
    assert plain[0] == TapNote(beat=1.0, lane=2)


def test_directional_over_tap_and_tap_over_directional(engine):
    store = place_at(engine, NoteStore(), Tool.FLICK).store
    store = place_at(engine, store, Tool.DIRECTIONAL_RIGHT).store
    assert store[0] == DirectionalNote(beat=1.0, lane=2, side=Side.RIGHT, length=1)

    store = place_at(engine, store, Tool.SKILL).store
    assert store.notes() == (TapNote(beat=1.0, lane=2, skill=True),)


@pytest.mark.parametrize("tool", [Tool.TAP, Tool.FLICK])
@pytest.mark.parametrize("beat, lane", [(1.0, 1), (2.0, 2)])
def test_tap_and_flick_ignored_on_start_and_pathway(engine, slide_store, tool, beat, lane):
    result = engine.place(slide_store, tool, beat, lane)

    assert result.outcome == PlacementOutcome.IGNORED
    assert result.store is slide_store


def test_flick_then_tap_on_slide_end(engine, slide_store):
    flicked = engine.place(slide_store, Tool.FLICK, 3.0, 3)
    assert flicked.outcome == PlacementOutcome.MUTATED
    assert flicked.store[0].end == ConnectionPoint(beat=3.0, lane=3, flick=True)

    reverted = engine.place(flicked.store, Tool.TAP, 3.0, 3)
    assert reverted.store == slide_store

    unstyled = engine.place(slide_store, Tool.TAP, 3.0, 3)
    assert unstyled.outcome == PlacementOutcome.IGNORED


def test_skill_on_slide_start_end_and_pathway(engine, slide_store):
    started = engine.place(slide_store, Tool.SKILL, 1.0, 1)
    assert started.store[0].start == ConnectionPoint(beat=1.0, lane=1, skill=True)

    ended = engine.place(engine.place(slide_store, Tool.FLICK, 3.0, 3).store, Tool.SKILL, 3.0, 3)
    assert ended.store[0].end == ConnectionPoint(beat=3.0, lane=3, skill=True, flick=False)

    pathway = engine.place(slide_store, Tool.SKILL, 2.0, 2)
    assert pathway.outcome == PlacementOutcome.IGNORED


@pytest.mark.parametrize("beat, lane", [(1.0, 1), (2.0, 2), (3.0, 3)])
def test_directional_never_attaches_to_slide(engine, slide_store, beat, lane):
    for tool in (Tool.DIRECTIONAL_LEFT, Tool.DIRECTIONAL_RIGHT):
        result = engine.place(slide_store, tool, beat, lane)
        assert result.outcome == PlacementOutcome.IGNORED
        assert result.store == slide_store


def test_non_point_tools_are_ignored(engine):
    for tool in (Tool.SELECT, Tool.SLIDE, Tool.LONG, Tool.TEMPO):
        result = place_at(engine, NoteStore(), tool)
        assert result.outcome == PlacementOutcome.IGNORED
        assert not result.changed


def test_place_tempo(engine):
    inserted = engine.place_tempo(NoteStore(), 4, 180.0)
    assert inserted.outcome == PlacementOutcome.INSERTED
    assert inserted.store.notes() == (TempoMarker(beat=4.0, bpm=180.0),)

    same = engine.place_tempo(inserted.store, 4, 180.0)
    assert same.outcome == PlacementOutcome.IGNORED

    changed = engine.place_tempo(inserted.store, 4, 90.0)
    assert changed.outcome == PlacementOutcome.MUTATED
    assert changed.store.notes() == (TempoMarker(beat=4.0, bpm=90.0),)

    rejected = engine.place_tempo(NoteStore(), 4, 0.0)
    assert rejected.outcome == PlacementOutcome.IGNORED
