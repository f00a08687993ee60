import numpy as np
import pytest

from lunar.map_generator import generate_lunar_map
from lunar.models import MISSION_CONFIG, MVP_MISSION, OutpostStatus, OutpostType, Position, WarningCode
from lunar.session import GameOverError, GamePhase, GameSession, UnknownOutpostError
from lunar.state_utils import annotate_outposts, evaluate_state, map_layer_payload, snapshot_from_evaluated

from conftest import make_state, outpost, uniform_map


@pytest.fixture
def session(terrain_seed) -> GameSession:
    return GameSession(terrain_seed=terrain_seed)


def test_new_session_is_evaluated(session):
    assert session.phase == GamePhase.PLAY
    assert session.state.day == 0
    assert session.lunar_map.day == 0
    assert session.evaluated.evaluation.constraints.comm_connectivity is True


def test_seeded_sessions_share_craters():
    a = GameSession(seed="apollo")
    b = GameSession(seed="apollo")
    assert a.terrain_seed == b.terrain_seed
    assert np.array_equal(a.lunar_map.roughness, b.lunar_map.roughness)


def test_place_move_remove_reevaluate(session):
    evaluated = session.place(OutpostType.COMMAND, Position(10, 10))
    assert evaluated is session.evaluated
    (command,) = session.state.outposts
    assert session.state.budget == pytest.approx(400.0)

    session.place(OutpostType.POWER, Position(12, 10))
    assert len(session.evaluated.evaluation.links) == 1

    session.move(command.id, Position(11, 11))
    assert session.state.outposts[0].position == Position(11, 11)

    session.remove(command.id)
    assert session.state.budget == pytest.approx(400.0 - 80.0 + 50.0)
    assert session.evaluated.evaluation.links == ()


def test_unknown_outpost_raises(session):
    with pytest.raises(UnknownOutpostError):
        session.move("nope", Position(1, 1))
    with pytest.raises(UnknownOutpostError):
        session.remove("nope")
    with pytest.raises(UnknownOutpostError):
        session.preview_move("nope", Position(1, 1))


def test_preview_does_not_commit(session):
    session.place(OutpostType.COMMAND, Position(10, 10))
    before = session.evaluated
    (command,) = session.state.outposts
    result = session.preview_move(command.id, Position(500, 500))
    assert [w.code for w in result.warnings] == [WarningCode.OUT_OF_BOUNDS]
    assert session.evaluated is before

    preview = session.preview_place(OutpostType.MINING, Position(-1, 0))
    assert preview.is_valid is False
    assert len(session.state.outposts) == 1


def test_end_turn_confirms_advances_and_regenerates(session):
    session.place(OutpostType.COMMAND, Position(10, 10))
    roughness = session.lunar_map.roughness
    session.end_turn()
    assert session.state.day == 1
    assert session.lunar_map.day == 1
    assert all(o.status == OutpostStatus.CONFIRMED for o in session.state.outposts)
    assert len(session.state.history) == 1
    # craters stay put between turns
    assert np.array_equal(session.lunar_map.roughness, roughness)


def test_undo_restores_previous_day(session):
    assert session.undo() is None
    session.place(OutpostType.COMMAND, Position(10, 10))
    session.end_turn()
    session.undo()
    assert session.state.day == 0
    assert session.lunar_map.day == 0
    assert session.state.history == ()


def test_mission_ends_after_duration(session):
    for _ in range(MISSION_CONFIG.mission.duration):
        session.end_turn()
    assert session.phase == GamePhase.RESULT
    with pytest.raises(GameOverError):
        session.place(OutpostType.COMMAND, Position(1, 1))
    with pytest.raises(GameOverError):
        session.end_turn()
    with pytest.raises(GameOverError):
        session.preview_place(OutpostType.COMMAND, Position(1, 1))
    with pytest.raises(GameOverError):
        session.preview_move("nope", Position(1, 1))

    session.undo()
    assert session.phase == GamePhase.PLAY
    assert session.state.day == MISSION_CONFIG.mission.duration - 1


def test_unaffordable_placement_is_rejected_by_default(session):
    for _ in range(5):
        assert session.place(OutpostType.COMMAND, Position(1, 1)) is not None
    assert session.state.budget == pytest.approx(0.0)
    assert session.place(OutpostType.COMMAND, Position(1, 1)) is None
    assert len(session.state.outposts) == 5


def test_budget_may_go_negative_when_not_enforced(terrain_seed):
    session = GameSession(terrain_seed=terrain_seed, enforce_budget=False)
    for _ in range(6):
        session.place(OutpostType.COMMAND, Position(1, 1))
    assert session.state.budget == pytest.approx(-100.0)
    assert session.evaluated.evaluation.scores.cost < 0


def test_session_runs_the_given_mission(terrain_seed):
    mission = MVP_MISSION.model_copy(update={"budget": 1000.0, "duration": 2})
    session = GameSession(mission=mission, terrain_seed=terrain_seed)
    assert session.state.budget == pytest.approx(1000.0)
    for _ in range(6):
        assert session.place(OutpostType.COMMAND, Position(1, 1)) is not None
    assert session.state.budget == pytest.approx(400.0)
    session.end_turn()
    assert session.phase == GamePhase.PLAY
    session.end_turn()
    assert session.phase == GamePhase.RESULT


def _buildable_cell(lunar_map) -> Position:
    y, x = np.argwhere(lunar_map.roughness <= 0.9)[0]
    return Position(int(x), int(y))


def test_preview_place_checks_budget_before_charging(terrain_seed):
    lunar_map = generate_lunar_map(0, terrain_seed)
    position = _buildable_cell(lunar_map)
    # terrain-adjusted cost fits the budget, base cost plus adjusted cost does not
    adjusted = 100.0 * float(lunar_map.build_cost[position.y, position.x])
    mission = MVP_MISSION.model_copy(update={"budget": adjusted + 1.0})
    session = GameSession(mission=mission, terrain_seed=terrain_seed)

    result = session.preview_place(OutpostType.COMMAND, position)
    assert result.warnings == ()
    assert result.is_valid is True

    tight = GameSession(
        mission=MVP_MISSION.model_copy(update={"budget": adjusted - 1.0}),
        terrain_seed=terrain_seed,
    )
    result = tight.preview_place(OutpostType.COMMAND, position)
    assert [w.code for w in result.warnings] == [WarningCode.INSUFFICIENT_BUDGET]
    assert tight.state.budget == pytest.approx(adjusted - 1.0)


def test_annotation_marks_outposts_named_by_warnings():
    lunar_map = uniform_map(roughness=0.95)
    state = make_state(
        [outpost("c", OutpostType.COMMAND, 0, 0), outpost("p", OutpostType.POWER, 70, 50)]
    )
    evaluated = evaluate_state(state, lunar_map)
    annotated = {o.id: o for o in evaluated.evaluation.outposts}
    assert annotated["c"].is_unstable is True
    assert annotated["p"].is_unstable is True
    assert any("terrain too harsh" in w for w in annotated["p"].warnings)
    # the authoritative state is never annotated
    assert all(not o.is_unstable and o.warnings == () for o in evaluated.state.outposts)


def test_annotation_on_clean_base():
    state = make_state([outpost("c", OutpostType.COMMAND, 0, 0)])
    evaluated = evaluate_state(state, uniform_map())
    constraints = evaluated.evaluation.constraints
    (command,) = annotate_outposts(state.outposts, constraints)
    assert command.is_unstable is False
    assert command.warnings == ()


def test_snapshot_payload(session):
    session.place(OutpostType.COMMAND, Position(10, 10))
    payload = snapshot_from_evaluated(session.evaluated, session.lunar_map, session.phase.value, "abc")
    assert payload["session_id"] == "abc"
    assert payload["phase"] == "play"
    assert payload["day"] == 0
    assert payload["is_daytime"] is True
    assert all(payload["affordable"].values())
    assert payload["outposts"][0]["type"] == "command"
    assert payload["can_undo"] is False
    assert set(payload["scores"]) == {"cost", "survival", "science", "stability", "overall"}
    assert payload["mission_check"]["is_valid"] is False


def test_map_layer_payload(day_map):
    payload = map_layer_payload(day_map, "solar")
    assert len(payload["values"]) == day_map.height
    assert len(payload["values"][0]) == day_map.width
    with pytest.raises(ValueError):
        map_layer_payload(day_map, "gravity")
