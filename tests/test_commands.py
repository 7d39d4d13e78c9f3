import pytest

from pathcore.command import (AddPath, AddSegment, ChangeUnitOfLength, ConvertSegment, DragControls,
                              InsertPaths, MovePath, RemovePathTreeItems, SplitSegment,
                              UpdatePathTreeItems, UpdateProperties)
from pathcore.errors import ValidationError
from pathcore.geom import EndPointControl, Vector
from pathcore.path import Path, SegmentVariant
from pathcore.sampling import get_path_points
from pathcore.unit import UnitOfLength

from conftest import make_cubic_path, make_linear_path


def snapshot(paths):
    return [p.to_dict() for p in paths]


def run_and_undo(history, description, command, state):
    """Execute, check something changed, undo, return (before, after-undo) snapshots."""
    before = state()
    history.execute(description, command)
    changed = state()
    history.undo()
    assert changed != before
    return before, state()


def test_update_properties_undo(history, path_config):
    before, after = run_and_undo(history, "Speed", UpdateProperties(path_config.speed_limit, {"to": 200.0}),
                                 path_config.to_dict)
    assert after == before


def test_update_properties_rolls_back_on_invalid_value(history, path_config):
    before = path_config.to_dict()
    with pytest.raises(ValidationError):
        history.execute("Speed", UpdateProperties(path_config.speed_limit, {"from_": 500.0}))
    assert path_config.to_dict() == before
    assert history.undo_count() == 0


def test_update_properties_unknown_key(history):
    with pytest.raises(ValidationError):
        history.execute("Nope", UpdateProperties({"a": 1}, {"b": 2}))


def test_update_path_tree_items(history):
    paths = [make_linear_path((0, 0), (1, 0)), make_linear_path((0, 0), (0, 1))]
    before, after = run_and_undo(history, "Hide", UpdatePathTreeItems(paths, {"visible": False}),
                                 lambda: snapshot(paths))
    assert after == before
    history.redo()
    assert not any(p.visible for p in paths)


def test_drag_controls_moves_followers(history):
    path = make_linear_path((0, 0), (10, 0), (20, 0))
    main, follower = path.waypoints[1], path.waypoints[2]
    history.execute("Drag", DragControls(main, Vector(10, 5), [follower]))
    assert (main.x, main.y) == (10, 5)
    assert (follower.x, follower.y) == (20, 5)
    history.undo()
    assert (main.x, main.y) == (10, 0)
    assert (follower.x, follower.y) == (20, 0)


def test_drag_gesture_merges_into_one_entry(history, clock):
    path = make_linear_path((0, 0), (10, 0))
    main = path.waypoints[1]
    for x in (11, 12, 13):
        history.execute("Drag", DragControls(main, Vector(x, 0)))
        clock.advance(0.1)
    assert history.undo_count() == 1
    history.undo()
    assert main.x == 10
    history.redo()
    assert main.x == 13


def test_add_insert_move_paths(history):
    a, b, c = (make_linear_path((0, 0), (i, 0)) for i in (1, 2, 3))
    paths = [a]
    history.execute("Add", AddPath(paths, b))
    assert paths == [a, b]
    history.execute("Insert", InsertPaths(paths, 1, [c]))
    assert paths == [a, c, b]
    history.execute("Move", MovePath(paths, 0, 2))
    assert paths == [c, b, a]
    history.undo()
    history.undo()
    history.undo()
    assert paths == [a]


def test_insert_out_of_range_is_not_recorded(history):
    paths = []
    with pytest.raises(ValidationError):
        history.execute("Insert", InsertPaths(paths, 3, [Path()]))
    assert paths == []
    assert history.undo_count() == 0


def test_add_segment_to_empty_path_starts_at_origin(history):
    path = Path()
    history.execute("Add", AddSegment(path, EndPointControl(30, 0), SegmentVariant.CUBIC))
    assert path.segment_count == 1
    seg = path.segments[0]
    assert seg.is_cubic()
    assert seg.first.as_tuple() == (0.0, 0.0)
    assert seg.controls[1].as_tuple() == pytest.approx((10.0, 0.0))
    history.execute("Add", AddSegment(path, EndPointControl(30, 30)))
    assert path.segments[1].first is seg.last
    history.undo()
    history.undo()
    assert path.waypoints == [] and path.handles == []


def test_convert_segment(history):
    path = make_linear_path((0, 0), (30, 0))
    before, after = run_and_undo(history, "Convert", ConvertSegment(path, 0, SegmentVariant.CUBIC),
                                 lambda: snapshot([path]))
    assert after == before
    with pytest.raises(ValidationError):
        history.execute("Convert", ConvertSegment(path, 4, SegmentVariant.CUBIC))


def test_split_linear_segment(history):
    path = make_linear_path((0, 0), (100, 0))
    point = EndPointControl(40, 0)
    history.execute("Split", SplitSegment(path, 0, point))
    assert path.segment_count == 2
    assert path.segments[0].last is point
    assert path.segments[1].first is point
    history.undo()
    assert path.segment_count == 1


def test_split_cubic_keeps_shape(history):
    path = make_cubic_path((0, 0), (0, 50), (50, 100), (100, 100))
    original = path.segments[0]
    mid = original.point_at(0.5)
    history.execute("Split", SplitSegment(path, 0, EndPointControl(mid.x, mid.y)))
    left, right = path.segments
    assert left.is_cubic() and right.is_cubic()
    for s in (0.25, 0.5, 0.75):
        assert left.point_at(s).is_close(original.point_at(s / 2), 1e-6)
        assert right.point_at(s).is_close(original.point_at(0.5 + s / 2), 1e-6)


def test_remove_interior_waypoint_merges_segments(history):
    path = make_linear_path((0, 0), (10, 0), (20, 0))
    paths = [path]
    before, after = run_and_undo(history, "Remove", RemovePathTreeItems(paths, [path.waypoints[1]]),
                                 lambda: snapshot(paths))
    assert after == before
    history.redo()
    assert path.segment_count == 1
    assert path.waypoints[1].x == 20


def test_remove_handle_makes_segment_linear(history):
    path = make_cubic_path((0, 0), (0, 10), (10, 10), (10, 0))
    history.execute("Remove", RemovePathTreeItems([path], [path.handles[0][0]]))
    assert path.segments[0].is_linear()


def test_remove_path_and_last_segment(history):
    keep = make_linear_path((0, 0), (10, 0))
    drop = make_linear_path((0, 0), (0, 10))
    paths = [keep, drop]
    command = RemovePathTreeItems(paths, [drop, keep.waypoints[0]])
    history.execute("Remove", command)
    assert paths == [keep]
    assert keep.segment_count == 0
    assert command.removed_count == 2
    history.undo()
    assert paths == [keep, drop]
    assert keep.segment_count == 1


def test_change_unit_of_length_restores_exact_values(history, populated_document):
    document = populated_document
    before = (document.gc.to_dict(), snapshot(document.paths))
    history.execute("Unit", ChangeUnitOfLength(document, UnitOfLength.INCH))
    assert document.gc.uol is UnitOfLength.INCH
    assert document.gc.robot_width == pytest.approx(30 / 2.54)
    assert document.paths[0].waypoints[1].y == pytest.approx(60 / 2.54)
    converted = (document.gc.to_dict(), snapshot(document.paths))
    history.undo()
    assert (document.gc.to_dict(), snapshot(document.paths)) == before
    history.redo()
    assert (document.gc.to_dict(), snapshot(document.paths)) == converted


def test_heading_edit_is_normalised_and_undoable(history):
    endpoint = EndPointControl(0, 0, heading=90)
    history.execute("Heading", UpdateProperties(endpoint, {"heading": 400}))
    assert endpoint.heading == pytest.approx(40.0)
    history.undo()
    assert endpoint.heading == 90.0
    endpoint.heading = -30
    assert endpoint.heading == pytest.approx(330.0)
    endpoint.heading = None
    assert not endpoint.has_heading


def test_edited_heading_reaches_samples_in_range(history):
    path = make_linear_path((0, 0), (0, 20))
    history.execute("Heading", UpdateProperties(path.waypoints[0], {"heading": 400.0}))
    points = get_path_points(path, 5)
    assert points[0].heading == pytest.approx(40.0)
    assert all(0.0 <= p.heading < 360.0 for p in points)
