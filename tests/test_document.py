import copy
import json

import pytest

from main import main
from pathcore.command import AddPath, DragControls, RemovePathTreeItems
from pathcore.document import Document
from pathcore.errors import FormatError, InvariantViolation, ValidationError
from pathcore.formats import get_all_formats, get_format
from pathcore.geom import Vector
from pathcore.path_export import DATA_PREFIX
from pathcore.unit import UnitOfLength

from conftest import make_linear_path

LEMLIB = "LemLib v0.4.x (inch, byte-voltage)"


def test_new_document_uses_format_defaults(document):
    assert document.format.get_name() == "3050X custom (in)"
    assert document.gc.uol is UnitOfLength.CENTIMETER
    assert document.gc.robot_width == 30.0
    assert document.paths == []
    assert not document.history.is_modified()


def test_registry():
    names = [f.get_name() for f in get_all_formats()]
    assert "3050X custom (in)" in names and LEMLIB in names
    with pytest.raises(FormatError):
        get_format("Nope v9")


def test_execute_bumps_version(document):
    version = document.version
    document.execute("Add path", AddPath(document.paths, document.create_path()))
    assert document.version > version
    assert document.history.is_modified()
    version = document.version
    document.history.undo()
    assert document.version > version
    assert document.paths == []


def test_path_points_cached_until_edit(populated_document):
    document = populated_document
    path = document.paths[0]
    first = document.get_path_points(path)
    assert document.get_path_points(path) is first
    document.execute("Drag", DragControls(path.waypoints[-1], Vector(80, 120)))
    moved = document.get_path_points(path)
    assert moved is not first
    assert moved[-1].x == pytest.approx(80.0)


def test_invalid_density_rejected(populated_document):
    populated_document.gc.point_density = 0
    with pytest.raises(ValidationError):
        populated_document.get_path_points(populated_document.paths[0])


def test_export_import_round_trip(populated_document):
    data = populated_document.export_data()
    other = Document()
    other.import_data(copy.deepcopy(data))
    assert other.export_data() == data
    path = other.paths[0]
    assert path.segments[0].last is path.segments[1].first
    assert not other.history.is_modified()


def test_import_relinks_copied_endpoints(populated_document):
    data = populated_document.export_data()
    shared = data["paths"][0]["segments"][1]["controls"][0]
    shared["uid"] = "copy"
    shared["x"] += 1e-9
    other = Document()
    other.import_data(data)
    path = other.paths[0]
    assert path.segment_count == 2
    assert path.segments[0].last is path.segments[1].first


def test_import_rejects_disconnected_segments(populated_document):
    data = populated_document.export_data()
    data["paths"][0]["segments"][1]["controls"][0]["x"] = 5.0
    data["paths"][0]["segments"][1]["controls"][0]["uid"] = "elsewhere"
    target = Document()
    target.paths.append(make_linear_path((0, 0), (1, 1)))
    with pytest.raises(InvariantViolation):
        target.import_data(data)
    # Nothing replaced
    assert len(target.paths) == 1
    assert target.paths[0].waypoints[1].x == 1


def test_import_rejects_bad_data(populated_document):
    data = populated_document.export_data()
    with pytest.raises(FormatError):
        Document().import_data(dict(data, format="Unknown"))
    bad = copy.deepcopy(data)
    bad["paths"][0]["pc"]["speedLimit"]["from"] = 500
    with pytest.raises(ValidationError):
        Document().import_data(bad)
    bad = copy.deepcopy(data)
    bad["gc"]["pointDensity"] = -1
    with pytest.raises(ValidationError):
        Document().import_data(bad)
    bad = copy.deepcopy(data)
    del bad["paths"][0]["segments"][0]["controls"][0]["x"]
    with pytest.raises(FormatError):
        Document().import_data(bad)
    bad = copy.deepcopy(data)
    del bad["paths"][0]["segments"][1]["controls"]
    with pytest.raises(FormatError):
        Document().import_data(bad)
    bad = copy.deepcopy(data)
    bad["paths"][0]["segments"][0]["controls"][0]["y"] = "north"
    with pytest.raises(FormatError):
        Document().import_data(bad)


def test_import_sanitises_names(populated_document):
    data = populated_document.export_data()
    data["paths"][0]["name"] = "  Auton\x00 "
    other = Document()
    other.import_data(data)
    assert other.paths[0].name == "Auton"


def test_import_clears_history(populated_document):
    document = populated_document
    data = document.export_data()
    document.execute("Drag", DragControls(document.paths[0].waypoints[0], Vector(5, 5)))
    document.import_data(data)
    assert document.history.undo_count() == 0
    assert not document.history.is_modified()


def test_file_text_round_trip(populated_document):
    text = populated_document.export_file()
    assert text.splitlines()[-1].startswith(DATA_PREFIX)
    other = Document()
    other.import_file(text)
    assert other.export_data() == populated_document.export_data()


def test_import_file_without_data_line(document):
    with pytest.raises(FormatError):
        document.import_file("robot = point(0,0);\n")
    with pytest.raises(FormatError):
        document.import_file(DATA_PREFIX + " {not json")


def test_change_format_converts_and_resets(populated_document):
    document = populated_document
    document.paths[0].pc.bent_rate_applicable_range.to = 0.3
    document.execute("Drag", DragControls(document.paths[0].waypoints[0], Vector(0, 0)))
    document.change_format(get_format(LEMLIB))

    gc = document.gc
    assert document.format.get_name() == LEMLIB
    assert gc.uol is UnitOfLength.INCH
    assert gc.robot_width == pytest.approx(30 / 2.54)
    assert gc.point_density == 2.0
    path = document.paths[0]
    assert path.waypoints[1].y == pytest.approx(60 / 2.54)
    # Speed limits differ between the formats, so the new default applies
    assert (path.pc.speed_limit.min_limit, path.pc.speed_limit.max_limit) == (0.0, 127.0)
    assert path.pc.speed_limit.to == 100.0
    assert path.pc.bent_rate_applicable_range.to == 0.3
    assert document.history.undo_count() == 0


def test_change_format_keeps_matching_speed_limit(populated_document):
    document = populated_document
    document.paths[0].pc.speed_limit.to = 300.0
    document.change_format(get_format("3050X custom (in)"))
    assert document.paths[0].pc.speed_limit.to == 300.0


def test_new_file(populated_document):
    populated_document.new_file()
    assert populated_document.paths == []
    assert populated_document.gc.robot_width == 30.0


def test_stanley_export(populated_document):
    text = populated_document.export_file()
    lines = text.splitlines()
    assert lines[0] == "robot = point(0,0);"
    assert lines[1] == "rotateTo(0);"
    assert lines[2] == "inchDrive(23.622);"
    assert lines[3] == "Stanley::setPath(std::vector<point>{"
    assert "{ 23.622,47.244 }" in text
    assert "Stanley::run(meduim);" in text


def test_lemlib_export(populated_document):
    document = populated_document
    document.change_format(get_format(LEMLIB))
    lines = document.export_file().splitlines()
    points = document.get_path_points(document.paths[0])
    assert lines[len(points)] == "endData"
    assert lines[0] == "0.000, 0.000, 100.000"
    assert lines[-1].startswith(DATA_PREFIX)


def test_selection_helpers(populated_document):
    document = populated_document
    path = document.paths[0]
    assert document.traversal()[0] is path
    assert len(document.selectable_controls) == 5
    picked = document.controls_in_area(Vector(-1, -1), Vector(1, 61))
    assert picked == path.waypoints[:2]


def test_removed_path_leaves_the_cache(populated_document):
    document = populated_document
    path = document.paths[0]
    document.get_path_points(path)
    assert path.uid in document.cache
    document.execute("Remove", RemovePathTreeItems(document.paths, [path]))
    assert path.uid not in document.cache
    document.history.undo()
    assert document.get_path_points(path)


def test_cli_reports_malformed_data(tmp_path, populated_document):
    data = populated_document.export_data()
    del data["paths"][0]["segments"][0]["controls"][0]["x"]
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps(data), encoding="utf-8")
    assert main(["--config", str(tmp_path / "config.json"), "info", str(bad)]) == 1
