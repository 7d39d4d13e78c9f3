import math

import pytest

from pathcore.geom import (Control, EndPointControl, Vector, angle_diff_deg, control_from_dict,
                           heading_from_delta, make_id, normalize_heading)
from pathcore.unit import Quantity, UnitConverter, UnitOfLength


def test_vector_arithmetic():
    a = Vector(1, 2)
    b = Vector(4, 6)
    assert b - a == Vector(3, 4)
    assert a + b == Vector(5, 8)
    assert 2 * a == Vector(2, 4)
    assert (b - a).length == pytest.approx(5.0)
    assert a.distance(b) == pytest.approx(5.0)
    assert a.interpolate(b, 0.5) == Vector(2.5, 4.0)
    with pytest.raises(ZeroDivisionError):
        a / 0


def test_heading_convention():
    # 0 = +y, clockwise
    assert heading_from_delta(0, 1) == pytest.approx(0.0)
    assert heading_from_delta(1, 0) == pytest.approx(90.0)
    assert heading_from_delta(0, -1) == pytest.approx(180.0)
    assert heading_from_delta(-1, 0) == pytest.approx(270.0)
    assert heading_from_delta(0, 0) == 0.0


def test_normalize_and_diff():
    assert normalize_heading(-90) == pytest.approx(270.0)
    assert normalize_heading(720) == 0.0
    assert 0.0 <= normalize_heading(-1e-17) < 360.0
    assert angle_diff_deg(10, 350) == pytest.approx(20.0)
    assert angle_diff_deg(350, 10) == pytest.approx(-20.0)


def test_controls_have_identity():
    a = Control(1, 1)
    b = Control(1, 1)
    assert a != b
    assert a == a
    assert len({a, b}) == 2
    assert len(make_id()) == 10
    assert a.uid != b.uid


def test_endpoint_heading_normalised():
    assert EndPointControl(0, 0, heading=-90).heading == pytest.approx(270.0)
    assert not EndPointControl(0, 0).has_heading


def test_is_within_area_any_corner_order():
    c = Control(5, 5)
    assert c.is_within_area(Vector(10, 10), Vector(0, 0))
    assert not c.is_within_area(Vector(6, 0), Vector(10, 10))


def test_control_from_dict_picks_type():
    ep = control_from_dict({"uid": "abc", "x": 1, "y": 2, "heading": 45})
    plain = control_from_dict({"x": 1, "y": 2})
    assert isinstance(ep, EndPointControl) and ep.heading == 45.0 and ep.uid == "abc"
    assert type(plain) is Control


def test_unit_round_trip():
    uc = UnitConverter(UnitOfLength.CENTIMETER, UnitOfLength.INCH)
    for value in (0.0, 1.0, 2.54, 123.456, -7.5):
        assert uc.from_b_to_a(uc.from_a_to_b(value)) == pytest.approx(value, abs=1e-9)
    assert uc.from_a_to_b(2.54) == pytest.approx(1.0)


def test_unit_converts_vectors_in_place():
    c = Control(25.4, 50.8)
    UnitConverter(UnitOfLength.MILLIMETER, UnitOfLength.INCH).convert_in_place(c)
    assert (c.x, c.y) == (pytest.approx(1.0), pytest.approx(2.0))


def test_unit_from_name():
    assert UnitOfLength.from_name("in") is UnitOfLength.INCH
    assert UnitOfLength.from_name("Centimeter") is UnitOfLength.CENTIMETER
    with pytest.raises(ValueError):
        UnitOfLength.from_name("furlong")


def test_quantity_to_user_rounds():
    q = Quantity(1.0, UnitOfLength.FOOT).to(UnitOfLength.METER)
    assert q.to_user() == 0.305
    assert math.isclose(q.value, 0.3048)
