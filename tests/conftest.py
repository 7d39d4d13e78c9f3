import logging

import pytest

from pathcore.config import NumberRange, PathConfig
from pathcore.document import Document
from pathcore.formats import get_format
from pathcore.geom import Control, EndPointControl
from pathcore.history import CommandHistory
from pathcore.path import Path


class FakeClock:
    """Manually advanced clock for merge-window tests."""

    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_linear_path(*points, pc=None):
    """Polyline path through the given (x, y) points."""
    waypoints = [EndPointControl(x, y) for x, y in points]
    return Path(pc, waypoints)


def make_cubic_path(p0, p1, p2, p3, pc=None):
    return Path(pc, [EndPointControl(*p0), EndPointControl(*p3)],
                [(Control(*p1), Control(*p2))])


@pytest.fixture(autouse=True)
def reset_pathcore_logger():
    """Drop handlers the CLI tests install on the package logger"""
    yield
    logger = logging.getLogger("pathcore")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def history(clock):
    """Return a CommandHistory driven by the fake clock"""
    return CommandHistory(limit=200, merge_timeout=0.6, clock=clock)


@pytest.fixture
def path_config():
    """Speed 40..120 over bent rate 0..0.1, high bend -> low speed"""
    return PathConfig(
        speed_limit=NumberRange(0.0, 600.0, 1.0, 40.0, 120.0),
        bent_rate_applicable_range=NumberRange(0.0, 1.0, 0.001, 0.0, 0.1),
    )


@pytest.fixture
def straight_path(path_config):
    """Linear path from (0, 0) to (100, 0)"""
    return make_linear_path((0, 0), (100, 0), pc=path_config)


@pytest.fixture
def corner_path(path_config):
    """Two linear segments meeting at a right angle"""
    return make_linear_path((0, 0), (50, 0), (50, 50), pc=path_config)


@pytest.fixture
def document():
    """Empty document in the default 3050X format (cm)"""
    return Document(get_format("3050X custom (in)"))


@pytest.fixture
def populated_document(document):
    """Document with one linear+cubic path"""
    path = document.create_path(
        [EndPointControl(0, 0, heading=0), EndPointControl(0, 60)],
        [EndPointControl(0, 60), Control(0, 90), Control(30, 120), EndPointControl(60, 120, heading=90)],
        name="Auton",
    )
    document.paths.append(path)
    document.history.clear_history()
    return document
