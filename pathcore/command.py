# pathcore/command.py
"""
Reversible edits to the path model.

Every command snapshots what it is about to touch before touching it, and
commits structural changes by swapping whole lists, so a failure part-way
leaves the model as it was. apply() is also used for redo; the first apply
records the exact new values so redo reproduces them bit for bit.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple, Union

from .errors import ValidationError
from .geom import Control, EndPointControl, Vector
from .path import HandlePair, Path, PathTreeItem, SegmentVariant, find_owner
from .path_utils import LENGTH_PROBES, closest_t, split_cubic
from .unit import UnitConverter, UnitOfLength

if TYPE_CHECKING:
    from .document import Document

logger = logging.getLogger(__name__)


class Command:
    def apply(self) -> None:
        raise NotImplementedError

    def inverse(self) -> None:
        raise NotImplementedError


class MergeableCommand(Command):
    def merge(self, command: Command) -> bool:
        """Absorb a later command of the same gesture; False if incompatible."""
        return False


def _get(target: Any, key: str) -> Any:
    if isinstance(target, dict):
        if key not in target:
            raise ValidationError(f"No property {key!r} on {type(target).__name__}")
        return target[key]
    if not hasattr(target, key):
        raise ValidationError(f"No property {key!r} on {type(target).__name__}")
    return getattr(target, key)


def _set(target: Any, key: str, value: Any) -> None:
    if isinstance(target, dict):
        target[key] = value
    else:
        setattr(target, key, value)


def _assign(target: Any, values: Dict[str, Any], restore: Dict[str, Any]) -> None:
    """Set values then run target.validate() if it has one; roll back on failure."""
    done = []
    try:
        for key, value in values.items():
            _set(target, key, value)
            done.append(key)
        validate = getattr(target, "validate", None)
        if callable(validate):
            validate()
    except Exception:
        for key in reversed(done):
            _set(target, key, restore[key])
        raise


class UpdateProperties(MergeableCommand):
    """Set attributes (or dict keys) on one target."""

    def __init__(self, target: Any, new_values: Dict[str, Any]):
        self.target = target
        self.new_values = dict(new_values)
        self.old_values: Optional[Dict[str, Any]] = None

    def apply(self) -> None:
        old = {key: _get(self.target, key) for key in self.new_values}
        _assign(self.target, self.new_values, old)
        if self.old_values is None:
            self.old_values = old

    def inverse(self) -> None:
        if self.old_values is None:
            return
        current = {key: _get(self.target, key) for key in self.old_values}
        _assign(self.target, self.old_values, current)

    def merge(self, command: Command) -> bool:
        if not isinstance(command, UpdateProperties) or command.target is not self.target:
            return False
        if self.old_values is None or command.old_values is None:
            return False
        for key, value in command.old_values.items():
            self.old_values.setdefault(key, value)
        self.new_values.update(command.new_values)
        return True


class UpdatePathTreeItems(MergeableCommand):
    """Same property change (visible, lock, name...) on several paths/controls."""

    def __init__(self, items: Sequence[PathTreeItem], new_values: Dict[str, Any]):
        self.items = list(items)
        self.new_values = dict(new_values)
        self.updates = [UpdateProperties(item, new_values) for item in self.items]

    def apply(self) -> None:
        applied = []
        try:
            for update in self.updates:
                update.apply()
                applied.append(update)
        except Exception:
            for update in reversed(applied):
                update.inverse()
            raise

    def inverse(self) -> None:
        for update in reversed(self.updates):
            update.inverse()

    def merge(self, command: Command) -> bool:
        if not isinstance(command, UpdatePathTreeItems):
            return False
        if len(command.items) != len(self.items) or \
                any(a is not b for a, b in zip(command.items, self.items)):
            return False
        for mine, theirs in zip(self.updates, command.updates):
            mine.merge(theirs)
        self.new_values.update(command.new_values)
        return True


class DragControls(MergeableCommand):
    """Move a control to a position, carrying followers by the same offset."""

    def __init__(self, main: Control, new_position: Vector, followers: Sequence[Control] = ()):
        self.main = main
        self.followers = [c for c in followers if c is not main]
        self.new_position = Vector(new_position.x, new_position.y)
        self.old_positions: Optional[List[Tuple[float, float]]] = None
        self.new_positions: Optional[List[Tuple[float, float]]] = None

    @property
    def controls(self) -> List[Control]:
        return [self.main] + self.followers

    def apply(self) -> None:
        if self.new_positions is None:
            dx = self.new_position.x - self.main.x
            dy = self.new_position.y - self.main.y
            self.old_positions = [(c.x, c.y) for c in self.controls]
            self.new_positions = [(c.x + dx, c.y + dy) for c in self.controls]
        for c, (x, y) in zip(self.controls, self.new_positions):
            c.x, c.y = x, y

    def inverse(self) -> None:
        if self.old_positions is None:
            return
        for c, (x, y) in zip(self.controls, self.old_positions):
            c.x, c.y = x, y

    def merge(self, command: Command) -> bool:
        if not isinstance(command, DragControls) or command.main is not self.main:
            return False
        if len(command.followers) != len(self.followers) or \
                any(a is not b for a, b in zip(command.followers, self.followers)):
            return False
        self.new_position = command.new_position
        self.new_positions = command.new_positions
        return True


class AddPath(Command):
    def __init__(self, paths: List[Path], path: Path):
        self.paths = paths
        self.path = path

    def apply(self) -> None:
        self.paths.append(self.path)

    def inverse(self) -> None:
        for i in range(len(self.paths) - 1, -1, -1):
            if self.paths[i] is self.path:
                del self.paths[i]
                return


class InsertPaths(Command):
    def __init__(self, paths: List[Path], index: int, new_paths: Sequence[Path]):
        self.paths = paths
        self.index = index
        self.new_paths = list(new_paths)

    def apply(self) -> None:
        if not 0 <= self.index <= len(self.paths):
            raise ValidationError(f"Insert index {self.index} out of range 0..{len(self.paths)}")
        self.paths[self.index:self.index] = self.new_paths

    def inverse(self) -> None:
        del self.paths[self.index:self.index + len(self.new_paths)]


class MovePath(Command):
    """Reorder: move the path at from_index so it ends up at to_index."""

    def __init__(self, paths: List[Path], from_index: int, to_index: int):
        self.paths = paths
        self.from_index = from_index
        self.to_index = to_index

    def _move(self, a: int, b: int) -> None:
        n = len(self.paths)
        if not (0 <= a < n and 0 <= b < n):
            raise ValidationError(f"Move {a} -> {b} out of range for {n} paths")
        path = self.paths.pop(a)
        self.paths.insert(b, path)

    def apply(self) -> None:
        self._move(self.from_index, self.to_index)

    def inverse(self) -> None:
        self._move(self.to_index, self.from_index)


class _PathStructureCommand(Command):
    """Base for commands that replace a path's waypoint/handle lists."""

    def __init__(self, path: Path):
        self.path = path
        self.old_state: Optional[Tuple[list, list]] = None
        self.new_state: Optional[Tuple[list, list]] = None

    def build(self, waypoints: List[EndPointControl],
              handles: List[Optional[HandlePair]]) -> Tuple[list, list]:
        raise NotImplementedError

    def apply(self) -> None:
        if self.new_state is None:
            old = (list(self.path.waypoints), list(self.path.handles))
            self.new_state = self.build(list(old[0]), list(old[1]))
            self.old_state = old
        self.path.waypoints, self.path.handles = list(self.new_state[0]), list(self.new_state[1])

    def inverse(self) -> None:
        if self.old_state is None:
            return
        self.path.waypoints, self.path.handles = list(self.old_state[0]), list(self.old_state[1])


def _handles_between(a: Vector, b: Vector) -> HandlePair:
    return (Control(*a.interpolate(b, 1.0 / 3.0).as_tuple()),
            Control(*a.interpolate(b, 2.0 / 3.0).as_tuple()))


class AddSegment(_PathStructureCommand):
    """Append a segment ending at `end`; an empty path starts at the origin."""

    def __init__(self, path: Path, end: EndPointControl, variant: SegmentVariant = SegmentVariant.LINEAR):
        super().__init__(path)
        self.end = end
        self.variant = variant

    def build(self, waypoints, handles):
        if not waypoints:
            waypoints.append(EndPointControl(0.0, 0.0, heading=0.0))
        last = waypoints[-1]
        handles.append(_handles_between(last, self.end) if self.variant == SegmentVariant.CUBIC else None)
        waypoints.append(self.end)
        return waypoints, handles


class ConvertSegment(_PathStructureCommand):
    def __init__(self, path: Path, segment_index: int, variant: SegmentVariant):
        super().__init__(path)
        self.segment_index = segment_index
        self.variant = variant

    def build(self, waypoints, handles):
        i = self.segment_index
        if not 0 <= i < len(handles):
            raise ValidationError(f"Segment index {i} out of range for path {self.path.uid}")
        if self.variant == SegmentVariant.LINEAR:
            handles[i] = None
        elif handles[i] is None:
            handles[i] = _handles_between(waypoints[i], waypoints[i + 1])
        return waypoints, handles


class SplitSegment(_PathStructureCommand):
    """
    Insert a waypoint inside a segment. Cubic segments are split with
    de Casteljau at the parameter closest to the new point.
    """

    def __init__(self, path: Path, segment_index: int, point: EndPointControl,
                 probes: int = LENGTH_PROBES):
        super().__init__(path)
        self.segment_index = segment_index
        self.point = point
        self.probes = probes

    def build(self, waypoints, handles):
        i = self.segment_index
        if not 0 <= i < len(handles):
            raise ValidationError(f"Segment index {i} out of range for path {self.path.uid}")
        pair = handles[i]
        if pair is None:
            new_handles = [None, None]
        else:
            seg = self.path.segments[i]
            probes = [seg.point_at(k / self.probes).as_tuple() for k in range(self.probes + 1)]
            t = min(max(closest_t(probes, self.point.as_tuple()), 1e-3), 1 - 1e-3)
            left, right = split_cubic(*[c.as_tuple() for c in seg.controls], t)
            new_handles = [(Control(*left[1]), Control(*left[2])),
                           (Control(*right[1]), Control(*right[2]))]
        handles[i:i + 1] = new_handles
        waypoints.insert(i + 1, self.point)
        return waypoints, handles


def _remove_controls(waypoints: List[EndPointControl], handles: List[Optional[HandlePair]],
                     targets: Sequence[Control]) -> Tuple[list, list]:
    """
    Drop waypoints (merging the two segments around an interior one) and
    handles (turning their segment linear). Removing a waypoint of a single
    segment path empties the path but keeps it in the path list; remove the
    path itself to drop it.
    """
    for target in targets:
        for j, pair in enumerate(handles):
            if pair is not None and (pair[0] is target or pair[1] is target):
                handles[j] = None
                break
        else:
            idx = next((k for k, wp in enumerate(waypoints) if wp is target), -1)
            if idx < 0:
                continue
            if len(waypoints) <= 2:
                return [], []
            if idx == 0:
                del waypoints[0]
                del handles[0]
            elif idx == len(waypoints) - 1:
                del waypoints[-1]
                del handles[-1]
            else:
                prev, nxt = handles[idx - 1], handles[idx]
                if prev is None and nxt is None:
                    merged = None
                else:
                    merged = ((prev or nxt)[0], (nxt or prev)[1])  # type: ignore[index]
                handles[idx - 1:idx + 1] = [merged]
                del waypoints[idx]
    return waypoints, handles


class RemovePathTreeItems(Command):
    """Remove paths and/or controls; owning paths are restructured atomically."""

    def __init__(self, paths: List[Path], items: Sequence[Union[Path, Control]]):
        self.paths = paths
        self.items = list(items)
        self.old_paths: Optional[List[Path]] = None
        self.old_structures: Dict[str, Tuple[Path, list, list]] = {}
        self.new_paths: Optional[List[Path]] = None
        self.new_structures: Dict[str, Tuple[list, list]] = {}

    def _plan(self) -> None:
        removed = [item for item in self.items if isinstance(item, Path)]
        new_paths = [p for p in self.paths if not any(p is r for r in removed)]
        by_path: Dict[str, List[Control]] = {}
        owners: Dict[str, Path] = {}
        for item in self.items:
            if isinstance(item, Path):
                continue
            owner = find_owner(new_paths, item)
            if owner is None:
                continue
            by_path.setdefault(owner.uid, []).append(item)
            owners[owner.uid] = owner
        for uid, targets in by_path.items():
            path = owners[uid]
            self.old_structures[uid] = (path, list(path.waypoints), list(path.handles))
            self.new_structures[uid] = _remove_controls(list(path.waypoints), list(path.handles), targets)
        self.old_paths = list(self.paths)
        self.new_paths = new_paths
        logger.debug("Removing %d item(s) from %d path(s)", len(self.items), len(by_path) + len(removed))

    def apply(self) -> None:
        if self.new_paths is None:
            self._plan()
        for uid, (path, _, _) in self.old_structures.items():
            waypoints, handles = self.new_structures[uid]
            path.waypoints, path.handles = list(waypoints), list(handles)
        self.paths[:] = list(self.new_paths)  # type: ignore[arg-type]

    def inverse(self) -> None:
        if self.old_paths is None:
            return
        self.paths[:] = list(self.old_paths)
        for path, waypoints, handles in self.old_structures.values():
            path.waypoints, path.handles = list(waypoints), list(handles)

    @property
    def removed_count(self) -> int:
        return len(self.items)


class ChangeUnitOfLength(Command):
    """Switch the document unit, converting every control and length setting."""

    def __init__(self, document: "Document", uol: UnitOfLength):
        self.document = document
        self.uol = uol
        self.old_values: Optional[Tuple[UnitOfLength, Dict[str, float], List[Tuple[float, float]]]] = None
        self.new_values: Optional[Tuple[Dict[str, float], List[Tuple[float, float]]]] = None

    def _controls(self) -> List[Control]:
        return [c for path in self.document.paths for c in path.controls]

    def apply(self) -> None:
        gc = self.document.gc
        controls = self._controls()
        if self.new_values is None:
            uc = UnitConverter(gc.uol, self.uol)
            old_gc = {name: getattr(gc, name) for name in gc.LENGTH_FIELDS}
            self.old_values = (gc.uol, old_gc, [(c.x, c.y) for c in controls])
            self.new_values = (
                {name: uc.from_a_to_b(value) for name, value in old_gc.items()},
                [(uc.from_a_to_b(c.x), uc.from_a_to_b(c.y)) for c in controls],
            )
            logger.debug("Unit change %s -> %s over %d controls", gc.uol.name, self.uol.name, len(controls))
        new_gc, new_xy = self.new_values
        for name, value in new_gc.items():
            setattr(gc, name, value)
        for c, (x, y) in zip(controls, new_xy):
            c.x, c.y = x, y
        gc.uol = self.uol

    def inverse(self) -> None:
        if self.old_values is None:
            return
        old_uol, old_gc, old_xy = self.old_values
        gc = self.document.gc
        for name, value in old_gc.items():
            setattr(gc, name, value)
        for c, (x, y) in zip(self._controls(), old_xy):
            c.x, c.y = x, y
        gc.uol = old_uol
