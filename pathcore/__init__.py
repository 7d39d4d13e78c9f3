"""Path authoring core: path model, sampling, undo history and file formats."""

from .command import (AddPath, AddSegment, ChangeUnitOfLength, Command, ConvertSegment,
                      DragControls, InsertPaths, MergeableCommand, MovePath,
                      RemovePathTreeItems, SplitSegment, UpdatePathTreeItems, UpdateProperties)
from .config import (BentRateApplicationDirection, GeneralConfig, NumberRange, PathConfig,
                     load_config, save_config)
from .document import Document
from .errors import FormatError, InvariantViolation, PathCoreError, ValidationError
from .formats import Format, get_all_formats, get_format
from .geom import Control, EndPointControl, Vector
from .history import CommandHistory
from .path import Path, Segment, SegmentVariant
from .sampling import SamplePoint, get_path_points, resample_uniform, sample
from .unit import Quantity, UnitConverter, UnitOfLength

__version__ = "0.1.0"
