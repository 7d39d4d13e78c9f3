# pathcore/storage.py
from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING, Optional

from .errors import FormatError

if TYPE_CHECKING:
    from .document import Document

logger = logging.getLogger(__name__)


def read_text(filename: str) -> str:
    with open(filename, "r", encoding="utf-8") as f:
        return f.read()


def write_text(filename: str, content: str) -> None:
    parent = os.path.dirname(filename)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(filename, "w", encoding="utf-8") as f:
        f.write(content)


def _parse_json(content: str) -> dict:
    try:
        return json.loads(content)
    except ValueError as e:
        raise FormatError(f"Invalid JSON path file: {e}") from e


def save_json(document: "Document", filename: str) -> str:
    """Write only the document data, without format code."""
    write_text(filename, json.dumps(document.export_data(), indent=2))
    document.history.mark_saved()
    logger.info("Saved %s", filename)
    return filename


def save_document(document: "Document", filename: str) -> str:
    """Write the exported file (code + data line) and mark the history saved."""
    write_text(filename, document.export_file())
    document.history.mark_saved()
    logger.info("Saved %s", filename)
    return filename


def load_document(filename: str, document: Optional["Document"] = None) -> "Document":
    """Load a path file into document (a new one if None)."""
    if document is None:
        from .document import Document
        document = Document()
    content = read_text(filename)
    try:
        if filename.lower().endswith(".json"):
            document.import_data(_parse_json(content))
        else:
            document.import_file(content)
    except FormatError:
        logger.error("Could not load %s", filename)
        raise
    logger.info("Loaded %s (%d paths)", filename, len(document.paths))
    return document
