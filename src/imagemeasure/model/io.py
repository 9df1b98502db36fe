"""
Input/Output Manager (JSON)
Handles saving and loading the project document to .imeas files.

The document only references images by absolute path; pixels are decoded
again when a project is opened.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from importlib.metadata import version, PackageNotFoundError
from typing import Any, Dict, Iterable, Optional

from imagemeasure.config import PROJECT_FORMAT_VERSION
from imagemeasure.model.errors import ProjectFileError
from imagemeasure.model.measurement import Calibration, Measurement, Point, ViewTransform
from imagemeasure.model.session import ImageSession

# Get module logger
logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("imagemeasure")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"


@dataclass
class SessionState:
    """Persisted form of an ImageSession."""
    name: str
    image_path: str
    calibration: Optional[Calibration] = None
    transform: ViewTransform = field(default_factory=ViewTransform)
    has_custom_transform: bool = False
    next_result_id: int = 1
    results: list[Measurement] = field(default_factory=list)


@dataclass
class ProjectDocument:
    version: int = PROJECT_FORMAT_VERSION
    exported_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    active_index: int = -1
    sessions: list[SessionState] = field(default_factory=list)


# ---- Timestamps ----

def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with a 'Z' suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat()
    return text.replace("+00:00", "Z")


def parse_timestamp(text: str) -> datetime:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


# ---- Dict conversion ----

def measurement_to_dict(m: Measurement) -> Dict[str, Any]:
    return {
        "id": m.id,
        "p1": m.p1.to_dict(),
        "p2": m.p2.to_dict(),
        "pixelLength": m.pixel_length,
        "createdAt": format_timestamp(m.created_at),
    }


def _require_object(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ProjectFileError(f"Malformed {what}: expected an object, got {type(value).__name__}.")
    return value


def measurement_from_dict(data: Dict[str, Any]) -> Measurement:
    data = _require_object(data, "measurement")
    return Measurement(
        id=int(data["id"]),
        p1=Point.from_dict(data["p1"]),
        p2=Point.from_dict(data["p2"]),
        pixel_length=float(data["pixelLength"]),
        created_at=parse_timestamp(str(data["createdAt"])),
    )


def session_state_to_dict(state: SessionState) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "name": state.name,
        "imagePath": state.image_path,
    }
    if state.calibration is not None:
        data["calibration"] = state.calibration.to_dict()
    data["transform"] = state.transform.to_dict()
    data["hasCustomTransform"] = state.has_custom_transform
    data["nextResultID"] = state.next_result_id
    data["results"] = [measurement_to_dict(m) for m in state.results]
    return data


def session_state_from_dict(data: Dict[str, Any]) -> SessionState:
    data = _require_object(data, "session")
    calibration = data.get("calibration")
    results = data.get("results", [])
    if not isinstance(results, list):
        raise ProjectFileError("Malformed session: 'results' is not a list.")
    return SessionState(
        name=str(data.get("name") or os.path.basename(data["imagePath"])),
        image_path=str(data["imagePath"]),
        calibration=Calibration.from_dict(_require_object(calibration, "calibration")) if calibration else None,
        transform=ViewTransform.from_dict(_require_object(data.get("transform") or {}, "transform")),
        has_custom_transform=bool(data.get("hasCustomTransform", False)),
        next_result_id=int(data.get("nextResultID", 1)),
        results=[measurement_from_dict(r) for r in results],
    )


def document_to_dict(doc: ProjectDocument) -> Dict[str, Any]:
    return {
        "version": doc.version,
        "exportedAt": format_timestamp(doc.exported_at),
        "activeIndex": doc.active_index,
        "sessions": [session_state_to_dict(s) for s in doc.sessions],
    }


def document_from_dict(data: Dict[str, Any]) -> ProjectDocument:
    if not isinstance(data, dict) or "sessions" not in data:
        raise ProjectFileError("Not a project document: 'sessions' missing.")
    if not isinstance(data["sessions"], list):
        raise ProjectFileError("Not a project document: 'sessions' is not a list.")
    exported_at = data.get("exportedAt")
    return ProjectDocument(
        version=int(data.get("version", PROJECT_FORMAT_VERSION)),
        exported_at=parse_timestamp(exported_at) if exported_at else datetime.now(timezone.utc),
        active_index=int(data.get("activeIndex", -1)),
        sessions=[session_state_from_dict(s) for s in data["sessions"]],
    )


def session_to_state(session: ImageSession) -> Optional[SessionState]:
    """Persisted form of a session, or None if it has no backing file."""
    if not session.path:
        return None
    return SessionState(
        name=session.name,
        image_path=session.path,
        calibration=session.calibration,
        transform=session.transform,
        has_custom_transform=session.has_custom_transform,
        next_result_id=session.next_result_id,
        results=list(session.results),
    )


def apply_state(session: ImageSession, state: SessionState) -> None:
    """Copy persisted values onto a freshly decoded session."""
    session.calibration = state.calibration
    session.transform = state.transform
    session.has_custom_transform = state.has_custom_transform
    session.results = list(state.results)
    max_id = max((m.id for m in session.results), default=0)
    session.next_result_id = max(state.next_result_id, max_id + 1)


def document_from_sessions(sessions: Iterable[ImageSession], active_index: int) -> ProjectDocument:
    states = [s for s in (session_to_state(x) for x in sessions) if s is not None]
    if not states:
        clamped = -1
    else:
        clamped = max(0, min(active_index, len(states) - 1))
    return ProjectDocument(
        version=PROJECT_FORMAT_VERSION,
        exported_at=datetime.now(timezone.utc),
        active_index=clamped,
        sessions=states,
    )


class ProjectIO:

    @staticmethod
    def save_document(doc: ProjectDocument, filepath: str) -> None:
        """
        Write the document atomically (temporary file + rename).

        Raises:
            ProjectFileError: If the file cannot be written.
        """
        logger.info(f"Saving project to: {filepath}")
        payload = json.dumps(document_to_dict(doc), indent=2, ensure_ascii=False)
        directory = os.path.dirname(os.path.abspath(filepath))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".imeas-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, filepath)
            tmp_path = None
            logger.debug(f"Project saved ({len(doc.sessions)} sessions, app {APP_VERSION}).")
        except OSError as e:
            logger.exception(f"Failed to save project: {e}")
            raise ProjectFileError(f"Cannot write '{filepath}': {e}") from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError as e:
                    logger.warning(f"Could not delete temp file '{tmp_path}': {e}")

    @staticmethod
    def load_document(filepath: str) -> ProjectDocument:
        """
        Read and parse a project document.

        Raises:
            ProjectFileError: If the file is missing, not JSON or not a project.
        """
        logger.info(f"Loading project from: {filepath}")
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read project '{filepath}': {e}")
            raise ProjectFileError(f"Cannot read '{filepath}': {e}") from e

        try:
            return document_from_dict(data)
        except ProjectFileError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed project '{filepath}': {e}")
            raise ProjectFileError(f"Malformed project '{filepath}': {e}") from e

    @staticmethod
    def remove(filepath: str) -> None:
        if os.path.exists(filepath):
            os.remove(filepath)
            logger.debug(f"Removed: {filepath}")
