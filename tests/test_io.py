from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from imagemeasure.controller.store import MeasurementStore
from imagemeasure.model.errors import ProjectFileError
from imagemeasure.model.io import (
    ProjectDocument, ProjectIO, SessionState, document_from_dict, document_to_dict,
    format_timestamp, parse_timestamp
)
from imagemeasure.model.measurement import Calibration, Measurement, Point, ViewTransform

from conftest import MemoryImageProvider, make_image

CREATED = datetime(2024, 5, 1, 12, 30, 15, 250000, tzinfo=timezone.utc)


def _document() -> ProjectDocument:
    results = [
        Measurement(id=3, p1=Point(1.5, 2.0), p2=Point(10.0, 2.0), pixel_length=8.5, created_at=CREATED),
        Measurement(id=1, p1=Point(0.0, 0.0), p2=Point(3.0, 4.0), pixel_length=5.0, created_at=CREATED),
    ]
    return ProjectDocument(
        exported_at=CREATED,
        active_index=1,
        sessions=[
            SessionState(name="a.png", image_path="/data/a.png"),
            SessionState(
                name="b.tif",
                image_path="/data/b.tif",
                calibration=Calibration("nm", 2.5),
                transform=ViewTransform(scale=3.0, tx=-4.0, ty=5.5),
                has_custom_transform=True,
                next_result_id=4,
                results=results,
            ),
        ],
    )


def test_document_round_trip() -> None:
    doc = _document()
    text = json.dumps(document_to_dict(doc))
    assert document_from_dict(json.loads(text)) == doc


def test_document_layout() -> None:
    data = document_to_dict(_document())
    assert list(data) == ["version", "exportedAt", "activeIndex", "sessions"]
    assert data["version"] == 1
    assert data["exportedAt"] == "2024-05-01T12:30:15.250000Z"
    assert "calibration" not in data["sessions"][0]
    b = data["sessions"][1]
    assert list(b) == [
        "name", "imagePath", "calibration", "transform", "hasCustomTransform", "nextResultID", "results"
    ]
    assert b["calibration"] == {"unit": "nm", "unitsPerPixel": 2.5}
    assert b["results"][1] == {
        "id": 1,
        "p1": {"x": 0.0, "y": 0.0},
        "p2": {"x": 3.0, "y": 4.0},
        "pixelLength": 5.0,
        "createdAt": "2024-05-01T12:30:15.250000Z",
    }


def test_unknown_fields_are_tolerated() -> None:
    data = document_to_dict(_document())
    data["futureFlag"] = True
    data["sessions"][1]["thumbnail"] = "..."
    assert document_from_dict(data) == _document()


def test_timestamps() -> None:
    assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)) == "2024-01-02T03:04:05Z"
    assert parse_timestamp("2024-01-02T03:04:05Z") == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_save_and_load_file(tmp_path: Path) -> None:
    path = str(tmp_path / "p.imeas")
    ProjectIO.save_document(_document(), path)
    assert ProjectIO.load_document(path) == _document()
    assert [p.name for p in tmp_path.iterdir()] == ["p.imeas"]


@pytest.mark.parametrize("content", [
    "not json",
    "[]",
    '{"version": 1}',
    '{"sessions": {"a": 1}}',
    '{"sessions": [1]}',
    '{"sessions": [{"name": "x"}]}',
    '{"sessions": [{"imagePath": "/a.png", "transform": "oops"}]}',
    '{"sessions": [{"imagePath": "/a.png", "calibration": [1, 2]}]}',
    '{"sessions": [{"imagePath": "/a.png", "results": [3]}]}',
    '{"sessions": [{"imagePath": "/a.png", "results": {"id": 1}}]}',
])
def test_load_rejects_bad_files(tmp_path: Path, content: str) -> None:
    path = tmp_path / "bad.imeas"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ProjectFileError):
        ProjectIO.load_document(str(path))


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ProjectFileError):
        ProjectIO.load_document(str(tmp_path / "nope.imeas"))


# ---- Store level ----

def test_store_save_and_open_project(loaded_store: MeasurementStore, tmp_path: Path) -> None:
    loaded_store.commit_image_point(Point(0, 0))
    loaded_store.commit_image_point(Point(0, 12))
    loaded_store.zoom(Point(0, 0), 2.0)

    assert loaded_store.save_project(str(tmp_path / "project"))
    path = tmp_path / "project.imeas"
    assert path.exists()

    loaded_store.new_project()
    assert loaded_store.load_project(str(path))

    s = loaded_store.active_session
    assert [x.name for x in loaded_store.sessions] == ["img1.png", "img2.png"]
    assert s.results[0].pixel_length == 12.0
    assert s.has_custom_transform
    assert s.transform.scale == 8.0
    assert loaded_store.mode.value == "idle"


def test_open_project_skips_missing_images(
    loaded_store: MeasurementStore, provider: MemoryImageProvider, tmp_path: Path
) -> None:
    loaded_store.save_project(str(tmp_path / "p.imeas"))
    del provider.images[loaded_store.sessions[0].path]

    assert loaded_store.load_project(str(tmp_path / "p.imeas"))
    assert [x.name for x in loaded_store.sessions] == ["img2.png"]
    assert "1 missing" in loaded_store.status_text


def test_open_project_without_images_keeps_state(
    loaded_store: MeasurementStore, provider: MemoryImageProvider, tmp_path: Path
) -> None:
    loaded_store.save_project(str(tmp_path / "p.imeas"))
    provider.images.clear()
    sessions = list(loaded_store.sessions)

    assert not loaded_store.load_project(str(tmp_path / "p.imeas"))
    assert loaded_store.sessions == sessions


@pytest.mark.parametrize("content", ['{"sessions": [1]}', '{"sessions": [{"imagePath": "/a.png", "transform": "oops"}]}'])
def test_open_malformed_project_reports_status(
    loaded_store: MeasurementStore, tmp_path: Path, content: str
) -> None:
    path = tmp_path / "bad.imeas"
    path.write_text(content, encoding="utf-8")
    sessions = list(loaded_store.sessions)

    assert not loaded_store.load_project(str(path))
    assert loaded_store.sessions == sessions
    assert loaded_store.status_text == "Failed to open the project."


def test_open_project_repairs_ids_and_index(
    store: MeasurementStore, provider: MemoryImageProvider, tmp_path: Path
) -> None:
    image_path = provider.add(tmp_path / "c.png", make_image(50, 50))
    doc = ProjectDocument(
        active_index=7,
        sessions=[SessionState(
            name="c.png",
            image_path=image_path,
            calibration=Calibration("µm", 0.5),
            next_result_id=2,
            results=[Measurement(id=5, p1=Point(0, 0), p2=Point(1, 0), pixel_length=1.0, created_at=CREATED)],
        )],
    )
    path = str(tmp_path / "c.imeas")
    ProjectIO.save_document(doc, path)

    assert store.load_project(path)
    assert store.active_index == 0
    assert store.active_session.next_result_id == 6
    assert store.last_calibration == Calibration("µm", 0.5)


def test_save_empty_project_is_refused(store: MeasurementStore, tmp_path: Path) -> None:
    assert not store.save_project(str(tmp_path / "empty.imeas"))
    assert not (tmp_path / "empty.imeas").exists()
