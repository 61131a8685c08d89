import json

import pytest
from pydantic import ValidationError

from rag_core.index.loader import index_status, load_index


def write_index(path, chunks, metadata=None):
    path.write_text(json.dumps({"chunks": chunks, "metadata": metadata or {}}), encoding="utf-8")
    return path


def chunk(id, embedding, source="a.md", position=0):
    return {
        "id": id,
        "text": f"text {id}",
        "source": source,
        "embedding": embedding,
        "metadata": {"position": position, "totalChunks": 2},
    }


def test_load_index(tmp_path) -> None:
    path = write_index(
        tmp_path / "index.json",
        [chunk("a-0", [1.0, 0.0]), chunk("a-1", [0.0, 1.0], position=1)],
        {"model": "all-MiniLM-L6-v2", "total_documents": 1},
    )

    index = load_index(path)

    assert [c.id for c in index.chunks] == ["a-0", "a-1"]
    assert index.chunks[1].metadata.total_chunks == 2
    assert index.metadata.model == "all-MiniLM-L6-v2"


def test_load_missing_index(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_index(tmp_path / "missing.json")


def test_load_invalid_index(tmp_path) -> None:
    path = write_index(tmp_path / "index.json", [{"id": "x"}])

    with pytest.raises(ValidationError):
        load_index(path)


def test_status_missing(tmp_path) -> None:
    status = index_status(tmp_path / "missing.json")

    assert not status.exists
    assert not status.ready
    assert status.warnings


def test_status_invalid(tmp_path) -> None:
    status = index_status(write_index(tmp_path / "index.json", [{"id": "x"}]))

    assert status.exists
    assert not status.ready
    assert "invalid" in status.warnings[0]


def test_status_empty(tmp_path) -> None:
    status = index_status(write_index(tmp_path / "index.json", []))

    assert status.exists
    assert not status.ready
    assert status.total_chunks == 0
    assert "empty" in status.warnings[0]


def test_status_mixed_dimensions(tmp_path) -> None:
    path = write_index(tmp_path / "index.json", [chunk("a", [1.0, 0.0]), chunk("b", [1.0, 0.0, 0.0])])

    status = index_status(path)

    assert not status.ready
    assert status.dimension is None
    assert "mixed" in status.warnings[0]


def test_status_ready(tmp_path) -> None:
    path = write_index(
        tmp_path / "index.json",
        [chunk("a-0", [1.0, 0.0]), chunk("b-0", [0.0, 1.0], source="b.md")],
    )

    status = index_status(path)

    assert status.ready
    assert status.total_chunks == 2
    assert status.total_documents == 2
    assert status.dimension == 2
    assert status.warnings == []


def test_status_flags_unexpected_dimension(tmp_path) -> None:
    path = write_index(tmp_path / "index.json", [chunk("a-0", [1.0, 0.0])])

    status = index_status(path, expected_dimension=384)

    assert not status.ready
    assert status.dimension == 2
    assert "384" in status.warnings[0]


def test_status_matching_dimension_is_ready(tmp_path) -> None:
    path = write_index(tmp_path / "index.json", [chunk("a-0", [1.0, 0.0])])

    assert index_status(path, expected_dimension=2).ready
