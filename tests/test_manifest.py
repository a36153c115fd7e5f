import json
from datetime import datetime

import pytest

from jellysort.errors import ManifestError
from jellysort.manifest import ManifestStore
from jellysort.models import FileOperation, OperationCategory


def test_create_and_load(tmp_path):
    store = ManifestStore(str(tmp_path))
    ops = [
        FileOperation(source="/in/a.mkv", destination="/out/A.mkv"),
        FileOperation(source="/in/a.srt", destination="/out/A.srt", category=OperationCategory.SIDECAR),
    ]

    path = store.create_manifest(ops, now=datetime(2026, 10, 18, 10, 15, 0))

    assert path == tmp_path / ".jellysort_backups" / "backup_20261018_101500.json"
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw == {
        "timestamp": "20261018_101500",
        "root": str(tmp_path),
        "operations": [
            {"src": "/in/a.mkv", "dst": "/out/A.mkv"},
            {"src": "/in/a.srt", "dst": "/out/A.srt"},
        ],
    }

    manifest = ManifestStore.load_manifest(path)
    assert manifest.timestamp == "20261018_101500"
    assert manifest.root == str(tmp_path)
    assert manifest.operations == raw["operations"]


def test_list_manifests_oldest_first(tmp_path):
    store = ManifestStore(str(tmp_path))
    assert store.list_manifests() == []

    newer = store.create_manifest([], now=datetime(2026, 10, 18, 12, 0, 0))
    older = store.create_manifest([], now=datetime(2026, 10, 17, 9, 30, 0))
    (tmp_path / ".jellysort_backups" / "notes.txt").write_text("ignore me")

    assert store.list_manifests() == [older, newer]


def test_missing_manifest(tmp_path):
    with pytest.raises(ManifestError):
        ManifestStore.load_manifest(tmp_path / "nope.json")


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[1, 2]",
        '{"timestamp": "x", "root": "/"}',
        '{"operations": [{"src": "/a"}]}',
    ],
)
def test_malformed_manifest(tmp_path, content):
    path = tmp_path / "backup_bad.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ManifestError):
        ManifestStore.load_manifest(path)


def test_unwritable_backup_dir(tmp_path):
    (tmp_path / ".jellysort_backups").write_text("file in the way")

    with pytest.raises(ManifestError):
        ManifestStore(str(tmp_path)).create_manifest([FileOperation(source="/a", destination="/b")])
