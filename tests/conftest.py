import pytest

from jellysort.models import ConflictAction, OrganizerConfig

VIDEO_EXTENSIONS = frozenset({".mkv", ".mp4", ".avi", ".mov", ".m4v"})
SUBTITLE_EXTENSIONS = frozenset({".srt", ".sub", ".idx", ".ass", ".vtt"})


@pytest.fixture
def make_config():
    def _make(conflict_action=ConflictAction.SKIP, dry_run=False, show_name=None):
        return OrganizerConfig(
            video_extensions=VIDEO_EXTENSIONS,
            subtitle_extensions=SUBTITLE_EXTENSIONS,
            conflict_action=conflict_action,
            dry_run=dry_run,
            show_name=show_name,
        )

    return _make


@pytest.fixture
def touch():
    def _touch(path, content="x"):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _touch


@pytest.fixture
def snapshot():
    def _snapshot(root):
        return sorted(str(p.relative_to(root)) for p in root.rglob("*") if p.is_file())

    return _snapshot
