import os

import pytest

from jellysort.errors import ScanError
from jellysort.models import OperationCategory, OrganizeMode
from jellysort.scanner import MediaScanner


def test_series_scan(tmp_path, make_config, touch):
    root = tmp_path / "solar.opposites (2020)"
    touch(root / "Solar.Opposites.S04E01.1080p.mkv")
    touch(root / "Solar.Opposites.S04E01.1080p.en.srt")
    touch(root / "extras" / "Solar.Opposites.102.720p.mkv")
    touch(root / "notes.txt")
    touch(root / "Invalid_File_No_Number.mkv")
    touch(root / ".jellysort_backups" / "Old.S09E09.mkv")
    touch(root / ".jellysort_backups" / "nested" / "Old.S09E10.mkv")

    plan = MediaScanner(make_config()).scan_directory(str(root), OrganizeMode.SERIES)

    destinations = sorted(op.destination for op in plan.operations)
    assert destinations == sorted([
        str(root / "Season 04" / "Solar Opposites - S04E01.mkv"),
        str(root / "Season 04" / "Solar Opposites - S04E01.en.srt"),
        str(root / "Season 01" / "Solar Opposites - S01E02.mkv"),
    ])
    assert [m.name for m in plan.unmatched] == ["Invalid_File_No_Number.mkv"]
    assert plan.errors == []
    assert all(".jellysort_backups" not in op.source for op in plan.operations)


def test_primary_precedes_its_sidecars(tmp_path, make_config, touch):
    touch(tmp_path / "Show.S01E01.mkv")
    touch(tmp_path / "Show.S01E01.en.srt")
    touch(tmp_path / "Show.S01E02.mkv")

    plan = MediaScanner(make_config(show_name="Show")).scan_directory(str(tmp_path), OrganizeMode.SERIES)

    categories = [(op.category, os.path.basename(op.source)) for op in plan.operations]
    assert categories == [
        (OperationCategory.PRIMARY, "Show.S01E01.mkv"),
        (OperationCategory.SIDECAR, "Show.S01E01.en.srt"),
        (OperationCategory.PRIMARY, "Show.S01E02.mkv"),
    ]


def test_show_name_override(tmp_path, make_config, touch):
    touch(tmp_path / "downloads" / "x.S02E05.mkv")

    cfg = make_config(show_name="The Expanse")
    plan = MediaScanner(cfg).scan_directory(str(tmp_path / "downloads"), OrganizeMode.SERIES)

    assert plan.entries[0].primary.destination == str(
        tmp_path / "downloads" / "Season 02" / "The Expanse - S02E05.mkv"
    )


def test_movie_scan(tmp_path, make_config, touch):
    touch(tmp_path / "Inception.2010.1080p.BluRay.x264.mkv")
    touch(tmp_path / "Inception.2010.1080p.BluRay.x264.srt")
    touch(tmp_path / "sub" / "The.Matrix.Resurrections.2021.WEBRip.mp4")
    touch(tmp_path / "Batman2022.mkv")

    plan = MediaScanner(make_config()).scan_directory(str(tmp_path), OrganizeMode.MOVIES)

    destinations = sorted(op.destination for op in plan.operations)
    assert destinations == sorted([
        str(tmp_path / "Movies" / "Inception (2010)" / "Inception (2010).mkv"),
        str(tmp_path / "Movies" / "Inception (2010)" / "Inception (2010).srt"),
        str(tmp_path / "Movies" / "The Matrix Resurrections (2021)" / "The Matrix Resurrections (2021).mp4"),
    ])
    assert [m.name for m in plan.unmatched] == ["Batman2022.mkv"]


def test_sidecar_is_attached_to_one_video_only(tmp_path, make_config, touch):
    touch(tmp_path / "Show.S01E01.mkv")
    touch(tmp_path / "Show.S01E01.720p.mkv")
    touch(tmp_path / "Show.S01E01.720p.en.srt")

    plan = MediaScanner(make_config(show_name="Show")).scan_directory(str(tmp_path), OrganizeMode.SERIES)

    sidecars = [op for op in plan.operations if op.category == OperationCategory.SIDECAR]
    assert len(sidecars) == 1
    owner = next(e for e in plan.entries if e.sidecars)
    assert owner.media_file.name == "Show.S01E01.720p.mkv"


def test_preview_rows(tmp_path, make_config, touch):
    touch(tmp_path / "Inception.2010.mkv")
    touch(tmp_path / "Home.Video.mp4")

    plan = MediaScanner(make_config()).scan_directory(str(tmp_path), OrganizeMode.MOVIES)
    rows = {row.original_name: row for row in plan.preview()}

    assert rows["Inception.2010.mkv"].matched
    assert rows["Inception.2010.mkv"].new_name == "Inception (2010).mkv"
    assert rows["Inception.2010.mkv"].target_folder == str(tmp_path / "Movies" / "Inception (2010)")
    assert not rows["Home.Video.mp4"].matched
    assert rows["Home.Video.mp4"].reason


def test_missing_root_raises(tmp_path, make_config):
    with pytest.raises(ScanError):
        MediaScanner(make_config()).scan_directory(str(tmp_path / "nope"), OrganizeMode.MOVIES)


def test_sidecar_listing_failure_is_collected(tmp_path, make_config, touch, monkeypatch):
    video = touch(tmp_path / "Show.S01E01.mkv")
    touch(tmp_path / "Show.S01E01.en.srt")

    def refuse(path):
        raise PermissionError(13, "Permission denied", path)

    # os.walk reads directories through scandir, only sidecar discovery lists them
    monkeypatch.setattr(os, "listdir", refuse)
    plan = MediaScanner(make_config(show_name="Show")).scan_directory(str(tmp_path), OrganizeMode.SERIES)

    assert [e.primary.source for e in plan.entries] == [str(video)]
    assert plan.entries[0].sidecars == []
    assert len(plan.errors) == 1
    assert "Permission denied" in plan.errors[0]
