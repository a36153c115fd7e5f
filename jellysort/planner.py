"""
Destination naming and sidecar discovery for matched media files
"""

import os
import logging
from typing import List, Optional

from .errors import SidecarScanError
from .matcher import is_subtitle_file, sanitize_name
from .models import (
    FileOperation, MediaFile, MediaKind, OperationCategory, OrganizerConfig, PlanEntry
)

logger = logging.getLogger(__name__)

MOVIES_FOLDER = "Movies"

def season_folder_name(season: int) -> str:
    return f"Season {season:02d}"

def episode_file_name(show_name: str, season: int, episode: int, ext: str) -> str:
    return f"{sanitize_name(show_name)} - S{season:02d}E{episode:02d}{ext}"

def movie_folder_name(title: str, year: str) -> str:
    return f"{sanitize_name(title)} ({year})"

def build_operations(media_file: MediaFile, root_dir: str, show_name: Optional[str],
                     config: OrganizerConfig) -> PlanEntry:
    """Plan the move of one matched video plus its sidecars.

    ``show_name`` is only used for series episodes. If the source directory
    cannot be listed the entry is returned without sidecars and the failure
    is kept in ``entry.sidecar_error``.
    """
    ext = os.path.splitext(media_file.name)[1]

    if media_file.kind == MediaKind.SERIES_EPISODE:
        if not show_name:
            raise ValueError("show_name is required for series episodes")
        dest_dir = os.path.join(root_dir, season_folder_name(media_file.season))
        file_name = episode_file_name(show_name, media_file.season, media_file.episode, ext)
        description = f"Organize episode: S{media_file.season:02d}E{media_file.episode:02d}"
    elif media_file.kind == MediaKind.MOVIE:
        folder_name = movie_folder_name(media_file.title, media_file.year)
        dest_dir = os.path.join(root_dir, MOVIES_FOLDER, folder_name)
        file_name = f"{folder_name}{ext}"
        description = f"Organize movie: {media_file.title} ({media_file.year})"
    else:
        raise ValueError(f"Cannot plan unmatched file: {media_file.path}")

    primary = FileOperation(
        source=media_file.path,
        destination=os.path.join(dest_dir, file_name),
        category=OperationCategory.PRIMARY,
        description=description
    )
    entry = PlanEntry(media_file=media_file, primary=primary)

    try:
        entry.sidecars = find_sidecars(media_file.path, dest_dir, file_name, config)
    except SidecarScanError as e:
        logger.warning(f"Skipping sidecar discovery for {media_file.name}: {e}")
        entry.sidecar_error = str(e)
    return entry

def find_sidecars(video_path: str, dest_dir: str, video_new_name: str,
                  config: OrganizerConfig) -> List[FileOperation]:
    """Find subtitle files sharing the video's base name.

    ``Show.S01E01.en.srt`` next to ``Show.S01E01.mkv`` keeps its ``.en.srt``
    suffix and is renamed after the new video base name.
    """
    video_dir = os.path.dirname(video_path)
    video_file = os.path.basename(video_path)
    video_base = os.path.splitext(video_file)[0]
    new_base = os.path.splitext(video_new_name)[0]

    try:
        names = sorted(os.listdir(video_dir))
    except OSError as e:
        raise SidecarScanError(f"Cannot list {video_dir} for sidecar files: {e}") from e

    sidecars = []
    for name in names:
        if name == video_file or not name.startswith(video_base):
            continue
        if not is_subtitle_file(name, config):
            continue
        if not os.path.isfile(os.path.join(video_dir, name)):
            continue

        suffix = name[len(video_base):]
        sidecars.append(FileOperation(
            source=os.path.join(video_dir, name),
            destination=os.path.join(dest_dir, new_base + suffix),
            category=OperationCategory.SIDECAR,
            description=f"Move related file: {name}"
        ))
        logger.debug(f"Sidecar for {video_file}: {name} -> {new_base + suffix}")

    return sidecars
