"""
Filename matcher for TV episodes and movies
"""

import os
import re
from typing import Optional

from .models import MediaFile, MediaKind, MovieMatch, OrganizeMode, OrganizerConfig, SeriesMatch

ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*]')

# S01E01, s1.e02, S01-E003
SXE_PATTERN = re.compile(r'S(\d{1,2})[.\s_-]?E(\d{1,3})', re.IGNORECASE)
# 1x01, but not 1920x1080
NXN_PATTERN = re.compile(r'(?<!\d)(\d{1,2})x(\d{1,3})(?!\d)', re.IGNORECASE)
# standalone 101 / 1203 tokens; 720p and x264 are not standalone
BARE_NUMBER_PATTERN = re.compile(r'(?<![0-9A-Za-z])(\d{3,4})(?![0-9A-Za-z])')
MOVIE_PATTERN = re.compile(r'^(.*?)[.\s()\[\]\-_]+(19\d{2}|20[0-2]\d)(?!\d)')
YEAR_IN_FOLDER = re.compile(r'\(\d{4}\)')

SERIES_YEAR_RANGE = (1900, 2030)

def sanitize_name(name: str) -> str:
    """Strip characters that are illegal in filenames on common filesystems"""
    return ILLEGAL_CHARS.sub('', name).strip()

def is_video_file(filename: str, config: OrganizerConfig) -> bool:
    return os.path.splitext(filename)[1].lower() in config.video_extensions

def is_subtitle_file(filename: str, config: OrganizerConfig) -> bool:
    return os.path.splitext(filename)[1].lower() in config.subtitle_extensions

def classify_series(filename: str) -> Optional[SeriesMatch]:
    """Extract season and episode numbers from a filename.

    Patterns are tried in order and the first hit wins: ``S01E02``, ``1x02``
    and finally a bare ``102``/``0102`` token. Bare tokens that read as a
    calendar year (1900-2030) are never taken as season + episode.
    """
    match = SXE_PATTERN.search(filename)
    if match:
        return SeriesMatch(season=int(match.group(1)), episode=int(match.group(2)))

    match = NXN_PATTERN.search(filename)
    if match:
        return SeriesMatch(season=int(match.group(1)), episode=int(match.group(2)))

    low, high = SERIES_YEAR_RANGE
    for match in BARE_NUMBER_PATTERN.finditer(filename):
        digits = match.group(1)
        if low <= int(digits) <= high:
            continue
        return SeriesMatch(season=int(digits[:-2]), episode=int(digits[-2:]))

    return None

def classify_movie(filename: str) -> Optional[MovieMatch]:
    """Extract title and year from a movie filename such as ``Inception.2010.1080p.mkv``"""
    name = os.path.splitext(filename)[0]
    match = MOVIE_PATTERN.search(name)
    if not match:
        return None

    title = sanitize_name(match.group(1).replace('.', ' '))
    if not title:
        return None
    return MovieMatch(title=title, year=match.group(2))

def derive_show_name(folder_name: str) -> str:
    """Build a show name from a folder like ``solar.opposites (2020)``"""
    name = YEAR_IN_FOLDER.sub('', folder_name)
    name = name.replace('.', ' ').replace('_', ' ')
    name = ' '.join(name.split()).title()
    return sanitize_name(name)

def match_file(path: str, mode: OrganizeMode, config: OrganizerConfig) -> Optional[MediaFile]:
    """Classify a file for the given mode.

    Returns None for files that are not candidates at all (wrong extension),
    and an UNMATCHED MediaFile with a reason when no pattern applies.
    """
    name = os.path.basename(path)
    if not is_video_file(name, config):
        return None

    if mode == OrganizeMode.SERIES:
        series = classify_series(name)
        if series:
            return MediaFile(path=path, name=name, kind=MediaKind.SERIES_EPISODE,
                             season=series.season, episode=series.episode)
        return MediaFile(path=path, name=name, kind=MediaKind.UNMATCHED,
                         reason="No season/episode pattern found")

    movie = classify_movie(name)
    if movie:
        return MediaFile(path=path, name=name, kind=MediaKind.MOVIE,
                         title=movie.title, year=movie.year)
    return MediaFile(path=path, name=name, kind=MediaKind.UNMATCHED,
                     reason="No title/year pattern found")
