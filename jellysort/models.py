"""
Data models for media organizer
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, FrozenSet, Tuple
from enum import Enum
import os

class OrganizeMode(Enum):
    SERIES = "series"
    MOVIES = "movies"

class MediaKind(Enum):
    SERIES_EPISODE = "series_episode"
    MOVIE = "movie"
    UNMATCHED = "unmatched"

class ConflictAction(Enum):
    SKIP = "skip"
    OVERWRITE = "overwrite"
    RENAME = "rename"

class OperationCategory(Enum):
    PRIMARY = "primary"
    SIDECAR = "sidecar"

class ResolutionOutcome(Enum):
    PROCEED = "proceed"
    SKIP = "skip"
    SAME_FILE = "same_file"

class OperationStatus(Enum):
    MOVED = "moved"
    WOULD_MOVE = "would_move"
    SKIPPED = "skipped"
    SAME_FILE = "same_file"
    FAILED = "failed"

@dataclass(frozen=True)
class OrganizerConfig:
    """Settings for one scan + execute cycle"""
    video_extensions: FrozenSet[str]
    subtitle_extensions: FrozenSet[str]
    conflict_action: ConflictAction = ConflictAction.SKIP
    dry_run: bool = False
    show_name: Optional[str] = None

@dataclass
class SeriesMatch:
    season: int
    episode: int

@dataclass
class MovieMatch:
    title: str
    year: str

@dataclass
class MediaFile:
    """Media file with the classification derived from its name"""
    path: str
    name: str
    kind: MediaKind
    season: Optional[int] = None
    episode: Optional[int] = None
    title: Optional[str] = None
    year: Optional[str] = None
    reason: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.kind != MediaKind.UNMATCHED

@dataclass
class FileOperation:
    """Single planned or completed move"""
    source: str
    destination: str
    category: OperationCategory = OperationCategory.PRIMARY
    description: str = ""

    def to_manifest_entry(self) -> Dict[str, str]:
        return {"src": self.source, "dst": self.destination}

@dataclass
class PlanEntry:
    """A matched video and the sidecar moves that travel with it"""
    media_file: MediaFile
    primary: FileOperation
    sidecars: List[FileOperation] = field(default_factory=list)
    sidecar_error: Optional[str] = None

    @property
    def operations(self) -> List[FileOperation]:
        return [self.primary] + self.sidecars

@dataclass
class PreviewItem:
    """Row shown to the caller before anything is applied"""
    source: str
    original_name: str
    new_name: str
    target_folder: str
    matched: bool
    reason: Optional[str] = None

@dataclass
class OperationPlan:
    """Result of one scan pass"""
    root: str
    mode: OrganizeMode
    entries: List[PlanEntry] = field(default_factory=list)
    unmatched: List[MediaFile] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def operations(self) -> List[FileOperation]:
        ops = []
        for entry in self.entries:
            ops.extend(entry.operations)
        return ops

    def preview(self) -> List[PreviewItem]:
        items = []
        for entry in self.entries:
            items.append(PreviewItem(
                source=entry.primary.source,
                original_name=entry.media_file.name,
                new_name=os.path.basename(entry.primary.destination),
                target_folder=os.path.dirname(entry.primary.destination),
                matched=True
            ))
        for media_file in self.unmatched:
            items.append(PreviewItem(
                source=media_file.path,
                original_name=media_file.name,
                new_name="",
                target_folder="",
                matched=False,
                reason=media_file.reason
            ))
        return items

    def select(self, sources) -> "OperationPlan":
        """Return a plan holding only the entries whose video source is selected"""
        wanted = {os.path.abspath(s) for s in sources}
        entries = [e for e in self.entries if os.path.abspath(e.primary.source) in wanted]
        return OperationPlan(root=self.root, mode=self.mode, entries=entries)

@dataclass
class Resolution:
    outcome: ResolutionOutcome
    operation: FileOperation
    reason: Optional[str] = None

@dataclass
class OperationResult:
    operation: FileOperation
    status: OperationStatus
    destination: str
    message: Optional[str] = None

@dataclass
class ExecutionResult:
    moved_count: int = 0
    manifest_path: Optional[str] = None
    results: List[OperationResult] = field(default_factory=list)

    @property
    def failures(self) -> List[OperationResult]:
        return [r for r in self.results if r.status == OperationStatus.FAILED]

@dataclass
class Manifest:
    """Record of the moves of one run, as stored on disk"""
    timestamp: str
    root: str
    operations: List[Dict[str, str]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "root": self.root,
            "operations": self.operations
        }

@dataclass
class UndoResult:
    restored_count: int = 0
    failures: List[Tuple[str, str, str]] = field(default_factory=list)
