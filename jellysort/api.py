"""
Entry points for callers that preview, apply and undo organizing runs
"""

from pathlib import Path
from typing import Iterable, List, Optional

from .manifest import ManifestStore
from .models import ExecutionResult, OperationPlan, OrganizeMode, OrganizerConfig, UndoResult
from .organizer import FileOrganizer, ProgressCallback
from .scanner import MediaScanner
from .undo import UndoEngine

def organize(root_dir: str, mode: OrganizeMode, config: OrganizerConfig) -> OperationPlan:
    """Scan ``root_dir`` and return the full plan; call ``plan.preview()`` for display rows"""
    return MediaScanner(config).scan_directory(root_dir, mode)

def apply(plan: OperationPlan, selected: Optional[Iterable[str]], config: OrganizerConfig,
          progress: Optional[ProgressCallback] = None) -> ExecutionResult:
    """Execute the entries whose video source path is in ``selected`` (all when None).

    Sidecars travel with their video; conflicts are resolved per selected item.
    """
    if selected is not None:
        plan = plan.select(selected)
    return FileOrganizer(config, progress=progress).execute(plan)

def list_manifests(root_dir: str) -> List[Path]:
    return ManifestStore(root_dir).list_manifests()

def undo(manifest_path) -> UndoResult:
    return UndoEngine().undo(manifest_path)
