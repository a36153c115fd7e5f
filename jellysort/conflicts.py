"""
Conflict handling for planned moves
"""

import os
import logging
from typing import AbstractSet

from .models import ConflictAction, FileOperation, OrganizerConfig, Resolution, ResolutionOutcome

logger = logging.getLogger(__name__)

def resolve(operation: FileOperation, config: OrganizerConfig,
            claimed: AbstractSet[str] = frozenset()) -> Resolution:
    """Decide what happens to one planned move.

    ``claimed`` holds absolute destinations already taken by earlier moves of
    the same run, so they count as existing even before anything is moved.
    """
    if _same_file(operation.source, operation.destination):
        return Resolution(ResolutionOutcome.SAME_FILE, operation, "already in place")

    on_disk = os.path.lexists(operation.destination)
    in_run = os.path.abspath(operation.destination) in claimed
    if not on_disk and not in_run:
        return Resolution(ResolutionOutcome.PROCEED, operation)

    action = config.conflict_action
    if action == ConflictAction.SKIP:
        return Resolution(ResolutionOutcome.SKIP, operation, "destination exists")

    if action == ConflictAction.OVERWRITE:
        if in_run:
            # never replace a file this run has just put there
            return Resolution(ResolutionOutcome.SKIP, operation,
                              "destination claimed by an earlier operation")
        return Resolution(ResolutionOutcome.PROCEED, operation)

    new_destination = unique_destination(operation.destination, claimed)
    logger.info(f"Destination exists, using: {new_destination}")
    renamed = FileOperation(
        source=operation.source,
        destination=new_destination,
        category=operation.category,
        description=operation.description
    )
    return Resolution(ResolutionOutcome.PROCEED, renamed, "renamed")

def unique_destination(target_path: str, claimed: AbstractSet[str] = frozenset()) -> str:
    """Append ``" (n)"`` before the extension, using the smallest free n"""
    base, ext = os.path.splitext(target_path)
    counter = 1
    while True:
        candidate = f"{base} ({counter}){ext}"
        if not os.path.lexists(candidate) and os.path.abspath(candidate) not in claimed:
            return candidate
        counter += 1

def rebase_sidecar(sidecar: FileOperation, planned_primary: str, resolved_primary: str) -> FileOperation:
    """Rename a sidecar after the destination its video actually got.

    ``Show - S01E01.en.srt`` planned next to ``Show - S01E01.mkv`` becomes
    ``Show - S01E01 (1).en.srt`` when the video was renamed to ``Show - S01E01 (1).mkv``.
    """
    planned_base = os.path.splitext(os.path.basename(planned_primary))[0]
    resolved_base = os.path.splitext(os.path.basename(resolved_primary))[0]
    name = os.path.basename(sidecar.destination)
    if not name.startswith(planned_base):
        return sidecar

    suffix = name[len(planned_base):]
    return FileOperation(
        source=sidecar.source,
        destination=os.path.join(os.path.dirname(resolved_primary), resolved_base + suffix),
        category=sidecar.category,
        description=sidecar.description
    )

def _same_file(source: str, destination: str) -> bool:
    if os.path.realpath(source) == os.path.realpath(destination):
        return True
    try:
        return os.path.samefile(source, destination)
    except OSError:
        return False
