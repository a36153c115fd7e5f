"""
File organizer: applies a move plan to the filesystem
"""

import os
import shutil
import logging
from datetime import datetime
from typing import Callable, List, Optional, Set, Tuple, Union

from .conflicts import rebase_sidecar, resolve
from .errors import ManifestError
from .manifest import ManifestStore
from .models import (
    ConflictAction, ExecutionResult, FileOperation, OperationCategory, OperationPlan,
    OperationResult, OperationStatus, OrganizerConfig, Resolution, ResolutionOutcome
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, OperationResult], None]

PRIMARY_NOT_MOVED = "primary not moved"

# a primary move resolution followed by the resolutions of its sidecars
ResolvedGroup = Tuple[Resolution, List[Resolution]]

class FileOrganizer:
    """Executes planned moves, best effort, recording a manifest for undo"""

    def __init__(self, config: OrganizerConfig, progress: Optional[ProgressCallback] = None):
        self.config = config
        self.dry_run = config.dry_run
        self.progress = progress

    def execute(self, plan: Union[OperationPlan, List[FileOperation]],
                root_dir: Optional[str] = None) -> ExecutionResult:
        """Run every operation of ``plan`` in order.

        Conflicts are resolved for the whole plan before anything moves so the
        manifest written ahead of the first move records the real destinations.
        Sidecars only move together with their video. Individual move failures
        are collected and never stop the run; a ManifestError is raised before
        any file is touched.

        ``root_dir`` is required when ``plan`` is a bare list of operations.
        """
        if isinstance(plan, OperationPlan):
            groups = [(entry.primary, list(entry.sidecars)) for entry in plan.entries]
            root_dir = root_dir or plan.root
        else:
            if root_dir is None:
                raise ValueError("root_dir is required when executing a list of operations")
            groups = _group_operations(plan)
        result = ExecutionResult()

        if not groups:
            logger.info("No changes detected.")
            return result

        resolved = self._resolve_all(groups)
        to_move = [r.operation for r in _flatten(resolved) if r.outcome == ResolutionOutcome.PROCEED]

        store = ManifestStore(root_dir)
        started = datetime.now()
        if not self.dry_run and to_move:
            result.manifest_path = str(store.create_manifest(to_move, now=started))

        total = sum(1 + len(sidecars) for _, sidecars in resolved)
        done = 0
        for primary, sidecars in resolved:
            primary_result = self._apply(primary)
            done = self._record(result, primary_result, done, total)

            primary_moved = primary_result.status in (OperationStatus.MOVED, OperationStatus.WOULD_MOVE)
            for sidecar in sidecars:
                if primary_moved:
                    op_result = self._apply(sidecar)
                else:
                    logger.warning(f"Not moving {sidecar.operation.source}: {PRIMARY_NOT_MOVED}")
                    op_result = OperationResult(sidecar.operation, OperationStatus.SKIPPED,
                                                sidecar.operation.destination, PRIMARY_NOT_MOVED)
                done = self._record(result, op_result, done, total)

        if result.manifest_path and result.moved_count < len(to_move):
            self._rewrite_manifest(store, result, started)

        failed = len(result.failures)
        if self.dry_run:
            logger.info(f"DRY RUN complete. {len(to_move)} files would be moved.")
        else:
            logger.info(f"Processing complete. {result.moved_count} files moved, {failed} failed.")
        return result

    def _resolve_all(self, groups: List[Tuple[FileOperation, List[FileOperation]]]) -> List[ResolvedGroup]:
        claimed: Set[str] = set()
        resolved = []
        for primary, sidecars in groups:
            primary_resolution = self._resolve(primary, claimed)
            sidecar_resolutions = []
            for sidecar in sidecars:
                if primary_resolution.outcome != ResolutionOutcome.PROCEED:
                    sidecar_resolutions.append(Resolution(ResolutionOutcome.SKIP, sidecar, PRIMARY_NOT_MOVED))
                    continue
                if primary_resolution.operation.destination != primary.destination:
                    sidecar = rebase_sidecar(sidecar, primary.destination,
                                             primary_resolution.operation.destination)
                sidecar_resolutions.append(self._resolve(sidecar, claimed))
            resolved.append((primary_resolution, sidecar_resolutions))
        return resolved

    def _resolve(self, operation: FileOperation, claimed: Set[str]) -> Resolution:
        resolution = resolve(operation, self.config, claimed)
        if resolution.outcome == ResolutionOutcome.PROCEED:
            claimed.add(os.path.abspath(resolution.operation.destination))
        return resolution

    def _record(self, result: ExecutionResult, op_result: OperationResult, done: int, total: int) -> int:
        result.results.append(op_result)
        if op_result.status == OperationStatus.MOVED:
            result.moved_count += 1
        done += 1
        self._notify(done, total, op_result)
        return done

    def _rewrite_manifest(self, store: ManifestStore, result: ExecutionResult, started: datetime):
        """Rewrite the run's manifest with only the moves that happened"""
        moved = [r.operation for r in result.results if r.status == OperationStatus.MOVED]
        try:
            store.create_manifest(moved, now=started)
        except ManifestError as e:
            logger.error(f"Could not update manifest after failed moves: {e}")

    def _apply(self, resolution: Resolution) -> OperationResult:
        operation = resolution.operation
        name = os.path.basename(operation.source)

        if resolution.outcome == ResolutionOutcome.SAME_FILE:
            logger.debug(f"Already in place: {operation.source}")
            return OperationResult(operation, OperationStatus.SAME_FILE, operation.destination, resolution.reason)

        if resolution.outcome == ResolutionOutcome.SKIP:
            logger.warning(f"Skipping ({resolution.reason}): {name} -> {operation.destination}")
            return OperationResult(operation, OperationStatus.SKIPPED, operation.destination, resolution.reason)

        if self.dry_run:
            logger.info(f"DRY RUN: Would move {operation.source} -> {operation.destination}")
            return OperationResult(operation, OperationStatus.WOULD_MOVE, operation.destination, resolution.reason)

        return self._execute_move(operation)

    def _execute_move(self, operation: FileOperation) -> OperationResult:
        """Execute file move operation"""
        if not os.path.lexists(operation.source):
            logger.error(f"Move failed: source missing: {operation.source}")
            return OperationResult(operation, OperationStatus.FAILED, operation.destination, "source missing")

        created = _missing_parents(os.path.dirname(operation.destination))
        try:
            os.makedirs(os.path.dirname(operation.destination), exist_ok=True)

            if self.config.conflict_action == ConflictAction.OVERWRITE and os.path.lexists(operation.destination):
                logger.info(f"Overwriting: {operation.destination}")
                os.remove(operation.destination)

            shutil.move(operation.source, operation.destination)
            logger.info(f"Moved: {operation.source} -> {operation.destination}")
            return OperationResult(operation, OperationStatus.MOVED, operation.destination)
        except (OSError, shutil.Error) as e:
            logger.error(f"Move failed: {operation.source} -> {operation.destination}: {e}")
            _remove_empty(created)
            return OperationResult(operation, OperationStatus.FAILED, operation.destination, str(e))

    def _notify(self, done: int, total: int, op_result: OperationResult):
        if self.progress is None:
            return
        try:
            self.progress(done, total, op_result)
        except Exception as e:
            logger.debug(f"Progress callback failed: {e}")

def _group_operations(operations: List[FileOperation]) -> List[Tuple[FileOperation, List[FileOperation]]]:
    """Attach each sidecar operation to the primary operation before it"""
    groups = []
    for operation in operations:
        if operation.category == OperationCategory.SIDECAR and groups:
            groups[-1][1].append(operation)
        else:
            groups.append((operation, []))
    return groups

def _flatten(resolved: List[ResolvedGroup]) -> List[Resolution]:
    resolutions = []
    for primary, sidecars in resolved:
        resolutions.append(primary)
        resolutions.extend(sidecars)
    return resolutions

def _missing_parents(directory: str) -> List[str]:
    """Directories that ``os.makedirs(directory)`` would create, deepest first"""
    missing = []
    directory = os.path.abspath(directory)
    while not os.path.exists(directory):
        missing.append(directory)
        parent = os.path.dirname(directory)
        if parent == directory:
            break
        directory = parent
    return missing

def _remove_empty(directories: List[str]):
    for directory in directories:
        try:
            os.rmdir(directory)
        except OSError:
            break
