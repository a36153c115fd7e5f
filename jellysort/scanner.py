"""
Media file scanner and move planner
"""

import os
import logging
from typing import Optional, Set

from .errors import ScanError
from .manifest import BACKUP_DIR_NAME
from .matcher import derive_show_name, match_file, sanitize_name
from .models import MediaKind, OperationPlan, OrganizeMode, OrganizerConfig
from .planner import build_operations

logger = logging.getLogger(__name__)

class MediaScanner:
    """Walks a directory tree and builds the move plan for every video in it"""

    def __init__(self, config: OrganizerConfig):
        self.config = config

    def scan_directory(self, path: str, mode: OrganizeMode) -> OperationPlan:
        """Scan ``path`` recursively, skipping the manifest storage directory"""
        root = os.path.abspath(path)
        if not os.path.isdir(root):
            raise ScanError(f"Not a directory: {path}")

        show_name = self._show_name(root) if mode == OrganizeMode.SERIES else None
        if mode == OrganizeMode.SERIES:
            if not show_name:
                raise ScanError(f"Cannot derive a show name from {root}; pass one explicitly")
            logger.info(f"Scanning series: {show_name} in {root}")
        else:
            logger.info(f"Scanning movies in: {root}")

        plan = OperationPlan(root=root, mode=mode)
        claimed_sidecars: Set[str] = set()

        def on_walk_error(error: OSError):
            message = f"Cannot read directory {error.filename}: {error.strerror}"
            logger.warning(message)
            plan.errors.append(message)

        for current_root, dirs, files in os.walk(root, onerror=on_walk_error):
            if BACKUP_DIR_NAME in current_root:
                dirs.clear()
                continue
            dirs[:] = sorted(d for d in dirs if BACKUP_DIR_NAME not in d)

            for filename in sorted(files):
                file_path = os.path.join(current_root, filename)
                if not os.path.isfile(file_path):
                    continue

                media_file = match_file(file_path, mode, self.config)
                if media_file is None:
                    logger.debug(f"Not a video file, ignoring: {file_path}")
                    continue

                if media_file.kind == MediaKind.UNMATCHED:
                    logger.info(f"Unmatched: {filename} ({media_file.reason})")
                    plan.unmatched.append(media_file)
                    continue

                entry = build_operations(media_file, root, show_name, self.config)
                if entry.sidecar_error:
                    plan.errors.append(entry.sidecar_error)

                sidecars = []
                for sidecar in entry.sidecars:
                    if sidecar.source in claimed_sidecars:
                        logger.warning(f"Sidecar {sidecar.source} already belongs to another video, not attaching to {filename}")
                        continue
                    claimed_sidecars.add(sidecar.source)
                    sidecars.append(sidecar)
                entry.sidecars = sidecars

                plan.entries.append(entry)
                logger.debug(f"Planned: {entry.primary.source} -> {entry.primary.destination}")

        logger.info(f"Found {len(plan.entries)} matched files, {len(plan.unmatched)} unmatched")
        return plan

    def _show_name(self, root: str) -> Optional[str]:
        if self.config.show_name:
            return sanitize_name(self.config.show_name)
        return derive_show_name(os.path.basename(root))
