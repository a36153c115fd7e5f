"""
Undo a previous run from its manifest
"""

import os
import shutil
import logging
from typing import Callable, Optional

from .manifest import BACKUP_DIR_NAME, ManifestStore
from .models import UndoResult

logger = logging.getLogger(__name__)

MISSING_REASON = "file missing for restore"
OCCUPIED_REASON = "original location occupied"

class UndoEngine:
    """Moves every file of a manifest back where it came from, newest move first"""

    def __init__(self, progress: Optional[Callable[[int, int, str], None]] = None):
        self.progress = progress

    def undo(self, manifest_path) -> UndoResult:
        manifest = ManifestStore.load_manifest(manifest_path)
        result = UndoResult()
        logger.info(f"Restoring {len(manifest.operations)} operations from {os.path.basename(str(manifest_path))}")

        total = len(manifest.operations)
        for index, op in enumerate(reversed(manifest.operations), start=1):
            src, dst = op["src"], op["dst"]

            if not os.path.lexists(dst):
                logger.warning(f"File missing for restore: {dst}")
                result.failures.append((src, dst, MISSING_REASON))
            elif os.path.lexists(src):
                logger.warning(f"Cannot restore {dst}: {src} already exists")
                result.failures.append((src, dst, OCCUPIED_REASON))
            else:
                try:
                    os.makedirs(os.path.dirname(src), exist_ok=True)
                    shutil.move(dst, src)
                    logger.info(f"Restored: {dst} -> {src}")
                    result.restored_count += 1
                    self._prune_empty_dirs(os.path.dirname(dst), manifest.root)
                except (OSError, shutil.Error) as e:
                    logger.error(f"Failed to restore {dst}: {e}")
                    result.failures.append((src, dst, str(e)))

            if self.progress is not None:
                try:
                    self.progress(index, total, src)
                except Exception as e:
                    logger.debug(f"Progress callback failed: {e}")

        logger.info(f"Undo complete. {result.restored_count} files restored, {len(result.failures)} failed.")
        return result

    def _prune_empty_dirs(self, directory: str, root: str):
        """Remove folders emptied by the restore, up to but excluding ``root``"""
        if not root:
            return
        root = os.path.abspath(root)
        directory = os.path.abspath(directory)
        while directory != root and directory.startswith(root + os.sep):
            if os.path.basename(directory) == BACKUP_DIR_NAME:
                return
            try:
                os.rmdir(directory)
            except OSError:
                # not empty or not ours to remove
                return
            logger.debug(f"Removed empty folder: {directory}")
            directory = os.path.dirname(directory)
