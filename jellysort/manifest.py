"""
Backup manifests used to undo a run
"""

import os
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .errors import ManifestError
from .models import FileOperation, Manifest

logger = logging.getLogger(__name__)

BACKUP_DIR_NAME = ".jellysort_backups"
MANIFEST_PREFIX = "backup_"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

class ManifestStore:
    """Reads and writes the manifests kept under ``<root>/.jellysort_backups``"""

    def __init__(self, root_dir: str):
        self.root = os.path.abspath(root_dir)
        self.backup_dir = Path(self.root) / BACKUP_DIR_NAME

    def create_manifest(self, operations: List[FileOperation], now: Optional[datetime] = None) -> Path:
        """Persist the moves of one run and return the manifest path"""
        timestamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
        manifest = Manifest(
            timestamp=timestamp,
            root=self.root,
            operations=[op.to_manifest_entry() for op in operations]
        )
        path = self.backup_dir / f"{MANIFEST_PREFIX}{timestamp}.json"

        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(path.suffix + ".tmp")
            tmp.write_text(json.dumps(manifest.to_dict(), indent=4) + "\n", encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise ManifestError(f"Cannot write manifest {path}: {e}") from e

        logger.info(f"Backup manifest created: {path.name} ({len(operations)} operations)")
        return path

    def list_manifests(self) -> List[Path]:
        """Manifests for this root, oldest first"""
        if not self.backup_dir.is_dir():
            return []
        try:
            return sorted(self.backup_dir.glob(f"{MANIFEST_PREFIX}*.json"))
        except OSError as e:
            raise ManifestError(f"Cannot list manifests in {self.backup_dir}: {e}") from e

    @staticmethod
    def load_manifest(path) -> Manifest:
        path = Path(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ManifestError(f"Cannot read manifest {path}: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ManifestError(f"Manifest is not valid JSON: {path}: {e}") from e

        if not isinstance(data, dict):
            raise ManifestError(f"Manifest must be a JSON object: {path}")

        operations = data.get("operations")
        if not isinstance(operations, list):
            raise ManifestError(f"Manifest has no operations list: {path}")
        for op in operations:
            if not isinstance(op, dict) or not isinstance(op.get("src"), str) or not isinstance(op.get("dst"), str):
                raise ManifestError(f"Malformed operation in {path}: {op!r}")

        return Manifest(
            timestamp=str(data.get("timestamp", "")),
            root=str(data.get("root", "")),
            operations=[{"src": op["src"], "dst": op["dst"]} for op in operations]
        )
