"""Persistent record of blobs left without a metadata record."""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

from manager.utils import utc_now

logger = logging.getLogger(__name__)


class OrphanLedger:
    """
    Append-only JSON log of orphaned blobs.

    Entries are written when an upload stored a blob but its record could not
    be created, or when a record was deleted but its blob was not. The ledger
    is only a report for operators; nothing here deletes blobs.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def record(
        self,
        blob_ref: str,
        resource_type: Optional[str],
        reason: str,
        asset_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Dict[str, Optional[str]]:
        entry = {
            "blob_ref": blob_ref,
            "resource_type": resource_type,
            "asset_id": asset_id,
            "name": name,
            "reason": reason,
            "recorded_at": utc_now().isoformat(),
        }

        with self._lock:
            entries = self._read()
            entries.append(entry)
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, 'w') as f:
                    json.dump(entries, f, indent=2)
            except OSError as e:
                logger.error(f"Failed to write orphan ledger {self.path}: {e}")
                return entry

        logger.warning(f"Recorded orphaned blob [blob_ref={blob_ref}] [reason={reason}]")
        return entry

    def entries(self) -> List[Dict[str, Optional[str]]]:
        with self._lock:
            return self._read()

    def _read(self) -> List[Dict[str, Optional[str]]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to read orphan ledger {self.path}: {e}")
            return []
        return data if isinstance(data, list) else []
