"""
Push ledger — append-only record of every profile push.

Each pushed profile writes one line to an NDJSON file next to the
deploy file (``.state/audit.ndjson``). Failing to write the ledger is
logged and otherwise ignored: it must never fail a deploy.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_DIR = ".state"
DEFAULT_AUDIT_FILE = "audit.ndjson"


class PushAuditEntry(BaseModel):
    """A single ledger line: one profile, one push attempt."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_id: str = ""

    node: str = ""
    profile: str = ""
    hostname: str = ""
    path: str = ""
    realized_path: str | None = None

    status: str = ""               # ok, failed
    stages: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    error_kind: str | None = None
    error_phase: str | None = None
    error_message: str | None = None


class AuditWriter:
    """Append-only ledger writer.

    The ledger file and its directory are created on first write.
    """

    def __init__(self, path: Path | None = None, project_root: Path | None = None):
        if path is not None:
            self._path = path
        elif project_root is not None:
            self._path = project_root / DEFAULT_AUDIT_DIR / DEFAULT_AUDIT_FILE
        else:
            self._path = Path(DEFAULT_AUDIT_DIR) / DEFAULT_AUDIT_FILE

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: PushAuditEntry) -> None:
        """Append an entry to the ledger."""
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Audit entry written: %s.%s", entry.node, entry.profile)
        except OSError as e:
            logger.error("Failed to write audit entry: %s", e)

    def read_all(self) -> list[PushAuditEntry]:
        """Read all entries, oldest first. Corrupt lines are skipped."""
        if not self._path.is_file():
            return []

        entries = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(PushAuditEntry.model_validate(json.loads(line)))
                    except ValueError as e:
                        logger.warning("Skipping corrupt audit entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read audit ledger: %s", e)

        return entries
