"""Run manifest helpers.

``runner`` writes one manifest per demo run into the results directory: what
ran, against which databases, how many rows were loaded and embedded and
which result files were produced. ``aidb-demo`` reads it back to report on
the last run.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

MANIFEST_FILENAME = "run_manifest.json"


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def _int_map(raw: Any) -> dict[str, int]:
    if not isinstance(raw, dict):
        return {}
    return {str(k): int(v) for k, v in raw.items()}


@dataclass(frozen=True)
class RunManifest:
    """Identity and outcome of one demo run."""

    run_id: str
    started_at: str
    engine_name: str
    engine_version: str
    schema_version: int

    customer_db: str
    transaction_db: str
    embedding_provider: str
    seed: int

    row_counts: dict[str, int] = field(default_factory=dict)
    embedded_counts: dict[str, int] = field(default_factory=dict)
    step_durations_ms: dict[str, int] = field(default_factory=dict)
    exported_files: list[str] = field(default_factory=list)

    finished_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if not d.get("finished_at"):
            d["finished_at"] = _utc_now_iso()
        return d

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> RunManifest:
        return cls(
            run_id=str(payload.get("run_id") or "").strip(),
            started_at=str(payload.get("started_at") or "").strip(),
            engine_name=str(payload.get("engine_name") or "").strip(),
            engine_version=str(payload.get("engine_version") or "").strip(),
            schema_version=int(payload.get("schema_version") or 0),
            customer_db=str(payload.get("customer_db") or "").strip(),
            transaction_db=str(payload.get("transaction_db") or "").strip(),
            embedding_provider=str(payload.get("embedding_provider") or "").strip(),
            seed=int(payload.get("seed") or 0),
            row_counts=_int_map(payload.get("row_counts")),
            embedded_counts=_int_map(payload.get("embedded_counts")),
            step_durations_ms=_int_map(payload.get("step_durations_ms")),
            exported_files=[str(p) for p in payload.get("exported_files") or []],
            finished_at=str(payload.get("finished_at") or "").strip(),
        )

    def validate(self) -> None:
        if not self.run_id:
            raise ValueError("RunManifest missing run_id")
        if not self.started_at:
            raise ValueError("RunManifest missing started_at")
        if not self.customer_db or not self.transaction_db:
            raise ValueError("RunManifest missing database names")


def manifest_path(base_dir: str | Path) -> Path:
    return Path(base_dir) / MANIFEST_FILENAME


def write_manifest(base_dir: str | Path, manifest: RunManifest) -> Path:
    """Write *manifest* to *base_dir* (atomically best-effort)."""
    base = Path(base_dir)
    base.mkdir(parents=True, exist_ok=True)
    path = manifest_path(base)
    tmp = path.with_suffix(path.suffix + ".tmp")

    manifest.validate()
    tmp.write_text(json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)
    return path


def load_manifest(path: str | Path) -> RunManifest:
    """Load a manifest from *path* and validate it."""
    p = Path(path)
    payload = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid run manifest (expected object): {p}")
    m = RunManifest.from_dict(payload)
    m.validate()
    return m
