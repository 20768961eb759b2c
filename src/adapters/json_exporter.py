"""Exportación JSON de registros.

Por qué JSON:
- Interoperabilidad con otras herramientas y pipelines.
- Cada registro se serializa con `to_payload`, es decir, con los mismos campos
  que envió el servidor.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from core.domain.models import HorizonRecord


def records_payload(records: Iterable[HorizonRecord]) -> list[dict]:
    return [record.to_payload() for record in records]


def dumps_records(records: Iterable[HorizonRecord]) -> str:
    """JSON con formato estable (claves ordenadas)."""

    return json.dumps(records_payload(records), ensure_ascii=False, indent=2, sort_keys=True)


def export_records_json(*, records: Iterable[HorizonRecord], output_path: Path) -> Path:
    """Exporta registros a un archivo JSON UTF-8."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dumps_records(records) + "\n", encoding="utf-8")
    return output_path


def dumps_record(record: HorizonRecord) -> str:
    return json.dumps(record.to_payload(), ensure_ascii=False, indent=2, sort_keys=True)
