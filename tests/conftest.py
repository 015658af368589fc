# Shared pytest fixtures
from __future__ import annotations

import io
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from pos_import.config.templates import get_template
from pos_import.db.store import InMemoryStore
from pos_import.logging.init import reset_logging
from pos_import.models.entity_type import EntityType
from pos_import.models.parse_result import ParsedRow

ORG_ID = "org-1"


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return f"""organization_id: {ORG_ID}
output_directory: ./out
logs_directory: ./logs
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: posdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


def build_workbook(
    entity_type: EntityType | str,
    rows: list[list[Any]],
    *,
    sheet_name: str | None = None,
    headers: list[str] | None = None,
) -> bytes:
    """Workbook bytes in the upload layout: banner, headers, descriptions, data from row 4."""
    template = get_template(entity_type)
    grid: list[list[Any]] = [
        [template.instruction],
        headers if headers is not None else [c.header for c in template.columns],
        [c.description for c in template.columns],
        *rows,
    ]
    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        pd.DataFrame(grid).to_excel(writer, sheet_name=sheet_name or template.sheet_name, header=False, index=False)
    return out.getvalue()


@pytest.fixture()
def workbook() -> Callable[..., bytes]:
    return build_workbook


def make_row(entity_type: EntityType | str, row_number: int = 4, errors: list[str] | None = None,
             **values: Any) -> ParsedRow:
    """ParsedRow with every template key present; keyword args address columns by key.

    Keys with spaces or accents go through the `cells` keyword as a dict.
    """
    cells = values.pop("cells", {})
    data = {c.key: None for c in get_template(entity_type).columns}
    data.update(cells)
    data.update(values)
    return ParsedRow(row_number=row_number, data=data, errors=list(errors or []))


@pytest.fixture()
def row_factory() -> Callable[..., ParsedRow]:
    return make_row
