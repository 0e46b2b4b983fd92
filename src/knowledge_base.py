import logging
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import IntEnum
from functools import lru_cache
from pathlib import Path
from typing import Any

import polars as pl

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
SYMPTOMS_FILE_NAME = "symptoms.json"
SYMPTOMS_FILE_PATH = DATA_DIR / SYMPTOMS_FILE_NAME
KB_PATH_ENV_VAR = "SYMPTOM_KB_PATH"

_TERMS = pl.List(pl.String)

SCHEMA: dict[str, pl.DataType] = {
    "symptom": pl.String,
    "medical_terms": _TERMS,
    "common_terms": _TERMS,
    "codes": _TERMS,
    "associated_conditions": _TERMS,
    "urgency": pl.String,
    "associated_tools": _TERMS,
    "description": pl.String,
    "red_flags": _TERMS,
    "differentials": _TERMS,
    "physical_exam_findings": _TERMS,
    "diagnostic_tests": _TERMS,
}

OPTIONAL_FIELDS = (
    "red_flags",
    "differentials",
    "physical_exam_findings",
    "diagnostic_tests",
)


class Urgency(IntEnum):
    """Clinical urgency tier. Integer order is the clinical order."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    EMERGENCY = 4

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> "Urgency":
        try:
            return cls[label.strip().upper()]
        except KeyError:
            raise ValueError(f"unknown urgency {label!r}") from None


@dataclass(frozen=True)
class SymptomEntry:
    symptom: str
    medical_terms: tuple[str, ...] = ()
    common_terms: tuple[str, ...] = ()
    codes: tuple[str, ...] = ()
    associated_conditions: tuple[str, ...] = ()
    urgency: Urgency = Urgency.LOW
    associated_tools: tuple[str, ...] = ()
    description: str = ""
    red_flags: tuple[str, ...] | None = None
    differentials: tuple[str, ...] | None = None
    physical_exam_findings: tuple[str, ...] | None = None
    diagnostic_tests: tuple[str, ...] | None = None


def default_file_path() -> Path:
    """Knowledge base file to use when none is given explicitly."""
    override = os.environ.get(KB_PATH_ENV_VAR)
    return Path(override) if override else SYMPTOMS_FILE_PATH


def _terms(value: list[str] | None) -> tuple[str, ...]:
    return tuple(value) if value else ()


def _optional_terms(value: list[str] | None) -> tuple[str, ...] | None:
    return None if value is None else tuple(value)


class KnowledgeBase:
    """Ordered, read-only table of symptom entries."""

    def __init__(self, file_path: Path | None = None) -> None:
        self.file_path: Path | None = file_path or default_file_path()
        self.entries: tuple[SymptomEntry, ...] = self._construct_entries()
        logger.info("Loaded %d symptom entries from %s", len(self), self.file_path)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[SymptomEntry]:
        return iter(self.entries)

    @classmethod
    def from_entries(cls, entries: Iterable[SymptomEntry]) -> "KnowledgeBase":
        """Wrap entries that were built in memory."""
        obj = cls.__new__(cls)
        obj.file_path = None
        obj.entries = tuple(entries)
        return obj

    # ------------------------------------------------------------------
    # Internal construction
    # ------------------------------------------------------------------

    @staticmethod
    def _entry_from_row(index: int, row: dict[str, Any]) -> SymptomEntry:
        symptom = row["symptom"] or ""
        if not symptom.strip():
            raise ValueError(f"row {index}: symptom must be a non-empty string")
        try:
            urgency = Urgency.from_label(row["urgency"] or "")
        except ValueError as exc:
            raise ValueError(f"row {index} ({symptom!r}): {exc}") from None
        return SymptomEntry(
            symptom=symptom,
            medical_terms=_terms(row["medical_terms"]),
            common_terms=_terms(row["common_terms"]),
            codes=_terms(row["codes"]),
            associated_conditions=_terms(row["associated_conditions"]),
            urgency=urgency,
            associated_tools=_terms(row["associated_tools"]),
            description=row["description"] or "",
            **{name: _optional_terms(row[name]) for name in OPTIONAL_FIELDS},
        )

    @staticmethod
    def _entries_from_df(df: pl.DataFrame) -> tuple[SymptomEntry, ...]:
        for name in OPTIONAL_FIELDS:  # tolerate tables written without metadata
            if name not in df.columns:
                df = df.with_columns(pl.lit(None, dtype=_TERMS).alias(name))
        return tuple(
            KnowledgeBase._entry_from_row(index, row)
            for index, row in enumerate(df.iter_rows(named=True))
        )

    def _construct_entries(self) -> tuple[SymptomEntry, ...]:
        with open(self.file_path, "rb") as f:
            df = pl.read_json(f, schema=SCHEMA)
        return KnowledgeBase._entries_from_df(df)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_frame(self) -> pl.DataFrame:
        columns: dict[str, list[Any]] = {name: [] for name in SCHEMA}
        for e in self.entries:
            for name in SCHEMA:
                value = getattr(e, name)
                if isinstance(value, Urgency):
                    value = value.label
                elif isinstance(value, tuple):
                    value = list(value)
                columns[name].append(value)
        return pl.DataFrame(columns, schema=SCHEMA)

    def save(self, path: Path) -> None:
        """Serialise entries to a Parquet file for fast subsequent loads."""
        self.to_frame().write_parquet(path)
        logger.info("Wrote %d symptom entries to %s", len(self), path)

    @classmethod
    def load(cls, path: Path) -> "KnowledgeBase":
        """Load a KnowledgeBase from a Parquet file written by :meth:`save`."""
        obj = cls.__new__(cls)
        obj.file_path = path
        df = pl.read_parquet(path)
        obj.entries = cls._entries_from_df(df)
        logger.info("Loaded %d symptom entries from snapshot %s", len(obj), path)
        return obj


@lru_cache(maxsize=1)
def default_knowledge_base() -> KnowledgeBase:
    """Process-wide knowledge base, loaded on first use and never mutated."""
    return KnowledgeBase()


if __name__ == "__main__":
    kb = KnowledgeBase()
    print(kb.entries[0])
