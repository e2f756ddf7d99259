from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol, Sequence

from pydantic import ValidationError

from .models import CompetencyFramework


class FrameworkCatalogError(RuntimeError):
    pass


class FrameworkProvider(Protocol):
    def frameworks(self) -> Sequence[CompetencyFramework]:
        """Return every known competency framework."""


class LocalFrameworkCatalog(FrameworkProvider):
    def __init__(self, frameworks_path: str | Path | None = None) -> None:
        path = Path(frameworks_path) if frameworks_path else Path(__file__).with_name("competency_frameworks.json")
        self._frameworks = self._load_frameworks(path)

    @staticmethod
    def _load_frameworks(path: Path) -> tuple[CompetencyFramework, ...]:
        try:
            with path.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise FrameworkCatalogError(f"Unable to load competency frameworks from '{path}': {exc}") from exc

        if not isinstance(raw, list):
            raise FrameworkCatalogError(f"Invalid competency frameworks file '{path}': expected a list.")
        try:
            return tuple(CompetencyFramework.model_validate(item) for item in raw)
        except ValidationError as exc:
            raise FrameworkCatalogError(f"Invalid competency framework in '{path}': {exc}") from exc

    def frameworks(self) -> Sequence[CompetencyFramework]:
        return self._frameworks


class StaticFrameworkCatalog(FrameworkProvider):
    def __init__(self, frameworks: Sequence[CompetencyFramework]) -> None:
        self._frameworks = tuple(frameworks)

    def frameworks(self) -> Sequence[CompetencyFramework]:
        return self._frameworks
