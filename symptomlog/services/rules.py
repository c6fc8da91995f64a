"""
Rule-based suggestion engine.

Maps (symptom labels, severity) to an ordered list of advisory strings by
walking a declarative catalog in a fixed order:

    severity pair -> matching keyword groups -> general wellness
    -> top-up (only when short) -> truncate to the cap

Evaluation is pure: no I/O after the catalog is loaded, no randomness, no state.
Duplicate texts are kept as-is.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

import yaml

from symptomlog.models.entry import MAX_SUGGESTIONS, Severity
from symptomlog.utils.exceptions import ValidationError

CATALOG_PATH = Path(__file__).parent.parent / "config" / "suggestion_rules.yaml"

Pair = Tuple[str, str]


@dataclass(frozen=True)
class KeywordGroup:
    name: str
    keywords: Tuple[str, ...]
    suggestions: Pair

    def matches(self, labels: Sequence[str]) -> bool:
        """True if any label contains any keyword, ignoring case."""
        return any(kw in label.casefold() for label in labels for kw in self.keywords)


@dataclass(frozen=True)
class RuleCatalog:
    severity: Mapping[Severity, Pair]
    symptom_groups: Tuple[KeywordGroup, ...]
    general_wellness: Pair
    top_up: Tuple[str, ...]
    top_up_below: int = 6
    max_suggestions: int = MAX_SUGGESTIONS


def _pair(raw: Any, where: str) -> Pair:
    if not isinstance(raw, list) or len(raw) != 2 or not all(isinstance(s, str) and s for s in raw):
        raise ValueError(f"{where}: expected exactly two suggestion strings")
    return (raw[0], raw[1])


def parse_catalog(data: Dict[str, Any]) -> RuleCatalog:
    if not isinstance(data, dict):
        raise ValueError("rule catalog must be a mapping")

    raw_severity = data.get("severity") or {}
    if set(raw_severity) != {s.value for s in Severity}:
        raise ValueError("severity tier must define exactly: mild, moderate, severe")
    severity = {Severity(k): _pair(v, f"severity.{k}") for k, v in raw_severity.items()}

    groups = []
    for i, raw in enumerate(data.get("symptom_groups") or []):
        keywords = tuple(str(k).casefold() for k in (raw.get("keywords") or []) if str(k).strip())
        if not keywords:
            raise ValueError(f"symptom_groups[{i}]: at least one keyword is required")
        groups.append(KeywordGroup(
            name=str(raw.get("name") or f"group-{i}"),
            keywords=keywords,
            suggestions=_pair(raw.get("suggestions"), f"symptom_groups[{i}]"),
        ))

    top_up = data.get("top_up") or {}
    top_up_items = top_up.get("suggestions") or []
    if not all(isinstance(s, str) and s for s in top_up_items):
        raise ValueError("top_up.suggestions must be non-empty strings")

    max_suggestions = int(data.get("max_suggestions", MAX_SUGGESTIONS))
    if not 1 <= max_suggestions <= MAX_SUGGESTIONS:
        raise ValueError(f"max_suggestions must be within 1..{MAX_SUGGESTIONS}")

    return RuleCatalog(
        severity=severity,
        symptom_groups=tuple(groups),
        general_wellness=_pair(data.get("general_wellness"), "general_wellness"),
        top_up=tuple(top_up_items),
        top_up_below=int(top_up.get("min_total", 6)),
        max_suggestions=max_suggestions,
    )


def load_catalog(path: Union[str, Path] = CATALOG_PATH) -> RuleCatalog:
    with open(path, "r", encoding="utf-8") as f:
        return parse_catalog(yaml.safe_load(f))


def _validate_symptoms(symptoms: Any) -> List[str]:
    if isinstance(symptoms, (str, bytes)) or not isinstance(symptoms, (list, tuple, set, frozenset)):
        raise ValidationError(
            "symptoms must be a list of strings",
            details=[{"field": "symptoms", "message": "expected a list of strings"}],
        )
    labels = list(symptoms)
    if not labels:
        raise ValidationError(
            "At least one symptom is required",
            details=[{"field": "symptoms", "message": "must not be empty"}],
        )
    if not all(isinstance(label, str) for label in labels):
        raise ValidationError(
            "symptoms must be a list of strings",
            details=[{"field": "symptoms", "message": "every symptom must be a string"}],
        )
    return labels


class RuleEngine:
    def __init__(self, catalog: RuleCatalog):
        self.catalog = catalog

    def infer(self, symptoms: Sequence[str], severity: Union[Severity, str]) -> List[str]:
        labels = _validate_symptoms(symptoms)
        level = Severity.parse(severity)
        catalog = self.catalog

        suggestions: List[str] = list(catalog.severity[level])
        for group in catalog.symptom_groups:
            if group.matches(labels):
                suggestions.extend(group.suggestions)
        suggestions.extend(catalog.general_wellness)
        if len(suggestions) < catalog.top_up_below:
            suggestions.extend(catalog.top_up)

        return suggestions[:catalog.max_suggestions]


@lru_cache(maxsize=1)
def default_engine() -> RuleEngine:
    return RuleEngine(load_catalog())


def infer(symptoms: Sequence[str], severity: Union[Severity, str]) -> List[str]:
    return default_engine().infer(symptoms, severity)


__all__ = ["KeywordGroup", "RuleCatalog", "RuleEngine", "default_engine", "infer", "load_catalog", "parse_catalog"]
