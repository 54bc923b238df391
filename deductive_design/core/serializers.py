"""Serialization utilities — dataclass ↔ JSON-safe dict conversion.

Documents are stored and exported with camelCase keys. Reading is
tolerant: missing or wrongly typed fields fall back to their defaults so
that older documents (e.g. without ``atmosphere`` or
``evaluationResults``) upgrade transparently. Keys the models do not
know are carried in an ``extra`` mapping and written back on save.
Used by the state container, the registry, and the JSON exporter.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
from enum import Enum
from typing import Any

from deductive_design.constants import DETAIL_STAGES, MAX_SCORE, MAX_WEIGHT, MIN_WEIGHT
from deductive_design.models.project import ProcessLog, ProjectMeta
from deductive_design.models.state import (
    ArchitecturalConcept,
    AtmosphereState,
    DomainEvaluation,
    EvaluationResult,
    EvaluationScore,
    GenerateJob,
    GeneratedDesign,
    GeneratedImage,
    ProjectState,
    RefinedConcept,
    ResearchCondition,
    ResearchDomain,
    ResearchJob,
)

logger = logging.getLogger(__name__)

EXTRA_FIELD = "extra"


# =====================================================================
# Generic helpers
# =====================================================================


def _camel(name: str) -> str:
    """``research_theme`` → ``researchTheme``."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _serialize_value(val: Any) -> Any:
    """Convert a value to a JSON-safe type."""
    if val is None:
        return None
    if isinstance(val, Enum):
        return val.value
    if dataclasses.is_dataclass(val) and not isinstance(val, type):
        return _dataclass_to_dict(val)
    if isinstance(val, (list, tuple)):
        return [_serialize_value(v) for v in val]
    if isinstance(val, dict):
        return {str(k): _serialize_value(v) for k, v in val.items()}
    if isinstance(val, (int, float, str, bool)):
        return val
    return str(val)


def _dataclass_to_dict(obj: Any) -> dict:
    """Recursively convert a dataclass to a JSON-safe dict (camelCase keys).

    Keys held in an ``extra`` field are written back alongside the
    modelled ones; modelled keys win on a clash.
    """
    result = {}
    extra = {}
    for f in dataclasses.fields(obj):
        val = getattr(obj, f.name)
        if f.name == EXTRA_FIELD:
            extra = val
        elif val is None and f.metadata.get("omit_none"):
            continue
        else:
            result[_camel(f.name)] = _serialize_value(val)
    for key, val in extra.items():
        result.setdefault(str(key), _serialize_value(val))
    return result


def _extra(d: dict, cls: type) -> dict[str, Any]:
    """Keys of ``d`` that ``cls`` does not model, copied for writing back."""
    known = {_camel(f.name) for f in dataclasses.fields(cls) if f.name != EXTRA_FIELD}
    return {k: copy.deepcopy(v) for k, v in d.items() if k not in known}


def _str(d: dict, key: str, default: str = "") -> str:
    val = d.get(key)
    return val if isinstance(val, str) else default


def _opt_str(d: dict, key: str) -> str | None:
    val = d.get(key)
    return val if isinstance(val, str) else None


def _is_number(val: Any) -> bool:
    return isinstance(val, (int, float)) and not isinstance(val, bool)


def _float(d: dict, key: str, default: float = 0.0) -> float:
    val = d.get(key)
    return float(val) if _is_number(val) else default


def _int(d: dict, key: str, default: int = 0) -> int:
    val = d.get(key)
    return int(round(val)) if _is_number(val) else default


def _opt_int(d: dict, key: str) -> int | None:
    val = d.get(key)
    return int(round(val)) if _is_number(val) else None


def _list(d: dict, key: str) -> list:
    val = d.get(key)
    return val if isinstance(val, list) else []


def _dict(d: dict, key: str) -> dict:
    val = d.get(key)
    return val if isinstance(val, dict) else {}


def _str_list(d: dict, key: str) -> list[str]:
    return [v for v in _list(d, key) if isinstance(v, str)]


def _opt_str_list(d: dict, key: str) -> list[str] | None:
    val = d.get(key)
    return [v for v in val if isinstance(v, str)] if isinstance(val, list) else None


def _records(d: dict, key: str, factory) -> list:
    """Deserialize a list of objects, skipping non-dict entries."""
    items = []
    for raw in _list(d, key):
        if not isinstance(raw, dict):
            continue
        item = factory(raw)
        if item is not None:
            items.append(item)
    return items


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


# =====================================================================
# Record deserialization
# =====================================================================


def _dict_to_condition(d: dict) -> ResearchCondition | None:
    raw_domain = d.get("domain")
    try:
        domain = ResearchDomain(str(raw_domain).lower())
    except ValueError:
        logger.warning("Dropping research condition with unknown domain %r", raw_domain)
        return None
    return ResearchCondition(
        domain=domain,
        notes=_str(d, "notes"),
        weight=_clamp(_float(d, "weight", 0.5), MIN_WEIGHT, MAX_WEIGHT),
        tags=_str_list(d, "tags"),
        findings=_opt_str_list(d, "findings"),
        weight_rationale=_opt_str(d, "weightRationale"),
        related_domains=_opt_str_list(d, "relatedDomains"),
        extra=_extra(d, ResearchCondition),
    )


def _dict_to_research_job(d: dict) -> ResearchJob:
    return ResearchJob(
        id=_str(d, "id"),
        theme=_str(d, "theme"),
        conditions=_records(d, "conditions", _dict_to_condition),
        timestamp=_str(d, "timestamp"),
        extra=_extra(d, ResearchJob),
    )


def _dict_to_image(d: dict) -> GeneratedImage:
    return GeneratedImage(
        id=_str(d, "id"),
        image=_str(d, "image"),
        mime_type=_str(d, "mimeType", "image/png"),
        prompt=_str(d, "prompt"),
        text=_opt_str(d, "text"),
        style=_str(d, "style"),
        abstraction_level=_int(d, "abstractionLevel", 1),
        spectrum_ratio=_opt_int(d, "spectrumRatio"),
        timestamp=_str(d, "timestamp"),
        extra=_extra(d, GeneratedImage),
    )


def _dict_to_generate_job(d: dict) -> GenerateJob:
    return GenerateJob(
        id=_str(d, "id"),
        research_job_id=_str(d, "researchJobId"),
        base_prompt=_str(d, "basePrompt"),
        style=_str(d, "style"),
        abstraction_level=_int(d, "abstractionLevel", 1),
        conditions=_records(d, "conditions", _dict_to_condition),
        images=_records(d, "images", _dict_to_image),
        timestamp=_str(d, "timestamp"),
        extra=_extra(d, GenerateJob),
    )


def _dict_to_scores(d: dict) -> EvaluationScore:
    return EvaluationScore(**{
        f.name: _float(d, f.name) for f in dataclasses.fields(EvaluationScore)
    })


def _dict_to_design(d: dict) -> GeneratedDesign:
    return GeneratedDesign(
        id=_str(d, "id"),
        image_url=_str(d, "imageUrl"),
        prompt=_str(d, "prompt"),
        conditions=_records(d, "conditions", _dict_to_condition),
        scores=_dict_to_scores(_dict(d, "scores")),
        spectrum_ratio=_opt_int(d, "spectrumRatio"),
        created_at=_str(d, "createdAt"),
        extra=_extra(d, GeneratedDesign),
    )


def _dict_to_concept(d: dict) -> ArchitecturalConcept:
    config = d.get("config")
    return ArchitecturalConcept(
        id=_str(d, "id"),
        title=_str(d, "title"),
        description=_str(d, "description"),
        config=copy.deepcopy(config) if isinstance(config, dict) else None,
        extra=_extra(d, ArchitecturalConcept),
    )


def _dict_to_refined(val: Any) -> RefinedConcept | None:
    if not isinstance(val, dict):
        return None
    return RefinedConcept(
        title=_str(val, "title"),
        description=_str(val, "description"),
        extra=_extra(val, RefinedConcept),
    )


def _dict_to_domain_evaluation(d: dict) -> DomainEvaluation:
    return DomainEvaluation(
        domain=_str(d, "domain"),
        domain_ja=_str(d, "domainJa"),
        score=int(_clamp(_int(d, "score"), 0, MAX_SCORE)),
        comment=_str(d, "comment"),
        strengths=_str_list(d, "strengths"),
        improvements=_str_list(d, "improvements"),
        extra=_extra(d, DomainEvaluation),
    )


def _dict_to_evaluation(d: dict) -> EvaluationResult:
    evaluations = _records(d, "evaluations", _dict_to_domain_evaluation)
    overall = _opt_int(d, "overallScore")
    return EvaluationResult(
        id=_str(d, "id"),
        timestamp=_str(d, "timestamp"),
        evaluations=evaluations,
        overall_score=overall if overall is not None else overall_score(evaluations),
        detail_stages=_str_list(d, "detailStages"),
        extra=_extra(d, EvaluationResult),
    )


def _dict_to_detail_images(raw: dict) -> dict[str, GeneratedImage]:
    # Known stages first in canonical order; unknown keys are kept as-is.
    ordered = [k for k in DETAIL_STAGES if k in raw]
    ordered += [k for k in raw if k not in DETAIL_STAGES]
    return {
        key: _dict_to_image(raw[key])
        for key in ordered
        if isinstance(raw[key], dict)
    }


def _dict_to_atmosphere(d: dict) -> AtmosphereState:
    return AtmosphereState(
        presets=_str_list(d, "presets"),
        custom=_str(d, "custom"),
        extra=_extra(d, AtmosphereState),
    )


# =====================================================================
# Project state
# =====================================================================


def state_to_dict(state: ProjectState) -> dict:
    """Serialize ProjectState to a JSON-safe dict with camelCase keys."""
    return _dataclass_to_dict(state)


def dict_to_state(data: Any) -> ProjectState:
    """Deserialize a (possibly partial or legacy) dict to ProjectState.

    Anything missing or of the wrong type takes its default value; keys
    the model does not know are kept in ``extra`` at every level.

    Args:
        data: JSON-parsed document. Non-dict input yields pure defaults.

    Returns:
        A complete ProjectState.
    """
    if not isinstance(data, dict):
        return ProjectState()
    return ProjectState(
        conditions=_records(data, "conditions", _dict_to_condition),
        research_theme=_str(data, "researchTheme"),
        generated_designs=_records(data, "generatedDesigns", _dict_to_design),
        filtered_designs=_records(data, "filteredDesigns", _dict_to_design),
        research_jobs=_records(data, "researchJobs", _dict_to_research_job),
        generate_jobs=_records(data, "generateJobs", _dict_to_generate_job),
        generate_images=_records(data, "generateImages", _dict_to_image),
        selected_concepts=_records(data, "selectedConcepts", _dict_to_concept),
        refined_concept=_dict_to_refined(data.get("refinedConcept")),
        scene_constraint=_str(data, "sceneConstraint"),
        detail_images=_dict_to_detail_images(_dict(data, "detailImages")),
        evaluation_results=_records(data, "evaluationResults", _dict_to_evaluation),
        atmosphere=_dict_to_atmosphere(_dict(data, "atmosphere")),
        extra=_extra(data, ProjectState),
    )


def merge_defaults(partial: Any) -> dict:
    """Complete a partial document against defaults.

    Pure function: ``defaults ⊕ partial``, normalized. The result always
    carries every document field with the correct type, plus any
    unrecognized keys of ``partial`` unchanged.
    """
    return state_to_dict(dict_to_state(partial))


def default_state_dict() -> dict:
    return state_to_dict(ProjectState())


# =====================================================================
# Evaluation
# =====================================================================


def overall_score(evaluations: list[DomainEvaluation]) -> int:
    """Rounded mean of domain scores (0 when there are none)."""
    if not evaluations:
        return 0
    mean = sum(e.score for e in evaluations) / len(evaluations)
    return int(mean + 0.5)


# =====================================================================
# Project metadata / process log
# =====================================================================


def meta_to_dict(meta: ProjectMeta) -> dict:
    return _dataclass_to_dict(meta)


def dict_to_meta(data: Any) -> ProjectMeta | None:
    """Deserialize a registry entry. Returns None when ``id`` is unusable."""
    if not isinstance(data, dict):
        return None
    project_id = data.get("id")
    if not isinstance(project_id, str) or not project_id:
        return None
    return ProjectMeta(
        id=project_id,
        name=_str(data, "name"),
        theme=_str(data, "theme"),
        created_at=_str(data, "createdAt"),
        updated_at=_str(data, "updatedAt"),
    )


def process_log_to_dict(log: ProcessLog) -> dict:
    return _dataclass_to_dict(log)
