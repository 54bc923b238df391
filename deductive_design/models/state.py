"""Project state document models.

One ``ProjectState`` holds everything a single research → generate →
filter → distill session produces. Every field has a default so that a
partial or legacy document can always be completed
(see ``deductive_design.core.serializers.merge_defaults``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# Optional fields that are left out of the document while unset
OMIT_NONE = {"omit_none": True}


def _extra_field():
    """Unrecognized document keys, written back unchanged on save."""
    return field(default_factory=dict, repr=False)


class ResearchDomain(Enum):
    ENVIRONMENT = "environment"
    REGULATION = "regulation"
    MARKET = "market"
    CULTURE = "culture"
    ECONOMY = "economy"
    SOCIETY = "society"
    TECHNOLOGY = "technology"
    PRECEDENT = "precedent"


@dataclass
class ResearchCondition:
    """Research notes for one domain, weighted 0..1.

    ``findings``, ``weight_rationale`` and ``related_domains`` come from
    the per-domain research call and are absent on hand-written conditions.
    """
    domain: ResearchDomain = ResearchDomain.ENVIRONMENT
    notes: str = ""
    weight: float = 0.5
    tags: list[str] = field(default_factory=list)
    findings: list[str] | None = field(default=None, metadata=OMIT_NONE)
    weight_rationale: str | None = field(default=None, metadata=OMIT_NONE)
    related_domains: list[str] | None = field(default=None, metadata=OMIT_NONE)
    extra: dict[str, Any] = _extra_field()


@dataclass
class ResearchJob:
    id: str = ""
    theme: str = ""
    conditions: list[ResearchCondition] = field(default_factory=list)
    timestamp: str = ""
    extra: dict[str, Any] = _extra_field()


@dataclass
class GeneratedImage:
    """One generated image (inline data URL) and the prompt behind it."""
    id: str = ""
    image: str = ""
    mime_type: str = "image/png"
    prompt: str = ""
    text: str | None = None
    style: str = ""
    abstraction_level: int = 1
    spectrum_ratio: int | None = None
    timestamp: str = ""
    extra: dict[str, Any] = _extra_field()


@dataclass
class GenerateJob:
    """A batch of images generated with shared parameters."""
    id: str = ""
    research_job_id: str = ""
    base_prompt: str = ""
    style: str = ""
    abstraction_level: int = 1
    conditions: list[ResearchCondition] = field(default_factory=list)
    images: list[GeneratedImage] = field(default_factory=list)
    timestamp: str = ""
    extra: dict[str, Any] = _extra_field()


@dataclass
class EvaluationScore:
    performance: float = 0.0
    economy: float = 0.0
    context: float = 0.0
    experience: float = 0.0
    social: float = 0.0
    aesthetics: float = 0.0


@dataclass
class GeneratedDesign:
    """A design candidate promoted from the generate stage to filtering."""
    id: str = ""
    image_url: str = ""
    prompt: str = ""
    conditions: list[ResearchCondition] = field(default_factory=list)
    scores: EvaluationScore = field(default_factory=EvaluationScore)
    spectrum_ratio: int | None = None
    created_at: str = ""
    extra: dict[str, Any] = _extra_field()


@dataclass
class ArchitecturalConcept:
    """One of a pair of contrasting design directions.

    ``config`` is the optional multi-axis descriptor (form, material,
    structure, ...) kept as free-form JSON.
    """
    id: str = ""
    title: str = ""
    description: str = ""
    config: dict[str, Any] | None = None
    extra: dict[str, Any] = _extra_field()


@dataclass
class RefinedConcept:
    title: str = ""
    description: str = ""
    extra: dict[str, Any] = _extra_field()


@dataclass
class DomainEvaluation:
    domain: str = ""
    domain_ja: str = ""
    score: int = 0
    comment: str = ""
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    extra: dict[str, Any] = _extra_field()


@dataclass
class EvaluationResult:
    """Per-domain evaluation of the distilled design.

    ``overall_score`` is None until derived from the domain scores.
    """
    id: str = ""
    timestamp: str = ""
    evaluations: list[DomainEvaluation] = field(default_factory=list)
    overall_score: int | None = None
    detail_stages: list[str] = field(default_factory=list)
    extra: dict[str, Any] = _extra_field()


@dataclass
class AtmosphereState:
    presets: list[str] = field(default_factory=list)
    custom: str = ""
    extra: dict[str, Any] = _extra_field()


@dataclass
class ProjectState:
    """Full persisted snapshot of one project.

    Top-level keys this model does not know are kept in ``extra`` so a
    document written by a newer client survives a load/save cycle.
    """
    conditions: list[ResearchCondition] = field(default_factory=list)
    research_theme: str = ""
    generated_designs: list[GeneratedDesign] = field(default_factory=list)
    filtered_designs: list[GeneratedDesign] = field(default_factory=list)
    research_jobs: list[ResearchJob] = field(default_factory=list)
    generate_jobs: list[GenerateJob] = field(default_factory=list)
    generate_images: list[GeneratedImage] = field(default_factory=list)
    selected_concepts: list[ArchitecturalConcept] = field(default_factory=list)
    refined_concept: RefinedConcept | None = None
    scene_constraint: str = ""
    detail_images: dict[str, GeneratedImage] = field(default_factory=dict)
    evaluation_results: list[EvaluationResult] = field(default_factory=list)
    atmosphere: AtmosphereState = field(default_factory=AtmosphereState)
    extra: dict[str, Any] = _extra_field()
