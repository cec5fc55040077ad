"""Keyword rules that draft report comments and recommendations.

Photo names from the job system usually describe the defect ("east wall
crack.jpg"). Each rule maps a keyword to a stock paragraph; matching
paragraphs are collected once each, in rule order.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from core.models import ReportPhoto

_DAMP_COMMENT = (
    "Damp and moisture damage was identified in several locations, requiring "
    "treatment prior to coating application."
)
_SPALL_COMMENT = (
    "Spalling and delamination of the render was noted across multiple faces of "
    "the building envelope."
)
_RUST_COMMENT = (
    "Rust staining and carbonation of the concrete substrate was observed, "
    "requiring treatment prior to recoating."
)
_PAINT_COMMENT = (
    "Peeling and flaking of the existing paint system was prevalent across the "
    "building envelope, requiring full preparation prior to recoating."
)

COMMENT_RULES: tuple[tuple[str, str], ...] = (
    (
        "crack",
        "Cracking was observed to the render/coating surface, indicative of "
        "movement and moisture ingress.",
    ),
    ("damp", _DAMP_COMMENT),
    ("water", _DAMP_COMMENT),
    ("moisture", _DAMP_COMMENT),
    ("spall", _SPALL_COMMENT),
    ("delam", _SPALL_COMMENT),
    ("rust", _RUST_COMMENT),
    ("carbon", _RUST_COMMENT),
    ("paint", _PAINT_COMMENT),
    ("peel", _PAINT_COMMENT),
    ("flak", _PAINT_COMMENT),
)

_WATER_RECO = (
    "Investigation and rectification of all water ingress points prior to "
    "commencement of coating works."
)
_RENDER_RECO = (
    "Full removal of all delaminated render and application of a compatible "
    "render system to match existing profile."
)
_RUST_RECO = (
    "Treatment of all affected reinforcement with a rust inhibitor and "
    "application of a protective barrier coat prior to recoating."
)
_PAINT_RECO = (
    "High-pressure wash, full preparation of all surfaces and application of "
    "the specified paint system."
)
_ROOF_RECO = (
    "Engagement of a licensed roofing contractor to assess and repair all roof "
    "flashings and penetrations."
)

RECOMMENDATION_RULES: tuple[tuple[str, str], ...] = (
    (
        "crack",
        "Raking out and repointing of all visible cracks with a flexible "
        "sealant prior to recoating.",
    ),
    ("damp", _WATER_RECO),
    ("water", _WATER_RECO),
    ("moisture", _WATER_RECO),
    ("spall", _RENDER_RECO),
    ("delam", _RENDER_RECO),
    ("rust", _RUST_RECO),
    ("carbon", _RUST_RECO),
    ("paint", _PAINT_RECO),
    ("peel", _PAINT_RECO),
    ("flak", _PAINT_RECO),
    ("roof", _ROOF_RECO),
    ("flash", _ROOF_RECO),
)

DEFAULT_COMMENT = (
    "A general inspection of the building was carried out. Maintenance "
    "requirements were identified and are documented within this report."
)
DEFAULT_RECOMMENDATION = (
    "Carry out all identified repair works prior to application of the "
    "specified coating system. Re-inspect on completion."
)


@dataclass
class ReportTemplates:
    comments: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def comments_text(self) -> str:
        return "\n\n".join(self.comments)

    def recommendations_text(self) -> str:
        return "\n\n".join(self.recommendations)


def _match(corpus: str, rules: Iterable[tuple[str, str]]) -> list[str]:
    seen: set[str] = set()
    matched: list[str] = []
    for keyword, text in rules:
        if keyword in corpus and text not in seen:
            seen.add(text)
            matched.append(text)
    return matched


class RuleEngine:
    def execute(self, photos: Iterable[ReportPhoto]) -> ReportTemplates:
        """Draft comments and recommendations from photo names."""
        corpus = " ".join(p.name.lower() for p in photos)
        comments = _match(corpus, COMMENT_RULES) or [DEFAULT_COMMENT]
        recommendations = _match(corpus, RECOMMENDATION_RULES) or [DEFAULT_RECOMMENDATION]
        return ReportTemplates(comments=comments, recommendations=recommendations)
