"""Local statistical consistency analysis.

Used directly for small response sets and as the last fallback tier when the
grading model is unavailable or its answer cannot be parsed. Tool usage is
weighted above raw text similarity: two answers that call the same tool with
the same input are treated as the same decision even if their prose differs.
"""

import json
import re
import statistics
from collections import Counter

from pydantic import BaseModel, Field

from det_eval.grading.domain.report import ConsistencyMetrics, VarianceStats
from det_eval.scheduling.domain.response import StructuredResponse

TOOL_WEIGHT = 0.5
DECISION_WEIGHT = 0.3
SEMANTIC_WEIGHT = 0.2

SIGNATURE_SHARE_WEIGHT = 0.7
PARAMETER_AGREEMENT_WEIGHT = 0.3

MIN_CONSISTENCY = 0.1
NO_DECISION_CONSISTENCY = 0.8
DECISION_CLUSTER_JACCARD = 0.8

_VOLATILE_PATTERNS = [
    re.compile(
        r"\b[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\b", re.I
    ),
    re.compile(r"\b\d{4}-\d{2}-\d{2}[t ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:z|[+-]\d{2}:?\d{2})?\b", re.I),
]
_WHITESPACE = re.compile(r"\s+")
_TOKEN = re.compile(r"[a-z0-9]+")

_DECISION_PATTERNS = [
    re.compile(r"\b(?:i\s+)?recommend(?:ation|ed|s)?\s*(?::|is|that|to)?\s*([^.\n]{1,120})", re.I),
    re.compile(r"\b(?:in\s+)?conclusion\s*[:,]?\s*([^.\n]{1,120})", re.I),
    re.compile(r"\b(?:final\s+)?(?:decision|verdict|answer|outcome)\s*(?::|=|is)\s*([^.\n]{1,120})", re.I),
    re.compile(
        r"^\s*(?:[-*]\s*)?((?:approve|reject|deny|escalate|freeze|block|allow|flag|"
        r"refund|cancel|proceed|hold|investigate|ship|release)\b[^.\n]{0,80})",
        re.I | re.M,
    ),
    re.compile(r"^\s*(yes|no)\b", re.I | re.M),
]
_BULLET = re.compile(r"^\s*[-*•]\s+", re.M)
_NUMBERED = re.compile(r"^\s*\d+[.)]\s+", re.M)
_HEADING = re.compile(r"^\s*#{1,6}\s+", re.M)


class LocalAnalysis(BaseModel, frozen=True):
    """Result of local analysis: weighted score plus the evidence behind it."""

    score: int = Field(ge=0, le=100)
    metrics: ConsistencyMetrics
    variance: VarianceStats
    notable_variations: list[str] = Field(default_factory=list)


def normalize_text(text: str) -> str:
    """Lowercase, collapse whitespace and blank out volatile identifiers."""
    normalized = text.strip().lower()
    for pattern in _VOLATILE_PATTERNS:
        normalized = pattern.sub("<volatile>", normalized)
    return _WHITESPACE.sub(" ", normalized)


def tool_signature(response: StructuredResponse) -> tuple[str, ...]:
    """Canonical, order-independent description of a response's tool calls."""
    return tuple(
        sorted(
            f"{call.name}:{json.dumps(call.input, sort_keys=True, default=str)}"
            for call in response.tool_calls
        )
    )


def tool_usage_consistency(responses: list[StructuredResponse]) -> float:
    """Agreement on which tools were called and with which input.

    No tools anywhere is perfect agreement. When every response used tools,
    the dominant-signature share is blended with per-tool input agreement.
    A mixed split is penalised by its distance from unanimity.
    """
    if not responses:
        return 1.0
    using = sum(1 for r in responses if r.uses_tools)
    if using == 0:
        return 1.0
    if using < len(responses):
        share = using / len(responses)
        return max(MIN_CONSISTENCY, abs(2 * share - 1))

    signatures = Counter(tool_signature(r) for r in responses)
    dominant_share = signatures.most_common(1)[0][1] / len(responses)

    inputs_by_tool: dict[str, list[str]] = {}
    for response in responses:
        for call in response.tool_calls:
            inputs_by_tool.setdefault(call.name, []).append(
                json.dumps(call.input, sort_keys=True, default=str)
            )
    agreements = [
        Counter(inputs).most_common(1)[0][1] / len(inputs)
        for inputs in inputs_by_tool.values()
    ]
    parameter_agreement = sum(agreements) / len(agreements)

    return (
        SIGNATURE_SHARE_WEIGHT * dominant_share
        + PARAMETER_AGREEMENT_WEIGHT * parameter_agreement
    )


def extract_decisions(text: str) -> list[str]:
    """Pull recommendation, conclusion and imperative phrases out of a text."""
    phrases: list[str] = []
    for pattern in _DECISION_PATTERNS:
        for match in pattern.finditer(text):
            phrase = normalize_text(match.group(1)).strip(" :,;")
            if phrase:
                phrases.append(phrase)
    return phrases


def _jaccard(left: frozenset[str], right: frozenset[str]) -> float:
    if not left and not right:
        return 1.0
    return len(left & right) / len(left | right)


def decision_consistency(responses: list[StructuredResponse]) -> tuple[float, int]:
    """Return (consistency, cluster count) over responses that state a decision.

    Near-duplicate decisions (token Jaccard >= 0.8) share a cluster.
    """
    decided = [
        frozenset(_TOKEN.findall(" ".join(phrases)))
        for phrases in (extract_decisions(r.text) for r in responses)
        if phrases
    ]
    if not decided:
        texts = {normalize_text(r.text) for r in responses}
        # Identical answers cannot disagree on a decision.
        return (1.0 if len(texts) <= 1 else NO_DECISION_CONSISTENCY), 0

    clusters: list[frozenset[str]] = []
    for tokens in decided:
        if not any(_jaccard(tokens, rep) >= DECISION_CLUSTER_JACCARD for rep in clusters):
            clusters.append(tokens)

    if len(decided) == 1:
        return 1.0, len(clusters)
    consistency = 1 - (len(clusters) - 1) / (len(decided) - 1)
    return max(MIN_CONSISTENCY, consistency), len(clusters)


def semantic_similarity(normalized_texts: list[str]) -> float:
    """Share of non-dominant answers that repeat one another."""
    if not normalized_texts:
        return 1.0
    dominant = Counter(normalized_texts).most_common(1)[0][0]
    non_exact = [text for text in normalized_texts if text != dominant]
    if not non_exact:
        return 1.0
    return max(0.0, 1 - len(set(non_exact)) / len(non_exact))


def _json_shape(value: object) -> object:
    if isinstance(value, dict):
        return tuple(sorted((key, _json_shape(item)) for key, item in value.items()))
    if isinstance(value, list):
        return ("list", _json_shape(value[0]) if value else None)
    return type(value).__name__


def structure_signature(text: str) -> object:
    """JSON key shape when the text parses as JSON, else its layout shape."""
    stripped = text.strip()
    if stripped.startswith(("{", "[")):
        try:
            return ("json", _json_shape(json.loads(stripped)))
        except ValueError:
            pass
    lines = [line for line in stripped.splitlines() if line.strip()]
    return (
        "text",
        min(len(lines), 10),
        len(_BULLET.findall(stripped)),
        len(_NUMBERED.findall(stripped)),
        len(_HEADING.findall(stripped)),
        stripped.count("```") // 2,
    )


def structural_similarity(responses: list[StructuredResponse]) -> float:
    if not responses:
        return 1.0
    shapes = Counter(repr(structure_signature(r.text)) for r in responses)
    return shapes.most_common(1)[0][1] / len(responses)


def variance_stats(responses: list[StructuredResponse]) -> VarianceStats:
    normalized = [normalize_text(r.text) for r in responses]
    lengths = [len(r.text) for r in responses]
    counts = Counter(normalized)
    return VarianceStats(
        response_count=len(responses),
        unique_responses=len(counts),
        exact_matches=counts.most_common(1)[0][1] if counts else 0,
        average_length=round(statistics.fmean(lengths)) if lengths else 0,
        length_std_dev=round(statistics.pstdev(lengths), 2) if lengths else 0.0,
    )


def weighted_score(tool_usage: float, decision: float, semantic: float) -> int:
    raw = (
        TOOL_WEIGHT * tool_usage
        + DECISION_WEIGHT * decision
        + SEMANTIC_WEIGHT * semantic
    ) * 100
    return max(0, min(100, round(raw)))


def analyze(responses: list[StructuredResponse]) -> LocalAnalysis:
    """Run every local measure over an already-filtered response set."""
    normalized = [normalize_text(r.text) for r in responses]
    tool_usage = tool_usage_consistency(responses=responses)
    decision, decision_clusters = decision_consistency(responses=responses)
    semantic = semantic_similarity(normalized_texts=normalized)
    structural = structural_similarity(responses=responses)
    variance = variance_stats(responses=responses)

    metrics = ConsistencyMetrics(
        tool_usage_consistency=round(tool_usage, 4),
        decision_consistency=round(decision, 4),
        semantic_similarity=round(semantic, 4),
        structural_similarity=round(structural, 4),
        exact_match_count=variance.exact_matches,
        unique_response_count=variance.unique_responses,
    )
    return LocalAnalysis(
        score=weighted_score(tool_usage=tool_usage, decision=decision, semantic=semantic),
        metrics=metrics,
        variance=variance,
        notable_variations=_notable_variations(
            responses=responses,
            decision_clusters=decision_clusters,
            unique_texts=variance.unique_responses,
        ),
    )


def _notable_variations(
    responses: list[StructuredResponse], decision_clusters: int, unique_texts: int
) -> list[str]:
    notes: list[str] = []
    total = len(responses)
    using = sum(1 for r in responses if r.uses_tools)
    if 0 < using < total:
        notes.append(
            f"{using} of {total} responses called tools; "
            f"{total - using} answered without tools"
        )
    elif using == total and total > 0:
        signatures = Counter(tool_signature(r) for r in responses)
        if len(signatures) > 1:
            notes.append(
                f"{len(signatures)} distinct tool-call signatures across {total} responses"
            )
    if decision_clusters > 1:
        notes.append(f"{decision_clusters} conflicting decision groups")
    if unique_texts > 1:
        notes.append(f"{unique_texts} distinct response texts after normalization")
    return notes
