"""Prompt construction for the grading model."""

import json

from det_eval.grading.domain.grader import GradingContext
from det_eval.scheduling.domain.response import StructuredResponse

MAX_PROMPT_CHARS = 100_000

GRADER_SYSTEM_PROMPT = """\
ROLE: You grade the determinism of an LLM system-prompt and user-prompt pair \
across repeated runs with identical settings.

GOAL: Output one letter grade (A-F) plus concise evidence. Determinism means \
the model makes the same decisions and conveys the same meaning every run. \
Judge only from the data provided.

NORMALIZATION
1. Trim whitespace and collapse runs of spaces and newlines.
2. Compare case-insensitively for exact matches.
3. Ignore volatile substrings such as timestamps, UUIDs and request IDs.

COMPARISON, MOST IMPORTANT FIRST
1. Action and decision consistency: same tools called, same order, same \
arguments after normalization. Without tools: the same stated decisions.
2. Semantic equivalence: paraphrases that keep every task-relevant fact count \
as equivalent.
3. Structure: identical JSON or document shape, stable field types.

GRADES
A: decision, structure and semantic rates all >= 0.98.
B: all three rates >= 0.95 and no contradictory decisions.
C: all three rates >= 0.85 and no harmful decision flips.
D: any rate between 0.60 and 0.85.
F: any rate below 0.60, or any decision flip such as a tool being called in \
some runs and not others.

OUTPUT: return only this JSON object:
{
  "grade": "A|B|C|D|F",
  "score": 0,
  "metrics": {
    "decision_consistency_rate": 0.0,
    "structure_consistency_rate": 0.0,
    "semantic_equivalence_rate": 0.0,
    "exact_text_rate": 0.0,
    "n_runs": 0
  },
  "notable_variations": ["short note on the most significant inconsistency"],
  "notes": "at most 300 characters explaining the grade"
}
"""


def _format_response(index: int, response: StructuredResponse) -> str:
    parts = [f"--- Response {index} ---", response.text]
    if response.tool_calls:
        outcomes = {record.call_id: record for record in response.tool_call_records}
        parts.append("Tool calls:")
        for call in response.tool_calls:
            line = f"- {call.name}({json.dumps(call.input, sort_keys=True, default=str)})"
            record = outcomes.get(call.id)
            if record is not None:
                line += " -> ok" if record.success else f" -> error: {record.error}"
            parts.append(line)
    return "\n".join(parts)


def build_grader_prompt(
    responses: list[StructuredResponse], context: GradingContext
) -> str:
    """Embed every response, with its tool calls, in one grading prompt.

    The result is cut at MAX_PROMPT_CHARS.
    """
    header = []
    if context.user_prompt:
        header.append(f"Context - the user prompt every run received:\n{context.user_prompt}")
    if context.tool_mode != "none":
        header.append(f"Tool mode: {context.tool_mode}")
    header.append(
        f"Determine the level of determinism in these {len(responses)} responses:"
    )
    body = "\n\n".join(
        _format_response(index=i + 1, response=response)
        for i, response in enumerate(responses)
    )
    prompt = "\n\n".join(header) + "\n\n" + body
    return prompt[:MAX_PROMPT_CHARS]
