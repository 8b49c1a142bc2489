"""Helpers to construct the call analysis prompt for the reasoning model.

Given a transcript, the call script and the stage definitions, we emit a
single instruction prompt containing:
* The analyst persona and the raw material (script, stages, transcript).
* The per-stage task, the chronological sequence task and the drop-off rule.
* A strict JSON contract when the backend cannot enforce a schema itself.

The output depends only on the input so identical requests always yield
identical prompts.
"""

from __future__ import annotations

import json

from .analysis_types import AnalysisInput, StageDefinition

ANALYST_PERSONA = (
    "You are an expert call quality analyst. Analyze the following conversation "
    "transcript against the provided call script and call stages to determine if "
    "all required stages are covered."
)

DROP_OFF_RULE = (
    "Identify the drop-off stage: the first stage, in the order listed in CALL STAGES "
    "REQUIREMENTS, with required=true whose finding has present=false. "
    "If all required stages are present, set dropOff to null."
)

# Shape spelled out for backends without structured-output support.
JSON_CONTRACT = (
    "Respond only with valid JSON using exactly this structure:\n"
    "{\n"
    '  "stages": [{"stageName": string, "present": boolean, "evidence": string}],\n'
    '  "dropOff": string | null,\n'
    '  "callStageSequence": [string],\n'
    '  "summary": string\n'
    "}\n"
    "Do not wrap the JSON in markdown code fences and do not write any text "
    "before or after the JSON object."
)


def _format_stage_requirements(stages: tuple[StageDefinition, ...]) -> str:
    payload = [stage.to_payload() for stage in stages]
    return json.dumps(payload, ensure_ascii=False, indent=2)


def build_prompt(analysis_input: AnalysisInput, *, schema_enforced: bool = False) -> str:
    """Compose the analysis prompt for ``analysis_input``."""

    stage_names = json.dumps(list(analysis_input.stage_names), ensure_ascii=False)

    sections = [
        ANALYST_PERSONA,
        f"CALL SCRIPT:\n{analysis_input.call_script.strip()}",
        f"CALL STAGES REQUIREMENTS:\n{_format_stage_requirements(analysis_input.stages)}",
        f"TRANSCRIPT TO ANALYZE:\n{analysis_input.transcript.strip()}",
        (
            "ANALYSIS TASK:\n"
            "For each stage defined in the call stages array, determine:\n"
            "1. The stageName (exactly as written in the call stages array)\n"
            "2. Is this stage present in the transcript? (true/false)\n"
            "3. What evidence supports this? (quote relevant parts of the transcript "
            "that demonstrate the stage was covered, or explain what is missing)\n\n"
            "Return the stages as an array with one item per stage, where each item has: "
            "stageName (string), present (boolean), and evidence (string)."
        ),
        (
            "Additionally, extract the chronological sequence of stages as they occur in "
            "the conversation as callStageSequence. The same stage can appear multiple "
            "times. Use only the provided stage names and list them in the order they "
            "appear in the transcript."
        ),
        DROP_OFF_RULE,
        f"STAGES TO ANALYZE: {stage_names}",
        (
            "Provide a brief summary describing which stages were found and any "
            "observations about the call quality."
        ),
    ]
    if not schema_enforced:
        sections.append(JSON_CONTRACT)

    return "\n\n".join(sections) + "\n"


__all__ = ["build_prompt", "ANALYST_PERSONA", "DROP_OFF_RULE", "JSON_CONTRACT"]
