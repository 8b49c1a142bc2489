from __future__ import annotations

import json

from app.services.analysis_types import AnalysisInput, StageDefinition
from app.services.prompt_builder import JSON_CONTRACT, build_prompt


def test_build_prompt_is_deterministic(sales_input):
    assert build_prompt(sales_input) == build_prompt(sales_input)
    assert build_prompt(sales_input, schema_enforced=True) == build_prompt(
        sales_input, schema_enforced=True
    )


def test_prompt_lists_every_stage_once_in_directive(sales_input):
    prompt = build_prompt(sales_input)

    directive = [line for line in prompt.splitlines() if line.startswith("STAGES TO ANALYZE:")]
    assert directive == ['STAGES TO ANALYZE: ["Introduction", "Pitch", "Closing"]']


def test_prompt_carries_script_transcript_and_rules(sales_input):
    prompt = build_prompt(sales_input)

    assert sales_input.call_script in prompt
    assert "Our new terminal settles payments" in prompt
    assert '"keyPoints"' in prompt
    assert "callStageSequence" in prompt
    assert "required=true" in prompt and "present=false" in prompt
    assert "set dropOff to null" in prompt
    assert "summary" in prompt


def test_free_text_mode_forbids_markdown_fences(sales_input):
    free_text = build_prompt(sales_input, schema_enforced=False)
    enforced = build_prompt(sales_input, schema_enforced=True)

    assert JSON_CONTRACT in free_text
    assert "markdown code fences" in free_text
    assert JSON_CONTRACT not in enforced


def test_prompt_follows_declared_stage_order():
    analysis_input = AnalysisInput(
        transcript="Agent: hello there, closing now.",
        call_script="Script",
        stages=(
            StageDefinition(stage_name="Zeta", required=False),
            StageDefinition(stage_name="Alpha", required=True),
        ),
    )

    prompt = build_prompt(analysis_input)

    assert 'STAGES TO ANALYZE: ["Zeta", "Alpha"]' in prompt
    assert prompt.index('"stageName": "Zeta"') < prompt.index('"stageName": "Alpha"')


def test_stage_names_containing_commas_stay_distinct():
    analysis_input = AnalysisInput(
        transcript="Agent: hello there, here is part two of the pitch.",
        call_script="Script",
        stages=(
            StageDefinition(stage_name="Pitch, part 2", required=True),
            StageDefinition(stage_name="Closing", required=True),
        ),
    )

    prompt = build_prompt(analysis_input)

    directive = next(
        line for line in prompt.splitlines() if line.startswith("STAGES TO ANALYZE:")
    )
    names = json.loads(directive.split(":", 1)[1])
    assert names == ["Pitch, part 2", "Closing"]
