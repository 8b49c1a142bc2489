import asyncio
import json
import os
import sys
from pathlib import Path

# Add project root to path so we can import app
sys.path.append(os.getcwd())

from app.services.analysis_types import AnalysisInput, load_stage_specification
from app.services.call_analysis import CallAnalysisService
from app.services.entity_store import InMemoryEntityStore
from app.services.errors import AnalysisError, MalformedResponse
from app.services.llm_client import BedrockLlmClient


async def main():
    if len(sys.argv) < 4:
        print("Usage: python scripts/analyze_transcript.py <transcript.txt> <script.txt> <stages.json>")
        return

    transcript_path, script_path, stages_path = sys.argv[1:4]
    for path in (transcript_path, script_path, stages_path):
        if not os.path.exists(path):
            print(f"File '{path}' not found.")
            return

    with open(transcript_path, encoding="utf-8") as f:
        transcript = f.read()
    with open(script_path, encoding="utf-8") as f:
        call_script = f.read()
    stages = load_stage_specification(Path(stages_path))

    analysis_input = AnalysisInput(transcript=transcript, call_script=call_script, stages=stages)
    backend = BedrockLlmClient()
    service = CallAnalysisService(backend, InMemoryEntityStore())

    mode = "structured output" if backend.supports_schema else "free text"
    print(f"Analysing {len(analysis_input.stages)} stages with {backend.model_id} ({mode})...")
    try:
        result = await service.analyze_call(analysis_input)
    except MalformedResponse as e:
        print(f"\nMalformed response: {e}")
        print(e.raw_response)
        return
    except AnalysisError as e:
        print(f"\n{e.kind}: {e}")
        return

    print("\n--- Analysis Result ---")
    print(json.dumps(result.to_payload(), indent=2, ensure_ascii=False))
    print("-----------------------")


if __name__ == "__main__":
    asyncio.run(main())
