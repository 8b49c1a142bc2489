"""Thin Bedrock client wrapper for call analysis invocations."""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Mapping, Optional

from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from app.config.settings import BedrockConfig, settings
from app.services.aws import create_boto3_client
from app.services.errors import BackendUnavailable

logger = logging.getLogger(__name__)

ANALYSIS_TOOL_NAME = "record_call_analysis"


def _decode_bedrock_api_key(secret_value: Optional[str]) -> tuple[str, str] | None:
    """Decode the BEDROCK_API_KEY secret into access/secret key components."""

    if not secret_value:
        return None

    try:
        decoded_bytes = base64.b64decode(secret_value.strip())
    except ValueError:
        decoded_bytes = secret_value.encode("utf-8", "ignore")

    filtered = "".join(chr(b) for b in decoded_bytes if 31 < b < 127)
    if ":" not in filtered:
        return None
    access_key, secret_key = filtered.split(":", 1)
    return access_key, secret_key


def _build_client(config: BedrockConfig) -> Any:
    api_key_tuple = None
    if config.api_key:
        api_key_tuple = _decode_bedrock_api_key(config.api_key.get_secret_value())

    # Single attempt: retry policy belongs to whoever calls the analysis.
    boto_config = Config(
        read_timeout=config.timeout_seconds,
        connect_timeout=config.connect_timeout_seconds,
        retries={"total_max_attempts": 1, "mode": "standard"},
    )
    return create_boto3_client(
        "bedrock-runtime",
        region_name=config.region,
        aws_access_key_id=api_key_tuple[0] if api_key_tuple else None,
        aws_secret_access_key=api_key_tuple[1] if api_key_tuple else None,
        config=boto_config,
    )


class BedrockLlmClient:
    """Invoke Amazon Bedrock models with standard configuration.

    ``supports_schema`` tells callers whether a response schema will be
    enforced. When it is, the schema is sent as a single forced tool and the
    tool input is returned serialized as JSON text; otherwise the model's free
    text is returned untouched.
    """

    def __init__(
        self,
        config: BedrockConfig | None = None,
        *,
        client: Any | None = None,
    ) -> None:
        self._config = config or settings.bedrock
        self._model_id = self._config.model_id

        if client is not None:
            self._client = client
        else:
            try:
                self._client = _build_client(self._config)
            except (BotoCoreError, ValueError) as exc:  # pragma: no cover - configuration issue
                logger.warning("Could not initialise Bedrock client: %s", exc)
                self._client = None

    @property
    def supports_schema(self) -> bool:
        return self._config.structured_output

    @property
    def model_id(self) -> str:
        return self._model_id

    def _request_kwargs(
        self,
        prompt: str,
        schema: Mapping[str, Any] | None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "modelId": self._model_id,
            "messages": [{"role": "user", "content": [{"text": prompt}]}],
            "inferenceConfig": {
                "maxTokens": self._config.max_tokens,
                "temperature": self._config.temperature,
                "topP": self._config.top_p,
            },
        }
        if schema is not None and self.supports_schema:
            kwargs["toolConfig"] = {
                "tools": [
                    {
                        "toolSpec": {
                            "name": ANALYSIS_TOOL_NAME,
                            "description": "Record the structured call stage analysis.",
                            "inputSchema": {"json": dict(schema)},
                        }
                    }
                ],
                "toolChoice": {"tool": {"name": ANALYSIS_TOOL_NAME}},
            }
        return kwargs

    @staticmethod
    def _extract_text(response: Mapping[str, Any]) -> str:
        content_blocks = (
            response.get("output", {})
            .get("message", {})
            .get("content", [])
        )
        for block in content_blocks:
            tool_use = block.get("toolUse")
            if tool_use and "input" in tool_use:
                return json.dumps(tool_use["input"], ensure_ascii=False)
        texts = [block.get("text", "") for block in content_blocks if block.get("text")]
        return "\n".join(texts).strip()

    async def invoke(
        self,
        prompt: str,
        schema: Mapping[str, Any] | None = None,
    ) -> str:
        """Run a Bedrock ``converse`` call and return the raw textual output."""

        if not self._client or not self._model_id:
            raise BackendUnavailable("Bedrock client is not configured.")

        request_kwargs = self._request_kwargs(prompt, schema)

        def _call() -> str:
            response = self._client.converse(**request_kwargs)
            return self._extract_text(response)

        try:
            result = await run_in_threadpool(_call)
        except (BotoCoreError, ClientError) as exc:
            raise BackendUnavailable(f"Bedrock invocation failed: {exc}") from exc

        if not result:
            raise BackendUnavailable("Bedrock returned an empty response.")
        return result


__all__ = ["BedrockLlmClient", "ANALYSIS_TOOL_NAME"]
