from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AwsConfig(BaseSettings):
    """Static AWS credentials (optional, the default boto3 chain is used otherwise)."""

    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "us-east-1"

    model_config = SettingsConfigDict(
        env_prefix="AWS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class BedrockConfig(BaseSettings):
    """Amazon Bedrock configuration."""

    region: str = Field(
        default="us-east-1",
        validation_alias="BEDROCK_REGION",
    )
    model_id: str = Field(
        default="amazon.nova-lite-v1:0",
        validation_alias="BEDROCK_MODEL_ID",
    )
    max_tokens: int = Field(
        default=4096,
        validation_alias="BEDROCK_MAX_TOKENS",
        ge=1,
        le=8192,
    )
    temperature: float = Field(
        default=0.0,
        validation_alias="BEDROCK_TEMPERATURE",
        ge=0.0,
        le=1.0,
    )
    top_p: float = Field(
        default=0.9,
        validation_alias="BEDROCK_TOP_P",
        ge=0.0,
        le=1.0,
    )
    api_key: SecretStr | None = Field(
        default=None,
        validation_alias="BEDROCK_API_KEY",
    )
    structured_output: bool = Field(
        default=True,
        validation_alias="BEDROCK_STRUCTURED_OUTPUT",
        description="Send the response schema as a forced tool so the model must emit valid JSON.",
    )
    timeout_seconds: float = Field(
        default=60.0,
        validation_alias="BEDROCK_TIMEOUT_SECONDS",
        gt=0,
    )
    connect_timeout_seconds: float = Field(
        default=10.0,
        validation_alias="BEDROCK_CONNECT_TIMEOUT_SECONDS",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Call Funnel Analyzer"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"
    analysis_log_file: str = "logs/analysis_pipeline.log"

    # Call scripts stored on disk, addressed by id
    call_scripts_dir: str = "assets/call-scripts"
    call_script_files: dict[str, str] = Field(default_factory=dict)

    # Stages used when an analysis request names no stage set
    default_stage_set_file: Optional[str] = "assets/call-stages.sample.json"

    min_transcript_length: int = Field(default=10, ge=1)

    # AWS
    aws: AwsConfig = Field(default_factory=AwsConfig)

    # Bedrock
    bedrock: BedrockConfig = Field(default_factory=BedrockConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def expose_diagnostics(self) -> bool:
        """Whether error responses may carry raw diagnostics."""

        return self.debug or self.environment.lower() != "production"


# Global settings instance
settings = Settings()
