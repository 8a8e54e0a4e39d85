"""Server configuration via environment variables, plus the quality and pass tables.

The tables are immutable pydantic models bundled into :class:`AnalysisSettings`,
which the analyzer and the pipeline receive explicitly. Tests build their own
settings instead of patching module globals.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import InvalidInputError
from .types import ProviderName, QualityLevel

VALID_THINKING_LEVELS = {"minimal", "low", "medium", "high"}

INLINE_SIZE_LIMIT = 20 * 1024 * 1024  # 20 MiB
MAX_UPLOAD_SIZE = 100 * 1024 * 1024  # 100 MiB
MOONSHOT_BASE_URL = "https://api.moonshot.ai/v1"


class GenerationSettings(BaseModel):
    """Resolved parameters for exactly one model call."""

    model_config = ConfigDict(frozen=True)

    model: str
    max_output_tokens: int = Field(gt=0)
    temperature: float = Field(ge=0.0, le=2.0)
    thinking_level: str | None = None
    top_p: float | None = None


class QualityProfile(BaseModel):
    """One quality tier.

    ``model`` is used for the single-call path and for the reasoning-heavy
    agentic passes; ``light_model`` serves the structural passes. Tiers where
    both are the same model run the whole pipeline on it.
    """

    model_config = ConfigDict(frozen=True)

    provider: ProviderName
    model: str
    light_model: str
    max_output_tokens: int = Field(gt=0)
    temperature: float = Field(ge=0.0, le=2.0)
    thinking_level: str | None = None
    top_p: float | None = None
    fixed_temperature: float | None = None
    fallback: QualityLevel | None = None
    label: str = ""

    @field_validator("thinking_level")
    @classmethod
    def validate_thinking_level(cls, value: str | None) -> str | None:
        if value is None:
            return None
        level = value.strip().lower()
        if level not in VALID_THINKING_LEVELS:
            allowed = ", ".join(sorted(VALID_THINKING_LEVELS))
            raise ValueError(f"Invalid thinking level '{value}'. Allowed: {allowed}")
        return level


class PassSpec(BaseModel):
    """Static description of one agentic pass."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(ge=1)
    name: str
    deep: bool
    max_output_tokens: int = Field(gt=0)
    temperature: float = Field(ge=0.0, le=2.0)


class ContextLimits(BaseModel):
    """How many characters of a prior pass each later pass forwards."""

    model_config = ConfigDict(frozen=True)

    decomposition_for_motion: int = Field(default=5000, gt=0)
    decomposition_for_codegen: int = Field(default=4000, gt=0)
    motion_for_codegen: int = Field(default=6000, gt=0)
    code_for_verification: int = Field(default=6000, gt=0)
    decomposition_for_verification: int = Field(default=3000, gt=0)


QUALITY_PROFILES: dict[QualityLevel, QualityProfile] = {
    QualityLevel.FAST: QualityProfile(
        provider="gemini",
        model="gemini-2.5-flash",
        light_model="gemini-2.5-flash",
        max_output_tokens=3072,
        temperature=0.4,
        fallback=QualityLevel.BALANCED,
        label="Fast — Gemini 2.5 Flash, production stable",
    ),
    QualityLevel.BALANCED: QualityProfile(
        provider="gemini",
        model="gemini-3-flash-preview",
        light_model="gemini-3-flash-preview",
        max_output_tokens=8192,
        temperature=0.2,
        thinking_level="high",
        label="Balanced — Gemini 3 Flash with thinking",
    ),
    QualityLevel.PRECISE: QualityProfile(
        provider="gemini",
        model="gemini-3-pro-preview",
        light_model="gemini-3-flash-preview",
        max_output_tokens=16384,
        temperature=0.1,
        thinking_level="high",
        label="Precise — Gemini 3 Pro for deep reasoning, Flash for structure",
    ),
    QualityLevel.KIMI: QualityProfile(
        provider="kimi",
        model="kimi-k2.5",
        light_model="kimi-k2.5",
        max_output_tokens=8192,
        temperature=1.0,
        top_p=0.95,
        fixed_temperature=1.0,
        label="Kimi K2.5 — strong visual-to-code, inline video only",
    ),
}

PASS_SPECS: tuple[PassSpec, ...] = (
    PassSpec(number=1, name="Scene Decomposition", deep=False, max_output_tokens=8192, temperature=0.2),
    PassSpec(number=2, name="Deep Motion Analysis", deep=True, max_output_tokens=16384, temperature=0.1),
    PassSpec(number=3, name="Code Generation", deep=True, max_output_tokens=16384, temperature=0.1),
    PassSpec(number=4, name="Self-Verification", deep=False, max_output_tokens=8192, temperature=0.2),
)


class AnalysisSettings(BaseModel):
    """Everything the analyzer and pipeline need to choose models and bounds."""

    model_config = ConfigDict(frozen=True)

    quality_profiles: dict[QualityLevel, QualityProfile] = Field(
        default_factory=lambda: dict(QUALITY_PROFILES)
    )
    passes: tuple[PassSpec, ...] = PASS_SPECS
    context_limits: ContextLimits = Field(default_factory=ContextLimits)
    inline_limit_bytes: int = Field(default=INLINE_SIZE_LIMIT, gt=0)
    file_poll_interval: float = Field(default=2.0, gt=0)
    file_poll_timeout: float = Field(default=60.0, gt=0)
    request_timeout: float = Field(default=300.0, gt=0)

    def profile(self, quality: QualityLevel) -> QualityProfile:
        try:
            return self.quality_profiles[quality]
        except KeyError:
            raise InvalidInputError(f"Quality tier not configured: {quality.value}") from None

    def pass_spec(self, number: int) -> PassSpec:
        for spec in self.passes:
            if spec.number == number:
                return spec
        raise KeyError(f"No pass numbered {number}")

    def single_call_generation(self, quality: QualityLevel) -> GenerationSettings:
        """Parameters for the one-shot analyzer, straight from the tier."""
        p = self.profile(quality)
        return GenerationSettings(
            model=p.model,
            max_output_tokens=p.max_output_tokens,
            temperature=p.fixed_temperature if p.fixed_temperature is not None else p.temperature,
            thinking_level=p.thinking_level,
            top_p=p.top_p,
        )

    def pass_generation(self, number: int, quality: QualityLevel) -> GenerationSettings:
        """Parameters for one agentic pass.

        Deep passes get the tier's main model, structural passes its light
        model; budgets and temperature come from the pass table.
        """
        spec = self.pass_spec(number)
        p = self.profile(quality)
        temperature = p.fixed_temperature if p.fixed_temperature is not None else spec.temperature
        return GenerationSettings(
            model=p.model if spec.deep else p.light_model,
            max_output_tokens=spec.max_output_tokens,
            temperature=temperature,
            thinking_level=p.thinking_level,
            top_p=p.top_p,
        )


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment."""

    gemini_api_key: str = Field(default="")
    moonshot_api_key: str = Field(default="")
    moonshot_base_url: str = Field(default=MOONSHOT_BASE_URL)
    inline_limit_bytes: int = Field(default=INLINE_SIZE_LIMIT)
    max_upload_bytes: int = Field(default=MAX_UPLOAD_SIZE)
    file_poll_interval: float = Field(default=2.0)
    file_poll_timeout: float = Field(default=60.0)
    request_timeout: float = Field(default=300.0)
    retry_max_attempts: int = Field(default=3)
    retry_base_delay: float = Field(default=1.0)
    retry_max_delay: float = Field(default=60.0)
    tracing_enabled: bool = Field(default=False)
    mlflow_tracking_uri: str = Field(default="")
    mlflow_experiment_name: str = Field(default="animspec-mcp")

    @field_validator("inline_limit_bytes", "max_upload_bytes", "retry_max_attempts")
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Configuration values must be >= 1")
        return value

    @field_validator(
        "file_poll_interval", "file_poll_timeout", "request_timeout",
        "retry_base_delay", "retry_max_delay",
    )
    @classmethod
    def validate_positive_floats(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Durations must be > 0")
        return value

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        tracking_uri = os.getenv("MLFLOW_TRACKING_URI", "")
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            moonshot_api_key=os.getenv("MOONSHOT_API_KEY", ""),
            moonshot_base_url=os.getenv("MOONSHOT_BASE_URL", MOONSHOT_BASE_URL),
            inline_limit_bytes=int(os.getenv("ANIMSPEC_INLINE_LIMIT_BYTES", str(INLINE_SIZE_LIMIT))),
            max_upload_bytes=int(os.getenv("ANIMSPEC_MAX_UPLOAD_BYTES", str(MAX_UPLOAD_SIZE))),
            file_poll_interval=float(os.getenv("ANIMSPEC_FILE_POLL_INTERVAL", "2.0")),
            file_poll_timeout=float(os.getenv("ANIMSPEC_FILE_POLL_TIMEOUT", "60.0")),
            request_timeout=float(os.getenv("ANIMSPEC_PIPELINE_TIMEOUT", "300.0")),
            retry_max_attempts=int(os.getenv("ANIMSPEC_RETRY_MAX_ATTEMPTS", "3")),
            retry_base_delay=float(os.getenv("ANIMSPEC_RETRY_BASE_DELAY", "1.0")),
            retry_max_delay=float(os.getenv("ANIMSPEC_RETRY_MAX_DELAY", "60.0")),
            tracing_enabled=(
                os.getenv("ANIMSPEC_TRACING_ENABLED", "").lower() != "false" and bool(tracking_uri)
            ),
            mlflow_tracking_uri=tracking_uri,
            mlflow_experiment_name=os.getenv("MLFLOW_EXPERIMENT_NAME", "animspec-mcp"),
        )


# Singleton, initialised on first access.
_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def update_config(**overrides: object) -> ServerConfig:
    """Patch the live config."""
    global _config
    cfg = get_config()
    data = cfg.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    _config = ServerConfig(**data)
    return _config


def default_settings(cfg: ServerConfig | None = None) -> AnalysisSettings:
    """Build AnalysisSettings from the built-in tables and the live config bounds."""
    cfg = cfg or get_config()
    return AnalysisSettings(
        inline_limit_bytes=cfg.inline_limit_bytes,
        file_poll_interval=cfg.file_poll_interval,
        file_poll_timeout=cfg.file_poll_timeout,
        request_timeout=cfg.request_timeout,
    )
