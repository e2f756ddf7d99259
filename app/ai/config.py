import os
from dataclasses import dataclass

from app.core.config.extraction import get_extraction_value


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    high_quality_model: str


def load_ai_config() -> AIConfig:
    provider = os.getenv("AI_PROVIDER", "openai").strip().lower()
    model = (
        os.getenv("AI_MODEL")
        or str(get_extraction_value("strategy.baseline_model", "gpt-4o-mini"))
    ).strip()
    high_quality_model = (
        os.getenv("AI_MODEL_HIGH_QUALITY")
        or str(get_extraction_value("strategy.high_quality_model", "gpt-4o"))
    ).strip()
    return AIConfig(provider=provider, model=model, high_quality_model=high_quality_model)
