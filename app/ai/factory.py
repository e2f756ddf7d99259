from app.ai.config import load_ai_config
from app.ai.types import CompletionClient

from app.ai.providers.openai_provider import OpenAIProvider


def get_completion_client() -> CompletionClient:
    cfg = load_ai_config()

    if cfg.provider == "openai":
        return OpenAIProvider(model=cfg.model, high_quality_model=cfg.high_quality_model)

    raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
