from typing import Any, Dict, List, Optional

from ...config.constants import (
    DEFAULT_BLOCK_THRESHOLD,
    DEFAULT_HARM_CATEGORIES,
    HARM_CATEGORY_PREFIX,
    HEALTH_CHECK_MAX_TOKENS,
    HEALTH_CHECK_PROMPT,
    HEALTH_CHECK_TEMPERATURE,
)
from ...config.settings import AdapterConfig
from ...models.generation import GenerationOptions


def build_contents(text: str) -> List[Dict[str, Any]]:
    """Single user turn with one text part."""
    return [{"role": "user", "parts": [{"text": text}]}]


def normalize_harm_category(name: str) -> str:
    """'hate_speech', 'HATE_SPEECH' and 'HARM_CATEGORY_HATE_SPEECH' all map to the last form."""
    category = name.strip().upper().replace("-", "_").replace(" ", "_")
    if not category.startswith(HARM_CATEGORY_PREFIX):
        category = HARM_CATEGORY_PREFIX + category
    return category


def build_safety_settings(custom: Optional[Dict[str, str]]) -> Optional[List[Dict[str, str]]]:
    """Build safety settings for the request.

    Returns None when the caller supplied nothing, so the upstream applies its
    own defaults. Otherwise starts from the default categories at
    ``BLOCK_MEDIUM_AND_ABOVE`` and lets caller entries override or extend them.
    """
    if custom is None:
        return None

    thresholds: Dict[str, str] = {
        category: DEFAULT_BLOCK_THRESHOLD for category in DEFAULT_HARM_CATEGORIES
    }
    for name, threshold in custom.items():
        thresholds[normalize_harm_category(name)] = str(threshold).strip().upper()

    return [
        {"category": category, "threshold": threshold}
        for category, threshold in thresholds.items()
    ]


def build_generation_config(
    options: GenerationOptions,
    config: AdapterConfig
) -> Dict[str, Any]:
    generation_config: Dict[str, Any] = {
        "temperature": options.temperature if options.temperature is not None else config.temperature,
    }
    if options.max_tokens is not None:
        generation_config["max_output_tokens"] = options.max_tokens
    return generation_config


def build_request(
    prompt_text: str,
    options: Optional[GenerationOptions],
    config: AdapterConfig
) -> Dict[str, Any]:
    """Build the upstream payload for a generation call.

    The same shape is used for single-shot and streaming requests.
    """
    options = options or GenerationOptions()
    request: Dict[str, Any] = {
        "model": resolve_model(options, config),
        "contents": build_contents(prompt_text),
        "generation_config": build_generation_config(options, config),
    }

    safety_settings = build_safety_settings(options.safety_settings)
    if safety_settings:
        request["safety_settings"] = safety_settings

    return request


def build_health_request(config: AdapterConfig) -> Dict[str, Any]:
    return {
        "model": config.model_id,
        "contents": build_contents(HEALTH_CHECK_PROMPT),
        "generation_config": {
            "max_output_tokens": HEALTH_CHECK_MAX_TOKENS,
            "temperature": HEALTH_CHECK_TEMPERATURE,
        },
    }


def resolve_model(options: Optional[GenerationOptions], config: AdapterConfig) -> str:
    if options is not None and options.model:
        return options.model
    return config.model_id
