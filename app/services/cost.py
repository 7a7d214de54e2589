from app.config import get_settings


def estimate_cost(prompt_tokens: int, completion_tokens: int, total_tokens: int | None = None) -> dict:
    settings = get_settings()
    prompt_cost = prompt_tokens / 1000 * settings.PROMPT_PRICE_PER_1K
    completion_cost = completion_tokens / 1000 * settings.COMPLETION_PRICE_PER_1K
    if total_tokens is None:
        total_tokens = prompt_tokens + completion_tokens
    return {
        "promptTokens": prompt_tokens,
        "completionTokens": completion_tokens,
        "totalTokens": total_tokens,
        "promptCost": prompt_cost,
        "completionCost": completion_cost,
        "totalCost": prompt_cost + completion_cost,
    }
