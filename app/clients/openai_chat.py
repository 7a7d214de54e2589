import logging
from dataclasses import dataclass, field

from openai import OpenAI

from app.config import get_settings
from app.errors import PipelineFailure

logger = logging.getLogger(__name__)


@dataclass
class Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class Completion:
    text: str
    usage: Usage = field(default_factory=Usage)


def get_openai_client() -> OpenAI | None:
    settings = get_settings()
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set, research pipeline disabled")
        return None
    return OpenAI(api_key=settings.OPENAI_API_KEY)


def complete(
    system_prompt: str,
    user_prompt: str,
    temperature: float,
    max_tokens: int,
    model: str | None = None,
) -> Completion:
    """Run one chat completion and return its text plus token usage.

    Provider errors propagate to the caller; the pipeline owns failure handling.
    """
    client = get_openai_client()
    if client is None:
        raise PipelineFailure("OPENAI_API_KEY not set")

    response = client.chat.completions.create(
        model=model or get_settings().OPENAI_MODEL,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        temperature=temperature,
        max_tokens=max_tokens,
    )

    text = ""
    if response.choices:
        text = response.choices[0].message.content or ""

    usage = Usage()
    if response.usage is not None:
        usage = Usage(
            prompt_tokens=response.usage.prompt_tokens or 0,
            completion_tokens=response.usage.completion_tokens or 0,
            total_tokens=response.usage.total_tokens or 0,
        )
    return Completion(text=text, usage=usage)
