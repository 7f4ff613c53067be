import json
import logging
from typing import Any, Optional

from openai import OpenAI

logging.getLogger("httpx").setLevel(logging.WARNING)


def get_json_response(
    client: OpenAI,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.7,
    model: str = "gpt-4o-mini",
) -> Optional[Any]:
    """Ask the chat model for a JSON object and decode it.

    Args:
        client: OpenAI-compatible client.
        system_prompt: Instructions, including the expected JSON shape.
        user_prompt: The material to work on.
        temperature: Sampling temperature for the LLM.
        model: Model name to use for generation.

    Returns:
        Decoded JSON value, or None if the request failed, the model
        answered nothing, or the answer was not valid JSON.
    """
    try:
        completion = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            response_format={"type": "json_object"},
            temperature=temperature,
        )
        content = completion.choices[0].message.content
    except Exception as e:
        logging.error(f"LLM request failed: {e}")
        return None

    if not content:
        logging.warning("LLM returned an empty answer")
        return None

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        logging.error(f"LLM answer is not valid JSON: {e}")
        return None
