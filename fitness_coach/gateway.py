"""Boundary to the generative-text service.

The gateway owns the provider credential; callers only ever see prompt text
going in and completion text plus token counts coming out.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import openai
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from .config import Settings
from .errors import GatewayError
from .models import ChatMessage, TokenUsage

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to communicate with the model service"


@dataclass
class Completion:
    content: str
    usage: TokenUsage = field(default_factory=TokenUsage)


def _to_langchain(system_prompt: str, messages: List[ChatMessage]) -> List[BaseMessage]:
    converted: List[BaseMessage] = [SystemMessage(content=system_prompt)]
    for msg in messages:
        if msg.role == "assistant":
            converted.append(AIMessage(content=msg.content))
        else:
            converted.append(HumanMessage(content=msg.content))
    return converted


def _text_of(message: BaseMessage) -> str:
    """Concatenate the text blocks of a reply."""
    if isinstance(message.content, str):
        return message.content
    parts = []
    for block in message.content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "\n".join(parts)


class ModelGateway:
    """Sends composed prompts to a chat model and returns its text."""

    def __init__(self, chat_model: Optional[BaseChatModel]) -> None:
        # None means no credential was provisioned
        self._chat_model = chat_model

    @classmethod
    def from_settings(cls, settings: Settings) -> "ModelGateway":
        if not settings.openai_api_key:
            logger.warning("OPENAI_API_KEY is not configured. Plan generation will not work.")
            return cls(None)
        chat_model = ChatOpenAI(
            model=settings.openai_model,
            api_key=settings.openai_api_key,
            max_retries=0,
        )
        return cls(chat_model)

    async def complete(
        self,
        system_prompt: str,
        messages: List[ChatMessage],
        max_tokens: int = 2000,
    ) -> Completion:
        """Run one completion.

        Raises:
            GatewayError: on authentication, rate-limit, server or transport
                failures; carries the upstream message when there is one.
        """
        if self._chat_model is None:
            raise GatewayError("Model service credential is not configured")

        model = self._chat_model.bind(max_tokens=max_tokens)
        try:
            reply = await model.ainvoke(_to_langchain(system_prompt, messages))
        except openai.APIError as e:
            logger.error("Model API error: %s", e.message)
            raise GatewayError(f"Model API error: {e.message}") from e
        except Exception as e:
            logger.exception("Model call failed")
            raise GatewayError(GENERIC_FAILURE) from e

        usage_meta = getattr(reply, "usage_metadata", None) or {}
        usage = TokenUsage(
            input_tokens=usage_meta.get("input_tokens", 0),
            output_tokens=usage_meta.get("output_tokens", 0),
        )
        return Completion(content=_text_of(reply), usage=usage)
