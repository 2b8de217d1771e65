"""
Chat Backend Base - What the orchestrator calls to get an assistant reply.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .schemas import ChatAPIMessage


@dataclass
class ChatReply:
    """Reply text plus whatever usage metadata the backend reports."""
    content: str
    model: str = ""
    usage: Dict[str, int] = field(default_factory=dict)


class ChatBackend(ABC):
    """
    Abstract source of assistant replies.

    Implementations raise on failure; the orchestrator turns any exception
    into a failed message.
    """

    @abstractmethod
    async def generate(
        self,
        model_id: str,
        messages: List[ChatAPIMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatReply:
        """
        Produce the next assistant message for a conversation.

        Args:
            model_id: Catalog/fetched model id selected for the session
            messages: Conversation history, oldest first
            temperature: Sampling temperature override
            max_tokens: Max tokens override

        Returns:
            ChatReply with the generated content
        """
        pass
