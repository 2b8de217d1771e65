"""
Simulated chat backend - canned replies after a fixed delay.

Used when no provider is configured and in demos.
"""

import asyncio
import random
from typing import List, Optional

from .base import ChatBackend, ChatReply
from .schemas import ChatAPIMessage

CANNED_RESPONSES = [
    "This is a simulated response from {model}. Configure a provider to get real answers.",
    "I understand your question. Here is a detailed answer...\n\n(simulated response)",
    "Based on your question, I suggest:\n\n1. Analyze the problem\n2. Plan a solution\n"
    "3. Verify the result\n\n(simulated response)",
    "Let me help you with that.\n\nBased on an analysis by {model}, I think...\n\n(demo data)",
]


class SimulatedChatBackend(ChatBackend):
    def __init__(self, delay_seconds: float = 2.0, rng: Optional[random.Random] = None):
        self.delay_seconds = delay_seconds
        self._rng = rng or random.Random()

    async def generate(
        self,
        model_id: str,
        messages: List[ChatAPIMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatReply:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        template = self._rng.choice(CANNED_RESPONSES)
        return ChatReply(content=template.format(model=model_id), model=model_id)
