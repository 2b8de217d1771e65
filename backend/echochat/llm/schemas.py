"""
Wire schemas for the OpenAI-compatible chat-completions contract.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel


class ChatRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatAPIMessage(BaseModel):
    role: ChatRole
    content: str


class ChatRequest(BaseModel):
    """Request body for POST {base}/chat/completions."""
    model: str
    messages: List[ChatAPIMessage]
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    stream: Optional[bool] = False


class ChatChoice(BaseModel):
    index: int
    message: ChatAPIMessage
    finish_reason: Optional[str] = None


class ChatUsage(BaseModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatResponse(BaseModel):
    id: str
    object: str
    created: int
    model: str
    choices: List[ChatChoice]
    usage: Optional[ChatUsage] = None


class AIModel(BaseModel):
    id: str
    object: str
    created: Optional[int] = None
    owned_by: Optional[str] = None


class ModelsResponse(BaseModel):
    """Response body for GET {base}/models."""
    object: str
    data: List[AIModel]


@dataclass
class APITestResult:
    """Outcome of probing an API key. Never carries an exception."""
    is_valid: bool
    error: Optional[str] = None
    models: Optional[List[AIModel]] = None

    @staticmethod
    def success(models: List[AIModel]) -> "APITestResult":
        return APITestResult(is_valid=True, models=models)

    @staticmethod
    def failure(error: str) -> "APITestResult":
        return APITestResult(is_valid=False, error=error)
