"""Text-generation backends used for pricing research.

Both providers take a prompt and hand back the raw text of the model's
answer.  Neither retries; a failed call surfaces as ``ProviderError`` and
the caller decides whether to try again.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

import anthropic
import openai

from estimator.ai.prompts import SYSTEM_PROMPT
from estimator.errors import ProviderError, ValidationError

log = logging.getLogger(__name__)

PROVIDERS = ('openai', 'anthropic')


class TextGenerator(ABC):
    """Anything that turns a prompt into raw response text."""

    name = 'base'

    @abstractmethod
    def generate(self, prompt: str) -> str:
        ...


class OpenAIProvider(TextGenerator):
    name = 'openai'

    def __init__(self, api_key: str, model: str = 'gpt-4o', timeout: float = 60,
                 temperature: float = 0.3) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self._client: Optional[openai.OpenAI] = None

    @property
    def client(self) -> openai.OpenAI:
        if self._client is None:
            if not self.api_key:
                raise ProviderError('OpenAI API key not configured on server')
            self._client = openai.OpenAI(
                api_key=self.api_key, timeout=self.timeout, max_retries=0
            )
        return self._client

    def generate(self, prompt: str) -> str:
        client = self.client
        try:
            completion = client.chat.completions.create(
                model=self.model,
                messages=[
                    {'role': 'system', 'content': SYSTEM_PROMPT},
                    {'role': 'user', 'content': prompt},
                ],
                response_format={'type': 'json_object'},
                temperature=self.temperature,
            )
        except openai.OpenAIError as e:
            log.error("OpenAI API error: %s", e)
            raise ProviderError(str(e) or 'Failed to call OpenAI API') from e
        return completion.choices[0].message.content or '{}'


class AnthropicProvider(TextGenerator):
    name = 'anthropic'

    def __init__(self, api_key: str, model: str = 'claude-3-5-sonnet-20241022',
                 timeout: float = 60, temperature: float = 0.3,
                 max_tokens: int = 2000) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client: Optional[anthropic.Anthropic] = None

    @property
    def client(self) -> anthropic.Anthropic:
        if self._client is None:
            if not self.api_key:
                raise ProviderError('Anthropic API key not configured on server')
            self._client = anthropic.Anthropic(
                api_key=self.api_key, timeout=self.timeout, max_retries=0
            )
        return self._client

    def generate(self, prompt: str) -> str:
        client = self.client
        try:
            message = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{'role': 'user', 'content': prompt}],
            )
        except anthropic.AnthropicError as e:
            log.error("Anthropic API error: %s", e)
            raise ProviderError(str(e) or 'Failed to call Anthropic API') from e
        if not message.content:
            return '{}'
        block = message.content[0]
        return block.text if getattr(block, 'type', None) == 'text' else '{}'


def get_provider(name: str, config: Mapping[str, Any]) -> TextGenerator:
    """Build the provider called ``name`` from app config."""
    timeout = config.get('AI_REQUEST_TIMEOUT', 60)
    if name == 'openai':
        return OpenAIProvider(
            api_key=config.get('OPENAI_API_KEY', ''),
            model=config.get('OPENAI_MODEL', 'gpt-4o'),
            timeout=timeout,
        )
    if name == 'anthropic':
        return AnthropicProvider(
            api_key=config.get('ANTHROPIC_API_KEY', ''),
            model=config.get('ANTHROPIC_MODEL', 'claude-3-5-sonnet-20241022'),
            timeout=timeout,
        )
    raise ValidationError(f"Unknown AI provider '{name}'", details={'allowed': list(PROVIDERS)})
