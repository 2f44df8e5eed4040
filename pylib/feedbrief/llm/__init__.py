'''
LLM provider abstraction for summarization. Supports Anthropic (Claude) and OpenAI-compatible APIs.

The rest of the package only sees the generator contract:
    await generate(system_prompt, user_prompt, max_tokens, temperature) -> str
'''

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

DEFAULT_ANTHROPIC_MODEL = 'claude-3-haiku-20240307'

Generator = Callable[[str, str, int, float], Awaitable[str]]


@dataclass
class LLMConfig:
    '''Configuration for LLM calls.'''

    provider: str  # 'anthropic' | 'openai'
    model: str
    api_key: str | None = None
    base_url: str | None = None  # For openai: e.g. http://localhost:8080/v1
    timeout: float = 30.0

    @classmethod
    def from_env(cls, provider: str | None = None, model: str | None = None) -> LLMConfig:
        '''Build config from env vars.'''
        prov = (provider or os.environ.get('LLM_PROVIDER') or 'anthropic').lower()
        if prov == 'anthropic':
            return cls(
                provider='anthropic',
                model=model or os.environ.get('LLM_MODEL') or os.environ.get('ANTHROPIC_MODEL') or DEFAULT_ANTHROPIC_MODEL,
                api_key=os.environ.get('ANTHROPIC_API_KEY'),
            )
        if prov == 'openai':
            return cls(
                provider='openai',
                model=model or os.environ.get('LLM_MODEL') or '',
                api_key=os.environ.get('OPENAI_API_KEY') or os.environ.get('LLM_API_KEY'),
                base_url=os.environ.get('OPENAI_API_BASE') or os.environ.get('LLM_BASE_URL') or 'http://localhost:8080/v1',
            )
        raise ValueError(f'Unknown LLM provider: {prov}. Use anthropic or openai.')


async def call_llm(
    system: str,
    user_content: str,
    config: LLMConfig,
    max_tokens: int = 100,
    temperature: float = 0.5,
) -> str:
    '''
    Call the configured LLM. Returns the assistant text.
    '''
    if config.provider == 'anthropic':
        return await _call_anthropic(system, user_content, config, max_tokens, temperature)
    if config.provider == 'openai':
        return await _call_openai(system, user_content, config, max_tokens, temperature)
    raise ValueError(f'Unknown provider: {config.provider}')


def make_generator(config: LLMConfig) -> Generator:
    '''Bind config into a callable matching the generator contract.'''

    async def generate(system: str, user_content: str, max_tokens: int, temperature: float) -> str:
        return await call_llm(system, user_content, config, max_tokens=max_tokens, temperature=temperature)

    return generate


async def _call_anthropic(
    system: str, user_content: str, config: LLMConfig, max_tokens: int, temperature: float
) -> str:
    from anthropic import AsyncAnthropic

    client = AsyncAnthropic(api_key=config.api_key, timeout=config.timeout)
    msg = await client.messages.create(
        model=config.model,
        max_tokens=max_tokens,
        temperature=temperature,
        system=system,
        messages=[{'role': 'user', 'content': user_content}],
    )
    return msg.content[0].text


async def _call_openai(
    system: str, user_content: str, config: LLMConfig, max_tokens: int, temperature: float
) -> str:
    from openai import AsyncOpenAI

    if not config.model:
        raise ValueError('LLM_MODEL required for OpenAI-compatible provider (e.g. mistral, Llama-3.2-1B)')
    client = AsyncOpenAI(
        base_url=config.base_url,
        api_key=config.api_key or 'not-needed',  # Local servers often skip auth
        timeout=config.timeout,
    )
    resp = await client.chat.completions.create(
        model=config.model,
        max_tokens=max_tokens,
        temperature=temperature,
        messages=[
            {'role': 'system', 'content': system},
            {'role': 'user', 'content': user_content},
        ],
    )
    return resp.choices[0].message.content or ''
