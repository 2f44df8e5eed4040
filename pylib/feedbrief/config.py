'''Settings loaded from the environment (and an optional .env file). Durations are in seconds.'''

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from feedbrief.errors import ConfigError
from feedbrief.llm import LLMConfig

_TRUE = {'1', 'true', 'yes', 'on'}
_FALSE = {'0', 'false', 'no', 'off'}


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name) or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, '').strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f'{name} must be an integer, got {raw!r}') from e


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, '').strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f'{name} must be a number, got {raw!r}') from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, '').strip().lower()
    if not raw:
        return default
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ConfigError(f'{name} must be a boolean, got {raw!r}')


@dataclass
class Settings:
    '''All knobs for the fetch/summarize/query pipeline.'''

    feed_url: str = ''
    item_limit: int = 10
    refresh_interval: float = 3600.0  # 1 hour
    fetch_timeout: float = 10.0
    llm: LLMConfig = field(default_factory=lambda: LLMConfig(provider='anthropic', model='claude-3-haiku-20240307'))
    max_tokens: int = 100
    temperature: float = 0.5
    batch_size: int = 3
    batch_delay: float = 1.0
    min_length_for_summarization: int = 150
    fallback_summary_length: int = 200
    summary_timeout: float = 30.0
    summary_attempts: int = 2
    cache_enabled: bool = True
    cache_ttl: float = 86400.0  # 24 hours
    # False restores slicing at both the fetch step and the query step
    single_pagination: bool = True

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> Settings:
        '''
        Build settings from env vars. Values from env_file (or ./.env) fill in
        anything not already set in the process environment.
        '''
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()
        llm = LLMConfig.from_env()
        llm.timeout = _env_float('LLM_TIMEOUT', llm.timeout)
        return cls(
            feed_url=_env_str('RSS_FEED_URL', ''),
            item_limit=_env_int('RSS_ITEM_LIMIT', 10),
            refresh_interval=_env_float('RSS_REFRESH_INTERVAL', 3600.0),
            fetch_timeout=_env_float('RSS_FETCH_TIMEOUT', 10.0),
            llm=llm,
            max_tokens=_env_int('SUMMARY_MAX_TOKENS', 100),
            temperature=_env_float('SUMMARY_TEMPERATURE', 0.5),
            batch_size=_env_int('SUMMARY_BATCH_SIZE', 3),
            batch_delay=_env_float('SUMMARY_BATCH_DELAY', 1.0),
            min_length_for_summarization=_env_int('SUMMARY_MIN_LENGTH', 150),
            fallback_summary_length=_env_int('SUMMARY_FALLBACK_LENGTH', 200),
            summary_timeout=_env_float('SUMMARY_TIMEOUT', 30.0),
            summary_attempts=_env_int('SUMMARY_ATTEMPTS', 2),
            cache_enabled=_env_bool('CACHE_ENABLED', True),
            cache_ttl=_env_float('CACHE_TTL', 86400.0),
            single_pagination=_env_bool('SINGLE_PAGINATION', True),
        )

    def validate(self) -> list[str]:
        '''Return a list of problems; empty when the settings are usable.'''
        errors: list[str] = []
        if self.llm.provider == 'anthropic' and not self.llm.api_key:
            errors.append('Anthropic API key is missing. Please set the ANTHROPIC_API_KEY environment variable.')
        if not self.feed_url:
            errors.append('RSS feed URL is missing. Please set the RSS_FEED_URL environment variable.')
        if self.item_limit <= 0:
            errors.append('RSS_ITEM_LIMIT must be positive.')
        if self.batch_size <= 0:
            errors.append('SUMMARY_BATCH_SIZE must be positive.')
        if self.batch_delay < 0:
            errors.append('SUMMARY_BATCH_DELAY must not be negative.')
        if self.summary_attempts <= 0:
            errors.append('SUMMARY_ATTEMPTS must be positive.')
        if self.cache_ttl <= 0:
            errors.append('CACHE_TTL must be positive.')
        return errors
