'''
Text summarization via an external LLM, memoized in the shared cache.

Failures never leave this module: a failed generation degrades to a
truncated copy of the source text.
'''

import hashlib

import structlog
from tenacity import retry, stop_after_attempt, wait_exponential

from feedbrief.cache import TTLCache
from feedbrief.llm import Generator

SUMMARY_KEY_PREFIX = 'summary_'
KEY_PREFIX_CHARS = 100
ELLIPSIS = '...'

SYSTEM_PROMPT = '''You are a technology writer creating concise summaries of news items.
You write for a blog covering new and upcoming AI products and services.
Respond with the summary only.'''

USER_PROMPT = '''Return a CLEAN summary of the following text. Do not include any extra information or explanations.
Summarize this in a few sentences: {text}'''


class EmptySummaryError(Exception):
    '''The LLM returned no text.'''


def summary_cache_key(text: str) -> str:
    '''
    Readable prefix of the text plus a digest of all of it, so texts sharing
    their first 100 characters do not share a summary.
    '''
    digest = hashlib.blake2b(text.encode('utf-8'), digest_size=8).hexdigest()
    return f'{SUMMARY_KEY_PREFIX}{text[:KEY_PREFIX_CHARS]}:{digest}'


def truncate(text: str, length: int) -> str:
    '''First length characters plus an ellipsis; text unchanged if already short enough.'''
    if len(text) <= length:
        return text
    return text[:length] + ELLIPSIS


class Summarizer:
    def __init__(
        self,
        cache: TTLCache,
        generate: Generator,
        *,
        min_length: int = 150,
        fallback_length: int = 200,
        max_tokens: int = 100,
        temperature: float = 0.5,
        attempts: int = 2,
        retry_wait: float = 1.0,
    ):
        self.cache = cache
        self.generate = generate
        self.min_length = min_length
        self.fallback_length = fallback_length
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.attempts = max(1, attempts)
        self.retry_wait = retry_wait

    async def summarize(self, text: str, max_tokens: int | None = None) -> str:
        '''
        Summarize text. Short texts come back unchanged without touching the
        cache or the LLM; LLM failures come back as a truncated fallback.
        '''
        if len(text) < self.min_length:
            return text

        key = summary_cache_key(text)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        log = structlog.get_logger()
        try:
            summary = await self._generate(text, max_tokens or self.max_tokens)
        except Exception:
            log.exception('error summarizing text with AI', text_start=text[:60])
            return truncate(text, self.fallback_length)

        self.cache.set(key, summary)
        return summary

    async def _generate(self, text: str, max_tokens: int) -> str:
        user_content = USER_PROMPT.format(text=text)

        @retry(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.retry_wait, min=self.retry_wait, max=self.retry_wait * 4),
            reraise=True,
        )
        async def _call_llm() -> str:
            result = await self.generate(SYSTEM_PROMPT, user_content, max_tokens, self.temperature)
            result = (result or '').strip()
            if not result:
                raise EmptySummaryError('LLM returned an empty summary')
            return result

        return await _call_llm()
