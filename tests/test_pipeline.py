import asyncio
import random
import unittest

from feedbrief.cache import TTLCache
from feedbrief.models import PipelineResult, RawFeedItem
from feedbrief.pipeline import NO_SUMMARY, UNAVAILABLE_SUMMARY, BatchPipeline, chunked


class EchoSummarizer:
    '''Returns "summary:<text>" after a random delay, tracking concurrency.'''

    def __init__(self, max_delay=0.02, fail_on=(), hang_on=()):
        self.max_delay = max_delay
        self.fail_on = set(fail_on)
        self.hang_on = set(hang_on)
        self.calls = []
        self.active = 0
        self.peak = 0

    async def summarize(self, text, max_tokens=None):
        self.calls.append(text)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            if text in self.hang_on:
                await asyncio.sleep(60)
            await asyncio.sleep(random.uniform(0, self.max_delay))
            if text in self.fail_on:
                raise RuntimeError('boom')
            return f'summary:{text}'
        finally:
            self.active -= 1


class StubFetcher:
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def fetch(self, feed_url, limit=None, offset=0):
        self.calls.append((feed_url, limit, offset))
        return self.result


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def items(n):
    return [RawFeedItem(title=f'T{i}', description=f'text {i}', link=f'https://x.example/{i}') for i in range(n)]


class TestChunked(unittest.TestCase):
    def test_sizes(self):
        self.assertEqual([len(c) for c in chunked(list(range(7)), 3)], [3, 3, 1])
        self.assertEqual(chunked([], 3), [])

    def test_rejects_non_positive(self):
        with self.assertRaises(ValueError):
            chunked([1], 0)


class TestBatchPipeline(unittest.IsolatedAsyncioTestCase):
    def make(self, summarizer, fetcher=None, **kwargs):
        self.sleep = SleepRecorder()
        kwargs.setdefault('batch_delay', 1.5)
        return BatchPipeline(fetcher or StubFetcher(PipelineResult.empty()), summarizer, sleep=self.sleep, **kwargs)

    async def test_order_preserved_with_random_latency(self):
        summarizer = EchoSummarizer()
        pipeline = self.make(summarizer, batch_size=4)
        raw = items(10)
        out = await pipeline.process(raw)
        self.assertEqual([s.summary for s in out], [f'summary:text {i}' for i in range(10)])
        self.assertEqual([s.item for s in out], raw)

    async def test_chunks_bound_concurrency_and_delay_between(self):
        summarizer = EchoSummarizer()
        pipeline = self.make(summarizer, batch_size=3)
        out = await pipeline.process(items(7))
        self.assertEqual(len(out), 7)
        self.assertLessEqual(summarizer.peak, 3)
        # chunks of 3, 3, 1: two pauses, none after the last chunk
        self.assertEqual(self.sleep.delays, [1.5, 1.5])

    async def test_batch_size_argument_overrides_default(self):
        pipeline = self.make(EchoSummarizer(), batch_size=3)
        await pipeline.process(items(4), batch_size=2)
        self.assertEqual(self.sleep.delays, [1.5])

    async def test_explicit_zero_batch_size_is_rejected(self):
        summarizer = EchoSummarizer()
        pipeline = self.make(summarizer, batch_size=3)
        with self.assertRaises(ValueError):
            await pipeline.process(items(1), batch_size=0)
        self.assertEqual(summarizer.calls, [])

    async def test_single_chunk_has_no_delay(self):
        pipeline = self.make(EchoSummarizer(), batch_size=5)
        await pipeline.process(items(5))
        self.assertEqual(self.sleep.delays, [])

    async def test_item_failure_is_isolated(self):
        summarizer = EchoSummarizer(fail_on={'text 1'})
        pipeline = self.make(summarizer, batch_size=3)
        out = await pipeline.process(items(3))
        self.assertEqual(
            [s.summary for s in out],
            ['summary:text 0', UNAVAILABLE_SUMMARY, 'summary:text 2'],
        )

    async def test_item_timeout_is_a_failure(self):
        summarizer = EchoSummarizer(hang_on={'text 0'})
        pipeline = self.make(summarizer, batch_size=2, item_timeout=0.05)
        out = await pipeline.process(items(2))
        self.assertEqual(out[0].summary, UNAVAILABLE_SUMMARY)
        self.assertEqual(out[1].summary, 'summary:text 1')

    async def test_item_without_text_skips_summarizer(self):
        summarizer = EchoSummarizer()
        pipeline = self.make(summarizer)
        out = await pipeline.process([RawFeedItem(title='bare')])
        self.assertEqual(out[0].summary, NO_SUMMARY)
        self.assertEqual(summarizer.calls, [])

    async def test_get_summarized_news_end_to_end(self):
        fetcher = StubFetcher(PipelineResult(items=items(7), has_more=True, total=20))
        summarizer = EchoSummarizer()
        pipeline = self.make(summarizer, fetcher=fetcher, batch_size=3)
        result = await pipeline.get_summarized_news('https://feed.example', limit=7, offset=0)
        self.assertEqual(len(result.items), 7)
        self.assertEqual(len(summarizer.calls), 7)
        self.assertEqual(self.sleep.delays, [1.5, 1.5])
        self.assertTrue(result.has_more)
        self.assertEqual(result.total, 20)
        self.assertEqual(fetcher.calls, [('https://feed.example', 7, 0)])

    async def test_empty_fetch_short_circuits(self):
        summarizer = EchoSummarizer()
        fetcher = StubFetcher(PipelineResult(items=[], has_more=False, total=12))
        pipeline = self.make(summarizer, fetcher=fetcher)
        result = await pipeline.get_summarized_news('https://feed.example', limit=5, offset=20)
        self.assertEqual((result.items, result.has_more, result.total), ([], False, 0))
        self.assertEqual(summarizer.calls, [])


class TestPipelineWithRealSummarizer(unittest.IsolatedAsyncioTestCase):
    async def test_cache_shared_between_runs(self):
        from feedbrief.summarizer import Summarizer

        calls = []

        async def generate(system, user, max_tokens, temperature):
            calls.append(user)
            return 'summarized'

        cache = TTLCache()
        summarizer = Summarizer(cache, generate, min_length=5, attempts=1)
        pipeline = BatchPipeline(StubFetcher(PipelineResult.empty()), summarizer, batch_size=2, batch_delay=0)
        raw = items(3)
        await pipeline.process(raw)
        await pipeline.process(raw)
        self.assertEqual(len(calls), 3)


if __name__ == '__main__':
    unittest.main()
