import unittest

import httpx

from feedbrief.cache import TTLCache
from feedbrief.errors import FeedParseError
from feedbrief.fetchers import FeedFetcher, feed_cache_key, paginate, parse_feed

FEED_URL = 'https://news.example.com/rss.xml'


def rss_document(count: int) -> bytes:
    items = ''.join(
        f'''
        <item>
          <title>Item {i}</title>
          <link>https://news.example.com/items/{i}</link>
          <description>Description of item {i}</description>
          <pubDate>Mon, {i + 1:02d} Jan 2024 10:00:00 GMT</pubDate>
        </item>'''
        for i in range(count)
    )
    return f'''<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example News</title>
    <link>https://news.example.com/</link>
    <description>Example</description>{items}
  </channel>
</rss>'''.encode('utf-8')


ATOM_DOCUMENT = b'''<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example Atom</title>
  <id>urn:example</id>
  <updated>2024-03-01T00:00:00Z</updated>
  <entry>
    <title>Atom entry</title>
    <id>urn:example:1</id>
    <link href="https://atom.example.com/1"/>
    <updated>2024-03-01T08:30:00Z</updated>
    <content type="text">Full atom content</content>
  </entry>
</feed>'''


class CountingTransport:
    '''Builds an httpx.MockTransport and counts requests.'''

    def __init__(self, status=200, body=b'', exc=None):
        self.status = status
        self.body = body
        self.exc = exc
        self.requests = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc:
            raise self.exc
        return httpx.Response(self.status, content=self.body)


class TestParseFeed(unittest.TestCase):
    def test_rss_items_in_order(self):
        items = parse_feed(rss_document(3))
        self.assertEqual([it.title for it in items], ['Item 0', 'Item 1', 'Item 2'])
        self.assertEqual(items[1].link, 'https://news.example.com/items/1')
        self.assertEqual(items[1].description, 'Description of item 1')
        self.assertEqual(items[1].source_text, 'Description of item 1')
        self.assertIn('Jan 2024', items[1].pub_date)

    def test_atom_content(self):
        (item,) = parse_feed(ATOM_DOCUMENT)
        self.assertEqual(item.title, 'Atom entry')
        self.assertEqual(item.link, 'https://atom.example.com/1')
        self.assertEqual(item.content, 'Full atom content')
        self.assertEqual(item.source_text, item.description or item.content)
        self.assertEqual(item.pub_date, '2024-03-01T08:30:00Z')

    def test_garbage_raises(self):
        with self.assertRaises(FeedParseError):
            parse_feed(b'<html><body>not a feed')


class TestPaginate(unittest.TestCase):
    def test_boundaries(self):
        items = list(range(12))
        self.assertFalse(paginate(items, 5, 10).has_more)
        self.assertEqual(paginate(items, 5, 10).items, [10, 11])
        self.assertTrue(paginate(items, 5, 5).has_more)
        self.assertEqual(paginate(items, 5, 5).total, 12)

    def test_no_limit_takes_rest(self):
        page = paginate(list(range(4)), None, 1)
        self.assertEqual(page.items, [1, 2, 3])
        self.assertFalse(page.has_more)
        self.assertEqual(page.total, 4)


class TestFeedFetcher(unittest.IsolatedAsyncioTestCase):
    async def test_fetch_paginates_and_caches_full_list(self):
        mock = CountingTransport(body=rss_document(12))
        cache = TTLCache()
        fetcher = FeedFetcher(cache, refresh_interval=60, transport=mock.transport)

        page = await fetcher.fetch(FEED_URL, limit=5, offset=5)
        self.assertEqual([it.title for it in page.items], [f'Item {i}' for i in range(5, 10)])
        self.assertTrue(page.has_more)
        self.assertEqual(page.total, 12)
        self.assertEqual(len(cache.get(feed_cache_key(FEED_URL))), 12)
        self.assertEqual(mock.requests[0].headers['Cache-Control'], 'no-cache')

        page = await fetcher.fetch(FEED_URL, limit=5, offset=10)
        self.assertEqual(len(page.items), 2)
        self.assertFalse(page.has_more)
        self.assertEqual(len(mock.requests), 1)

    async def test_cache_uses_refresh_interval(self):
        mock = CountingTransport(body=rss_document(1))
        cache = TTLCache(default_ttl=9999)
        fetcher = FeedFetcher(cache, refresh_interval=60, transport=mock.transport)
        await fetcher.fetch(FEED_URL)
        self.assertLessEqual(cache.ttl(feed_cache_key(FEED_URL)), 60)

    async def test_http_error_degrades_to_empty(self):
        mock = CountingTransport(status=503)
        fetcher = FeedFetcher(TTLCache(), refresh_interval=60, transport=mock.transport)
        result = await fetcher.fetch(FEED_URL, limit=5)
        self.assertEqual((result.items, result.has_more, result.total), ([], False, 0))

    async def test_timeout_degrades_to_empty(self):
        mock = CountingTransport(exc=httpx.ReadTimeout('slow'))
        fetcher = FeedFetcher(TTLCache(), refresh_interval=60, transport=mock.transport)
        result = await fetcher.fetch(FEED_URL, limit=5)
        self.assertEqual((result.items, result.has_more, result.total), ([], False, 0))

    async def test_parse_error_degrades_to_empty_and_is_not_cached(self):
        mock = CountingTransport(body=b'<html>nope')
        cache = TTLCache()
        fetcher = FeedFetcher(cache, refresh_interval=60, transport=mock.transport)
        result = await fetcher.fetch(FEED_URL, limit=5)
        self.assertEqual(result.total, 0)
        self.assertEqual(cache.size(), 0)


if __name__ == '__main__':
    unittest.main()
