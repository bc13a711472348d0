"""Shared test data."""

RSS_THREE_ITEMS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example Feed</title>
    <link>https://example.com/</link>
    <item>
      <title>First article</title>
      <link>https://example.com/1</link>
      <guid>guid-1</guid>
      <pubDate>Mon, 05 Oct 2026 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Second article</title>
      <link>https://example.com/2</link>
      <guid>guid-2</guid>
      <pubDate>Tue, 06 Oct 2026 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Third article</title>
      <link>https://example.com/3</link>
      <guid>guid-3</guid>
      <pubDate>Wed, 07 Oct 2026 10:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""

RSS_EMPTY = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Empty Feed</title>
    <link>https://example.com/</link>
  </channel>
</rss>
"""


def make_feed(**overrides):
    from feedcycle.models import Feed

    init = {
        "id": "feed-x",
        "title": "Example",
        "channel": "channel-1",
        "url": "https://example.com/rss",
        "guild": "guild-1",
    }
    init.update(overrides)
    return Feed(**init)
