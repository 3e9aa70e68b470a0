"""Tests for the AST cache."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from php_review.engine.cache import AstCache
from php_review.engine.nodes import Node, ParsedTree
from php_review.exceptions import ParseError


class FakeClock:
    """Manually advanced time source."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingParser:
    """Parser stand-in that records how often it is called."""

    def __init__(self) -> None:
        self.calls = 0

    def parse(self, content):
        self.calls += 1
        source = content.encode("utf-8") if isinstance(content, str) else content
        if b"BROKEN" in source:
            raise ParseError("Syntax error, unexpected 'BROKEN' on line 1", 1)
        root = Node(
            kind="program",
            start_byte=0,
            end_byte=len(source),
            start_line=1,
            end_line=1,
            source=source,
        )
        return ParsedTree(root=root, source=source)


class TestAstCacheInit:
    """Test AstCache initialization."""

    def test_defaults(self):
        cache = AstCache(parser=CountingParser())
        assert cache.max_size == 100
        assert cache.ttl_seconds == 300

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            AstCache(parser=CountingParser(), max_size=0)


class TestAstCacheOperations:
    """Test hits, misses and fingerprints."""

    @pytest.fixture
    def parser(self) -> CountingParser:
        return CountingParser()

    @pytest.fixture
    def cache(self, parser) -> AstCache:
        return AstCache(parser=parser, max_size=10, ttl_seconds=60)

    def test_miss_then_hit(self, cache, parser):
        first = cache.get_or_parse("a.php", b"<?php echo 1;", 5)
        second = cache.get_or_parse("a.php", b"<?php echo 1;", 5)
        assert first is second
        assert parser.calls == 1
        stats = cache.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5

    def test_changed_content_is_a_miss(self, cache, parser):
        first = cache.get_or_parse("a.php", b"<?php echo 1;", 5)
        second = cache.get_or_parse("a.php", b"<?php echo 2;", 5)
        assert first is not second
        assert second.source == b"<?php echo 2;"
        assert parser.calls == 2

    def test_changed_mtime_is_a_miss(self, cache, parser):
        cache.get_or_parse("a.php", b"<?php echo 1;", 5)
        cache.get_or_parse("a.php", b"<?php echo 1;", 6)
        assert parser.calls == 2

    def test_same_content_in_two_files_shares_tree(self, cache, parser):
        cache.get_or_parse("a.php", b"<?php echo 1;")
        cache.get_or_parse("b.php", b"<?php echo 1;")
        assert parser.calls == 1

    def test_fingerprint(self):
        plain = AstCache.fingerprint(b"abc")
        assert len(plain) == 64
        assert AstCache.fingerprint("abc") == plain
        assert AstCache.fingerprint(b"abc", 42) == f"{plain}:42"

    def test_parse_errors_are_not_cached(self, cache, parser):
        for _ in range(2):
            with pytest.raises(ParseError):
                cache.get_or_parse("bad.php", b"<?php BROKEN")
        assert parser.calls == 2
        assert len(cache) == 0

    def test_clear_resets_counters(self, cache):
        cache.get_or_parse("a.php", b"x")
        cache.get_or_parse("a.php", b"x")
        assert cache.clear() == 1
        stats = cache.stats()
        assert stats["size"] == 0
        assert stats["hits"] == 0
        assert stats["misses"] == 0
        assert stats["hit_rate"] == 0.0


class TestAstCacheEviction:
    """Test TTL expiry and LRU eviction."""

    def test_expired_entry_is_a_miss(self):
        clock = FakeClock()
        parser = CountingParser()
        cache = AstCache(parser=parser, ttl_seconds=300, clock=clock)
        cache.get_or_parse("a.php", b"x")
        clock.advance(301)
        cache.get_or_parse("a.php", b"x")
        assert parser.calls == 2
        assert cache.stats()["misses"] == 2

    def test_entry_within_ttl_is_a_hit(self):
        clock = FakeClock()
        parser = CountingParser()
        cache = AstCache(parser=parser, ttl_seconds=300, clock=clock)
        cache.get_or_parse("a.php", b"x")
        clock.advance(299)
        cache.get_or_parse("a.php", b"x")
        assert parser.calls == 1

    def test_prune_expired(self):
        clock = FakeClock()
        cache = AstCache(parser=CountingParser(), ttl_seconds=10, clock=clock)
        cache.get_or_parse("a.php", b"x")
        clock.advance(5)
        cache.get_or_parse("b.php", b"y")
        clock.advance(6)
        assert cache.prune_expired() == 1
        assert len(cache) == 1

    def test_lru_eviction(self):
        parser = CountingParser()
        cache = AstCache(parser=parser, max_size=2)
        cache.get_or_parse("a.php", b"a")
        cache.get_or_parse("b.php", b"b")
        # Touch "a" so "b" becomes least recently used
        cache.get_or_parse("a.php", b"a")
        cache.get_or_parse("c.php", b"c")
        assert len(cache) == 2

        calls = parser.calls
        cache.get_or_parse("a.php", b"a")
        assert parser.calls == calls
        cache.get_or_parse("b.php", b"b")
        assert parser.calls == calls + 1

    def test_size_never_exceeds_max(self):
        cache = AstCache(parser=CountingParser(), max_size=5)
        for i in range(20):
            cache.get_or_parse(f"{i}.php", str(i).encode())
        assert len(cache) == 5


class TestAstCacheConcurrency:
    """Test thread-safety."""

    def test_concurrent_access(self):
        cache = AstCache(parser=CountingParser(), max_size=50)

        def work(i):
            return cache.get_or_parse(f"{i % 5}.php", str(i % 5).encode())

        with ThreadPoolExecutor(max_workers=8) as executor:
            trees = list(executor.map(work, range(200)))

        assert len(trees) == 200
        assert len(cache) == 5
        stats = cache.stats()
        assert stats["hits"] + stats["misses"] == 200
