import pytest

from cacheconfig import CacheConfiguration


@pytest.fixture
def small_config():
    # 4 sets, direct-mapped, 16-byte blocks: 2 set bits, 4 offset bits
    return CacheConfiguration(4, 1, 16, write_allocate=True, write_through=False, eviction='lru')
