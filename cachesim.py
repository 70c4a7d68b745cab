from dataclasses import dataclass

import numba
import numpy as np

from cacheconfig import MEMORY_CYCLES

# 'stamp' is refreshed on every hit and allocation (LRU order),
# 'inserted' only on allocation (FIFO order).
CacheBlock = np.dtype([('valid', np.bool_), ('dirty', np.bool_), ('tag', np.int64),
                       ('stamp', np.int64), ('inserted', np.int64)])
TInput = np.dtype([('load', np.bool_), ('addr', np.uint32)])

LOADS, STORES, LOAD_HIT, LOAD_MISS, STORE_HIT, STORE_MISS, CLOCKS = range(7)
NUM_COUNTERS = 7

BASE_CYCLES = 1
NOT_FOUND = -1


@numba.njit(inline='always')
def decode(addr, set_bits, block_bits):
    """Split an address into (tag, set index, block offset)."""
    offset = addr & ((1 << block_bits) - 1)
    setidx = (addr >> block_bits) & ((1 << set_bits) - 1)
    tag = addr >> (set_bits + block_bits)
    return tag, setidx, offset


@numba.njit(inline='always')
def lookup(cache, setidx, tag):
    for slot in range(cache.shape[1]):
        if cache[setidx, slot]['valid'] and cache[setidx, slot]['tag'] == tag:
            return slot
    return NOT_FOUND


@numba.njit(inline='always')
def free_slot(cache, setidx):
    for slot in range(cache.shape[1]):
        if not cache[setidx, slot]['valid']:
            return slot
    return NOT_FOUND


@numba.njit
def install(cache, setidx, slot, tag, clock):
    clock[0] += 1
    block = cache[setidx, slot]
    block['valid'] = True
    block['dirty'] = False
    block['tag'] = tag
    block['stamp'] = clock[0]
    block['inserted'] = clock[0]


@numba.njit
def touch(cache, setidx, slot, clock):
    clock[0] += 1
    cache[setidx, slot]['stamp'] = clock[0]


@numba.njit
def mark_dirty(cache, setidx, slot):
    cache[setidx, slot]['dirty'] = True


# victim selection runs on a full set only; ties go to the lowest slot
@numba.njit
def evac_lru(cache, setidx):
    victim = 0
    for slot in range(1, cache.shape[1]):
        if cache[setidx, slot]['stamp'] < cache[setidx, victim]['stamp']:
            victim = slot
    return victim


@numba.njit
def evac_fifo(cache, setidx):
    victim = 0
    for slot in range(1, cache.shape[1]):
        if cache[setidx, slot]['inserted'] < cache[setidx, victim]['inserted']:
            victim = slot
    return victim


EVICTION_POLICIES = {'lru': evac_lru, 'fifo': evac_fifo}


@dataclass(frozen=True)
class Statistics:
    total_loads: int = 0
    total_stores: int = 0
    load_hits: int = 0
    load_misses: int = 0
    store_hits: int = 0
    store_misses: int = 0
    total_cycles: int = 0

    @classmethod
    def from_counters(cls, counters):
        return cls(*(int(c) for c in counters))


def make_cache(config):
    return np.zeros((config.num_sets, config.associativity), dtype=CacheBlock)


def make_sim(config, debug: bool = False):
    """Build the replay kernel for one cache configuration.

    The returned ``sim(cache, clock, stats, trace)`` replays every record of
    ``trace`` (an array of ``TInput``) against ``cache`` and accumulates into
    ``stats`` in place. ``clock`` is a one-element int64 array holding the
    recency counter. Unless ``debug`` is set the kernel is compiled with
    numba; in debug mode it runs as plain Python and prints each access.
    """
    set_bits = config.set_bits
    block_bits = config.block_bits
    memtime = config.block_cycles
    write_allocate = config.write_allocate
    write_through = config.write_through
    select_victim = EVICTION_POLICIES[config.eviction]

    def jit(fn):
        return fn if debug else numba.njit(fn)

    if not debug:
        @numba.njit(inline='always')
        def log(args):
            pass
    else:
        def log(args):
            print(*args)

    @jit
    def allocate(cache, clock, stats, setidx, tag):
        slot = free_slot(cache, setidx)
        if slot == NOT_FOUND:
            slot = select_victim(cache, setidx)
            log(('evict set=', setidx, 'slot=', slot, 'tag=', cache[setidx, slot]['tag']))
            if cache[setidx, slot]['dirty'] and not write_through:
                stats[CLOCKS] += memtime  # write-back하느라 시간이 걸림.
        install(cache, setidx, slot, tag, clock)
        return slot

    @jit
    def process_load(cache, clock, stats, setidx, tag):
        stats[LOADS] += 1
        stats[CLOCKS] += BASE_CYCLES
        slot = lookup(cache, setidx, tag)
        if slot != NOT_FOUND:
            stats[LOAD_HIT] += 1
            touch(cache, setidx, slot, clock)
            return True
        stats[LOAD_MISS] += 1
        stats[CLOCKS] += memtime  # 읽어오느라 시간이 걸림.
        allocate(cache, clock, stats, setidx, tag)
        return False

    @jit
    def process_store(cache, clock, stats, setidx, tag):
        stats[STORES] += 1
        stats[CLOCKS] += BASE_CYCLES
        slot = lookup(cache, setidx, tag)
        if slot != NOT_FOUND:
            stats[STORE_HIT] += 1
            touch(cache, setidx, slot, clock)
            if write_through:
                stats[CLOCKS] += MEMORY_CYCLES
            else:
                mark_dirty(cache, setidx, slot)
            return True
        stats[STORE_MISS] += 1
        if write_allocate:
            stats[CLOCKS] += memtime
            slot = allocate(cache, clock, stats, setidx, tag)
            if write_through:
                stats[CLOCKS] += MEMORY_CYCLES
            else:
                mark_dirty(cache, setidx, slot)
        else:
            # write-around: straight to memory, cache untouched
            stats[CLOCKS] += MEMORY_CYCLES
        return False

    def sim(cache, clock, stats, trace):
        for i in range(len(trace)):
            addr = np.int64(trace[i]['addr'])
            tag, setidx, _ = decode(addr, set_bits, block_bits)
            if trace[i]['load']:
                hit = process_load(cache, clock, stats, setidx, tag)
            else:
                hit = process_store(cache, clock, stats, setidx, tag)
            log(('set=', setidx, 'tag=', tag, 'hit' if hit else 'miss'))

    if not debug:
        sim = numba.njit(nogil=True)(sim)

    return sim


class CacheSimulator:
    """One cache instance replaying a trace, one access at a time."""

    def __init__(self, config, debug: bool = False):
        self.config = config
        self._cache = make_cache(config)
        self._clock = np.zeros(1, dtype=np.int64)
        self._stats = np.zeros(NUM_COUNTERS, dtype=np.int64)
        self._sim = make_sim(config, debug=debug)

    def run(self, trace):
        self._sim(self._cache, self._clock, self._stats, trace)
        return self.statistics

    def access(self, load: bool, addr: int):
        return self.run(np.array([(load, addr)], dtype=TInput))

    @property
    def statistics(self) -> Statistics:
        return Statistics.from_counters(self._stats)

    def blocks(self):
        return self._cache.copy()


def simulate(config, trace, debug: bool = False) -> Statistics:
    return CacheSimulator(config, debug=debug).run(trace)
