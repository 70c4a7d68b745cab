from dataclasses import dataclass

ADDRESS_BITS = 32
WORD_BYTES = 4
MEMORY_CYCLES = 100  # per 4-byte word moved to or from memory

EVICTIONS = ('lru', 'fifo')


class ConfigurationError(ValueError):
    pass


def is_power_of_two(n):
    return n > 0 and n & (n - 1) == 0


def log2(n):
    return n.bit_length() - 1


def _parse_count(word, message):
    try:
        return int(word)
    except (TypeError, ValueError):
        raise ConfigurationError(message) from None


@dataclass(frozen=True)
class CacheConfiguration:
    num_sets: int
    associativity: int
    block_size: int
    write_allocate: bool = True
    write_through: bool = False
    eviction: str = 'lru'

    def __post_init__(self):
        if not is_power_of_two(self.num_sets):
            raise ConfigurationError("number of sets in cache must be a power of 2")
        if not is_power_of_two(self.associativity):
            raise ConfigurationError("number of blocks in each set must a be power of 2")
        if not is_power_of_two(self.block_size) or self.block_size < WORD_BYTES:
            raise ConfigurationError("number of bytes in each block must be a positive power-of-2, at least 4")
        if self.eviction not in EVICTIONS:
            raise ConfigurationError("eviction parameter must be lru or fifo")
        if self.set_bits + self.block_bits > ADDRESS_BITS:
            raise ConfigurationError(
                f"{self.set_bits} set bits and {self.block_bits} offset bits do not fit in a {ADDRESS_BITS}-bit address")
        if not self.write_allocate and not self.write_through:
            raise ConfigurationError("no-write-allocate and write-back is an invalid combination")

    @property
    def set_bits(self):
        return log2(self.num_sets)

    @property
    def block_bits(self):
        return log2(self.block_size)

    @property
    def tag_bits(self):
        return ADDRESS_BITS - self.set_bits - self.block_bits

    @property
    def set_mask(self):
        return self.num_sets - 1

    @property
    def block_cycles(self):
        """Cycles to move one whole block between the cache and memory."""
        return MEMORY_CYCLES * (self.block_size // WORD_BYTES)

    @classmethod
    def from_args(cls, sets, blocks, block_size, allocate, write, evict):
        """Build a configuration from the six command-line words."""
        num_sets = _parse_count(sets, "number of sets in cache must be a power of 2")
        associativity = _parse_count(blocks, "number of blocks in each set must a be power of 2")
        size = _parse_count(block_size, "number of bytes in each block must be a positive power-of-2, at least 4")
        if allocate not in ('write-allocate', 'no-write-allocate'):
            raise ConfigurationError("cache miss parameter must be write-allocate or no-write-allocate")
        if write not in ('write-through', 'write-back'):
            raise ConfigurationError("store write parameter must be write-through or write-back")
        if evict not in EVICTIONS:
            raise ConfigurationError("eviction parameter must be lru or fifo")
        return cls(num_sets, associativity, size,
                   write_allocate=allocate == 'write-allocate',
                   write_through=write == 'write-through',
                   eviction=evict)
