import sys

from cacheconfig import CacheConfiguration, ConfigurationError
from cachesim import CacheSimulator
from tracefile import stream_to_input

USAGE = """Incorect number of arguments. Should be:
 - number of sets in the cache (a positive power-of-2)
 - number of blocks in each set (a positive power-of-2)
 - number of bytes in each block (a positive power-of-2, at least 4)
 - write-allocate or no-write-allocate
 - write-through or write-back
 - lru (least-recently-used) or fifo evictions"""


def format_statistics(stats):
    return f"""Total loads: {stats.total_loads}
Total stores: {stats.total_stores}
Load hits: {stats.load_hits}
Load misses: {stats.load_misses}
Store hits: {stats.store_hits}
Store misses: {stats.store_misses}
Total cycles: {stats.total_cycles}"""


def main(argv=None, stdin=None, stdout=None, stderr=None):
    argv = sys.argv[1:] if argv is None else list(argv)
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    # a trailing 'debug' prints every access as it is replayed
    debug = len(argv) == 7 and argv[-1] == 'debug'
    if debug:
        argv = argv[:-1]
    if len(argv) != 6:
        print(USAGE, file=stderr)
        return 1

    try:
        config = CacheConfiguration.from_args(*argv)
    except ConfigurationError as e:
        print(e, file=stderr)
        return 1

    mysim = CacheSimulator(config, debug=debug)
    stats = mysim.run(stream_to_input(stdin))
    print(format_statistics(stats), file=stdout)
    return 0


if __name__ == '__main__':
    sys.exit(main())
