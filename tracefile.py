import numpy as np

from cachesim import TInput

ADDRESS_MASK = 0xffff_ffff


def parse_record(line):
    """Parse one ``<op> <address> <size>`` record into ``(load, addr)``.

    Returns None when the line is not a well-formed record.
    """
    fields = line.split()
    if len(fields) < 3:
        return None
    op, addr, size = fields[:3]
    try:
        addr = int(addr, base=16)  # also takes a leading 0x
        int(size)
    except ValueError:
        return None
    if addr < 0:
        return None
    return op == 'l', addr & ADDRESS_MASK


def iter_records(stream):
    # blank lines are skipped; the first malformed record ends the trace
    for line in stream:
        if not line.strip():
            continue
        record = parse_record(line)
        if record is None:
            return
        yield record


def stream_to_input(stream):
    return np.fromiter(iter_records(stream), dtype=TInput)


def file_to_input(fname):
    with open(fname) as f:
        return stream_to_input(f)
