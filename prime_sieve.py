#!/usr/bin/env python3
"""
Sieve of Eratosthenes generators (NumPy buffers).

Three generators, all returning the ascending list of primes below
``range_end``:

  sieve_of_eratosthenes                 one buffer for the whole range
  sieve_of_eratosthenes_segmented       fixed-size segments, trial division
                                        against earlier primes; the final
                                        partial segment is never examined
  sieve_of_eratosthenes_segmented_carry fixed-size segments, each prime
                                        carries its next multiple forward;
                                        every integer below range_end is
                                        classified
"""

import math
import time

import numpy as np
from loguru import logger

# One byte per flag, so this is a 4 GiB buffer.
MAX_IN_MEMORY_RANGE = 1 << 32


class RangeTooLargeError(ValueError):
    """The requested range does not fit in an in-memory sieve."""


def _check_range_end(range_end: int):
    if range_end < 0:
        raise ValueError(f"range end must be non-negative, got {range_end}")


def _check_segment_size(segment_size: int):
    if segment_size < 1:
        raise ValueError(f"segment size must be positive, got {segment_size}")


def sieve_prime_factor(sieve: np.ndarray, prime: int, starting_multiple: int = 0, offset: int = 0) -> None:
    """
    Mark prime*prime + prime*k (k >= starting_multiple) as composite.

    Positions are global; ``offset`` is the global value of sieve[0].
    Marking stops at the end of the buffer.
    """
    first = prime * prime + prime * starting_multiple - offset
    if first < 0:
        raise ValueError(
            f"first multiple {first + offset} of {prime} precedes the sieve offset {offset}"
        )
    if first < len(sieve):
        sieve[first::prime] = False


def sieve_to_primes(sieve: np.ndarray, primes: list, offset: int = 0) -> None:
    """Append offset + index for every set flag; 0 and 1 are skipped when offset is 0."""
    start = 2 if offset == 0 else 0
    idx = np.flatnonzero(sieve[start:]).tolist()
    primes.extend(start + i + offset for i in idx)


def sieve_of_eratosthenes(range_end: int, max_range: int = MAX_IN_MEMORY_RANGE) -> list:
    """
    All primes < range_end from a single in-memory sieve.

    Raises RangeTooLargeError when range_end exceeds max_range or the
    buffer cannot be allocated.
    """
    _check_range_end(range_end)
    if range_end > max_range:
        raise RangeTooLargeError(
            f"range end {range_end:,} exceeds the in-memory sieve limit of {max_range:,}; "
            "use a segmented generator"
        )

    t0 = time.perf_counter()
    try:
        sieve = np.ones(range_end, dtype=bool)
    except MemoryError as e:
        raise RangeTooLargeError(
            f"cannot allocate an in-memory sieve for range end {range_end:,}"
        ) from e

    # inclusive bound: p = isqrt(range_end) still has p*p <= range_end
    for i in range(2, math.isqrt(range_end) + 1):
        if sieve[i]:
            sieve_prime_factor(sieve, i)

    primes = []
    sieve_to_primes(sieve, primes)
    logger.debug(f"Full sieve: {len(primes):,} primes below {range_end:,} in {time.perf_counter() - t0:.3f}s")
    return primes


def sieve_segment(primes: list, segment_index: int, segment_size: int) -> list:
    """
    Sieve one segment by trial division against ``primes`` and return the
    accumulator extended with the primes found in it.

    Only primes from earlier segments are used for trial division; primes
    found inside the segment mark their own multiples from their square.
    """
    shift = segment_index * segment_size
    sieve = np.ones(segment_size, dtype=bool)

    for local_offset in range(segment_size):
        total = local_offset + shift
        if total < 2:
            sieve[local_offset] = False
            continue
        root = math.isqrt(total)
        for p in primes:
            if p > root:
                break
            if total % p == 0:
                sieve[local_offset] = False
                break

    for local_offset in range(segment_size):
        if sieve[local_offset]:
            sieve_prime_factor(sieve, local_offset + shift, 0, shift)

    sieve_to_primes(sieve, primes, shift)
    return primes


def sieve_of_eratosthenes_segmented(range_end: int, segment_size: int = 100, progress: bool = False) -> list:
    """
    Segmented sieve using trial division to seed each segment.

    Only range_end // segment_size whole segments are processed, so primes
    in a trailing partial segment are not returned. Use
    sieve_of_eratosthenes_segmented_carry for a complete result.
    """
    _check_range_end(range_end)
    _check_segment_size(segment_size)

    t0 = time.perf_counter()
    primes = []
    total_segments = range_end // segment_size

    for segment_index in range(total_segments):
        if progress:
            logger.info(
                f"Sieve Segment({segment_size}) {segment_index + 1} of {total_segments} is being processed."
            )
        primes = sieve_segment(primes, segment_index, segment_size)

    logger.debug(
        f"Segmented sieve: {len(primes):,} primes in {total_segments:,} segments "
        f"in {time.perf_counter() - t0:.3f}s"
    )
    return primes


def sieve_of_eratosthenes_segmented_carry(range_end: int, segment_size: int = 100, progress: bool = False) -> list:
    """
    Segmented sieve that carries, for each sieving prime, the next multiple
    still to be marked into the following segment.

    Segments cover [0, range_end) completely; the last one may be short.
    """
    _check_range_end(range_end)
    _check_segment_size(segment_size)

    t0 = time.perf_counter()
    primes = []
    # [prime, next multiple to mark], only for primes with prime*prime < range_end
    carried = []
    total_segments = -(-range_end // segment_size)

    for segment_index in range(total_segments):
        low = segment_index * segment_size
        high = min(low + segment_size, range_end)
        if progress:
            logger.info(
                f"Sieve Segment({segment_size}) {segment_index + 1} of {total_segments} is being processed."
            )

        sieve = np.ones(high - low, dtype=bool)
        if low < 2:
            sieve[: 2 - low] = False

        for entry in carried:
            p, multiple = entry
            if multiple < high:
                sieve_prime_factor(sieve, p, (multiple - p * p) // p, low)
                entry[1] = multiple + -(-(high - multiple) // p) * p

        # flags can be cleared by primes found earlier in this segment
        for local_offset in np.flatnonzero(sieve).tolist():
            if not sieve[local_offset]:
                continue
            p = local_offset + low
            square = p * p
            if square >= range_end:
                break
            sieve_prime_factor(sieve, p, 0, low)
            if square < high:
                square += -(-(high - square) // p) * p
            carried.append([p, square])

        sieve_to_primes(sieve, primes, low)

    logger.debug(
        f"Carried segmented sieve: {len(primes):,} primes in {total_segments:,} segments "
        f"in {time.perf_counter() - t0:.3f}s"
    )
    return primes
