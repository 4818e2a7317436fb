#!/usr/bin/env python3
import argparse
import sys
from dataclasses import dataclass

from loguru import logger

from prime_sieve import (
    RangeTooLargeError,
    sieve_of_eratosthenes,
    sieve_of_eratosthenes_segmented,
    sieve_of_eratosthenes_segmented_carry,
)

GENERATORS = {
    "full": sieve_of_eratosthenes,
    "segmented": sieve_of_eratosthenes_segmented,
    "carry": sieve_of_eratosthenes_segmented_carry,
}

# Above this bound only the count is printed.
LIST_PRINT_LIMIT = 1000


@dataclass
class Config:
    prime_range_end: int
    prime_range_start: int = 2
    sieve_segment_size: int = 100
    progress: bool = True  # segmented methods only
    method: str = "full"

    @classmethod
    def build(cls, prime_range_end: int) -> "Config":
        return cls(prime_range_end=prime_range_end)

    def __str__(self):
        return f"range_start: {self.prime_range_start}\nrange_end: {self.prime_range_end}"


def generate(config: Config) -> list:
    """Run the generator selected by config.method."""
    try:
        generator = GENERATORS[config.method]
    except KeyError:
        raise ValueError(
            f"unknown method {config.method!r}, expected one of {', '.join(GENERATORS)}"
        ) from None

    if generator is sieve_of_eratosthenes:
        return generator(config.prime_range_end)
    return generator(config.prime_range_end, config.sieve_segment_size, config.progress)


def run(config: Config) -> list:
    print(f"Finding Prime Numbers between {config.prime_range_start} and {config.prime_range_end}")

    primes = generate(config)

    if config.prime_range_end > LIST_PRINT_LIMIT:
        print(f"{len(primes)} primes found under {config.prime_range_end}")
    else:
        print(", ".join(map(str, primes)))
    return primes


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Find all primes below RANGE_END with a Sieve of Eratosthenes.")
    ap.add_argument("-e", "--range-end", type=int, default=1_000_000,
                    help="The maximum number to search for primes under (default: 1,000,000).")
    ap.add_argument("-m", "--method", choices=sorted(GENERATORS), default="full",
                    help="full: one in-memory sieve; segmented: trial-division segments "
                         "(drops a trailing partial segment); carry: segments with carried multiples.")
    ap.add_argument("-s", "--segment-size", type=int, default=100,
                    help="Integers per segment for segmented methods (default: 100).")
    ap.add_argument("--no-progress", action="store_true", help="Do not log a notice per segment.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log generator timings.")
    args = ap.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "INFO", format="{message}")

    config = Config.build(args.range_end)
    config.method = args.method
    config.sieve_segment_size = args.segment_size
    config.progress = not args.no_progress

    try:
        run(config)
    except ValueError as e:
        logger.error(f"primegen: {e}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
