# cli.py
# Command-line entry point for the HUSRM miner

import argparse
import logging
import sys
from typing import Optional

from algo.config import MiningConfig
from algo.husrm import HUSRM


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Mine high-utility sequential rules")
    parser.add_argument("input", help="sequence database with utilities (SPMF format)")
    parser.add_argument("output", help="file receiving one rule per line")
    parser.add_argument("--min-confidence", type=float, default=MiningConfig.min_confidence)
    parser.add_argument("--min-utility", type=float, default=MiningConfig.min_utility)
    parser.add_argument("--max-antecedent", type=int, default=MiningConfig.max_antecedent_size)
    parser.add_argument("--max-consequent", type=int, default=MiningConfig.max_consequent_size)
    parser.add_argument("--max-sequences", type=int, default=None)
    parser.add_argument("--no-prune-items", action="store_true", help="disable strategy 1")
    parser.add_argument("--no-prune-pairs", action="store_true", help="disable strategy 2")
    parser.add_argument("--sorted-lists", action="store_true", help="sorted lists instead of bit vectors (strategy 3)")
    parser.add_argument("--loose-bounds", action="store_true", help="disable strategy 4")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def config_from_args(args: argparse.Namespace) -> MiningConfig:
    return MiningConfig(
        min_confidence=args.min_confidence,
        min_utility=args.min_utility,
        max_antecedent_size=args.max_antecedent,
        max_consequent_size=args.max_consequent,
        max_sequences=args.max_sequences,
        prune_items=not args.no_prune_items,
        prune_pairs=not args.no_prune_pairs,
        use_bit_vectors=not args.sorted_lists,
        tight_bounds=not args.loose_bounds,
    )


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        algo = HUSRM(config_from_args(args))
        algo.run(args.input, args.output)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Rules: {algo.rule_count}  Elapsed: {algo.total_time_ms} ms  "
          f"Max memory: {algo.max_memory_mb:.1f} MB")
    return 0


if __name__ == "__main__":
    sys.exit(main())
