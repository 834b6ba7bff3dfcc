from dataclasses import dataclass
from typing import Optional

# minutil == 0 would make every rule high-utility
MIN_UTILITY_EPSILON = 0.001


class InvalidConfigError(ValueError):
    pass


@dataclass
class MiningConfig:
    min_confidence: float = 0.5
    min_utility: float = 0.0
    max_antecedent_size: int = 4
    max_consequent_size: int = 4
    max_sequences: Optional[int] = None

    # optimization strategies; toggling them never changes the rules found
    prune_items: bool = True       # 1: drop items with estimated utility < minutil
    prune_pairs: bool = True       # 2: drop size-2 rules with estimated utility < minutil
    use_bit_vectors: bool = True   # 3: bit vectors instead of sorted lists for sequence ids
    tight_bounds: bool = True      # 4: direction-specific expansion bounds

    def validate(self) -> "MiningConfig":
        if not 0.0 <= self.min_confidence <= 1.0:
            raise InvalidConfigError(f"min_confidence must be in [0, 1], got {self.min_confidence}")
        if self.min_utility < 0:
            raise InvalidConfigError(f"min_utility must be >= 0, got {self.min_utility}")
        if self.max_antecedent_size < 1:
            raise InvalidConfigError(f"max_antecedent_size must be >= 1, got {self.max_antecedent_size}")
        if self.max_consequent_size < 1:
            raise InvalidConfigError(f"max_consequent_size must be >= 1, got {self.max_consequent_size}")
        if self.max_sequences is not None and self.max_sequences < 1:
            raise InvalidConfigError(f"max_sequences must be >= 1, got {self.max_sequences}")
        return self

    @property
    def effective_min_utility(self) -> float:
        return self.min_utility if self.min_utility > 0 else MIN_UTILITY_EPSILON
