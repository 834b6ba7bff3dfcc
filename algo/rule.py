from dataclasses import dataclass


@dataclass(frozen=True)
class Rule:
    antecedent: tuple[int, ...]
    consequent: tuple[int, ...]
    support: int
    confidence: float
    utility: float

    def to_line(self) -> str:
        left = ",".join(map(str, self.antecedent))
        right = ",".join(map(str, self.consequent))
        return (f"{left}\t==> {right}\t#SUP: {self.support}"
                f"\t#CONF: {float(self.confidence)}\t#UTIL: {float(self.utility)}\n")

    def __str__(self) -> str:
        return self.to_line().rstrip("\n")
