class UtilityRow:
    """
    One sequence where a rule occurs.
    alpha: itemset holding the last antecedent item
    beta:  itemset holding the first consequent item (alpha < beta)
    lutil / rutil / lrutil: utility still reachable by growing only the left side,
    only the right side, or either side.
    """
    __slots__ = ("sid", "utility", "lutil", "rutil", "lrutil", "alpha", "beta")

    def __init__(self, sid: int, utility: float = 0.0, lutil: float = 0.0, rutil: float = 0.0,
                 lrutil: float = 0.0, alpha: int = -1, beta: int = -1):
        self.sid = sid
        self.utility = utility
        self.lutil = lutil
        self.rutil = rutil
        self.lrutil = lrutil
        self.alpha = alpha
        self.beta = beta

    def __repr__(self) -> str:
        return (f"UtilityRow(sid={self.sid}, utility={self.utility}, lutil={self.lutil}, "
                f"rutil={self.rutil}, lrutil={self.lrutil}, alpha={self.alpha}, beta={self.beta})")


class UtilityTable:
    __slots__ = ("rows", "total_utility", "total_lutil", "total_rutil", "total_lrutil")

    def __init__(self):
        self.rows: list[UtilityRow] = []
        self.total_utility = 0.0
        self.total_lutil = 0.0
        self.total_rutil = 0.0
        self.total_lrutil = 0.0

    def add(self, row: UtilityRow):
        self.rows.append(row)
        self.total_utility += row.utility
        self.total_lutil += row.lutil
        self.total_rutil += row.rutil
        self.total_lrutil += row.lrutil

    def __len__(self) -> int:
        return len(self.rows)

    def left_bound(self, tight: bool) -> float:
        # 왼쪽 확장 이후에는 왼쪽 확장만 이어지므로 rutil 제외 가능
        if tight:
            return self.total_utility + self.total_lutil + self.total_lrutil
        return self.total_utility + self.total_lutil + self.total_rutil + self.total_lrutil

    def right_bound(self) -> float:
        # left expansions may follow a right expansion, so lutil always stays in
        return self.total_utility + self.total_lutil + self.total_rutil + self.total_lrutil


class LeftUtilityRow:
    __slots__ = ("sid", "utility", "lutil")

    def __init__(self, sid: int, utility: float = 0.0, lutil: float = 0.0):
        self.sid = sid
        self.utility = utility
        self.lutil = lutil

    def __repr__(self) -> str:
        return f"LeftUtilityRow(sid={self.sid}, utility={self.utility}, lutil={self.lutil})"


class LeftUtilityTable:
    """Rows of a rule whose consequent is fixed; only left expansions remain."""
    __slots__ = ("rows", "total_utility", "total_lutil")

    def __init__(self):
        self.rows: list[LeftUtilityRow] = []
        self.total_utility = 0.0
        self.total_lutil = 0.0

    def add(self, row: LeftUtilityRow):
        self.rows.append(row)
        self.total_utility += row.utility
        self.total_lutil += row.lutil

    def __len__(self) -> int:
        return len(self.rows)

    def left_bound(self) -> float:
        return self.total_utility + self.total_lutil
