# epireport/data_processing/ratios.py
# RATIO SIMPLIFICATION

from dataclasses import asdict, dataclass
from typing import Any, Dict

from .rates import round_half_up


def gcd(a: int, b: int) -> int:
    """Greatest common divisor by the Euclidean algorithm."""
    a, b = abs(int(a)), abs(int(b))
    while b:
        a, b = b, a % b
    return a


@dataclass(frozen=True)
class RatioResult:
    numerator: int
    denominator: int
    ratio_text: str
    decimal: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def simplify_ratio(a: int, b: int) -> RatioResult:
    """
    Reduces ``a:b`` by their GCD. Either side being 0 yields the "0:0"
    ratio. The decimal is taken from the unreduced pair.
    """
    if a == 0 or b == 0:
        return RatioResult(0, 0, "0:0", 0.0)
    divisor = gcd(a, b)
    n, d = int(a) // divisor, int(b) // divisor
    return RatioResult(n, d, f"{n}:{d}", round_half_up(a / b))


def gender_ratio(male: int, female: int) -> Dict[str, float]:
    """Male-to-female ratio normalized so the female side is 1."""
    if male > 0 and female > 0:
        return {"male": round_half_up(male / female), "female": 1}
    if male > 0:
        return {"male": 1, "female": 0}
    if female > 0:
        return {"male": 0, "female": 1}
    return {"male": 0, "female": 0}
