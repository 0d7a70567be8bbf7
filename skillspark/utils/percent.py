from decimal import ROUND_HALF_UP, Decimal


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage, halves rounded up (1 of 8 -> 13). 0 when `whole` is 0."""
    if not whole:
        return 0
    ratio = Decimal(part * 100) / Decimal(whole)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))
