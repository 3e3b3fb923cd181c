"""Integer money utilities — all balances and amounts are satang (1/100 THB).

Vendors send baht as JSON numbers or strings ("500", 500.5, "1,250.00").
They are converted exactly once, here, through Decimal. No float arithmetic.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_TWO_PLACES = Decimal("0.01")


def baht_to_satang(value: object) -> int:
    """Convert a vendor baht amount to satang: '1,250.50' -> 125050, 500 -> 50000.

    Raises ValueError for anything that is not a finite number.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not a baht amount: {value!r}")
    raw = str(value).strip().replace(",", "")
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"Not a baht amount: {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"Not a baht amount: {value!r}")
    return int((amount.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def satang_to_baht(satang: int) -> str:
    """Plain decimal string for vendor requests and events: 50050 -> '500.50'."""
    sign = "-" if satang < 0 else ""
    value = abs(satang)
    return f"{sign}{value // 100}.{value % 100:02d}"


def satang_to_display(satang: int) -> str:
    """Convert satang to display string: 150000 -> '฿1,500.00', -1200 -> '-฿12.00'."""
    if satang < 0:
        abs_satang = -satang
        return f"-฿{abs_satang // 100:,}.{abs_satang % 100:02d}"
    return f"฿{satang // 100:,}.{satang % 100:02d}"
