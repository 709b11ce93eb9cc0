# docketdesk/utils/formatting.py
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from docketdesk.schemas.common import coerce_money


def group_indian(n: int) -> str:
    """
    Group digits the Indian way: last three, then pairs.
    Example: 1234567 -> "12,34,567"
    """
    s = str(abs(n))
    if len(s) > 3:
        head, tail = s[:-3], s[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        s = ",".join(pairs + [tail])
    return ("-" if n < 0 else "") + s


def format_inr(amount, decimals: bool = True, symbol: str = "₹") -> str:
    """
    Rupee amount with Indian grouping. Paise shown only when non-zero.
    Example: 123456.5 -> "₹1,23,456.50", 2180 -> "₹2,180"
    """
    d = coerce_money(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    whole = int(d)
    paise = abs(int((d - whole) * 100))
    sign = "-" if d < 0 else ""
    out = f"{sign}{symbol}{group_indian(abs(whole))}"
    if decimals and paise:
        out += f".{paise:02d}"
    return out


def format_date(value) -> str:
    """YYYY-MM-DD (or date) -> DD/MM/YYYY; 'N/A' when missing or unparseable."""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    if not value:
        return "N/A"
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").strftime("%d/%m/%Y")
    except ValueError:
        return "N/A"


def parse_date(value) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


_ONES = ["", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine", "ten",
         "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen", "seventeen",
         "eighteen", "nineteen"]
_TENS = ["", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety"]


def _in_words(n: int) -> list[str]:
    if n == 0:
        return []
    if n < 20:
        return [_ONES[n]]
    if n < 100:
        return [_TENS[n // 10]] + _in_words(n % 10)
    if n < 1000:
        return [_ONES[n // 100], "hundred"] + _in_words(n % 100)
    if n < 100000:
        return _in_words(n // 1000) + ["thousand"] + _in_words(n % 1000)
    if n < 10000000:
        return _in_words(n // 100000) + ["lakh"] + _in_words(n % 100000)
    return _in_words(n // 10000000) + ["crore"] + _in_words(n % 10000000)


def amount_to_words(amount) -> str:
    """
    Indian-system amount in words, title case.
    Example: 2180.5 -> "Two Thousand One Hundred Eighty Rupees And Fifty Paise"
    """
    d = abs(coerce_money(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    whole = int(d)
    paise = int((d - whole) * 100)

    words: list[str] = []
    if whole > 0:
        words += _in_words(whole) + ["rupees"]
    if paise > 0:
        if words:
            words.append("and")
        words += _in_words(paise) + ["paise"]
    if not words:
        return "Zero Rupees"
    return " ".join(w.capitalize() for w in words)
