import math
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

# ─── 数值 / 地区格式化 ──────────────────────────────────────────────────────────

REGION_NAMES = {
    "US": "United States", "GB": "United Kingdom", "CA": "Canada", "AU": "Australia",
    "DE": "Germany", "FR": "France", "JP": "Japan", "KR": "South Korea", "IN": "India",
    "BR": "Brazil", "MX": "Mexico", "ID": "Indonesia", "RU": "Russia", "TR": "Turkey",
    "SA": "Saudi Arabia", "TH": "Thailand", "VN": "Vietnam", "PH": "Philippines",
    "MY": "Malaysia", "SG": "Singapore", "TW": "Taiwan", "HK": "Hong Kong", "CN": "China",
    "NG": "Nigeria", "ZA": "South Africa", "EG": "Egypt", "AE": "UAE", "PK": "Pakistan",
    "BD": "Bangladesh", "IT": "Italy", "ES": "Spain", "NL": "Netherlands", "PL": "Poland",
}


def safe_int(v) -> int:
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        v = v.replace(",", "").replace("+", "").strip()
        try:
            v = float(v)
        except ValueError:
            return 0
    if isinstance(v, float):
        # upstream JSON may carry NaN / Infinity
        return int(v) if math.isfinite(v) else 0
    return 0


def _compact(n: int, unit: int, suffix: str) -> str:
    # Ties on the float value round up: 1250000 -> "1.3m".
    text = str(Decimal(n / unit).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
    if text.endswith(".0"):
        text = text[:-2]
    return text + suffix


def format_number(n) -> str:
    """1234 -> "1.2k", 2000000 -> "2m"."""
    n = safe_int(n)
    if n >= 1_000_000:
        return _compact(n, 1_000_000, "m")
    if n >= 1000:
        return _compact(n, 1000, "k")
    return str(n)


def format_bytes(n) -> str:
    n = safe_int(n)
    if not n:
        return "0 MB"
    return f"{n / (1024 * 1024):.2f} MB"


def parse_region(code) -> str:
    if not code or not isinstance(code, str):
        return "Unknown"
    return REGION_NAMES.get(code, code)


def ts_to_iso(ts) -> str:
    """Convert Unix timestamp to a UTC ISO string, e.g. 2023-11-14T22:13:20.000Z."""
    try:
        ts = int(ts)
        if ts > 0:
            dt = datetime.fromtimestamp(ts, tz=timezone.utc)
            return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    except (ValueError, TypeError, OSError, OverflowError):
        pass
    return ""
