import math

def fnv1a_32(data: str | bytes) -> int:
    """Deterministic, fast hash for seed generation."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    h = 0x811c9dc5
    for c in data:
        h ^= c
        h = (h * 0x01000193) & 0xFFFFFFFF
    return h

def seeded_rand(seed: int, n: int = 1) -> list[float]:
    """
    Stateless pseudo-random generator (Mulberry32-like) so
    same seed → same outputs without storing PRNG state.
    """
    out = []
    t = (seed + 0x6D2B79F5) & 0xFFFFFFFF
    for _ in range(n):
        t = (t ^ (t >> 15)) * (t | 1) & 0xFFFFFFFF
        t ^= t + ((t ^ (t >> 7)) * (t | 61) & 0xFFFFFFFF)
        out.append(((t ^ (t >> 14)) & 0xFFFFFFFF) / 4294967296.0)
    return out

def round_cost(value: float, step: int = 50) -> int:
    """Round a dollar figure to the nearest ``step`` the way estimators quote."""
    return int(step * round(value / step))

def is_usable_number(value) -> bool:
    """True for real (non-bool) finite numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)

def format_square_footage(value: float) -> str:
    """1500 -> '1,500'; 1499.5 -> '1,499.5'."""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.1f}"

def truncate(text: str, limit: int = 2000) -> str:
    """Shorten raw provider text for logs and dev error bodies."""
    if len(text) <= limit:
        return text
    return text[:limit] + f"... [{len(text) - limit} more chars]"
