from typing import Iterable, List, Optional

from docshare.models.schemas import DocumentRef, UserAccount

SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_file_size(size: int) -> str:
    """1536 -> '1.5 KB'; two decimals at most, trailing zeros dropped."""
    if not size or size <= 0:
        return "0 Bytes"
    value = float(size)
    i = 0
    while value >= 1024 and i < len(SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    text = ("%.2f" % value).rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[i]}"


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def filter_documents(docs: Iterable[DocumentRef], term: str, include_owner: bool = False) -> List[DocumentRef]:
    """Case-insensitive match on name or description (and owner name for team lists)."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(docs)
    return [
        d for d in docs
        if _contains(d.name, needle)
        or _contains(d.description, needle)
        or (include_owner and _contains(d.owner_name, needle))
    ]


def filter_users(users: Iterable[UserAccount], term: str = "", active_only: bool = False) -> List[UserAccount]:
    needle = (term or "").strip().lower()
    out = []
    for u in users:
        if active_only and not u.active:
            continue
        if needle and not any(_contains(v, needle) for v in (u.username, u.email, u.first_name, u.last_name)):
            continue
        out.append(u)
    return out
