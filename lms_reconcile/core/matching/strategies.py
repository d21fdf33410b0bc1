"""جدول بستهٔ راهبردهای تطبیق (ایمیل دقیق، تلفن مشترک، نام فازی).

هر راهبرد برای کلیدهای یک رکورد سمت A از میان نامزدهای هنوز مصرف‌نشدهٔ
سمت B (یک :class:`CandidatePool`) بهترین نامزد و امتیاز آن (۰ تا ۱۰۰) را
برمی‌گرداند. کلیدهای مقایسه در هر اجرا یک‌بار ساخته می‌شوند و جست‌وجوی
ایمیل و تلفن از نمایهٔ دیکشنری انجام می‌شود. ترتیب اجرای راهبردها در
:data:`STRATEGY_TABLE` ثابت است و پیکربندی فقط می‌تواند زیرمجموعه‌ای از
آن را فعال کند.

مثال::

    >>> from lms_reconcile.core.common.types import IdentityRecord, Platform
    >>> from lms_reconcile.core.policy.config import MatchConfiguration
    >>> config = MatchConfiguration()
    >>> a = IdentityRecord("T1", "Sara Ahmed", "s@x.com", Platform.TALENT)
    >>> b = IdentityRecord("P1", "ahmed sara", "sara@y.com", Platform.PHARMACY)
    >>> pool = CandidatePool.from_records([b], config)
    >>> fuzzy_name_candidate(match_keys(a, config), pool, config)
    (0, 100)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

from lms_reconcile.core.common.normalization import comparison_key
from lms_reconcile.core.common.phone_rules import phone_key
from lms_reconcile.core.common.types import IdentityRecord, MatchReason
from lms_reconcile.core.policy.config import (
    STRATEGY_EXACT_EMAIL,
    STRATEGY_FUZZY_NAME,
    STRATEGY_SAME_PHONE,
    MatchConfiguration,
)

__all__ = [
    "Candidate",
    "CandidateFn",
    "CandidatePool",
    "MatchKeys",
    "MatchStrategy",
    "STRATEGY_TABLE",
    "match_keys",
    "exact_email_candidate",
    "same_phone_candidate",
    "fuzzy_name_candidate",
    "name_similarity",
    "enabled_strategies",
]

# (جایگاه نامزد در استخر، امتیاز صحیح ۰ تا ۱۰۰)
Candidate = Tuple[int, int]

EXACT_EMAIL_SCORE = 100
SAME_PHONE_SCORE = 90

# نام‌های پیش‌فرض هیچ اطلاعی از هویت ندارند و در تطبیق فازی شرکت نمی‌کنند.
_PLACEHOLDER_NAMES = frozenset({"", "unknown"})


@dataclass(frozen=True, slots=True)
class MatchKeys:
    """کلیدهای مقایسهٔ یک رکورد؛ رشتهٔ خالی یعنی کلید در دسترس نیست."""

    email: str
    phone: str
    name: str


def match_keys(record: IdentityRecord, config: MatchConfiguration) -> MatchKeys:
    return MatchKeys(
        email=record.email,
        phone=phone_key(record.phone),
        name=comparison_key(record.full_name, arabic=config.normalize_arabic),
    )


def _append(index: Dict[str, List[int]], key: str, position: int) -> None:
    index.setdefault(key, []).append(position)


def _discard(index: Dict[str, List[int]], key: str, position: int) -> None:
    positions = index.get(key)
    if not positions:
        return
    positions.remove(position)
    if not positions:
        del index[key]


class CandidatePool:
    """نامزدهای مصرف‌نشدهٔ یک طرف با نمایهٔ ایمیل، تلفن و نام.

    جایگاه‌ها همان اندیس ورودی سازنده‌اند و پس از :meth:`take` تغییر
    نمی‌کنند. فهرست جایگاه‌های هر کلید به ترتیب ورود نگه داشته می‌شود تا
    نامزد زودتر همیشه اول باشد.

    >>> from lms_reconcile.core.common.types import IdentityRecord, Platform
    >>> from lms_reconcile.core.policy.config import MatchConfiguration
    >>> config = MatchConfiguration()
    >>> rows = [IdentityRecord(e, "N", e, Platform.PHARMACY) for e in ("a@x.com", "a@x.com")]
    >>> pool = CandidatePool.from_records(rows, config)
    >>> pool.first_with_email("a@x.com")
    0
    >>> pool.take(0)
    >>> pool.first_with_email("a@x.com"), len(pool)
    (1, 1)
    """

    def __init__(self, records: Sequence[IdentityRecord], keys: Sequence[MatchKeys]) -> None:
        if len(records) != len(keys):
            raise ValueError("records and keys must have the same length")
        self._records = list(records)
        self._keys = list(keys)
        self._alive = set(range(len(self._records)))
        self._by_email: Dict[str, List[int]] = {}
        self._by_phone: Dict[str, List[int]] = {}
        self._names: Dict[int, str] = {}
        for position, key in enumerate(self._keys):
            if key.email:
                _append(self._by_email, key.email, position)
            if key.phone:
                _append(self._by_phone, key.phone, position)
            if key.name not in _PLACEHOLDER_NAMES:
                self._names[position] = key.name

    @classmethod
    def from_records(
        cls, records: Sequence[IdentityRecord], config: MatchConfiguration
    ) -> "CandidatePool":
        return cls(records, [match_keys(record, config) for record in records])

    def __len__(self) -> int:
        return len(self._alive)

    def __contains__(self, position: object) -> bool:
        return position in self._alive

    def record(self, position: int) -> IdentityRecord:
        return self._records[position]

    def first_with_email(self, email: str) -> Optional[int]:
        positions = self._by_email.get(email)
        return positions[0] if positions else None

    def first_with_phone(self, phone: str) -> Optional[int]:
        positions = self._by_phone.get(phone)
        return positions[0] if positions else None

    @property
    def names(self) -> Mapping[int, str]:
        """نام‌های قابل مقایسهٔ نامزدهای زنده، به ترتیب جایگاه."""

        return self._names

    def take(self, position: int) -> None:
        """حذف یک نامزد از استخر و همهٔ نمایه‌ها."""

        if position not in self._alive:
            return
        self._alive.discard(position)
        key = self._keys[position]
        _discard(self._by_email, key.email, position)
        _discard(self._by_phone, key.phone, position)
        self._names.pop(position, None)


CandidateFn = Callable[[MatchKeys, CandidatePool, MatchConfiguration], Optional[Candidate]]


def exact_email_candidate(
    keys: MatchKeys,
    pool: CandidatePool,
    config: MatchConfiguration,
) -> Optional[Candidate]:
    position = pool.first_with_email(keys.email) if keys.email else None
    if position is None:
        return None
    return position, EXACT_EMAIL_SCORE


def same_phone_candidate(
    keys: MatchKeys,
    pool: CandidatePool,
    config: MatchConfiguration,
) -> Optional[Candidate]:
    """نخستین نامزد با کلید تلفن برابر؛ تلفن خالی هرگز تطبیق نمی‌خورد."""

    if not keys.phone:
        return None
    position = pool.first_with_phone(keys.phone)
    if position is None:
        return None
    return position, SAME_PHONE_SCORE


def name_similarity(left: str, right: str) -> float:
    """درصد شباهت دو نام نرمال‌شده، مستقل از ترتیب کلمات.

    >>> name_similarity("john doe", "doe john")
    100.0
    """

    return float(fuzz.token_sort_ratio(left, right))


def fuzzy_name_candidate(
    keys: MatchKeys,
    pool: CandidatePool,
    config: MatchConfiguration,
) -> Optional[Candidate]:
    """بهترین نامزد با شباهت نام بیشتر از آستانه.

    امتیاز برابر با آستانه کافی نیست. در تساوی امتیاز، نامزد زودتر برنده
    است؛ ``extractOne`` نخستین بهترین را برمی‌گرداند.
    """

    if keys.name in _PLACEHOLDER_NAMES or not pool.names:
        return None
    cutoff = config.fuzzy_percent
    best = process.extractOne(
        keys.name,
        pool.names,
        scorer=fuzz.token_sort_ratio,
        score_cutoff=cutoff,
    )
    if best is None:
        return None
    _, score, position = best
    # بهترین امتیاز اگر فقط برابر آستانه باشد هیچ نامزدی از آن بیشتر نیست.
    if score <= cutoff:
        return None
    return position, int(round(score))


@dataclass(frozen=True, slots=True)
class MatchStrategy:
    name: str
    reason: MatchReason
    find: CandidateFn


STRATEGY_TABLE: Tuple[MatchStrategy, ...] = (
    MatchStrategy(STRATEGY_EXACT_EMAIL, MatchReason.EXACT_EMAIL, exact_email_candidate),
    MatchStrategy(STRATEGY_SAME_PHONE, MatchReason.SAME_PHONE, same_phone_candidate),
    MatchStrategy(STRATEGY_FUZZY_NAME, MatchReason.FUZZY_NAME, fuzzy_name_candidate),
)


def enabled_strategies(config: MatchConfiguration) -> Tuple[MatchStrategy, ...]:
    """راهبردهای فعال به ترتیب اولویت ثابت جدول."""

    return tuple(strategy for strategy in STRATEGY_TABLE if config.uses(strategy.name))
