"""اجرای راهبردهای تطبیق روی دو سامانه (و اسکن اختیاری درون‌سامانه‌ای).

هر رکورد در یک اجرا حداکثر در یک جفت بین‌سامانه‌ای و حداکثر در یک جفت
درون‌سامانه‌ای حضور دارد. این قاعده با :class:`ConsumptionLedger` اعمال
می‌شود که رزرو دو طرف جفت را به‌صورت اتمیک انجام می‌دهد.

مثال::

    >>> from lms_reconcile.core.common.types import IdentityRecord, Platform
    >>> from lms_reconcile.core.policy.config import MatchConfiguration
    >>> t = [IdentityRecord("T1", "John", "j@x.com", Platform.TALENT)]
    >>> p = [IdentityRecord("P1", "John", "j@x.com", Platform.PHARMACY)]
    >>> links = match_inter_platform(t, p, MatchConfiguration())
    >>> [(str(l.reason), l.score) for l in links]
    [('Exact Email', 100)]
"""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass
from typing import Hashable, List, Sequence, Set, Tuple

from lms_reconcile.core.common.types import IdentityRecord, MatchReason, MatchType, Platform
from lms_reconcile.core.policy.config import MatchConfiguration

from .strategies import CandidatePool, MatchKeys, enabled_strategies, match_keys

__all__ = [
    "INTER_SCOPE",
    "MatchLink",
    "ConsumptionLedger",
    "pair_id_for",
    "match_inter_platform",
    "match_intra_platform",
]

INTER_SCOPE = "inter"


@dataclass(frozen=True, slots=True)
class MatchLink:
    """نتیجهٔ خام تطبیق پیش از تصمیم اصلی/ثانویه."""

    match_type: MatchType
    reason: MatchReason
    score: int
    account_a: IdentityRecord
    account_b: IdentityRecord

    @property
    def pair_id(self) -> str:
        return pair_id_for(self.match_type, self.account_a.email, self.account_b.email)


def pair_id_for(match_type: MatchType, email_a: str, email_b: str) -> str:
    """شناسهٔ قطعی جفت از نوع تطبیق و ایمیل‌های مرتب‌شده.

    >>> pair_id_for(MatchType.INTER_PLATFORM, "b@x.com", "a@x.com") == pair_id_for(
    ...     MatchType.INTER_PLATFORM, "a@x.com", "b@x.com")
    True
    >>> pair_id_for(MatchType.INTRA_TALENT, "a@x.com", "b@x.com").startswith("INT-")
    True
    """

    prefix = "INT" if match_type.is_intra else "DUP"
    payload = "|".join([str(match_type), *sorted((email_a, email_b))])
    digest = hashlib.sha1(payload.encode("utf-8")).hexdigest()[:10].upper()
    return f"{prefix}-{digest}"


class ConsumptionLedger:
    """دفتر مصرف رکوردها به تفکیک حوزه (بین‌سامانه‌ای یا درون هر سامانه)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._consumed: Set[Tuple[str, Hashable]] = set()

    def is_consumed(self, scope: str, key: Hashable) -> bool:
        with self._lock:
            return (scope, key) in self._consumed

    def reserve(self, scope: str, first: Hashable, second: Hashable) -> bool:
        """رزرو هم‌زمان دو طرف؛ اگر یکی قبلاً مصرف شده باشد هیچ‌کدام رزرو نمی‌شود."""

        if first == second:
            return False
        with self._lock:
            if (scope, first) in self._consumed or (scope, second) in self._consumed:
                return False
            self._consumed.add((scope, first))
            self._consumed.add((scope, second))
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._consumed)


def _available_positions(
    records: Sequence[IdentityRecord], ledger: ConsumptionLedger, scope: str
) -> List[int]:
    return [
        position
        for position, record in enumerate(records)
        if not ledger.is_consumed(scope, record.account_key)
    ]


def _pool_for(
    records: Sequence[IdentityRecord],
    keys: Sequence[MatchKeys],
    positions: Sequence[int],
) -> CandidatePool:
    return CandidatePool([records[p] for p in positions], [keys[p] for p in positions])


def match_inter_platform(
    first: Sequence[IdentityRecord],
    second: Sequence[IdentityRecord],
    config: MatchConfiguration,
    ledger: ConsumptionLedger | None = None,
) -> List[MatchLink]:
    """تطبیق رکوردهای سامانهٔ اول با دوم به ترتیب اولویت راهبردها.

    طرف A همیشه از ``first`` است؛ خروجی به ترتیب کشف (راهبرد، سپس ترتیب
    رکوردهای ``first``) است. کلیدهای مقایسهٔ هر دو طرف یک‌بار در ابتدای
    اجرا ساخته می‌شوند.
    """

    if ledger is None:
        ledger = ConsumptionLedger()
    first_keys = [match_keys(record, config) for record in first]
    second_keys = [match_keys(record, config) for record in second]
    links: List[MatchLink] = []
    for strategy in enabled_strategies(config):
        pool = _pool_for(second, second_keys, _available_positions(second, ledger, INTER_SCOPE))
        for record, keys in zip(first, first_keys):
            if not pool:
                break
            if ledger.is_consumed(INTER_SCOPE, record.account_key):
                continue
            found = strategy.find(keys, pool, config)
            if found is None:
                continue
            idx, score = found
            other = pool.record(idx)
            if not ledger.reserve(INTER_SCOPE, record.account_key, other.account_key):
                if ledger.is_consumed(INTER_SCOPE, other.account_key):
                    pool.take(idx)
                continue
            pool.take(idx)
            links.append(
                MatchLink(
                    match_type=MatchType.INTER_PLATFORM,
                    reason=strategy.reason,
                    score=score,
                    account_a=record,
                    account_b=other,
                )
            )
    return links


def match_intra_platform(
    records: Sequence[IdentityRecord],
    platform: Platform,
    config: MatchConfiguration,
    ledger: ConsumptionLedger | None = None,
) -> List[MatchLink]:
    """اسکن تکراری درون یک سامانه؛ طرف A همیشه رکورد زودتر است.

    پس از ادغام ایمیل‌ها یکتا هستند، پس عملاً تلفن و نام فازی عمل می‌کنند.
    هر رکورد پیش از جست‌وجو از استخر برداشته می‌شود، پس استخر همیشه فقط
    رکوردهای بعدی را دارد.
    """

    if ledger is None:
        ledger = ConsumptionLedger()
    scope = f"intra:{platform}"
    match_type = MatchType.intra_for(platform)
    keys = [match_keys(record, config) for record in records]
    links: List[MatchLink] = []
    for strategy in enabled_strategies(config):
        positions = _available_positions(records, ledger, scope)
        pool = _pool_for(records, keys, positions)
        for idx_self, position in enumerate(positions):
            if idx_self not in pool:
                continue
            pool.take(idx_self)
            record = records[position]
            if not pool or ledger.is_consumed(scope, record.account_key):
                continue
            found = strategy.find(keys[position], pool, config)
            if found is None:
                continue
            idx, score = found
            other = pool.record(idx)
            if other.account_key == record.account_key:
                continue
            if not ledger.reserve(scope, record.account_key, other.account_key):
                continue
            pool.take(idx)
            links.append(
                MatchLink(
                    match_type=match_type,
                    reason=strategy.reason,
                    score=score,
                    account_a=record,
                    account_b=other,
                )
            )
    return links
