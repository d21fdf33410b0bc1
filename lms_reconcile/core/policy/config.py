"""تعریف پیکربندی تطبیق حساب‌ها (Core only).

پیکربندی یک مقدار صریح و تغییرناپذیر است که به موتور پاس داده می‌شود؛ هیچ
وضعیت سراسری یا متغیر محیطی در Core خوانده نمی‌شود.

مثال:
    >>> config = parse_settings_dict({"fuzzy_threshold": 0.9, "strategies": ["exact_email"]})
    >>> config.fuzzy_threshold, config.strategies
    (0.9, ('exact_email',))
    >>> config.fuzzy_percent
    90.0
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping, Tuple

from lms_reconcile.core.common.errors import ConfigurationError

__all__ = [
    "STRATEGY_EXACT_EMAIL",
    "STRATEGY_SAME_PHONE",
    "STRATEGY_FUZZY_NAME",
    "KNOWN_STRATEGIES",
    "DEFAULT_FUZZY_THRESHOLD",
    "MatchConfiguration",
    "parse_settings_dict",
]

STRATEGY_EXACT_EMAIL = "exact_email"
STRATEGY_SAME_PHONE = "same_phone"
STRATEGY_FUZZY_NAME = "fuzzy_name"

# ترتیب این تاپل همان اولویت اجرای راهبردهاست.
KNOWN_STRATEGIES: Tuple[str, ...] = (
    STRATEGY_EXACT_EMAIL,
    STRATEGY_SAME_PHONE,
    STRATEGY_FUZZY_NAME,
)

DEFAULT_FUZZY_THRESHOLD = 0.85


def _normalize_strategies(raw: Iterable[str]) -> Tuple[str, ...]:
    requested = []
    for name in raw:
        key = str(name).strip().lower().replace("-", "_")
        if key not in KNOWN_STRATEGIES:
            raise ConfigurationError(func="MatchConfiguration", column="strategies", value=name)
        if key not in requested:
            requested.append(key)
    # ترتیب اولویت ثابت است، نه ترتیب ورودی کاربر.
    return tuple(name for name in KNOWN_STRATEGIES if name in requested)


@dataclass(frozen=True)
class MatchConfiguration:
    """پارامترهای یک اجرای تطبیق.

    Attributes:
        fuzzy_threshold: آستانهٔ شباهت نام (۰ تا ۱)؛ فقط امتیاز بیشتر از آن تطبیق فازی است.
        check_intra_platform: اجرای اسکن تکراری درون هر سامانه.
        normalize_arabic: یکسان‌سازی حروف عربی پیش از مقایسهٔ نام.
        strategies: زیرمجموعهٔ مرتب راهبردهای فعال.
        workers: تعداد thread برای ساخت رکوردها (۱ یعنی ترتیبی).
    """

    fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD
    check_intra_platform: bool = False
    normalize_arabic: bool = True
    strategies: Tuple[str, ...] = KNOWN_STRATEGIES
    workers: int = 1

    def __post_init__(self) -> None:
        threshold = self.fuzzy_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise ConfigurationError(func="MatchConfiguration", column="fuzzy_threshold", value=threshold)
        if not 0.0 <= float(threshold) <= 1.0:
            raise ConfigurationError(func="MatchConfiguration", column="fuzzy_threshold", value=threshold)
        object.__setattr__(self, "fuzzy_threshold", float(threshold))
        if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigurationError(func="MatchConfiguration", column="workers", value=self.workers)
        if isinstance(self.strategies, str):
            raise ConfigurationError(func="MatchConfiguration", column="strategies", value=self.strategies)
        object.__setattr__(self, "strategies", _normalize_strategies(self.strategies))

    @property
    def fuzzy_percent(self) -> float:
        """آستانهٔ فازی در مقیاس درصدی (۰ تا ۱۰۰)."""

        return round(self.fuzzy_threshold * 100.0, 6)

    def uses(self, strategy: str) -> bool:
        return strategy in self.strategies

    def with_overrides(self, **overrides: Any) -> "MatchConfiguration":
        """نسخهٔ جدید با جایگزینی فیلدهای غیر ``None``."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self

    def to_dict(self) -> dict[str, Any]:
        return {
            "fuzzy_threshold": self.fuzzy_threshold,
            "check_intra_platform": self.check_intra_platform,
            "normalize_arabic": self.normalize_arabic,
            "strategies": list(self.strategies),
            "workers": self.workers,
        }


_BOOL_KEYS = ("check_intra_platform", "normalize_arabic")


def parse_settings_dict(data: Mapping[str, Any]) -> MatchConfiguration:
    """ساخت :class:`MatchConfiguration` از دیکشنری تنظیمات (مثلاً JSON).

    کلیدهای ناشناخته خطا هستند تا غلط تایپی بی‌صدا نادیده گرفته نشود.

    Raises:
        ConfigurationError: کلید ناشناخته یا مقدار نامعتبر.
    """

    allowed = {"fuzzy_threshold", "strategies", "workers", *_BOOL_KEYS}
    for key in data:
        if key not in allowed:
            raise ConfigurationError(func="parse_settings_dict", column=str(key), value=data[key])
    kwargs: dict[str, Any] = {}
    if "fuzzy_threshold" in data:
        kwargs["fuzzy_threshold"] = data["fuzzy_threshold"]
    for key in _BOOL_KEYS:
        if key in data:
            value = data[key]
            if not isinstance(value, bool):
                raise ConfigurationError(func="parse_settings_dict", column=key, value=value)
            kwargs[key] = value
    if "strategies" in data:
        strategies = data["strategies"]
        if isinstance(strategies, str) or not isinstance(strategies, (list, tuple)):
            raise ConfigurationError(func="parse_settings_dict", column="strategies", value=strategies)
        kwargs["strategies"] = tuple(strategies)
    if "workers" in data:
        kwargs["workers"] = data["workers"]
    return MatchConfiguration(**kwargs)
