from typing import Any, Dict

from promocheck.datatypes.discord_datatypes import ChannelID, GuildID
from promocheck.datatypes.review_datatypes import FieldKind

DEFAULT_FIELD_LABELS: Dict[FieldKind, str] = {
    FieldKind.IDENTITY: "Имя Фамилия | Static ID",
    FieldKind.RANK: "На какой ранг повышаетесь",
    FieldKind.REPORT: "Отчёт на повышение",
    FieldKind.SENDER: "Отправил(а)",
}


class ReviewSettings:
    """Helper exposing typed accessors for the ``review`` configuration block.

    Values are coerced on every access so a malformed entry falls back to
    its default instead of breaking a review run. Use `get` for keys that
    have no dedicated property.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return self.data

    def _float(self, key: str, default: float) -> float:
        try:
            return max(0.0, float(self.data.get(key, default)))
        except (TypeError, ValueError):
            return default

    def _int(self, key: str, default: int, minimum: int = 1) -> int:
        try:
            return max(minimum, int(self.data.get(key, default)))
        except (TypeError, ValueError):
            return default

    # Target of the reviewer
    @property
    def target_guild_id(self) -> GuildID | None:
        value = self.data.get("target_guild_id")
        try:
            return GuildID(value) if value else None
        except ValueError:
            return None

    @property
    def target_channel_id(self) -> ChannelID | None:
        value = self.data.get("target_channel_id")
        try:
            return ChannelID(value) if value else None
        except ValueError:
            return None

    # Behaviour switches
    @property
    def check_count(self) -> int:
        """Number of requests a batch run reviews."""
        return self._int("check_count", 5)

    @property
    def ignore_already_checked(self) -> bool:
        """Review requests again even when they are already decided or annotated."""
        return bool(self.data.get("ignore_already_checked", False))

    @property
    def experimental_features(self) -> bool:
        return bool(self.data.get("experimental_features", False))

    # Timing
    @property
    def debounce_seconds(self) -> float:
        return self._float("debounce_seconds", 0.5)

    @property
    def settle_seconds(self) -> float:
        return self._float("settle_seconds", 1.5)

    @property
    def inter_item_delay_seconds(self) -> float:
        return self._float("inter_item_delay_seconds", 1.5)

    # Fetch limits
    @property
    def history_scan_limit(self) -> int:
        """How many recent channel messages a batch run looks through for requests."""
        return self._int("history_scan_limit", 50)

    @property
    def report_fetch_window(self) -> int:
        return self._int("report_fetch_window", 1)

    @property
    def report_fetch_retries(self) -> int:
        return self._int("report_fetch_retries", 2)

    @property
    def report_fetch_timeout_seconds(self) -> float:
        return self._float("report_fetch_timeout_seconds", 10.0)

    @property
    def field_labels(self) -> Dict[FieldKind, str]:
        """Label fragments used to locate each field in the request embed."""
        labels = dict(DEFAULT_FIELD_LABELS)
        configured = self.data.get("field_labels", {})
        if isinstance(configured, dict):
            for kind in FieldKind:
                value = configured.get(kind.value)
                if isinstance(value, str) and value.strip():
                    labels[kind] = value.strip()
        return labels
