"""
Sent-alert history: the optional load/delete collaborators and recipient
status pagination shown when an alert is opened from the history table.
"""

import inspect
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

VIEWED = "viewed"
PENDING = "pending"


@dataclass(frozen=True)
class RecipientStatus:
    """Delivery status of one recipient of a sent alert."""
    id: str
    name: str
    status: str = PENDING

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'RecipientStatus':
        status = data.get('status', PENDING)
        if status not in (VIEWED, PENDING):
            raise ValueError(f"Unknown recipient status: {status!r}")
        return cls(id=str(data['id']), name=str(data.get('name', '')), status=status)


@dataclass(frozen=True)
class AlertTableItem:
    """A row of the sent-alerts table."""
    id: str
    title: str
    message: str = ""
    sent_at: str = ""
    recipients: Tuple[RecipientStatus, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'AlertTableItem':
        known = ('id', 'title', 'message', 'sentAt', 'sent_at', 'recipients')
        return cls(
            id=str(data['id']),
            title=str(data.get('title', '')),
            message=str(data.get('message', '')),
            sent_at=str(data.get('sentAt', data.get('sent_at', ''))),
            recipients=tuple(
                r if isinstance(r, RecipientStatus) else RecipientStatus.from_dict(r)
                for r in data.get('recipients', ())
            ),
            extra={k: v for k, v in data.items() if k not in known},
        )

    @property
    def viewed_count(self) -> int:
        return sum(1 for r in self.recipients if r.status == VIEWED)


@dataclass(frozen=True)
class Page:
    items: Tuple[Any, ...]
    page: int
    total_pages: int


def paginate(items: Sequence[Any], page: int = 1, per_page: int = 10, total_pages: Optional[int] = None) -> Page:
    """
    Slice ``items`` for ``page`` (1-based), clamping the page into range.

    Args:
        items: Full item list
        page: Requested page
        per_page: Items per page (must be positive)
        total_pages: Externally known page count (server-side paging); computed when None

    Returns:
        Page with the effective page number
    """
    if per_page <= 0:
        raise ValueError(f"per_page must be positive, got {per_page}")
    if total_pages is None:
        total_pages = math.ceil(len(items) / per_page)
    effective = max(1, min(total_pages, page))
    start = (effective - 1) * per_page
    return Page(items=tuple(items[start:start + per_page]), page=effective, total_pages=total_pages)


async def _call(fn: Callable, *args: Any) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class AlertHistory:
    """Local cache of sent alerts backed by the load/delete collaborators."""

    def __init__(
        self,
        on_load_alerts: Optional[Callable[[], Union[Awaitable[List[Any]], List[Any]]]] = None,
        on_delete_alert: Optional[Callable[[str], Union[Awaitable[None], None]]] = None,
    ):
        self.on_load_alerts = on_load_alerts
        self.on_delete_alert = on_delete_alert
        self._alerts: Dict[str, AlertTableItem] = {}

    @property
    def alerts(self) -> List[AlertTableItem]:
        return list(self._alerts.values())

    def get(self, alert_id: str) -> Optional[AlertTableItem]:
        return self._alerts.get(alert_id)

    async def load(self) -> List[AlertTableItem]:
        """Replace the cache with the collaborator's rows.

        On failure the previous rows are kept.
        """
        if self.on_load_alerts is None:
            return self.alerts
        try:
            rows = await _call(self.on_load_alerts)
            alerts = {}
            for row in rows or ():
                item = row if isinstance(row, AlertTableItem) else AlertTableItem.from_dict(row)
                alerts[item.id] = item
        except Exception as e:
            logger.error(f"Error loading alerts: {e}")
            return self.alerts
        self._alerts = alerts
        logger.debug(f"Loaded {len(self._alerts)} alerts")
        return self.alerts

    async def delete(self, alert_id: str) -> bool:
        """Delete remotely, then drop locally.

        Returns:
            True if the collaborator accepted the deletion.
        """
        if self.on_delete_alert is not None:
            try:
                await _call(self.on_delete_alert, alert_id)
            except Exception as e:
                logger.error(f"Error deleting alert {alert_id!r}: {e}")
                return False
        self._alerts.pop(alert_id, None)
        logger.info(f"Deleted alert {alert_id!r}")
        return True

    def recipients_page(self, alert_id: str, page: int = 1, per_page: int = 10) -> Page:
        alert = self._alerts.get(alert_id)
        recipients = alert.recipients if alert is not None else ()
        return paginate(recipients, page=page, per_page=per_page)
