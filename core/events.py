from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional
from core.log import logger

VOUCHER_CREATE = "voucher.create"

Listener = Callable[[Any], None]


class VoucherEvent:
    def __init__(self, voucher) -> None:
        self.voucher = voucher


class EventDispatcher:
    """
    In-process publish/subscribe. Publishing is fire-and-forget: a failing
    listener is logged and the remaining listeners still run.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, event_name: str, listener: Listener) -> None:
        self._listeners[event_name].append(listener)

    def unsubscribe(self, event_name: str, listener: Optional[Listener] = None) -> None:
        if listener is None:
            self._listeners.pop(event_name, None)
        elif listener in self._listeners.get(event_name, []):
            self._listeners[event_name].remove(listener)

    def listeners(self, event_name: str) -> List[Listener]:
        return list(self._listeners.get(event_name, []))

    def publish(self, event_name: str, payload: Any) -> None:
        for listener in self.listeners(event_name):
            try:
                listener(payload)
            except Exception as e:
                logger.error(f"Error in listener for {event_name}: {e}")
