import logging
from collections.abc import Callable

from domain.models.currency import CrossRateTable

logger = logging.getLogger(__name__)

RatesListener = Callable[[CrossRateTable], None]
LoadingListener = Callable[[bool], None]


class RateStore:
    """Single-writer holder of the current cross-rate table and loading flag.

    Subscribers are called with the current value when they subscribe and
    again on every change. ``set`` always replaces the whole table.
    """

    def __init__(self, table: CrossRateTable | None = None):
        self._table: CrossRateTable = self._copy(table or {})
        self._loading = False
        self._rate_listeners: list[RatesListener] = []
        self._loading_listeners: list[LoadingListener] = []

    @staticmethod
    def _copy(table: CrossRateTable) -> CrossRateTable:
        return {from_code: dict(row) for from_code, row in table.items()}

    @property
    def table(self) -> CrossRateTable:
        return self._copy(self._table)

    @property
    def is_empty(self) -> bool:
        return not self._table

    @property
    def loading(self) -> bool:
        return self._loading

    def get_rate(self, from_currency: str, to_currency: str) -> float | None:
        return self._table.get(from_currency, {}).get(to_currency)

    def set(self, table: CrossRateTable) -> None:
        self._table = self._copy(table)
        self._notify(self._rate_listeners, self.table)
        self.set_loading(False)

    def set_loading(self, loading: bool) -> None:
        if loading == self._loading:
            return
        self._loading = loading
        self._notify(self._loading_listeners, loading)

    def subscribe_rates(self, listener: RatesListener) -> Callable[[], None]:
        return self._subscribe(self._rate_listeners, listener, self.table)

    def subscribe_loading(self, listener: LoadingListener) -> Callable[[], None]:
        return self._subscribe(self._loading_listeners, listener, self._loading)

    def _subscribe(self, listeners: list, listener: Callable, current) -> Callable[[], None]:
        listeners.append(listener)
        self._deliver(listener, current)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _notify(self, listeners: list, value) -> None:
        for listener in list(listeners):
            self._deliver(listener, value)

    def _deliver(self, listener: Callable, value) -> None:
        try:
            listener(value)
        except Exception:
            logger.exception(f"Rate store subscriber {listener!r} raised")
