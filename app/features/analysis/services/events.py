"""
Event emitter scoped to one orchestrator instance.

Listeners may be plain functions or coroutine functions; ``emit`` awaits the
latter. A listener that raises propagates out of ``emit``.
"""
import inspect
from enum import Enum
from typing import Any, Callable, Dict, List, Union


class AnalysisEvent(str, Enum):
    module_start = "module_start"          # (name)
    module_complete = "module_complete"    # (name, result)
    module_error = "module_error"          # (name, error)
    progress = "progress"                  # (ProgressUpdate)
    complete = "complete"                  # (AnalysisResults)
    error = "error"                        # (error)


Listener = Callable[..., Any]


class EventEmitter:
    def __init__(self):
        self._listeners: Dict[AnalysisEvent, List[Listener]] = {event: [] for event in AnalysisEvent}

    def on(self, event: Union[AnalysisEvent, str], listener: Listener) -> Listener:
        self._listeners[AnalysisEvent(event)].append(listener)
        return listener

    def off(self, event: Union[AnalysisEvent, str], listener: Listener) -> None:
        listeners = self._listeners[AnalysisEvent(event)]
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: Union[AnalysisEvent, str]) -> int:
        return len(self._listeners[AnalysisEvent(event)])

    def remove_all_listeners(self) -> None:
        for listeners in self._listeners.values():
            listeners.clear()

    async def emit(self, event: Union[AnalysisEvent, str], *args: Any) -> None:
        # Copy so listeners can unsubscribe while being notified
        for listener in list(self._listeners[AnalysisEvent(event)]):
            result = listener(*args)
            if inspect.isawaitable(result):
                await result
