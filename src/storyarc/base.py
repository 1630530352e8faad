""" Shared plumbing for objects that notify observers. """

import weakref
from collections.abc import Collection
from typing import Any, Generic, TypeVar

T = TypeVar('T')

class Observable(Generic[T]):
    """ Holds observers weakly, an observer goes away with its owner. """

    def __init__(self, *args:Any, **kwargs:Any) -> None:
        super().__init__(*args, **kwargs)
        self._observers:weakref.WeakSet[T] = weakref.WeakSet()

    @property
    def observers(self) -> Collection[T]:
        return self._observers

    def observe(self, observer:T) -> None:
        self._observers.add(observer)

    def unobserve(self, observer:T) -> None:
        # allow double unobserve calls, e.g. an owner tearing down observers
        # it already removed
        if observer in self._observers:
            self._observers.remove(observer)

    def clear_observers(self) -> None:
        for observer in self._observers.copy():
            self.unobserve(observer)
