"""In-process locks keyed by aggregate identifier.

Commands that touch the same order, cylinder or print job run one at a
time within a process. Locks are acquired in sorted key order so two
commands sharing several keys cannot deadlock.

A command's keys are its own ``*_id`` values, any keys its class lists in
``__lock_keys__``, and whatever the resolvers registered for its class
return. Resolvers cover the aggregates a handler reaches indirectly (the
order owning a cylinder) and the unique values it claims (a phone, a label).
"""

import threading
from collections import defaultdict
from contextlib import contextmanager


class KeyedLocks:
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, *keys: str):
        locks = [self._lock_for(key) for key in sorted(set(keys))]
        for lock in locks:
            lock.acquire()
        try:
            yield
        finally:
            for lock in reversed(locks):
                lock.release()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


_resolvers = defaultdict(list)


def identity_key(field: str, value) -> str:
    return f"{field}:{value}"


def lock_keys_resolver(*command_classes):
    """Register a function returning extra lock keys for the given command classes.

    The function receives the command and returns an iterable of keys. It
    runs against the current domain and must not raise for bad input; the
    handler reports that.
    """

    def decorator(func):
        for command_class in command_classes:
            _resolvers[command_class].append(func)
        return func

    return decorator


def lock_keys_for(command) -> list[str]:
    """Identifier values carried by the command, class keys and resolved keys."""
    keys = [
        identity_key(field, value)
        for field, value in command.to_dict().items()
        if field.endswith("_id") and value
    ]
    keys.extend(getattr(type(command), "__lock_keys__", ()))
    for resolver in _resolvers.get(type(command), ()):
        keys.extend(resolver(command))
    return keys
