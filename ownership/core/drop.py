"""
Destruction Hooks and Scoped Ownership
======================================

Deterministic destruction for values that opt in.

INVARIANTS:
- A destruction hook runs exactly once per value
- The hook runs before the value's owned parts are released
- A Scope disposes what it still owns in reverse order of acquisition,
  on every exit path
- Early disposal through `drop` fires at the call site and removes the value
  from its scope

Owned parts of a value are its dataclass fields (declaration order), the
items of a tuple/list, the values of a dict, or the attributes of a plain
Drop object. Anything that is not an Owner, Drop or container is inert.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import fields, is_dataclass
from typing import Iterator, List, Optional, TypeVar

from ..contracts.base import ErrorCode
from ..contracts.events import LifecycleEventType
from ..observability import get_engine
from .panic import UseAfterRelease, fault


T = TypeVar("T")

_DISPOSED_FLAG = "_ownership_disposed"


class Drop:
    """
    Mixin for values with a destruction hook.

    Override `drop`. It is called with the value still intact, exactly once,
    when its owner lets go of it. Subclasses may use ``__slots__``; the
    disposed flag lives in a slot of its own.
    """

    __slots__ = (_DISPOSED_FLAG,)

    def drop(self) -> None:
        """Destruction hook. Default does nothing."""


class Owner(ABC):
    """
    Base for containers that own something: Box, Rc, RefCell and guards.

    `release` consumes the owner. Using or releasing it afterwards faults.
    Owners are context managers that release on exit if still live.
    """

    _kind = "owner"

    def __init__(self, subject: Optional[str] = None):
        self._subject = subject or get_engine().next_id(self._kind)
        self._released = False

    @property
    def subject(self) -> str:
        """Trace identifier, e.g. ``rc#2``."""
        return self._subject

    @property
    def is_released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Give up ownership. Exactly once."""
        if self._released:
            raise fault(
                UseAfterRelease,
                ErrorCode.DOUBLE_DISPOSE,
                self._subject,
                f"{self._subject} was already released"
            )
        self._released = True
        self._on_release()

    @abstractmethod
    def _on_release(self) -> None:
        """Release what this owner holds."""

    def _owned_parts(self) -> Iterator[object]:
        """Values this owner holds exclusively."""
        return iter(())

    def _ensure_live(self):
        if self._released:
            raise fault(
                UseAfterRelease,
                ErrorCode.USE_AFTER_RELEASE,
                self._subject,
                f"{self._subject} used after release"
            )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if not self._released:
            self.release()
        return False


def _instance_attrs(value: object) -> Iterator[object]:
    """Attribute values of a plain object, from its __dict__ and any __slots__."""
    yield from getattr(value, "__dict__", {}).values()
    for klass in type(value).__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in (_DISPOSED_FLAG, "__dict__", "__weakref__"):
                continue
            if hasattr(value, name):
                yield getattr(value, name)


def iter_owned(value: object) -> Iterator[object]:
    """Yield the direct parts `value` owns, in release order."""
    if isinstance(value, Owner):
        yield from value._owned_parts()
    elif is_dataclass(value) and not isinstance(value, type):
        for f in fields(value):
            yield getattr(value, f.name)
    elif isinstance(value, (tuple, list)):
        yield from value
    elif isinstance(value, dict):
        yield from value.values()
    elif isinstance(value, Drop):
        yield from _instance_attrs(value)


def _is_inert(value: object) -> bool:
    if isinstance(value, (Owner, Drop, tuple, list, dict)):
        return False
    return not (is_dataclass(value) and not isinstance(value, type))


def dispose(value: object) -> None:
    """
    Destroy `value`.

    Owners are released; Drop values get their hook, then their owned parts
    are disposed; plain containers have their parts disposed.
    """
    if isinstance(value, Owner):
        value.release()
        return

    if _is_inert(value):
        return

    if isinstance(value, Drop):
        subject = type(value).__name__
        if getattr(value, _DISPOSED_FLAG, False):
            raise fault(
                UseAfterRelease,
                ErrorCode.DOUBLE_DISPOSE,
                subject,
                f"{subject} value was already disposed"
            )
        # frozen dataclasses refuse plain setattr
        object.__setattr__(value, _DISPOSED_FLAG, True)
        get_engine().record(LifecycleEventType.HOOK_FIRED, subject, detail=repr(value))
        value.drop()

    for part in iter_owned(value):
        dispose(part)


def is_disposed(value: object) -> bool:
    if isinstance(value, Owner):
        return value.is_released
    return bool(getattr(value, _DISPOSED_FLAG, False))


# =============================================================================
# SCOPES
# =============================================================================

_scope_stack: List["Scope"] = []


class Scope:
    """
    Explicit scope of ownership.

    Usage:
        with Scope() as scope:
            a = scope.own(Resource("a"))
            b = scope.own(Resource("b"))
        # b disposed, then a
    """

    def __init__(self, name: str = "scope"):
        self._name = name
        self._owned: List[object] = []
        self._closed = False

    def own(self, value: T) -> T:
        """Take ownership of `value` until the scope closes. Returns it."""
        if self._closed:
            raise fault(
                UseAfterRelease,
                ErrorCode.USE_AFTER_RELEASE,
                self._name,
                f"scope {self._name!r} is closed"
            )
        self._owned.append(value)
        return value

    def owns(self, value: object) -> bool:
        return any(v is value for v in self._owned)

    def forget(self, value: object) -> bool:
        """Stop owning `value` without disposing it (a move out of the scope)."""
        for index, owned in enumerate(self._owned):
            if owned is value:
                del self._owned[index]
                return True
        return False

    def drop(self, value: object) -> None:
        """Dispose `value` now instead of at scope exit."""
        self.forget(value)
        dispose(value)

    def close(self) -> None:
        """
        Dispose everything still owned, last acquired first.

        Every value is disposed even if an earlier one fails; the first
        failure is raised afterwards.
        """
        if self._closed:
            return
        self._closed = True

        first_failure: Optional[BaseException] = None
        while self._owned:
            value = self._owned.pop()
            try:
                dispose(value)
            except BaseException as exc:
                if first_failure is None:
                    first_failure = exc

        if first_failure is not None:
            raise first_failure

    @property
    def name(self) -> str:
        return self._name

    @property
    def owned_count(self) -> int:
        return len(self._owned)

    def __enter__(self) -> "Scope":
        _scope_stack.append(self)
        return self

    def __exit__(self, exc_type, exc, tb):
        if _scope_stack and _scope_stack[-1] is self:
            _scope_stack.pop()
        else:
            _scope_stack.remove(self)
        self.close()
        return False


def current_scope() -> Optional[Scope]:
    return _scope_stack[-1] if _scope_stack else None


def drop(value: object) -> None:
    """
    Dispose `value` immediately.

    If an active scope owns it, that scope lets go first, so scope exit will
    not dispose it again.
    """
    for scope in reversed(_scope_stack):
        if scope.forget(value):
            break
    dispose(value)
