"""
Aggregate errors for operations that run many independent steps.

Closing every idle connection of a pool, invalidating a batch of
connections, and similar cleanup loops keep going after a failure and
report all of them at the end as one raised value.
"""

from collections.abc import Sequence


class AggregateError(Exception):
    """An error carrying a message and zero or more underlying causes.

    ``causes`` is kept as given: ``None`` means no information is available,
    an empty sequence means no cause was recorded. Order is preserved and
    nothing is deduplicated.
    """

    def __init__(
        self,
        message: str | None = None,
        causes: Sequence[BaseException] | None = None,
    ) -> None:
        super().__init__(*(() if message is None else (message,)))
        self._message = message
        self._causes = tuple(causes) if causes is not None else None

    @property
    def message(self) -> str | None:
        return self._message

    @property
    def causes(self) -> tuple[BaseException, ...] | None:
        return self._causes

    def __str__(self) -> str:
        return self._message or ""

    def __reduce__(self) -> tuple:
        return (type(self), (self._message, self._causes))


class SQLErrorList(AggregateError):
    """Database errors collected from a batch, raised once at the end.

    ``cause`` (and the standard ``__cause__`` slot) is the first error of the
    list so handlers written for a single failure keep working; the full
    list is on ``cause_list``.
    """

    def __init__(self, cause_list: Sequence[Exception] | None) -> None:
        causes = tuple(cause_list) if cause_list is not None else None
        first = causes[0] if causes else None
        super().__init__(str(first) if first is not None else None, causes)
        self.__cause__ = first

    @property
    def cause(self) -> Exception | None:
        causes = self.causes
        return causes[0] if causes else None  # type: ignore[return-value]

    @property
    def cause_list(self) -> tuple[Exception, ...] | None:
        return self.causes  # type: ignore[return-value]

    def __reduce__(self) -> tuple:
        return (type(self), (self.cause_list,))

    def __repr__(self) -> str:
        n = len(self.causes) if self.causes is not None else None
        return f"{type(self).__name__}(causes={n}, cause={self.cause!r})"
