import logging
from contextlib import contextmanager
from typing import Iterator, List, Union

from numpy import ndarray

from matstack.mat4 import Mat4, SINGULAR_TOLERANCE, as_mat4
from matstack.errors import (
    NoInverseError,
    OutOfBoundsError,
    SingularMatrixError,
    UnderflowError,
)

logger = logging.getLogger(__name__)


class MatStack:
    """
    A stack of cumulative 4x4 transformation matrices.

    Each push multiplies the current top by the given matrix and appends the
    product. Each pop undoes the previous multiplication. The bottom element
    is always the identity and can never be removed.

    This is the usual tool for scene graphs: push the transform of the
    current object before visiting its children, pop it before returning to
    the parent.

    Only the cumulative products are kept. The per-level factors handed to
    `push` are not retained, which is what makes `rebase` work through
    inverses.

    Not thread-safe. Stacks obtained from `copy` share no mutable state and
    may be used independently.
    """
    __slots__ = ("_mats", "tol")

    def __init__(self, tol: float = SINGULAR_TOLERANCE):
        self._mats: List[Mat4] = [Mat4.identity()]
        self.tol = tol

    @classmethod
    def _from_mats(cls, mats: List[Mat4], tol: float) -> "MatStack":
        instance = object.__new__(cls)
        instance._mats = mats
        instance.tol = tol
        return instance

    def push(self, factor: Union[Mat4, ndarray]) -> None:
        """Multiply the current top by `factor` and push the result."""
        factor = as_mat4(factor)
        self._mats.append(self._mats[-1] @ factor)

    def pop(self) -> Mat4:
        """
        Remove and return the top of the stack.

        Raises:
            UnderflowError: if only the identity is left.
        """
        if len(self._mats) == 1:
            raise UnderflowError(
                "attempt to pop last element of the stack; a matrix stack must have at least one element")
        return self._mats.pop()

    def peek(self) -> Mat4:
        """Return the top of the stack without removing it."""
        return self._mats[-1]

    @property
    def depth(self) -> int:
        """Number of elements on the stack. Never less than 1."""
        return len(self._mats)

    def unwind(self, n: int) -> None:
        """
        Remove the top `n` elements, as if `pop` had been called `n` times.

        Raises:
            UnderflowError: if that would remove the identity. Nothing is
                removed in that case.
        """
        if n < 0:
            raise ValueError(f"cannot unwind a negative number of elements: {n}")
        if n > len(self._mats) - 1:
            raise UnderflowError(
                f"cannot unwind {n} elements from a matrix stack of length {len(self._mats)}; "
                "at least one element must remain")
        if n:
            del self._mats[-n:]

    def copy(self) -> "MatStack":
        """
        Create a new branch of this stack. Changes to one never affect the other.
        """
        # Mat4 is immutable, a new list is all the isolation needed
        return self._from_mats(list(self._mats), self.tol)

    def rebase(self, n: int, change: Union[Mat4, ndarray]) -> None:
        """
        Replace the factor that was pushed at level `n` with `change` and
        replay every deeper level on top of it.

        The factors are not stored, so each one is recovered from consecutive
        cumulative matrices: if ``M[i-1]`` can be inverted, the factor applied
        at level ``i`` is ``inv(M[i-1]) @ M[i]``, and it is then combined with
        the already rebased ``M[i-1]``.

        Rebase is imprecise by nature, sometimes impossible, and costs one
        inverse per affected level. Callers that still hold the original
        factors should prefer ``unwind`` followed by ``push(change)`` and the
        remaining pushes.

        Args:
            n: level to rebase, ``1 <= n < len(self)``.
            change: the replacement factor.

        Raises:
            OutOfBoundsError: if `n` is out of range.
            NoInverseError: if a cumulative matrix along the chain is
                singular. The stack is restored to its exact prior state.
        """
        if n >= len(self._mats) or n <= 0:
            raise OutOfBoundsError(
                f"cannot rebase at index {n}; valid indices are 1 to {len(self._mats) - 1}")
        change = as_mat4(change)
        mats = self._mats
        logger.debug("rebasing matrix stack of length %d at index %d",
                     len(mats), n)

        backup = mats[n:]

        curr = mats[n]
        mats[n] = mats[n - 1] @ change

        for i in range(n + 1, len(mats)):
            try:
                inv = curr.inverse(self.tol)
            except SingularMatrixError as e:
                self._undo_rebase(n, backup)
                logger.debug("rebase at index %d rolled back, no inverse at index %d",
                             n, i - 1)
                raise NoInverseError(curr, i - 1, e.det) from e

            ghost = inv @ mats[i]

            curr = mats[i]
            mats[i] = ghost @ mats[i - 1]

    def _undo_rebase(self, n: int, backup: List[Mat4]) -> None:
        self._mats[n:] = backup

    @contextmanager
    def pushed(self, factor: Union[Mat4, ndarray]) -> Iterator[Mat4]:
        """
        Push `factor` for the duration of a ``with`` block.

        Yields the new top. On exit the stack is unwound back to the depth it
        had on entry, even if the block pushed more or raised.

        Raises:
            UnderflowError: if the block popped below the entry depth and
                exited normally.
        """
        depth = len(self._mats)
        self.push(factor)
        try:
            yield self._mats[-1]
        finally:
            extra = len(self._mats) - depth
            if extra > 0:
                self.unwind(extra)
        if len(self._mats) < depth:
            raise UnderflowError(
                f"matrix stack left at length {len(self._mats)} by a block entered at length {depth}")

    def __len__(self) -> int:
        return len(self._mats)

    def __getitem__(self, index: int) -> Mat4:
        return self._mats[index]

    def __iter__(self) -> Iterator[Mat4]:
        return iter(list(self._mats))

    def __eq__(self, other: object) -> bool:
        """
        True if `other` is a MatStack of the same length whose matrices are
        equal within a small tolerance.
        """
        if not isinstance(other, MatStack) or len(self._mats) != len(other._mats):
            return False
        return all(a == b for a, b in zip(self._mats, other._mats))

    __hash__ = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(len={len(self._mats)}, top={self._mats[-1]!r})"

    def __copy__(self) -> "MatStack":
        return self.copy()

    def __deepcopy__(self, memo) -> "MatStack":
        return self.copy()

    def __reduce__(self):
        return (self.__class__._from_mats, (list(self._mats), self.tol))
