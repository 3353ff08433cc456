"""Per-request custom element resolution state.

Resolving a page loads fragments, which may contain custom elements of
their own, which load further fragments. The chain of templates in flight
lives in a ContextVar so it never leaks into the template context and two
concurrent requests never see each other's chain.

Async Safety:
    Each asyncio task copies the current context on creation, so
    ``asyncio.gather`` over independent ``load_template`` calls keeps a
    separate chain per call.

"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass

from litpage.environment.config import DEFAULT_MAX_DEPTH
from litpage.environment.exceptions import CycleDetectedError


@dataclass(frozen=True, slots=True)
class ResolutionContext:
    """The chain of templates currently being resolved.

    Attributes:
        template_name: Template at the head of the chain
        depth: Number of custom element hops from the top-level template
        max_depth: Hop limit before resolution is refused
        stack: Template names in flight, outermost first
    """

    template_name: str | None = None
    depth: int = 0
    max_depth: int = DEFAULT_MAX_DEPTH
    stack: tuple[str, ...] = ()

    def check(self, template_name: str) -> None:
        """Refuse to enter ``template_name`` if it would loop or go too deep.

        Raises:
            CycleDetectedError: If the template is already in flight or the
                hop limit is reached
        """
        if template_name in self.stack:
            raise CycleDetectedError(template_name, self.stack)
        if self.depth >= self.max_depth:
            raise CycleDetectedError(template_name, self.stack, max_depth=self.max_depth)

    def child(self, template_name: str) -> ResolutionContext:
        """Return the context for a nested template one hop down."""
        return ResolutionContext(
            template_name=template_name,
            depth=self.depth + 1,
            max_depth=self.max_depth,
            stack=(*self.stack, template_name),
        )


_resolution_context: ContextVar[ResolutionContext | None] = ContextVar(
    "resolution_context",
    default=None,
)


def get_resolution_context() -> ResolutionContext | None:
    """Current resolution context, or None outside ``load_template``."""
    return _resolution_context.get()


@contextmanager
def entering(template_name: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Iterator[ResolutionContext]:
    """Push ``template_name`` onto the chain for the duration of the block.

    The first template of a request starts a fresh chain at depth 0.
    Nested templates are checked against the chain before they are pushed.

    Raises:
        CycleDetectedError: If entering the template would loop or exceed
            the hop limit

    Example:
        with entering("index.html", max_depth=20):
            # fragments loaded here run one level deeper
            ...
    """
    parent = _resolution_context.get()
    if parent is None:
        ctx = ResolutionContext(template_name=template_name, max_depth=max_depth, stack=(template_name,))
    else:
        parent.check(template_name)
        ctx = parent.child(template_name)
    token: Token[ResolutionContext | None] = _resolution_context.set(ctx)
    try:
        yield ctx
    finally:
        _resolution_context.reset(token)
