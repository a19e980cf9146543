"""Router configuration.

RouterConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(matcher="regex", case_sensitive=False)
    """

    # Matching
    matcher: str = "trie"  # Key into waypoint.routing.matcher.MATCHERS
    case_sensitive: bool = True  # Literal segments only; captured values keep their case

    # Composition
    reject_parameter_collisions: bool = False  # Raise instead of warn on shadowed params

    # Handlers
    offload_sync_handlers: bool = False  # Run plain ``def`` handlers in a worker thread (anyio)
