"""Scope variants for the dual-scope ledger.

Every observation and aggregate belongs to exactly one scope:
either the anonymous scope of a domain, or the scope of one
authenticated identity on that domain.  The variant is resolved
once per request with :func:`resolve_scope` and then passed
through unchanged.
"""

from __future__ import annotations

from typing import Annotated, Literal

import pydantic

from tracely.utils import serialization


class AnonymousScope(pydantic.BaseModel):
    """Observations reported without an authenticated identity."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True, frozen=True
    )

    kind: Literal["anonymous"] = "anonymous"
    domain: str

    @property
    def identity(self) -> None:
        """Anonymous scopes never carry an identity."""
        return None

    @property
    def key(self) -> str:
        """Stable storage key for this scope."""
        return f"{self.domain}#anonymous"


class IdentifiedScope(pydantic.BaseModel):
    """Observations reported by one authenticated identity."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True, frozen=True
    )

    kind: Literal["identified"] = "identified"
    domain: str
    identity: str

    @property
    def key(self) -> str:
        """Stable storage key for this scope."""
        return f"{self.domain}#identity:{self.identity}"


Scope = Annotated[AnonymousScope | IdentifiedScope, pydantic.Field(discriminator="kind")]


def resolve_scope(domain: str, identity: str | None = None) -> AnonymousScope | IdentifiedScope:
    """Resolve the scope a request reads from and writes to.

    The domain is lower-cased; an empty or missing identity
    maps to the anonymous scope.
    """
    domain = domain.strip().lower()
    if identity:
        return IdentifiedScope(domain=domain, identity=identity)
    return AnonymousScope(domain=domain)
