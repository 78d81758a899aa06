"""Required-block constraints authored per level."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

from blockapps.core.workspace import Block

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodeRequirement:
    """Generated source must contain ``text``."""

    text: str
    block_type: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.block_type or self.text


@dataclass(frozen=True)
class BlockRequirement:
    """At least one user block must satisfy ``predicate``."""

    name: str
    predicate: Callable[[Block], bool]
    block_type: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)


RequiredBlockSpec = Union[CodeRequirement, BlockRequirement]


def block_of_type(block_type: str, fields: Optional[Dict[str, str]] = None) -> Callable[[Block], bool]:
    """Predicate matching blocks of ``block_type`` whose fields include ``fields``."""
    wanted = dict(fields or {})

    def _matches(block: Block) -> bool:
        if block.type != block_type:
            return False
        return all(block.fields.get(key) == value for key, value in wanted.items())

    return _matches


def parse_requirement(raw: Any) -> Optional[RequiredBlockSpec]:
    """Build a requirement from a level file entry, or ``None`` if it is malformed.

    ``{code: "turnLeft()"}`` requires a substring of the generated program;
    ``{block: "turn", fields: {DIR: "left"}}`` requires a matching block.
    """
    if not isinstance(raw, dict):
        logger.warning("Skipping required block %r: expected a mapping", raw)
        return None
    params = raw.get("fields") or {}
    if not isinstance(params, dict):
        logger.warning("Skipping required block %r: 'fields' must be a mapping", raw)
        return None
    params = {str(k): str(v) for k, v in params.items()}
    code = raw.get("code")
    block_type = raw.get("block")
    if isinstance(code, str) and code:
        return CodeRequirement(
            text=code,
            block_type=str(block_type) if block_type else None,
            params=params,
        )
    if isinstance(block_type, str) and block_type:
        name = str(raw.get("name") or block_type).rstrip("_")
        return BlockRequirement(
            name=name,
            predicate=block_of_type(block_type, params),
            block_type=block_type,
            params=params,
        )
    logger.warning("Skipping required block %r: needs 'code' or 'block'", raw)
    return None
