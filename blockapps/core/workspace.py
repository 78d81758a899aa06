"""In-memory block workspace and source generation."""

from __future__ import annotations

import itertools
import logging
import math
import re
from dataclasses import dataclass, field
from string import Template
from typing import Dict, Iterator, List, Optional, Protocol, Union

logger = logging.getLogger(__name__)

Capacity = Union[int, float]

# Inserted at the top of every nested body when generating code for execution.
LOOP_TRAP = "checkTimeout(%1);\n"

_SERIAL_RE = re.compile(r"(,\s*)?'block_id_\d+'\)")
_LOOP_TRAP_RE = re.compile(r"[ \t]*checkTimeout\(('\d+')?\);\n")


@dataclass(eq=False)
class Block:
    """A block placed in the workspace.

    Identity matters: two blocks of the same type are different blocks.
    """

    type: str
    fields: Dict[str, str] = field(default_factory=dict)
    children: List["Block"] = field(default_factory=list)
    disabled: bool = False
    deletable: bool = True
    id: int = 0

    def walk(self) -> Iterator["Block"]:
        yield self
        for child in self.children:
            yield from child.walk()


class Workspace(Protocol):
    def all_blocks(self) -> List[Block]:
        ...

    def to_code(self) -> str:
        ...

    def remaining_capacity(self) -> Capacity:
        ...


def strip_code(code: str) -> str:
    """Remove block serial numbers and loop traps from generated code."""
    code = _SERIAL_RE.sub(")", code)
    return _LOOP_TRAP_RE.sub("", code)


class BlockWorkspace:
    """A tree of blocks with per-type code templates.

    A template is a line of code; ``%s`` marks where the nested statements go
    and ``$NAME`` is replaced with the block's field of that name.
    """

    def __init__(self, templates: Dict[str, str], max_blocks: Optional[int] = None) -> None:
        self._templates = dict(templates)
        self._max_blocks = max_blocks
        self._top: List[Block] = []
        self._ids = itertools.count(1)

    @property
    def top_blocks(self) -> List[Block]:
        return list(self._top)

    def accepts_children(self, block_type: str) -> bool:
        return "%s" in self._templates.get(block_type, "")

    def add_block(
        self,
        block_type: str,
        parent: Optional[Block] = None,
        *,
        fields: Optional[Dict[str, str]] = None,
        disabled: bool = False,
        deletable: bool = True,
    ) -> Block:
        if block_type not in self._templates:
            raise KeyError(f"Unknown block type: {block_type}")
        block = Block(
            type=block_type,
            fields=dict(fields or {}),
            disabled=disabled,
            deletable=deletable,
            id=next(self._ids),
        )
        if parent is None:
            self._top.append(block)
        else:
            parent.children.append(block)
        return block

    def remove_block(self, block: Block) -> None:
        if block in self._top:
            self._top.remove(block)
            return
        for candidate in self.all_blocks():
            if block in candidate.children:
                candidate.children.remove(block)
                return
        raise ValueError("Block is not in this workspace")

    def clear(self) -> None:
        self._top = []

    def all_blocks(self) -> List[Block]:
        return [block for top in self._top for block in top.walk()]

    def remaining_capacity(self) -> Capacity:
        if self._max_blocks is None:
            return math.inf
        return max(0, self._max_blocks - len(self.all_blocks()))

    def to_code(self, traced: bool = False) -> str:
        """Generate source for all enabled top-level blocks."""
        return "".join(self._block_code(block, traced) for block in self._top if not block.disabled)

    def _block_code(self, block: Block, traced: bool) -> str:
        template = Template(self._templates[block.type]).safe_substitute(block.fields)
        if "%s" not in template:
            return template.rstrip("\n") + "\n"
        body = "".join(self._block_code(child, traced) for child in block.children if not child.disabled)
        if traced:
            body = LOOP_TRAP.replace("%1", f"'block_id_{block.id}'") + body
        indented = "".join("  " + line + "\n" for line in body.splitlines())
        return template.replace("%s", indented).rstrip("\n") + "\n"
