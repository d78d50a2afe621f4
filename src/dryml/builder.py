"""Build instructions and the builder that collects them.

The compiler only talks to a builder through the ``Builder`` protocol.
``InstructionBuilder`` records instructions in order; turning them into
executable render methods belongs to the host runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from dryml.errors import DrymlError


class InstructionKind(Enum):
    DEF = "def"
    RENDER_PAGE = "render_page"
    PART = "part"
    ALIAS_METHOD = "alias_method"
    INCLUDE = "include"
    SET_THEME = "set_theme"


@dataclass(frozen=True, slots=True)
class Instruction:
    """One ordered unit of compiled output."""

    kind: InstructionKind
    payload: dict[str, Any]


class Builder(Protocol):
    def clear_instructions(self) -> None: ...

    def add_build_instruction(self, kind: InstructionKind, **payload: Any) -> None: ...

    def add_part(self, name: str, src: str, line_num: int) -> None: ...

    def import_module(self, ref: str, alias: str | None = None) -> None: ...

    def ready(self, mtime: float) -> bool: ...

    def build(self, local_names: tuple[str, ...], auto_taglibs: tuple[str, ...], mtime: float | None) -> Any: ...


@dataclass
class InstructionBuilder:
    """Records build instructions for one template path."""

    template_path: str
    instructions: list[Instruction] = field(default_factory=list)
    imports: list[tuple[str, str | None]] = field(default_factory=list)
    part_names: list[str] = field(default_factory=list)
    last_build_mtime: float | None = None
    build_count: int = 0

    def clear_instructions(self) -> None:
        self.instructions.clear()
        self.part_names.clear()

    def add_build_instruction(self, kind: InstructionKind, **payload: Any) -> None:
        self.instructions.append(Instruction(kind, payload))

    def add_part(self, name: str, src: str, line_num: int) -> None:
        if name in self.part_names:
            raise DrymlError(f"duplicate part: {name}", self.template_path, line_num)
        self.part_names.append(name)
        self.add_build_instruction(InstructionKind.PART, name=name, src=src, line_num=line_num)

    def import_module(self, ref: str, alias: str | None = None) -> None:
        self.imports.append((ref, alias))

    def ready(self, mtime: float) -> bool:
        """True when the recorded instructions are at least as new as mtime."""
        return (
            bool(self.instructions)
            and self.last_build_mtime is not None
            and mtime <= self.last_build_mtime
        )

    def build(
        self,
        local_names: tuple[str, ...] = (),
        auto_taglibs: tuple[str, ...] = (),
        mtime: float | None = None,
    ) -> list[Instruction]:
        """Mark the instructions as built for mtime and return them."""
        self.build_count += 1
        if mtime is not None:
            self.last_build_mtime = mtime
        return list(self.instructions)

    def of_kind(self, kind: InstructionKind) -> list[Instruction]:
        return [i for i in self.instructions if i.kind == kind]
