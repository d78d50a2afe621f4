"""DRYML tag-markup compiler, targeting ERB."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dryml.builder import Builder
    from dryml.config import CompileOptions

__version__ = "0.1.0"


def compile_source(
    source: str,
    template_path: str = "input.dryml",
    builder: Builder | None = None,
    options: CompileOptions | None = None,
) -> str:
    """Compile DRYML source to the page's ERB source.

    Definitions and parts go to ``builder`` as build instructions. The
    build cache is not consulted.
    """
    from dryml.builder import InstructionBuilder
    from dryml.template import Template

    template = Template(source, template_path, builder or InstructionBuilder(template_path), options=options)
    return template.process_src()
