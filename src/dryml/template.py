"""Template: compile one DRYML file into build instructions."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any, ClassVar

from dryml.ast import Document
from dryml.builder import Builder, InstructionBuilder, InstructionKind
from dryml.codegen import render
from dryml.compiler import compile_document
from dryml.config import CompileOptions
from dryml.context import CompileState
from dryml.errors import DrymlError, LexError, ParseError
from dryml.parser import parse
from dryml.scriptlets import shield
from dryml.static_tags import static_tag_set

log = logging.getLogger(__name__)


class Template:
    """A DRYML page or taglib, compiled through a builder.

    Builders are cached per template path for the life of the process and
    reused while the source file is no newer than their last build.
    """

    build_cache: ClassVar[dict[str, Builder]] = {}
    _cache_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        src: str,
        template_path: str,
        builder: Builder | None = None,
        *,
        options: CompileOptions | None = None,
        taglib: bool = False,
    ) -> None:
        self.options = options or CompileOptions()
        self.template_path, self.source_file = _resolve_path(template_path, self.options.root)
        self.src = src
        self.taglib = taglib
        self.scriptlets: dict[int, str] = {}
        self.document: Document | None = None
        if builder is None:
            with self._cache_lock:
                builder = self.build_cache.get(self.template_path)
        self.builder: Builder = builder or InstructionBuilder(self.template_path)

    @classmethod
    def clear_build_cache(cls) -> None:
        with cls._cache_lock:
            cls.build_cache.clear()

    def compile(self, local_names: Iterable[str] = (), auto_taglibs: Iterable[str] = ()) -> Any:
        """Compile unless the cached instructions are current, then build them."""
        start = time.perf_counter()
        mtime = self._source_mtime()
        parsed = False

        with self._cache_lock:
            if mtime is None or not self.builder.ready(mtime):
                self.builder.clear_instructions()
                parsed = True
                try:
                    if self.taglib:
                        self.process_src()
                    else:
                        self.create_render_page_method()
                except DrymlError:
                    self.build_cache.pop(self.template_path, None)
                    raise
                self.build_cache[self.template_path] = self.builder

        result = self.builder.build(tuple(local_names), tuple(auto_taglibs), mtime)

        from_cache = "" if parsed else " (from cache)"
        log.info("DRYML: Compiled%s %s in %.2fs", from_cache, self.template_path, time.perf_counter() - start)
        return result

    def create_render_page_method(self) -> None:
        erb_src = self.process_src()
        self.builder.add_build_instruction(InstructionKind.RENDER_PAGE, src=erb_src, line_num=1)

    def process_src(self) -> str:
        """Shield scriptlets, parse, walk, and return the page's ERB source."""
        text, self.scriptlets = shield(self.src)
        try:
            self.document = parse(text, self.template_path)
        except (LexError, ParseError) as exc:
            raise DrymlError(f"File: {self.template_path}\n{exc.message}", self.template_path, exc.line) from exc

        state = CompileState(
            template_path=self.template_path,
            source=text,
            scriptlets=self.scriptlets,
            builder=self.builder,
            options=self.options,
            static_tags=static_tag_set(self.options.extra_static_tags),
        )
        return state.restore_scriptlets(render(compile_document(self.document, state)))

    def import_module(self, ref: str, alias: str | None = None) -> None:
        self.builder.import_module(ref, alias)

    def _source_mtime(self) -> float | None:
        try:
            return self.source_file.stat().st_mtime
        except OSError:
            return None


def _resolve_path(template_path: str, root: Path | None) -> tuple[str, Path]:
    """(cache key, file on disk) for a template path, relative to root when given."""
    path = Path(template_path)
    if root is None:
        return template_path, path
    try:
        relative = path.relative_to(root)
    except ValueError:
        relative = Path(template_path.lstrip("/"))
    return relative.as_posix(), root / relative
