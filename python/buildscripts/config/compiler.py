"""
Compilation of typed config scripts.

Typed config scripts (``.pyt``, ``.mpyt``, ``.cpyt``) are Python sources with
type annotations. Before execution they are compiled to plain Python for the
target module system. The loader depends only on the ScriptCompiler protocol;
AnnotationStripCompiler is the default implementation.
"""

from __future__ import annotations

import ast
import asyncio
import logging
from pathlib import Path
from typing import Protocol

from .base import ModuleSystem
from .exceptions import ConfigCompileError

logger = logging.getLogger(__name__)

__all__ = ["AnnotationStripCompiler", "ScriptCompiler", "strip_annotations"]


class ScriptCompiler(Protocol):
    """
    Compiles a typed config script into plain executable Python.

    Implementations either return the compiled source text or raise.
    """

    async def compile(self, path: Path, module_system: ModuleSystem) -> str:
        ...


class _AnnotationStripper(ast.NodeTransformer):
    def __init__(self) -> None:
        self._in_class_body = False

    def visit_AnnAssign(self, node: ast.AnnAssign) -> ast.AST | None:
        if self._in_class_body:
            # Class-level annotations declare fields for dataclasses,
            # NamedTuple and TypedDict, so they are kept as written
            return node
        if node.value is None:
            return None
        assign = ast.Assign(targets=[node.target], value=self.visit(node.value))
        return ast.copy_location(assign, node)

    def visit_arg(self, node: ast.arg) -> ast.arg:
        node.annotation = None
        return node

    def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.AST:
        node.returns = None
        _drop_type_params(node)
        return self._visit_scope(node, in_class_body=False)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> ast.AST:
        node.returns = None
        _drop_type_params(node)
        return self._visit_scope(node, in_class_body=False)

    def visit_ClassDef(self, node: ast.ClassDef) -> ast.AST:
        return self._visit_scope(node, in_class_body=True)

    def _visit_scope(self, node: ast.AST, in_class_body: bool) -> ast.AST:
        outer = self._in_class_body
        self._in_class_body = in_class_body
        try:
            return self.generic_visit(node)
        finally:
            self._in_class_body = outer

    def generic_visit(self, node: ast.AST) -> ast.AST:
        node = super().generic_visit(node)
        # Blocks emptied by dropped annotations still need a statement
        body = getattr(node, "body", None)
        if isinstance(body, list) and not body and not isinstance(node, ast.Module):
            node.body = [ast.Pass()]
        return node


def _drop_type_params(node: ast.AST) -> None:
    if getattr(node, "type_params", None):
        node.type_params = []


def strip_annotations(source: str, filename: str = "<config>") -> str:
    """
    Remove type annotations from Python source.

    At module and function scope, annotated assignments without a value are
    dropped and those with a value become plain assignments. Argument and
    return annotations and function type parameter lists are removed.
    Annotations in class bodies are left in place, since dataclasses and
    typed records read them at runtime.

    Parameters
    ----------
    source
        Typed Python source. Top-level ``await`` is accepted.
    filename
        Filename reported in syntax errors.

    Returns
    -------
    str
        Plain Python source.

    Raises
    ------
    SyntaxError
        If ``source`` cannot be parsed.

    Examples
    --------
    >>> print(strip_annotations("x: int = 1\\ny: str\\ndef f(a: int) -> int: return a"))
    x = 1
    def f(a):
        return a
    """
    tree = compile(
        source,
        filename,
        "exec",
        flags=ast.PyCF_ONLY_AST | ast.PyCF_ALLOW_TOP_LEVEL_AWAIT,
        dont_inherit=True,
    )
    tree = _AnnotationStripper().visit(tree)
    ast.fix_missing_locations(tree)
    return ast.unparse(tree)


class AnnotationStripCompiler:
    """
    Default ScriptCompiler: strips annotations and checks the target.

    The compiled source is checked against the target module system, so a
    top-level ``await`` in a script targeting SYNC is a compile error.
    """

    async def compile(self, path: Path, module_system: ModuleSystem) -> str:
        """
        Compile a typed config script.

        Parameters
        ----------
        path
            Typed source file.
        module_system
            Target module system.

        Returns
        -------
        str
            Plain Python source, prefixed with a header comment.

        Raises
        ------
        ConfigCompileError
            If the source cannot be read, parsed, or compiled for the target.
        """
        path = Path(path)
        try:
            source = await asyncio.to_thread(path.read_text, encoding="utf-8")
            code = strip_annotations(source, str(path))
            flags = (
                ast.PyCF_ALLOW_TOP_LEVEL_AWAIT
                if module_system is ModuleSystem.ASYNC
                else 0
            )
            compile(code, str(path), "exec", flags=flags, dont_inherit=True)
        except (OSError, SyntaxError, ValueError) as err:
            raise ConfigCompileError(path, cause=err) from err

        logger.debug(f"Compiled {path} for the {module_system.value} module system")
        header = f"# Compiled from {path.name} ({module_system.value} module system)\n"
        return header + code + "\n"
