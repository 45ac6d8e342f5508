"""
Transform chain.

A transform pass is a function `(tree, ctx) -> (tree, diagnostics)`. Passes
run in two groups around emission:

    before:  component class -> state properties -> imports -> lifecycle
    (emission check by the type checker capability)
    after:   template to render calls

A pass that meets a shape it does not understand reports a diagnostic and
leaves the node alone; it never stops the compilation of other files.
"""

import ast
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from ...diagnostics import Diagnostic, has_errors
from ..metadata import ComponentMetadata

logger = logging.getLogger(__name__)


@dataclass
class TransformContext:
    """Per-file state shared by the passes of one chain run.

    Attributes:
        file_path: Source file being transformed
        metadata: Component metadata accumulator, set by the component pass
    """

    file_path: str
    metadata: Optional[ComponentMetadata] = None


TransformResult = Tuple[ast.Module, List[Diagnostic]]
Transform = Callable[[ast.Module, TransformContext], TransformResult]


@dataclass
class TranspileOutput:
    """Result of running the chain over one file."""

    text: Optional[str]
    metadata: Optional[ComponentMetadata] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)


class TransformChain:
    """Ordered transform passes plus the emission check between them.

    Example usage:
        chain = TransformChain(checker=PythonSyntaxChecker())
        output = chain.transpile(src_text, "/project/src/button.py")
        if output.text is not None:
            print(output.metadata.tag)
    """

    def __init__(
        self,
        before: Optional[Sequence[Transform]] = None,
        after: Optional[Sequence[Transform]] = None,
        checker=None,
    ):
        """
        Initialize transform chain.

        Args:
            before: Structural passes run before the emission check
            after: Passes run on the checked tree
            checker: Type checker capability (check(tree, file_path))
        """
        if before is None or after is None:
            from . import AFTER_TRANSFORMS, BEFORE_TRANSFORMS
            before = BEFORE_TRANSFORMS if before is None else before
            after = AFTER_TRANSFORMS if after is None else after
        self.before = list(before)
        self.after = list(after)
        self.checker = checker

    def transpile(self, src_text: str, file_path: str) -> TranspileOutput:
        """Parse, transform, check and emit one module.

        Args:
            src_text: Source text of the module
            file_path: Path used for diagnostics

        Returns:
            TranspileOutput; text is None when the module could not be emitted
        """
        try:
            tree = ast.parse(src_text, filename=file_path)
        except SyntaxError as e:
            return TranspileOutput(
                text=None,
                diagnostics=[
                    Diagnostic.error(
                        e.msg or "invalid syntax",
                        file_path=file_path,
                        line=e.lineno,
                        column=(e.offset - 1) if e.offset else None,
                        code="parse",
                    )
                ],
            )

        ctx = TransformContext(file_path=file_path)
        diagnostics: List[Diagnostic] = []

        tree = self._run(self.before, tree, ctx, diagnostics)
        ast.fix_missing_locations(tree)

        if self.checker is not None:
            check_diagnostics = self.checker.check(tree, file_path)
            diagnostics.extend(check_diagnostics)
            if has_errors(check_diagnostics):
                return TranspileOutput(text=None, metadata=ctx.metadata, diagnostics=diagnostics)

        tree = self._run(self.after, tree, ctx, diagnostics)
        ast.fix_missing_locations(tree)

        text = ast.unparse(tree)
        if text and not text.endswith("\n"):
            text += "\n"
        return TranspileOutput(text=text, metadata=ctx.metadata, diagnostics=diagnostics)

    def _run(
        self,
        passes: Sequence[Transform],
        tree: ast.Module,
        ctx: TransformContext,
        diagnostics: List[Diagnostic],
    ) -> ast.Module:
        for transform in passes:
            tree, pass_diagnostics = transform(tree, ctx)
            diagnostics.extend(pass_diagnostics)
        return tree
