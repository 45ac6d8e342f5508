"""
Emission check for transformed modules.

Before a transformed module is emitted it is compiled to bytecode once.
Anything the interpreter would reject at import time (bad assignments left
behind by a rewrite, misplaced statements, invalid names) is reported as a
diagnostic against the original source file.
"""

import ast
from typing import List

from ..diagnostics import Diagnostic


class PythonSyntaxChecker:
    """Checks a transformed module tree by compiling it."""

    def check(self, tree: ast.Module, file_path: str) -> List[Diagnostic]:
        """Compile the tree and report problems.

        Args:
            tree: Module tree after the structural transforms
            file_path: Source file the tree came from

        Returns:
            List of error diagnostics (empty when the tree compiles)
        """
        try:
            compile(tree, file_path, "exec", dont_inherit=True)
        except SyntaxError as e:
            return [
                Diagnostic.error(
                    e.msg or "invalid syntax",
                    file_path=file_path,
                    line=e.lineno,
                    column=(e.offset - 1) if e.offset else None,
                    code="emit",
                )
            ]
        except (ValueError, TypeError) as e:
            # Malformed node produced by a transform
            return [Diagnostic.error(f"Cannot emit module: {e}", file_path=file_path, code="emit")]
        return []
