"""Tests for the transform chain."""

import textwrap
from unittest.mock import Mock

from spire.build.transforms import TransformChain
from spire.diagnostics import Diagnostic
from spire.system import PythonSyntaxChecker

SOURCE = textwrap.dedent('''
    from spire import h
    from spire.annotations import Component, Prop, State


    @Component(tag="my-counter", styleUrl="counter.css")
    class Counter:
        @Prop
        def start(self) -> int:
            return 0

        @State
        def count(self) -> int:
            return 0

        def component_did_load(self):
            self.count = self.start

        def render(self):
            return h("span", {"class": "count"}, self.count)
''')


class TestTransformChain:
    """Test the ordered passes and the emission check."""

    def test_transpile(self):
        chain = TransformChain(checker=PythonSyntaxChecker())
        output = chain.transpile(SOURCE, "/project/src/counter.py")

        assert output.diagnostics == []
        assert output.metadata.tag == "my-counter"
        assert output.metadata.states == ["count"]
        assert output.metadata.attribute_names == ["start"]
        assert "spire.annotations" not in output.text
        assert "from spire import h" in output.text
        assert "def _did_load(self):" in output.text
        assert "h('span', {'c': {'count': True}}, [self.count])" in output.text
        assert output.text.endswith("\n")
        compile(output.text, "counter.py", "exec")

    def test_parse_error(self):
        chain = TransformChain(checker=PythonSyntaxChecker())
        output = chain.transpile("def broken(:\n", "/project/src/broken.py")

        assert output.text is None
        assert len(output.diagnostics) == 1
        assert output.diagnostics[0].code == "parse"
        assert output.diagnostics[0].line == 1

    def test_check_errors_stop_emission(self):
        checker = Mock()
        checker.check.return_value = [Diagnostic.error("cannot emit", code="emit")]
        after = Mock(side_effect=lambda tree, ctx: (tree, []))
        chain = TransformChain(after=[after], checker=checker)

        output = chain.transpile(SOURCE, "/project/src/counter.py")

        assert output.text is None
        assert output.metadata.tag == "my-counter"
        assert [d.message for d in output.diagnostics] == ["cannot emit"]
        after.assert_not_called()

    def test_custom_passes_run_in_order(self):
        calls = []

        def first(tree, ctx):
            calls.append("first")
            return tree, []

        def second(tree, ctx):
            calls.append("second")
            return tree, [Diagnostic.warning("note")]

        chain = TransformChain(before=[first], after=[second])
        output = chain.transpile("x = 1\n", "/project/src/x.py")

        assert calls == ["first", "second"]
        assert output.text == "x = 1\n"
        assert [d.message for d in output.diagnostics] == ["note"]
