"""Tests for clisynth.generator.render -- option merging and orchestration."""

from __future__ import annotations

import ast
from pathlib import Path

import pytest
from pydantic import ValidationError

from clisynth.exceptions import InvariantViolation, UnsupportedFeatureError
from clisynth.generator import (
    DEFAULT_RENDER_OPTIONS,
    merge_render_options,
    print_nodes,
    render,
    render_source,
)
from clisynth.generator.chain import make_call
from clisynth.generator.render import make_chain_calls
from clisynth.models import (
    Context,
    ExportRef,
    ModuleRefs,
    Positional,
    RenderOptions,
    SourceFile,
    TransformResult,
)


def _chain_names(result: TransformResult, options: RenderOptions) -> list[str]:
    return [call.func.id for call in make_chain_calls(result, options)]


def _top_chain(nodes: list[ast.stmt], function_name: str = "cli") -> str:
    wrapper = next(
        n
        for n in nodes
        if isinstance(n, (ast.FunctionDef, ast.AsyncFunctionDef)) and n.name == function_name
    )
    return ast.unparse(ast.fix_missing_locations(wrapper.body[-1]))


# ---------------------------------------------------------------------------
# Option merging
# ---------------------------------------------------------------------------


class TestMergeRenderOptions:
    """Caller options are layered over the defaults."""

    def test_defaults(self) -> None:
        opts = merge_render_options()
        assert opts == DEFAULT_RENDER_OPTIONS
        assert opts.lib == "yargs"
        assert opts.function_name == "cli"
        assert opts.strict and opts.help and opts.help_alias and opts.version
        assert not opts.async_function and not opts.runnable

    def test_partial_mapping_keeps_other_defaults(self) -> None:
        opts = merge_render_options({"async_function": True})
        assert opts.async_function is True
        assert opts.strict is True
        assert opts.lib == "yargs"

    def test_render_options_only_set_fields_override(self) -> None:
        opts = merge_render_options(RenderOptions(runnable=True))
        assert opts.runnable is True
        assert opts.version is True

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            merge_render_options({"colour": True})

    def test_invalid_identifier_rejected(self) -> None:
        with pytest.raises(ValidationError):
            merge_render_options({"function_name": "not valid"})

    def test_defaults_not_mutated(self) -> None:
        merge_render_options({"strict": False})
        assert DEFAULT_RENDER_OPTIONS.strict is True


# ---------------------------------------------------------------------------
# Chain order
# ---------------------------------------------------------------------------


class TestChainCalls:
    """Fixed link order with optional links."""

    def test_full_order(self, result_factory) -> None:
        names = _chain_names(result_factory(), RenderOptions())
        assert names == ["strict", "command", "help", "alias", "version", "parse"]

    def test_all_optional_links_disabled(self, result_factory) -> None:
        opts = RenderOptions(strict=False, help=False, help_alias=False, version=False)
        assert _chain_names(result_factory(), opts) == ["command", "parse"]

    @pytest.mark.parametrize("flag", ["strict", "help", "version"])
    def test_each_flag_removes_its_link(self, result_factory, flag: str) -> None:
        names = _chain_names(result_factory(), RenderOptions(**{flag: False}))
        assert flag not in names
        assert names[-1] == "parse"
        assert "command" in names

    def test_help_alias_flag(self, result_factory) -> None:
        names = _chain_names(result_factory(), RenderOptions(help_alias=False))
        assert "alias" not in names
        assert "help" in names


# ---------------------------------------------------------------------------
# render()
# ---------------------------------------------------------------------------


class TestRender:
    """End-to-end rendering of the module tree."""

    def test_top_level_chain(self, tmp_path: Path, greet_result: TransformResult) -> None:
        nodes = render(greet_result, tmp_path / "cli.py", SourceFile(path=tmp_path / "cli.py"))
        assert _top_chain(nodes) == (
            "yargs.strict()"
            ".command('$0 <who> [...options]', 'Greet someone.', builder, handler)"
            ".help().alias('help', 'h').version().parse(args)"
        )

    def test_callbacks_precede_chain(self, tmp_path: Path, greet_result: TransformResult) -> None:
        nodes = render(greet_result, tmp_path / "cli.py", SourceFile(path=tmp_path / "cli.py"))
        wrapper = next(n for n in nodes if isinstance(n, ast.FunctionDef))
        assert [type(s).__name__ for s in wrapper.body] == ["FunctionDef", "FunctionDef", "Expr"]
        assert [s.name for s in wrapper.body[:2]] == ["builder", "handler"]

    def test_custom_lib_is_chain_base(self, tmp_path: Path, greet_result: TransformResult) -> None:
        nodes = render(
            greet_result,
            tmp_path / "cli.py",
            SourceFile(path=tmp_path / "cli.py"),
            {"lib": "argtide", "strict": False},
        )
        assert _top_chain(nodes).startswith("argtide.command(")

    def test_async_override(self, tmp_path: Path, greet_result: TransformResult) -> None:
        nodes = render(
            greet_result,
            tmp_path / "cli.py",
            SourceFile(path=tmp_path / "cli.py"),
            {"async_function": True},
        )
        assert any(isinstance(n, ast.AsyncFunctionDef) for n in nodes)
        assert "alias('help', 'h')" in _top_chain(nodes)

    def test_render_is_pure(self, tmp_path: Path, greet_result: TransformResult) -> None:
        before = [ast.dump(p.call) for p in greet_result.positionals]
        first = render_source(greet_result, tmp_path / "cli.py", SourceFile(path=tmp_path / "cli.py"))
        second = render_source(greet_result, tmp_path / "cli.py", SourceFile(path=tmp_path / "cli.py"))
        assert first == second
        assert [ast.dump(p.call) for p in greet_result.positionals] == before

    def test_precondition_errors_propagate(self, tmp_path: Path) -> None:
        result = TransformResult(
            name="greet",
            description="",
            positionals=[Positional(name="who", call=make_call("positional"), required=False)],
        )
        with pytest.raises(UnsupportedFeatureError):
            render(result, tmp_path / "cli.py", SourceFile(path=tmp_path / "cli.py"))

    @pytest.mark.parametrize("name", ["cli", "yargs", "sys", "asyncio", "importlib"])
    def test_function_name_collision(self, tmp_path: Path, result_factory, name: str) -> None:
        with pytest.raises(InvariantViolation, match="collides"):
            render(result_factory(name=name), tmp_path / "cli.py", SourceFile(path=tmp_path / "cli.py"))

    @pytest.mark.parametrize("field", ["default", "named"])
    def test_export_name_collision(self, tmp_path: Path, result_factory, field: str) -> None:
        ref = {tmp_path / "tools.py": ModuleRefs(**{field: [ExportRef(name="sys")]})}
        with pytest.raises(InvariantViolation, match="Export 'sys'"):
            render(result_factory(ref=ref), tmp_path / "cli.py", SourceFile(path=tmp_path / "cli.py"))

    def test_non_name_callee_propagates(self, tmp_path: Path) -> None:
        call = ast.Call(func=make_call("factory"), args=[], keywords=[])
        result = TransformResult(
            name="greet",
            description="",
            positionals=[Positional(name="who", call=call)],
        )
        with pytest.raises(InvariantViolation):
            render(result, tmp_path / "cli.py", SourceFile(path=tmp_path / "cli.py"))


# ---------------------------------------------------------------------------
# Printed source
# ---------------------------------------------------------------------------


class TestPrintedSource:
    """The printed module is valid, runnable Python."""

    def test_source_compiles(self, tmp_path: Path, greet_result: TransformResult) -> None:
        source = render_source(
            greet_result,
            tmp_path / "cli.py",
            SourceFile(path=tmp_path / "cli.py"),
            {"runnable": True},
            Context(args=["Ada", "--loud"]),
        )
        compile(source, "cli.py", "exec")
        assert source.endswith("cli(['Ada', '--loud'])\n")

    def test_async_source_compiles(self, tmp_path: Path, greet_result: TransformResult) -> None:
        source = render_source(
            greet_result,
            tmp_path / "cli.py",
            SourceFile(path=tmp_path / "cli.py"),
            {"async_function": True, "runnable": True},
        )
        compile(source, "cli.py", "exec")
        assert "async def cli(" in source
        assert source.endswith("asyncio.run(cli())\n")

    def test_print_nodes_leaves_input_untouched(self) -> None:
        node = ast.Expr(value=make_call("cli"))
        assert print_nodes([node]) == "cli()\n"
        assert not hasattr(node, "lineno") or node.lineno is None

    def test_generated_module_runs_against_a_parser(
        self, tmp_path: Path, result_factory
    ) -> None:
        """Execute the generated wrapper with a recording stand-in parser."""
        source = render_source(
            result_factory(positionals=("who",), options=("loud",)),
            tmp_path / "cli.py",
            SourceFile(path=tmp_path / "cli.py"),
        )
        tree = ast.parse(source)
        # drop the library and reference imports; the namespace provides both
        tree.body = [
            n for n in tree.body if not isinstance(n, ast.ImportFrom)
            and not (isinstance(n, ast.Import) and n.names[0].name == "yargs")
        ]

        seen: list[tuple] = []

        class Parser:
            def __init__(self) -> None:
                self.handler = None

            def __getattr__(self, name):
                def link(*args, **kwargs):
                    if name == "command":
                        self.handler = args[3]
                        args[2](self)
                    if name == "parse":
                        self.handler({"_": [], "$0": "cli", "who": args[0][0], "loud": True})
                    return self

                return link

        namespace = {"yargs": Parser(), "greet": lambda *a: seen.append(a)}
        exec(compile(tree, "cli.py", "exec"), namespace)
        namespace["cli"](["Ada"])
        assert seen == [("Ada", {"loud": True})]
