from __future__ import annotations

import ast
from collections.abc import Iterator
from pathlib import Path

import pytest

PACKAGE_ROOT = Path(__file__).resolve().parents[1] / "src" / "tripbandit"

# The CLI owns stdout/stderr and logging setup; everything else reports through loggers.
CONSOLE_MODULES = {"cli.py"}


def _library_calls() -> Iterator[tuple[str, int, str]]:
    for path in sorted(PACKAGE_ROOT.rglob("*.py")):
        module = path.relative_to(PACKAGE_ROOT).as_posix()
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        for node in ast.walk(tree):
            if not isinstance(node, ast.Call):
                continue
            func = node.func
            if isinstance(func, ast.Name):
                yield module, node.lineno, func.id
            elif isinstance(func, ast.Attribute):
                yield module, node.lineno, func.attr


def test_package_sources_are_found() -> None:
    modules = {path.name for path in PACKAGE_ROOT.rglob("*.py")}
    assert {"orchestrator.py", "policies.py", "runner.py", "cli.py"} <= modules


@pytest.mark.parametrize(
    ("forbidden", "allowed"),
    [
        ({"print", "pprint"}, CONSOLE_MODULES),
        ({"basicConfig"}, set()),
    ],
    ids=["console-output", "root-logging-setup"],
)
def test_only_cli_touches_the_console(forbidden: set[str], allowed: set[str]) -> None:
    offenders = [
        f"{module}:{lineno}: {name}()"
        for module, lineno, name in _library_calls()
        if name in forbidden and module not in allowed
    ]
    assert offenders == []
