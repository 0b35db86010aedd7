"""Import policy for the alfama layers.

``domain`` must stay free of frameworks, metrics and every outer layer.
``application`` may use pydantic, prometheus and opentelemetry but must not
reach into the web framework, redis, ``infrastructure`` or ``api``.
"""

from __future__ import annotations

import argparse
import ast
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

PACKAGE_ROOT = Path(__file__).resolve().parents[1] / "src" / "alfama"


@dataclass(frozen=True)
class Violation:
    file_path: Path
    line: int
    module: str

    def __str__(self) -> str:
        return f"{self.file_path}:{self.line} -> {self.module}"


@dataclass(frozen=True)
class LayerPolicy:
    layer: str
    forbidden: frozenset[str]

    def forbids(self, module: str) -> bool:
        head = module.split(".")
        return any(
            ".".join(head[: len(name.split("."))]) == name for name in self.forbidden
        )

    def check(self, roots: Sequence[Path]) -> list[Violation]:
        return [
            Violation(file_path=file_path, line=line, module=module)
            for file_path in _source_files(roots)
            for line, module in _absolute_imports(file_path)
            if self.forbids(module)
        ]


POLICIES = {
    "domain": LayerPolicy(
        "domain",
        frozenset(
            {
                "fastapi",
                "starlette",
                "pydantic",
                "redis",
                "opentelemetry",
                "prometheus_client",
                "alfama.application",
                "alfama.infrastructure",
                "alfama.api",
            }
        ),
    ),
    "application": LayerPolicy(
        "application",
        frozenset({"fastapi", "starlette", "redis", "alfama.infrastructure", "alfama.api"}),
    ),
}


def _source_files(roots: Sequence[Path]) -> Iterator[Path]:
    for root in roots:
        if root.is_dir():
            yield from sorted(root.rglob("*.py"))
        elif root.suffix == ".py":
            yield root


def _absolute_imports(file_path: Path) -> Iterator[tuple[int, str]]:
    tree = ast.parse(file_path.read_text(encoding="utf-8"), filename=str(file_path))
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield node.lineno, alias.name
        elif isinstance(node, ast.ImportFrom) and node.module and not node.level:
            yield node.lineno, node.module


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--layer", action="append", choices=sorted(POLICIES), default=[])
    parser.add_argument(
        "--path",
        action="append",
        default=[],
        help="Scan these paths instead of each layer's package (repeatable).",
    )
    args = parser.parse_args(argv)

    violations: list[Violation] = []
    for layer in args.layer or sorted(POLICIES):
        roots = [Path(item) for item in args.path] or [PACKAGE_ROOT / layer]
        violations.extend(POLICIES[layer].check(roots))

    if violations:
        print("depcheck failed: forbidden imports detected")
        print("\n".join(str(violation) for violation in violations))
        return 1
    print("depcheck passed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
