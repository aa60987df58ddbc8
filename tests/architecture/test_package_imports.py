"""
Package import contract.

1. Every module under claimtech_kernel/ and claimtech_config/ imports
   cleanly, and every name a package ``__init__`` exports resolves.

2. claimtech_kernel/** never imports claimtech_config.  The config package
   builds a WorkflowPolicy and hands it in; the kernel does not reach out.
"""

import ast
import glob
import importlib
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
PACKAGES = ("claimtech_kernel", "claimtech_config")


def _module_names(root: str) -> list[str]:
    names = []
    for path in sorted(glob.glob(f"{ROOT}/{root}/**/*.py", recursive=True)):
        parts = Path(path).relative_to(ROOT).with_suffix("").parts
        if parts[-1] == "__init__":
            parts = parts[:-1]
        names.append(".".join(parts))
    return names


ALL_MODULES = [name for root in PACKAGES for name in _module_names(root)]
INIT_PACKAGES = [
    name for root in PACKAGES for name in _module_names(root)
    if ROOT.joinpath(*name.split(".")).joinpath("__init__.py").exists()
]


class TestModulesImport:

    @pytest.mark.parametrize("module_name", ALL_MODULES)
    def test_module_imports(self, module_name):
        importlib.import_module(module_name)

    @pytest.mark.parametrize("package_name", INIT_PACKAGES)
    def test_exported_names_resolve(self, package_name):
        package = importlib.import_module(package_name)
        missing = [name for name in getattr(package, "__all__", ()) if not hasattr(package, name)]
        assert missing == []

    def test_db_package_exports(self):
        db = importlib.import_module("claimtech_kernel.db")
        assert db.Base is importlib.import_module("claimtech_kernel.db.base").Base
        assert callable(db.session_scope)


class TestKernelNoUpwardDependencies:

    def test_kernel_does_not_import_config(self):
        violations = []
        for path in sorted(glob.glob(f"{ROOT}/claimtech_kernel/**/*.py", recursive=True)):
            tree = ast.parse(Path(path).read_text(), filename=path)
            for node in ast.walk(tree):
                if isinstance(node, ast.ImportFrom) and node.module:
                    modules = [node.module]
                elif isinstance(node, ast.Import):
                    modules = [alias.name for alias in node.names]
                else:
                    continue
                violations += [
                    f"{Path(path).relative_to(ROOT)}:{node.lineno} {m}" for m in modules if m.startswith("claimtech_config")
                ]
        assert violations == []
