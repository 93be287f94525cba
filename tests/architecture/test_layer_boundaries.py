"""
Import-boundary enforcement for the policy engine packages.

Dependency direction:

    policy_services  ->  policy_engines  ->  policy_kernel
          |                                      ^
          +------------> policy_config ----------+

1. Domain purity      -- policy_kernel/domain/** imports only the stdlib
                          and policy_kernel.domain.
2. Kernel direction   -- policy_kernel/** never imports engines, services,
                          or config.
3. Engine purity      -- policy_engines/** may not import DB, ORM, models,
                          kernel services, selectors, services or config,
                          and may not read wall-clock time or environment.
4. Config centralisation -- only policy_config/__init__.py reads the
                          environment; only policy_config imports its loader.

All scanning is done via AST; these tests are read-only.
"""

import ast
import glob
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _python_files(package: str) -> list[str]:
    """Return all .py files under *package*, sorted for deterministic order."""
    return sorted(glob.glob(f"{ROOT / package}/**/*.py", recursive=True))


def _extract_imports(filepath: str) -> list[tuple[int, str]]:
    """Return (line_number, module_string) for every import in *filepath*."""
    try:
        tree = ast.parse(Path(filepath).read_text(), filename=filepath)
    except (SyntaxError, UnicodeDecodeError):
        return []

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _extract_attribute_calls(filepath: str) -> list[tuple[int, str]]:
    """Return (line_number, 'receiver.attr') for two-level attribute references."""
    try:
        tree = ast.parse(Path(filepath).read_text(), filename=filepath)
    except (SyntaxError, UnicodeDecodeError):
        return []

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name):
            results.append((node.lineno, f"{node.value.id}.{node.attr}"))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    """True if *module* equals or is a child of any prefix."""
    return any(module == p or module.startswith(f"{p}.") for p in prefixes)


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found = []
    for path in _python_files(package):
        for lineno, module in _extract_imports(path):
            if _matches_any(module, forbidden):
                found.append(f"{Path(path).relative_to(ROOT)}:{lineno} imports {module}")
    return found


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestPackagesPresent:

    def test_scanned_packages_exist(self):
        for package in ("policy_kernel", "policy_engines", "policy_config", "policy_services"):
            assert _python_files(package), f"{package} not found under {ROOT}"


class TestDomainPurity:

    FORBIDDEN = (
        "sqlalchemy",
        "yaml",
        "policy_kernel.db",
        "policy_kernel.models",
        "policy_kernel.services",
        "policy_kernel.selectors",
        "policy_kernel.codec",
        "policy_engines",
        "policy_services",
        "policy_config",
    )

    def test_domain_has_no_infrastructure_imports(self):
        assert _violations("policy_kernel/domain", self.FORBIDDEN) == []


class TestKernelDirection:

    def test_kernel_never_imports_upward(self):
        forbidden = ("policy_engines", "policy_services", "policy_config")
        assert _violations("policy_kernel", forbidden) == []


class TestEnginePurity:

    FORBIDDEN = (
        "sqlalchemy",
        "yaml",
        "policy_kernel.db",
        "policy_kernel.models",
        "policy_kernel.services",
        "policy_kernel.selectors",
        "policy_services",
        "policy_config",
    )

    IMPURE = frozenset({
        "datetime.now",
        "datetime.utcnow",
        "date.today",
        "time.time",
        "os.environ",
        "os.getenv",
    })

    def test_engines_have_no_infrastructure_imports(self):
        assert _violations("policy_engines", self.FORBIDDEN) == []

    def test_engines_read_no_clock_or_environment(self):
        found = []
        for path in _python_files("policy_engines"):
            for lineno, ref in _extract_attribute_calls(path):
                if ref in self.IMPURE:
                    found.append(f"{Path(path).relative_to(ROOT)}:{lineno} uses {ref}")
        assert found == []


class TestConfigCentralisation:

    def test_config_never_imports_engines_or_services(self):
        assert _violations("policy_config", ("policy_engines", "policy_services")) == []

    def test_loader_imported_only_inside_policy_config(self):
        found = []
        for package in ("policy_kernel", "policy_engines", "policy_services"):
            found += _violations(package, ("policy_config.loader",))
        assert found == []

    def test_environment_read_only_by_entrypoint(self):
        entrypoint = ROOT / "policy_config" / "__init__.py"
        found = []
        for package in ("policy_kernel", "policy_engines", "policy_config", "policy_services"):
            for path in _python_files(package):
                if Path(path) == entrypoint:
                    continue
                for lineno, ref in _extract_attribute_calls(path):
                    if ref in ("os.environ", "os.getenv"):
                        found.append(f"{Path(path).relative_to(ROOT)}:{lineno} uses {ref}")
        assert found == []
