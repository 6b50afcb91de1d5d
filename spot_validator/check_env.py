#!/usr/bin/env python3
"""Spot validator environment sanity-check.

Checks:
- Python version (>= 3.10)
- Required dependencies importable (jsonschema, PyYAML)
- Bundled catalog loads
"""

from __future__ import annotations

import argparse
import importlib
import platform
import sys
from importlib import metadata


MIN_PY = (3, 10)
REQUIRED = [
    ("yaml", "PyYAML"),
    ("jsonschema", "jsonschema"),
]


def get_installed_version(dist_name: str) -> str | None:
    try:
        return metadata.version(dist_name)
    except metadata.PackageNotFoundError:
        return None


def check_python_version() -> list[str]:
    issues: list[str] = []
    if sys.version_info < MIN_PY:
        issues.append(
            f"Python >= {MIN_PY[0]}.{MIN_PY[1]} required; found {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}."
        )
    return issues


def check_import(module: str, pip_name: str) -> tuple[bool, str | None]:
    try:
        importlib.import_module(module)
        return True, None
    except ImportError as e:
        return False, f"Missing module '{module}'. Install '{pip_name}'. ({e})"


def check_catalog(path: str | None) -> list[str]:
    from spot_validator.catalog import CatalogError, load_catalog

    try:
        load_catalog(path)
    except CatalogError as e:
        return [f"Catalog does not load: {e}"]
    return []


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Check the spot validator runtime environment.")
    ap.add_argument("--catalog", default=None, help="Catalog YAML to test-load (default: bundled)")
    args = ap.parse_args(argv)

    print("Spot validator environment check")
    print("-" * 72)
    print(f"Python: {sys.executable}")
    print(f"Python version: {sys.version.splitlines()[0]}")
    print(f"OS: {platform.system()} {platform.release()} ({platform.platform()})")

    issues: list[str] = []
    issues.extend(check_python_version())

    deps_ok = True
    print("\nDependencies:")
    for mod, pip_name in REQUIRED:
        ok, msg = check_import(mod, pip_name)
        if ok:
            print(f"  - {pip_name}: {get_installed_version(pip_name) or 'unknown version'}")
        else:
            deps_ok = False
            print(f"  - {pip_name}: NOT INSTALLED")
            issues.append(msg)

    if deps_ok:
        issues.extend(check_catalog(args.catalog))

    print("\nResult:")
    if issues:
        print("ENV CHECK: FAIL")
        for i in issues:
            print(f"- {i}")
        print("\nFix:")
        print("  python -m pip install -e .")
        return 2

    print("ENV CHECK: PASS")
    print("Next:")
    print("  python -m spot_validator.validate_payloads --config")
    return 0


if __name__ == "__main__":
    sys.exit(main())
