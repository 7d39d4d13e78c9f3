"""Run local environment checks for pathcore."""

import platform
import sys
from pathlib import Path


def _ok(flag: bool) -> str:
    return "PASS" if flag else "FAIL"


def _warn(flag: bool) -> str:
    return "PASS" if flag else "WARN"


def _can_write(path: Path) -> bool:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        probe = path.parent / ".pathcore_write_test"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink()
        return True
    except OSError:
        return False


def main() -> int:
    print("pathcore doctor")
    print(f"- OS: {platform.system()} {platform.release()}")
    print(f"- Python: {platform.python_version()} ({sys.executable})")

    py_ok = sys.version_info >= (3, 8)
    print(f"[{_ok(py_ok)}] Python >= 3.8")
    if not py_ok:
        return 1

    try:
        from pathcore.config import default_config_path
        from pathcore.formats import get_all_formats
        formats = [f.get_name() for f in get_all_formats()]
        import_ok = True
    except ImportError as e:
        print(f"       {e}")
        formats = []
        import_ok = False
    print(f"[{_ok(import_ok)}] pathcore importable")
    for name in formats:
        print(f"       format: {name}")

    cfg_path = Path(default_config_path()) if import_ok else Path(__file__).resolve().parent / "config.json"
    print(f"[{_warn(cfg_path.exists())}] config file present ({cfg_path})")
    writable = _can_write(cfg_path)
    print(f"[{_ok(writable)}] writable config path available")

    try:
        import pytest  # noqa: F401
        pytest_ok = True
    except ImportError:
        pytest_ok = False
    print(f"[{_warn(pytest_ok)}] pytest available (pip install -e .[test])")

    all_ok = py_ok and import_ok and writable
    if all_ok:
        print("All checks passed.")
        return 0
    print("One or more checks failed.")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
