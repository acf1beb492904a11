"""Top-level package for the Exam Toolkit.

Provides subpackages:
- exam_toolkit.core – question/form/version data models and utilities
- exam_toolkit.assembly – question selection strategies and length optimizer
- exam_toolkit.forms – parallel forms and multi-version generation
- exam_toolkit.distribution – assigning versions to test-takers
- exam_toolkit.security – watermark codes and seating heuristics
- exam_toolkit.storage – persistence sinks
- exam_toolkit.output – watermark stamping for exported PDFs
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        for line in pyproject.read_text(encoding="utf-8").splitlines():
            if line.strip().startswith("version"):
                # Parse: version = "0.3.0"
                return line.split("=")[1].strip().strip('"').strip("'")

    from importlib.metadata import PackageNotFoundError, version as pkg_version
    try:
        return pkg_version("exam_toolkit")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()
__all__: list[str] = ["__version__"]
