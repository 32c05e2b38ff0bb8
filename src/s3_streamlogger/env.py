"""Loading of .env files for the CLI and the test-suite."""
from __future__ import annotations

from pathlib import Path


def load_env(dotenv_path: str | Path | None = None, *, overlay: str | Path | None = None) -> bool:
    """Load ``dotenv_path`` (or the nearest .env), then apply ``overlay`` on top of it.

    Variables already present in the process environment win over the base
    file; the overlay file overrides both.
    """
    try:
        from dotenv import load_dotenv as _load_dotenv
    except ModuleNotFoundError as exc:  # pragma: no cover - dependency missing
        raise RuntimeError(
            "python-dotenv is not installed. Install the package with "
            "`pip install -e '.[test]'` before running the stream logger."
        ) from exc
    loaded = _load_dotenv(dotenv_path)
    if overlay is not None and Path(overlay).exists():
        loaded = _load_dotenv(dotenv_path=overlay, override=True) or loaded
    return loaded


__all__ = ["load_env"]
