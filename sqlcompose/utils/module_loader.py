"""Loading Python modules from file paths."""

import importlib.util
from pathlib import Path
from types import ModuleType
from typing import Union

__all__ = ("load_module_from_path",)


def load_module_from_path(path: "Union[str, Path]", module_name: "Union[str, None]" = None) -> ModuleType:
    """Import a Python source file that is not on ``sys.path``.

    Args:
        path: The file to import.
        module_name: Name given to the module. Defaults to the file stem.

    Raises:
        ImportError: The file could not be loaded.

    Returns:
        The executed module.
    """
    path = Path(path)
    spec = importlib.util.spec_from_file_location(module_name or path.stem, path)
    if spec is None or spec.loader is None:
        msg = f"Couldn't load a module from {path}"
        raise ImportError(msg)
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except FileNotFoundError as e:
        msg = f"Couldn't load a module from {path}"
        raise ImportError(msg) from e
    return module
