# Copyright (c) 2025 - 2026, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Lazy attribute imports for package ``__getattr__``."""

import importlib

__all__ = ("lazy_import",)


def lazy_import(
    name: str,
    module_map: dict[str, tuple[str, str | None]],
    package: str,
    globs: dict,
) -> object:
    """Import ``name`` from the module registered for it and cache it.

    Args:
        name: Attribute being looked up.
        module_map: ``{attr: (relative_module, import_name | None)}``;
            a None import name means ``name`` itself.
        package: ``__name__`` of the calling package.
        globs: The caller's ``globals()``; the imported object is stored
            there so later lookups skip ``__getattr__``.

    Raises:
        AttributeError: If ``name`` is not registered.
    """
    if name not in module_map:
        raise AttributeError(f"module '{package}' has no attribute '{name}'")
    module_path, import_name = module_map[name]
    mod = importlib.import_module(f".{module_path}", package)
    obj = getattr(mod, import_name or name)
    globs[name] = obj
    return obj
