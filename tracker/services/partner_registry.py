"""Discovery and per-process caching of partner backends.

Backends live in two directories: a local override directory (searched
first) and the built-in ``tracker/partners`` package. A backend for code
``acme_corp`` is the module ``acme_corp.py`` defining the class
``AcmeCorpPartnerBackend``.
"""

from __future__ import annotations

import importlib.util
import logging
import re
import threading
from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional

from flask import Flask, current_app

from ..partners.abstract import AbstractPartnerBackend

logger = logging.getLogger(__name__)

BackendFactory = Callable[[], AbstractPartnerBackend]

_BACKEND_FILE_RE = re.compile(r"^([A-Za-z0-9_]+)\.py$")
_CODE_RE = re.compile(r"^[A-Za-z0-9_]+$")
_EXCLUDED_PREFIXES = ("abstract", "_")

EXTENSION_KEY = "partner_registry"


class PartnerConfigurationError(RuntimeError):
    """Raised when a partner backend is missing or malformed."""


class PartnerBackendNotFound(PartnerConfigurationError):
    """Raised when no backend exists for a partner code."""


def backend_class_name(code: str) -> str:
    """Return the class name a backend module must define for ``code``."""
    parts = [part for part in code.split("_") if part]
    return "".join(part[:1].upper() + part[1:] for part in parts) + "PartnerBackend"


def _scan_directory(directory: Path) -> dict[str, Path]:
    found: dict[str, Path] = {}
    if not directory.is_dir():
        return found
    for entry in sorted(directory.iterdir()):
        if not entry.is_file():
            continue
        match = _BACKEND_FILE_RE.match(entry.name)
        if not match:
            continue
        code = match.group(1)
        if code.startswith(_EXCLUDED_PREFIXES):
            continue
        found[code] = entry
    return found


def _load_backend_class(code: str, path: Path) -> type[AbstractPartnerBackend]:
    module_name = f"tracker_partner_{code}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise PartnerConfigurationError(f"Cannot load partner backend from {path}")
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        raise PartnerConfigurationError(
            f"Partner backend {path} failed to import: {exc}"
        ) from exc

    class_name = backend_class_name(code)
    backend_cls = getattr(module, class_name, None)
    if backend_cls is None:
        raise PartnerConfigurationError(
            f"Partner backend {path} does not define {class_name}"
        )
    return backend_cls


class PartnerRegistry:
    """Resolves partner codes to backend instances.

    The directory scan runs once (or again on :meth:`refresh`); each backend
    is instantiated on first use and cached for the life of the process.
    """

    def __init__(
        self,
        search_paths: Iterable[Path | str] = (),
        factories: Optional[Mapping[str, BackendFactory]] = None,
    ) -> None:
        # Earlier paths win, so the local override directory goes first.
        self.search_paths = [Path(path) for path in search_paths]
        self._registered: dict[str, BackendFactory] = dict(factories or {})
        self._discovered: dict[str, Path] = {}
        self._instances: dict[str, AbstractPartnerBackend] = {}
        self._lock = threading.RLock()
        self.refresh()

    @classmethod
    def from_config(cls, config: Mapping[str, object]) -> "PartnerRegistry":
        paths = [
            config.get("PARTNER_LOCAL_PATH"),
            config.get("PARTNER_BACKEND_PATH"),
        ]
        return cls(search_paths=[str(path) for path in paths if path])

    def refresh(self) -> None:
        discovered: dict[str, Path] = {}
        for directory in reversed(self.search_paths):
            discovered.update(_scan_directory(directory))
        with self._lock:
            self._discovered = discovered
            self._instances.clear()
        logger.debug(
            "Discovered partner backends %s in %s",
            sorted(discovered),
            [str(path) for path in self.search_paths],
        )

    def register(self, code: str, factory: BackendFactory) -> None:
        if not _CODE_RE.match(code or ""):
            raise PartnerConfigurationError(f"Invalid partner code: {code!r}")
        with self._lock:
            self._registered[code] = factory
            self._instances.pop(code, None)

    def get_backend_list(self) -> list[str]:
        with self._lock:
            return sorted(set(self._discovered) | set(self._registered))

    def has_backend(self, code: str) -> bool:
        with self._lock:
            return code in self._registered or code in self._discovered

    def get_backend(self, code: str) -> AbstractPartnerBackend:
        with self._lock:
            backend = self._instances.get(code)
            if backend is None:
                factory = self._resolve_factory(code)
                backend = factory()
                self._instances[code] = backend
                logger.info("Loaded partner backend %s", code)
            return backend

    def _resolve_factory(self, code: str) -> BackendFactory:
        factory = self._registered.get(code)
        if factory is not None:
            return factory
        path = self._discovered.get(code)
        if path is None:
            raise PartnerBackendNotFound(f"No partner backend found for {code!r}")
        return _load_backend_class(code, path)


def init_partner_registry(app: Flask) -> PartnerRegistry:
    registry = PartnerRegistry.from_config(app.config)
    app.extensions[EXTENSION_KEY] = registry
    return registry


def get_partner_registry(app: Optional[Flask] = None) -> PartnerRegistry:
    target = app or current_app
    return target.extensions[EXTENSION_KEY]


__all__ = [
    "PartnerBackendNotFound",
    "PartnerConfigurationError",
    "PartnerRegistry",
    "backend_class_name",
    "get_partner_registry",
    "init_partner_registry",
]
