from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from tracker.config import Config
from tracker.partners.abstract import AbstractPartnerBackend
from tracker.services.partner_registry import (
    PartnerBackendNotFound,
    PartnerConfigurationError,
    PartnerRegistry,
    backend_class_name,
)

BACKEND_TEMPLATE = '''
from tracker.partners.abstract import AbstractPartnerBackend


class {class_name}(AbstractPartnerBackend):
    def get_name(self):
        return "{name}"
'''


def _write_backend(directory: Path, code: str, name: str, class_name: str | None = None):
    directory.mkdir(parents=True, exist_ok=True)
    source = BACKEND_TEMPLATE.format(
        class_name=class_name or backend_class_name(code), name=name
    )
    (directory / f"{code}.py").write_text(source, encoding="utf-8")


@pytest.fixture()
def search_paths(tmp_path: Path):
    local_dir = tmp_path / "local"
    builtin_dir = tmp_path / "builtin"
    _write_backend(builtin_dir, "alpha", "Built-in Alpha")
    _write_backend(builtin_dir, "gamma", "Gamma")
    _write_backend(local_dir, "alpha", "Local Alpha")
    _write_backend(local_dir, "beta", "Beta")
    (builtin_dir / "abstract_backend.py").write_text("# base class\n", encoding="utf-8")
    (builtin_dir / "_helpers.py").write_text("# private\n", encoding="utf-8")
    (builtin_dir / "README.txt").write_text("not a backend\n", encoding="utf-8")
    return local_dir, builtin_dir


def test_backend_class_name_follows_code():
    assert backend_class_name("acme") == "AcmePartnerBackend"
    assert backend_class_name("acme_corp") == "AcmeCorpPartnerBackend"
    assert backend_class_name("example") == "ExamplePartnerBackend"


def test_backend_list_merges_directories_and_skips_abstract(search_paths):
    registry = PartnerRegistry(search_paths=search_paths)

    assert registry.get_backend_list() == ["alpha", "beta", "gamma"]


def test_local_directory_overrides_builtin(search_paths):
    registry = PartnerRegistry(search_paths=search_paths)

    assert registry.get_backend("alpha").get_name() == "Local Alpha"
    assert registry.get_backend("gamma").get_name() == "Gamma"


def test_backend_is_instantiated_once(search_paths):
    registry = PartnerRegistry(search_paths=search_paths)

    first = registry.get_backend("beta")
    second = registry.get_backend("beta")

    assert first is second
    assert isinstance(first, AbstractPartnerBackend)


def test_missing_backend_raises_configuration_error(search_paths):
    registry = PartnerRegistry(search_paths=search_paths)

    with pytest.raises(PartnerBackendNotFound):
        registry.get_backend("unknown")
    assert issubclass(PartnerBackendNotFound, PartnerConfigurationError)


def test_module_without_expected_class_is_rejected(tmp_path: Path):
    _write_backend(tmp_path, "delta", "Delta", class_name="SomethingElse")
    registry = PartnerRegistry(search_paths=[tmp_path])

    assert registry.get_backend_list() == ["delta"]
    with pytest.raises(PartnerConfigurationError, match="DeltaPartnerBackend"):
        registry.get_backend("delta")


def test_module_with_import_error_is_rejected(tmp_path: Path):
    (tmp_path / "broken.py").write_text("import does_not_exist_anywhere\n")
    registry = PartnerRegistry(search_paths=[tmp_path])

    with pytest.raises(PartnerConfigurationError, match="failed to import"):
        registry.get_backend("broken")


def test_missing_directories_are_ignored(tmp_path: Path):
    registry = PartnerRegistry(search_paths=[tmp_path / "nope", tmp_path / "none"])

    assert registry.get_backend_list() == []


def test_registered_factory_takes_precedence(search_paths):
    class StaticBackend(AbstractPartnerBackend):
        def get_name(self):
            return "Static Alpha"

    registry = PartnerRegistry(search_paths=search_paths)
    registry.register("alpha", StaticBackend)
    registry.register("omega", StaticBackend)

    assert registry.get_backend("alpha").get_name() == "Static Alpha"
    assert "omega" in registry.get_backend_list()
    assert registry.has_backend("omega")


def test_register_rejects_invalid_codes():
    registry = PartnerRegistry()

    with pytest.raises(PartnerConfigurationError):
        registry.register("../escape", AbstractPartnerBackend)


def test_refresh_discovers_new_backends(tmp_path: Path):
    registry = PartnerRegistry(search_paths=[tmp_path])
    assert registry.get_backend_list() == []

    _write_backend(tmp_path, "late", "Late Arrival")
    registry.refresh()

    assert registry.get_backend_list() == ["late"]
    assert registry.get_backend("late").get_name() == "Late Arrival"


def test_concurrent_lookups_share_one_instance():
    created: list[object] = []

    class SlowBackend(AbstractPartnerBackend):
        def __init__(self):
            time.sleep(0.01)
            created.append(self)

        def get_name(self):
            return "Slow"

    registry = PartnerRegistry(factories={"slow": SlowBackend})
    results: list[AbstractPartnerBackend] = []

    def worker():
        results.append(registry.get_backend("slow"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(created) == 1
    assert all(result is created[0] for result in results)


def test_from_config_finds_builtin_example_backend(tmp_path: Path):
    registry = PartnerRegistry.from_config(
        {
            "PARTNER_LOCAL_PATH": str(tmp_path / "partners"),
            "PARTNER_BACKEND_PATH": Config.PARTNER_BACKEND_PATH,
        }
    )

    codes = registry.get_backend_list()
    assert "example" in codes
    assert "abstract" not in codes
    backend = registry.get_backend("example")
    assert backend.get_name() == "Example"
    assert backend.can_user_access_feature(1, "reports") is False
    assert backend.can_user_access_issue_section(1, "phone") is True
