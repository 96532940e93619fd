import httpx
import pytest

from config.loader import ConfigLoader
from oauth.providers import ORDER, PHOTOS, TASKS, VIDEOS
from transfer.extension import (
    ExtensionContext,
    ExtensionState,
    ImportJob,
    NeilTransferExtension,
    PodTransferExtension,
    get_extension,
)
from transfer.importers import OrdersImporter, PhotosImporter
from transfer.media import MediaStreamProvider
from transfer.pipeline import PipelineState

BASE_URL = "https://dest.test"


@pytest.fixture
def loader(tmp_path, monkeypatch):
    for var in ("NEIL_KEY", "NEIL_SECRET", "POD_KEY", "POD_SECRET"):
        monkeypatch.delenv(var, raising=False)
    return ConfigLoader(str(tmp_path / "missing.env"))


def test_missing_credentials_leave_extension_failed(loader):
    extension = NeilTransferExtension()

    state = extension.initialize(ExtensionContext(config=loader))

    assert state == ExtensionState.FAILED
    with pytest.raises(RuntimeError):
        extension.get_importer(PHOTOS)


def test_standard_provider_requires_secret(loader, monkeypatch):
    monkeypatch.setenv("NEIL_KEY", "neil-key")
    assert NeilTransferExtension().initialize(ExtensionContext(config=loader)) == ExtensionState.FAILED


def test_pkce_provider_needs_only_key(loader, monkeypatch):
    monkeypatch.setenv("POD_KEY", "pod-key")
    extension = PodTransferExtension()

    assert extension.initialize(ExtensionContext(config=loader)) == ExtensionState.READY
    assert extension.app_credentials.key == "pod-key"
    assert extension.app_credentials.secret is None
    assert isinstance(extension.get_importer(PHOTOS), PhotosImporter)


def test_initialize_again_is_a_no_op(loader, monkeypatch):
    monkeypatch.setenv("NEIL_KEY", "neil-key")
    monkeypatch.setenv("NEIL_SECRET", "neil-secret")
    extension = NeilTransferExtension()
    context = ExtensionContext(config=loader)

    assert extension.initialize(context) == ExtensionState.READY
    importer = extension.get_importer(ORDER)
    assert extension.initialize(context) == ExtensionState.READY
    assert extension.get_importer(ORDER) is importer
    assert isinstance(importer, OrdersImporter)


def test_failed_extension_can_initialize_later(loader, monkeypatch):
    extension = NeilTransferExtension()
    assert extension.initialize(ExtensionContext(config=loader)) == ExtensionState.FAILED

    monkeypatch.setenv("NEIL_KEY", "neil-key")
    monkeypatch.setenv("NEIL_SECRET", "neil-secret")
    assert extension.initialize(ExtensionContext(config=loader)) == ExtensionState.READY


def test_unsupported_type_is_rejected(loader, monkeypatch):
    monkeypatch.setenv("POD_KEY", "pod-key")
    extension = PodTransferExtension()
    extension.initialize(ExtensionContext(config=loader))

    with pytest.raises(ValueError):
        extension.get_importer(VIDEOS)
    assert TASKS in extension.supported_types


def test_unknown_service():
    with pytest.raises(ValueError, match="Unknown service"):
        get_extension("dropbox")


def test_import_job_runs_container(loader, monkeypatch, server, http, auth_data):
    monkeypatch.setenv("NEIL_KEY", "neil-key")
    monkeypatch.setenv("NEIL_SECRET", "neil-secret")
    monkeypatch.setattr("settings.NEIL_BASE_URL", BASE_URL)
    extension = get_extension("neil")
    extension.initialize(ExtensionContext(config=loader, http_client=http))

    job = ImportJob(extension, ORDER, auth_data, job_id="job-1")
    report = job.run({"orders": [{"serial": "S-1"}]})

    assert report.job_id == "job-1"
    assert report.state == PipelineState.COMPLETE
    assert server.orders[0]["serial"] == "S-1"
    assert job.executor.is_key_cached("order:S-1")


def test_oauth_config_comes_from_provider_registry(loader, monkeypatch):
    monkeypatch.setenv("POD_KEY", "pod-key")
    monkeypatch.setenv("NEIL_KEY", "neil-key")
    monkeypatch.setenv("NEIL_SECRET", "neil-secret")
    pod, neil = PodTransferExtension(), NeilTransferExtension()

    pod.initialize(ExtensionContext(config=loader))
    neil.initialize(ExtensionContext(config=loader))

    assert pod.oauth_config.service_name == "Pod"
    assert neil.oauth_config.service_name == "Neil"


def test_close_releases_media_provider_it_created(loader, monkeypatch):
    monkeypatch.setenv("POD_KEY", "pod-key")
    extension = PodTransferExtension()
    extension.initialize(ExtensionContext(config=loader))
    provider = extension.media_provider
    assert extension.get_importer(PHOTOS).media_provider is provider

    extension.close()

    assert provider._client.is_closed
    assert extension.state == ExtensionState.UNINITIALIZED


def test_close_leaves_injected_media_provider_open(loader, monkeypatch):
    monkeypatch.setenv("POD_KEY", "pod-key")
    provider = MediaStreamProvider(httpx.Client())
    extension = PodTransferExtension()
    extension.initialize(ExtensionContext(config=loader, media_provider=provider))

    extension.close()

    assert not provider._client.is_closed
    provider.close()
