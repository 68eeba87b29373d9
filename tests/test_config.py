# ============================================================================
# CONFIGURATION + CAPABILITY WIRING TESTS
# ============================================================================
# STATUS: Tests - Defaults, env overrides and capability loading
# PURPOSE: Verify delay bounds, backoff growth and startup validation
# CREATED: 18 OCT 2026
# ============================================================================
"""
Configuration + Capability Wiring Tests

Run with:
    pytest tests/test_config.py -v
"""

import pytest

from core.config import CapabilityDefaults, ReconcilerDefaults
from core.contracts import ResourceKind
from core.errors import MissingCapabilityError
from services import Capabilities, load_capabilities, load_object

from conftest import FakeClientProvider, FakeAdminClient, FakeProcessGroupManager, FakeRepository, FakeRecorder


# ============================================================================
# RECONCILER DEFAULTS
# ============================================================================

class TestReconcilerDefaults:

    def test_clamp_delay(self):
        defaults = ReconcilerDefaults()
        assert defaults.clamp_delay(None) == 2.0
        assert defaults.clamp_delay(-1) == 0.0
        assert defaults.clamp_delay(30) == 30
        assert defaults.clamp_delay(10_000) == 300.0

    def test_backoff_doubles_up_to_max(self):
        defaults = ReconcilerDefaults(backoff_base_seconds=1.0, backoff_max_seconds=10.0)
        assert [defaults.backoff_for(n) for n in range(6)] == [0.0, 1.0, 2.0, 4.0, 8.0, 10.0]

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MAX_CONCURRENT_RECONCILES", "4")
        monkeypatch.setenv("PENDING_REQUEUE_DELAY_SEC", "5")
        monkeypatch.setenv("RESYNC_PERIOD_SEC", "60")

        defaults = ReconcilerDefaults.from_env()

        assert defaults.max_concurrent_reconciles == 4
        assert defaults.pending_requeue_delay_seconds == 5.0
        assert defaults.resync_period_seconds == 60.0
        assert defaults.reconcile_timeout_seconds == 300.0

    def test_capability_paths_from_env(self, monkeypatch):
        monkeypatch.setenv("PROCESS_GROUP_MANAGER", "conftest:FakeProcessGroupManager")
        monkeypatch.delenv("DATABASE_CLIENT_PROVIDER", raising=False)

        config = CapabilityDefaults.from_env()

        assert config.process_group_manager == "conftest:FakeProcessGroupManager"
        assert config.database_client_provider is None


# ============================================================================
# CAPABILITY LOADING
# ============================================================================

class TestCapabilityLoading:

    def test_load_object_calls_factories(self):
        assert isinstance(load_object("conftest:FakeProcessGroupManager"), FakeProcessGroupManager)

    def test_load_object_calls_plain_functions(self):
        manager = load_object("conftest:build_process_group_manager")
        assert isinstance(manager, FakeProcessGroupManager)
        assert manager.remove_immediately is False

    def test_callable_instance_returned_as_is(self):
        from conftest import CALLABLE_PROCESS_GROUP_MANAGER

        assert load_object("conftest:CALLABLE_PROCESS_GROUP_MANAGER") is CALLABLE_PROCESS_GROUP_MANAGER

    def test_malformed_path(self):
        with pytest.raises(ValueError):
            load_object("conftest.FakeProcessGroupManager")

    def test_missing_attribute(self):
        with pytest.raises(AttributeError):
            load_object("conftest:NoSuchThing")

    def test_unset_paths_stay_none(self):
        assert load_capabilities(CapabilityDefaults()) == Capabilities()

    def test_wrong_type_rejected(self):
        with pytest.raises(TypeError):
            load_capabilities(CapabilityDefaults(database_client_provider="conftest:FakeProcessGroupManager"))


# ============================================================================
# STARTUP WIRING
# ============================================================================

class TestBuildManager:

    def test_registers_both_kinds(self):
        from main import build_manager

        capabilities = Capabilities(
            database_client_provider=FakeClientProvider(FakeAdminClient()),
            process_group_manager=FakeProcessGroupManager(),
        )
        manager = build_manager(FakeRepository(), FakeRepository(), FakeRecorder(), capabilities)

        assert manager.kinds == [ResourceKind.CLUSTER, ResourceKind.RESTORE]

    def test_missing_capability_fails_startup(self):
        from main import build_manager

        capabilities = Capabilities(database_client_provider=FakeClientProvider(FakeAdminClient()))

        with pytest.raises(MissingCapabilityError) as exc_info:
            build_manager(FakeRepository(), FakeRepository(), FakeRecorder(), capabilities)

        assert exc_info.value.capability == "ProcessGroupManager"
