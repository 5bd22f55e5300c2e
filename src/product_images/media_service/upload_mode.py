"""Selection between the real and the mock upload adapter."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..adapters.adapters_base import AdapterKind, UploadAdapter
from ..uploads.upload_errors import ConfigurationError
from .config_probe import ConfigurationProbe

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadModeController:
    """Owns the mock-mode override and hands out the active adapter."""

    probe: ConfigurationProbe
    real_adapter: UploadAdapter
    mock_adapter: UploadAdapter
    force_mock: bool = False
    log: logging.Logger = field(default_factory=lambda: logger)

    def __post_init__(self) -> None:
        if self.real_adapter.kind is not AdapterKind.REAL:
            raise ValueError("real_adapter must be an AdapterKind.REAL adapter")
        if self.mock_adapter.kind is not AdapterKind.MOCK:
            raise ValueError("mock_adapter must be an AdapterKind.MOCK adapter")

    @property
    def active_kind(self) -> AdapterKind:
        if self.force_mock or not self.probe.configuration.is_usable:
            return AdapterKind.MOCK
        return AdapterKind.REAL

    @property
    def mock_mode(self) -> bool:
        return self.active_kind is AdapterKind.MOCK

    def select_adapter(self) -> UploadAdapter:
        if self.active_kind is AdapterKind.MOCK:
            return self.mock_adapter
        return self.real_adapter

    def enable_mock_mode(self) -> None:
        self.force_mock = True
        self.log.info("media_service.mode.mock_enabled")

    def disable_mock_mode(self) -> None:
        """Leave mock mode; requires a usable configuration and a passing live test."""
        configuration = self.probe.configuration
        if not configuration.is_usable:
            raise ConfigurationError(
                "Mock mode cannot be disabled: " + "; ".join(configuration.diagnostics)
            )
        last = self.probe.last_live_test
        if last is None or not last.success:
            raise ConfigurationError(
                "Mock mode cannot be disabled until a live configuration test succeeds"
            )
        self.force_mock = False
        self.log.info("media_service.mode.mock_disabled")
