"""Tests for logging setup."""

import logging

from skr_listener.utils.logging import SERVICE_NAME, service_context, setup_logging


class TestServiceContext:
    def test_adds_service_and_component(self):
        processor = service_context("skr")
        event_dict = processor(None, "info", {"event": "skr_event_received"})
        assert event_dict["service"] == SERVICE_NAME
        assert event_dict["listener_component"] == "skr"

    def test_any_component(self):
        event_dict = service_context("")(None, "info", {"event": "x"})
        assert event_dict["listener_component"] == "*"

    def test_explicit_keys_kept(self):
        event_dict = service_context("skr")(None, "info", {"event": "x", "service": "other"})
        assert event_dict["service"] == "other"


class TestSetupLogging:
    def test_sets_level_and_quiets_access_log(self):
        setup_logging(level="DEBUG", component="skr")
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("aiohttp.access").level == logging.WARNING
        setup_logging(level="INFO")
