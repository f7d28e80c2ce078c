"""
Unit tests for the notification channel and client settings.
"""

import pytest

from sdk.bridge_sdk.config import Settings
from sdk.bridge_sdk.notifications import Level, Notification, Notifier


class TestNotifier:
    def test_listeners_receive_and_unsubscribe(self):
        notifier = Notifier()
        seen = []
        unsubscribe = notifier.subscribe(seen.append)

        notifier.success("Profile saved successfully")
        unsubscribe()
        unsubscribe()
        notifier.error("Failed to save profile: offline")

        assert seen == [Notification(Level.SUCCESS, "Profile saved successfully")]
        assert [n.level for n in notifier.history] == [Level.SUCCESS, Level.ERROR]

    def test_history_is_bounded(self):
        notifier = Notifier(history_size=2)

        for message in ("a", "b", "c"):
            notifier.info(message)

        assert [n.message for n in notifier.history] == ["b", "c"]


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.session_retry_delay == 0.3
        assert settings.school_email_domain == "@g.gcksp12.org"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("BRIDGE_API_URL", "http://bridge.test")
        monkeypatch.setenv("BRIDGE_QUERY_RETRIES", "5")

        settings = Settings()

        assert settings.api_url == "http://bridge.test"
        assert settings.query_retries == 5

    @pytest.mark.parametrize("attempt,expected", [(0, 1.0), (1, 2.0), (2, 4.0), (10, 30.0)])
    def test_retry_delay_doubles_up_to_cap(self, attempt, expected):
        settings = Settings(query_retry_base_delay=1.0, query_retry_max_delay=30.0)

        assert settings.retry_delay(attempt) == expected
