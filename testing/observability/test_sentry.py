"""Tests for Sentry setup."""

import unittest
from unittest.mock import MagicMock, patch

from pydantic import ValidationError

from src.observability.sentry import SERVICE_NAME, SentryConfig, init_sentry


class TestSentryConfig(unittest.TestCase):
    """Tests for SentryConfig class."""

    @patch.dict("os.environ", {}, clear=True)
    def test_defaults(self) -> None:
        """Test reporting is off and tracing disabled by default."""
        config = SentryConfig(_env_file=None)

        self.assertEqual(config.dsn, "")
        self.assertEqual(config.environment, "local")
        self.assertIsNone(config.release)
        self.assertEqual(config.traces_sample_rate, 0.0)

    @patch.dict(
        "os.environ",
        {
            "SENTRY_DSN": "https://key@sentry.example.com/1",
            "APP_ENV": "prod",
            "SENTRY_RELEASE": "1.2.3",
            "SENTRY_TRACES_SAMPLE_RATE": "0.25",
        },
        clear=True,
    )
    def test_loads_from_environment(self) -> None:
        """Test settings are read from SENTRY_* variables and APP_ENV."""
        config = SentryConfig(_env_file=None)

        self.assertEqual(config.dsn, "https://key@sentry.example.com/1")
        self.assertEqual(config.environment, "prod")
        self.assertEqual(config.release, "1.2.3")
        self.assertEqual(config.traces_sample_rate, 0.25)

    @patch.dict("os.environ", {"SENTRY_TRACES_SAMPLE_RATE": "1.5"}, clear=True)
    def test_rejects_sample_rate_above_one(self) -> None:
        """Test a sample rate outside [0, 1] is rejected."""
        with self.assertRaises(ValidationError):
            SentryConfig(_env_file=None)


class TestInitSentry(unittest.TestCase):
    """Tests for init_sentry function."""

    @patch("src.observability.sentry.sentry_sdk")
    @patch.dict("os.environ", {}, clear=True)
    def test_skipped_without_dsn(self, mock_sdk: MagicMock) -> None:
        """Test Sentry is not initialised when no DSN is configured."""
        self.assertFalse(init_sentry(SentryConfig(_env_file=None)))
        mock_sdk.init.assert_not_called()

    @patch("src.observability.sentry.sentry_sdk")
    @patch.dict("os.environ", {}, clear=True)
    def test_initialised_with_dsn(self, mock_sdk: MagicMock) -> None:
        """Test Sentry is initialised from the config and tagged with the service."""
        config = SentryConfig(
            _env_file=None,
            dsn="https://key@sentry.example.com/1",
            APP_ENV="prod",
            release="1.2.3",
        )

        self.assertTrue(init_sentry(config))

        kwargs = mock_sdk.init.call_args.kwargs
        self.assertEqual(kwargs["dsn"], "https://key@sentry.example.com/1")
        self.assertEqual(kwargs["environment"], "prod")
        self.assertEqual(kwargs["release"], "1.2.3")
        self.assertEqual(kwargs["traces_sample_rate"], 0.0)
        self.assertFalse(kwargs["send_default_pii"])
        mock_sdk.set_tag.assert_called_once_with("service", SERVICE_NAME)

    @patch("src.observability.sentry.sentry_sdk")
    @patch.dict("os.environ", {"SENTRY_DSN": "https://key@sentry.example.com/1"}, clear=True)
    @patch("src.observability.sentry.SentryConfig")
    def test_defaults_to_environment_config(self, mock_config: MagicMock, mock_sdk: MagicMock) -> None:
        """Test the config is loaded from the environment when not given."""
        mock_config.return_value = SentryConfig(_env_file=None)

        self.assertTrue(init_sentry())

        self.assertEqual(mock_sdk.init.call_args.kwargs["environment"], "local")


if __name__ == "__main__":
    unittest.main()
