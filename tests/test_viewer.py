"""Unit tests for sbm.viewer module."""

from unittest.mock import MagicMock, patch

import pytest

from sbm.errors import ViewerError
from sbm.viewer import open_url


class TestOpenUrl:
    """Test open_url function."""

    def test_runs_opener(self, cfg):
        """Should run the configured opener with the URL."""
        with patch("subprocess.run", return_value=MagicMock(returncode=0)) as mock_run:
            open_url("https://example.com", cfg)
        mock_run.assert_called_once_with(["xdg-open", "https://example.com"], check=False)

    def test_opener_with_arguments(self, cfg):
        """Should split an opener command line."""
        cfg.opener = "firefox --new-tab"
        with patch("subprocess.run", return_value=MagicMock(returncode=0)) as mock_run:
            open_url("https://example.com", cfg)
        mock_run.assert_called_once_with(["firefox", "--new-tab", "https://example.com"], check=False)

    def test_nonzero_exit(self, cfg):
        """Should raise ViewerError when the opener fails."""
        with patch("subprocess.run", return_value=MagicMock(returncode=3)), pytest.raises(ViewerError):
            open_url("https://example.com", cfg)

    def test_missing_opener(self, cfg):
        """Should raise ViewerError when the opener cannot be started."""
        with patch("subprocess.run", side_effect=FileNotFoundError("xdg-open")), pytest.raises(ViewerError):
            open_url("https://example.com", cfg)

    def test_webbrowser_fallback(self, cfg):
        """Should use webbrowser when no opener is configured."""
        cfg.opener = ""
        with patch("webbrowser.open", return_value=True) as mock_open:
            open_url("https://example.com", cfg)
        mock_open.assert_called_once_with("https://example.com")
