from __future__ import annotations

from unittest.mock import Mock, patch

from user_import.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    """is_tty_enabled mirrors sys.stdout.isatty()."""
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True

    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    """ProgressTracker over inserted rows."""

    def test_init_with_tty_enabled(self):
        with patch('user_import.services.progress.is_tty_enabled', return_value=True), \
             patch('user_import.services.progress.tqdm') as mock_tqdm:

            tracker = ProgressTracker(5)

            assert tracker.total_rows == 5
            assert tracker.description == "Importing users"
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Importing users",
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch('user_import.services.progress.is_tty_enabled', return_value=False), \
             patch('user_import.services.progress.tqdm') as mock_tqdm:
            tracker = ProgressTracker(5)

            assert tracker.enabled is False
            assert tracker.pbar is None
            mock_tqdm.assert_not_called()

    def test_advance_updates_bar_and_counts(self):
        mock_pbar = Mock()
        with patch('user_import.services.progress.is_tty_enabled', return_value=True), \
             patch('user_import.services.progress.tqdm', return_value=mock_pbar):
            tracker = ProgressTracker(3)
            tracker.advance(True)
            tracker.advance(False)

        assert tracker.inserted == 1
        assert tracker.rejected == 1
        assert mock_pbar.update.call_count == 2
        mock_pbar.set_postfix.assert_called_with(inserted=1, rejected=1)

    def test_advance_without_tty_only_counts(self):
        with patch('user_import.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(2)
            tracker.advance()
            tracker.advance()
        assert tracker.inserted == 2
        assert tracker.rejected == 0

    def test_context_manager_closes_bar(self):
        mock_pbar = Mock()
        with patch('user_import.services.progress.is_tty_enabled', return_value=True), \
             patch('user_import.services.progress.tqdm', return_value=mock_pbar):
            with ProgressTracker(1) as tracker:
                tracker.advance()

        mock_pbar.close.assert_called_once()
        assert tracker.pbar is None
