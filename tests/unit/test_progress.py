from __future__ import annotations

from unittest.mock import Mock, patch

from schedule_import.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True
    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:

    def test_init_with_tty_enabled(self):
        with patch("schedule_import.services.progress.is_tty_enabled", return_value=True), \
             patch("schedule_import.services.progress.tqdm") as mock_tqdm:
            tracker = ProgressTracker(description="schedule.xlsx")
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=100,
                desc="schedule.xlsx",
                unit="%",
                disable=False,
                leave=False,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch("schedule_import.services.progress.is_tty_enabled", return_value=False):
            tracker = ProgressTracker()
            assert tracker.enabled is False
            assert tracker.pbar is None
            tracker(50, "parsing data")  # no-op, no error
            assert tracker.percent == 50
            assert tracker.last_message == "parsing data"

    def test_callback_updates_by_delta(self):
        mock_pbar = Mock()
        with patch("schedule_import.services.progress.is_tty_enabled", return_value=True), \
             patch("schedule_import.services.progress.tqdm", return_value=mock_pbar):
            tracker = ProgressTracker(description="Loading")
            tracker(0, "loading file")
            tracker(50, "parsing data")
            tracker(75, "converting data")
            tracker(100, "done")
            updates = [c.args[0] for c in mock_pbar.update.call_args_list]
            assert updates == [50, 25, 25]
            mock_pbar.set_description.assert_called_with("Loading (done)")

    def test_callback_never_moves_backwards(self):
        mock_pbar = Mock()
        with patch("schedule_import.services.progress.is_tty_enabled", return_value=True), \
             patch("schedule_import.services.progress.tqdm", return_value=mock_pbar):
            tracker = ProgressTracker()
            tracker(75, "x")
            tracker(50, "y")
            assert tracker.percent == 75
            assert [c.args[0] for c in mock_pbar.update.call_args_list] == [75]

    def test_context_manager_closes(self):
        mock_pbar = Mock()
        with patch("schedule_import.services.progress.is_tty_enabled", return_value=True), \
             patch("schedule_import.services.progress.tqdm", return_value=mock_pbar):
            with ProgressTracker() as tracker:
                tracker(100, "done")
            mock_pbar.close.assert_called_once()
            assert tracker.pbar is None
