from __future__ import annotations

from unittest.mock import Mock, patch

from pos_import.models.import_result import ImportResult
from pos_import.services.progress import RowProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True

    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


class TestRowProgressTracker:
    """RowProgressTracker drives one tqdm bar per import run."""

    def test_init_with_tty_enabled(self):
        with patch('pos_import.services.progress.is_tty_enabled', return_value=True), \
             patch('pos_import.services.progress.tqdm') as mock_tqdm:

            tracker = RowProgressTracker(5, description="Importando Productos")

            assert tracker.total_rows == 5
            assert tracker.current_row == 0
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Importando Productos",
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch('pos_import.services.progress.is_tty_enabled', return_value=False), \
             patch('pos_import.services.progress.tqdm') as mock_tqdm:
            tracker = RowProgressTracker(5)

            assert tracker.enabled is False
            assert tracker.pbar is None
            mock_tqdm.assert_not_called()

    def test_advance_updates_bar_and_counters(self):
        mock_pbar = Mock()
        with patch('pos_import.services.progress.is_tty_enabled', return_value=True), \
             patch('pos_import.services.progress.tqdm', return_value=mock_pbar):

            tracker = RowProgressTracker(3)
            tracker.advance(ImportResult(created=1, updated=0, failed=1))

            assert tracker.current_row == 1
            mock_pbar.update.assert_called_once_with(1)
            mock_pbar.set_postfix.assert_called_once_with(created=1, updated=0, failed=1)

    def test_advance_with_tty_disabled_counts_only(self):
        with patch('pos_import.services.progress.is_tty_enabled', return_value=False):
            tracker = RowProgressTracker(3)
            tracker.advance(ImportResult())
            tracker.advance(ImportResult())
            assert tracker.current_row == 2

    def test_context_manager_closes_bar(self):
        mock_pbar = Mock()
        with patch('pos_import.services.progress.is_tty_enabled', return_value=True), \
             patch('pos_import.services.progress.tqdm', return_value=mock_pbar):

            with RowProgressTracker(3) as tracker:
                assert isinstance(tracker, RowProgressTracker)

            mock_pbar.close.assert_called_once()
            assert tracker.pbar is None

    def test_reconcile_advances_once_per_row(self, store, row_factory):
        from pos_import.services.reconcile import import_customers

        progress = Mock()
        rows = [row_factory("customers", n, cells={"Nombre": f"C{n}"}) for n in (4, 5, 6)]
        import_customers(rows, "org-1", store, progress=progress)
        assert progress.advance.call_count == 3
