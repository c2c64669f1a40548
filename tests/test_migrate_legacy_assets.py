"""
Tests for scripts/migrate_legacy_assets.py.
"""

import importlib.util
import io
import json
import os
import sys
import tempfile
import unittest
from unittest.mock import MagicMock, patch

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from hk_aws_s3.services.storage import (  # noqa: E402
    LocationRegistry,
    OperationResult,
    StorageService,
    StorageSettings,
    StoredObject,
)
from hk_aws_s3.services.storage.s3 import S3StorageBackend  # noqa: E402


def _load_script():
    path = os.path.join(PROJECT_ROOT, 'scripts', 'migrate_legacy_assets.py')
    spec = importlib.util.spec_from_file_location('migrate_legacy_assets', path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


migrate = _load_script()


class TestRunMigration(unittest.TestCase):

    def setUp(self):
        self.client = MagicMock()
        self.client.copy_object.return_value = {}
        self.storage = StorageService(
            settings=StorageSettings(),
            registry=LocationRegistry.load(),
            backend=S3StorageBackend(client=self.client),
        )

    def _rows(self, *rows):
        return list(enumerate(rows, start=1))

    def test_copies_rows(self):
        report = io.StringIO()
        stats = migrate.run_migration(self.storage, self._rows(
            {'location': 'user-website', 'key': '1/logo.png', 'url': 'https://img.holkee.com/site/1/logo.png'},
            {'location': 'user-product', 'key': '1/p.jpg', 'url': 'https://cdn.holkee.com/user-product-assets/old/p.jpg'},
        ), report_fp=report)

        self.assertEqual(stats['copied'], 2)
        self.assertEqual(stats['errors'], 0)
        self.assertEqual(self.client.copy_object.call_count, 2)
        lines = [json.loads(line) for line in report.getvalue().splitlines()]
        self.assertEqual(lines[0]['action'], 'copied')
        self.assertEqual(lines[0]['target'], 's3://holkee-user-website-assets/user-website-assets/1/logo.png')

    def test_dry_run_does_not_copy(self):
        report = io.StringIO()
        stats = migrate.run_migration(self.storage, self._rows(
            {'location': 'user-news', 'key': 'a.png', 'url': 'site/a.png'},
        ), dry_run=True, report_fp=report)

        self.assertEqual(stats['dry_run'], 1)
        self.client.copy_object.assert_not_called()
        row = json.loads(report.getvalue())
        self.assertEqual(row['source'], 's3://holkee/images/site/a.png')

    def test_dry_run_counts_unresolvable_rows_as_errors(self):
        report = io.StringIO()
        stats = migrate.run_migration(self.storage, self._rows(
            {'location': 'missing', 'key': 'a.png', 'url': 'site/a.png'},
            {'location': 'user-news', 'key': '../a.png', 'url': 'site/a.png'},
            {'location': 'user-news', 'key': 'b.png', 'url': 'site/b.png'},
        ), dry_run=True, report_fp=report)

        self.assertEqual(stats['errors'], 2)
        self.assertEqual(stats['dry_run'], 1)
        self.client.copy_object.assert_not_called()
        actions = [json.loads(line)['action'] for line in report.getvalue().splitlines()]
        self.assertEqual(actions, ['error', 'error', 'dry_run'])

    def test_invalid_and_disallowed_rows_are_skipped(self):
        stats = migrate.run_migration(self.storage, self._rows(
            {'location': 'user-news', 'url': 'site/a.png'},
            {'_error': 'invalid JSON'},
            {'location': 'marketing-assets', 'key': 'style.css', 'url': 'site/style.css'},
        ), skip_disallowed=True)

        self.assertEqual(stats['skipped_invalid_row'], 2)
        self.assertEqual(stats['skipped_disallowed'], 1)
        self.client.copy_object.assert_not_called()

    def test_failures_are_counted(self):
        stats = migrate.run_migration(self.storage, self._rows(
            {'location': 'missing', 'key': 'a.png', 'url': 'site/a.png'},
        ))
        self.assertEqual(stats['errors'], 1)

    def test_limit(self):
        rows = self._rows(*[{'location': 'user-news', 'key': f'{i}.png', 'url': f'site/{i}.png'} for i in range(5)])
        stats = migrate.run_migration(self.storage, rows, limit=2)
        self.assertEqual(stats['scanned'], 2)
        self.assertEqual(self.client.copy_object.call_count, 2)


class TestMain(unittest.TestCase):

    def test_main_reads_jsonl_input(self):
        storage = MagicMock()
        storage.is_allowed_file_type.return_value = True
        storage.copy.return_value = OperationResult.success(
            StoredObject(bucket='holkee-user-news-assets', key='user-news-assets/a.png'))

        with tempfile.TemporaryDirectory() as tmp:
            input_path = os.path.join(tmp, 'rows.jsonl')
            with open(input_path, 'w', encoding='utf-8') as f:
                f.write(json.dumps({'location': 'user-news', 'key': 'a.png', 'url': 'site/a.png'}) + '\n')
                f.write('\n')
                f.write('[1, 2]\n')
            report_path = os.path.join(tmp, 'report.jsonl')

            with patch.object(migrate, 'get_storage_service', return_value=storage), \
                    patch.object(migrate, 'configure_logging'), \
                    patch('sys.stdout', new_callable=io.StringIO):
                exit_code = migrate.main(['--input', input_path, '--report-jsonl', report_path])

            with open(report_path, 'r', encoding='utf-8') as f:
                actions = [json.loads(line)['action'] for line in f]

        self.assertEqual(exit_code, 0)
        storage.copy.assert_called_once_with('user-news', 'a.png', 'site/a.png')
        self.assertEqual(actions, ['copied', 'skip_invalid_row'])


if __name__ == '__main__':
    unittest.main()
