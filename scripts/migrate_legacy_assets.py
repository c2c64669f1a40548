#!/usr/bin/env python3
"""Copy assets addressed by legacy/CDN URLs into logical storage locations."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from hk_aws_s3.config.app_config import configure_logging  # noqa: E402
from hk_aws_s3.config.version import get_version  # noqa: E402
from hk_aws_s3.services.storage import get_storage_service  # noqa: E402

logger = logging.getLogger('migrate_legacy_assets')


def parse_args(argv=None):
    p = argparse.ArgumentParser(description='Copy legacy CDN assets into logical storage locations')
    p.add_argument('--input', required=True,
                   help='JSONL file, one {"location", "key", "url"} object per line')
    p.add_argument('--dry-run', action='store_true')
    p.add_argument('--limit', type=int, default=None)
    p.add_argument('--skip-disallowed', action='store_true',
                   help='Skip rows whose target key has an extension the location does not allow')
    p.add_argument('--report-jsonl', type=str, default=None)
    return p.parse_args(argv)


def read_rows(path):
    with open(path, 'r', encoding='utf-8') as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError as exc:
                yield line_no, {'_error': f'invalid JSON: {exc}'}
                continue
            yield line_no, row if isinstance(row, dict) else {'_error': 'row must be a JSON object'}


def run_migration(storage, rows, *, dry_run=False, limit=None, skip_disallowed=False, report_fp=None):
    stats = {
        'scanned': 0,
        'copied': 0,
        'dry_run': 0,
        'skipped_invalid_row': 0,
        'skipped_disallowed': 0,
        'errors': 0,
    }

    for line_no, row in rows:
        if limit is not None and stats['scanned'] >= limit:
            break
        stats['scanned'] += 1

        location = row.get('location')
        key = row.get('key')
        url = row.get('url')
        if row.get('_error') or not (location and key and url):
            stats['skipped_invalid_row'] += 1
            _report(report_fp, line_no, 'skip_invalid_row', url, error=row.get('_error') or 'missing location/key/url')
            continue

        if skip_disallowed and not storage.is_allowed_file_type(location, key):
            stats['skipped_disallowed'] += 1
            _report(report_fp, line_no, 'skip_disallowed', url, f'{location}/{key}')
            continue

        if dry_run:
            plan = storage.plan_copy(location, key, url)
            if not plan.ok:
                stats['errors'] += 1
                _report(report_fp, line_no, 'error', url, f'{location}/{key}', plan.message)
                continue
            source, target = plan.payload
            stats['dry_run'] += 1
            _report(report_fp, line_no, 'dry_run', source.uri, target.uri)
            continue

        result = storage.copy(location, key, url)
        if result.ok:
            stats['copied'] += 1
            _report(report_fp, line_no, 'copied', url, result.payload.locator.uri)
        else:
            stats['errors'] += 1
            _report(report_fp, line_no, 'error', url, f'{location}/{key}', result.message)

    return stats


def main(argv=None):
    args = parse_args(argv)
    configure_logging()
    logger.info(f"hk-aws-s3 {get_version()} legacy asset migration (dry_run={args.dry_run})")

    storage = get_storage_service()
    report_fp = open(args.report_jsonl, 'a', encoding='utf-8') if args.report_jsonl else None
    try:
        stats = run_migration(
            storage,
            read_rows(args.input),
            dry_run=args.dry_run,
            limit=args.limit,
            skip_disallowed=args.skip_disallowed,
            report_fp=report_fp,
        )
    finally:
        if report_fp:
            report_fp.close()

    print(json.dumps({'timestamp': datetime.now(timezone.utc).isoformat(), **stats}, ensure_ascii=False, indent=2))
    return 0 if stats['errors'] == 0 else 1


def _report(fp, line_no, action, source, target=None, error=None):
    if not fp:
        return
    row = {
        'ts': datetime.now(timezone.utc).isoformat(),
        'line': line_no,
        'action': action,
        'source': source,
        'target': target,
        'error': error,
    }
    fp.write(json.dumps(row, ensure_ascii=False) + '\n')
    fp.flush()


if __name__ == '__main__':
    raise SystemExit(main())
