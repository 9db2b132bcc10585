from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from catalogpdf.config import get_settings
from catalogpdf.errors import CatalogRenderError, user_message
from catalogpdf.report.catalog_pdf import generate_collection_document, generate_single_item_document
from catalogpdf.types import Collection


logger = logging.getLogger('catalogpdf')


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _read_json(path_value: str) -> Any:
    path = Path(path_value).expanduser().resolve()
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f'Input not found: {path}')
    return json.loads(path.read_text(encoding='utf-8'))


def _collection_payload(raw: Any, name_override: str | None) -> Collection:
    if isinstance(raw, list):
        items, name = raw, None
    elif isinstance(raw, dict):
        items = raw.get('items') or raw.get('bouquets') or []
        name = raw.get('name')
    else:
        raise ValueError('collection input must be a JSON list of items or an object with "items"')
    resolved = str(name_override or name or '').strip()
    if not resolved:
        raise ValueError('collection name is required (--name or "name" in the input)')
    return Collection(name=resolved, items=[row for row in items if isinstance(row, dict)])


def _fail(exc: BaseException) -> int:
    if not isinstance(exc, CatalogRenderError):
        logger.exception('PDF generation failed')
    _print_json(
        {
            'status': 'error',
            'error': type(exc).__name__,
            'message': user_message(exc),
            'detail': str(exc),
        }
    )
    return 2


def cmd_collection(args: argparse.Namespace) -> int:
    try:
        collection = _collection_payload(_read_json(args.input), args.name)
        path = asyncio.run(
            generate_collection_document(
                collection.name,
                collection.items,
                {'with_watermark': bool(args.watermark)},
                output_dir=Path(args.output_dir) if args.output_dir else None,
                timeout_seconds=args.timeout,
            )
        )
    except (OSError, ValueError) as exc:
        _print_json({'status': 'error', 'error': type(exc).__name__, 'message': str(exc)})
        return 2
    except Exception as exc:
        return _fail(exc)

    _print_json({'status': 'ok', 'path': str(path), 'items': len(collection.items)})
    return 0


def cmd_item(args: argparse.Namespace) -> int:
    try:
        raw = _read_json(args.input)
        if not isinstance(raw, dict):
            raise ValueError('item input must be a JSON object')
        path = asyncio.run(
            generate_single_item_document(
                raw,
                {'with_watermark': bool(args.watermark)},
                output_dir=Path(args.output_dir) if args.output_dir else None,
            )
        )
    except (OSError, ValueError) as exc:
        _print_json({'status': 'error', 'error': type(exc).__name__, 'message': str(exc)})
        return 2
    except Exception as exc:
        return _fail(exc)

    _print_json({'status': 'ok', 'path': str(path)})
    return 0


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=f'{settings.app_name} CLI')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    collection = sub.add_parser('collection', help='Render a collection catalog')
    collection.add_argument('--input', required=True, help='JSON file with a list of items or {name, items}')
    collection.add_argument('--name', required=False, help='Collection name override')
    collection.add_argument('--watermark', action='store_true', help='Add brand/price watermarks')
    collection.add_argument('--output-dir', required=False, help='Directory to save the PDF into')
    collection.add_argument('--timeout', type=float, required=False, help='Overall time budget in seconds')
    collection.set_defaults(func=cmd_collection)

    item = sub.add_parser('item', help='Render a single-item spec sheet')
    item.add_argument('--input', required=True, help='JSON file with one item')
    item.add_argument('--watermark', action='store_true', help='Add brand/price watermark')
    item.add_argument('--output-dir', required=False, help='Directory to save the PDF into')
    item.set_defaults(func=cmd_item)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    return int(args.func(args))


if __name__ == '__main__':
    raise SystemExit(main())
