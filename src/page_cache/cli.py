"""Command line interface for pdf-page-cache."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import NoReturn

from page_cache import __version__
from page_cache.config import load_config
from page_cache.document import open_document
from page_cache.domain.errors import ConfigError, DocumentOpenError
from page_cache.logging import configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PDF page thumbnail renderer")
    parser.add_argument("--version", action="version", version=f"pdf-page-cache {__version__}")
    parser.add_argument("--config", type=Path, help="Path to a YAML config file")
    subparsers = parser.add_subparsers(dest="command")

    info_parser = subparsers.add_parser("info", help="Show document metadata")
    info_parser.add_argument("pdf", help="PDF file")
    info_parser.add_argument("--password", help="Password for encrypted documents")
    info_parser.set_defaults(func=_info_handler)

    thumbs_parser = subparsers.add_parser("thumbnails", help="Render every page to a PNG thumbnail")
    thumbs_parser.add_argument("pdf", help="PDF file")
    thumbs_parser.add_argument("--out", required=True, help="Output directory")
    thumbs_parser.add_argument("--password", help="Password for encrypted documents")
    thumbs_parser.add_argument("--box", type=float, help="Target box size (overrides config)")
    thumbs_parser.set_defaults(func=_thumbnails_handler)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return

    try:
        config = load_config(args.config)
    except (ConfigError, FileNotFoundError) as exc:
        _fail(exc)
    configure_logging(config.logging.level)
    logger.info("Starting CLI", extra={"command": args.command, "env": config.app.environment})
    args.func(args, config)


def _fail(exc: Exception) -> NoReturn:
    print(json.dumps({"error": str(exc), "kind": type(exc).__name__}, indent=2), file=sys.stderr)
    sys.exit(1)


def _open_or_exit(args: argparse.Namespace, config):
    try:
        return open_document(args.pdf, args.password, config=config, prefetch=False)
    except DocumentOpenError as exc:
        _fail(exc)


def _info_handler(args: argparse.Namespace, config) -> None:
    with _open_or_exit(args, config) as doc:
        print(
            json.dumps(
                {"file_name": doc.file_name, "page_count": doc.page_count, "encrypted": doc.is_encrypted},
                indent=2,
            )
        )


def _thumbnails_handler(args: argparse.Namespace, config) -> None:
    if args.box is not None:
        config = config.model_copy(deep=True)
        config.render.box_width = args.box
        config.render.box_height = args.box
    out_dir = Path(args.out)
    pages = []
    failures = []
    with _open_or_exit(args, config) as doc:
        for index in range(1, doc.page_count + 1):
            result = doc.fetch(index)
            if result.image is None:
                failures.append({"page_num": index, "error": str(result.error)})
                continue
            try:
                image_path = result.image.save(out_dir / f"page_{index:04d}.png")
            except OSError as exc:
                failures.append({"page_num": index, "error": f"could not write thumbnail: {exc}"})
                continue
            pages.append(
                {
                    "page_num": index,
                    "image_path": str(image_path),
                    "width": result.image.width,
                    "height": result.image.height,
                }
            )

    print(json.dumps({"file_name": Path(args.pdf).name, "pages": pages, "failures": failures}, indent=2))
    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
