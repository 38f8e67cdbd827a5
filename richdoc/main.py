"""Entry-point for the stored description pipeline."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from richdoc.errors import MalformedInput
from richdoc.model.elements import DocumentNode
from richdoc.parser.markup_parser import MarkupParser
from richdoc.renderer.html_renderer import HtmlRenderer
from richdoc.renderer.markup_serializer import serialize
from richdoc.utils.debug import DebugDumper
from richdoc.utils.logger import get_logger

LOGGER = get_logger(__name__)


def build_document(markup_path: Path, *, strict: bool = False) -> DocumentNode:
    """Read a stored description and parse it into a document tree."""
    markup = markup_path.read_text(encoding="utf-8")
    return MarkupParser(strict=strict).parse(markup)


def render_outputs(root: DocumentNode, output_dir: Path, *, title: str = "Description") -> None:
    """Write the static page and the canonical markup of ``root``."""
    output_dir.mkdir(parents=True, exist_ok=True)
    HtmlRenderer(output_dir / "document.html", title=title).render(root)
    (output_dir / "description.html").write_text(serialize(root), encoding="utf-8")


def main(markup_file: str, output_dir: Optional[str] = None, *, debug: bool = True) -> Path:
    """Run the stored markup → document tree → renderer pipeline."""
    markup_path = Path(markup_file).resolve()
    if not markup_path.exists():
        raise FileNotFoundError(f"Markup file not found: {markup_path}")

    LOGGER.info("Parsing description %s", markup_path.name)
    root = build_document(markup_path)

    if output_dir is None:
        output_dir = str(markup_path.with_suffix(""))

    output_path = Path(output_dir).resolve()
    LOGGER.info("Rendering outputs into %s", output_path)
    render_outputs(root, output_path, title=markup_path.stem)

    if debug:
        DebugDumper(output_path / "debug").dump(root)
    return output_path


def check(markup_file: str) -> bool:
    """Parse strictly; report the first recovery the tolerant parser would make."""
    try:
        build_document(Path(markup_file), strict=True)
    except MalformedInput as exc:
        LOGGER.error("%s: %s", markup_file, exc)
        return False
    LOGGER.info("%s is well-formed", markup_file)
    return True


def run(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Normalize a stored rich description and render it to HTML")
    parser.add_argument("markup_file", help="Path to the stored description markup")
    parser.add_argument("--output", help="Directory to write generated artifacts")
    parser.add_argument("--check", action="store_true", help="Only validate the markup with strict parsing")
    parser.add_argument("--no-debug", action="store_true", help="Skip the JSON dump of the document tree")

    args = parser.parse_args(argv)
    if args.check:
        return 0 if check(args.markup_file) else 1
    main(args.markup_file, args.output, debug=not args.no_debug)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(run())
