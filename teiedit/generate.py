"""Compile the TEI P5 corpus into a JSON schema module."""
import argparse
import sys
from typing import List, Optional

import requests

from .config import TEIConfig
from .schema.compiler import compile_schema
from .schema.corpus.loader import fetch_corpus
from .schema.models.types import ProcessingError
from .schema.schema_manager import get_schema_stats
from .schema.serialization import save_schema
from .schema.utils.logger import SchemaLogger


def build_parser(tei_config: TEIConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="teiedit-generate", description=__doc__)
    parser.add_argument("--corpus", default=str(tei_config.schema.corpus_path),
                        help="Local corpus file (JSON or YAML)")
    parser.add_argument("--url", default=tei_config.schema.corpus_url,
                        help="Where to download the corpus when it is missing")
    parser.add_argument("--output", default=None,
                        help="Compiled module path (default: <compiled_dir>/<schema-id>.json)")
    parser.add_argument("--schema-id", default=tei_config.schema.default_schema)
    parser.add_argument("--name", default="TEI All")
    parser.add_argument("--force-download", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    tei_config = TEIConfig.from_environment()
    args = build_parser(tei_config).parse_args(argv)
    logger = SchemaLogger(
        name="teiedit.generate",
        level=tei_config.logging.level,
        log_file=tei_config.logging.log_file,
    )

    try:
        corpus = fetch_corpus(args.corpus, args.url, args.force_download)
        schema = compile_schema(corpus, schema_id=args.schema_id, name=args.name, logger=logger)
    except (ProcessingError, requests.RequestException, OSError) as e:
        logger.error(f"Generation failed: {e}")
        return 1

    output = args.output or tei_config.schema.compiled_dir / f"{args.schema_id}.json"
    path = save_schema(schema, output, indent=2)

    stats = get_schema_stats(schema)
    print(f"\nGenerated {path}")
    print(f"  Elements: {stats['elements']}")
    print(f"  Attribute classes: {stats['attribute_classes']}")
    print(f"  Elements with content model: {stats['with_content_model']}")

    print("\nTop 10 elements by child count:")
    for name, count in stats["top_elements_by_children"]:
        print(f"  {name}: {count} children")

    print("\nTop 10 attribute classes by attribute count:")
    for name, count in stats["top_attribute_classes"]:
        print(f"  {name}: {count} attributes")

    return 0


if __name__ == "__main__":
    sys.exit(main())
