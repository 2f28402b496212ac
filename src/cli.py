"""Extract tasks and a follow-up from meeting notes and print them as JSON.

Usage: python -m src.cli notes.txt [--strategy heuristic|model]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from src.config import settings
from src.extraction.errors import ExtractionError
from src.extraction.heuristic import HeuristicExtractor
from src.extraction.llm import ModelExtractor
from src.extraction.service import ExtractionService
from src.extraction_config import ExtractionConfig, ExtractionStrategy


def build_service(strategy: str | None) -> ExtractionService:
    """Build the service from settings, honouring an explicit strategy override."""
    config = ExtractionConfig.from_settings(settings)
    if strategy == ExtractionStrategy.MODEL:
        return ExtractionService(config, extractor=ModelExtractor(config))
    if strategy == ExtractionStrategy.HEURISTIC:
        return ExtractionService(config, extractor=HeuristicExtractor())
    return ExtractionService(config)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", nargs="?", help="Notes file; reads stdin when omitted")
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in ExtractionStrategy],
        default=None,
        help="Override the configured extraction strategy",
    )
    args = parser.parse_args(argv)

    if args.path:
        try:
            text = Path(args.path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"Could not read {args.path}: {e}", file=sys.stderr)
            return 1
    else:
        text = sys.stdin.read()

    service = build_service(args.strategy)

    try:
        result = asyncio.run(service.extract(text))
    except ExtractionError as e:
        print(f"Extraction failed: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
