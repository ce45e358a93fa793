from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace
import sys

from config import AppConfig, load_config
from logging_utils import setup_logger
from pipeline import AlreadyExists, SaveOutcome, Success, outcome_message
from service_api import build_runtime
from url_normalizer import extract_shared_url


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Save a shared link into the vault")
    parser.add_argument("shared", nargs="+", help="URL or shared text containing a URL")
    parser.add_argument("--tier", default=None, help="Override REELVAULT_TIER for this run")
    return parser.parse_args(argv)


def run_save(shared_text: str, config: AppConfig) -> SaveOutcome:
    setup_logger("save", config.debug, config.log_file)
    runtime = build_runtime(config)
    raw_url = extract_shared_url(shared_text) or shared_text
    return asyncio.run(runtime.pipeline.save(raw_url))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = load_config()
    if args.tier:
        config = replace(config, tier=args.tier)

    outcome = run_save(" ".join(args.shared), config)
    print(outcome_message(outcome))
    if isinstance(outcome, Success):
        item = outcome.item
        print(f"id={item.id} url={item.url} tags={','.join(item.tags) or '-'}")
    return 0 if isinstance(outcome, (Success, AlreadyExists)) else 1


if __name__ == "__main__":
    sys.exit(main())
