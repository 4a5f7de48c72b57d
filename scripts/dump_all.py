#!/usr/bin/env python3
"""Dump everything the takmap client can read from a map server.

Fetches the server config, the full entity list, the message map and
the type taxonomy, printing both the parsed model fields **and** the
raw JSON so unparsed fields are easy to spot.

Usage
-----
::

    export TAKMAP_BASE_URL="http://localhost:8080"
    python scripts/dump_all.py

Options::

    --json               Output as machine-readable JSON
    --output FILE        Write output to FILE instead of stdout
    --skip-messages      Skip the message endpoint
    --skip-types         Skip the type taxonomy endpoint
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections import Counter
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from takmap import TakMapClient, TakMapConfig, TakMapError  # noqa: E402
from takmap.models import TaxonomyNode  # noqa: E402


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _count_nodes(node: TaxonomyNode) -> int:
    return 1 + sum(_count_nodes(child) for child in node.next)


async def dump(client: TakMapClient, *, skip: set[str], out: list[str]) -> dict[str, Any]:
    """Fetch every read endpoint and collect the results."""
    result: dict[str, Any] = {}

    out.append(_section("CONFIG"))
    server_config = await client.get_config()
    out.append(f"  callsign  : {server_config.callsign or '-'}")
    out.append(f"  uid       : {server_config.uid or '-'}")
    out.append(f"  centre    : {server_config.lat:.6f},{server_config.lon:.6f} zoom {server_config.zoom}")
    out.append(f"  layers    : {', '.join(layer.name for layer in server_config.layers) or '-'}")
    result["config"] = {"parsed": server_config.model_dump(mode="json"), "raw": server_config.raw}

    out.append(_section("ENTITIES"))
    entities = await client.get_entities()
    counts = Counter(record.category or "?" for record in entities)
    for category, count in sorted(counts.items()):
        out.append(f"  {category:<10}: {count}")
    for record in entities:
        out.append(f"  - {record.uid} {record.callsign!r} type={record.type} sidc={record.sidc or '-'}")
    result["entities"] = [{"parsed": r.model_dump(mode="json"), "raw": r.raw} for r in entities]

    if "messages" not in skip:
        out.append(_section("MESSAGES"))
        try:
            conversations = await client.get_messages()
        except TakMapError as exc:
            out.append(f"  !! messages failed: {exc}")
            result["messages"] = {"error": str(exc)}
        else:
            for key, conversation in conversations.items():
                out.append(f"  {key}: {conversation.title!r} ({len(conversation.messages)} messages)")
            result["messages"] = {k: c.model_dump(mode="json", by_alias=True) for k, c in conversations.items()}

    if "types" not in skip:
        out.append(_section("TYPES"))
        try:
            taxonomy = await client.get_types()
        except TakMapError as exc:
            out.append(f"  !! types failed: {exc}")
            result["types"] = {"error": str(exc)}
        else:
            out.append(f"  nodes     : {_count_nodes(taxonomy.root)}")
            for node in taxonomy.root.next:
                out.append(f"  - {node.code} {node.name}")
            result["types"] = taxonomy.root.model_dump(mode="json")

    return result


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Dump all data takmap can fetch for debugging / development.",
    )
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--skip-messages", action="store_true", help="Skip message endpoint")
    parser.add_argument("--skip-types", action="store_true", help="Skip type taxonomy endpoint")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    skip: set[str] = set()
    if args.skip_messages:
        skip.add("messages")
    if args.skip_types:
        skip.add("types")

    config = TakMapConfig.from_env()
    out: list[str] = [_section("takmap dump_all"), f"  server    : {config.base_url}"]
    async with TakMapClient(config) as client:
        result = await dump(client, skip=skip, out=out)
    result["timestamp"] = datetime.now(UTC).isoformat()
    result["base_url"] = config.base_url

    if args.json_mode:
        payload = json.dumps(result, indent=2, default=str, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
            print(f"JSON written to {args.output}", file=sys.stderr)
        else:
            print(payload)
        return

    print("\n".join(out))
    if args.output:
        Path(args.output).write_text(
            json.dumps(result, indent=2, default=str, ensure_ascii=False),
            encoding="utf-8",
        )
        print(f"JSON written to {args.output}")


if __name__ == "__main__":
    asyncio.run(main())
