"""Compute a settled layout for a stored graph.

This script:
1. Loads the graph from the configured store (Neo4j or memory)
2. Runs the force simulation until it settles or the tick budget runs out
3. Prints layout bounds and the fit transform, optionally writing the
   full result (positions, transform, minimap) to a JSON file

Useful for checking how a graph will look before opening it in a view,
and for timing the simulation on large graphs.

Usage:
    python scripts/compute_layout.py mind
    python scripts/compute_layout.py mind --width 1600 --height 900 --output layout.json
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

from mindmap.api.layout import compute_layout
from mindmap.config import settings
from mindmap.errors import GraphNotFoundError
from mindmap.storage import create_store

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def compute_and_report(args: argparse.Namespace) -> int:
    store = create_store()
    await store.connect()
    try:
        print(f"Fetching graph {args.graph_id}...")
        data = await store.get_graph(args.graph_id)
    except GraphNotFoundError as e:
        print(str(e))
        return 1
    finally:
        await store.close()

    print(f"Found {len(data.nodes)} nodes, {len(data.edges)} relationships")

    started = time.perf_counter()
    result = compute_layout(data, args.width, args.height, args.max_ticks, seed=args.seed)
    elapsed = time.perf_counter() - started

    state = "settled" if result["settled"] else "not settled"
    print(f"Layout {state} after {result['ticks']} ticks in {elapsed:.2f}s")
    bounds = result["bounds"]
    if bounds:
        print(
            f"Bounds: x={bounds['x']:.1f} y={bounds['y']:.1f} "
            f"w={bounds['width']:.1f} h={bounds['height']:.1f}"
        )
    t = result["transform"]
    print(f"Fit transform: translate({t['x']:.1f}, {t['y']:.1f}) scale({t['k']:.3f})")

    if args.output:
        args.output.write_text(json.dumps(result, indent=2))
        print(f"Wrote {args.output}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Compute a force-directed layout for a graph")
    parser.add_argument("graph_id", nargs="?", default=settings.default_graph_id)
    parser.add_argument("--width", type=float, default=settings.layout_width)
    parser.add_argument("--height", type=float, default=settings.layout_height)
    parser.add_argument("--max-ticks", type=int, default=settings.layout_max_ticks)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--output", type=Path, default=None, help="Write the layout as JSON")
    args = parser.parse_args()

    sys.exit(asyncio.run(compute_and_report(args)))
