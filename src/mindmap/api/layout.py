"""Server-side layout endpoint.

Runs the force simulation to rest for a stored graph and returns the
settled positions together with the fit transform and minimap frame, so a
client can paint a stable picture without simulating itself.
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from mindmap.api.routes import get_settings, get_store
from mindmap.errors import GraphNotFoundError
from mindmap.models import GraphData
from mindmap.view.renderer import GraphView

logger = logging.getLogger(__name__)

router = APIRouter()


def compute_layout(
    data: GraphData,
    width: float,
    height: float,
    max_ticks: int,
    seed: int | None = None,
) -> dict[str, Any]:
    """Simulate until settled (or out of ticks) and describe the result.

    CPU-bound; callers on the event loop should run it in a worker thread.
    """
    view = GraphView(width, height, seed=seed)
    view.render(data)
    assert view.simulation is not None
    ticks = view.simulation.run_until_settled(max_ticks)
    view.zoom_to_fit(animate=False)

    bounds = view.simulation.bounds()
    snapshot = view.snapshot()
    result = {
        "id": data.id,
        "width": width,
        "height": height,
        "ticks": ticks,
        "settled": view.settled,
        "nodes": snapshot["nodes"],
        "relationships": snapshot["edges"],
        "bounds": (
            {"x": bounds.x, "y": bounds.y, "width": bounds.width, "height": bounds.height}
            if bounds
            else None
        ),
        "transform": snapshot["transform"],
        "minimap": view.minimap().to_dict(),
    }
    view.destroy()
    return result


@router.get("/api/graph/{graph_id}/layout")
async def get_graph_layout(
    request: Request,
    graph_id: str,
    width: float | None = None,
    height: float | None = None,
    seed: int | None = None,
) -> dict:
    """Get a settled layout for a stored graph."""
    config = get_settings(request)
    store = get_store(request)
    try:
        data = await store.get_graph(graph_id)
    except GraphNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception(f"Error loading graph {graph_id} for layout: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load graph: {str(e)}",
        )

    w = width if width and width > 0 else config.layout_width
    h = height if height and height > 0 else config.layout_height
    result = await run_in_threadpool(
        compute_layout, data, w, h, config.layout_max_ticks, seed
    )
    logger.info(
        f"Layout for {graph_id}: {len(result['nodes'])} nodes, "
        f"{result['ticks']} ticks, settled={result['settled']}"
    )
    return result
