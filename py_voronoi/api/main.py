"""FastAPI main application."""

import logging
from typing import List, Optional, Tuple

import numpy as np
import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .. import __version__
from ..config import settings
from ..core.alea_prng import AleaPRNG
from ..core.exceptions import DegenerateInputError, GeometryError
from ..core.sites import SiteSet, relax_sites, validate_sites
from ..core.voronoi import build


def configure_logging():
    """Set up structlog processors and the stdlib level from settings."""
    logging.basicConfig(format="%(message)s", level=settings.log_level.upper())
    if settings.log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Voronoi Diagram API",
    description="Divide-and-conquer planar Voronoi diagrams",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class DiagramRequest(BaseModel):
    """Request to build a diagram."""

    sites: List[Tuple[float, float]] = Field(..., description="Site coordinates")
    presorted: bool = Field(False, description="Sites are already strictly increasing in x")
    bounds: Optional[Tuple[float, float, float, float]] = Field(
        None, description="(xmin, ymin, xmax, ymax) box for clipped face polygons"
    )
    jitter_duplicates: bool = Field(
        True, description="Nudge sites sharing an x or y coordinate instead of rejecting them"
    )


class EdgeModel(BaseModel):
    """One boundary edge of a face."""

    anchor: Tuple[float, float]
    direction: Tuple[float, float]
    neighbor: Optional[int] = None
    start: Optional[Tuple[float, float]] = None
    end: Optional[Tuple[float, float]] = None


class FaceModel(BaseModel):
    """Voronoi region of one site."""

    index: int
    input_index: int
    site: Tuple[float, float]
    bounded: bool
    neighbors: List[int]
    edges: List[EdgeModel]
    polygon: Optional[List[Tuple[float, float]]] = None


class DiagramResponse(BaseModel):
    """Finished diagram."""

    sites: List[Tuple[float, float]]
    input_indices: List[int]
    hull: List[int]
    faces: List[FaceModel]


class RandomSitesRequest(BaseModel):
    """Request for a random site set."""

    count: int = Field(..., ge=0, le=settings.max_sites, description="Number of sites")
    width: float = Field(settings.default_width, gt=0, description="Canvas width")
    height: float = Field(settings.default_height, gt=0, description="Canvas height")
    seed: Optional[str] = Field(None, description="Seed for reproducible sites")
    relax_iterations: int = Field(0, ge=0, le=10, description="Lloyd relaxation passes")


class SitesResponse(BaseModel):
    """Generated sites."""

    sites: List[Tuple[float, float]]
    seed: Optional[str] = None


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Voronoi Diagram API",
        "version": __version__,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/diagrams", response_model=DiagramResponse)
def create_diagram(request: DiagramRequest):
    """Build the Voronoi diagram of the posted sites."""
    logger.info("Diagram requested", sites=len(request.sites), presorted=request.presorted,
                jitter_duplicates=request.jitter_duplicates)

    if len(request.sites) > settings.max_sites:
        raise HTTPException(status_code=422,
                            detail=f"At most {settings.max_sites} sites are accepted")

    try:
        if request.jitter_duplicates:
            points = SiteSet(request.sites).points
        else:
            points = validate_sites(request.sites)
        if request.presorted and len(points) > 1 and not np.all(np.diff(points[:, 0]) > 0):
            raise DegenerateInputError("Sites marked presorted are not increasing in x")

        diagram = build(points, presorted=request.presorted)
        return diagram.to_dict(bounds=request.bounds)

    except DegenerateInputError as e:
        logger.warning("Rejected degenerate sites", error=str(e))
        raise HTTPException(status_code=422, detail=str(e))
    except GeometryError as e:
        logger.error("Diagram construction failed", error=str(e))
        raise HTTPException(status_code=500, detail=f"Diagram construction failed: {e}")
    except ValueError as e:
        # malformed bounds
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/sites/random", response_model=SitesResponse)
def random_sites(request: RandomSitesRequest):
    """Generate a random site set, optionally relaxed."""
    prng = AleaPRNG(request.seed) if request.seed is not None else None
    site_set = SiteSet(prng=prng)
    site_set.add_random(request.count, request.width, request.height)
    points = site_set.points

    if request.relax_iterations and len(points):
        try:
            points = relax_sites(points, (0.0, 0.0, request.width, request.height),
                                 request.relax_iterations)
        except GeometryError as e:
            logger.error("Relaxation failed", error=str(e))
            raise HTTPException(status_code=500, detail=f"Relaxation failed: {e}")

    logger.info("Random sites generated", count=len(points), seed=request.seed,
                relax_iterations=request.relax_iterations)
    return {"sites": points.tolist(), "seed": request.seed}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
