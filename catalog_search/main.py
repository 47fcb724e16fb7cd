"""
Main application entry point.
Thin JSON surface over the search engine; no ranking logic lives here.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query

from catalog_search.config import config
from catalog_search.errors import (
    ConfigError,
    ExternalServiceError,
    IngestionError,
    NetworkError,
)
from catalog_search.logger import logger
from catalog_search.models.search import (
    ParseResult,
    PriceRange,
    SearchFilters,
    SearchOptions,
)
from catalog_search.sentry import initialize_sentry
from catalog_search.services.catalog_loader import CatalogLoader
from catalog_search.services.search_engine import (
    get_price_range,
    get_suggestions,
    get_unique_vendors,
    paginate,
    search_products,
)

catalog_loader = CatalogLoader()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    logger.info("Starting Catalog Search")
    initialize_sentry()

    # Startup succeeds without a catalog; endpoints answer 503 until one loads
    if config.has_catalog_source:
        try:
            await catalog_loader.load()
        except (ConfigError, IngestionError, ExternalServiceError, NetworkError) as e:
            logger.error(f"Catalog load failed at startup: {e}")

    yield

    logger.info("Shutting down Catalog Search")
    await catalog_loader.close()


app = FastAPI(
    title="Catalog Search API",
    description="Weighted multi-field product search over a catalog export",
    version="1.0.0",
    lifespan=lifespan
)


def get_catalog() -> ParseResult:
    """Dependency returning the loaded catalog or a 503."""
    catalog = catalog_loader.cache.get()
    if catalog is None:
        raise HTTPException(status_code=503, detail="Catalog not loaded")
    return catalog


def _parse_vendors(vendors: Optional[str]):
    if not vendors:
        return None
    names = [name.strip() for name in vendors.split(",") if name.strip()]
    return names or None


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Catalog Search",
        "version": "1.0.0",
        "status": "operational",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    catalog = catalog_loader.cache.get()
    return {
        "status": "healthy" if catalog is not None else "degraded",
        "catalog_loaded": catalog is not None,
        "products": len(catalog.products) if catalog is not None else 0,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/api/v1/search")
async def search(
    q: str = "",
    vendors: Optional[str] = None,
    min_price: Optional[float] = Query(default=None, ge=0),
    max_price: Optional[float] = Query(default=None, ge=0),
    in_stock: bool = False,
    sort: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    catalog: ParseResult = Depends(get_catalog),
):
    """Search the catalog and return one page of results."""
    price_range = None
    if min_price is not None or max_price is not None:
        price_range = PriceRange(
            min=min_price if min_price is not None else 0.0,
            max=max_price if max_price is not None else float("inf"),
        )
        if price_range.min > price_range.max:
            raise HTTPException(status_code=400, detail="min_price must not exceed max_price")

    filters = SearchFilters.normalized(
        SearchFilters.build(vendors=_parse_vendors(vendors), price_range=price_range, in_stock=in_stock)
    )

    results = search_products(
        catalog.products,
        SearchOptions(query=q, filters=filters, sort_by=sort or None),
    )
    result_page = paginate(results, page=page, page_size=page_size)

    return {
        "query": q,
        "results": [r.to_dict() for r in result_page.items],
        "total": result_page.total,
        "page": result_page.page,
        "page_size": result_page.page_size,
        "has_more": result_page.has_more
    }


@app.get("/api/v1/suggestions")
async def suggestions(q: str = "", catalog: ParseResult = Depends(get_catalog)):
    """Title and vendor suggestions for a partial query."""
    if len(q.strip()) < 2:
        return {"query": q, "suggestions": []}
    results = search_products(catalog.products, SearchOptions(query=q))
    return {"query": q, "suggestions": get_suggestions(q, results)}


@app.get("/api/v1/vendors")
async def vendors(catalog: ParseResult = Depends(get_catalog)):
    """Distinct vendor names for the filter controls."""
    return {"vendors": get_unique_vendors(catalog.products)}


@app.get("/api/v1/price-range")
async def price_range(catalog: ParseResult = Depends(get_catalog)):
    """Overall price bounds for the filter controls."""
    bounds = get_price_range(catalog.products)
    return {"min": bounds.min, "max": bounds.max}


@app.get("/api/v1/stats")
async def stats(catalog: ParseResult = Depends(get_catalog)):
    """Statistics of the last successful parse."""
    return catalog.stats.to_dict()


if __name__ == "__main__":
    import os
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
