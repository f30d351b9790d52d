"""FastAPI web server for the coach directory."""

from contextlib import AsyncExitStack, asynccontextmanager
from datetime import datetime
from urllib.parse import urlparse

import httpx
from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from coachdir import __version__
from coachdir.config import Settings
from coachdir.core.directory import parse_niches
from coachdir.core.exporter import to_dict
from coachdir.core.ingestor import Ingestor
from coachdir.exceptions import ConfigError, RateLimitedError, UpstreamError
from coachdir.logging import get_logger
from coachdir.models.directory import DirectoryQuery

ALLOWED_IMAGE_DOMAINS = ("cdninstagram.com", "fbcdn.net", "instagram.com")
IMAGE_PROXY_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Referer": "https://www.instagram.com/",
}

log = get_logger("api")


class IngestRequest(BaseModel):
    """Request body for a single profile ingest."""

    username: str | None = Field(default=None, description="Instagram handle to fetch")
    force_refresh: bool = Field(
        default=False,
        alias="forceRefresh",
        description="Ignore the stored copy and fetch fresh data",
    )

    model_config = {"populate_by_name": True}


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


def get_ingestor(request: Request) -> Ingestor:
    return request.app.state.ingestor


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def require_admin(
    request: Request,
    x_admin_token: str | None = Header(default=None),
) -> None:
    """Guard ingestion endpoints when an admin token is configured."""
    expected = request.app.state.settings.admin_token
    if expected and x_admin_token != expected:
        raise HTTPException(status_code=401, detail="Admin token required")


def is_allowed_image_host(url: str) -> bool:
    """Whether a URL points at an Instagram or Facebook CDN host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return False
    host = parsed.hostname.lower()
    return any(host == domain or host.endswith(f".{domain}") for domain in ALLOWED_IMAGE_DOMAINS)


def create_app(
    settings: Settings | None = None,
    ingestor: Ingestor | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """
    Build the application.

    The ingestor and the proxy HTTP client are created when the app starts
    and disposed when it stops, unless they are passed in.

    Args:
        settings: Settings instance, uses defaults if None
        ingestor: Pre-built Ingestor (entered and exited with the app)
        http_client: Client for the image proxy; owned by the app if None
    """
    settings = settings or (ingestor.settings if ingestor else Settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with AsyncExitStack() as stack:
            client = http_client
            if client is None:
                client = await stack.enter_async_context(httpx.AsyncClient(
                    timeout=settings.http_timeout_seconds,
                    headers=IMAGE_PROXY_HEADERS,
                    follow_redirects=True,
                ))
            app.state.http_client = client
            app.state.ingestor = await stack.enter_async_context(ingestor or Ingestor(settings))
            yield

    app = FastAPI(
        title="coachdir API",
        description="Directory of German-speaking Instagram coaches",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    @app.exception_handler(RateLimitedError)
    async def rate_limited_handler(request: Request, exc: RateLimitedError):
        return JSONResponse(status_code=429, content={"detail": str(exc)})

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError):
        return JSONResponse(status_code=502, content={"detail": str(exc), "upstreamStatus": exc.status_code})

    @app.exception_handler(ConfigError)
    async def config_error_handler(request: Request, exc: ConfigError):
        log.error("configuration_error", error=str(exc))
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check():
        """Check API health status."""
        return HealthResponse(
            status="healthy",
            version=__version__,
            timestamp=datetime.now().isoformat(),
        )

    @app.get("/api/coaches", tags=["Directory"])
    async def list_coaches(
        search: str = Query("", description="Matches username or full name"),
        niche: str = Query("", description="Comma-separated niches"),
        min_followers: int = Query(0, alias="minFollowers", ge=0),
        max_followers: int = Query(0, alias="maxFollowers", ge=0),
        page: int = Query(1, ge=1),
        limit: int | None = Query(None, ge=1),
        ingestor: Ingestor = Depends(get_ingestor),
    ):
        """
        Page through stored coaches, most followed first.

        Follower bounds are inclusive and ignored when 0.
        """
        query = DirectoryQuery(
            search=search.strip(),
            niches=parse_niches(niche),
            min_followers=min_followers,
            max_followers=max_followers,
            page=page,
            limit=limit or settings.directory_page_size,
        )
        result = await ingestor.directory(query)
        return {
            "profiles": [to_dict(p) for p in result.profiles],
            "pagination": result.pagination.model_dump(by_alias=True),
        }

    @app.post("/api/instagram", tags=["Ingestion"], dependencies=[Depends(require_admin)])
    async def ingest_profile(
        body: IngestRequest,
        ingestor: Ingestor = Depends(get_ingestor),
    ):
        """Fetch one profile from the scraping API and store it."""
        username = (body.username or "").strip()
        if not username:
            raise HTTPException(status_code=400, detail="Username is required")

        profile = await ingestor.ingest(username, force_refresh=body.force_refresh)
        if profile is None:
            raise HTTPException(status_code=404, detail="Profile not found or not a German account")
        return to_dict(profile)

    @app.get("/api/instagram", tags=["Ingestion"], dependencies=[Depends(require_admin)])
    async def ingest_profiles(
        usernames: str = Query("", description="Comma-separated Instagram handles"),
        force_refresh: bool = Query(False, alias="forceRefresh"),
        ingestor: Ingestor = Depends(get_ingestor),
    ):
        """
        Fetch several profiles in sequence.

        A single handle is fetched directly, so upstream errors surface; in a
        list, failing handles are skipped.
        """
        names = [u.strip() for u in usernames.split(",") if u.strip()]
        if not names:
            raise HTTPException(status_code=400, detail="usernames query parameter is required")

        if len(names) == 1:
            profile = await ingestor.ingest(names[0], force_refresh=force_refresh)
            profiles = [profile] if profile else []
        else:
            profiles = await ingestor.ingest_many(names, force_refresh=force_refresh)

        return {"profiles": [to_dict(p) for p in profiles], "count": len(profiles)}

    @app.get("/api/image-proxy", tags=["Images"])
    async def image_proxy(
        url: str = Query("", description="Instagram CDN image URL"),
        client: httpx.AsyncClient = Depends(get_http_client),
    ):
        """Serve an Instagram CDN image from this origin."""
        if not url:
            raise HTTPException(status_code=400, detail="URL parameter is required")
        if not is_allowed_image_host(url):
            raise HTTPException(status_code=400, detail="Invalid image source")

        try:
            upstream = await client.get(url, headers=IMAGE_PROXY_HEADERS)
        except httpx.HTTPError as e:
            log.error("image_proxy_failed", url=url, error=str(e))
            raise HTTPException(status_code=502, detail="Failed to fetch image") from e

        if not upstream.is_success:
            raise HTTPException(status_code=upstream.status_code, detail="Failed to fetch image")

        return Response(
            content=upstream.content,
            media_type=upstream.headers.get("content-type", "image/jpeg"),
            headers={
                "Cache-Control": "public, max-age=31536000, immutable",
                "Access-Control-Allow-Origin": "*",
            },
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
