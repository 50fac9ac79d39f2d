import asyncio
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Query

from backend.database import close_db
from backend.models import PlatformInfo, ScrapeRequest, ScrapeResult
from backend.scrapers.base import InvalidUrlError
from backend.scrapers.parsing import clean_and_validate_url
from backend.scrapers.platforms import detect_platform, get_selectors
from backend.services.scrape import get_scrape_result

# On Windows, ensure the ProactorEventLoop is used so that Playwright can
# spawn its browser subprocess.
if sys.platform == "win32":
    try:
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())
    except AttributeError:
        pass  # Policy class removed in newer Python versions

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_db()


app = FastAPI(title="VitrineScan", version="1.0.0", lifespan=lifespan)


@app.post("/api/scrape", response_model=ScrapeResult)
async def api_scrape(
    body: ScrapeRequest,
    refresh: bool = Query(False, description="Bypass the result cache"),
):
    try:
        return await get_scrape_result(body.url, body.category, refresh=refresh)
    except InvalidUrlError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/api/platform", response_model=PlatformInfo)
async def api_platform(
    url: str = Query(..., min_length=1, description="Storefront URL"),
):
    try:
        clean_url = clean_and_validate_url(url)
    except InvalidUrlError as e:
        raise HTTPException(status_code=400, detail=str(e))
    platform = detect_platform(clean_url)
    return PlatformInfo(url=clean_url, platform=platform, selectors=get_selectors(platform))


if __name__ == "__main__":
    uvicorn.run("backend.main:app", host="0.0.0.0", port=8000, reload=True)
