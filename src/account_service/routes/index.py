from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from account_service import __version__
from account_service.utils.strings import Strings

router = APIRouter(tags=["Index"])

README = (
    f"<h2>{Strings.APP_TITLE} - <small>{Strings.APP_DESCRIPTION}</small></h2>"
    f'<p>Access the API documentation <a href="/docs">v.{__version__}</a></p>'
)


@router.get("/", response_class=HTMLResponse)
async def readme():
    return README


@router.get("/v1", response_class=HTMLResponse)
async def readme_v1():
    return README
