# function_app/MediafireRelay/__init__.py
import logging
from typing import Optional

from azurefunctions.extensions.http.fastapi import Request, Response
from fastapi.concurrency import run_in_threadpool

from .. import app
from ..shared.config import upstream_timeout, chunk_bytes
from ..shared.errors import RelayError
from ..shared.extract import extract_direct_link
from ..shared.landing import fetch_landing_page
from ..shared.logger import make_slogger
from ..shared.relay import open_relay
from ..shared.responses import error_response, preflight_response, relay_response
from ..shared.validate import validate_source_link

LOGGER = logging.getLogger("relay")

ALLOWED_METHODS = ("GET", "HEAD", "OPTIONS")


async def handle_relay(req: Request) -> Response:
    method = (req.method or "").upper()
    if method == "OPTIONS":
        return preflight_response()
    if method not in ALLOWED_METHODS:
        return error_response(f"Method {method} not allowed", 405, None)

    link: Optional[str] = req.query_params.get("require")
    slog, slog_exc = make_slogger(text_log=LOGGER.info, ctx={"method": method, "link": link or "N/A"})

    try:
        link = validate_source_link(link)
        slog("request", f"resolving {link}")

        timeout = upstream_timeout()
        page = await run_in_threadpool(fetch_landing_page, link, timeout=timeout)
        slog("landing", url=page.url, status=page.status, chars=len(page.text))

        direct_url = extract_direct_link(page.text, link=link)
        slog("extracted", direct_url=direct_url)

        relayed = await run_in_threadpool(
            open_relay,
            direct_url,
            link,
            user_agent=req.headers.get("user-agent"),
            timeout=timeout,
            chunk_bytes=chunk_bytes(),
        )
        slog("relay", status=relayed.status, filename=relayed.filename,
             length=relayed.headers.get("Content-Length", "unknown"))
        return relay_response(relayed, head_only=(method == "HEAD"))

    except RelayError as e:
        slog("failed", e.message, status=e.status, kind=type(e).__name__)
        return error_response(e.message, e.status, e.link)

    except Exception as e:
        slog_exc("failed", e)
        LOGGER.exception("relay failed for %s", link)
        return error_response(
            f"Internal server error while processing the request: {e}",
            500,
            link,
        )


mediafire_relay = app.route(route="relay", methods=["GET", "HEAD", "OPTIONS"])(handle_relay)
