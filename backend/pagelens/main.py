import asyncio
import json

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from pagelens.config import get_settings
from pagelens.models import AnalysisMode


app = FastAPI(title="PageLens API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str | None = None
    analysis_mode: str | None = Field(default=None, alias="analysisMode")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _parse_request(request: AnalyzeRequest):
    """(url, mode) or an error response."""
    url = (request.url or "").strip()
    if not url:
        return _error(400, "Missing URL")
    if not url.startswith(("http://", "https://")):
        url = "https://" + url

    try:
        mode = AnalysisMode((request.analysis_mode or AnalysisMode.SUMMARY.value).strip().lower())
    except ValueError:
        return _error(400, f"Invalid analysisMode: {request.analysis_mode!r} (expected 'summary' or 'detailed')")
    return url, mode


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies get the same failure shape as every other error."""
    errors = exc.errors()
    if not errors:
        return _error(400, "Invalid request body")
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return _error(400, f"Invalid request body: {field}: {message}" if field else f"Invalid request body: {message}")


def sse_event(event_type: str, data: dict) -> str:
    """Format a Server-Sent Event string."""
    payload = {"type": event_type, **data}
    return f"data: {json.dumps(payload)}\n\n"


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/")
def root():
    return {"message": "PageLens is running"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/analyze")
async def analyze_endpoint(request: AnalyzeRequest):
    """Capture, segment and analyze a page. Always answers with one JSON shape."""
    parsed = _parse_request(request)
    if isinstance(parsed, JSONResponse):
        return parsed
    url, mode = parsed

    try:
        from pagelens.pipeline import run_analysis
        from pagelens.report import report_to_dict
        report = await asyncio.wait_for(
            run_analysis(url, mode),
            timeout=get_settings().request_timeout,
        )
        return report_to_dict(report)

    except asyncio.TimeoutError:
        return _error(504, "Analysis timed out. Try a simpler page.")
    except Exception as e:
        print(f"[analyze] Fatal error for {url}: {e}")
        return _error(500, str(e))


@app.post("/analyze/stream")
async def analyze_stream(request: AnalyzeRequest):
    """Same pipeline with step/section progress via SSE, then the report in `done`."""
    parsed = _parse_request(request)
    if isinstance(parsed, JSONResponse):
        return parsed
    url, mode = parsed

    from pagelens.pipeline import run_analysis
    from pagelens.report import report_to_dict

    async def event_stream():
        queue = asyncio.Queue()

        async def on_event(event_type, data):
            await queue.put(sse_event(event_type, data))

        task = asyncio.create_task(asyncio.wait_for(
            run_analysis(url, mode, on_event=on_event),
            timeout=get_settings().request_timeout,
        ))
        try:
            while True:
                getter = asyncio.create_task(queue.get())
                done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    yield getter.result()
                    continue
                getter.cancel()
                break

            while not queue.empty():
                yield queue.get_nowait()

            try:
                report = task.result()
            except asyncio.TimeoutError:
                yield sse_event("error", {"success": False, "error": "Analysis timed out. Try a simpler page."})
                return
            except Exception as e:
                print(f"[analyze-stream] Fatal error for {url}: {e}")
                yield sse_event("error", {"success": False, "error": str(e)})
                return

            yield sse_event("done", report_to_dict(report))
        finally:
            if not task.done():
                task.cancel()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
