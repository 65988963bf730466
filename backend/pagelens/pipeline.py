"""
Analysis pipeline.

Steps:
[A] Navigate (never aborts, a failed load still gets captured)
[B] Desktop full-page + mobile above-the-fold screenshots
[C] Segment the desktop screenshot into sections (oracle)
[D] Clip + analyze each section (oracle)
[E] Aggregate into one report

One browser page per request, opened and closed here. Only a browser that
cannot start, or a bug, escapes as an exception.
"""

import asyncio
import time

from pagelens.analysis import analyze_screenshot, analyze_section, failed_result
from pagelens.browser import open_session
from pagelens.capture import capture_desktop, capture_mobile, capture_section, navigate, restore_desktop
from pagelens.config import get_settings
from pagelens.coordinates import normalize_section
from pagelens.image_utils import image_size
from pagelens.models import AnalysisMode, PageDimensions
from pagelens.report import aggregate, section_id
from pagelens.segmentation import identify_sections


async def _page_dimensions(session, desktop_image: bytes, settings) -> PageDimensions:
    """Scroll size of the page; falls back to the screenshot, then the viewport."""
    try:
        dims = await session.page_dimensions()
        if dims.width > 0 and dims.height > 0:
            return dims
    except Exception as e:
        print(f"  [pipeline] Page dimension probe failed: {e}")

    if desktop_image:
        try:
            width, height = image_size(desktop_image)
            return PageDimensions(width=width, height=height)
        except Exception as e:
            print(f"  [pipeline] Could not read desktop screenshot size: {e}")

    return PageDimensions(width=settings.desktop_viewport_width, height=settings.desktop_viewport_height)


async def _analyze_sequential(session, oracle, sections, mode, settings, emit) -> list:
    results = []
    for i, section in enumerate(sections):
        result = await analyze_section(session, oracle, section, mode, settings=settings)
        results.append(result)
        await emit("section", {
            "index": i,
            "id": section_id(section.type),
            "name": section.type,
            "extractionFailed": result.extraction_failed,
        })
    return results


async def _analyze_overlapped(session, oracle, sections, mode, settings, emit) -> list:
    """
    Clips are still taken one at a time on the shared page; only the oracle
    calls run concurrently, at most `analysis_concurrency` at once.
    """
    semaphore = asyncio.Semaphore(settings.analysis_concurrency)

    async def _oracle_half(i, section, screenshot):
        async with semaphore:
            result = await analyze_screenshot(oracle, section, screenshot, mode, settings=settings)
        await emit("section", {
            "index": i,
            "id": section_id(section.type),
            "name": section.type,
            "extractionFailed": False,
        })
        return result

    pending = []
    try:
        for i, section in enumerate(sections):
            screenshot = await capture_section(session, section.clip, settings=settings)
            if not screenshot:
                print(f"  [analyze] {section.type}: extraction failed - skipping oracle")
                pending.append(failed_result(section))
                await emit("section", {
                    "index": i,
                    "id": section_id(section.type),
                    "name": section.type,
                    "extractionFailed": True,
                })
            else:
                pending.append(asyncio.create_task(_oracle_half(i, section, screenshot)))

        return [item if not isinstance(item, asyncio.Task) else await item for item in pending]
    finally:
        for item in pending:
            if isinstance(item, asyncio.Task) and not item.done():
                item.cancel()


async def run_analysis(
    url: str,
    mode: AnalysisMode = AnalysisMode.SUMMARY,
    oracle=None,
    open_browser=None,
    settings=None,
    on_event=None,
):
    """
    Run the whole pipeline for one URL and return an AnalysisReport.

    Args:
        url: page to analyze.
        mode: summary (fast) or detailed (full audit) section analysis.
        oracle: object with `async complete(instruction, image) -> str`.
            Defaults to ClaudeOracle.
        open_browser: async context manager factory taking settings and
            yielding a session. Defaults to a Playwright Chromium session.
        settings: Settings override.
        on_event: optional `async (event_type, data)` progress callback.
    """
    settings = settings or get_settings()
    if oracle is None:
        from pagelens.oracle import ClaudeOracle
        oracle = ClaudeOracle()
    open_browser = open_browser or open_session
    mode = AnalysisMode(mode)
    start = time.time()

    def _log(msg):
        print(f"  [{time.time() - start:.1f}s] {msg}")

    async def _emit(event_type, data):
        if on_event is not None:
            await on_event(event_type, data)

    _log(f"=== ANALYSIS START: {url} ({mode.value}) ===")

    async with open_browser(settings) as session:
        # [A] Navigate
        await _emit("step", {"step": "navigating", "message": f"Loading {url}..."})
        loaded = await navigate(session, url, settings=settings)
        if not loaded:
            await _emit("warning", {"message": "Page did not finish loading - analyzing what rendered"})

        # [B] Screenshots
        await _emit("step", {"step": "capturing", "message": "Capturing desktop and mobile screenshots..."})
        desktop_image = await capture_desktop(session, settings=settings)
        dims = await _page_dimensions(session, desktop_image, settings)
        _log(f"Desktop: {len(desktop_image)} bytes, page {dims.width}x{dims.height}")
        mobile_image = await capture_mobile(session, settings=settings)
        _log(f"Mobile: {len(mobile_image)} bytes")
        await restore_desktop(session, settings=settings)

        # [C] Segmentation
        await _emit("step", {"step": "segmenting", "message": "Identifying page sections..."})
        candidates = await identify_sections(oracle, desktop_image, settings=settings)
        sections = [normalize_section(c, dims, min_size=settings.min_clip_size) for c in candidates]
        await _emit("sections", {"sections": [{"id": section_id(s.type), "name": s.type} for s in sections]})

        # [D] Per-section analysis
        await _emit("step", {"step": "analyzing", "message": f"Analyzing {len(sections)} sections..."})
        if settings.analysis_concurrency > 1:
            results = await _analyze_overlapped(session, oracle, sections, mode, settings, _emit)
        else:
            results = await _analyze_sequential(session, oracle, sections, mode, settings, _emit)

    # [E] Aggregate
    report = aggregate(results, desktop_image, mobile_image, mode=mode, url=url)
    _log(f"=== ANALYSIS DONE: {report.stats.successful_sections}/{report.stats.total_sections} sections ===")
    return report
