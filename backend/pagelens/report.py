"""
Report aggregation - merge per-section results into the final report and
render it for the wire.
"""

import base64
import re

from pagelens.models import AnalysisMode, AnalysisReport, ReportStats


_INVALID_ID_CHARS = re.compile(r"[^a-z0-9-]")


def section_id(label: str) -> str:
    """'Hero Section (Additional)' -> 'hero-section-additional'"""
    return _INVALID_ID_CHARS.sub("", label.lower().replace(" ", "-")) or "section"


def aggregate(results: list, desktop_image: bytes, mobile_image: bytes,
              mode: AnalysisMode = AnalysisMode.SUMMARY, url: str = "") -> AnalysisReport:
    """
    Succeeded sections first, then failed ones. Discovery order is kept
    inside each group.
    """
    succeeded = [r for r in results if not r.extraction_failed]
    failed = [r for r in results if r.extraction_failed]

    stats = ReportStats(
        total_sections=len(results),
        successful_sections=len(succeeded),
        failed_section_ids=tuple(section_id(r.section.type) for r in failed),
    )

    return AnalysisReport(
        url=url,
        analysis_mode=mode,
        desktop_image=desktop_image or b"",
        mobile_image=mobile_image or b"",
        sections=tuple(succeeded + failed),
        stats=stats,
    )


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode() if data else ""


def section_to_dict(result) -> dict:
    analysis = result.analysis
    return {
        "id": section_id(result.section.type),
        "name": result.section.type,
        "description": result.section.description,
        "clip": result.section.clip.as_dict(),
        "screenshot": _b64(result.screenshot),
        "headline": analysis.pulled_quote,
        "extractionFailed": result.extraction_failed,
        **analysis.as_dict(),
    }


def report_to_dict(report: AnalysisReport) -> dict:
    return {
        "success": True,
        "analysisMode": report.analysis_mode.value,
        "url": report.url,
        "desktopImage": _b64(report.desktop_image),
        "mobileImage": _b64(report.mobile_image),
        "sections": [section_to_dict(r) for r in report.sections],
        "stats": report.stats.as_dict(),
    }
