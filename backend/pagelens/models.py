"""
Data model for one analysis request. Everything here lives for a single
request and is never mutated after construction.
"""

from dataclasses import dataclass, field, replace
from enum import Enum


class AnalysisMode(str, Enum):
    SUMMARY = "summary"
    DETAILED = "detailed"


@dataclass(frozen=True)
class PageDimensions:
    """Scroll size of the loaded page at the desktop viewport."""
    width: int
    height: int


@dataclass(frozen=True)
class SectionCandidate:
    """
    Unvalidated section proposal from the oracle.

    `coordinates` holds top/right/bottom/left as percentages of page
    height/width exactly as the oracle sent them: values may be missing,
    non-numeric, out of range or inverted.
    """
    type: str
    coordinates: dict = field(default_factory=dict)
    description: str = ""

    def with_type(self, new_type: str) -> "SectionCandidate":
        return replace(self, type=new_type)


@dataclass(frozen=True)
class PixelClip:
    x: int
    y: int
    width: int
    height: int

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class NormalizedSection:
    type: str
    clip: PixelClip
    description: str = ""


@dataclass(frozen=True)
class BestPractice:
    company: str
    description: str

    def as_dict(self) -> dict:
        return {"company": self.company, "description": self.description}


@dataclass(frozen=True)
class SectionAnalysis:
    what_we_found: tuple = ()
    whats_working: tuple = ()
    improvements: tuple = ()
    pulled_quote: str = ""
    buyer_insight: str = ""
    best_practices: tuple = ()

    def as_dict(self) -> dict:
        return {
            "whatWeFound": list(self.what_we_found),
            "whatsWorking": list(self.whats_working),
            "improvements": list(self.improvements),
            "pulledQuote": self.pulled_quote,
            "buyerInsight": self.buyer_insight,
            "bestPractices": [bp.as_dict() for bp in self.best_practices],
        }


@dataclass(frozen=True)
class SectionResult:
    section: NormalizedSection
    screenshot: bytes
    analysis: SectionAnalysis
    extraction_failed: bool = False


@dataclass(frozen=True)
class ReportStats:
    total_sections: int
    successful_sections: int
    failed_section_ids: tuple = ()

    def as_dict(self) -> dict:
        return {
            "totalSections": self.total_sections,
            "successfulSections": self.successful_sections,
            "failedSectionIds": list(self.failed_section_ids),
        }


@dataclass(frozen=True)
class AnalysisReport:
    url: str
    analysis_mode: AnalysisMode
    desktop_image: bytes
    mobile_image: bytes
    sections: tuple
    stats: ReportStats
