"""
Per-section analysis - clip the section out of the page, then ask the oracle
what works and what doesn't.

Any failure is absorbed here:
- clip capture fails   -> extraction_failed=True, failure analysis, no oracle call
- oracle fails/garbage -> default analysis of the same shape
- partial reply        -> missing fields filled from the default analysis
"""

from pagelens.capture import capture_section
from pagelens.categories import emphasis_for
from pagelens.config import get_settings
from pagelens.models import AnalysisMode, BestPractice, SectionAnalysis, SectionResult
from pagelens.parsing import ParseFailure, parse
from pagelens.retry import RetryFailed, execute, linear_backoff


SUMMARY_PROMPT = """This screenshot shows the "{section_type}" section of a web page ({description}).

Give a FAST, short review. Output ONLY this JSON object:
{{
  "whatWeFound": ["at most 2 short observations"],
  "whatsWorking": ["1 thing that works"],
  "improvements": ["1 concrete improvement"],
  "pulledQuote": "the most important line of copy, quoted exactly",
  "buyerInsight": "one sentence on how a buyer would react to this section"
}}"""


DETAILED_PROMPT = """This screenshot shows the "{section_type}" section of a web page ({description}).

Audit it for clarity, persuasion and conversion. Output ONLY this JSON object:
{{
  "whatWeFound": ["2 or more specific observations about content and layout"],
  "whatsWorking": ["exactly 3 strengths"],
  "improvements": ["exactly 3 concrete, actionable improvements"],
  "pulledQuote": "the key line of copy, quoted exactly",
  "buyerInsight": "one or two sentences from the buyer's point of view",
  "bestPractices": [
    {{"company": "a real company known for this kind of section", "description": "what they do well"}},
    {{"company": "another real company", "description": "what they do well"}}
  ]
}}

{emphasis}"""


def default_analysis(section_type: str) -> SectionAnalysis:
    """Stand-in used when the oracle could not be reached or understood."""
    return SectionAnalysis(
        what_we_found=(f"{section_type} section was captured but could not be analyzed automatically.",),
        whats_working=("Section is present and rendered on the page.",),
        improvements=("Re-run the analysis or review this section manually.",),
        pulled_quote="No quote extracted",
        buyer_insight="No buyer insight available for this section.",
        best_practices=(),
    )


def failure_analysis(section_type: str) -> SectionAnalysis:
    """Stand-in for a section whose screenshot could not be taken."""
    return SectionAnalysis(
        what_we_found=(f"{section_type} section could not be extracted from the page.",),
        whats_working=("Analysis unavailable: screenshot extraction failed.",),
        improvements=("Check that this part of the page renders without errors, then re-run.",),
        pulled_quote="Extraction failed",
        buyer_insight="Extraction failed, so buyer impact could not be assessed.",
        best_practices=(),
    )


def _string_list(value) -> tuple:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return ()
    return tuple(str(v).strip() for v in value if isinstance(v, (str, int, float)) and not isinstance(v, bool) and str(v).strip())


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _best_practices(value) -> tuple:
    if not isinstance(value, list):
        return ()
    practices = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        company = _text(entry.get("company"))
        description = _text(entry.get("description"))
        if company or description:
            practices.append(BestPractice(company=company, description=description))
    return tuple(practices)


def coerce_analysis(value: dict, fallback: SectionAnalysis) -> SectionAnalysis:
    """Build a SectionAnalysis from a decoded reply, field by field."""
    return SectionAnalysis(
        what_we_found=_string_list(value.get("whatWeFound")) or fallback.what_we_found,
        whats_working=_string_list(value.get("whatsWorking")) or fallback.whats_working,
        improvements=_string_list(value.get("improvements")) or fallback.improvements,
        pulled_quote=_text(value.get("pulledQuote")) or fallback.pulled_quote,
        buyer_insight=_text(value.get("buyerInsight")) or fallback.buyer_insight,
        best_practices=_best_practices(value.get("bestPractices")) or fallback.best_practices,
    )


def build_prompt(section_type: str, description: str, mode: AnalysisMode) -> str:
    description = description or "no description"
    if mode == AnalysisMode.DETAILED:
        return DETAILED_PROMPT.format(
            section_type=section_type,
            description=description,
            emphasis=emphasis_for(section_type),
        )
    return SUMMARY_PROMPT.format(section_type=section_type, description=description)


def failed_result(section) -> SectionResult:
    return SectionResult(
        section=section,
        screenshot=b"",
        analysis=failure_analysis(section.type),
        extraction_failed=True,
    )


async def analyze_screenshot(oracle, section, screenshot: bytes, mode: AnalysisMode,
                             settings=None) -> SectionResult:
    """Oracle half of the stage, for a section whose clip was captured."""
    settings = settings or get_settings()
    fallback = default_analysis(section.type)

    reply = await execute(
        lambda: oracle.complete(build_prompt(section.type, section.description, mode), screenshot),
        max_attempts=settings.oracle_max_attempts,
        backoff=linear_backoff(settings.oracle_backoff_unit),
        label="analyze",
    )

    if isinstance(reply, RetryFailed):
        print(f"  [analyze] {section.type}: oracle unavailable ({reply.reason}) - default analysis")
        analysis = fallback
    else:
        value = parse(reply, expect=dict)
        if isinstance(value, ParseFailure):
            print(f"  [analyze] {section.type}: reply unparsable ({value.reason}) - default analysis")
            analysis = fallback
        else:
            analysis = coerce_analysis(value, fallback)

    return SectionResult(section=section, screenshot=screenshot, analysis=analysis, extraction_failed=False)


async def analyze_section(session, oracle, section, mode: AnalysisMode, settings=None) -> SectionResult:
    settings = settings or get_settings()

    screenshot = await capture_section(session, section.clip, settings=settings)
    if not screenshot:
        print(f"  [analyze] {section.type}: extraction failed - skipping oracle")
        return failed_result(section)

    return await analyze_screenshot(oracle, section, screenshot, mode, settings=settings)
