"""End-to-end pipeline tests against the fake browser and oracle."""

import pytest

from conftest import FakeOracle, FakeSession, make_open_browser, png_bytes
from pagelens.models import AnalysisMode, PageDimensions
from pagelens.pipeline import run_analysis
from pagelens.segmentation import default_sections


async def run(session, oracle, settings, mode=AnalysisMode.SUMMARY, events=None):
    async def on_event(event_type, data):
        if events is not None:
            events.append((event_type, data))

    return await run_analysis(
        "https://example.com",
        mode,
        oracle=oracle,
        open_browser=make_open_browser(session),
        settings=settings,
        on_event=on_event,
    )


class TestRunAnalysis:

    @pytest.mark.asyncio
    async def test_summary_end_to_end(self, session, oracle, settings):
        report = await run(session, oracle, settings)

        assert [r.section.type for r in report.sections] == ["Navigation", "Hero Section", "Testimonials", "Footer"]
        assert report.stats.total_sections == len(report.sections) == 4
        assert report.stats.successful_sections == 4
        assert report.stats.failed_section_ids == ()
        assert report.desktop_image == b"desktop-png"
        assert report.mobile_image == b"mobile-png"
        assert report.analysis_mode == AnalysisMode.SUMMARY
        assert session.closed is True

    @pytest.mark.asyncio
    async def test_stage_order_on_the_page(self, session, oracle, settings):
        await run(session, oracle, settings)
        kinds = [c[0] for c in session.calls]

        assert kinds.index("navigate") < kinds.index("desktop-shot") < kinds.index("mobile-shot")
        # Desktop layout restored before any section is clipped
        viewports = session.named("viewport")
        assert viewports[-1] == ("viewport", 1280, 900, False, False)
        last_viewport = max(i for i, c in enumerate(session.calls) if c[0] == "viewport")
        assert last_viewport < kinds.index("clip")

    @pytest.mark.asyncio
    async def test_clips_use_page_dimensions(self, oracle, settings):
        session = FakeSession(dims=PageDimensions(width=1000, height=5000))
        report = await run(session, oracle, settings)

        hero = next(r for r in report.sections if r.section.type == "Hero Section")
        assert hero.section.clip.y == 250
        assert hero.section.clip.height == 1250
        assert hero.section.clip.width == 1000

    @pytest.mark.asyncio
    async def test_every_clip_fails(self, oracle, settings):
        session = FakeSession(fail_clips=True)
        report = await run(session, oracle, settings)

        assert report.stats.total_sections == 4
        assert report.stats.successful_sections == 0
        assert report.stats.failed_section_ids == ("navigation", "hero-section", "testimonials", "footer")
        for r in report.sections:
            assert r.extraction_failed is True
            assert r.screenshot == b""
            assert r.analysis.what_we_found and r.analysis.buyer_insight
        assert oracle.analysis_calls == []

    @pytest.mark.asyncio
    async def test_failed_sections_sorted_last(self, oracle, settings):
        # The first clip (Navigation) fails all three attempts, the rest succeed
        session = FakeSession(clip_failures=3)
        report = await run(session, oracle, settings)

        assert [r.section.type for r in report.sections] == ["Hero Section", "Testimonials", "Footer", "Navigation"]
        assert report.stats.failed_section_ids == ("navigation",)

    @pytest.mark.asyncio
    async def test_navigation_failure_still_produces_report(self, oracle, settings):
        session = FakeSession(nav_failures=10)
        events = []
        report = await run(session, oracle, settings, events=events)

        assert report.stats.total_sections == 4
        assert any(e[0] == "warning" for e in events)

    @pytest.mark.asyncio
    async def test_oracle_down_everywhere(self, session, settings):
        oracle = FakeOracle(fail_segment=True, fail_analysis=True)
        report = await run(session, oracle, settings)

        assert [r.section.type for r in report.sections] == [c.type for c in default_sections()]
        assert report.stats.successful_sections == len(default_sections())
        for r in report.sections:
            assert r.analysis.pulled_quote == "No quote extracted"

    @pytest.mark.asyncio
    async def test_desktop_capture_failure_falls_back_to_default_sections(self, oracle, settings):
        session = FakeSession(desktop_failures=10)
        report = await run(session, oracle, settings)

        assert report.desktop_image == b""
        assert [r.section.type for r in report.sections] == [c.type for c in default_sections()]

    @pytest.mark.asyncio
    async def test_dimension_probe_failure_uses_screenshot_size(self, oracle, settings):
        class ImageSession(FakeSession):
            async def screenshot(self, full_page=False, clip=None):
                if clip is None and not self.mobile:
                    self.calls.append(("desktop-shot", full_page))
                    return png_bytes(800, 3000)
                return await super().screenshot(full_page=full_page, clip=clip)

        session = ImageSession(fail_dims=True)
        report = await run(session, oracle, settings)

        footer = next(r for r in report.sections if r.section.type == "Footer")
        assert footer.section.clip.y == 2700
        assert footer.section.clip.width == 800

    @pytest.mark.asyncio
    async def test_detailed_mode_prompts(self, session, oracle, settings):
        await run(session, oracle, settings, mode=AnalysisMode.DETAILED)
        prompts = [c[0] for c in oracle.analysis_calls]
        assert len(prompts) == 4
        assert all("bestPractices" in p for p in prompts)

    @pytest.mark.asyncio
    async def test_progress_events(self, session, oracle, settings):
        events = []
        await run(session, oracle, settings, events=events)

        steps = [d["step"] for t, d in events if t == "step"]
        assert steps == ["navigating", "capturing", "segmenting", "analyzing"]
        section_events = [d for t, d in events if t == "section"]
        assert [d["index"] for d in section_events] == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_overlapped_oracle_calls_keep_order(self, oracle, settings):
        settings.analysis_concurrency = 3
        session = FakeSession(clip_failures=3)
        report = await run(session, oracle, settings)

        assert [r.section.type for r in report.sections] == ["Hero Section", "Testimonials", "Footer", "Navigation"]
        assert report.stats.successful_sections == 3
        assert len(oracle.analysis_calls) == 3

    @pytest.mark.asyncio
    async def test_session_closed_on_unexpected_error(self, session, oracle, settings, monkeypatch):
        async def boom(*args, **kwargs):
            raise RuntimeError("bug")

        monkeypatch.setattr("pagelens.pipeline.identify_sections", boom)

        with pytest.raises(RuntimeError):
            await run(session, oracle, settings)
        assert session.closed is True

    @pytest.mark.asyncio
    async def test_oversized_percentages_do_not_abort(self, session, settings):
        reply = ('[{"type": "Hero", "coordinates": {"top": 1' + "0" * 400
                 + ', "right": 100, "bottom": 20, "left": 0}, "description": "x"}]')
        report = await run(session, FakeOracle(segment_reply=reply), settings)

        assert report.stats.total_sections == 1
        assert report.sections[0].section.clip.y == 400
        assert report.sections[0].section.clip.height == 1600
