"""
Navigation and capture stages.

Each browser step goes through the retry executor and degrades instead of
failing: navigation reports False, captures return empty bytes.
"""

from pagelens.config import get_settings
from pagelens.models import PixelClip
from pagelens.retry import RetryFailed, constant_backoff, execute, linear_backoff


async def navigate(session, url: str, settings=None) -> bool:
    """
    Load `url`, retrying with a constant delay. Returns False when every
    attempt failed; the caller carries on with whatever the page shows.
    """
    settings = settings or get_settings()

    async def _goto():
        await session.navigate(url, wait_until=settings.navigation_wait_until,
                               timeout=settings.navigation_timeout)

    result = await execute(
        _goto,
        max_attempts=settings.navigation_attempts,
        backoff=constant_backoff(settings.navigation_retry_delay),
        label="navigate",
    )
    if isinstance(result, RetryFailed):
        print(f"  [navigate] {url} did not load ({result.reason}) - continuing with current page state")
        return False

    # Liveness check only
    try:
        title = await session.title()
        print(f"  [navigate] Loaded {url} - title={title!r}")
    except Exception as e:
        print(f"  [navigate] Loaded {url} but title read failed: {e}")
    return True


async def _capture(session, label: str, settings, **kwargs) -> bytes:
    result = await execute(
        lambda: session.screenshot(**kwargs),
        max_attempts=settings.capture_attempts,
        backoff=linear_backoff(settings.capture_backoff_unit),
        label=label,
    )
    if isinstance(result, RetryFailed):
        print(f"  [{label}] Capture failed after {result.attempts} attempts: {result.reason}")
        return b""
    return result


async def capture_desktop(session, settings=None) -> bytes:
    """Full-page capture at the desktop viewport."""
    settings = settings or get_settings()
    return await _capture(session, "capture-desktop", settings, full_page=True)


async def capture_mobile(session, settings=None) -> bytes:
    """Switch to a touch-enabled mobile viewport and capture above the fold."""
    settings = settings or get_settings()
    try:
        await session.set_viewport(
            settings.mobile_viewport_width,
            settings.mobile_viewport_height,
            is_mobile=True,
            has_touch=True,
        )
        await session.settle(settings.mobile_settle_delay)
    except Exception as e:
        print(f"  [capture-mobile] Viewport switch failed: {e}")
        return b""
    return await _capture(session, "capture-mobile", settings, full_page=False)


async def restore_desktop(session, settings=None) -> bool:
    """Back to the desktop layout the section percentages were measured on."""
    settings = settings or get_settings()
    try:
        await session.set_viewport(
            settings.desktop_viewport_width,
            settings.desktop_viewport_height,
            is_mobile=False,
            has_touch=False,
        )
        await session.settle(settings.mobile_settle_delay)
        return True
    except Exception as e:
        print(f"  [capture] Desktop viewport restore failed: {e}")
        return False


async def capture_section(session, clip: PixelClip, settings=None) -> bytes:
    settings = settings or get_settings()
    return await _capture(session, "capture-section", settings, clip=clip)
