"""Screenshot optimization - compress before sending to the oracle."""
from PIL import Image
import io
import base64


def optimize_screenshot(screenshot_bytes: bytes, max_width: int = 1280, max_height: int = 7800,
                        quality: int = 75) -> bytes:
    """
    Resize and compress a screenshot for API consumption.
    Scales uniformly, so percentage coordinates the oracle reads off the
    smaller image still map onto the original page.
    """
    img = Image.open(io.BytesIO(screenshot_bytes))

    # Shrink to fit both bounds
    w, h = img.size
    ratio = min(1.0, max_width / w, max_height / h)
    if ratio < 1.0:
        img = img.resize((max(1, int(w * ratio)), max(1, int(h * ratio))), Image.LANCZOS)

    # Convert RGBA to RGB (JPEG doesn't support alpha)
    if img.mode == 'RGBA':
        bg = Image.new('RGB', img.size, (255, 255, 255))
        bg.paste(img, mask=img.split()[3])
        img = bg
    elif img.mode != 'RGB':
        img = img.convert('RGB')

    buf = io.BytesIO()
    img.save(buf, format='JPEG', quality=quality, optimize=True)
    return buf.getvalue()


def screenshot_to_b64(screenshot_bytes: bytes, compress: bool = True,
                      max_width: int = 1280, max_height: int = 7800,
                      quality: int = 75) -> tuple[str, str]:
    """
    Convert screenshot bytes to base64 string.
    Returns (base64_string, media_type).
    """
    if compress:
        optimized = optimize_screenshot(screenshot_bytes, max_width=max_width,
                                        max_height=max_height, quality=quality)
        return base64.b64encode(optimized).decode(), "image/jpeg"
    else:
        return base64.b64encode(screenshot_bytes).decode(), "image/png"


def image_size(screenshot_bytes: bytes) -> tuple[int, int]:
    """(width, height) of an encoded image."""
    with Image.open(io.BytesIO(screenshot_bytes)) as img:
        return img.size
