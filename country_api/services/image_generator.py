import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

import PIL
from PIL import Image, ImageDraw, ImageFont

from country_api.config import settings
from country_api.errors import ArtifactWriteFailed

logger = logging.getLogger("country_api.image")

IMAGE_NAME = "summary.png"
W, H = 800, 600
MAX_ROWS = 5


def get_summary_image_path() -> Path:
    return Path(settings.CACHE_DIR) / IMAGE_NAME


def summary_image_exists() -> bool:
    return get_summary_image_path().is_file()


def format_gdp(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return f"${float(value):,.2f}"


def format_timestamp(ts: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2025-10-22T18:04:05.123Z."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _text(draw: ImageDraw.ImageDraw, xy, text: str, fill=(255, 255, 255), font=None, anchor=None):
    draw.text(xy, text, fill=fill, font=font, anchor=anchor)


def _right_text(draw: ImageDraw.ImageDraw, x_right: int, y: int, text: str, fill=(255, 255, 255), font=None):
    bbox = draw.textbbox((0, 0), text, font=font)
    _text(draw, (x_right - (bbox[2] - bbox[0]), y), text, fill=fill, font=font)


def _centered_text(draw: ImageDraw.ImageDraw, y: int, text: str, fill=(255, 255, 255), font=None):
    bbox = draw.textbbox((0, 0), text, font=font)
    _text(draw, ((W - (bbox[2] - bbox[0])) // 2, y), text, fill=fill, font=font)


def _resolve_font_path(font_filename: str) -> Optional[Path]:
    base = Path(PIL.__file__).parent
    for p in (base / font_filename, base / "fonts" / font_filename, base.parent / font_filename):
        if p.exists():
            return p
    return None


def _load_font(name: str, size: int):
    p = _resolve_font_path(name)
    if p is not None:
        try:
            return ImageFont.truetype(str(p), size)
        except OSError:
            logger.debug("Could not load font %s", p)
    return ImageFont.load_default()


def render_summary_image(total: int, top_countries: Sequence, refreshed_at: datetime) -> Image.Image:
    """Draw the summary card.

    ``top_countries`` holds objects with ``name`` and ``estimated_gdp``
    attributes, already ordered; only the first five are drawn.
    """
    bg = (26, 26, 46)
    fg = (255, 255, 255)
    accent = (22, 199, 132)
    rank_color = (255, 215, 0)
    muted = (142, 142, 147)
    grid = (52, 52, 80)

    img = Image.new("RGB", (W, H), color=bg)
    draw = ImageDraw.Draw(img)

    font_title = _load_font("DejaVuSans-Bold.ttf", 32)
    font_total = _load_font("DejaVuSans-Bold.ttf", 24)
    font_header = _load_font("DejaVuSans-Bold.ttf", 20)
    font_cell = _load_font("DejaVuSans.ttf", 18)
    font_meta = _load_font("DejaVuSans.ttf", 16)

    _centered_text(draw, 40, "Country Summary Report", fill=fg, font=font_title)
    _centered_text(draw, 100, f"Total Countries: {total}", fill=accent, font=font_total)
    _text(draw, (50, 160), "Top 5 Countries by Estimated GDP:", fill=fg, font=font_header)

    rows = list(top_countries)[:MAX_ROWS]
    y = 205
    if not rows:
        _text(draw, (80, y), "No GDP data available.", fill=muted, font=font_cell)
    for i, c in enumerate(rows, start=1):
        _text(draw, (50, y), f"{i}.", fill=rank_color, font=font_cell)
        _text(draw, (90, y), getattr(c, "name", None) or "-", fill=fg, font=font_cell)
        _right_text(draw, W - 50, y, format_gdp(getattr(c, "estimated_gdp", None)), fill=accent, font=font_cell)
        draw.line([50, y + 30, W - 50, y + 30], fill=grid, width=1)
        y += 44

    _centered_text(draw, H - 60, f"Last Refreshed: {format_timestamp(refreshed_at)}", fill=muted, font=font_meta)
    return img


def generate_summary_image(
    total: int,
    top_countries: Sequence,
    refreshed_at: datetime,
    path: Optional[Path] = None,
) -> Path:
    """Render and write the summary PNG, replacing any previous one."""
    target = Path(path) if path is not None else get_summary_image_path()
    tmp = target.with_name(target.name + ".tmp")
    try:
        img = render_summary_image(total, top_countries, refreshed_at)
        os.makedirs(target.parent, exist_ok=True)
        img.save(tmp, format="PNG")
        os.replace(tmp, target)
    except (OSError, ValueError) as e:
        logger.error("Failed to write summary image to %s: %s", target, e)
        try:
            tmp.unlink(missing_ok=True)
        except OSError:
            logger.debug("Could not remove temp image %s", tmp)
        raise ArtifactWriteFailed(target, str(e)) from e

    logger.info("Summary image written to %s (%d countries, %d ranked)", target, total, min(len(top_countries), MAX_ROWS))
    return target
