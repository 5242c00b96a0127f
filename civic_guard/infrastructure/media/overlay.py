"""
Overlay Compositor
Burns location / GPS / time captions into a still photo or a video frame.

Pure: (frame, captions) -> new frame. No I/O, the input frame is not touched.
"""
from functools import lru_cache
from typing import List, Optional
from datetime import datetime

from PIL import Image, ImageDraw, ImageFont
from pydantic import BaseModel

from ...domain.models import GpsFix

GPS_NOT_FOUND = "GPS Signal not found"

BOX_FILL = (0, 0, 0, 153)  # rgba(0, 0, 0, 0.6)
TEXT_FILL = (255, 255, 255, 255)
FONT_CANDIDATES = ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf")


def location_line(village: str = "", panchayat: str = "", district: str = "") -> str:
    return ", ".join(part for part in (village, panchayat, district) if part)


def gps_line(gps: Optional[GpsFix]) -> str:
    if gps is None:
        return GPS_NOT_FOUND
    return f"Lat: {gps.lat:.6f}, Lng: {gps.lng:.6f} (Acc: {gps.accuracy:.1f}m)"


def format_timestamp(moment: datetime) -> str:
    """en-IN medium date and time, e.g. '5 Mar 2025, 2:07:09 pm'"""
    hour = moment.hour % 12 or 12
    suffix = "am" if moment.hour < 12 else "pm"
    return f"{moment.day} {moment:%b %Y}, {hour}:{moment:%M:%S} {suffix}"


class OverlayCaptions(BaseModel):
    location: str = ""
    gps: str = GPS_NOT_FOUND
    timestamp: str = ""

    @classmethod
    def build(
        cls,
        timestamp: datetime,
        gps: Optional[GpsFix] = None,
        district: str = "",
        panchayat: str = "",
        village: str = "",
    ) -> "OverlayCaptions":
        return cls(
            location=location_line(village, panchayat, district),
            gps=gps_line(gps),
            timestamp=format_timestamp(timestamp),
        )

    def lines(self) -> List[str]:
        lines = [self.location] if self.location else []
        lines.append(self.gps)
        if self.timestamp:
            lines.append(self.timestamp)
        return lines


class OverlayLayout(BaseModel):
    font_size: int
    padding: float
    line_height: float
    x: float
    y: float
    width: float
    height: float


@lru_cache(maxsize=32)
def _font(size: int):
    for name in FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def font_size_for(width: int) -> int:
    return max(14, round(width / 50))


def layout_for(frame_size, lines: List[str], font=None) -> OverlayLayout:
    """Bottom-right box sized to the longest line"""
    width, height = frame_size
    font_size = font_size_for(width)
    font = font or _font(font_size)
    padding = font_size / 2
    line_height = font_size * 1.2

    measure = ImageDraw.Draw(Image.new("RGB", (1, 1)))
    text_width = max(measure.textlength(line, font=font) for line in lines)

    return OverlayLayout(
        font_size=font_size,
        padding=padding,
        line_height=line_height,
        x=width - text_width - padding * 3,
        y=height - line_height * len(lines) - padding * 3,
        width=text_width + padding * 2,
        height=line_height * len(lines) + padding * 2,
    )


def compose_overlay(frame: Image.Image, captions: OverlayCaptions) -> Image.Image:
    lines = captions.lines()
    font = _font(font_size_for(frame.width))
    layout = layout_for(frame.size, lines, font)

    base = frame.convert("RGBA")
    box = Image.new("RGBA", base.size, (0, 0, 0, 0))
    ImageDraw.Draw(box).rectangle(
        [layout.x, layout.y, layout.x + layout.width, layout.y + layout.height],
        fill=BOX_FILL,
    )
    composed = Image.alpha_composite(base, box)

    draw = ImageDraw.Draw(composed)
    text_x = layout.x + layout.padding
    for index, line in enumerate(lines):
        baseline = layout.y + layout.padding + layout.line_height * (index + 1) - layout.line_height / 4
        if isinstance(font, ImageFont.FreeTypeFont):
            draw.text((text_x, baseline), line, font=font, fill=TEXT_FILL, anchor="ls")
        else:
            draw.text((text_x, baseline - layout.font_size), line, font=font, fill=TEXT_FILL)

    return composed.convert("RGB")
