import io
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import requests
from PIL import Image, ImageDraw, ImageFont
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..common.schemas import GenerationMeta, Slide
from ..core.config import settings
from ..core.log import log_event
from .carousel import CarouselState
from .poller import ClientError

CANVAS_SIZE = 1080
BACKGROUND = "#0f172a"
OVERLAY_ALPHA = 0.35
TEXT_X = 80
MAX_TEXT_WIDTH = 920
JPEG_QUALITY = 92
DEFAULT_CREATOR = "Carousel Studio"

Background = Union[str, Tuple[str, str]]
ImageLoader = Callable[[str], Optional[Image.Image]]


class ExportError(ClientError):
    pass


@dataclass(frozen=True)
class TextBlock:
    field: str
    size: int
    bold: bool
    y: int
    line_height: int
    color: str


TEXT_BLOCKS = (
    TextBlock("headline", 54, True, 150, 64, "#ffffff"),
    TextBlock("body", 36, False, 320, 48, "#ffffff"),
    TextBlock("cta", 32, True, 940, 44, "#a5b4fc"),
)


def load_font(size: int, bold: bool = False, font_path: Optional[str] = None):
    candidates = [font_path] if font_path else []
    candidates.append("DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf")
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def wrap_lines(text: str, measure: Callable[[str], float], max_width: float) -> List[str]:
    """Greedy word wrap: keep adding words until the next one would overflow.

    The first word always stays on the first line, even if it is too wide.
    """
    words = text.split(" ")
    lines: List[str] = []
    line = ""
    for i, word in enumerate(words):
        test_line = f"{line}{word} "
        if measure(test_line) > max_width and i > 0:
            lines.append(line.rstrip(" "))
            line = f"{word} "
        else:
            line = test_line
    lines.append(line.rstrip(" "))
    return lines


def load_image(url: str, timeout: float = 15) -> Optional[Image.Image]:
    """Fetch an overlay image from a URL or a local path; None on any failure."""
    try:
        if url.startswith(("http://", "https://")):
            r = requests.get(url, timeout=timeout)
            r.raise_for_status()
            img = Image.open(io.BytesIO(r.content))
        else:
            img = Image.open(url)
        return img.convert("RGB")
    except (requests.RequestException, OSError, ValueError) as e:
        log_event("export.image.unavailable", url=url, error=str(e))
        return None


def _background(fill: Background) -> Image.Image:
    size = (CANVAS_SIZE, CANVAS_SIZE)
    if isinstance(fill, str):
        return Image.new("RGB", size, fill)
    top, bottom = fill
    mask = Image.linear_gradient("L").resize(size)
    return Image.composite(Image.new("RGB", size, bottom), Image.new("RGB", size, top), mask)


def build_slide_image(slide: Slide, *, background: Background = BACKGROUND,
                      font_path: Optional[str] = None,
                      image_loader: ImageLoader = load_image) -> Image.Image:
    img = _background(background)

    overlay = image_loader(slide.imageUrl) if slide.imageUrl else None
    if overlay is not None:
        overlay = overlay.convert("RGB").resize(img.size)
        img = Image.blend(img, overlay, OVERLAY_ALPHA)

    draw = ImageDraw.Draw(img)
    for block in TEXT_BLOCKS:
        font = load_font(block.size, block.bold, font_path)
        text = getattr(slide, block.field)
        lines = wrap_lines(text, lambda s: draw.textlength(s, font=font), MAX_TEXT_WIDTH)
        y = block.y
        for line in lines:
            # y is the baseline, like canvas fillText
            draw.text((TEXT_X, y), line, font=font, fill=block.color, anchor="ls")
            y += block.line_height
    return img


def render_png(slide: Slide, **kwargs) -> bytes:
    buf = io.BytesIO()
    build_slide_image(slide, **kwargs).save(buf, format="PNG")
    return buf.getvalue()


def _na(value: Optional[str]) -> str:
    return value or "n/a"


def build_pdf(slides: Sequence[Slide], meta: Optional[GenerationMeta], **kwargs) -> bytes:
    """One JPEG page per slide on a square page, rendered one slide at a time."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(CANVAS_SIZE, CANVAS_SIZE))

    topic = meta.topic if meta else ""
    c.setTitle(f"{topic or 'AI Carousel'} Carousel")
    c.setSubject(
        f"Tone: {_na(meta.tone if meta else None)}; "
        f"Style: {_na(meta.imageStyle if meta else None)}; "
        f"Version: {_na(meta.version if meta else None)}"
    )
    c.setAuthor((meta.author if meta else None) or settings.APP_AUTHOR)
    c.setKeywords(f"carousel,ai,{topic}")
    c.setCreator(DEFAULT_CREATOR)

    for slide in slides:
        page = io.BytesIO()
        build_slide_image(slide, **kwargs).save(page, format="JPEG", quality=JPEG_QUALITY)
        page.seek(0)
        c.drawImage(ImageReader(page), 0, 0, CANVAS_SIZE, CANVAS_SIZE)
        c.showPage()
    c.save()
    return buf.getvalue()


def _write(out_dir: Optional[Path], filename: str, data: bytes) -> Path:
    out_dir = Path(out_dir) if out_dir is not None else settings.EXPORT_DIR
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / filename
    path.write_bytes(data)
    return path


def export_selected_png(state: CarouselState, out_dir: Optional[Path] = None, **kwargs) -> Path:
    slide = state.selected
    if slide is None:
        state.set_status("Select a slide first.", True)
        raise ExportError("Select a slide first.")

    path = _write(out_dir, f"{slide.id}.png", render_png(slide, **kwargs))
    state.set_status("Selected slide exported as PNG.")
    log_event("export.png", slide_id=slide.id, path=str(path))
    return path


def export_pdf(state: CarouselState, out_dir: Optional[Path] = None, **kwargs) -> Path:
    if not state.slides:
        state.set_status("Generate slides first.", True)
        raise ExportError("Generate slides first.")

    data = build_pdf(state.slides, state.meta, **kwargs)
    path = _write(out_dir, f"carousel-{int(time.time() * 1000)}.pdf", data)
    state.set_status("Carousel exported as PDF.")
    log_event("export.pdf", pages=len(state.slides), path=str(path), size_bytes=len(data))
    return path
