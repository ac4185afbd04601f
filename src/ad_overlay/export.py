from __future__ import annotations

import csv
import io
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from loguru import logger

from ad_overlay.assembly.fonts import FontSet
from ad_overlay.assembly.render import render_feed_image, render_story_image
from ad_overlay.blocks import Slide, Variation
from ad_overlay.config import settings
from ad_overlay.models import TextBlock


@dataclass(frozen=True)
class RenderedSlide:
    slide_number: int
    feed_png: bytes
    story_png: bytes


@dataclass(frozen=True)
class RenderedVariation:
    variation: Variation
    feed_png: bytes | None = None
    story_png: bytes | None = None
    slides: list[RenderedSlide] = field(default_factory=list)

    @property
    def prefix(self) -> str:
        return f"variation_{self.variation.number}"


def render_variants(image_bytes: bytes, blocks: list[TextBlock], fonts: FontSet | None = None) -> tuple[bytes, bytes]:
    """
    Render the feed and story crops of one creative.
    The two renders share nothing but the font backend, so they run side by side.
    """
    with ThreadPoolExecutor(max_workers=2) as pool:
        feed = pool.submit(render_feed_image, image_bytes, blocks, fonts)
        story = pool.submit(render_story_image, image_bytes, blocks, fonts)
        return feed.result(), story.result()


def _slide_image(images: list[bytes], slide: Slide) -> bytes:
    # Out-of-range indexes use the last uploaded image.
    return images[min(slide.image_index, len(images) - 1)]


def render_variation(images: bytes | list[bytes], variation: Variation, fonts: FontSet | None = None) -> RenderedVariation:
    if isinstance(images, (bytes, bytearray)):
        images = [bytes(images)]
    if not images:
        raise ValueError("at least one image is required")

    if not variation.is_carousel:
        feed_png, story_png = render_variants(images[0], variation.text_blocks, fonts=fonts)
        return RenderedVariation(variation=variation, feed_png=feed_png, story_png=story_png)

    slides: list[RenderedSlide] = []
    for slide in variation.slides:
        feed_png, story_png = render_variants(_slide_image(images, slide), slide.text_blocks, fonts=fonts)
        slides.append(RenderedSlide(slide_number=slide.slide_number, feed_png=feed_png, story_png=story_png))
    return RenderedVariation(variation=variation, slides=slides)


def render_variations(
    images: bytes | list[bytes],
    variations: list[Variation],
    fonts: FontSet | None = None,
    max_workers: int | None = None,
) -> list[RenderedVariation]:
    """Render every variation on a worker pool; results keep the input order."""
    if not variations:
        return []
    workers = max(1, min(max_workers or settings.export_workers, len(variations)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(render_variation, images, v, fonts) for v in variations]
        return [f.result() for f in futures]


def build_copy_csv(rendered: list[RenderedVariation]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(["Filename", "Ad Caption", "Headline", "Hook Type"])
    for rv in rendered:
        v = rv.variation
        writer.writerow([rv.prefix, v.ad_caption, v.ad_headline, v.hook_type])
    return buf.getvalue()


def build_export_zip(rendered: list[RenderedVariation]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for rv in rendered:
            if rv.feed_png is not None:
                zf.writestr(f"{rv.prefix}_feed.png", rv.feed_png)
            if rv.story_png is not None:
                zf.writestr(f"{rv.prefix}_story.png", rv.story_png)
            for slide in rv.slides:
                zf.writestr(f"{rv.prefix}_slide{slide.slide_number}_feed.png", slide.feed_png)
                zf.writestr(f"{rv.prefix}_slide{slide.slide_number}_story.png", slide.story_png)
        zf.writestr("copy.csv", build_copy_csv(rendered))
    logger.info(f"Built export zip with {len(rendered)} variation(s)")
    return buf.getvalue()
