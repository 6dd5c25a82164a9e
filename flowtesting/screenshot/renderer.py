"""
Renderers that turn a flow view into PNG bytes
PlaywrightRenderer renders HTML views in headless Chromium; PillowRenderer paints images directly
"""

import io
import logging
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from PIL import Image, ImageDraw
from playwright.async_api import async_playwright
from playwright.sync_api import sync_playwright

from flowtesting.flow.models import RenderedView
from flowtesting.screenshot.config import ScreenshotConfig
from flowtesting.snapshot.config import ProposedSize


@runtime_checkable
class Renderer(Protocol):
    """
    Rendering backend contract.

    Returning None means rendering is unavailable for this view or platform;
    the snapshot engine reports that as an "unavailable" snapshot.
    """

    def render(self, view: RenderedView, proposed_size: ProposedSize, scale: float) -> Optional[bytes]:
        ...


class PlaywrightRenderer:
    """Renders HTML view content with headless Chromium"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the renderer

        Args:
            config: Browser settings, defaults to ScreenshotConfig.get_browser_config()
        """
        self.config = config or ScreenshotConfig.get_browser_config()
        self.logger = logging.getLogger(__name__)

    def html_for(self, content: Any) -> Optional[str]:
        """HTML markup for a view: a string, or anything with to_html()"""
        if isinstance(content, str):
            return content
        to_html = getattr(content, 'to_html', None)
        if callable(to_html):
            return to_html()
        return None

    def page_options(self, view: RenderedView, proposed_size: ProposedSize, scale: float) -> Dict[str, Any]:
        """
        Browser page options for a view

        The logical size becomes the viewport and scale the device pixel ratio,
        so the screenshot is width*scale x height*scale pixels.
        """
        environment = view.environment
        options = {
            'viewport': {'width': int(round(proposed_size.width)), 'height': int(round(proposed_size.height))},
            'device_scale_factor': scale,
            'color_scheme': environment.color_scheme,
            'locale': environment.locale,
            'reduced_motion': environment.reduced_motion,
        }
        if environment.timezone_id:
            options['timezone_id'] = environment.timezone_id
        return options

    def render(self, view: RenderedView, proposed_size: ProposedSize, scale: float) -> Optional[bytes]:
        """
        Render a view synchronously

        Returns:
            bytes: PNG screenshot of the viewport, or None if rendering failed
        """
        html = self.html_for(view.content)
        if html is None:
            self.logger.error(f"Cannot render view content of type {type(view.content).__name__}")
            return None

        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(
                    headless=self.config['headless'],
                    args=self.config['browser_args']
                )
                try:
                    page = browser.new_page(**self.page_options(view, proposed_size, scale))
                    page.set_content(html, timeout=self.config['timeout'], wait_until='load')
                    if self.config['settle_delay'] > 0:
                        page.wait_for_timeout(self.config['settle_delay'])
                    return page.screenshot(type='png', timeout=self.config['timeout'])
                finally:
                    browser.close()

        except Exception as e:
            self.logger.error(f"Error rendering view with Playwright: {str(e)}")
            return None

    async def render_async(self, view: RenderedView, proposed_size: ProposedSize, scale: float) -> Optional[bytes]:
        """Render a view with the async Playwright API; same contract as render()"""
        html = self.html_for(view.content)
        if html is None:
            self.logger.error(f"Cannot render view content of type {type(view.content).__name__}")
            return None

        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(
                    headless=self.config['headless'],
                    args=self.config['browser_args']
                )
                try:
                    page = await browser.new_page(**self.page_options(view, proposed_size, scale))
                    await page.set_content(html, timeout=self.config['timeout'], wait_until='load')
                    if self.config['settle_delay'] > 0:
                        await page.wait_for_timeout(self.config['settle_delay'])
                    return await page.screenshot(type='png', timeout=self.config['timeout'])
                finally:
                    await browser.close()

        except Exception as e:
            self.logger.error(f"Error rendering view with Playwright: {str(e)}")
            return None


class PillowRenderer:
    """
    Renders views that are already pixels.

    View content may be a PIL image (encoded as-is) or a painter callable
    ``painter(draw, pixel_size, environment)`` that draws onto a canvas of
    proposed_size * scale pixels, filled with the background for the
    environment's color scheme.
    """

    DEFAULT_BACKGROUNDS = {
        'light': (255, 255, 255, 255),
        'dark': (0, 0, 0, 255),
    }

    def __init__(self, backgrounds: Optional[Dict[str, tuple]] = None):
        self.backgrounds = dict(self.DEFAULT_BACKGROUNDS)
        if backgrounds:
            self.backgrounds.update(backgrounds)
        self.logger = logging.getLogger(__name__)

    def render(self, view: RenderedView, proposed_size: ProposedSize, scale: float) -> Optional[bytes]:
        content = view.content
        if isinstance(content, Image.Image):
            image = content
        elif callable(content):
            pixel_size = proposed_size.to_pixels(scale)
            background = self.backgrounds.get(view.environment.color_scheme, self.backgrounds['light'])
            image = Image.new('RGBA', pixel_size, background)
            content(ImageDraw.Draw(image), pixel_size, view.environment)
        else:
            self.logger.debug(f"PillowRenderer cannot render {type(content).__name__}")
            return None

        buffer = io.BytesIO()
        image.save(buffer, 'PNG')
        return buffer.getvalue()
