"""
Configuration settings for rendering flow views with Playwright
"""

import os
from typing import Dict, Any


class ScreenshotConfig:
    """Configuration class for browser rendering settings"""

    @staticmethod
    def get_browser_config() -> Dict[str, Any]:
        """
        Get browser configuration settings

        Returns:
            Dict with browser settings
        """
        return {
            'headless': os.getenv('FLOW_SCREENSHOT_HEADLESS', 'true').lower() == 'true',
            'timeout': int(os.getenv('FLOW_SCREENSHOT_TIMEOUT', '30000')),  # 30 seconds
            'settle_delay': int(os.getenv('FLOW_SCREENSHOT_SETTLE_DELAY', '0')),  # ms after set_content
            'browser_args': [
                '--no-sandbox',
                '--disable-setuid-sandbox',
                '--disable-dev-shm-usage',
                '--disable-accelerated-2d-canvas',
                '--no-first-run',
                '--no-zygote',
                '--disable-gpu',
                '--font-render-hinting=none',
            ]
        }
