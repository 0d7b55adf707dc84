"""
Unit tests for the Playwright page wrapper.

A stand-in page object raises Playwright's own error types, so no browser
is launched.
"""

import unittest

from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from browser_session import PlaywrightPageSession


class StubPage:
    def __init__(self, error=None, html="<html></html>"):
        self.error = error
        self.html = html
        self.url = "https://clutch.co/developers/blockchain?page=1"

    async def goto(self, url, wait_until=None, timeout=None):
        if self.error:
            raise self.error

    async def wait_for_selector(self, selector, timeout=None):
        if self.error:
            raise self.error

    async def content(self):
        if self.error:
            raise self.error
        return self.html


class TestPlaywrightPageSession(unittest.IsolatedAsyncioTestCase):

    async def test_content(self):
        session = PlaywrightPageSession(StubPage(html="<p>rows</p>"))
        self.assertEqual(await session.content(), "<p>rows</p>")

    async def test_content_error_is_logged(self):
        error = PlaywrightError("Unable to retrieve content because the page is navigating")
        session = PlaywrightPageSession(StubPage(error=error))

        with self.assertLogs('browser_session', level='ERROR'):
            self.assertIsNone(await session.content())

    async def test_goto_failures(self):
        for error in (PlaywrightTimeoutError("Timeout 60000ms exceeded"), PlaywrightError("net::ERR_ABORTED")):
            session = PlaywrightPageSession(StubPage(error=error))
            with self.assertLogs('browser_session', level='ERROR'):
                self.assertFalse(await session.goto("https://clutch.co/x", 1000))

    async def test_wait_for_selector_timeout(self):
        session = PlaywrightPageSession(StubPage(error=PlaywrightTimeoutError("Timeout 15000ms exceeded")))
        self.assertFalse(await session.wait_for_selector(".provider-row", 1000))


if __name__ == '__main__':
    unittest.main()
