import asyncio
import functools
import logging

import fixtures
import testtools


def asynctest(async_fn):
    """Run an async test method to completion on a fresh event loop."""
    @functools.wraps(async_fn)
    def async_runner(self):
        return asyncio.run(async_fn(self))

    return async_runner


class TestCase(testtools.TestCase):
    def setUp(self):
        super(TestCase, self).setUp()
        self.logger = self.useFixture(fixtures.FakeLogger(
            level=logging.DEBUG,
            format='%(levelname)s %(name)s %(message)s',
        ))
