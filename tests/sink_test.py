"""
Result sink
"""

import asyncio
import io
import unittest

from domain_survivor.sink import ResultSink
from domain_survivor.status import ScanStats


class FlakyStream(io.StringIO):
    """Fails the first write, then behaves."""

    def __init__(self):
        super().__init__()
        self.failed = False

    def write(self, s):
        if not self.failed:
            self.failed = True
            raise OSError("disk full")
        return super().write(s)


class TestResultSink(unittest.IsolatedAsyncioTestCase):
    async def test_many_producers_one_line_each(self):
        out = io.StringIO()
        sink = ResultSink(out, maxsize=4)
        sink.start()
        domains = [f"d{i}.test" for i in range(100)]
        await asyncio.gather(*(sink.put(d) for d in domains))
        await sink.close()
        lines = out.getvalue().splitlines()
        self.assertEqual(sorted(lines), sorted(domains))
        self.assertEqual(sink.written, 100)
        self.assertTrue(out.getvalue().endswith("\n"))

    async def test_write_failure_is_counted_and_not_retried(self):
        out = FlakyStream()
        stats = ScanStats()
        sink = ResultSink(out, stats)
        sink.start()
        for d in ("a.test", "b.test", "c.test"):
            await sink.put(d)
        await sink.close()
        self.assertEqual(out.getvalue(), "b.test\nc.test\n")
        self.assertEqual(stats.write_errors, 1)

    async def test_close_without_results(self):
        out = io.StringIO()
        sink = ResultSink(out)
        sink.start()
        await sink.close()
        self.assertEqual(out.getvalue(), "")


if __name__ == "__main__":
    unittest.main()
