"""Tests for the bgharness pytest plugin, run in a child pytest."""

from __future__ import annotations

import sys

import pytest

CONFTEST = """
pytest_plugins = ["bgharness.pytest_plugin"]
"""


@pytest.fixture
def suite(pytester: pytest.Pytester) -> pytest.Pytester:
    pytester.makeconftest(CONFTEST)
    pytester.makeini("[pytest]\nasyncio_mode = strict\n")
    return pytester


class TestRequiresMarker:
    """Tests for ``@pytest.mark.requires``."""

    def test_skips_when_missing(self, suite: pytest.Pytester) -> None:
        suite.makepyfile(
            """
            import pytest

            @pytest.mark.requires("bgharness-no-such-tool")
            def test_needs_tool():
                raise AssertionError("should have been skipped")
            """
        )
        result = suite.runpytest_subprocess("-rs")
        result.assert_outcomes(skipped=1)
        result.stdout.fnmatch_lines(["*required utilities not found: bgharness-no-such-tool*"])

    def test_runs_when_present(self, suite: pytest.Pytester) -> None:
        suite.makepyfile(
            f"""
            import pytest

            @pytest.mark.requires({sys.executable!r})
            def test_needs_python():
                pass
            """
        )
        result = suite.runpytest_subprocess()
        result.assert_outcomes(passed=1)


class TestFixtures:
    """Tests for the ``harness_config`` and ``background`` fixtures."""

    def test_harness_config_rooted_at_tmp_path(self, suite: pytest.Pytester) -> None:
        suite.makepyfile(
            """
            def test_root(harness_config, tmp_path):
                assert harness_config.resolve_root() == tmp_path
            """
        )
        result = suite.runpytest_subprocess()
        result.assert_outcomes(passed=1)

    @pytest.mark.timeout(60)
    def test_background_fixture(self, suite: pytest.Pytester) -> None:
        suite.makepyfile(
            f"""
            import pytest

            PYTHON = {sys.executable!r}
            CODE = "print('ready', flush=True)\\nimport time\\ntime.sleep(30)"

            @pytest.mark.asyncio
            async def test_launch_and_wait(background):
                handle = await background.launch(PYTHON, "-c", CODE)
                assert await background.wait_for_output("ready", timeout=10)
                result = await background.stop("KILL")
                assert result.exit_status == 137
                assert result.lines == ["ready"]
                assert not handle.capture_path.exists()

            @pytest.mark.asyncio
            async def test_leftover_process_is_stopped(background):
                await background.launch(PYTHON, "-c", CODE)
                assert await background.wait_for_output("ready", timeout=10)
            """
        )
        result = suite.runpytest_subprocess()
        result.assert_outcomes(passed=2)
