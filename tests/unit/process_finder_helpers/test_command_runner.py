import asyncio
import re
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from quota_probe.errors import CommandError, CommandTimeoutError
from quota_probe.platform_strategies.types import CommandSpec
from quota_probe.process_finder_helpers.command_runner import CommandRunner, WarmupState

SPAWN = "quota_probe.process_finder_helpers.command_runner.asyncio.create_subprocess_exec"


def _process(stdout=b"", stderr=b"", returncode=0, hang=False):
    proc = MagicMock()
    proc.pid = 4321
    proc.returncode = returncode
    if hang:

        async def _communicate():
            await asyncio.sleep(10)

        proc.communicate = _communicate
    else:
        proc.communicate = AsyncMock(return_value=(stdout, stderr))
    proc.wait = AsyncMock(return_value=returncode)
    proc.kill = MagicMock()
    return proc


@pytest.mark.asyncio
async def test_run_filters_lines_and_passes_argv_without_shell():
    proc = _process(stdout=b"keep me\ndrop me\nkeep too\n")
    spec = CommandSpec(argv=("ps", "-A"), line_filter=re.compile("keep"), env={"EXTRA": "1"})

    with patch(SPAWN, AsyncMock(return_value=proc)) as spawn:
        output = await CommandRunner().run(spec)

    assert output.stdout == "keep me\nkeep too"
    args, kwargs = spawn.call_args
    assert args == ("ps", "-A")
    assert kwargs["env"]["EXTRA"] == "1"


@pytest.mark.asyncio
async def test_unexpected_exit_status_raises_command_error():
    proc = _process(stderr=b"boom", returncode=2)

    with patch(SPAWN, AsyncMock(return_value=proc)):
        with pytest.raises(CommandError) as excinfo:
            await CommandRunner().run(CommandSpec(argv=("lsof",)))

    assert excinfo.value.returncode == 2
    assert excinfo.value.stderr == "boom"


@pytest.mark.asyncio
async def test_accepted_nonzero_exit_status():
    proc = _process(returncode=1)

    with patch(SPAWN, AsyncMock(return_value=proc)):
        output = await CommandRunner().run(CommandSpec(argv=("lsof",), ok_returncodes=(0, 1)))

    assert output.returncode == 1
    assert output.stdout == ""


@pytest.mark.asyncio
async def test_missing_program_raises_command_error():
    with patch(SPAWN, AsyncMock(side_effect=FileNotFoundError("no such file"))):
        with pytest.raises(CommandError, match="failed to start"):
            await CommandRunner().run(CommandSpec(argv=("nope",)))


@pytest.mark.asyncio
async def test_timeout_kills_process():
    proc = _process(hang=True)

    with patch(SPAWN, AsyncMock(return_value=proc)):
        with pytest.raises(CommandTimeoutError):
            await CommandRunner(default_timeout=0.01).run(CommandSpec(argv=("powershell",)))

    proc.kill.assert_called_once()


@pytest.mark.asyncio
async def test_warmup_retries_first_timeout_once_with_longer_budget():
    sleep = AsyncMock()
    runner = CommandRunner(sleep=sleep)
    ok = MagicMock(stdout="[]")
    runner.run = AsyncMock(side_effect=[CommandTimeoutError(("powershell",), timeout=3.0), ok])
    warmup = WarmupState()

    result = await runner.run_with_warmup(CommandSpec(argv=("powershell",)), warmup)

    assert result is ok
    assert warmup.retried
    sleep.assert_awaited_once_with(3.0)
    assert runner.run.await_args_list[1].kwargs == {"timeout": 5.0}


@pytest.mark.asyncio
async def test_warmup_is_spent_after_first_use():
    runner = CommandRunner(sleep=AsyncMock())
    runner.run = AsyncMock(side_effect=CommandTimeoutError(("powershell",), timeout=3.0))
    warmup = WarmupState(retried=True)

    with pytest.raises(CommandTimeoutError):
        await runner.run_with_warmup(CommandSpec(argv=("powershell",)), warmup)

    assert runner.run.await_count == 1
