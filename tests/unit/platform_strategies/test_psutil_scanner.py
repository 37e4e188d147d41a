from types import SimpleNamespace

import psutil

from quota_probe.platform_strategies import CommandLineParser, PsutilProcessScanner


class _VanishingProcess:
    @property
    def info(self):
        raise psutil.NoSuchProcess(pid=99)


def _proc(pid, ppid, cmdline):
    return SimpleNamespace(info={"pid": pid, "ppid": ppid, "cmdline": cmdline})


def test_scan_collects_token_bearing_processes():
    processes = [
        _proc(1, 0, ["/sbin/init"]),
        _proc(2, 1, ["/opt/ls", "--csrf_token", "abc", "--app_data_dir", "antigravity"]),
        _VanishingProcess(),
        _proc(3, 1, None),
        _proc(4, 1, ["/opt/ls", "--csrf_token", "def", "--app_data_dir", "other"]),
    ]
    scanner = PsutilProcessScanner(CommandLineParser("antigravity"), process_iter=lambda attrs: iter(processes))

    candidates = scanner.scan()

    assert [(c.pid, c.ppid, c.csrf_token) for c in candidates] == [(2, 1, "abc")]


def test_scan_returns_none_when_empty_or_failing():
    parser = CommandLineParser(None)

    assert PsutilProcessScanner(parser, process_iter=lambda attrs: iter([])).scan() is None

    def broken(attrs):
        raise psutil.AccessDenied()

    assert PsutilProcessScanner(parser, process_iter=broken).scan() is None
