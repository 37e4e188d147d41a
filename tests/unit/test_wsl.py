from quota_probe.wsl import get_wsl_host_ip, is_wsl


def _raise_os_error():
    raise OSError("missing")


def test_is_wsl_detects_microsoft_kernel():
    assert is_wsl("linux", lambda: "Linux version 5.15.90.1-microsoft-standard-WSL2")
    assert not is_wsl("linux", lambda: "Linux version 6.5.0-generic")


def test_is_wsl_false_off_linux_and_on_read_error():
    assert not is_wsl("darwin", lambda: "microsoft")
    assert not is_wsl("linux", _raise_os_error)


def test_host_ip_from_nat_resolv_conf():
    contents = "# generated by WSL\nnameserver 172.22.80.1\nsearch lan\n"
    assert get_wsl_host_ip(lambda: contents) == "172.22.80.1"


def test_host_ip_ignores_mirrored_mode_resolver():
    assert get_wsl_host_ip(lambda: "nameserver 10.255.255.254\n") is None


def test_host_ip_ignores_loopback_and_missing_file():
    assert get_wsl_host_ip(lambda: "nameserver 127.0.0.53\n") is None
    assert get_wsl_host_ip(lambda: "search lan\n") is None
    assert get_wsl_host_ip(_raise_os_error) is None
