import os

import pytest

from quota_probe.workspace_id import absolute_root, expected_workspace_ids, loose_key, normalize


@pytest.mark.parametrize(
    ("path", "platform", "expected"),
    [
        ("V:\\DevSpace\\daisy-box", "windows", "file_v_3A_DevSpace_daisy_box"),
        ("C:\\Users\\User\\Project", "windows", "file_c_3A_Users_User_Project"),
        ("D:\\Data", "windows", "file_d_3A_Data"),
        ("c:\\Users", "windows", "file_c_3A_Users"),
        ("C:\\My-Project", "windows", "file_c_3A_My_Project"),
        ("C:\\My Projects\\app", "windows", "file_c_3A_My_20Projects_app"),
        ("C:/Users/me", "windows", "file_c_3A_Users_me"),
        ("C:/Users\\me/My Projects", "windows", "file_c_3A_Users_me_My_20Projects"),
        ("\\\\server\\share", "windows", "file_server_share"),
        ("/home/user/my-project", "unix", "file_home_user_my_project"),
        ("/home/user/my.project", "unix", "file_home_user_my_project"),
        ("/var/www/html", "unix", "file_var_www_html"),
        ("/Users/bob/open source/project", "unix", "file_Users_bob_open_20source_project"),
        ("/home/user/project/", "unix", "file_home_user_project"),
    ],
)
def test_normalize_matches_server_identifiers(path, platform, expected):
    assert normalize(path, platform) == expected


def test_normalize_is_deterministic():
    assert normalize("/srv/app", "unix") == normalize("/srv/app", "unix")


def test_normalize_rejects_unknown_platform():
    with pytest.raises(ValueError):
        normalize("/tmp", "plan9")


def test_expected_workspace_ids_preserves_order():
    assert expected_workspace_ids(["/home/user/p1", "/home/user/p2"], "unix") == [
        "file_home_user_p1",
        "file_home_user_p2",
    ]
    assert expected_workspace_ids([], "unix") == []


def test_loose_key_ignores_separators_and_case():
    assert loose_key("file_Home_user_my-project") == loose_key("FILE.home.user.myproject")


def test_absolute_root_anchors_relative_paths_at_cwd(tmp_path, monkeypatch):
    project = tmp_path / "proj"
    project.mkdir()
    monkeypatch.chdir(project)

    assert absolute_root(".", "unix") == os.getcwd()
    assert absolute_root("sub", "unix") == os.path.join(os.getcwd(), "sub")


def test_absolute_root_expands_home(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))

    assert absolute_root("~/work", "unix") == str(tmp_path / "work")


def test_absolute_root_keeps_windows_paths_on_any_host():
    assert absolute_root("C:\\Users\\me", "windows") == "C:\\Users\\me"
    assert absolute_root("D:/Data", "windows") == "D:/Data"
