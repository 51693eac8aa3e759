import pytest

from hostspec.system import service


def _script(directory, name, body):
    path = directory / name
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def etc(tmp_path, monkeypatch):
    directory = tmp_path / "etc"
    directory.mkdir()
    monkeypatch.setattr(service, "ETC", str(directory))
    return directory


@pytest.fixture
def bindir(tmp_path, monkeypatch):
    directory = tmp_path / "bin"
    directory.mkdir()
    monkeypatch.setenv("PATH", str(directory))
    return directory


SYSTEMCTL = """case "$2" in
  list-unit-files) echo "sshd.service enabled"; exit 0;;
  is-enabled|is-active) [ "$3" = "sshd" ] && exit 0; exit 3;;
esac
exit 1"""


def test_invalid_service():
    assert service.invalid_service("a/b") is True
    assert service.invalid_service("sshd") is False


@pytest.mark.parametrize(
    "svc",
    [
        service.ServiceInit("a/b", None, None),
        service.ServiceInit("a/b", None, None, alpine=True),
        service.ServiceSystemd("a/b", None, None),
    ],
)
def test_invalid_names_are_never_present(svc):
    assert svc.exists() is False
    assert svc.enabled() is False
    assert svc.running() is False


def test_init_exists(etc):
    (etc / "init.d").mkdir()
    (etc / "init.d" / "foo").write_text("")
    assert service.ServiceInit("foo", None, None).exists() is True
    assert service.ServiceInit("bar", None, None).exists() is False


def test_init_enabled(etc):
    (etc / "rc3.d").mkdir()
    (etc / "rc3.d" / "S20foo").write_text("")
    assert service.init_service_enabled("foo", 3) is True
    assert service.init_service_enabled("bar", 3) is False
    assert service.ServiceInit("foo", None, None).enabled() is True


def test_alpine_enabled(etc):
    (etc / "runlevels" / "sysinit").mkdir(parents=True)
    (etc / "runlevels" / "sysinit" / "foo").write_text("")
    assert service.alpine_init_service_enabled("foo", "sysinit") is True
    assert service.ServiceInit("foo", None, None, alpine=True).enabled() is True
    assert service.ServiceInit("foo", None, None).enabled() is False


def test_init_running(bindir):
    _script(bindir, "service", '[ "$1" = "up" ] && exit 0; exit 3')
    assert service.ServiceInit("up", None, None).running() is True
    assert service.ServiceInit("down", None, None).running() is False


def test_init_running_without_service_command(bindir):
    with pytest.raises(FileNotFoundError):
        service.ServiceInit("foo", None, None).running()


def test_systemd(bindir):
    _script(bindir, "systemctl", SYSTEMCTL)
    sshd = service.ServiceSystemd("sshd", None, None)
    other = service.ServiceSystemd("other", None, None)
    assert sshd.exists() is True
    assert sshd.enabled() is True
    assert sshd.running() is True
    assert other.exists() is False
    assert other.enabled() is False
    assert other.running() is False


def test_systemd_legacy_falls_back_on_sysv(bindir, etc):
    _script(bindir, "systemctl", SYSTEMCTL)
    (etc / "init.d").mkdir()
    (etc / "init.d" / "old").write_text("")
    (etc / "rc3.d").mkdir()
    (etc / "rc3.d" / "S99old").write_text("")
    assert service.ServiceSystemd("old", None, None, legacy=True).exists() is True
    assert service.ServiceSystemd("old", None, None, legacy=True).enabled() is True
    assert service.ServiceSystemd("old", None, None).exists() is False
    assert service.ServiceSystemd("old", None, None).enabled() is False


def test_upstart_exists(etc):
    (etc / "init").mkdir()
    (etc / "init" / "foo.conf").write_text("start on runlevel [2345]\n")
    assert service.ServiceUpstart("foo", None, None).exists() is True
    assert service.ServiceUpstart("bar", None, None).exists() is False


def test_upstart_enabled_from_conf(etc):
    (etc / "init").mkdir()
    (etc / "init" / "foo.conf").write_text("description x\n  start on runlevel [2345]\n")
    assert service.ServiceUpstart("foo", None, None).enabled() is True


def test_upstart_override_manual_disables(etc):
    (etc / "init").mkdir()
    (etc / "init" / "foo.conf").write_text("start on runlevel [2345]\n")
    (etc / "init" / "foo.override").write_text("manual\n")
    assert service.ServiceUpstart("foo", None, None).enabled() is False


def test_upstart_enabled_falls_back_on_sysv(etc):
    (etc / "rc3.d").mkdir()
    (etc / "rc3.d" / "S10foo").write_text("")
    assert service.ServiceUpstart("foo", None, None).enabled() is True
    assert service.ServiceUpstart("bar", None, None).enabled() is False


def test_upstart_running(bindir):
    _script(
        bindir,
        "service",
        'if [ "$1" = "up" ]; then echo "up start/running"; else echo "down stop/waiting"; fi',
    )
    assert service.ServiceUpstart("up", None, None).running() is True
    assert service.ServiceUpstart("down", None, None).running() is False


def test_upstart_running_without_service_command(bindir):
    assert service.ServiceUpstart("foo", None, None).running() is False