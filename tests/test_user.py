import grp
import os
import pwd

import pytest

from hostspec.system.user import User, lookup_user_groups

MISSING = "no_such_user_hostspec"


@pytest.fixture
def current():
    return pwd.getpwuid(os.getuid())


def test_current_user_attributes(current):
    u = User(current.pw_name, None, None)
    assert u.exists() is True
    assert u.uid() == current.pw_uid
    assert u.gid() == current.pw_gid
    assert u.home() == current.pw_dir
    assert u.shell() == current.pw_shell


def test_missing_user():
    u = User(MISSING, None, None)
    assert u.exists() is False
    with pytest.raises(LookupError):
        u.uid()
    with pytest.raises(LookupError):
        u.gid()
    with pytest.raises(LookupError):
        u.home()
    with pytest.raises(LookupError):
        u.shell()
    with pytest.raises(LookupError):
        u.groups()


def test_groups_sorted_and_belong(current):
    groups = User(current.pw_name, None, None).groups()
    assert groups == sorted(groups)
    for name in groups:
        g = grp.getgrnam(name)
        assert g.gr_gid == current.pw_gid or current.pw_name in g.gr_mem


def test_root_primary_group_included():
    root = pwd.getpwnam("root")
    primary = grp.getgrgid(root.pw_gid).gr_name
    assert primary in lookup_user_groups("root", root.pw_gid)
    assert primary in User("root", None, None).groups()


def test_lookup_user_groups_membership():
    root = pwd.getpwnam("root")
    names = lookup_user_groups("root", root.pw_gid)
    expected = {
        g.gr_name for g in grp.getgrall() if g.gr_gid == root.pw_gid or "root" in g.gr_mem
    }
    assert set(names) == expected