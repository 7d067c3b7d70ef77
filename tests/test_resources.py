"""Tests for the public keys resource."""

import pytest

from sshgate.exceptions import SshGateError
from sshgate.resources import list_public_keys, public_keys_text


@pytest.fixture
def ssh_dir(fake_home):
    directory = fake_home / ".ssh"
    directory.mkdir()
    (directory / "id_ed25519").write_text("private")
    (directory / "id_ed25519.pub").write_text("ssh-ed25519 AAAA")
    (directory / "deploy.pub").write_text("ssh-rsa AAAA")
    (directory / "known_hosts").write_text("")
    (directory / "old.pub").mkdir()
    return directory


class TestPublicKeys:
    def test_lists_pub_files_only(self, ssh_dir):
        assert list_public_keys() == ["deploy.pub", "id_ed25519.pub"]

    def test_comma_separated(self, ssh_dir):
        assert public_keys_text() == "deploy.pub,id_ed25519.pub"

    def test_explicit_directory(self, tmp_path):
        (tmp_path / "a.pub").write_text("")
        assert list_public_keys(tmp_path) == ["a.pub"]

    def test_empty_directory(self, tmp_path):
        assert public_keys_text(tmp_path) == ""

    def test_missing_directory(self, fake_home):
        with pytest.raises(SshGateError, match="Failed to read directory"):
            list_public_keys()
