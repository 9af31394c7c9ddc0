"""ReleaseManager 测试：快照解析、创建/更新、恢复"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from gitover.core.exceptions import BatchError, PreconditionError, ValidationError
from gitover.core.models import ReleaseEntry, VersionChange
from gitover.services.release_service import format_release, parse_release

MAIN_HEAD = "ref: refs/heads/main\tHEAD\n"


class TestParse:
    def test_entries_in_order(self) -> None:
        content = "# pinned for 2.3\napp *\n\nlib v1.0\nutil   abc1234\n"
        assert parse_release(content) == [
            ReleaseEntry("app", "*"),
            ReleaseEntry("lib", "v1.0"),
            ReleaseEntry("util", "abc1234"),
        ]

    @pytest.mark.parametrize("content", ["lib\n", "lib v1 extra\n", ".lib v1\n"])
    def test_malformed(self, content: str) -> None:
        with pytest.raises(ValidationError, match="快照格式错误"):
            parse_release(content, "r.release")

    def test_duplicate_repo(self) -> None:
        with pytest.raises(ValidationError, match="重复"):
            parse_release("lib v1\nlib v2\n")

    def test_format(self) -> None:
        entries = [ReleaseEntry("app", "*"), ReleaseEntry("lib", "v1.0")]
        assert format_release(entries) == "app *\nlib v1.0\n"


@pytest.fixture()
def overlay(container, make_cloned, fake_git):
    """三个已克隆仓库：app（承载快照）、lib（位于 tag）、util（tag 之后的提交）"""
    make_cloned("app")
    make_cloned("lib")
    make_cloned("util")
    fake_git.on("describe", repo="lib", stdout="v1.0-0-gdeadbee\n")
    fake_git.on("describe", repo="util", stdout="v0.9-4-gabc1234\n")
    return container


class TestResolve:
    def test_name_maps_to_releases_dir(self, container) -> None:
        path = container.releases.resolve("r1", must_exist=False)
        assert path == container.config.meta_root / "r1.release"

    def test_explicit_existing_path(self, container, tmp_path: Path) -> None:
        path = tmp_path / "pinned.release"
        path.write_text("lib v1\n", encoding="utf-8")
        assert container.releases.resolve(str(path)) == path
        assert container.releases.show(str(path)) == "lib v1\n"

    def test_missing(self, container) -> None:
        with pytest.raises(PreconditionError, match="快照不存在"):
            container.releases.show("r1")

    def test_invalid_name(self, container) -> None:
        with pytest.raises(ValidationError):
            container.releases.resolve("../r1")


class TestUpdate:
    def test_create_from_cloned(self, overlay, fake_git) -> None:
        changes = overlay.releases.update("r1", carrier="app")
        assert changes == []
        assert overlay.releases.show("r1") == "app *\nlib v1.0\nutil abc1234\n"
        assert fake_git.commands("app") == []
        assert overlay.releases.list_releases() == ["r1"]

    def test_create_without_carrier(self, overlay, fake_git) -> None:
        fake_git.on("describe", repo="app", stdout="v3.0-0-g0000000\n")
        overlay.releases.update("r1")
        assert overlay.releases.show("r1") == "app v3.0\nlib v1.0\nutil abc1234\n"

    def test_create_at_explicit_path(self, overlay, tmp_path: Path) -> None:
        fake = tmp_path / "out" / "pinned.release"
        fake.parent.mkdir()
        overlay.releases.update(str(fake), carrier="app")
        assert fake.read_text(encoding="utf-8").startswith("app *\n")

    def test_unknown_carrier(self, overlay) -> None:
        with pytest.raises(PreconditionError):
            overlay.releases.update("r1", carrier="ghost")

    def test_update_reports_changes_and_keeps_order(
        self, overlay, fake_git, caplog: pytest.LogCaptureFixture,
    ) -> None:
        path = overlay.config.meta_root / "r1.release"
        path.write_text("util abc1234\napp *\nlib v0.9\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            changes = overlay.releases.update("r1")

        assert changes == [VersionChange("lib", "v0.9", "v1.0")]
        assert path.read_text(encoding="utf-8") == "util abc1234\napp *\nlib v1.0\n"
        assert "lib: v0.9 -> v1.0" in caplog.text
        assert fake_git.commands("app") == []

    def test_update_twice_is_stable(self, overlay) -> None:
        path = overlay.config.meta_root / "r1.release"
        path.write_text("util abc1234\napp *\nlib v0.9\n", encoding="utf-8")

        overlay.releases.update("r1")
        first = path.read_bytes()
        assert overlay.releases.update("r1") == []
        assert path.read_bytes() == first

    def test_update_tag_mode(self, overlay, fake_git) -> None:
        path = overlay.config.meta_root / "r1.release"
        path.write_text("util abc1234\n", encoding="utf-8")
        fake_git.on("describe", "--tags", "--abbrev=0", repo="util", stdout="v0.9\n")
        changes = overlay.releases.update("r1", tag_mode=True)
        assert changes == [VersionChange("util", "abc1234", "v0.9")]

    def test_update_repo_not_cloned(self, overlay) -> None:
        (overlay.config.meta_root / "r1.release").write_text("ghost v1\n", encoding="utf-8")
        with pytest.raises(PreconditionError, match="未克隆"):
            overlay.releases.update("r1")

    def test_requires_meta_root(self, container) -> None:
        with pytest.raises(PreconditionError):
            container.releases.update("r1")


class TestReconcile:
    @pytest.fixture()
    def pinned(self, container, make_cloned, fake_git, touch, work_root: Path):
        make_cloned("app", ["release.txt"])
        make_cloned("lib", origin="https://example.com/lib.git")
        make_cloned("extra", ["extra.txt"])
        touch(work_root, "extra.txt")
        container.registry.set_origin("util", "https://example.com/util.git")
        (container.config.meta_root / "r1.release").write_text(
            "app *\nlib v1.0\nutil v2.0\n", encoding="utf-8",
        )
        fake_git.on("ls-remote", stdout=MAIN_HEAD)
        fake_git.on("rev-parse", stdout="3f2a9c1\n")
        return container

    def test_clone_reconciles(self, pinned, fake_git, work_root: Path) -> None:
        results = pinned.releases.clone("r1")

        assert [(r.name, r.status) for r in results] == [("lib", "unchanged"), ("util", "cloned")]
        assert pinned.store.cloned() == ["app", "lib", "util"]
        assert not (work_root / "extra.txt").exists()
        assert fake_git.commands("app") == []
        assert fake_git.commands("util")[-1] == ["checkout", "-q", "v2.0"]

    def test_second_clone_is_noop(self, pinned, fake_git) -> None:
        pinned.releases.clone("r1")
        before = len(fake_git.commands())

        results = pinned.releases.clone("r1")

        assert [r.status for r in results] == ["unchanged", "unchanged"]
        later = [args[0] for _, args in fake_git.calls[before:]]
        assert "fetch" not in later
        assert "checkout" not in later

    def test_failure_aborts_without_rollback(self, pinned, fake_git) -> None:
        fake_git.on("fetch", repo="util", rc=128, stderr="fatal: not found")
        with pytest.raises(BatchError) as exc:
            pinned.releases.clone("r1", jobs=2)
        assert exc.value.failed == ["util"]
        assert not pinned.store.is_cloned("extra")
        assert not pinned.store.is_cloned("util")

    def test_missing_release(self, pinned) -> None:
        with pytest.raises(PreconditionError):
            pinned.releases.clone("r2")


def test_remove(container, make_cloned) -> None:
    make_cloned("app")
    path = container.config.meta_root / "r1.release"
    path.write_text("app *\n", encoding="utf-8")
    assert container.releases.remove("r1") == path
    assert not path.exists()
    assert container.releases.list_releases() == []
