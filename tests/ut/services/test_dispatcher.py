"""MultiRepoDispatcher 测试：目标选择、隔离执行、版本计算"""

from __future__ import annotations

import pytest

from gitover.core.exceptions import PreconditionError, ValidationError
from gitover.services.dispatch import parse_describe


@pytest.mark.parametrize(
    ("described", "expected"),
    [
        ("v1.2-0-gabc1234", "v1.2"),
        ("v1.2-3-gabc1234", "abc1234"),
        ("release-2024-01-0-g9f8e7d6", "release-2024-01"),
        ("abc1234", "abc1234"),
    ],
)
def test_parse_describe(described: str, expected: str) -> None:
    assert parse_describe(described) == expected


class TestSelect:
    def test_all(self, container, make_cloned) -> None:
        make_cloned("beta")
        make_cloned("alpha")
        assert container.dispatcher.select("all") == ["alpha", "beta"]

    def test_comma_list(self, container, make_cloned) -> None:
        make_cloned("alpha")
        make_cloned("beta")
        assert container.dispatcher.select("beta, alpha") == ["beta", "alpha"]

    def test_not_cloned(self, container, make_cloned) -> None:
        make_cloned("alpha")
        with pytest.raises(PreconditionError, match="未克隆"):
            container.dispatcher.select("alpha,gamma")

    @pytest.mark.parametrize("targets", [",", "a b"])
    def test_invalid(self, container, make_cloned, targets: str) -> None:
        make_cloned("alpha")
        with pytest.raises(ValidationError):
            container.dispatcher.select(targets)

    def test_missing_meta_root(self, container) -> None:
        with pytest.raises(PreconditionError):
            container.dispatcher.select("all")


class TestRun:
    def test_requires_args(self, container, make_cloned) -> None:
        make_cloned("alpha")
        with pytest.raises(ValidationError):
            container.dispatcher.run("all", [])

    def test_isolated_failures(self, container, make_cloned, fake_git) -> None:
        for name in ("alpha", "beta", "gamma"):
            make_cloned(name)
        fake_git.on("log", stdout="3f2a9c1 init\n")
        fake_git.on("log", repo="beta", rc=128, stderr="fatal: bad revision")

        results = container.dispatcher.run("all", ["log", "--oneline", "-1"], jobs=3)

        assert [r.name for r in results] == ["alpha", "beta", "gamma"]
        assert [r.success for r in results] == [True, False, True]
        assert results[0].stdout == "3f2a9c1 init\n"
        assert "bad revision" in results[1].stderr
        assert ["log", "--oneline", "-1"] in fake_git.commands("gamma")


class TestVersions:
    def test_exact_tag(self, container, make_cloned, fake_git) -> None:
        make_cloned("alpha")
        fake_git.on("describe", stdout="v1.2-0-gabc1234\n")
        assert container.dispatcher.current_version("alpha") == "v1.2"
        assert fake_git.commands("alpha")[-1] == ["describe", "--tags", "--long", "--always"]

    def test_untagged_commit(self, container, make_cloned, fake_git) -> None:
        make_cloned("alpha")
        fake_git.on("describe", stdout="v1.2-5-gabc1234\n")
        assert container.dispatcher.current_version("alpha") == "abc1234"

    def test_tag_mode(self, container, make_cloned, fake_git) -> None:
        make_cloned("alpha")
        fake_git.on("describe", "--tags", "--abbrev=0", stdout="v1.1\n")
        assert container.dispatcher.current_version("alpha", tag_mode=True) == "v1.1"

    def test_tag_mode_falls_back(
        self, container, make_cloned, fake_git, caplog: pytest.LogCaptureFixture,
    ) -> None:
        make_cloned("alpha")
        fake_git.on("describe", "--tags", "--abbrev=0", rc=128, stderr="fatal: No names found")
        fake_git.on("describe", "--tags", "--long", stdout="abc1234\n")
        assert container.dispatcher.current_version("alpha", tag_mode=True) == "abc1234"
        assert "无可达 tag" in caplog.text

    def test_no_commits(self, container, make_cloned, fake_git) -> None:
        make_cloned("alpha")
        fake_git.on("describe", rc=128)
        with pytest.raises(PreconditionError, match="没有任何提交"):
            container.dispatcher.current_version("alpha")

    def test_not_cloned(self, container) -> None:
        with pytest.raises(PreconditionError):
            container.dispatcher.current_version("alpha")

    def test_versions_all_and_exclude(self, container, make_cloned, fake_git) -> None:
        make_cloned("alpha")
        make_cloned("beta")
        make_cloned("carrier")
        fake_git.on("describe", repo="alpha", stdout="v1.0-0-g1111111\n")
        fake_git.on("describe", repo="beta", stdout="2222222\n")
        assert container.dispatcher.versions(exclude=["carrier"]) == [
            ("alpha", "v1.0"), ("beta", "2222222"),
        ]
        assert fake_git.commands("carrier") == []
