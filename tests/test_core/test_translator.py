from __future__ import annotations

from typing import List
from unittest.mock import patch

import pytest

from takopack.config import TakopackConfig
from takopack.core.translator import (
    dependency_clauses,
    package_base_name,
    translate_dependencies,
    translate_dependency,
)
from takopack.exceptions import ConstraintError, UnrepresentableConstraintError
from takopack.models.dependency import CrateDependency
from takopack.models.version import Version


@pytest.fixture
def config() -> TakopackConfig:
    """Configuration without the epoch marker, for readable clauses."""
    return TakopackConfig(epoch_marker=False)


@pytest.mark.unit
class TestPackageBaseName:
    """Tests for package_base_name."""

    def test_normalizes_crate_name(self, config: TakopackConfig) -> None:
        assert package_base_name("serde_json", config) == "rust-serde-json"

    def test_testing_prefix(self) -> None:
        assert package_base_name("log", TakopackConfig(testing=True)) == "ruzt-log"


@pytest.mark.unit
class TestTranslateDependency:
    """Tests for translate_dependency."""

    def test_default_features(self, config: TakopackConfig) -> None:
        """Test default features translate against the default package."""
        result = translate_dependency(CrateDependency("serde", "^1.0.100"), config)

        assert len(result) == 1
        assert result[0].crate_name == "serde"
        assert result[0].feature == "default"
        assert result[0].version_range == ">= 1.0.100, << 2"
        assert result[0].clauses == ["rust-serde-1-default (>= 1.0.100)"]

    def test_no_default_features(self, config: TakopackConfig) -> None:
        """Test a dependency without features targets the bare crate."""
        dep = CrateDependency("rand", "0.8", default_features=False)

        result = translate_dependency(dep, config)

        assert [r.feature for r in result] == [None]
        assert result[0].clauses == ["rust-rand-0.8"]

    def test_one_entry_per_feature(self, config: TakopackConfig) -> None:
        """Test requested features are added after default, normalized."""
        dep = CrateDependency("serde", "1", features=("derive", "std_alloc"))

        result = translate_dependency(dep, config)

        assert [r.feature for r in result] == ["default", "derive", "std-alloc"]
        assert result[1].clauses == ["rust-serde-1-derive"]

    def test_any_version(self, config: TakopackConfig) -> None:
        result = translate_dependency(CrateDependency("log"), config)

        assert result[0].clauses == ["rust-log-default"]
        assert result[0].version_range is None

    def test_epoch_marker(self) -> None:
        """Test the marker is appended to every printed bound."""
        result = translate_dependency(
            CrateDependency("serde", "^1.0.100"), TakopackConfig()
        )

        assert result[0].clauses == ["rust-serde-1-default (>= 1.0.100-~~)"]

    def test_pin_overrides_requirement(self, config: TakopackConfig) -> None:
        """Test a lockfile pin produces an exact patch-level range."""
        dep = CrateDependency("serde", "^1", default_features=False)

        result = translate_dependency(dep, config, pin=Version.parse("1.0.210"))

        assert result[0].clauses == [
            "rust-serde-1.0 (>= 1.0.210)",
            "rust-serde-1.0 (<< 1.0.211)",
        ]

    @pytest.mark.parametrize(
        "requirement,clauses",
        [
            ("<1.0.0-beta.2", ["rust-foo-default (<< 1.0.0-beta.2)"]),
            ("<=1.0.0-beta.2", ["rust-foo-default (<< 1.0.1-beta.2)"]),
            (">1.0.0-beta.2", ["rust-foo-default (>= 1.0.1-beta.2)"]),
            (">=1.0.0-beta.2", ["rust-foo-default (>= 1.0.0-beta.2)"]),
            (
                "=0.26.0-beta.1",
                [
                    "rust-foo-0.26-default (>= 0.26.0-beta.1)",
                    "rust-foo-0.26-default (<< 0.26.1-beta.1)",
                ],
            ),
            ("^1.0.0-beta.2", ["rust-foo-1-default (>= 1.0.0-beta.2)"]),
            ("^0.26.0-beta.1", ["rust-foo-0.26-default (>= 0.26.0-beta.1)"]),
            (
                "^0.0.3-alpha",
                [
                    "rust-foo-0.0-default (>= 0.0.3-alpha)",
                    "rust-foo-0.0-default (<< 0.0.4-alpha)",
                ],
            ),
            (
                "~1.2.3-rc.1",
                [
                    "rust-foo-1-default (>= 1.2.3-rc.1)",
                    "rust-foo-1-default (<< 1.3)",
                ],
            ),
        ],
    )
    def test_prerelease_keeps_operator(
        self, config: TakopackConfig, requirement: str, clauses: List[str]
    ) -> None:
        """Test pre-release comparators keep their interval and full version."""
        result = translate_dependency(CrateDependency("foo", requirement), config)

        assert result[0].clauses == clauses

    def test_prerelease_warns(self, config: TakopackConfig) -> None:
        with patch("takopack.core.translator.logger") as mock_logger:
            result = translate_dependency(
                CrateDependency("windows", "=0.59.0-rc.1"), config
            )

        mock_logger.warning.assert_called_once()
        assert result[0].version_range == ">= 0.59.0-rc.1, << 0.59.1-rc.1"

    def test_prerelease_pin_keeps_tag(self) -> None:
        """Test a pre-release lockfile pin is rendered with its tag."""
        dep = CrateDependency("foo", "^0.26", default_features=False)

        result = translate_dependency(
            dep, TakopackConfig(), pin=Version.parse("0.26.0-beta.1")
        )

        assert result[0].clauses == [
            "rust-foo-0.26 (>= 0.26.0-beta.1-~~)",
            "rust-foo-0.26 (<< 0.26.1-beta.1-~~)",
        ]

    def test_invalid_requirement_names_crate(self, config: TakopackConfig) -> None:
        with pytest.raises(ConstraintError) as exc_info:
            translate_dependency(CrateDependency("foo", "~>1.0"), config)

        assert exc_info.value.crate_name == "foo"
        assert exc_info.value.requirement == "~>1.0"

    def test_unrepresentable_requirement(self, config: TakopackConfig) -> None:
        with pytest.raises(UnrepresentableConstraintError):
            translate_dependency(CrateDependency("foo", "<0"), config)


@pytest.mark.unit
class TestTranslateDependencies:
    """Tests for translate_dependencies and dependency_clauses."""

    def test_merges_duplicate_crates(self, config: TakopackConfig) -> None:
        """Test a crate declared twice keeps both clauses under one key."""
        deps = [
            CrateDependency("winapi", "^0.3", default_features=False),
            CrateDependency("winapi", "^0.3.9", default_features=False),
        ]

        result = translate_dependencies(deps, config)

        assert len(result) == 1
        assert result[0].clauses == ["rust-winapi-0.3", "rust-winapi-0.3 (>= 0.3.9)"]
        assert result[0].version_range == ">= 0.3, << 0.4; >= 0.3.9, << 0.4"

    def test_sorted_by_crate_and_feature(self, config: TakopackConfig) -> None:
        deps = [CrateDependency("zstd", "0.13"), CrateDependency("anyhow", "1")]

        result = translate_dependencies(deps, config)

        assert [r.crate_name for r in result] == ["anyhow", "zstd"]

    def test_pins_found_by_normalized_name(self, config: TakopackConfig) -> None:
        dep = CrateDependency("serde_json", "1", default_features=False)

        result = translate_dependencies(
            [dep], config, pins={"serde-json": Version.parse("1.0.128")}
        )

        assert result[0].clauses[0] == "rust-serde-json-1.0 (>= 1.0.128)"

    def test_dependency_clauses_flatten(self, config: TakopackConfig) -> None:
        deps = [
            CrateDependency("log", "0.4", default_features=False),
            CrateDependency("cfg-if", "1", default_features=False),
        ]

        clauses = dependency_clauses(translate_dependencies(deps, config))

        assert clauses == ["rust-cfg-if-1", "rust-log-0.4"]
