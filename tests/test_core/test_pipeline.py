from __future__ import annotations

import json
from pathlib import Path

import pytest

from takopack.config import TakopackConfig
from takopack.core.lockfile import DependencyGraph, parse_lockfile_string
from takopack.core.pipeline import (
    CrateManifest,
    LockfileManifestReader,
    LockfilePipeline,
    runtime_dependencies,
)
from takopack.exceptions import PackagingError
from takopack.models.dependency import CrateDependency, DependencyKind
from takopack.models.version import Version

REGISTRY = "registry+https://github.com/rust-lang/crates.io-index"

LOCK = f"""
[[package]]
name = "rand"
version = "0.8.5"
source = "{REGISTRY}"
dependencies = ["libc", "rand_core 0.6.4"]

[[package]]
name = "rand_core"
version = "0.6.4"
source = "{REGISTRY}"

[[package]]
name = "rand_core"
version = "0.5.1"
source = "{REGISTRY}"

[[package]]
name = "libc"
version = "0.2.158"
source = "{REGISTRY}"
"""


@pytest.fixture
def graph() -> DependencyGraph:
    return parse_lockfile_string(LOCK)


@pytest.fixture
def pipeline(graph: DependencyGraph) -> LockfilePipeline:
    return LockfilePipeline(graph, TakopackConfig(epoch_marker=False))


@pytest.mark.unit
class TestRuntimeDependencies:
    """Tests for runtime dependency filtering."""

    def test_filters_non_runtime(self) -> None:
        deps = [
            CrateDependency("libc", "0.2"),
            CrateDependency("cc", "1", kind=DependencyKind.BUILD),
            CrateDependency("proptest", "1", kind=DependencyKind.DEV),
            CrateDependency("serde_derive", "1"),
            CrateDependency("pin-project-macros", "1"),
            CrateDependency("compiler_builtins", "0.1"),
            CrateDependency("rustc-std-workspace-core", "1"),
            CrateDependency("serde", "1", optional=True),
            CrateDependency("rand", "0.8"),
            CrateDependency("log", "*"),
            CrateDependency("libc", "0.2.100"),
        ]

        assert runtime_dependencies("rand", deps) == [
            ("libc", "0.2"),
            ("log", None),
        ]


@pytest.mark.unit
class TestLockfileManifestReader:
    """Tests for LockfileManifestReader."""

    def test_pinned_dependencies_become_base_deps(
        self, graph: DependencyGraph
    ) -> None:
        manifest = LockfileManifestReader(graph).read_manifest(
            "rand", Version.parse("0.8.5")
        )

        assert [d.req for d in manifest.dependencies] == ["=0.2.158", "=0.6.4"]
        assert list(manifest.features) == [""]

    def test_unknown_package(self, graph: DependencyGraph) -> None:
        with pytest.raises(PackagingError):
            LockfileManifestReader(graph).read_manifest("rand", Version.parse("1.0.0"))


@pytest.mark.unit
class TestResolveVersion:
    """Tests for LockfilePipeline.resolve_version."""

    @pytest.mark.parametrize(
        "requested,expected",
        [
            (None, "0.6.4"),
            ("latest", "0.6.4"),
            ("0.5.1", "0.5.1"),
            ("^0.5", "0.5.1"),
            ("=0.6.4", "0.6.4"),
            (">=0.5, <1", "0.6.4"),
        ],
    )
    def test_resolution(
        self, pipeline: LockfilePipeline, requested: str, expected: str
    ) -> None:
        assert str(pipeline.resolve_version("rand_core", requested)) == expected

    @pytest.mark.parametrize("requested", ["0.7.0", "^0.9", "~>1"])
    def test_unresolvable(self, pipeline: LockfilePipeline, requested: str) -> None:
        with pytest.raises(PackagingError) as exc_info:
            pipeline.resolve_version("rand_core", requested)

        assert exc_info.value.crate_name == "rand_core"

    def test_unknown_crate(self, pipeline: LockfilePipeline) -> None:
        with pytest.raises(PackagingError, match="not found"):
            pipeline.resolve_version("tokio", None)

    @pytest.mark.parametrize(
        "requested,expected",
        [
            ("=0.26.0-beta.1", "0.26.0-beta.1"),
            ("0.26.0-beta.1", "0.26.0-beta.1"),
            ("=0.26.0", "0.26.0"),
            ("^0.26", "0.26.0"),
            (None, "0.26.0"),
        ],
    )
    def test_prerelease_kept_apart_from_release(
        self, requested: str, expected: str
    ) -> None:
        """Test a pre-release request never resolves to the release."""
        lock = f"""
[[package]]
name = "foo"
version = "0.26.0-beta.1"
source = "{REGISTRY}"

[[package]]
name = "foo"
version = "0.26.0"
source = "{REGISTRY}"
"""
        pipeline = LockfilePipeline(parse_lockfile_string(lock), TakopackConfig())

        assert str(pipeline.resolve_version("foo", requested)) == expected


@pytest.mark.unit
class TestLockfilePipelinePackage:
    """Tests for LockfilePipeline.package."""

    def test_writes_descriptor_json(
        self, pipeline: LockfilePipeline, tmp_path: Path
    ) -> None:
        result = pipeline.package("rand", None, tmp_path)

        expected = tmp_path / "rust-rand-0.8" / "rust-rand.json"
        assert result.output_path == expected
        document = json.loads(expected.read_text())
        assert document["crate"] == "rand"
        assert document["version"] == "0.8.5"
        assert document["packages"][0]["name"] == "rust-rand"
        assert (
            "rust-libc-0.2-default (>= 0.2.158)" in document["packages"][0]["depends"]
        )

    def test_reports_pinned_dependencies(
        self, pipeline: LockfilePipeline, tmp_path: Path
    ) -> None:
        result = pipeline.package("rand", "0.8.5", tmp_path)

        assert result.real_name == "rand"
        assert result.version == "0.8.5"
        assert result.dependencies == [("libc", "=0.2.158"), ("rand_core", "=0.6.4")]

    def test_custom_manifest_reader(self, graph: DependencyGraph, tmp_path: Path) -> None:
        """Test feature graphs from a manifest reader are packaged."""

        class Reader:
            def read_manifest(self, name: str, version: Version) -> CrateManifest:
                std = CrateDependency("libc", "0.2", default_features=False)
                return CrateManifest(
                    name=name,
                    version=version,
                    features={"": ([], []), "std": ([], [std]), "default": (["std"], [])},
                    dependencies=[std],
                )

        pipeline = LockfilePipeline(
            graph, TakopackConfig(testing=True), manifests=Reader()
        )

        result = pipeline.package("rand", None, tmp_path)

        assert [p.name for p in result.packages] == ["ruzt-rand", "ruzt-rand-std"]
        assert result.output_path == tmp_path / "ruzt-rand-0.8" / "ruzt-rand.json"
        assert result.dependencies == [("libc", "=0.2.158")]
