import json
import os

import pytest

from codelaunch.packages.build import TARGETS, BuildTarget
from codelaunch.packages.packaging import (
    PackageAssembler,
    PackagingError,
    platform_package,
    publish_distribution,
    verify_versions,
    wrapper_package,
)

from conftest import RecordingRunner

WRAPPER = "@jahands/opencode-cf"


def test_platform_manifest():
    manifest = platform_package(BuildTarget("windows", "x64"), "1.2.3", WRAPPER).to_manifest()

    assert manifest["name"] == "@jahands/opencode-cf-windows-x64"
    assert manifest["version"] == "1.2.3"
    assert manifest["os"] == ["win32"]
    assert manifest["cpu"] == ["x64"]
    assert manifest["main"] == "./bin/opencode.exe"
    assert manifest["bin"] == {"opencode": "./bin/opencode.exe"}


def test_wrapper_manifest(settings):
    manifest = wrapper_package("1.2.3", TARGETS, settings).to_manifest()

    assert manifest["name"] == WRAPPER
    assert "os" not in manifest and "cpu" not in manifest
    assert manifest["bin"] == {"opencode": "./bin/opencode"}
    assert manifest["scripts"] == {"postinstall": "node ./postinstall.mjs"}
    assert manifest["optionalDependencies"] == {
        t.package_name(WRAPPER): "1.2.3" for t in TARGETS
    }


def test_assemble_writes_every_package(settings, tmp_path):
    assembler = PackageAssembler(settings, tmp_path / "dist")

    manifests = assembler.assemble("2.0.0", TARGETS)

    assert len(manifests) == len(TARGETS) + 1
    for manifest in manifests:
        on_disk = json.loads((tmp_path / "dist" / manifest["name"] / "package.json").read_text())
        assert on_disk == manifest

    wrapper_dir = tmp_path / "dist" / WRAPPER
    launcher = wrapper_dir / "bin" / "opencode"
    assert launcher.read_text().startswith("#!/usr/bin/env node")
    assert f'"{WRAPPER}"' in launcher.read_text()
    assert os.access(launcher, os.X_OK)
    postinstall = (wrapper_dir / "postinstall.mjs").read_text()
    assert "__WRAPPER_PACKAGE__" not in postinstall
    assert WRAPPER in postinstall


def test_verify_rejects_mixed_versions():
    manifests = [
        platform_package(BuildTarget("linux", "x64"), "1.0.0", WRAPPER).to_manifest(),
        platform_package(BuildTarget("linux", "arm64"), "1.0.1", WRAPPER).to_manifest(),
    ]
    with pytest.raises(PackagingError, match="Mixed versions"):
        verify_versions(manifests)


def test_verify_rejects_unbuilt_optional_dependency(settings):
    only_linux = [platform_package(BuildTarget("linux", "x64"), "1.0.0", WRAPPER).to_manifest()]
    wrapper = wrapper_package("1.0.0", TARGETS, settings).to_manifest()

    with pytest.raises(PackagingError, match="not built"):
        verify_versions(only_linux + [wrapper])


def test_verify_rejects_platform_missing_from_wrapper(settings):
    manifests = [platform_package(t, "1.0.0", WRAPPER).to_manifest() for t in TARGETS]
    manifests.append(wrapper_package("1.0.0", TARGETS[:2], settings).to_manifest())

    with pytest.raises(PackagingError, match="missing optional dependencies"):
        verify_versions(manifests)


def test_verify_returns_shared_version(settings):
    manifests = [platform_package(t, "3.1.4", WRAPPER).to_manifest() for t in TARGETS]
    manifests.append(wrapper_package("3.1.4", TARGETS, settings).to_manifest())
    assert verify_versions(manifests) == "3.1.4"


def test_publish_distribution_publishes_wrapper_last(settings, tmp_path):
    manifests = PackageAssembler(settings, tmp_path).assemble("1.0.0", TARGETS)
    runner = RecordingRunner()

    publish_distribution(tmp_path, list(reversed(manifests)), tag="snapshot", runner=runner)

    published = [c["cwd"] for c in runner.calls]
    assert published[-1] == tmp_path / WRAPPER
    assert len(published) == len(TARGETS) + 1
    assert runner.calls[0]["argv"] == ["bun", "publish", "--access", "public", "--tag", "snapshot"]


def test_publish_distribution_failure(settings, tmp_path):
    manifests = PackageAssembler(settings, tmp_path).assemble("1.0.0", TARGETS[:1])
    runner = RecordingRunner(fail_on=lambda argv: True)

    with pytest.raises(PackagingError, match="Publishing"):
        publish_distribution(tmp_path, manifests, runner=runner)


def test_unwritable_dist_is_a_packaging_error(settings, tmp_path):
    blocker = tmp_path / "dist"
    blocker.write_text("not a directory")

    with pytest.raises(PackagingError, match="Could not write"):
        PackageAssembler(settings, blocker).assemble("1.0.0", TARGETS)
