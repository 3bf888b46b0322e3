"""codelaunch Packaging — platform and wrapper package manifests."""
from .assembler import (
    DistributionPackage,
    PackageAssembler,
    PackagingError,
    platform_package,
    publish_distribution,
    verify_versions,
    wrapper_package,
)

__all__ = [
    "DistributionPackage",
    "PackageAssembler",
    "PackagingError",
    "platform_package",
    "publish_distribution",
    "verify_versions",
    "wrapper_package",
]
