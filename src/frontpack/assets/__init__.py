"""Asset relocation and literal reference rewriting."""

from frontpack.assets.relocator import AssetCopyStream, AssetReference, AssetRelocator, resolve_assets
from frontpack.assets.rewriter import RewriteRule, rewrite, rewrite_all

__all__ = [
    "AssetCopyStream",
    "AssetReference",
    "AssetRelocator",
    "RewriteRule",
    "resolve_assets",
    "rewrite",
    "rewrite_all",
]
