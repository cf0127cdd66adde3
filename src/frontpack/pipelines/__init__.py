"""Per-resource pipelines and their default collaborators."""

from frontpack.pipelines.base import PipelineOptions, final_name
from frontpack.pipelines.markup import HtmlBlockReplacer, MarkupPipeline, SubstitutionOutcome
from frontpack.pipelines.script import EsModuleBundler, ScriptPipeline
from frontpack.pipelines.static_refs import StaticReferenceRewriter
from frontpack.pipelines.style import CssImportInliner, StylePipeline

__all__ = [
    "CssImportInliner",
    "EsModuleBundler",
    "HtmlBlockReplacer",
    "MarkupPipeline",
    "PipelineOptions",
    "ScriptPipeline",
    "StaticReferenceRewriter",
    "StylePipeline",
    "SubstitutionOutcome",
    "final_name",
]
