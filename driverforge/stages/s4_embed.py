"""Stage 4: Source Embedding.

Renders the driver payload, its size and the build identifier into the
generated C++ file and overwrites it in the source tree.

Outputs:
    output_path:    path of the generated file.
    source_digest:  ``sha256:<hex>`` of the rendered text.
"""

from __future__ import annotations

from typing import Any

from driverforge.config import BuildConfig
from driverforge.core.embedder import render_embedded_source, write_embedded_source
from driverforge.core.hasher import content_address
from driverforge.models.build import BuildIdentifier, FetchedArtifact
from driverforge.stages.base import BaseStage


class EmbedStage(BaseStage):
    """Stage 4: write the driver into the node source tree."""

    @property
    def stage_id(self) -> str:
        return "s4_embed"

    @property
    def display_name(self) -> str:
        return "Source Embedding"

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        config: BuildConfig = run_context["config"]
        artifact: FetchedArtifact = run_context["artifact"]
        build_id: BuildIdentifier = run_context["build_id"]

        text = render_embedded_source(artifact.payload, build_id.value)
        path = write_embedded_source(config.resolved_output_path, text)
        run_context["output_path"] = path
        return {
            "output_path": str(path),
            "source_digest": content_address(text.encode("ascii")),
        }
