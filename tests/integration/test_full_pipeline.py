"""End-to-end integration tests: full pipeline execution through Stage 0→5.

These tests exercise the platform resolver, fetcher, revision dater, build
identifier, embedder and build trigger working together, with in-memory
transport, revision source and build backend.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from driverforge.config import BuildConfig
from driverforge.core.embedder import parse_embedded_source
from driverforge.core.errors import (
    ArchiveError,
    BuildFailed,
    FetchError,
    RevisionNotFound,
    UnsupportedPlatform,
)
from driverforge.core.pipeline import BuildPipeline
from driverforge.models.platform import PlatformTag
from driverforge.models.stages import StageState
from driverforge.stages import STAGE_ORDER


@pytest.fixture
def pipeline_factory(
    build_config: BuildConfig,
    make_archive,
    fake_transport,
    fake_revision_source,
    fake_backend,
    driver_payload: bytes,
):
    def _factory(
        config: BuildConfig | None = None,
        archive: bytes | None = None,
        transport=None,
        iso_timestamp: str = "2024-01-01T12:00:00+00:00",
        exit_code: int = 0,
        system: str = "Linux",
    ) -> BuildPipeline:
        return BuildPipeline(
            config or build_config,
            transport=transport or fake_transport(archive or make_archive(payload=driver_payload)),
            revision_source=fake_revision_source(iso_timestamp),
            backend=fake_backend(exit_code),
            system=system,
        )

    return _factory


class TestFullPipeline:
    """End-to-end run: resolve → fetch → date → identify → embed → build."""

    def test_full_run(self, pipeline_factory, build_config: BuildConfig, driver_payload: bytes):
        pipeline = pipeline_factory()
        report = pipeline.run()

        assert report.platform is PlatformTag.LINUX
        assert report.build_id == "linux-node-20240115-0123456789ab-fedcba987654"
        assert report.payload_size == len(driver_payload)
        assert report.payload_digest.startswith("sha256:")
        assert report.parallelism == 4
        assert report.built is True
        assert [r.stage_id for r in report.stages] == STAGE_ORDER
        assert all(r.state == StageState.PASSED for r in report.stages)

        generated = build_config.source_root / "src" / "node_record_replay_driver.cc"
        assert report.output_path == generated
        source = parse_embedded_source(generated.read_text(encoding="ascii"))
        assert source.payload == driver_payload
        assert source.build_id == report.build_id

        backend = pipeline.trigger.backend
        assert backend.calls == [
            (
                build_config.source_root,
                ["-j4", "-C", "out", "BUILDTYPE=Release"],
                {"RECORD_REPLAY_DONT_RECORD": "1"},
            )
        ]

    def test_intermediate_files_removed(self, pipeline_factory, build_config: BuildConfig):
        pipeline_factory().run()
        work_dir = build_config.resolved_work_dir
        assert sorted(p.name for p in work_dir.iterdir()) == []

    def test_host_date_wins_when_later(self, pipeline_factory):
        # 23:30 at -05:00 on Feb 29 is March 1st in UTC, later than the driver.
        report = pipeline_factory(iso_timestamp="2024-02-29T23:30:00-05:00").run()
        assert report.host.revision_date == "20240301"
        assert report.build_id == "linux-node-20240301-0123456789ab-fedcba987654"

    def test_macos_host(self, pipeline_factory, make_archive):
        pipeline = pipeline_factory(archive=make_archive(platform="macOS"), system="Darwin")
        report = pipeline.run(skip_build=True)
        assert report.build_id.startswith("macOS-node-")
        assert report.download_name == "macOS-recordreplay.tgz"

    def test_reproducible_output(self, pipeline_factory, build_config: BuildConfig):
        """Two runs over the same inputs write byte-identical source files."""
        generated = build_config.resolved_output_path

        first_report = pipeline_factory().run()
        first = generated.read_bytes()
        second_report = pipeline_factory().run()
        second = generated.read_bytes()

        assert first == second
        assert first_report.build_id == second_report.build_id
        assert [r.output_hash for r in first_report.stages] == [
            r.output_hash for r in second_report.stages
        ]

    def test_skip_build(self, pipeline_factory, build_config: BuildConfig):
        pipeline = pipeline_factory()
        report = pipeline.run(skip_build=True)

        assert report.built is False
        assert report.parallelism is None
        assert pipeline.trigger.backend.calls == []
        assert build_config.resolved_output_path.is_file()
        assert pipeline.run_context["stage_states"]["s5_build"] == StageState.NOT_STARTED

    def test_revision_override_pins_download(self, pipeline_factory, build_config, fake_transport, make_archive):
        transport = fake_transport(make_archive())
        config = build_config.model_copy(update={"driver_revision": "pinned"})
        report = pipeline_factory(config=config, transport=transport).run(skip_build=True)

        assert transport.urls == ["https://downloads.example/linux-recordreplay-pinned.tgz"]
        # The identifier always reflects the fetched descriptor.
        assert report.artifact.revision_hash == "fedcba987654"

    def test_configure_before_build(
        self, build_config, fake_transport, fake_revision_source, fake_backend, make_archive, recording_runner
    ):
        runner = recording_runner()
        backend = fake_backend()
        config = build_config.model_copy(update={"configure_node": True})
        BuildPipeline(
            config,
            transport=fake_transport(make_archive()),
            revision_source=fake_revision_source(),
            backend=backend,
            configure_runner=runner,
            system="Linux",
        ).run()

        assert runner.calls[0]["cmd"] == [str(config.source_root / "configure")]
        assert len(backend.calls) == 1


class TestPipelineFailures:
    """Every failure is fatal: the first error propagates and later stages never run."""

    def _states(self, pipeline: BuildPipeline) -> dict[str, StageState]:
        return pipeline.run_context["stage_states"]

    def test_unsupported_platform(self, build_config, fake_transport, fake_revision_source):
        transport = fake_transport(b"")
        pipeline = BuildPipeline(
            build_config,
            transport=transport,
            revision_source=fake_revision_source(),
            system="Windows",
        )
        with pytest.raises(UnsupportedPlatform):
            pipeline.run()
        assert transport.urls == []
        assert self._states(pipeline)["s0_platform"] == StageState.FAILED
        assert self._states(pipeline)["s1_fetch"] == StageState.NOT_STARTED

    def test_fetch_failure_stops_run(self, build_config, failing_transport, fake_revision_source):
        source = fake_revision_source()
        pipeline = BuildPipeline(
            build_config,
            transport=failing_transport,
            revision_source=source,
            system="Linux",
        )
        with pytest.raises(FetchError):
            pipeline.run()

        assert source.queries == []
        assert not build_config.resolved_output_path.exists()
        states = self._states(pipeline)
        assert states["s1_fetch"] == StageState.FAILED
        assert all(states[sid] == StageState.NOT_STARTED for sid in STAGE_ORDER[2:])

    def test_missing_payload(self, pipeline_factory, make_archive, build_config: BuildConfig):
        pipeline = pipeline_factory(archive=make_archive(payload=None))
        with pytest.raises(ArchiveError):
            pipeline.run()
        assert not build_config.resolved_output_path.exists()

    def test_unresolvable_host_revision(self, build_config, fake_transport, make_archive, fake_revision_source):
        config = build_config.model_copy(update={"host_revision_ref": "missing"})
        pipeline = BuildPipeline(
            config,
            transport=fake_transport(make_archive()),
            revision_source=fake_revision_source(),
            system="Linux",
        )
        with pytest.raises(RevisionNotFound):
            pipeline.run()
        assert self._states(pipeline)["s2_host_revision"] == StageState.FAILED
        assert not config.resolved_output_path.exists()

    def test_build_failure_after_embedding(self, pipeline_factory, build_config: BuildConfig):
        pipeline = pipeline_factory(exit_code=2)
        with pytest.raises(BuildFailed) as excinfo:
            pipeline.run()

        assert excinfo.value.exit_code == 2
        states = self._states(pipeline)
        assert states["s4_embed"] == StageState.PASSED
        assert states["s5_build"] == StageState.FAILED
        # The generated source stays in place for a manual rebuild.
        assert build_config.resolved_output_path.is_file()
        records = pipeline.run_context["stage_records"]
        assert records[-1].stage_id == "s5_build"
        assert records[-1].state == StageState.FAILED

    def test_existing_source_overwritten(self, pipeline_factory, build_config: BuildConfig):
        target = build_config.resolved_output_path
        target.write_text("// stale driver\n")
        pipeline_factory().run(skip_build=True)
        assert "stale" not in target.read_text(encoding="ascii")
