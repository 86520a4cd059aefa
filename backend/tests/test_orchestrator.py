"""
Batch orchestration against the fake codec.

Run:
    pytest backend/tests/test_orchestrator.py -v
"""
import pytest

from compressor.compression.models import CompressionSettings, FileStatus
from compressor.compression.orchestrator import COMPRESSION_FAILED, BatchOrchestrator
from compressor.compression.validation import FORMAT_ERROR
from conftest import BAD_BYTES, FakeCodec


@pytest.fixture
def settings():
    return CompressionSettings(quality=60, format="webp")


class TestSequentialBatch:
    @pytest.mark.asyncio
    async def test_codec_called_once_per_eligible_file_in_order(self, fake_codec, make_input_file, settings):
        files = [make_input_file(source=bytes([i]) * 100) for i in range(4)]
        summary = await BatchOrchestrator(fake_codec).run_batch(files, settings)

        assert fake_codec.calls == [f.source for f in files]
        assert summary.succeeded == 4
        assert summary.failed == 0

    @pytest.mark.asyncio
    async def test_calls_never_overlap(self, make_input_file, settings):
        codec = FakeCodec(delay=0.02)
        files = [make_input_file(source=bytes([i]) * 50) for i in range(5)]
        await BatchOrchestrator(codec).run_batch(files, settings)

        assert codec.max_active == 1
        kinds = [kind for kind, _ in codec.events]
        assert kinds == ["start", "end"] * 5

    @pytest.mark.asyncio
    async def test_processing_flag_only_during_attempt(self, fake_codec, make_input_file, settings):
        files = [make_input_file(source=b"a" * 10), make_input_file(source=b"b" * 10)]
        seen = []

        def observe(source):
            seen.append([(f.source, f.is_processing, f.status) for f in files])

        fake_codec.on_encode = observe
        await BatchOrchestrator(fake_codec).run_batch(files, settings)

        assert seen[0] == [(b"a" * 10, True, FileStatus.PROCESSING), (b"b" * 10, False, FileStatus.IDLE)]
        assert seen[1] == [(b"a" * 10, False, FileStatus.DONE), (b"b" * 10, True, FileStatus.PROCESSING)]
        assert all(not f.is_processing for f in files)

    @pytest.mark.asyncio
    async def test_progress_callback(self, fake_codec, make_input_file, settings):
        files = [make_input_file() for _ in range(3)]
        progress = []
        await BatchOrchestrator(fake_codec).run_batch(
            files, settings, on_progress=lambda fid, i, n: progress.append((fid, i, n))
        )
        assert progress == [(files[0].file_id, 1, 3), (files[1].file_id, 2, 3), (files[2].file_id, 3, 3)]


class TestOutcomes:
    @pytest.mark.asyncio
    async def test_success_stores_output(self, fake_codec, make_input_file, settings):
        f = make_input_file(source=b"x" * 1000)
        await BatchOrchestrator(fake_codec).run_batch([f], settings)

        assert f.status == FileStatus.DONE
        assert f.error is None
        assert f.compressed.size == 500
        assert f.compressed.format == "webp"
        assert f.compressed.quality == 60
        assert f.compressed.compression_ratio == pytest.approx(50.0)

    @pytest.mark.asyncio
    async def test_failure_marks_errored_and_batch_continues(self, fake_codec, make_input_file, settings):
        bad = make_input_file(source=BAD_BYTES)
        good = make_input_file(source=b"g" * 100)
        summary = await BatchOrchestrator(fake_codec).run_batch([bad, good], settings)

        assert bad.status == FileStatus.ERRORED
        assert bad.error == COMPRESSION_FAILED
        assert bad.compressed is None
        assert not bad.is_processing
        assert good.status == FileStatus.DONE
        assert summary.succeeded == 1
        assert summary.failed == 1
        assert [r.status for r in summary.results] == [FileStatus.ERRORED, FileStatus.DONE]

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_recorded_too(self, make_input_file, settings):
        class Exploding(FakeCodec):
            async def encode(self, source, settings, original_size):
                raise RuntimeError("codec crashed")

        f = make_input_file()
        await BatchOrchestrator(Exploding()).run_batch([f], settings)
        assert f.error == COMPRESSION_FAILED
        assert not f.is_processing

    @pytest.mark.asyncio
    async def test_validation_errored_files_are_untouched(self, fake_codec, make_input_file, settings):
        rejected = make_input_file(error=FORMAT_ERROR)
        ok = make_input_file()
        summary = await BatchOrchestrator(fake_codec).run_batch([rejected, ok], settings)

        assert fake_codec.calls == [ok.source]
        assert rejected.error == FORMAT_ERROR
        assert rejected.compressed is None
        assert not rejected.is_processing
        assert [r.file_id for r in summary.results] == [ok.file_id]

    @pytest.mark.asyncio
    async def test_errored_file_stays_out_of_later_runs(self, fake_codec, make_input_file, settings):
        bad = make_input_file(source=BAD_BYTES)
        orchestrator = BatchOrchestrator(fake_codec)
        await orchestrator.run_batch([bad], settings)
        await orchestrator.run_batch([bad], settings)
        assert fake_codec.calls == [BAD_BYTES]

    @pytest.mark.asyncio
    async def test_rerun_replaces_output(self, fake_codec, make_input_file):
        f = make_input_file()
        orchestrator = BatchOrchestrator(fake_codec)
        await orchestrator.run_batch([f], CompressionSettings(quality=90, format="jpeg"))
        first = f.compressed
        await orchestrator.run_batch([f], CompressionSettings(quality=40, format="png"))

        assert f.compressed is not first
        assert (f.compressed.quality, f.compressed.format) == (40, "png")
        assert len(fake_codec.calls) == 2

    @pytest.mark.asyncio
    async def test_empty_batch(self, fake_codec, settings):
        summary = await BatchOrchestrator(fake_codec).run_batch([], settings)
        assert summary.results == []
        assert fake_codec.calls == []


class TestSummary:
    @pytest.mark.asyncio
    async def test_totals_count_successful_files(self, fake_codec, make_input_file, settings):
        files = [make_input_file(source=b"a" * 1000), make_input_file(source=BAD_BYTES), make_input_file(source=b"b" * 400)]
        summary = await BatchOrchestrator(fake_codec).run_batch(files, settings)

        assert summary.total_original_size == 1400
        assert summary.total_compressed_size == 700
        assert summary.total_savings == 700
        data = summary.to_dict()
        assert data["succeeded"] == 2
        assert data["failed"] == 1
        assert len(data["results"]) == 3


def test_default_codec_is_pillow():
    from compressor.compression.codec import PillowCodec

    assert isinstance(BatchOrchestrator().codec, PillowCodec)
