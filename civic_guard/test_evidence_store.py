"""Test photo/video/audio evidence bookkeeping and background photo analysis"""
import asyncio

from civic_guard.agent import EvidenceStore
from civic_guard.domain.models import (
    AuthenticityStatus,
    GpsFix,
    ImageAnalysis,
    VideoEvidence,
)
from civic_guard.conftest import jpeg_data_uri

AUTHENTIC = ImageAnalysis(status=AuthenticityStatus.AUTHENTIC, confidence=0.9, reasoning="Camera noise looks natural")


class GatedClassifier:
    """Classifier whose results are released manually"""

    def __init__(self, analysis=AUTHENTIC):
        self.analysis = analysis
        self.release = asyncio.Event()
        self.calls = 0

    async def classify(self, image_bytes, mime_type="image/jpeg"):
        self.calls += 1
        await self.release.wait()
        return self.analysis


class CrashingClassifier:
    async def classify(self, image_bytes, mime_type="image/jpeg"):
        raise RuntimeError("boom")


async def test_photos_capped_at_three():
    store = EvidenceStore()
    added = [store.add_photo(jpeg_data_uri()) for _ in range(4)]

    assert all(entry is not None for entry in added[:3])
    assert added[3] is None
    assert store.snapshot().photo_count == 3


async def test_without_classifier_analysis_is_unknown_immediately():
    store = EvidenceStore()
    entry = store.add_photo(jpeg_data_uri())

    assert entry.analysis.status == AuthenticityStatus.UNKNOWN
    assert store.all_analyses_done


async def test_pending_analysis_blocks_until_resolved():
    classifier = GatedClassifier()
    store = EvidenceStore(classifier)
    entry = store.add_photo(jpeg_data_uri())

    assert entry.is_pending
    assert not store.snapshot().all_analyses_done

    classifier.release.set()
    assert await store.wait_for_analyses(timeout=1)
    assert store.get_photo(entry.entry_id).analysis == AUTHENTIC
    assert store.image_analyses() == [AUTHENTIC]


async def test_late_result_for_removed_photo_is_discarded():
    classifier = GatedClassifier()
    store = EvidenceStore(classifier)
    first = store.add_photo(jpeg_data_uri((200, 0, 0)))
    second = store.add_photo(jpeg_data_uri((0, 200, 0)))

    assert store.remove_photo(first.entry_id)
    assert not store.resolve(first.entry_id, AUTHENTIC)

    classifier.release.set()
    await store.wait_for_analyses(timeout=1)

    assert [p.entry_id for p in store.photos] == [second.entry_id]
    assert store.get_photo(second.entry_id).analysis == AUTHENTIC
    await store.aclose()


async def test_classifier_crash_resolves_unknown():
    store = EvidenceStore(CrashingClassifier())
    entry = store.add_photo(jpeg_data_uri())

    assert await store.wait_for_analyses(timeout=1)
    assert store.get_photo(entry.entry_id).analysis.status == AuthenticityStatus.UNKNOWN


async def test_analysis_listeners_are_notified():
    seen = []
    store = EvidenceStore()
    store.on_analysis(seen.append)

    entry = store.add_photo(jpeg_data_uri())

    assert [p.entry_id for p in seen] == [entry.entry_id]


async def test_best_gps_prefers_photos_then_video():
    store = EvidenceStore()
    video_fix = GpsFix(lat=11.0, lng=77.0)
    store.set_video(VideoEvidence(data_uri="data:video/x-motion-jpeg;base64,AA", gps=video_fix))
    assert store.best_gps() == video_fix

    store.add_photo(jpeg_data_uri())
    photo_fix = GpsFix(lat=10.8, lng=76.9, accuracy=12)
    store.add_photo(jpeg_data_uri(), gps=photo_fix)
    assert store.best_gps() == photo_fix


async def test_snapshot_tracks_video_and_audio():
    store = EvidenceStore()
    store.set_video(VideoEvidence(data_uri="data:video/x-motion-jpeg;base64,AA"))
    snapshot = store.snapshot()
    assert snapshot.has_video and not snapshot.has_audio

    store.clear_video()
    assert not store.snapshot().has_video


async def test_aclose_cancels_outstanding_analyses():
    classifier = GatedClassifier()
    store = EvidenceStore(classifier)
    store.add_photo(jpeg_data_uri())
    await asyncio.sleep(0)

    await store.aclose()

    assert classifier.calls == 1
    assert not store.all_analyses_done
