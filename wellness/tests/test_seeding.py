import json
import os
import tempfile
import unittest

from wellness.db import InMemoryDbClient, MediaKind
from wellness.seeding import load_manifest, seed_catalog
from wellness.storage import InMemoryBucketClient


class SeedCatalogTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        files = {"flow.mp4": b"v" * 50, "flow.png": b"t" * 5, "moon.jpg": b"i" * 7}
        for name, data in files.items():
            with open(os.path.join(self.tmp.name, name), "wb") as f:
                f.write(data)
        self.entries = [
            {
                "kind": "video",
                "category": "strength",
                "level": "beginner",
                "description": "Sun salutation",
                "filename": "flow.mp4",
                "thumbnail": "flow.png",
            },
            {"kind": "image", "category": "sleep", "level": "expert", "filename": "moon.jpg"},
        ]
        self.db = InMemoryDbClient()
        self.videos = InMemoryBucketClient()
        self.images = InMemoryBucketClient()

    def test_seed_uploads_and_records_sizes(self):
        result = seed_catalog(self.entries, self.tmp.name, self.db, self.videos, self.images)

        self.assertEqual(result.created, ["flow.mp4", "moon.jpg"])
        video = self.db.find_media_by_filename(MediaKind.VIDEO, "flow.mp4")
        self.assertEqual(video.filesize, 50)
        self.assertEqual(video.thumbnail, "flow.png")
        self.assertEqual(video.description, "Sun salutation")
        self.assertEqual(self.videos.size("flow.png"), 5)
        self.assertEqual(self.images.size("moon.jpg"), 7)
        self.assertIsNone(self.videos.size("moon.jpg"))

    def test_seed_skips_existing_filenames(self):
        seed_catalog(self.entries, self.tmp.name, self.db, self.videos, self.images)
        again = seed_catalog(self.entries, self.tmp.name, self.db, self.videos, self.images)
        self.assertEqual(again.created, [])
        self.assertEqual(again.skipped, ["flow.mp4", "moon.jpg"])
        self.assertEqual(len(self.db.list_media(MediaKind.VIDEO)), 1)

    def test_missing_file_raises(self):
        entries = [{"kind": "image", "category": "sleep", "level": "expert", "filename": "gone.jpg"}]
        with self.assertRaises(FileNotFoundError):
            seed_catalog(entries, self.tmp.name, self.db, self.videos, self.images)

    def test_missing_thumbnail_uploads_nothing(self):
        entries = [dict(self.entries[0], thumbnail="gone.png")]
        with self.assertRaises(FileNotFoundError):
            seed_catalog(entries, self.tmp.name, self.db, self.videos, self.images)
        self.assertIsNone(self.videos.size("flow.mp4"))
        self.assertIsNone(self.db.find_media_by_filename(MediaKind.VIDEO, "flow.mp4"))

    def test_load_manifest(self):
        path = os.path.join(self.tmp.name, "manifest.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.entries, f)
        self.assertEqual(load_manifest(path), self.entries)

        with open(path, "w", encoding="utf-8") as f:
            json.dump({"kind": "video"}, f)
        with self.assertRaises(ValueError):
            load_manifest(path)


if __name__ == "__main__":
    unittest.main()
