import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from wellness.storage import InMemoryBucketClient, S3BucketClient


class InMemoryBucketClientTests(unittest.TestCase):
    def test_bounded_stream(self):
        bucket = InMemoryBucketClient(chunk_size=3)
        bucket.put("clip.mp4", b"0123456789")
        self.assertEqual(bucket.size("clip.mp4"), 10)
        self.assertEqual(list(bucket.open_stream("clip.mp4", 2, 7)), [b"234", b"56"])
        self.assertEqual(b"".join(bucket.open_stream("clip.mp4")), b"0123456789")

    def test_missing(self):
        bucket = InMemoryBucketClient()
        self.assertIsNone(bucket.size("nope"))
        with self.assertRaises(FileNotFoundError):
            bucket.open_stream("nope")

    def test_upload_file(self):
        bucket = InMemoryBucketClient()
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "pose.jpg")
            with open(path, "wb") as f:
                f.write(b"jpeg")
            bucket.upload_file(path, "pose.jpg")
        self.assertEqual(bucket.size("pose.jpg"), 4)


class S3BucketClientTests(unittest.TestCase):
    def setUp(self):
        patcher = patch("wellness.storage.boto3.client")
        self.addCleanup(patcher.stop)
        self.s3 = MagicMock()
        patcher.start().return_value = self.s3
        self.bucket = S3BucketClient(bucket="videobucket", chunk_size=64)

    def test_range_is_translated_to_inclusive_s3_range(self):
        body = MagicMock()
        body.iter_chunks.return_value = iter([b"abc"])
        self.s3.get_object.return_value = {"Body": body}

        chunks = list(self.bucket.open_stream("flow.mp4", start=10, end=20))

        self.assertEqual(chunks, [b"abc"])
        self.s3.get_object.assert_called_once_with(
            Bucket="videobucket", Key="flow.mp4", Range="bytes=10-19"
        )
        body.iter_chunks.assert_called_once_with(chunk_size=64)

    def test_open_ended_and_full_reads(self):
        self.s3.get_object.return_value = {"Body": MagicMock()}
        self.bucket.open_stream("flow.mp4", start=5)
        self.s3.get_object.assert_called_with(
            Bucket="videobucket", Key="flow.mp4", Range="bytes=5-"
        )
        self.bucket.open_stream("flow.mp4")
        self.s3.get_object.assert_called_with(Bucket="videobucket", Key="flow.mp4")

    def test_size(self):
        self.s3.head_object.return_value = {"ContentLength": 1024}
        self.assertEqual(self.bucket.size("flow.mp4"), 1024)

    def test_missing_object(self):
        error = ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        self.s3.head_object.side_effect = error
        self.assertIsNone(self.bucket.size("gone.mp4"))

        self.s3.get_object.side_effect = ClientError(
            {"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject"
        )
        with self.assertRaises(FileNotFoundError):
            self.bucket.open_stream("gone.mp4")

    def test_other_errors_propagate(self):
        self.s3.head_object.side_effect = ClientError(
            {"Error": {"Code": "403", "Message": "Forbidden"}}, "HeadObject"
        )
        with self.assertRaises(ClientError):
            self.bucket.size("secret.mp4")

    def test_upload_and_close(self):
        self.bucket.upload_file("/tmp/flow.mp4", "flow.mp4")
        self.s3.upload_file.assert_called_once_with("/tmp/flow.mp4", "videobucket", "flow.mp4")
        self.bucket.close()
        self.s3.close.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
