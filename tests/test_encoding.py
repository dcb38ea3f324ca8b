import shutil
import tempfile
import unittest
from pathlib import Path

from ctxwalker import BINARY_PLACEHOLDER, SizeLimitExceeded, decode_bytes, detect, read_file_content, transcode


class TestDetect(unittest.TestCase):
    def test_plain_utf8_round_trips(self):
        text = "héllo wörld ✓ 中文"
        data = text.encode("utf-8")
        encoding, body = detect(data)
        self.assertEqual(encoding, "utf-8")
        self.assertEqual(body, data)
        self.assertEqual(transcode(body, encoding), text)

    def test_empty_input(self):
        self.assertEqual(detect(b""), ("utf-8", b""))
        self.assertEqual(transcode(b"", "utf-8"), "")

    def test_utf8_bom_is_stripped(self):
        encoding, body = detect(b"\xef\xbb\xbfhello")
        self.assertEqual((encoding, body), ("utf-8", b"hello"))

    def test_utf16le_bom(self):
        encoding, body = detect(b"\xff\xfe\x41\x00\x42\x00")
        self.assertEqual(encoding, "utf-16le")
        self.assertEqual(body, b"\x41\x00\x42\x00")
        self.assertEqual(transcode(body, encoding), "AB")

    def test_utf16be_bom(self):
        encoding, body = detect(b"\xfe\xff\x00\x41\x00\x42")
        self.assertEqual(encoding, "utf-16be")
        self.assertEqual(transcode(body, encoding), "AB")

    def test_utf16_without_bom_by_nul_ratio(self):
        data = "héllo".encode("utf-16-le")
        encoding, body = detect(data)
        self.assertEqual(encoding, "utf-16le")
        self.assertEqual(transcode(body, encoding), "héllo")

    def test_gbk(self):
        data = "中文测试".encode("gbk")
        encoding, body = detect(data)
        self.assertEqual(encoding, "gbk")
        self.assertEqual(transcode(body, encoding), "中文测试")

    def test_windows_1252(self):
        data = "café".encode("cp1252")
        encoding, body = detect(data)
        self.assertEqual(encoding, "ansi")
        self.assertEqual(transcode(body, encoding), "café")

    def test_unclassifiable_bytes_default_to_utf8(self):
        encoding, _ = detect(b"\x80\x80\x80\x01\x02")
        self.assertEqual(encoding, "utf-8")


class TestTranscodeFallback(unittest.TestCase):
    def test_failed_decode_falls_back_to_original_bytes(self):
        data = b"hello world \x81"
        decoded = decode_bytes(data)
        self.assertEqual(decoded.encoding, "ansi")
        self.assertTrue(decoded.fallback)
        self.assertEqual(decoded.text, "hello world \ufffd")
        self.assertEqual(transcode(data, "ansi"), "hello world \ufffd")

    def test_odd_length_utf16_falls_back(self):
        decoded = decode_bytes(b"A\x00B", "utf-16le")
        self.assertTrue(decoded.fallback)
        self.assertEqual(decoded.text, "A\x00B")

    def test_unknown_encoding_name_falls_back(self):
        decoded = decode_bytes(b"abc", "klingon")
        self.assertTrue(decoded.fallback)
        self.assertEqual(decoded.text, "abc")

    def test_encoding_aliases(self):
        self.assertEqual(transcode("café".encode("cp1252"), "windows-1252"), "café")
        self.assertFalse(decode_bytes(b"\x41\x00", "UTF-16-LE").fallback)


class TestReadFileContent(unittest.TestCase):
    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_reads_and_decodes_text(self):
        path = self.test_dir / "notes.txt"
        path.write_bytes("中文".encode("gbk"))
        self.assertEqual(read_file_content(path), ("中文", False))

    def test_binary_returns_placeholder(self):
        path = self.test_dir / "blob.dat"
        path.write_bytes(b"\x00\x01\x02")
        self.assertEqual(read_file_content(path), (BINARY_PLACEHOLDER, True))

    def test_size_limit(self):
        path = self.test_dir / "big.txt"
        path.write_text("x" * 50)
        with self.assertRaises(SizeLimitExceeded):
            read_file_content(path, max_size=10)
        self.assertEqual(read_file_content(path, max_size=50)[0], "x" * 50)

    def test_missing_file_raises(self):
        with self.assertRaises(OSError):
            read_file_content(self.test_dir / "missing.txt")


if __name__ == "__main__":
    unittest.main()
