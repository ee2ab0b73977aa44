import re

from app.storage.filenames import (
    preview_filename,
    sanitize_filename,
    split_extension,
    unique_stored_filename,
)


class TestSanitize:
    def test_replaces_whitespace(self) -> None:
        assert sanitize_filename("my  holiday photo.png") == "my_holiday_photo.png"

    def test_drops_directories(self) -> None:
        assert sanitize_filename("../../etc/passwd") == "passwd"
        assert sanitize_filename("C:\\Users\\me\\doc.pdf") == "doc.pdf"

    def test_keeps_non_ascii(self) -> None:
        assert sanitize_filename("รูปภาพ.jpg") == "รูปภาพ.jpg"

    def test_empty_name_gets_fallback(self) -> None:
        assert sanitize_filename("   ") == "file"


class TestSplitExtension:
    def test_splits_at_final_dot(self) -> None:
        assert split_extension("archive.tar.gz") == ("archive.tar", ".gz")

    def test_no_extension(self) -> None:
        assert split_extension("README") == ("README", "")

    def test_leading_dot_is_not_extension(self) -> None:
        assert split_extension(".env") == (".env", "")


class TestUniqueStoredFilename:
    def test_keeps_base_and_extension(self) -> None:
        name = unique_stored_filename("photo one.png")
        assert re.fullmatch(r"photo_one-\d+-\d+\.png", name)

    def test_identical_names_get_distinct_stored_names(self) -> None:
        names = {unique_stored_filename("photo.png") for _ in range(50)}
        assert len(names) == 50


class TestPreviewFilename:
    def test_derives_from_base_name(self) -> None:
        assert preview_filename("photo-1-2.jpeg", ".png") == "thumb_photo-1-2.png"
