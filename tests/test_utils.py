import pytest


@pytest.mark.parametrize("size,expected", [
    (0, "0 B"),
    (512, "512 B"),
    (1023, "1023 B"),
    (1024, "1.0 KB"),
    (1536, "1.5 KB"),
    (2 * 1024 * 1024, "2.0 MB"),
    (2 * 1024 * 1024 * 1024, "2.0 GB"),
])
def test_format_file_size(size, expected):
    from pyfilehub.utils import format_file_size
    assert format_file_size(size) == expected


def test_total_pages():
    from pyfilehub.utils import total_pages
    assert total_pages(0, 20) == 0
    assert total_pages(1, 20) == 1
    assert total_pages(20, 20) == 1
    assert total_pages(21, 20) == 2
    assert total_pages(5, 0) == 0
