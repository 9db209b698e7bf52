"""Tests for HTML to Markdown conversion and cleanup."""

from __future__ import annotations

import pytest

from republisher.fetch.markdown import clean_markdown, is_valid_image_src, to_markdown


@pytest.mark.parametrize(
    "src",
    ["", "#", "#top", "data:image/png;base64,iVBORw0KGgo=", "a.jp", "//"],
)
def test_broken_image_sources_are_dropped(src):
    html = f'<p>Nội dung bài viết.</p><img src="{src}" alt="Ảnh">'

    markdown = to_markdown(html)

    assert "![" not in markdown
    assert markdown == "Nội dung bài viết."


def test_image_without_src_is_dropped():
    assert "![" not in to_markdown('<p>Text</p><img alt="no source">')


def test_image_keeps_alt_and_title():
    html = '<img src="https://cdn.example.com/xe.jpg" alt="Xe điện" title="Ảnh minh họa">'

    assert to_markdown(html) == '![Xe điện](https://cdn.example.com/xe.jpg "Ảnh minh họa")'


def test_images_are_separate_blocks():
    html = '<p>Trước<img src="https://cdn.example.com/a.jpg" alt="A">Sau</p>'

    assert to_markdown(html) == "Trước\n\n![A](https://cdn.example.com/a.jpg)\n\nSau"


def test_is_valid_image_src():
    assert is_valid_image_src("https://cdn.example.com/a.jpg")
    assert not is_valid_image_src(None)
    assert not is_valid_image_src("DATA:image/gif;base64,R0lG")


def test_script_and_style_are_stripped():
    html = "<style>p{color:red}</style><script>alert('x')</script><p>Xin chào</p>"

    assert to_markdown(html) == "Xin chào"


def test_inline_formatting_and_links():
    html = (
        "<h2>Tiêu đề</h2>"
        '<p><strong>Đậm</strong>, <em>nghiêng</em>, <del>cũ</del> và '
        '<a href="https://example.com/a">liên kết</a>.</p>'
    )

    assert to_markdown(html) == (
        "## Tiêu đề\n\n**Đậm**, *nghiêng*, ~~cũ~~ và [liên kết](https://example.com/a)."
    )


def test_lists_and_blockquote():
    html = "<ul><li>Một</li><li>Hai</li></ul><ol><li>A</li><li>B</li></ol><blockquote><p>Trích dẫn</p></blockquote>"

    assert to_markdown(html) == "- Một\n- Hai\n\n1. A\n2. B\n\n> Trích dẫn"


def test_simple_table_becomes_pipe_table():
    html = "<table><tr><th>Mẫu</th><th>Giá</th></tr><tr><td>VF 3</td><td>240</td></tr></table>"

    assert to_markdown(html) == "| Mẫu | Giá |\n| --- | --- |\n| VF 3 | 240 |"


def test_complex_table_degrades_to_text_rows():
    html = (
        "<table>"
        '<tr><th colspan="2">Bảng giá</th></tr>'
        "<tr><td>VF 3</td><td>240</td></tr>"
        "</table>"
    )

    markdown = to_markdown(html)

    assert "|" not in markdown
    assert markdown == "Bảng giá\nVF 3 240"


def test_code_block_keeps_indentation():
    html = '<pre><code class="language-python">def f():\n    return 1</code></pre>'

    assert to_markdown(html) == "```python\ndef f():\n    return 1\n```"


def test_clean_markdown_removes_artifacts():
    text = (
        "Giá xe tăng[1] mạnh.\n\n\n\n"
        "Xem thêm: Bài viết khác\n\n"
        "##\n\n"
        "**Theo VnExpress**\n\n"
        "Có  nhiều   khoảng trắng ()\n"
        "Liên kết rỗng [](https://example.com)"
    )

    assert clean_markdown(text) == (
        "Giá xe tăng mạnh.\n\nCó nhiều khoảng trắng\nLiên kết rỗng"
    )


def test_clean_markdown_keeps_numbered_links():
    assert clean_markdown("Xem [1](https://example.com/1)") == "Xem [1](https://example.com/1)"


def test_cleanup_is_idempotent():
    html = """
    <article>
      <h1>Tiêu đề</h1>
      <p>Đoạn   một[2] có <b>chữ đậm</b>.</p>


      <p>Read more: somewhere</p>
      <figure><img src="https://cdn.example.com/a.jpg" alt="A" title="Chú thích"></figure>
      <h3> </h3>
      <pre><code>  indented
    code</code></pre>
      <table><tr><td>1</td><td>2</td></tr></table>
    </article>
    """

    once = to_markdown(html)

    assert clean_markdown(once) == once
    assert "\n\n\n" not in once
    assert "[2]" not in once
    assert "Read more" not in once


def test_nested_noise_is_removed_in_one_pass():
    text = "Giá bán (([1])) đồng\nNguồn ([](https://a.com)) [[3]](https://b.com) ở đây"

    once = clean_markdown(text)

    assert once == "Giá bán đồng\nNguồn ở đây"
    assert clean_markdown(once) == once


def test_empty_input():
    assert to_markdown("") == ""
    assert to_markdown("   ") == ""
    assert clean_markdown("") == ""
