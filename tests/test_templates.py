"""Tests for note content templates."""

from telesync.ingest.templates import TemplateRenderer, default_body
from tests.conftest import make_message


def test_default_body_joins_text_and_reference():
    message = make_message(caption="a caption")

    assert default_body(message, "![x](x.png)") == "a caption\n![x](x.png)"
    assert default_body(make_message(text="only text")) == "only text"


async def test_missing_template_falls_back(store):
    renderer = TemplateRenderer(store)

    content = await renderer.render("missing.md", make_message(text="hi"), "ref")

    assert content == "hi\nref"


def test_apply_placeholders(store, message_time):
    renderer = TemplateRenderer(store)
    message = make_message(text="body")

    content = renderer.apply(
        "{{user}} in {{chat}} at {{messageTime:%H:%M}} {{unknown}}\n{{files}}",
        message,
        "ref",
    )

    assert content == f"@alice in 42 at {message_time.strftime('%H:%M')} {{{{unknown}}}}\nref"
