from __future__ import annotations

import json

import pytest

from ad_overlay.blocks import parse_text_blocks, parse_variations
from ad_overlay.errors import BlockParseError
from ad_overlay.models import TextBlock

BLOCKS = [
    {"text": "Same-day dispatch", "placement": "top-left-safe", "text_size": "large", "style": "pill",
     "pill_color": "dark", "capitalization": "upper"},
    {"text": "Order by 2pm", "placement": "bottom-center-safe", "text_size": "small", "style": "plain",
     "capitalization": "sentence"},
]


def test_plain_list():
    blocks = parse_text_blocks(BLOCKS)
    assert blocks[0] == TextBlock(
        text="Same-day dispatch",
        placement="top-left-safe",
        text_size="large",
        style="pill",
        pill_color="dark",
        capitalization="upper",
    )
    assert blocks[1].pill_color is None


def test_json_string_in_fenced_block_with_prose():
    raw = "Here you go:\n```json\n" + json.dumps(BLOCKS) + "\n```\nEnjoy!"
    assert [b.text for b in parse_text_blocks(raw)] == ["Same-day dispatch", "Order by 2pm"]


def test_json_embedded_in_prose():
    raw = "Sure! " + json.dumps(BLOCKS) + " Let me know."
    assert len(parse_text_blocks(raw)) == 2


def test_object_with_text_blocks_key():
    assert len(parse_text_blocks({"text_blocks": BLOCKS})) == 2
    assert len(parse_text_blocks(json.dumps({"text_blocks": BLOCKS}).encode())) == 2


def test_single_block_object():
    assert parse_text_blocks({"text": "hi"}) == [TextBlock(text="hi")]


def test_invalid_items_are_skipped():
    blocks = parse_text_blocks([BLOCKS[0], "nope", 3, {"placement": "center-safe"}, {"text": "   "}])
    assert [b.text for b in blocks] == ["Same-day dispatch"]


def test_defaults_and_normalisation():
    block = TextBlock.from_dict({"text": "x", "style": "PILL", "pill_color": "", "text_size": None})
    assert block.style == "pill"
    assert block.pill_color is None
    assert block.text_size == "standard"
    assert block.placement == "center-safe"


def test_round_trip_to_dict():
    block = TextBlock.from_dict(BLOCKS[0])
    assert TextBlock.from_dict(block.to_dict()) == block


def test_empty_payload():
    assert parse_text_blocks("") == []
    assert parse_text_blocks("[]") == []


@pytest.mark.parametrize("raw", ["not json at all", "{broken", '"just a string"', "42"])
def test_garbage_raises(raw):
    with pytest.raises(BlockParseError):
        parse_text_blocks(raw)


def test_variations():
    payload = {
        "scene_description": "a van",
        "variations": [
            {"text_blocks": BLOCKS, "hook_type": "speed", "ad_caption": "Fast.", "ad_headline": "Today"},
            "skip me",
            {"text_blocks": BLOCKS[:1]},
        ],
    }
    variations = parse_variations(json.dumps(payload))
    assert [v.number for v in variations] == [1, 2]
    assert variations[0].hook_type == "speed"
    assert len(variations[0].text_blocks) == 2
    assert variations[1].ad_caption == ""


def test_variations_must_be_a_list():
    with pytest.raises(BlockParseError):
        parse_variations("7")


def test_supplied_variation_number_is_kept():
    variations = parse_variations(
        [
            {"variation_number": 4, "text_blocks": BLOCKS},
            {"variation_number": "bad", "text_blocks": BLOCKS},
            {"variation_number": 0, "text_blocks": BLOCKS},
        ]
    )
    assert [v.number for v in variations] == [4, 2, 3]


def test_carousel_variations():
    payload = {
        "carousel_variations": [
            {
                "hook_type": "story",
                "ad_caption": "Swipe",
                "slides": [
                    {"slide_number": 1, "image_index": 0, "text_blocks": BLOCKS[:1]},
                    "skip me",
                    {"slide_number": 2, "image_index": 1, "text_blocks": BLOCKS},
                    {"image_index": -3, "text_blocks": []},
                ],
            }
        ]
    }
    (variation,) = parse_variations(json.dumps(payload))
    assert variation.is_carousel
    assert variation.text_blocks == []
    assert [(s.slide_number, s.image_index, len(s.text_blocks)) for s in variation.slides] == [
        (1, 0, 1),
        (2, 1, 2),
        (3, 0, 0),
    ]


def test_carousel_slides_key():
    (variation,) = parse_variations([{"carousel_slides": [{"slide_number": 5, "text_blocks": BLOCKS}]}])
    assert variation.slides[0].slide_number == 5
    assert variation.slides[0].text_blocks[0].text == "Same-day dispatch"


def test_single_image_variation_is_not_carousel():
    (variation,) = parse_variations({"text_blocks": BLOCKS})
    assert not variation.is_carousel
